from __future__ import annotations

from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

import extrinsic_ranker.cli_deps as cli_deps
from extrinsic_ranker.analysis.expiry import (
    closest_expiration,
    days_to_expiry,
    expiration_date,
    upcoming_fridays,
)
from extrinsic_ranker.commands.common import _resolve_target
from extrinsic_ranker.data.market_types import DataUnavailableError
from extrinsic_ranker.pipeline import DEFAULT_STRIKES, normalize_ticker, run_analysis
from extrinsic_ranker.reporting import (
    build_ranking_artifact,
    ranking_frame,
    render_analysis_console,
    render_analysis_markdown,
)

_FORMATS = {"console", "md", "json", "csv"}


def rank(
    ticker: str = typer.Argument(..., help="Underlying ticker (e.g. AAPL)."),
    expiry: str | None = typer.Option(
        None,
        "--expiry",
        help="Target expiration date (YYYY-MM-DD). Defaults to the next Friday.",
    ),
    strikes: int = typer.Option(
        DEFAULT_STRIKES,
        "--strikes",
        help="Strikes on each side of the money to analyze (clamped to 3-20).",
    ),
    format: str = typer.Option("console", "--format", help="Output format: console|md|json|csv"),
    out: Path | None = typer.Option(
        None,
        "--out",
        help="Output root for saved artifacts (writes under {out}/rankings/{TICKER}/).",
    ),
    relay: list[str] = typer.Option(
        [],
        "--relay",
        help="Relay to use (repeatable, tried in the given order): corsproxy|allorigins|codetabs|thingproxy|direct.",
    ),
    timeout: float | None = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout in seconds."),
    max_rounds: int | None = typer.Option(None, "--max-rounds", min=1, help="Retry rounds across all relays."),
) -> None:
    """Rank near-the-money calls by extrinsic value per day per unit of delta."""
    console = Console()
    fmt = format.strip().lower()
    if fmt not in _FORMATS:
        raise typer.BadParameter("Invalid --format (use console|md|json|csv)", param_hint="--format")
    target = _resolve_target(expiry)

    try:
        client = cli_deps.build_market_client(relays=relay, timeout_seconds=timeout, max_rounds=max_rounds)
        with console.status("Initializing…") as status:
            result = run_analysis(
                ticker,
                target,
                strikes=strikes,
                client=client,
                on_status=lambda msg: status.update(msg),
            )

        artifact = build_ranking_artifact(result)
        if fmt == "console":
            render_analysis_console(console, result)
        elif fmt == "md":
            typer.echo(render_analysis_markdown(result))
        elif fmt == "json":
            typer.echo(artifact.to_json())
        else:
            typer.echo(ranking_frame(result).to_csv(index=False))

        if out is not None:
            base = out / "rankings" / result.ticker
            stem = result.matched_expiry_date.isoformat()
            json_path = artifact.write_json(base / f"{stem}.json")
            md_path = base / f"{stem}.md"
            md_path.write_text(render_analysis_markdown(result), encoding="utf-8")
            console.print(f"\nSaved: {json_path}")
            console.print(f"Saved: {md_path}")
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc


def expiries(
    ticker: str = typer.Argument(..., help="Underlying ticker (e.g. AAPL)."),
    expiry: str | None = typer.Option(
        None,
        "--expiry",
        help="Target date to match (YYYY-MM-DD). Defaults to the next Friday.",
    ),
    relay: list[str] = typer.Option([], "--relay", help="Relay to use (repeatable)."),
) -> None:
    """List the expirations the feed reports for a ticker, marking the closest to the target."""
    console = Console()
    target = _resolve_target(expiry)

    try:
        sym = normalize_ticker(ticker)
        client = cli_deps.build_market_client(relays=relay)
        with console.status(f"Loading {sym} available expirations…") as status:
            chain = client.fetch_option_chain(sym, None, on_status=lambda msg: status.update(msg))
        if not chain.expiration_dates:
            raise DataUnavailableError(f"No options available for {sym}")
        best = closest_expiration(chain.expiration_dates, target)

        table = Table(title=f"{sym} expirations (target {target.isoformat()})")
        table.add_column("Expiry")
        table.add_column("DTE", justify="right")
        table.add_column("Timestamp", justify="right")
        table.add_column("")
        for ts in chain.expiration_dates:
            table.add_row(
                expiration_date(ts).isoformat(),
                str(days_to_expiry(ts)),
                str(ts),
                "[green]closest[/green]" if ts == best else "",
            )
        console.print(table)
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc


def fridays(
    count: int = typer.Option(12, "--count", min=1, max=52, help="How many upcoming Fridays to list."),
) -> None:
    """List upcoming Fridays (the usual weekly expiration targets)."""
    console = Console()
    table = Table(title="Upcoming Fridays")
    table.add_column("Date")
    table.add_column("Label")
    table.add_column("DTE", justify="right")
    today = date.today()
    for friday in upcoming_fridays(count, today=today):
        table.add_row(friday.isoformat(), friday.strftime("%a, %b %d"), str((friday - today).days))
    console.print(table)
