from __future__ import annotations

from dataclasses import asdict

import pandas as pd
from rich.bar import Bar
from rich.console import Console
from rich.table import Table

from extrinsic_ranker.analysis.expiry import expiration_label
from extrinsic_ranker.analysis.extrinsic import AnalyzedOption
from extrinsic_ranker.analysis.ranking import RankedOption
from extrinsic_ranker.pipeline import AnalysisResult
from extrinsic_ranker.schemas.common import utc_now
from extrinsic_ranker.schemas.ranking import OptionRow, RankedRow, RankingArtifact

_MONEYNESS_STYLE = {"ITM": "cyan", "ATM": "yellow", "OTM": "dim"}

RANKING_COLUMNS = [
    "rank",
    "contract_symbol",
    "strike",
    "moneyness",
    "bid",
    "ask",
    "mid",
    "intrinsic",
    "extrinsic",
    "delta",
    "gamma",
    "theta",
    "vega",
    "rho",
    "implied_volatility",
    "open_interest",
    "volume",
    "extrinsic_per_dte",
    "efficiency_score",
    "fallback_score",
    "annualized_yield",
    "dte",
]


def _fmt_money(val: float | None) -> str:
    if val is None:
        return "-"
    return f"${val:,.2f}"


def _fmt_num(val: float | None, *, digits: int = 2) -> str:
    if val is None:
        return "-"
    return f"{val:.{digits}f}"


def _fmt_pct(val: float | None, *, digits: int = 1) -> str:
    if val is None:
        return "-"
    return f"{val * 100.0:.{digits}f}%"


def ranking_method(result: AnalysisResult) -> str:
    if any(o.efficiency_score is not None for o in result.analyzed):
        return "efficiency"
    return "extrinsic_per_dte"


def _method_note(result: AnalysisResult) -> str:
    if result.has_greeks:
        return "Efficiency = Extrinsic ÷ DTE ÷ |Δ|. Higher = more premium per unit of directional risk per day."
    return "Ranking by Extrinsic ÷ DTE. The feed did not return Greeks for this chain."


def _build_summary_table(result: AnalysisResult) -> Table:
    table = Table(title="Summary")
    table.add_column("Spot", justify="right")
    table.add_column("Matched Expiry")
    table.add_column("DTE", justify="right")
    table.add_column("Calls Loaded", justify="right")
    table.add_column("Rankable", justify="right")
    table.add_row(
        _fmt_money(result.spot.price),
        expiration_label(result.matched_expiration),
        str(result.dte),
        str(len(result.analyzed)),
        str(len(result.ranked)),
    )
    return table


def _build_ranking_table(result: AnalysisResult) -> Table:
    greeks = result.has_greeks
    table = Table(title="Extrinsic Value Efficiency Ranking")
    table.add_column("Rank", justify="right")
    table.add_column("Strike", justify="right")
    table.add_column("")
    for name in ("Bid", "Ask", "Mid", "Intrinsic", "Extrinsic"):
        table.add_column(name, justify="right")
    if greeks:
        for name in ("Delta", "Gamma", "Theta", "Vega"):
            table.add_column(name, justify="right")
    for name in ("IV", "OI", "Ext/DTE", "Efficiency", "Ann.Yld"):
        table.add_column(name, justify="right")

    for o in result.ranked:
        style = _MONEYNESS_STYLE.get(o.moneyness, "")
        row = [
            str(o.rank),
            f"{o.strike:g}",
            f"[{style}]{o.moneyness}[/{style}]" if style else o.moneyness,
            _fmt_num(o.bid),
            _fmt_num(o.ask),
            _fmt_num(o.mid),
            _fmt_num(o.intrinsic),
            _fmt_num(o.extrinsic),
        ]
        if greeks:
            row += [
                _fmt_num(o.delta, digits=3),
                _fmt_num(o.gamma, digits=4),
                _fmt_num(o.theta, digits=3),
                _fmt_num(o.vega, digits=3),
            ]
        row += [
            _fmt_pct(o.implied_volatility),
            f"{o.open_interest:,}",
            _fmt_num(o.extrinsic_per_dte, digits=4),
            _fmt_num(o.score, digits=4),
            f"{o.annualized_yield:.1f}%",
        ]
        table.add_row(*row)
    return table


def _build_premium_table(result: AnalysisResult) -> Table:
    table = Table(title="Premium Breakdown by Strike")
    table.add_column("Strike", justify="right")
    table.add_column("")
    table.add_column("Intrinsic", justify="right")
    table.add_column("Extrinsic", justify="right")
    table.add_column("Mid", justify="right")
    table.add_column("Extrinsic share", justify="right")
    for o in result.analyzed:
        share = (o.extrinsic / o.mid) if o.mid > 0 else None
        table.add_row(
            f"{o.strike:g}",
            o.moneyness,
            _fmt_num(o.intrinsic),
            _fmt_num(o.extrinsic),
            _fmt_num(o.mid),
            _fmt_pct(share, digits=0),
        )
    return table


def _build_efficiency_chart(ranked: list[RankedOption], *, top: int) -> Table:
    shown = ranked[:top]
    peak = max((o.score for o in shown), default=0.0)
    table = Table(title=f"Efficiency (top {len(shown)})", show_lines=False)
    table.add_column("Strike", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("", min_width=30)
    for idx, o in enumerate(shown):
        color = "green" if idx < 3 else ("blue" if idx < 7 else "grey50")
        size = peak if peak > 0 else 1.0
        table.add_row(
            f"{o.strike:g}",
            _fmt_num(o.score, digits=4),
            Bar(size=size, begin=0.0, end=max(0.0, o.score), width=30, color=color),
        )
    return table


def _top_picks(result: AnalysisResult, *, count: int = 3) -> list[str]:
    picks: list[str] = []
    for o in result.ranked[:count]:
        parts = [
            f"#{o.rank} {o.strike:g} {o.moneyness}",
            f"mid {_fmt_money(o.mid)} ({_fmt_num(o.bid)}/{_fmt_num(o.ask)})",
            f"extrinsic {_fmt_money(o.extrinsic)}",
            f"{o.extrinsic_per_dte:.4f}/day",
        ]
        if o.delta is not None:
            parts.append(f"Δ {o.delta:.3f}")
        if o.theta is not None:
            parts.append(f"Θ {o.theta:.3f}")
        parts += [
            f"IV {_fmt_pct(o.implied_volatility)}",
            f"OI {o.open_interest:,}",
            f"score {o.score:.4f}",
            f"ann. yield {o.annualized_yield:.1f}%",
        ]
        picks.append(" | ".join(parts))
    return picks


def render_analysis_console(console: Console, result: AnalysisResult, *, top_chart: int = 20) -> None:
    console.print(
        f"\n[bold]{result.ticker}[/bold] {result.spot.display_name} | spot={result.spot.price:.2f}"
    )
    console.print(_build_summary_table(result))
    console.print(
        f"Target: {result.target_date.isoformat()} → nearest available: {expiration_label(result.matched_expiration)}"
    )

    if not result.ranked:
        console.print("[yellow]No rankable contracts (extrinsic ≤ $0.01 across the window).[/yellow]")
    else:
        console.print(f"\n[dim]{_method_note(result)}[/dim]")
        console.print("\n[bold]Top picks[/bold]")
        for line in _top_picks(result):
            console.print(f"- {line}")
        console.print(_build_ranking_table(result))

    if result.analyzed:
        console.print(_build_premium_table(result))
    if result.ranked:
        console.print(_build_efficiency_chart(list(result.ranked), top=top_chart))


def render_analysis_markdown(result: AnalysisResult) -> str:
    lines: list[str] = []
    lines.append(f"# {result.ticker} extrinsic efficiency ranking")
    lines.append("")
    lines.append(f"- Name: `{result.spot.display_name}`")
    lines.append(f"- Spot: `{result.spot.price:.2f}`")
    lines.append(f"- Target: `{result.target_date.isoformat()}`")
    lines.append(f"- Matched expiry: `{result.matched_expiry_date.isoformat()}` ({result.dte} DTE)")
    lines.append(f"- Calls analyzed: `{len(result.analyzed)}` | Rankable: `{len(result.ranked)}`")
    lines.append("")
    lines.append(f"> {_method_note(result)}")
    lines.append("")
    lines.append("## Ranking")
    lines.append("")
    if not result.ranked:
        lines.append("No rankable contracts.")
        return "\n".join(lines) + "\n"

    lines.append("| Rank | Strike | Money | Mid | Intrinsic | Extrinsic | Delta | IV | OI | Ext/DTE | Efficiency | Ann.Yld |")
    lines.append("|---:|---:|---|---:|---:|---:|---:|---:|---:|---:|---:|---:|")
    for o in result.ranked:
        lines.append(
            "| "
            + " | ".join(
                [
                    str(o.rank),
                    f"{o.strike:g}",
                    o.moneyness,
                    _fmt_num(o.mid),
                    _fmt_num(o.intrinsic),
                    _fmt_num(o.extrinsic),
                    _fmt_num(o.delta, digits=3),
                    _fmt_pct(o.implied_volatility),
                    f"{o.open_interest:,}",
                    _fmt_num(o.extrinsic_per_dte, digits=4),
                    _fmt_num(o.score, digits=4),
                    f"{o.annualized_yield:.1f}%",
                ]
            )
            + " |"
        )
    return "\n".join(lines) + "\n"


def ranking_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [asdict(o) for o in result.ranked]
    df = pd.DataFrame(rows, columns=RANKING_COLUMNS)
    df.insert(0, "symbol", result.ticker)
    df.insert(1, "expiry", result.matched_expiry_date.isoformat())
    return df


def _option_row(option: AnalyzedOption) -> OptionRow:
    return OptionRow(**asdict(option))


def build_ranking_artifact(result: AnalysisResult) -> RankingArtifact:
    return RankingArtifact(
        generated_at=utc_now(),
        symbol=result.ticker,
        display_name=result.spot.display_name,
        spot=result.spot.price,
        target_date=result.target_date.isoformat(),
        matched_expiry=result.matched_expiry_date.isoformat(),
        matched_expiry_ts=result.matched_expiration,
        dte=result.dte,
        strike_window=result.strike_window,
        has_greeks=result.has_greeks,
        ranking_method=ranking_method(result),  # type: ignore[arg-type]
        analyzed=[_option_row(o) for o in result.analyzed],
        ranked=[RankedRow(**asdict(o)) for o in result.ranked],
    )
