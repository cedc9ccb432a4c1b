from __future__ import annotations

from pathlib import Path

import typer

from extrinsic_ranker.commands import register
from extrinsic_ranker.observability import finalize_run_logger, parse_log_level, setup_run_logger

app = typer.Typer(add_completion=False, help="Rank option strikes by extrinsic value efficiency (not financial advice).")


@app.callback()
def main(
    ctx: typer.Context,
    log_dir: Path = typer.Option(
        Path("data/logs"),
        "--log-dir",
        help="Directory for per-run log files (partitioned by market day).",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level for the run log: DEBUG|INFO|WARNING."),
) -> None:
    command_name = ctx.invoked_subcommand or "extrinsic-ranker"
    run_logger = setup_run_logger(log_dir, command_name, level=parse_log_level(log_level))
    if run_logger is not None:
        ctx.call_on_close(lambda: finalize_run_logger(run_logger))


register(app)


if __name__ == "__main__":
    app()
