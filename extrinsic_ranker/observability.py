from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import time
from zoneinfo import ZoneInfo

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "extrinsic_ranker"
# Runs are filed under the U.S. market's calendar day, not the machine's.
MARKET_TZ = ZoneInfo("America/New_York")


@dataclass(frozen=True)
class RunLogger:
    logger: logging.Logger
    handler: logging.FileHandler
    log_path: Path
    command_name: str
    start_perf: float


def run_log_path(log_dir: Path, command_name: str, *, now: datetime | None = None) -> Path:
    """`{log_dir}/{market day}/{command}_{UTC stamp}_{pid}.log`"""
    now_utc = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    market_day = now_utc.astimezone(MARKET_TZ).strftime("%Y-%m-%d")
    command = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in command_name.strip()) or PACKAGE_LOGGER
    return log_dir / market_day / f"{command}_{now_utc:%Y%m%dT%H%M%SZ}_{os.getpid()}.log"


def parse_log_level(value: str | int | None, default: int = logging.INFO) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def setup_run_logger(log_dir: Path, command_name: str, *, level: int = logging.INFO) -> RunLogger | None:
    """
    Route the package logger into a fresh per-run file.

    Returns None (and leaves logging untouched) when the log folder cannot be created.
    """
    log_path = run_log_path(log_dir, command_name)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None

    logger = logging.getLogger(PACKAGE_LOGGER)
    for stale in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
        logger.removeHandler(stale)
        stale.close()

    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    logger.info("Start %s", command_name)
    return RunLogger(
        logger=logger,
        handler=handler,
        log_path=log_path,
        command_name=command_name,
        start_perf=time.perf_counter(),
    )


def finalize_run_logger(run_logger: RunLogger) -> None:
    elapsed = time.perf_counter() - run_logger.start_perf
    run_logger.logger.info("End %s duration=%.2fs", run_logger.command_name, elapsed)
    run_logger.logger.removeHandler(run_logger.handler)
    run_logger.handler.close()
