from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from extrinsic_ranker.analysis.expiry import (
    closest_expiration,
    days_to_expiry,
    expiration_date,
    expiration_label,
)
from extrinsic_ranker.analysis.extrinsic import AnalyzedOption, analyze_call_options
from extrinsic_ranker.analysis.ranking import RankedOption, rank_by_efficiency
from extrinsic_ranker.data.market_types import DataUnavailableError, OptionChain, SpotQuote
from extrinsic_ranker.data.relay_fetch import StatusCallback
from extrinsic_ranker.data.yahoo_client import YahooClient

logger = logging.getLogger(__name__)

DEFAULT_STRIKES = 10
MIN_STRIKES = 3
MAX_STRIKES = 20


class MarketDataClient(Protocol):
    def fetch_spot_price(self, ticker: str, *, on_status: StatusCallback | None = None) -> SpotQuote: ...

    def fetch_option_chain(
        self,
        ticker: str,
        expiration_ts: int | None = None,
        *,
        on_status: StatusCallback | None = None,
    ) -> OptionChain: ...


@dataclass(frozen=True)
class AnalysisResult:
    ticker: str
    spot: SpotQuote
    target_date: date
    matched_expiration: int
    strike_window: int
    analyzed: tuple[AnalyzedOption, ...]
    ranked: tuple[RankedOption, ...]
    as_of: float

    @property
    def has_greeks(self) -> bool:
        return any(o.delta is not None for o in self.analyzed)

    @property
    def dte(self) -> int:
        return days_to_expiry(self.matched_expiration, now=self.as_of)

    @property
    def matched_expiry_date(self) -> date:
        return expiration_date(self.matched_expiration)


def normalize_ticker(ticker: str) -> str:
    sym = (ticker or "").strip().upper()
    if not sym:
        raise ValueError("Ticker is required.")
    return sym


def clamp_strike_window(value: Any) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = DEFAULT_STRIKES
    return min(MAX_STRIKES, max(MIN_STRIKES, parsed))


def _emit(on_status: StatusCallback | None, message: str) -> None:
    logger.info(message)
    if on_status is None:
        return
    try:
        on_status(message)
    except Exception:  # noqa: BLE001
        logger.debug("Status callback raised; ignoring", exc_info=True)


def run_analysis(
    ticker: str,
    target_date: date,
    *,
    strikes: Any = DEFAULT_STRIKES,
    client: MarketDataClient | None = None,
    on_status: StatusCallback | None = None,
    now: float | None = None,
) -> AnalysisResult:
    """
    Spot price -> listed expirations -> closest expiry -> call chain -> analysis -> ranking.

    Any failure propagates; a run either completes fully or raises.
    """
    sym = normalize_ticker(ticker)
    window = clamp_strike_window(strikes)
    client = client if client is not None else YahooClient()
    as_of = time.time() if now is None else float(now)

    _emit(on_status, "Initializing…")
    spot = client.fetch_spot_price(sym, on_status=on_status)

    _emit(on_status, f"Loading {sym} available expirations…")
    initial = client.fetch_option_chain(sym, None, on_status=on_status)
    if not initial.expiration_dates:
        raise DataUnavailableError(f"No options available for {sym}")

    best = closest_expiration(initial.expiration_dates, target_date)
    label = expiration_label(best)

    _emit(on_status, f"Loading calls for {label} ({days_to_expiry(best, now=as_of)} DTE)…")
    chain = client.fetch_option_chain(sym, best, on_status=on_status)
    if not chain.calls:
        raise DataUnavailableError(f"No call options found for {sym} expiring {label}")

    _emit(on_status, "Computing extrinsic values from market prices…")
    analyzed = analyze_call_options(chain.calls, spot.price, best, window, now=as_of)

    _emit(on_status, "Ranking by efficiency…")
    ranked = rank_by_efficiency(analyzed)

    _emit(on_status, "Done!")
    logger.info(
        "Analysis %s target=%s matched=%s analyzed=%d ranked=%d",
        sym,
        target_date.isoformat(),
        expiration_date(best).isoformat(),
        len(analyzed),
        len(ranked),
    )
    return AnalysisResult(
        ticker=sym,
        spot=spot,
        target_date=target_date,
        matched_expiration=best,
        strike_window=window,
        analyzed=tuple(analyzed),
        ranked=tuple(ranked),
        as_of=as_of,
    )
