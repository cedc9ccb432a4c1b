from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from extrinsic_ranker.data.relay_fetch import RelayFetchClient
    from extrinsic_ranker.pipeline import MarketDataClient


def build_relay_fetcher(
    *,
    relays: list[str] | None = None,
    timeout_seconds: float | None = None,
    max_rounds: int | None = None,
) -> RelayFetchClient:
    from extrinsic_ranker.data.relay_fetch import RelayFetchClient

    return RelayFetchClient(
        relays=relays or None,
        timeout_seconds=timeout_seconds,
        max_rounds=max_rounds,
    )


def build_market_client(
    *,
    relays: list[str] | None = None,
    timeout_seconds: float | None = None,
    max_rounds: int | None = None,
) -> MarketDataClient:
    from extrinsic_ranker.data.yahoo_client import YahooClient

    fetcher = build_relay_fetcher(relays=relays, timeout_seconds=timeout_seconds, max_rounds=max_rounds)
    return YahooClient(fetcher)
