from __future__ import annotations

from extrinsic_ranker.data.market_types import (
    DataFetchError,
    DataUnavailableError,
    OptionChain,
    RawOptionContract,
    RelayExhaustedError,
    SpotQuote,
)
from extrinsic_ranker.data.relay_fetch import RelayFetchClient, available_relays
from extrinsic_ranker.data.yahoo_client import YahooClient

__all__ = [
    "DataFetchError",
    "DataUnavailableError",
    "OptionChain",
    "RawOptionContract",
    "RelayExhaustedError",
    "RelayFetchClient",
    "SpotQuote",
    "YahooClient",
    "available_relays",
]
