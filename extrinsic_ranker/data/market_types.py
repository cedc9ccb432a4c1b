from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class DataFetchError(RuntimeError):
    pass


class RelayExhaustedError(DataFetchError):
    """Every relay failed for one request across all retry rounds."""

    def __init__(self, label: str, last_error: str | None = None) -> None:
        self.label = label
        self.last_error = last_error
        super().__init__(f"{label} failed: {last_error or 'All relays failed'}")


class DataUnavailableError(DataFetchError):
    """The feed answered, but the expected payload was missing."""


@dataclass(frozen=True)
class SpotQuote:
    price: float
    display_name: str


@dataclass(frozen=True)
class RawOptionContract:
    contract_symbol: str
    strike: float
    bid: float = 0.0
    ask: float = 0.0
    last_price: float = 0.0
    volume: int = 0
    open_interest: int = 0
    implied_volatility: float = 0.0
    # Greeks stay None when the feed omits them; 0.0 is a real reading.
    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None
    rho: float | None = None
    in_the_money: bool = False


@dataclass(frozen=True)
class OptionChain:
    symbol: str
    expiration_dates: tuple[int, ...] = ()
    calls: tuple[RawOptionContract, ...] = ()
    puts: tuple[RawOptionContract, ...] = ()
    quote: dict[str, Any] = field(default_factory=dict)
