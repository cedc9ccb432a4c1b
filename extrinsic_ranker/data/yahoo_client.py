from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable
from urllib.parse import quote, urlencode

import pandas as pd

from extrinsic_ranker.data.market_types import (
    DataUnavailableError,
    OptionChain,
    RawOptionContract,
    SpotQuote,
)
from extrinsic_ranker.data.relay_fetch import RelayFetchClient, StatusCallback

logger = logging.getLogger(__name__)

YAHOO_BASE = "https://query1.finance.yahoo.com"
SPOT_LOOKBACK_DAYS = 5
_SECONDS_PER_DAY = 86400


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _first_dict(value: Any) -> dict[str, Any]:
    item = _first(value)
    return item if isinstance(item, dict) else {}


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> float | None:
    # bool is an int subclass; Yahoo never means True as a price.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    val = float(value)
    if math.isnan(val) or math.isinf(val):
        return None
    return val


def _float_or_zero(value: Any) -> float:
    val = _number(value)
    return val if val is not None else 0.0


def _int_or_zero(value: Any) -> int:
    val = _number(value)
    return int(val) if val is not None else 0


def _last_valid(values: Any) -> float | None:
    if not isinstance(values, list) or not values:
        return None
    series = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce").dropna()
    if series.empty:
        return None
    return float(series.iloc[-1])


def parse_option_contract(raw: Any) -> RawOptionContract | None:
    """Map one Yahoo contract object; returns None when it has no usable strike."""
    if not isinstance(raw, dict):
        return None
    strike = _number(raw.get("strike"))
    if strike is None:
        return None
    return RawOptionContract(
        contract_symbol=str(raw.get("contractSymbol") or ""),
        strike=strike,
        bid=_float_or_zero(raw.get("bid")),
        ask=_float_or_zero(raw.get("ask")),
        last_price=_float_or_zero(raw.get("lastPrice")),
        volume=_int_or_zero(raw.get("volume")),
        open_interest=_int_or_zero(raw.get("openInterest")),
        implied_volatility=_float_or_zero(raw.get("impliedVolatility")),
        delta=_number(raw.get("delta")),
        gamma=_number(raw.get("gamma")),
        theta=_number(raw.get("theta")),
        vega=_number(raw.get("vega")),
        rho=_number(raw.get("rho")),
        in_the_money=bool(raw.get("inTheMoney") or False),
    )


def _parse_contracts(items: Any) -> tuple[RawOptionContract, ...]:
    if not isinstance(items, list):
        return ()
    out: list[RawOptionContract] = []
    for item in items:
        contract = parse_option_contract(item)
        if contract is None:
            logger.debug("Skipping option contract without strike: %r", item)
            continue
        out.append(contract)
    return tuple(out)


def parse_spot_payload(payload: Any, ticker: str) -> SpotQuote:
    result = _first(_dict(_dict(payload).get("chart")).get("result"))
    if not isinstance(result, dict):
        raise DataUnavailableError(f"No data returned for {ticker}")

    meta = _dict(result.get("meta"))
    price = _number(meta.get("regularMarketPrice"))
    if price is not None and price > 0:
        name = meta.get("shortName") or meta.get("symbol") or ticker
        return SpotQuote(price=price, display_name=str(name))

    indicators = _dict(result.get("indicators"))
    adjclose = _first_dict(indicators.get("adjclose")).get("adjclose")
    closes = adjclose or _first_dict(indicators.get("quote")).get("close")
    last_close = _last_valid(closes)
    if last_close is not None:
        logger.info("Using last close for %s spot (no regularMarketPrice)", ticker)
        return SpotQuote(price=last_close, display_name=ticker)

    raise DataUnavailableError(f"Could not extract price for {ticker}")


def parse_option_chain_payload(payload: Any, ticker: str) -> OptionChain:
    result = _first(_dict(_dict(payload).get("optionChain")).get("result"))
    if not isinstance(result, dict):
        raise DataUnavailableError(f"No options data for {ticker}")

    expirations: list[int] = []
    raw_dates = result.get("expirationDates")
    for ts in raw_dates if isinstance(raw_dates, list) else []:
        val = _number(ts)
        if val is not None:
            expirations.append(int(val))

    options = _first_dict(result.get("options"))
    quote_obj = result.get("quote")
    return OptionChain(
        symbol=ticker,
        expiration_dates=tuple(expirations),
        calls=_parse_contracts(options.get("calls")),
        puts=_parse_contracts(options.get("puts")),
        quote=quote_obj if isinstance(quote_obj, dict) else {},
    )


class YahooClient:
    def __init__(
        self,
        fetcher: RelayFetchClient | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetcher = fetcher if fetcher is not None else RelayFetchClient()
        self._clock = clock

    def spot_url(self, ticker: str) -> str:
        now = int(self._clock())
        params = {
            "period1": now - SPOT_LOOKBACK_DAYS * _SECONDS_PER_DAY,
            "period2": now,
            "interval": "1d",
        }
        return f"{YAHOO_BASE}/v8/finance/chart/{quote(ticker, safe='')}?{urlencode(params)}"

    def option_chain_url(self, ticker: str, expiration_ts: int | None = None) -> str:
        url = f"{YAHOO_BASE}/v7/finance/options/{quote(ticker, safe='')}"
        if expiration_ts:
            url += f"?{urlencode({'date': int(expiration_ts)})}"
        return url

    def fetch_spot_price(self, ticker: str, *, on_status: StatusCallback | None = None) -> SpotQuote:
        sym = ticker.strip().upper()
        payload = self._fetcher.fetch_json(self.spot_url(sym), f"Fetching {sym} spot price", on_status=on_status)
        return parse_spot_payload(payload, sym)

    def fetch_option_chain(
        self,
        ticker: str,
        expiration_ts: int | None = None,
        *,
        on_status: StatusCallback | None = None,
    ) -> OptionChain:
        sym = ticker.strip().upper()
        payload = self._fetcher.fetch_json(
            self.option_chain_url(sym, expiration_ts),
            f"Fetching {sym} options chain",
            on_status=on_status,
        )
        return parse_option_chain_payload(payload, sym)
