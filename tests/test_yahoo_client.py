from __future__ import annotations

from typing import Any

import pytest

from extrinsic_ranker.data.market_types import DataUnavailableError
from extrinsic_ranker.data.yahoo_client import (
    YahooClient,
    parse_option_chain_payload,
    parse_option_contract,
    parse_spot_payload,
)

NOW = 1_760_000_000


class _StubFetcher:
    def __init__(self, payload: Any) -> None:
        self.payload = payload
        self.calls: list[tuple[str, str]] = []

    def fetch_json(self, url: str, label: str, *, on_status=None) -> Any:  # noqa: ANN001
        self.calls.append((url, label))
        return self.payload


def _chart(meta: dict[str, Any] | None = None, indicators: dict[str, Any] | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {"meta": meta or {}}
    if indicators is not None:
        result["indicators"] = indicators
    return {"chart": {"result": [result]}}


def test_spot_prefers_regular_market_price_and_short_name() -> None:
    quote = parse_spot_payload(_chart({"regularMarketPrice": 187.25, "shortName": "Apple Inc.", "symbol": "AAPL"}), "AAPL")
    assert quote.price == 187.25
    assert quote.display_name == "Apple Inc."


def test_spot_name_falls_back_to_symbol_then_ticker() -> None:
    assert parse_spot_payload(_chart({"regularMarketPrice": 10.0, "symbol": "XYZ"}), "XYZ").display_name == "XYZ"
    assert parse_spot_payload(_chart({"regularMarketPrice": 10.0}), "ABC").display_name == "ABC"


def test_spot_falls_back_to_last_adjusted_close() -> None:
    payload = _chart(
        {"regularMarketPrice": 0, "shortName": "Ignored"},
        {"adjclose": [{"adjclose": [100.0, None, 101.5, None]}], "quote": [{"close": [1.0, 2.0]}]},
    )
    quote = parse_spot_payload(payload, "SPY")
    assert quote.price == 101.5
    assert quote.display_name == "SPY"


def test_spot_falls_back_to_quote_close_when_adjclose_missing() -> None:
    payload = _chart({}, {"quote": [{"close": [50.0, 51.25, None]}]})
    assert parse_spot_payload(payload, "QQQ").price == 51.25


def test_spot_missing_result_or_price_raises() -> None:
    with pytest.raises(DataUnavailableError, match="No data returned for AAPL"):
        parse_spot_payload({"chart": {"result": []}}, "AAPL")
    with pytest.raises(DataUnavailableError, match="No data returned for AAPL"):
        parse_spot_payload({"unexpected": True}, "AAPL")
    with pytest.raises(DataUnavailableError, match="Could not extract price for AAPL"):
        parse_spot_payload(_chart({}, {"quote": [{"close": [None, None]}]}), "AAPL")


def test_option_chain_defaults_when_fields_missing() -> None:
    chain = parse_option_chain_payload({"optionChain": {"result": [{}]}}, "AAPL")
    assert chain.symbol == "AAPL"
    assert chain.expiration_dates == ()
    assert chain.calls == ()
    assert chain.puts == ()
    assert chain.quote == {}


def test_option_chain_missing_result_raises() -> None:
    with pytest.raises(DataUnavailableError, match="No options data for AAPL"):
        parse_option_chain_payload({"optionChain": {"result": []}}, "AAPL")


def test_option_chain_parses_expirations_and_contracts() -> None:
    payload = {
        "optionChain": {
            "result": [
                {
                    "expirationDates": [1767916800, 1768521600],
                    "quote": {"regularMarketPrice": 150.0},
                    "options": [
                        {
                            "calls": [
                                {"contractSymbol": "AAPL260109C00150000", "strike": 150.0, "bid": 2.4, "ask": 2.6},
                                {"contractSymbol": "NOSTRIKE", "bid": 1.0},
                            ],
                            "puts": [{"contractSymbol": "AAPL260109P00150000", "strike": 150.0}],
                        }
                    ],
                }
            ]
        }
    }
    chain = parse_option_chain_payload(payload, "AAPL")
    assert chain.expiration_dates == (1767916800, 1768521600)
    assert [c.contract_symbol for c in chain.calls] == ["AAPL260109C00150000"]
    assert len(chain.puts) == 1
    assert chain.quote == {"regularMarketPrice": 150.0}


def test_contract_missing_numbers_default_and_greeks_stay_absent() -> None:
    contract = parse_option_contract({"contractSymbol": "X", "strike": 100})
    assert contract is not None
    assert contract.strike == 100.0
    assert (contract.bid, contract.ask, contract.last_price) == (0.0, 0.0, 0.0)
    assert (contract.volume, contract.open_interest) == (0, 0)
    assert contract.delta is None
    assert contract.gamma is None
    assert contract.in_the_money is False


def test_contract_zero_greek_is_a_real_value() -> None:
    contract = parse_option_contract({"strike": 100, "delta": 0.0, "gamma": True, "inTheMoney": True})
    assert contract is not None
    assert contract.delta == 0.0
    assert contract.gamma is None
    assert contract.in_the_money is True


def test_contract_without_strike_is_dropped() -> None:
    assert parse_option_contract({"contractSymbol": "X"}) is None
    assert parse_option_contract("not a contract") is None


def test_client_builds_spot_url_and_label() -> None:
    fetcher = _StubFetcher(_chart({"regularMarketPrice": 42.0}))
    client = YahooClient(fetcher, clock=lambda: float(NOW))  # type: ignore[arg-type]

    quote = client.fetch_spot_price(" brk-b ")

    assert quote.price == 42.0
    url, label = fetcher.calls[0]
    assert url == (
        "https://query1.finance.yahoo.com/v8/finance/chart/BRK-B"
        f"?period1={NOW - 5 * 86400}&period2={NOW}&interval=1d"
    )
    assert label == "Fetching BRK-B spot price"


def test_client_builds_option_chain_urls() -> None:
    fetcher = _StubFetcher({"optionChain": {"result": [{"expirationDates": [1767916800]}]}})
    client = YahooClient(fetcher)  # type: ignore[arg-type]

    client.fetch_option_chain("aapl")
    client.fetch_option_chain("aapl", 1767916800)

    assert fetcher.calls[0] == ("https://query1.finance.yahoo.com/v7/finance/options/AAPL", "Fetching AAPL options chain")
    assert fetcher.calls[1][0] == "https://query1.finance.yahoo.com/v7/finance/options/AAPL?date=1767916800"
