from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from extrinsic_ranker.analysis.expiry import days_to_expiry
from extrinsic_ranker.data.market_types import RawOptionContract

Moneyness = Literal["ITM", "ATM", "OTM"]

# Below this |delta| the efficiency ratio blows up and is not reported.
MIN_ABS_DELTA = 0.01
ATM_BAND_INCREMENTS = 0.6


@dataclass(frozen=True)
class AnalyzedOption:
    contract_symbol: str
    strike: float
    bid: float
    ask: float
    last: float
    mid: float
    volume: int
    open_interest: int
    implied_volatility: float
    intrinsic: float
    extrinsic: float
    extrinsic_per_dte: float
    efficiency_score: float | None
    fallback_score: float
    annualized_yield: float
    delta: float | None
    gamma: float | None
    theta: float | None
    vega: float | None
    rho: float | None
    dte: int
    moneyness: Moneyness
    in_the_money: bool

    @property
    def score(self) -> float:
        return self.efficiency_score if self.efficiency_score is not None else self.fallback_score


def mid_price(*, bid: float, ask: float, last: float) -> float:
    """
    Mid from a two-sided quote:
    - (bid + ask) / 2 when both sides are > 0
    - else last trade price
    - else 0
    """
    if bid > 0 and ask > 0:
        return (bid + ask) / 2.0
    return last or 0.0


def call_intrinsic(spot: float, strike: float) -> float:
    return max(0.0, spot - strike)


def atm_index(strikes: list[float], spot: float) -> int:
    best_idx = 0
    best_dist = float("inf")
    for idx, strike in enumerate(strikes):
        dist = abs(strike - spot)
        if dist < best_dist:
            best_dist = dist
            best_idx = idx
    return best_idx


def strike_increment(strikes: list[float], atm_idx: int) -> float:
    nearby = strikes[max(0, atm_idx - 1) : min(len(strikes), atm_idx + 2)]
    if len(nearby) >= 2:
        return nearby[1] - nearby[0]
    return 1.0


def classify_moneyness(strike: float, spot: float, increment: float) -> Moneyness:
    # The ATM band wins over ITM, so a strike just under spot reads "ATM".
    if abs(strike - spot) <= increment * ATM_BAND_INCREMENTS:
        return "ATM"
    if strike < spot:
        return "ITM"
    return "OTM"


def efficiency_score(extrinsic_per_dte: float, delta: float | None) -> float | None:
    if delta is None:
        return None
    abs_delta = abs(delta)
    if abs_delta <= MIN_ABS_DELTA:
        return None
    return extrinsic_per_dte / abs_delta


def annualized_yield(extrinsic: float, strike: float, dte: int) -> float:
    if strike <= 0:
        return 0.0
    return (extrinsic / strike) * (365.0 / dte) * 100.0


def analyze_call_options(
    calls: Iterable[RawOptionContract],
    spot: float,
    expiration_ts: int,
    half_window: int,
    *,
    now: float | None = None,
) -> list[AnalyzedOption]:
    """
    Derive extrinsic-value metrics for the strikes around the money.

    Notes:
    - Prices are the feed's own bid/ask/last; no pricing model is involved.
    - Output is the strike-ascending slice of at most `2 * half_window + 1`
      contracts centred on the strike nearest to spot.
    """
    ordered = sorted(calls, key=lambda c: c.strike)
    if not ordered:
        return []

    dte = days_to_expiry(expiration_ts, now=now)
    strikes = [c.strike for c in ordered]
    atm = atm_index(strikes, spot)
    increment = strike_increment(strikes, atm)

    start = max(0, atm - int(half_window))
    end = min(len(ordered), atm + int(half_window) + 1)

    out: list[AnalyzedOption] = []
    for contract in ordered[start:end]:
        mid = mid_price(bid=contract.bid, ask=contract.ask, last=contract.last_price)
        intrinsic = call_intrinsic(spot, contract.strike)
        extrinsic = max(0.0, mid - intrinsic)
        per_dte = extrinsic / dte
        out.append(
            AnalyzedOption(
                contract_symbol=contract.contract_symbol,
                strike=contract.strike,
                bid=contract.bid,
                ask=contract.ask,
                last=contract.last_price,
                mid=mid,
                volume=contract.volume,
                open_interest=contract.open_interest,
                implied_volatility=contract.implied_volatility,
                intrinsic=intrinsic,
                extrinsic=extrinsic,
                extrinsic_per_dte=per_dte,
                efficiency_score=efficiency_score(per_dte, contract.delta),
                fallback_score=per_dte,
                annualized_yield=annualized_yield(extrinsic, contract.strike, dte),
                delta=contract.delta,
                gamma=contract.gamma,
                theta=contract.theta,
                vega=contract.vega,
                rho=contract.rho,
                dte=dte,
                moneyness=classify_moneyness(contract.strike, spot, increment),
                in_the_money=contract.in_the_money,
            )
        )
    return out
