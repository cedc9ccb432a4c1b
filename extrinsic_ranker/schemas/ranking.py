from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from extrinsic_ranker.schemas.common import ArtifactBase


class OptionRow(ArtifactBase):
    contract_symbol: str = ""
    strike: float
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    mid: float = 0.0
    volume: int = 0
    open_interest: int = 0
    implied_volatility: float = 0.0
    intrinsic: float = Field(ge=0.0)
    extrinsic: float = Field(ge=0.0)
    extrinsic_per_dte: float = Field(ge=0.0)
    efficiency_score: float | None = None
    fallback_score: float = 0.0
    annualized_yield: float = 0.0
    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None
    rho: float | None = None
    dte: int = Field(ge=1)
    moneyness: Literal["ITM", "ATM", "OTM"]
    in_the_money: bool = False


class RankedRow(OptionRow):
    rank: int = Field(ge=1)


class RankingArtifact(ArtifactBase):
    schema_version: int = 1
    generated_at: datetime
    symbol: str
    display_name: str
    spot: float
    target_date: str
    matched_expiry: str
    matched_expiry_ts: int
    dte: int = Field(ge=1)
    strike_window: int
    has_greeks: bool
    ranking_method: Literal["efficiency", "extrinsic_per_dte"]
    analyzed: list[OptionRow] = Field(default_factory=list)
    ranked: list[RankedRow] = Field(default_factory=list)
