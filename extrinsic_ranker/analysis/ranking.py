from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable

from extrinsic_ranker.analysis.extrinsic import AnalyzedOption

# Contracts with less extrinsic than this are worthless/illiquid for ranking.
MIN_RANKABLE_EXTRINSIC = 0.01


@dataclass(frozen=True)
class RankedOption(AnalyzedOption):
    rank: int = 0


def _with_rank(option: AnalyzedOption, rank: int) -> RankedOption:
    values = {f.name: getattr(option, f.name) for f in fields(AnalyzedOption)}
    return RankedOption(rank=rank, **values)


def is_rankable(option: AnalyzedOption) -> bool:
    return option.extrinsic > MIN_RANKABLE_EXTRINSIC


def rank_by_efficiency(options: Iterable[AnalyzedOption]) -> list[RankedOption]:
    """
    Order contracts by extrinsic-per-day per unit of |delta|.

    When no contract carries an efficiency score (feed returned no Greeks),
    everything is ordered by extrinsic-per-day instead. Otherwise scored
    contracts come first and the rest follow by extrinsic-per-day.
    Sorting is stable, so ties keep the input (strike) order.
    """
    items = list(options)
    rankable = [o for o in items if is_rankable(o)]
    has_scores = any(o.efficiency_score is not None for o in items)

    if has_scores:
        scored = [o for o in rankable if o.efficiency_score is not None and o.efficiency_score > 0]
        unscored = [o for o in rankable if o.efficiency_score is None or o.efficiency_score <= 0]
        scored.sort(key=lambda o: o.efficiency_score, reverse=True)  # type: ignore[arg-type, return-value]
        unscored.sort(key=lambda o: o.fallback_score, reverse=True)
        ordered = scored + unscored
    else:
        ordered = sorted(rankable, key=lambda o: o.fallback_score, reverse=True)

    return [_with_rank(o, idx + 1) for idx, o in enumerate(ordered)]
