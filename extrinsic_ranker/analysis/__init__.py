from __future__ import annotations

from extrinsic_ranker.analysis.expiry import closest_expiration, days_to_expiry, upcoming_fridays
from extrinsic_ranker.analysis.extrinsic import AnalyzedOption, analyze_call_options
from extrinsic_ranker.analysis.ranking import RankedOption, rank_by_efficiency

__all__ = [
    "AnalyzedOption",
    "RankedOption",
    "analyze_call_options",
    "closest_expiration",
    "days_to_expiry",
    "rank_by_efficiency",
    "upcoming_fridays",
]
