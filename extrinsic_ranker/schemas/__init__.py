from __future__ import annotations

from extrinsic_ranker.schemas.common import ArtifactBase, clean_nan, utc_now
from extrinsic_ranker.schemas.ranking import OptionRow, RankedRow, RankingArtifact

__all__ = [
    "ArtifactBase",
    "OptionRow",
    "RankedRow",
    "RankingArtifact",
    "clean_nan",
    "utc_now",
]
