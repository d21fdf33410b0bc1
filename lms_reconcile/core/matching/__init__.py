"""راهبردهای تطبیق و دفتر مصرف رکوردها."""

from .matcher import ConsumptionLedger, MatchLink, match_inter_platform, match_intra_platform, pair_id_for
from .strategies import STRATEGY_TABLE, MatchStrategy

__all__ = [
    "ConsumptionLedger",
    "MatchLink",
    "MatchStrategy",
    "STRATEGY_TABLE",
    "match_inter_platform",
    "match_intra_platform",
    "pair_id_for",
]
