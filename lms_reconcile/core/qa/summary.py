from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

from lms_reconcile.core.common.types import MatchedPair, MatchReason

__all__ = ["RunSummary", "summarize_pairs"]


@dataclass(frozen=True, slots=True)
class RunSummary:
    total_pairs: int
    by_reason: Mapping[str, int]
    needs_review: int
    ready_to_merge: int
    total_migration_steps: int
    pairs_without_gaps: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_pairs": self.total_pairs,
            "by_reason": dict(self.by_reason),
            "needs_review": self.needs_review,
            "ready_to_merge": self.ready_to_merge,
            "total_migration_steps": self.total_migration_steps,
            "pairs_without_gaps": self.pairs_without_gaps,
        }


def summarize_pairs(pairs: Iterable[MatchedPair]) -> RunSummary:
    """شاخص‌های داشبورد یک اجرا.

    جفتی که حداقل یک هشدار دارد «نیازمند بازبینی» شمرده می‌شود و باقی
    جفت‌ها آمادهٔ ادغام هستند. همهٔ دلایل تطبیق حتی با شمارش صفر در
    ``by_reason`` حضور دارند.
    """

    by_reason: Dict[str, int] = {str(reason): 0 for reason in MatchReason}
    total = 0
    needs_review = 0
    steps = 0
    without_gaps = 0
    for pair in pairs:
        total += 1
        by_reason[str(pair.match_reason)] += 1
        if pair.warnings:
            needs_review += 1
        steps += len(pair.migration_steps)
        if not pair.migration_steps:
            without_gaps += 1
    return RunSummary(
        total_pairs=total,
        by_reason=by_reason,
        needs_review=needs_review,
        ready_to_merge=total - needs_review,
        total_migration_steps=steps,
        pairs_without_gaps=without_gaps,
    )
