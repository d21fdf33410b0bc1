"""اعمال به‌روزرسانی‌های روایی بیرونی (مثلاً خروجی سرویس تحلیل) روی جفت‌ها.

قالب فایل به‌روزرسانی یک شیء JSON با کلید شناسهٔ جفت است::

    {"DUP-1A2B3C4D5E": {"analysis": "...", "verified": true},
     "DUP-FFFF000011": {"error": "timeout"}}

مقدار دارای کلید ``error`` یا به‌روزرسانی نامعتبر به هشدار «AI Analysis
Failed» تبدیل می‌شود و بقیهٔ فیلدهای جفت دست‌نخورده می‌مانند.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple

from lms_reconcile.core.common.errors import EnrichmentError
from lms_reconcile.core.common.types import MatchedPair
from lms_reconcile.core.enrichment import apply_enrichment_failure, apply_pair_update, parse_pair_update

__all__ = ["ReviewReport", "normalize_updates", "apply_review"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ReviewReport:
    applied: int = 0
    failed: int = 0
    untouched: int = 0
    unknown_ids: List[str] = field(default_factory=list)


def normalize_updates(data: Any) -> Mapping[str, Any]:
    """پذیرش نگاشت ``{id: update}`` یا فهرست اشیای دارای کلید ``id``."""

    if isinstance(data, Mapping):
        return {str(key): value for key, value in data.items()}
    if isinstance(data, list):
        out: dict[str, Any] = {}
        for item in data:
            if isinstance(item, Mapping) and "id" in item:
                out[str(item["id"])] = item
        return out
    raise ValueError("updates must be a JSON object or a list of objects with an 'id' key")


def apply_review(
    pairs: Sequence[MatchedPair],
    updates: Mapping[str, Any],
) -> Tuple[List[MatchedPair], ReviewReport]:
    report = ReviewReport()
    known = {pair.pair_id for pair in pairs}
    report.unknown_ids = sorted(key for key in updates if key not in known)
    for pair_id in report.unknown_ids:
        LOGGER.warning("update for unknown pair id %s ignored", pair_id)

    result: List[MatchedPair] = []
    for pair in pairs:
        raw = updates.get(pair.pair_id)
        if raw is None:
            report.untouched += 1
            result.append(pair)
            continue
        if not isinstance(raw, Mapping) or raw.get("error"):
            LOGGER.warning("enrichment failed for %s: %s", pair.pair_id, raw)
            report.failed += 1
            result.append(apply_enrichment_failure(pair))
            continue
        try:
            update = parse_pair_update(raw)
        except EnrichmentError as exc:
            LOGGER.warning("invalid update for %s: %s", pair.pair_id, exc)
            report.failed += 1
            result.append(apply_enrichment_failure(pair, exc))
            continue
        report.applied += 1
        result.append(apply_pair_update(pair, update))
    return result, report
