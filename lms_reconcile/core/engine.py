"""نقطهٔ ورود هستهٔ تطبیق: منابع خام → جفت‌های تصمیم‌گیری‌شده.

جریان داده فقط رو به پایین است: خواندن جدول، استنتاج اسکیما، طبقه‌بندی
تکمیل، ساخت رکورد، ادغام، تطبیق، تصمیم و شکاف، و در پایان غنی‌سازی با
دایرکتوری. هستهٔ بدون I/O است و وضعیت را فقط از طریق ``progress`` و
گزارش‌های منبع اعلام می‌کند.

مثال::

    >>> from lms_reconcile.core.common.types import SourceTable
    >>> talent = SourceTable(text="id,fullname,email,Safety\\nT1,John,j@x.com,Completed\\n")
    >>> pharmacy = SourceTable(text="id,fullname,email,Safety\\nP1,John,j@x.com,Not Completed\\n")
    >>> result = reconcile(talent, pharmacy)
    >>> [(p.primary_account, len(p.migration_steps)) for p in result.pairs]
    [('Talent', 0)]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from lms_reconcile.core.common.types import (
    DirectoryRecord,
    IdentityRecord,
    MatchedPair,
    Platform,
    SourceReport,
    SourceTable,
)
from lms_reconcile.core.consolidate import consolidate_records
from lms_reconcile.core.decision import build_pair
from lms_reconcile.core.directory import DirectoryIndex, enrich_pair
from lms_reconcile.core.ingest.records import ingest_directory, ingest_platform
from lms_reconcile.core.matching.matcher import (
    ConsumptionLedger,
    MatchLink,
    match_inter_platform,
    match_intra_platform,
)
from lms_reconcile.core.policy.config import MatchConfiguration
from lms_reconcile.core.qa.summary import RunSummary, summarize_pairs

__all__ = [
    "ProgressFn",
    "noop_progress",
    "ReconciliationResult",
    "reconcile",
    "reconcile_records",
]

ProgressFn = Callable[[int, str], None]


def noop_progress(_: int, __: str) -> None:
    return None


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    pairs: Tuple[MatchedPair, ...]
    reports: Tuple[SourceReport, ...] = ()

    @property
    def summary(self) -> RunSummary:
        return summarize_pairs(self.pairs)

    def to_dict(self) -> dict[str, object]:
        return {
            "pairs": [pair.to_dict() for pair in self.pairs],
            "sources": [report.to_dict() for report in self.reports],
            "summary": self.summary.to_dict(),
        }


def reconcile_records(
    first: Sequence[IdentityRecord],
    second: Sequence[IdentityRecord],
    directory: Sequence[DirectoryRecord] = (),
    config: Optional[MatchConfiguration] = None,
    *,
    progress: ProgressFn = noop_progress,
) -> List[MatchedPair]:
    """تطبیق رکوردهای آماده؛ رکوردها پیش از تطبیق ادغام می‌شوند.

    خروجی: ابتدا جفت‌های بین‌سامانه‌ای، سپس جفت‌های درون سامانهٔ اول و
    دوم (در صورت فعال بودن اسکن درون‌سامانه‌ای).
    """

    config = config or MatchConfiguration()
    progress(40, "consolidating records")
    first_records = consolidate_records(first)
    second_records = consolidate_records(second)

    progress(55, "matching inter-platform duplicates")
    ledger = ConsumptionLedger()
    links: List[MatchLink] = match_inter_platform(first_records, second_records, config, ledger)
    if config.check_intra_platform:
        progress(65, "scanning intra-platform duplicates")
        for records in (first_records, second_records):
            if records:
                links.extend(match_intra_platform(records, records[0].platform, config, ledger))

    progress(80, f"deciding {len(links)} pair(s)")
    index = DirectoryIndex.build(directory)
    pairs = [enrich_pair(build_pair(link), index) for link in links]
    progress(100, "done")
    return pairs


def reconcile(
    first: Optional[SourceTable],
    second: Optional[SourceTable],
    directory: Optional[SourceTable] = None,
    config: Optional[MatchConfiguration] = None,
    *,
    first_platform: Platform = Platform.TALENT,
    second_platform: Platform = Platform.PHARMACY,
    progress: ProgressFn = noop_progress,
) -> ReconciliationResult:
    """اجرای کامل یک دسته از منابع خام تا جفت‌های نهایی.

    Args:
        first: خروجی سامانهٔ اول (طرف A هر جفت بین‌سامانه‌ای).
        second: خروجی سامانهٔ دوم.
        directory: دایرکتوری کارکنان؛ نبود آن یعنی همهٔ ایمیل‌ها Unknown.
        config: پیکربندی تطبیق؛ پیش‌فرض :class:`MatchConfiguration`.
        progress: تابع گزارش پیشرفت ``(درصد، پیام)``.

    Returns:
        ReconciliationResult: جفت‌ها به همراه گزارش استنتاج هر منبع.
    """

    config = config or MatchConfiguration()
    progress(5, f"reading {first_platform} source")
    first_records, first_report = ingest_platform(first, first_platform, workers=config.workers)
    progress(15, f"reading {second_platform} source")
    second_records, second_report = ingest_platform(second, second_platform, workers=config.workers)
    reports = [first_report, second_report]
    directory_records: List[DirectoryRecord] = []
    if directory is not None:
        progress(25, "reading directory")
        directory_records, directory_report = ingest_directory(directory)
        reports.append(directory_report)
    pairs = reconcile_records(
        first_records,
        second_records,
        directory_records,
        config,
        progress=progress,
    )
    return ReconciliationResult(pairs=tuple(pairs), reports=tuple(reports))
