"""ادغام رکوردهای تکراری یک سامانه بر اساس ایمیل (Core-only).

مثال::

    >>> from lms_reconcile.core.common.types import IdentityRecord, Platform
    >>> first = IdentityRecord("T1", "John", "j@x.com", Platform.TALENT, completed_courses=("Safety",))
    >>> again = IdentityRecord("T9", "Johnny", "j@x.com", Platform.TALENT, completed_courses=("safety", "Ethics"))
    >>> merged = consolidate_records([first, again])
    >>> [(r.identifier, r.completed_courses) for r in merged]
    [('T1', ('Safety', 'Ethics'))]
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List

from lms_reconcile.core.common.types import IdentityRecord
from lms_reconcile.core.ingest.completion import dedupe_courses

__all__ = ["consolidate_records"]


def consolidate_records(records: Iterable[IdentityRecord]) -> List[IdentityRecord]:
    """گروه‌بندی بر اساس ایمیل با حفظ ترتیب نخستین مشاهده.

    فیلدهای اسکالر (شناسه، نام، تلفن، نقش) از نخستین رکورد می‌آیند و
    دوره‌ها اجتماع بدون تکرار همهٔ رکوردهای گروه هستند. اجرای دوباره روی
    خروجی همان خروجی را می‌دهد.
    """

    groups: Dict[str, IdentityRecord] = {}
    for record in records:
        current = groups.get(record.email)
        if current is None:
            groups[record.email] = record
            continue
        merged = dedupe_courses(current.completed_courses + record.completed_courses)
        if merged != current.completed_courses:
            groups[record.email] = replace(current, completed_courses=merged)
    return list(groups.values())
