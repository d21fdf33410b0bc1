"""طبقه‌بندی وضعیت تکمیل دوره در سلول‌ها (Core-only).

قرارداد متنی باریک است: فقط «Completed» و
«Completed (achieved pass grade)» (و شکل‌هایی که با completed شروع شوند و
«not» نداشته باشند) تکمیل‌شده حساب می‌شوند و هر متنی که «not completed»،
«failed» یا «in progress» داشته باشد همیشه رد می‌شود.
"""

from __future__ import annotations

from typing import AbstractSet, Any, List, Optional, Sequence, Tuple

from lms_reconcile.core.common.normalization import clean_text

__all__ = [
    "COMPLETED_STATUS",
    "PASS_GRADE_STATUS",
    "EXCLUDED_STATUS_MARKERS",
    "is_completed_status",
    "course_label",
    "completed_courses_for_row",
    "dedupe_courses",
]

COMPLETED_STATUS = "completed"
PASS_GRADE_STATUS = "completed (achieved pass grade)"
EXCLUDED_STATUS_MARKERS: Tuple[str, ...] = ("not completed", "failed", "in progress")


def is_completed_status(value: Any) -> bool:
    """آیا مقدار سلول وضعیت «تکمیل‌شده» است؟

    >>> [is_completed_status(v) for v in ("Completed", " COMPLETED  (achieved pass grade) ")]
    [True, True]
    >>> [is_completed_status(v) for v in ("Not Completed", "Completed - failed", "completed not graded", "")]
    [False, False, False, False]
    """

    text = clean_text(value)
    if not text:
        return False
    if any(marker in text for marker in EXCLUDED_STATUS_MARKERS):
        return False
    if text == COMPLETED_STATUS:
        return True
    if PASS_GRADE_STATUS in text:
        return True
    return text.startswith(COMPLETED_STATUS) and "not" not in text


def course_label(headers: Sequence[Optional[str]], idx: int) -> str:
    """نام نمایشی دوره: برچسب سرستون یا «Column N» (یک‌پایه) برای سرستون خالی."""

    label = headers[idx] if idx < len(headers) else None
    return label or f"Column {idx + 1}"


def dedupe_courses(courses: Sequence[str]) -> Tuple[str, ...]:
    """حذف تکرار نام دوره‌ها با کلید نرمال‌شده؛ نخستین املای دیده‌شده حفظ می‌شود.

    >>> dedupe_courses(["Safety", "SAFETY ", "Leadership"])
    ('Safety', 'Leadership')
    """

    seen: set[str] = set()
    out: List[str] = []
    for course in courses:
        key = clean_text(course)
        if key in seen:
            continue
        seen.add(key)
        out.append(course)
    return tuple(out)


def completed_courses_for_row(
    row: Sequence[Any],
    headers: Sequence[Optional[str]],
    excluded: AbstractSet[int],
) -> Tuple[str, ...]:
    """فهرست دوره‌های تکمیل‌شدهٔ یک ردیف به ترتیب ستون‌ها.

    ستون‌های ``excluded`` (ایمیل، نام، شناسه، تلفن) حتی اگر محتوایشان شبیه
    «Completed» باشد اسکن نمی‌شوند.
    """

    found: List[str] = []
    for idx, cell in enumerate(row):
        if idx in excluded:
            continue
        if is_completed_status(cell):
            found.append(course_label(headers, idx))
    return dedupe_courses(found)
