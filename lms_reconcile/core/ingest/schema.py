"""استنتاج نگاشت فیلدهای معنایی به اندیس ستون (Core-only).

هر فیلد با فهرست مرتب کلیدواژه‌های :data:`FIELD_KEYWORDS` روی سرستون‌ها
جستجو می‌شود. فقط فیلد ایمیل مسیر دوم دارد: اگر هیچ سرستونی تطبیق نکند،
محتوای حداکثر ۲۵ ردیف داده امتیازدهی می‌شود و ستونی که بیشترین سلول
«شبیه ایمیل» را دارد انتخاب می‌شود.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import pandas as pd

from lms_reconcile.core.common.columns import (
    FIELD_EMAIL,
    FIELD_ID,
    FIELD_KEYWORDS,
    FIELD_NAME,
    FIELD_PHONE,
    find_column_index,
)
from lms_reconcile.core.common.normalization import clean_text

from .tabular import TabularData

__all__ = [
    "EMAIL_CONTENT_SCAN_ROWS",
    "EMAIL_RESOLVED_BY_HEADER",
    "EMAIL_RESOLVED_BY_CONTENT",
    "EMAIL_UNRESOLVED",
    "SchemaMapping",
    "looks_like_email",
    "detect_email_column_by_content",
    "resolve_schema",
]

EMAIL_CONTENT_SCAN_ROWS = 25
_SHORT_SOURCE_ROWS = 5

EMAIL_RESOLVED_BY_HEADER = "header"
EMAIL_RESOLVED_BY_CONTENT = "content"
EMAIL_UNRESOLVED = "missing"


@dataclass(frozen=True, slots=True)
class SchemaMapping:
    """نگاشت فیلد → اندیس ستون؛ ``None`` یعنی فیلد پیدا نشد."""

    columns: Mapping[str, Optional[int]]
    email_resolution: str

    def index_of(self, field: str) -> Optional[int]:
        return self.columns.get(field)

    @property
    def metadata_columns(self) -> frozenset[int]:
        """ستون‌هایی که هرگز به‌عنوان دوره اسکن نمی‌شوند (ایمیل، نام، شناسه، تلفن)."""

        picked = (self.columns.get(name) for name in (FIELD_EMAIL, FIELD_NAME, FIELD_ID, FIELD_PHONE))
        return frozenset(idx for idx in picked if idx is not None)


def looks_like_email(value: object) -> bool:
    """هیوریستیک سادهٔ ایمیل: «@» و «.» و طول بیش از ۵.

    >>> looks_like_email("a@b.co"), looks_like_email("a@b.c"), looks_like_email("n/a")
    (True, False, False)
    """

    text = clean_text(value)
    return "@" in text and "." in text and len(text) > 5


def detect_email_column_by_content(table: TabularData) -> Optional[int]:
    """انتخاب ستون ایمیل از روی محتوا وقتی هیچ سرستونی تطبیق نکرده است.

    ستون برنده باید بیشینهٔ مطلق امتیاز را داشته باشد و حداقل شاهد لازم را
    برآورده کند: ۲ ردیف، یا ۱ ردیف وقتی منبع کمتر از ۵ ردیف داده دارد. در
    تساوی امتیاز، ستون سمت چپ‌تر برنده است.

    مثال::

        >>> from lms_reconcile.core.ingest.tabular import TabularData
        >>> table = TabularData(
        ...     rows=(("a", "b"), ("x", "jo@x.com"), ("y", "al@x.com")),
        ...     header_row=0,
        ...     headers=("a", "b"),
        ... )
        >>> detect_email_column_by_content(table)
        1
    """

    data_rows = table.data_rows
    if not data_rows:
        return None
    sample = pd.DataFrame(list(data_rows[:EMAIL_CONTENT_SCAN_ROWS]))
    scores = sample.apply(lambda column: column.map(looks_like_email).sum())
    if scores.empty:
        return None
    threshold = 1 if len(data_rows) < _SHORT_SOURCE_ROWS else 2
    best = int(scores.max())
    if best < threshold:
        return None
    return int(scores.idxmax())


def resolve_schema(table: TabularData) -> SchemaMapping:
    """نگاشت همهٔ فیلدهای معنایی روی سرستون‌های یک جدول.

    Args:
        table: جدول بارگذاری‌شده با ردیف سرستون تشخیص‌داده‌شده.

    Returns:
        SchemaMapping: اندیس هر فیلد و اینکه ایمیل از کدام مسیر پیدا شد.
    """

    headers: Sequence[str] = [header or "" for header in table.headers]
    columns: Dict[str, Optional[int]] = {
        field: find_column_index(headers, keywords) for field, keywords in FIELD_KEYWORDS.items()
    }
    resolution = EMAIL_RESOLVED_BY_HEADER
    if columns[FIELD_EMAIL] is None:
        columns[FIELD_EMAIL] = detect_email_column_by_content(table)
        resolution = EMAIL_RESOLVED_BY_CONTENT if columns[FIELD_EMAIL] is not None else EMAIL_UNRESOLVED
    return SchemaMapping(columns=columns, email_resolution=resolution)
