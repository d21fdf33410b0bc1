"""ساخت رکوردهای هویتی و دایرکتوری از جدول‌های استنتاج‌شده (Core-only).

هر ردیف داده مستقل از بقیه پردازش می‌شود؛ بنابراین با ``workers > 1``
ردیف‌ها روی thread pool پخش می‌شوند و نتیجه با همان ترتیب ردیف‌های ورودی
بازترکیب می‌شود (``Executor.map`` ترتیب را حفظ می‌کند).

مثال::

    >>> from lms_reconcile.core.common.types import Platform, SourceTable
    >>> records, report = ingest_platform(
    ...     SourceTable(text="id,email,Safety\\nT1,John@X.com,Completed\\n"),
    ...     Platform.TALENT,
    ... )
    >>> [(r.identifier, r.email, r.completed_courses) for r in records]
    [('T1', 'john@x.com', ('Safety',))]
    >>> report.email_resolution, report.rows_skipped
    ('header', 0)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from lms_reconcile.core.common.columns import (
    FIELD_EMAIL,
    FIELD_ID,
    FIELD_LAST_LOGIN,
    FIELD_NAME,
    FIELD_OFFICIAL_EMAIL,
    FIELD_PERSONAL_EMAIL,
    FIELD_PHONE,
    FIELD_ROLE,
)
from lms_reconcile.core.common.normalization import clean_text
from lms_reconcile.core.common.types import (
    DirectoryRecord,
    IdentityRecord,
    Platform,
    SourceReport,
    SourceTable,
)

from .completion import completed_courses_for_row
from .schema import EMAIL_UNRESOLVED, SchemaMapping, resolve_schema
from .tabular import TabularData, load_table

__all__ = [
    "DEFAULT_NAME",
    "DEFAULT_ROLE",
    "build_identity_records",
    "build_directory_records",
    "ingest_platform",
    "ingest_directory",
]

DEFAULT_NAME = "Unknown"
DEFAULT_ROLE = "student"

_T = TypeVar("_T")
_R = TypeVar("_R")


def _cell(row: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def _ordered_map(func: Callable[[_T], _R], items: Sequence[_T], workers: int) -> List[_R]:
    if workers <= 1 or len(items) < 2:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(func, items))


def build_identity_records(
    table: TabularData,
    schema: SchemaMapping,
    platform: Platform,
    *,
    workers: int = 1,
) -> List[IdentityRecord]:
    """ساخت یک :class:`IdentityRecord` برای هر ردیف دارای ایمیل.

    بدون ستون ایمیل هیچ رکوردی ساخته نمی‌شود؛ ردیف با سلول ایمیل خالی
    به‌تنهایی کنار گذاشته می‌شود.
    """

    email_idx = schema.index_of(FIELD_EMAIL)
    if email_idx is None:
        return []
    id_idx = schema.index_of(FIELD_ID)
    name_idx = schema.index_of(FIELD_NAME)
    phone_idx = schema.index_of(FIELD_PHONE)
    role_idx = schema.index_of(FIELD_ROLE)
    login_idx = schema.index_of(FIELD_LAST_LOGIN)
    excluded = schema.metadata_columns
    headers = table.headers

    def _build(item: Tuple[int, Sequence[str]]) -> Optional[IdentityRecord]:
        row_index, row = item
        email = clean_text(_cell(row, email_idx))
        if not email:
            return None
        return IdentityRecord(
            identifier=_cell(row, id_idx) or f"USR-{row_index}",
            full_name=_cell(row, name_idx) or DEFAULT_NAME,
            email=email,
            platform=platform,
            phone=_cell(row, phone_idx) or None,
            role=_cell(row, role_idx) or DEFAULT_ROLE,
            last_login=_cell(row, login_idx) or None,
            completed_courses=completed_courses_for_row(row, headers, excluded),
            row_index=row_index,
        )

    items = list(enumerate(table.data_rows, start=table.data_start))
    built = _ordered_map(_build, items, workers)
    return [record for record in built if record is not None]


def build_directory_records(table: TabularData, schema: SchemaMapping) -> List[DirectoryRecord]:
    """ساخت رکوردهای دایرکتوری؛ نبود ستون «official» به ستون ایمیل عمومی برمی‌گردد."""

    official_idx = schema.index_of(FIELD_OFFICIAL_EMAIL)
    if official_idx is None:
        official_idx = schema.index_of(FIELD_EMAIL)
    if official_idx is None:
        return []
    personal_idx = schema.index_of(FIELD_PERSONAL_EMAIL)
    id_idx = schema.index_of(FIELD_ID)
    name_idx = schema.index_of(FIELD_NAME)
    role_idx = schema.index_of(FIELD_ROLE)

    records: List[DirectoryRecord] = []
    for row_index, row in enumerate(table.data_rows, start=table.data_start):
        official = clean_text(_cell(row, official_idx))
        if not official:
            continue
        records.append(
            DirectoryRecord(
                employee_code=_cell(row, id_idx) or f"EMP-{row_index}",
                full_name=_cell(row, name_idx) or DEFAULT_NAME,
                official_email=official,
                personal_email=clean_text(_cell(row, personal_idx)) or None,
                job_title=_cell(row, role_idx) or None,
            )
        )
    return records


def _report(
    platform: Platform,
    table: TabularData,
    schema: Optional[SchemaMapping],
    built: int,
    notes: Sequence[str],
) -> SourceReport:
    rows_total = len(table.data_rows)
    return SourceReport(
        platform=platform,
        delimiter=table.delimiter,
        header_row=table.header_row,
        columns=dict(schema.columns) if schema is not None else {},
        email_resolution=schema.email_resolution if schema is not None else EMAIL_UNRESOLVED,
        rows_total=rows_total,
        records_built=built,
        rows_skipped=rows_total - built,
        notes=tuple(notes),
    )


def ingest_platform(
    source: Optional[SourceTable],
    platform: Platform,
    *,
    workers: int = 1,
) -> Tuple[List[IdentityRecord], SourceReport]:
    """استنتاج اسکیما و ساخت رکوردهای یک سامانهٔ آموزشی.

    منبع تهی یا بدون ستون ایمیل خطا نیست: فهرست خالی به همراه یادداشت
    کیفیت داده در گزارش برگردانده می‌شود.
    """

    table = load_table(source or SourceTable())
    if not table.rows:
        return [], _report(platform, table, None, 0, ("source is empty",))
    schema = resolve_schema(table)
    notes: List[str] = []
    if schema.index_of(FIELD_EMAIL) is None:
        notes.append("no email column could be resolved; every row was dropped")
    records = build_identity_records(table, schema, platform, workers=workers)
    skipped = len(table.data_rows) - len(records)
    if skipped and schema.index_of(FIELD_EMAIL) is not None:
        notes.append(f"{skipped} row(s) skipped because the email cell was empty")
    return records, _report(platform, table, schema, len(records), notes)


def ingest_directory(source: Optional[SourceTable]) -> Tuple[List[DirectoryRecord], SourceReport]:
    """استنتاج اسکیما و ساخت رکوردهای دایرکتوری کارکنان."""

    table = load_table(source or SourceTable())
    if not table.rows:
        return [], _report(Platform.MASTER, table, None, 0, ("directory is empty",))
    schema = resolve_schema(table)
    notes: List[str] = []
    if schema.index_of(FIELD_OFFICIAL_EMAIL) is None:
        notes.append("no official-email column; falling back to the generic email column")
    records = build_directory_records(table, schema)
    if not records:
        notes.append("no directory rows carried an email")
    return records, _report(Platform.MASTER, table, schema, len(records), notes)
