"""خواندن جدول‌های بی‌ساختار: تشخیص جداکننده و ردیف سرستون (Core-only).

ورودی یا متن جداشده (CSV، نقطه‌ویرگول، تب) است یا گرید سلول‌های یک شیت که
لایهٔ Infra آن را بدون سرستون خوانده است. خروجی در هر دو حالت یک
:class:`TabularData` است تا مراحل بعدی به قالب فایل وابسته نباشند.

مثال::

    >>> table = load_table(SourceTable(text="Report\\nid;email\\nT1;a@x.com\\n"))
    >>> table.delimiter, table.header_row, table.headers
    (';', 1, ('id', 'email'))
    >>> table.data_rows
    (('T1', 'a@x.com'),)
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from lms_reconcile.core.common.columns import (
    HEADER_SCAN_LIMIT,
    count_secondary_header_cells,
    is_primary_header_cell,
)
from lms_reconcile.core.common.normalization import to_text
from lms_reconcile.core.common.types import SourceTable

__all__ = [
    "DELIMITER_SAMPLE_SIZE",
    "TabularData",
    "detect_delimiter",
    "parse_delimited_text",
    "grid_to_rows",
    "detect_header_row",
    "load_table",
]

DELIMITER_SAMPLE_SIZE = 500

Row = Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TabularData:
    """ردیف‌های غیرخالی به ترتیب اصلی به همراه اندیس سرستون.

    ``headers`` برای سلول‌های سرستون خالی مقدار ``None`` دارد تا طبقه‌بند
    تکمیل بتواند نام جایگزین «Column N» بسازد.
    """

    rows: Tuple[Row, ...]
    header_row: int
    headers: Tuple[Optional[str], ...]
    delimiter: Optional[str] = None

    @property
    def data_rows(self) -> Tuple[Row, ...]:
        return self.rows[self.header_row + 1 :]

    @property
    def data_start(self) -> int:
        return self.header_row + 1


def detect_delimiter(text: str) -> str:
    """انتخاب جداکننده با شمارش در ۵۰۰ نویسهٔ نخست.

    تب فقط وقتی انتخاب می‌شود که از هر دو رقیب بیشتر باشد؛ نقطه‌ویرگول
    وقتی که از ویرگول بیشتر باشد؛ در غیر این صورت ویرگول.

    >>> detect_delimiter("a\\tb\\tc;d")
    '\\t'
    >>> detect_delimiter("a;b,c")
    ','
    """

    sample = text[:DELIMITER_SAMPLE_SIZE]
    count_semi = sample.count(";")
    count_comma = sample.count(",")
    count_tab = sample.count("\t")
    if count_tab > count_semi and count_tab > count_comma:
        return "\t"
    if count_semi > count_comma:
        return ";"
    return ","


def _clean_cell(value: Any) -> str:
    text = to_text(value).strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1].strip()
    return text


def _neutralize_open_quote(line: str) -> str:
    """سطری با نقل‌قول بسته‌نشده بدون نقل‌قول خوانده می‌شود تا به سطر بعد نرسد.

    >>> _neutralize_open_quote('"a@x.com,Completed')
    'a@x.com,Completed'
    >>> _neutralize_open_quote('1,"Doe, John"')
    '1,"Doe, John"'
    """

    return line.replace('"', "") if line.count('"') % 2 else line


def parse_delimited_text(text: str, delimiter: Optional[str] = None) -> Tuple[List[Row], str]:
    """تجزیهٔ متن جداشده به ردیف‌ها با :func:`pandas.read_csv`.

    هر سطر فیزیکی یک ردیف است و خطوط خالی کاملاً حذف می‌شوند. جداکننده داخل
    بخش‌های نقل‌قول‌شده شکسته نمی‌شود و نقل‌قول‌های دوطرف سلول برداشته
    می‌شوند. ردیف‌های کوتاه‌تر با سلول خالی پر می‌شوند و ستون‌های انتهایی
    که در همهٔ ردیف‌ها خالی‌اند کنار می‌روند.

    >>> rows, sep = parse_delimited_text('id,name\\n\\n1,"Doe, John"\\n')
    >>> rows, sep
    ([('id', 'name'), ('1', 'Doe, John')], ',')
    """

    sep = delimiter or detect_delimiter(text)
    lines = [
        _neutralize_open_quote(line)
        for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        if line.strip()
    ]
    if not lines:
        return [], sep
    width = max(line.count(sep) for line in lines) + 1
    frame = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=sep,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        engine="python",
    ).fillna("")
    while frame.shape[1] > 1 and (frame.iloc[:, -1].str.strip() == "").all():
        frame = frame.iloc[:, :-1]
    rows = [
        tuple(_clean_cell(cell) for cell in values)
        for values in frame.itertuples(index=False, name=None)
    ]
    return rows, sep


def grid_to_rows(grid: Sequence[Sequence[Any]]) -> List[Row]:
    """تبدیل گرید شیت به ردیف‌های متنی؛ ردیف‌های کاملاً خالی حذف می‌شوند.

    >>> grid_to_rows([["id", None], [None, float("nan")], [1.0, "a@x.com"]])
    [('id', ''), ('1', 'a@x.com')]
    """

    rows: List[Row] = []
    for raw in grid:
        if raw is None:
            continue
        row = tuple(_clean_cell(cell) for cell in raw)
        if not any(row):
            continue
        rows.append(row)
    return rows


def detect_header_row(rows: Sequence[Sequence[Any]]) -> int:
    """یافتن ردیف سرستون در ۲۰ ردیف نخست.

    ردیف‌ها به ترتیب بررسی می‌شوند و نخستین ردیفی که یکی از دو شرط زیر را
    داشته باشد برنده است:

    1. سلولی برابر کلیدواژهٔ شناسه («email»، «username»، ...) یا شروع‌شده با آن.
    2. حداقل دو سلول شامل کلیدواژهٔ ثانویه (name، phone، role، ...).

    در نبود هیچ نشانه‌ای ردیف صفر برگردانده می‌شود.

    >>> detect_header_row([["Export 2024"], ["Full Name", "Phone"], ["Jo", "1"]])
    1
    """

    limit = min(len(rows), HEADER_SCAN_LIMIT)
    for idx in range(limit):
        row = rows[idx]
        if not row:
            continue
        if any(is_primary_header_cell(cell) for cell in row):
            return idx
        if count_secondary_header_cells(row) >= 2:
            return idx
    return 0


def _header_labels(row: Sequence[str]) -> Tuple[Optional[str], ...]:
    return tuple((cell.strip() or None) for cell in row)


def load_table(source: SourceTable) -> TabularData:
    """تبدیل یک منبع خام به :class:`TabularData`؛ منبع تهی جدول تهی می‌دهد."""

    delimiter: Optional[str] = None
    if source.is_empty:
        rows: List[Row] = []
    elif source.grid is not None:
        rows = grid_to_rows(source.grid)
    else:
        rows, delimiter = parse_delimited_text(source.text or "")
    if not rows:
        return TabularData(rows=(), header_row=0, headers=(), delimiter=delimiter)
    header_row = detect_header_row(rows)
    return TabularData(
        rows=tuple(rows),
        header_row=header_row,
        headers=_header_labels(rows[header_row]),
        delimiter=delimiter,
    )
