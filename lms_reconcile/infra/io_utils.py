"""ابزارهای ورودی/خروجی فایل در لایهٔ زیرساخت.

این ماژول فقط مسئول تبدیل فایل به :class:`SourceTable` و نوشتن خروجی‌ها
است و هیچ منطق تطبیقی در آن قرار ندارد تا اصل جداسازی Core/Infra حفظ شود.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
import zipfile
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from lms_reconcile.core.common.types import MatchedPair, SourceTable
from lms_reconcile.core.engine import ReconciliationResult
from lms_reconcile.infra.errors import SourceReadError

__all__ = [
    "TEXT_SUFFIXES",
    "EXCEL_SUFFIXES",
    "read_source",
    "read_pairs_json",
    "read_json_mapping",
    "write_pairs_json",
    "pairs_frame",
    "migration_steps_frame",
    "write_reconciliation_workbook",
]

TEXT_SUFFIXES = frozenset({".csv", ".tsv", ".txt"})
EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm"})
_INVALID_SHEET_CHARS = re.compile(r"[\\/*?:\[\]]")
_MAX_COLUMN_WIDTH = 60


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SourceReadError(str(path), "File is not valid UTF-8 text") from exc


def _read_first_sheet_grid(path: Path) -> List[List[Any]]:
    """خواندن شیت اول بدون فرض سرستون؛ سلول‌های خالی رشتهٔ خالی می‌شوند."""

    try:
        with pd.ExcelFile(path) as workbook:
            if not workbook.sheet_names:
                raise SourceReadError(str(path), "Workbook has no sheets")
            frame = workbook.parse(
                workbook.sheet_names[0],
                header=None,
                dtype=object,
                keep_default_na=False,
            )
    except SourceReadError:
        raise
    except (ValueError, OSError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise SourceReadError(str(path), f"Cannot read workbook ({exc})") from exc
    return frame.values.tolist()


def read_source(path: str | Path | PathLike[str]) -> SourceTable:
    """خواندن یک خروجی سامانه (CSV/TSV/متن یا شیت اول Excel).

    Raises:
        SourceReadError: فایل وجود ندارد، پسوند پشتیبانی نمی‌شود یا قابل خواندن نیست.
    """

    source = Path(path)
    if not source.is_file():
        raise SourceReadError(str(source), "Source file not found")
    suffix = source.suffix.lower()
    if suffix in TEXT_SUFFIXES:
        return SourceTable(text=_read_text(source), name=source.name)
    if suffix in EXCEL_SUFFIXES:
        return SourceTable(grid=_read_first_sheet_grid(source), name=source.name)
    raise SourceReadError(str(source), f"Unsupported file type '{suffix or source.name}'")


def read_json_mapping(path: str | Path | PathLike[str]) -> Any:
    source = Path(path)
    try:
        return json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SourceReadError(str(source), "JSON file not found") from exc
    except json.JSONDecodeError as exc:
        raise SourceReadError(str(source), f"Invalid JSON ({exc.msg})") from exc


def read_pairs_json(path: str | Path | PathLike[str]) -> List[MatchedPair]:
    """خواندن جفت‌ها از خروجی JSON یک اجرای قبلی (کلید ``pairs`` یا فهرست خام)."""

    data = read_json_mapping(path)
    items = data.get("pairs") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise SourceReadError(str(path), "Expected a list of pairs")
    try:
        return [MatchedPair.from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError) as exc:
        raise SourceReadError(str(path), f"Malformed pair record ({exc})") from exc


@contextlib.contextmanager
def _temporary_file_path(*, suffix: str = "", directory: Path | str | None = None) -> Iterator[Path]:
    """مسیر فایل موقتی با پاک‌سازی خودکار پس از اتمام کار."""

    fd, name = tempfile.mkstemp(suffix=suffix, dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def write_pairs_json(
    payload: ReconciliationResult | Sequence[MatchedPair],
    filepath: str | Path | PathLike[str],
) -> Path:
    """نوشتن اتمیک خروجی JSON (UTF-8، بدون escape حروف غیرلاتین)."""

    target = Path(filepath)
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, ReconciliationResult):
        data: Any = payload.to_dict()
    else:
        data = {"pairs": [pair.to_dict() for pair in payload]}
    with _temporary_file_path(suffix=".json", directory=target.parent) as tmp_path:
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, target)
    return target


def pairs_frame(pairs: Sequence[MatchedPair]) -> pd.DataFrame:
    """یک سطر برای هر جفت با ستون‌های خوانا برای بازبینی انسانی."""

    rows = [
        {
            "Pair ID": pair.pair_id,
            "Type": str(pair.match_type),
            "Match Reason": str(pair.match_reason),
            "Match Score": pair.match_score,
            "Name": pair.display_name,
            "Employee Code": pair.employee_code or "",
            "Email A": pair.account_a.email,
            "Platform A": str(pair.account_a.platform),
            "Email A Type": str(pair.email_a_type),
            "Completed A": pair.account_a.completed_count,
            "Email B": pair.account_b.email,
            "Platform B": str(pair.account_b.platform),
            "Email B Type": str(pair.email_b_type),
            "Completed B": pair.account_b.completed_count,
            "Status": str(pair.status),
            "Primary Account": pair.primary_account,
            "Primary Email": pair.primary_email,
            "Secondary Email": pair.secondary_email,
            "Decision Reason": pair.decision_reason,
            "Delete Secondary": pair.should_delete_secondary,
            "Deletion Reason": pair.deletion_reason,
            "Migration Steps": len(pair.migration_steps),
            "Warnings": "; ".join(pair.warnings),
        }
        for pair in pairs
    ]
    return pd.DataFrame(rows, columns=_PAIR_COLUMNS)


_PAIR_COLUMNS = [
    "Pair ID",
    "Type",
    "Match Reason",
    "Match Score",
    "Name",
    "Employee Code",
    "Email A",
    "Platform A",
    "Email A Type",
    "Completed A",
    "Email B",
    "Platform B",
    "Email B Type",
    "Completed B",
    "Status",
    "Primary Account",
    "Primary Email",
    "Secondary Email",
    "Decision Reason",
    "Delete Secondary",
    "Deletion Reason",
    "Migration Steps",
    "Warnings",
]
_STEP_COLUMNS = ["Pair ID", "Primary Email", "Secondary Email", "Course", "Action"]


def migration_steps_frame(pairs: Sequence[MatchedPair]) -> pd.DataFrame:
    rows = [
        {
            "Pair ID": pair.pair_id,
            "Primary Email": pair.primary_email,
            "Secondary Email": pair.secondary_email,
            "Course": step.course_name,
            "Action": step.action,
        }
        for pair in pairs
        for step in pair.migration_steps
    ]
    return pd.DataFrame(rows, columns=_STEP_COLUMNS)


def _summary_frame(summary: Mapping[str, Any]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for key, value in summary.items():
        if isinstance(value, Mapping):
            rows.extend({"Metric": f"{key}: {sub}", "Value": count} for sub, count in value.items())
        else:
            rows.append({"Metric": key, "Value": value})
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def _safe_sheet_name(name: str, taken: set[str]) -> str:
    """اصلاح و یکتا‌سازی نام شیت مطابق محدودیت‌های Excel."""

    base = _INVALID_SHEET_CHARS.sub(" ", (name or "Sheet").strip())[:31] or "Sheet"
    candidate = base
    index = 2
    while candidate in taken:
        suffix = f" ({index})"
        candidate = (base[: 31 - len(suffix)] + suffix).rstrip()
        index += 1
    taken.add(candidate)
    return candidate


def _autofit_columns(writer: pd.ExcelWriter, sheet_frames: Mapping[str, pd.DataFrame]) -> None:
    for sheet_name, frame in sheet_frames.items():
        worksheet = writer.sheets[sheet_name]
        worksheet.freeze_panes = "A2"
        for position, column in enumerate(frame.columns, start=1):
            lengths = [len(str(column))] + [len(str(value)) for value in frame[column].tolist()]
            width = min(max(lengths) + 2, _MAX_COLUMN_WIDTH)
            worksheet.column_dimensions[get_column_letter(position)].width = width


def write_reconciliation_workbook(
    payload: ReconciliationResult | Sequence[MatchedPair],
    filepath: str | Path | PathLike[str],
) -> Path:
    """نوشتن اتمیک کارپوشهٔ بازبینی با شیت‌های ``Pairs`` و ``Migration Steps``.

    برای :class:`ReconciliationResult` شیت‌های ``Summary`` و ``Sources`` هم
    نوشته می‌شوند.
    """

    target = Path(filepath)
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, ReconciliationResult):
        pairs: Sequence[MatchedPair] = payload.pairs
    else:
        pairs = list(payload)
    sheets: Dict[str, pd.DataFrame] = {
        "Pairs": pairs_frame(pairs),
        "Migration Steps": migration_steps_frame(pairs),
    }
    if isinstance(payload, ReconciliationResult):
        sheets["Summary"] = _summary_frame(payload.summary.to_dict())
        sheets["Sources"] = pd.DataFrame(
            [
                {**report.to_dict(), "columns": json.dumps(dict(report.columns)), "notes": "; ".join(report.notes)}
                for report in payload.reports
            ]
        )

    taken: set[str] = set()
    written: Dict[str, pd.DataFrame] = {}
    with _temporary_file_path(suffix=".xlsx", directory=target.parent) as tmp_path:
        with pd.ExcelWriter(tmp_path, engine="openpyxl") as writer:
            for sheet_name, frame in sheets.items():
                safe_name = _safe_sheet_name(sheet_name, taken)
                frame.to_excel(writer, sheet_name=safe_name, index=False)
                written[safe_name] = frame
            _autofit_columns(writer, written)
        os.replace(tmp_path, target)
    return target
