"""رابط خط فرمان headless برای تطبیق حساب‌های دو سامانهٔ آموزشی.

این ماژول کلیهٔ مسئولیت‌های I/O و logging را بر عهده دارد و با تزریق
progress به توابع Core، جداسازی لایه‌ها را حفظ می‌کند.

مثال::

    >>> from lms_reconcile.infra import cli
    >>> cli.main(["reconcile", "--talent", "talent.csv", "--pharmacy", "pharmacy.csv",
    ...           "--directory", "master.csv", "--output", "pairs.json"])  # doctest: +SKIP
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

from lms_reconcile import __version__
from lms_reconcile.core.common.errors import DomainError
from lms_reconcile.core.common.types import Platform, SourceReport
from lms_reconcile.core.engine import ProgressFn, ReconciliationResult, reconcile
from lms_reconcile.core.ingest.records import ingest_directory, ingest_platform
from lms_reconcile.core.policy.config import KNOWN_STRATEGIES, MatchConfiguration
from lms_reconcile.core.qa.summary import summarize_pairs
from lms_reconcile.infra.errors import InfraError
from lms_reconcile.infra.io_utils import (
    read_json_mapping,
    read_pairs_json,
    read_source,
    write_pairs_json,
    write_reconciliation_workbook,
)
from lms_reconcile.infra.logging import APP_LOGGER_NAME, configure_logging, install_exception_hook
from lms_reconcile.infra.logging_ext import log_step
from lms_reconcile.infra.paths import get_log_directory
from lms_reconcile.infra.review import apply_review, normalize_updates
from lms_reconcile.infra.settings import load_settings

__all__ = ["main", "build_configuration"]

logger = logging.getLogger(__name__)

_FORMATS = ("json", "xlsx")


def _default_progress(pct: int, message: str) -> None:
    """چاپ سادهٔ وضعیت پیشرفت در حالت headless."""
    print(f"{pct:3d}% | {message}")


def _parse_strategies(value: str) -> tuple[str, ...]:
    names = tuple(part.strip() for part in value.split(",") if part.strip())
    if not names:
        raise argparse.ArgumentTypeError("at least one strategy is required")
    return names


def _infer_format(output: Path, explicit: str | None) -> str:
    if explicit:
        return explicit
    return "xlsx" if output.suffix.lower() in {".xlsx", ".xlsm"} else "json"


def build_configuration(args: argparse.Namespace) -> MatchConfiguration:
    """ترکیب فایل تنظیمات با پرچم‌های خط فرمان (پرچم‌ها اولویت دارند)."""

    base = load_settings(args.settings)
    return base.with_overrides(
        fuzzy_threshold=args.fuzzy_threshold,
        check_intra_platform=True if args.intra else None,
        normalize_arabic=False if args.no_arabic else None,
        strategies=args.strategies,
        workers=args.workers,
    )


def _log_source_report(report: SourceReport) -> None:
    logger.info(
        "%s: header row %d, %d/%d row(s) kept, email column via %s",
        report.platform,
        report.header_row,
        report.records_built,
        report.rows_total,
        report.email_resolution,
    )
    for note in report.notes:
        logger.warning("%s: %s", report.platform, note)


def _print_summary(result: ReconciliationResult) -> None:
    summary = result.summary
    print(f"Duplicate pairs: {summary.total_pairs}")
    for reason, count in summary.by_reason.items():
        print(f"  {reason}: {count}")
    print(f"Needs review: {summary.needs_review}")
    print(f"Ready to merge: {summary.ready_to_merge}")
    print(f"Missing course completions: {summary.total_migration_steps}")


def _run_reconcile(args: argparse.Namespace, progress: ProgressFn) -> int:
    config = build_configuration(args)
    logger.info("match configuration: %s", config.to_dict())
    with log_step(logger, "read sources"):
        talent = read_source(args.talent)
        pharmacy = read_source(args.pharmacy)
        directory = read_source(args.directory) if args.directory else None
    if directory is None:
        logger.warning("no directory supplied; every email type will be Unknown")

    with log_step(logger, "reconcile"):
        result = reconcile(talent, pharmacy, directory, config, progress=progress)
    for report in result.reports:
        _log_source_report(report)

    output = Path(args.output)
    fmt = _infer_format(output, args.format)
    with log_step(logger, f"write {fmt} output"):
        if fmt == "xlsx":
            write_reconciliation_workbook(result, output)
        else:
            write_pairs_json(result, output)
    logger.info("wrote %d pair(s) to %s", len(result.pairs), output)
    _print_summary(result)
    return 0


def _run_inspect(args: argparse.Namespace, progress: ProgressFn) -> int:
    source = read_source(args.input)
    if args.platform == str(Platform.MASTER):
        _, report = ingest_directory(source)
    else:
        _, report = ingest_platform(source, Platform(args.platform))
    _log_source_report(report)
    print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    return 0


def _run_apply_review(args: argparse.Namespace, progress: ProgressFn) -> int:
    pairs = read_pairs_json(args.pairs)
    try:
        updates = normalize_updates(read_json_mapping(args.updates))
    except ValueError as exc:
        raise InfraError(f"{args.updates}: {exc}") from exc
    progress(50, f"applying {len(updates)} update(s) to {len(pairs)} pair(s)")
    updated, report = apply_review(pairs, updates)
    write_pairs_json(updated, args.output)
    progress(100, "done")
    summary = summarize_pairs(updated)
    print(
        f"Applied: {report.applied}, failed: {report.failed}, "
        f"untouched: {report.untouched}, unknown ids: {len(report.unknown_ids)}"
    )
    print(f"Needs review: {summary.needs_review}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """ایجاد پارسر دستورات با زیرفرمان‌های reconcile، inspect و apply-review."""

    parser = argparse.ArgumentParser(prog="lms-reconcile", description="LMS duplicate account reconciliation")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-dir", default=None, help="پوشهٔ فایل‌های لاگ")
    parser.add_argument("--log-level", default=None, help="سطح لاگ برنامه (DEBUG، INFO، ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    rec_cmd = sub.add_parser("reconcile", help="یافتن حساب‌های تکراری و محاسبهٔ شکاف دوره‌ها")
    rec_cmd.add_argument("--talent", required=True, help="مسیر خروجی سامانهٔ Talent")
    rec_cmd.add_argument("--pharmacy", required=True, help="مسیر خروجی سامانهٔ Pharmacy")
    rec_cmd.add_argument("--directory", default=None, help="مسیر دایرکتوری کارکنان (Master)")
    rec_cmd.add_argument("--output", required=True, help="مسیر فایل خروجی (JSON یا xlsx)")
    rec_cmd.add_argument("--format", choices=_FORMATS, default=None, help="قالب خروجی؛ پیش‌فرض از پسوند")
    rec_cmd.add_argument("--settings", default=None, help="مسیر settings.json")
    rec_cmd.add_argument("--fuzzy-threshold", type=float, default=None, help="آستانهٔ شباهت نام (0 تا 1)")
    rec_cmd.add_argument("--intra", action="store_true", help="اسکن تکراری درون هر سامانه")
    rec_cmd.add_argument("--no-arabic", action="store_true", help="غیرفعال‌سازی یکسان‌سازی حروف عربی")
    rec_cmd.add_argument(
        "--strategies",
        type=_parse_strategies,
        default=None,
        help=f"فهرست راهبردها با ویرگول ({', '.join(KNOWN_STRATEGIES)})",
    )
    rec_cmd.add_argument("--workers", type=int, default=None, help="تعداد thread برای ساخت رکوردها")

    inspect_cmd = sub.add_parser("inspect", help="نمایش جداکننده، سرستون و نگاشت ستون‌های یک فایل")
    inspect_cmd.add_argument("--input", required=True, help="مسیر فایل ورودی")
    inspect_cmd.add_argument(
        "--platform",
        choices=[str(item) for item in Platform],
        default=str(Platform.TALENT),
        help="نوع منبع",
    )

    review_cmd = sub.add_parser("apply-review", help="اعمال به‌روزرسانی‌های روایی بیرونی روی جفت‌ها")
    review_cmd.add_argument("--pairs", required=True, help="فایل JSON جفت‌ها (خروجی reconcile)")
    review_cmd.add_argument("--updates", required=True, help="فایل JSON به‌روزرسانی‌ها به تفکیک شناسهٔ جفت")
    review_cmd.add_argument("--output", required=True, help="مسیر JSON خروجی")
    return parser


_RUNNERS: dict[str, Callable[[argparse.Namespace, ProgressFn], int]] = {
    "reconcile": _run_reconcile,
    "inspect": _run_inspect,
    "apply-review": _run_apply_review,
}


def main(
    argv: Sequence[str] | None = None,
    *,
    progress_factory: Callable[[], ProgressFn] | None = None,
    setup_logs: bool = True,
) -> int:
    """نقطهٔ ورود CLI؛ خروجی ۰ موفقیت و ۲ خطای ورودی یا پیکربندی است."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    restore_hook: Callable[[], None] | None = None
    if setup_logs:
        context = configure_logging(
            app_name="lms-reconcile",
            app_version=__version__,
            logger_name=APP_LOGGER_NAME,
            log_dir=args.log_dir or get_log_directory(),
            level=args.log_level,
        )
        restore_hook = install_exception_hook(logging.getLogger(APP_LOGGER_NAME), context)

    progress = progress_factory() if progress_factory is not None else _default_progress
    try:
        runner = _RUNNERS.get(args.command)
        if runner is None:
            raise RuntimeError(f"Unsupported command: {args.command}")
        return runner(args, progress)
    except (InfraError, DomainError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"❌ {exc}", file=sys.stderr)
        return 2
    finally:
        if restore_hook is not None:
            restore_hook()


if __name__ == "__main__":
    raise SystemExit(main())
