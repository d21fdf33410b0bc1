"""ابزارک Logging مرحله‌ای برای مراحل اجرای CLI."""

from __future__ import annotations

from contextlib import contextmanager
from logging import Logger
from time import perf_counter
from typing import Callable, Iterator

__all__ = ["log_step", "progress_logger"]


@contextmanager
def log_step(logger: Logger, step: str) -> Iterator[None]:
    """ثبت شروع، پایان و مدت یک مرحله؛ خطا با استک‌تریس ثبت و دوباره پرتاب می‌شود."""

    start = perf_counter()
    logger.info("step started: %s", step)
    try:
        yield
    except Exception:
        logger.exception("step failed: %s", step)
        raise
    else:
        logger.info("step finished: %s (%.2fs)", step, perf_counter() - start)


def progress_logger(logger: Logger) -> Callable[[int, str], None]:
    """ساخت ``ProgressFn`` که پیام‌های پیشرفت هسته را در سطح DEBUG ثبت می‌کند."""

    def _progress(percent: int, message: str) -> None:
        logger.debug("[%3d%%] %s", percent, message)

    return _progress
