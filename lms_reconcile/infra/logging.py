"""راه‌اندازی لاگ، کانتکست نشست و گزارش خطای اجراهای تطبیق."""
from __future__ import annotations

import copy
import getpass
import logging
import logging.config
import os
import sys
import traceback
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, Mapping

import yaml

from lms_reconcile.infra.paths import resource_path

DEFAULT_LOGGING_CONFIG = resource_path("config", "logging.yaml")
APP_LOGGER_NAME = "lms_reconcile"

# پیکربندی حداقلی وقتی فایل YAML همراه بسته نصب نشده باشد.
FALLBACK_LOGGING_CONFIG: Mapping[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": "INFO",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        APP_LOGGER_NAME: {"level": "INFO", "handlers": ["console"], "propagate": False},
    },
}


@dataclass(slots=True, frozen=True)
class LoggingContext:
    """اطلاعات نشست اجرای جاری به همراه ابزار ساخت گزارش خطا.

    مثال::

        >>> from pathlib import Path
        >>> ctx = LoggingContext(
        ...     application="lms-reconcile",
        ...     version="0.3.0",
        ...     session_id="abc",
        ...     user="tester",
        ...     pid=123,
        ...     log_dir=Path("logs"),
        ...     error_dir=Path("logs/errors"),
        ... )
        >>> ctx.new_error_id().startswith("abc-")
        True
    """

    application: str
    version: str
    session_id: str
    user: str
    pid: int
    log_dir: Path
    error_dir: Path

    def new_error_id(self) -> str:
        return f"{self.session_id}-{uuid.uuid4().hex[:8]}"

    def write_error_report(self, *, error_id: str, message: str, traceback_text: str) -> Path:
        """نوشتن گزارش خطا با متادیتای نشست و بازگرداندن مسیر فایل."""

        timestamp = datetime.now(timezone.utc)
        self.error_dir.mkdir(parents=True, exist_ok=True)
        report_path = self.error_dir / f"{error_id}-{timestamp.strftime('%Y%m%dT%H%M%SZ')}.log"
        lines = [
            f"application={self.application}",
            f"version={self.version}",
            f"session_id={self.session_id}",
            f"error_id={error_id}",
            f"user={self.user}",
            f"pid={self.pid}",
            f"timestamp={timestamp.isoformat().replace('+00:00', 'Z')}",
            "",
            message.strip(),
            "",
            traceback_text.strip(),
            "",
        ]
        report_path.write_text("\n".join(lines), encoding="utf-8")
        return report_path


class SessionContextFilter(logging.Filter):
    """افزودن شناسهٔ نشست، کاربر و نسخه به همهٔ رکوردهای لاگ."""

    def __init__(self, context: LoggingContext) -> None:
        super().__init__(name="")
        self._context = context

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = getattr(record, "session_id", self._context.session_id)
        record.user = getattr(record, "user", self._context.user)
        record.application = getattr(record, "application", self._context.application)
        record.app_version = getattr(record, "app_version", self._context.version)
        record.error_id = getattr(record, "error_id", "")
        return True


def _attach_filter(target: logging.Logger, filter_obj: logging.Filter) -> None:
    if not any(isinstance(existing, SessionContextFilter) for existing in target.filters):
        target.addFilter(filter_obj)
    for handler in target.handlers:
        if not any(isinstance(existing, SessionContextFilter) for existing in handler.filters):
            handler.addFilter(filter_obj)


def _relocate_file_handlers(config: dict[str, Any], log_directory: Path | None) -> None:
    """هدایت handlerهای فایل به ``log_directory`` و ساخت پوشهٔ والد آن‌ها."""

    handlers = config.get("handlers", {})
    if not isinstance(handlers, dict):
        return
    for handler_cfg in handlers.values():
        if not isinstance(handler_cfg, dict):
            continue
        filename = handler_cfg.get("filename")
        if not filename or "FileHandler" not in str(handler_cfg.get("class", "")):
            continue
        file_path = Path(str(filename)).expanduser()
        if log_directory is not None and not file_path.is_absolute():
            file_path = log_directory / file_path.name
        file_path = file_path.resolve()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler_cfg["filename"] = str(file_path)


def load_logging_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """خواندن پیکربندی YAML؛ بدون مسیر صریح و نبود فایل پیش‌فرض، حالت حداقلی.

    Raises:
        FileNotFoundError: مسیر صریح داده شده ولی فایل وجود ندارد.
        ValueError: ساختار YAML نگاشت نیست.
    """

    if config_path is None:
        if not DEFAULT_LOGGING_CONFIG.exists():
            return copy.deepcopy(dict(FALLBACK_LOGGING_CONFIG))
        path = DEFAULT_LOGGING_CONFIG
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"logging config not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data: Any = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise ValueError("logging config must be a mapping")
    return data


def setup_logging(
    config_path: str | Path | None = None,
    log_dir: str | Path | None = None,
    *,
    level: str | None = None,
) -> None:
    """اعمال پیکربندی logging با ``dictConfig``.

    مثال::

        >>> setup_logging()  # doctest: +SKIP

    Args:
        config_path: مسیر فایل YAML؛ ``None`` یعنی ``config/logging.yaml`` پروژه.
        log_dir: پوشهٔ جایگزین برای فایل‌های لاگ.
        level: سطح logger برنامه (مثلاً ``DEBUG``) برای بازنویسی YAML.
    """

    data = load_logging_config(config_path)
    log_directory = Path(log_dir).expanduser().resolve() if log_dir else None
    _relocate_file_handlers(data, log_directory)
    if level:
        loggers = data.setdefault("loggers", {})
        loggers.setdefault(APP_LOGGER_NAME, {})["level"] = level.upper()
    logging.config.dictConfig(data)


def configure_logging(
    *,
    app_name: str,
    app_version: str,
    logger_name: str = APP_LOGGER_NAME,
    config_path: str | Path | None = None,
    log_dir: str | Path | None = None,
    level: str | None = None,
) -> LoggingContext:
    """پیکربندی logging، نصب فیلتر نشست و بازگرداندن کانتکست.

    Returns:
        LoggingContext: کانتکست نشست برای ساخت گزارش خطا.
    """

    log_directory = Path(log_dir).expanduser().resolve() if log_dir else Path("logs").resolve()
    log_directory.mkdir(parents=True, exist_ok=True)
    setup_logging(config_path, log_directory, level=level)
    error_directory = log_directory / "errors"

    context = LoggingContext(
        application=app_name,
        version=app_version,
        session_id=uuid.uuid4().hex,
        user=getpass.getuser(),
        pid=os.getpid(),
        log_dir=log_directory,
        error_dir=error_directory,
    )
    filter_obj = SessionContextFilter(context)
    _attach_filter(logging.getLogger(), filter_obj)
    _attach_filter(logging.getLogger(logger_name), filter_obj)
    logging.captureWarnings(True)
    return context


def install_exception_hook(logger: logging.Logger, context: LoggingContext) -> Callable[[], None]:
    """ثبت خطاهای مدیریت‌نشده همراه گزارش تفصیلی؛ تابع بازگردانی برمی‌گرداند."""

    previous_hook = sys.excepthook

    def handle_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            previous_hook(exc_type, exc_value, exc_tb)
            return
        error_id = context.new_error_id()
        report_path = context.write_error_report(
            error_id=error_id,
            message=f"{exc_type.__name__}: {exc_value}",
            traceback_text="".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )
        logger.critical(
            "Unhandled exception (report: %s)",
            report_path,
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"error_id": error_id},
        )
        previous_hook(exc_type, exc_value, exc_tb)

    sys.excepthook = handle_exception

    def restore() -> None:
        sys.excepthook = previous_hook

    return restore


__all__ = [
    "APP_LOGGER_NAME",
    "DEFAULT_LOGGING_CONFIG",
    "LoggingContext",
    "SessionContextFilter",
    "configure_logging",
    "install_exception_hook",
    "load_logging_config",
    "setup_logging",
]
