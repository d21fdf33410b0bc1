from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from lms_reconcile.infra import logging as app_logging
from lms_reconcile.infra.logging import (
    APP_LOGGER_NAME,
    LoggingContext,
    SessionContextFilter,
    configure_logging,
    install_exception_hook,
    load_logging_config,
)


@pytest.fixture
def isolated_logging(monkeypatch):
    monkeypatch.setenv("USER", "tester")
    root = logging.getLogger()
    app = logging.getLogger(APP_LOGGER_NAME)
    saved = (list(root.handlers), root.level, app.propagate, app.level)
    yield
    for target in (root, app):
        for handler in list(target.handlers):
            if handler not in saved[0]:
                target.removeHandler(handler)
                handler.close()
        for filter_obj in list(target.filters):
            if isinstance(filter_obj, SessionContextFilter):
                target.removeFilter(filter_obj)
    for handler in saved[0]:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved[1])
    app.propagate = saved[2]
    app.setLevel(saved[3])
    logging.captureWarnings(False)


def _context(tmp_path: Path) -> LoggingContext:
    return LoggingContext(
        application="lms-reconcile",
        version="0.0.0",
        session_id="session",
        user="tester",
        pid=1,
        log_dir=tmp_path,
        error_dir=tmp_path / "errors",
    )


def test_bundled_yaml_is_a_dict_config() -> None:
    config = load_logging_config()
    assert config["version"] == 1
    assert APP_LOGGER_NAME in config["loggers"]


def test_missing_yaml_falls_back_unless_explicit(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(app_logging, "DEFAULT_LOGGING_CONFIG", tmp_path / "absent.yaml")
    assert load_logging_config()["loggers"][APP_LOGGER_NAME]["level"] == "INFO"
    with pytest.raises(FileNotFoundError):
        load_logging_config(tmp_path / "absent.yaml")


def test_configure_logging_writes_session_tagged_file(tmp_path: Path, isolated_logging) -> None:
    context = configure_logging(
        app_name="lms-reconcile",
        app_version="0.0.0",
        log_dir=tmp_path,
        level="debug",
    )
    logger = logging.getLogger(f"{APP_LOGGER_NAME}.tests")
    logger.debug("hello from tests")
    for handler in logging.getLogger(APP_LOGGER_NAME).handlers:
        handler.flush()
    log_file = tmp_path / "lms_reconcile.log"
    assert log_file.exists()
    content = log_file.read_text(encoding="utf-8")
    assert "hello from tests" in content
    assert context.session_id in content
    assert logging.getLogger(APP_LOGGER_NAME).level == logging.DEBUG


def test_error_report_contains_session_metadata(tmp_path: Path) -> None:
    context = _context(tmp_path)
    error_id = context.new_error_id()
    path = context.write_error_report(error_id=error_id, message="boom", traceback_text="Traceback")
    text = path.read_text(encoding="utf-8")
    assert f"error_id={error_id}" in text
    assert "session_id=session" in text
    assert path.parent == tmp_path / "errors"


def test_exception_hook_writes_report_and_restores(tmp_path: Path, monkeypatch) -> None:
    calls: list[type[BaseException]] = []
    monkeypatch.setattr(sys, "excepthook", lambda exc_type, exc, tb: calls.append(exc_type))
    context = _context(tmp_path)
    restore = install_exception_hook(logging.getLogger("hook-test"), context)
    try:
        raise ValueError("unhandled")
    except ValueError as exc:
        sys.excepthook(ValueError, exc, exc.__traceback__)
    finally:
        restore()
    assert calls == [ValueError]
    reports = list((tmp_path / "errors").glob("*.log"))
    assert len(reports) == 1
    assert "ValueError: unhandled" in reports[0].read_text(encoding="utf-8")
