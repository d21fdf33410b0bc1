"""بارگذاری تنظیمات تطبیق از ``config/settings.json`` (لایهٔ Infra).

خواندن فایل اینجا انجام می‌شود و دادهٔ JSON به :func:`parse_settings_dict`
در Core پاس داده می‌شود.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from lms_reconcile.core.common.errors import ConfigurationError
from lms_reconcile.core.policy.config import MatchConfiguration, parse_settings_dict
from lms_reconcile.infra.errors import SettingsFileError
from lms_reconcile.infra.paths import resource_path

__all__ = ["DEFAULT_SETTINGS_PATH", "load_settings"]

DEFAULT_SETTINGS_PATH = resource_path("config", "settings.json")


@lru_cache(maxsize=8)
def _load_settings_cached(resolved_path: str, raw: str, mtime_ns: int) -> MatchConfiguration:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SettingsFileError(resolved_path, f"Invalid JSON in settings file: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise SettingsFileError(resolved_path, "Settings file must contain a JSON object")
    try:
        return parse_settings_dict(data)
    except ConfigurationError as exc:
        raise SettingsFileError(resolved_path, f"Invalid setting {exc.column!r}={exc.value!r}") from exc


def load_settings(path: str | Path | None = None) -> MatchConfiguration:
    """بارگذاری پیکربندی تطبیق؛ بدون مسیر و نبود فایل پیش‌فرض، مقادیر پیش‌فرض.

    Raises:
        SettingsFileError: فایل صریح وجود ندارد، JSON خراب است یا مقداری نامعتبر است.
    """

    if path is None:
        if not DEFAULT_SETTINGS_PATH.exists():
            return MatchConfiguration()
        settings_path = DEFAULT_SETTINGS_PATH
    else:
        settings_path = Path(path)
    try:
        raw = settings_path.read_text(encoding="utf-8")
        mtime_ns = settings_path.stat().st_mtime_ns
    except FileNotFoundError as exc:
        raise SettingsFileError(str(settings_path), "Settings file not found") from exc
    return _load_settings_cached(str(settings_path.resolve()), raw, mtime_ns)


load_settings.cache_clear = _load_settings_cached.cache_clear  # type: ignore[attr-defined]
