"""ابزارهای کمکی مسیر برای فایل‌های پیکربندی و پوشهٔ لاگ."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

__all__ = [
    "APP_DIR_NAME",
    "get_project_root",
    "resource_path",
    "get_log_directory",
]

APP_DIR_NAME = "lms-reconcile"


@lru_cache(maxsize=1)
def get_project_root() -> Path:
    """ریشهٔ مخزن (والد بستهٔ ``lms_reconcile``) که پوشهٔ ``config`` در آن است."""

    return Path(__file__).resolve().parents[2]


def resource_path(*parts: str | os.PathLike[str]) -> Path:
    """مسیر یک فایل همراه پروژه؛ مسیر مطلق دست‌نخورده برمی‌گردد.

    >>> resource_path("config", "settings.json").name
    'settings.json'
    """

    candidate = Path(*(os.fspath(part) for part in parts)) if parts else Path()
    if candidate.is_absolute():
        return candidate
    return get_project_root() / candidate


def get_log_directory(subdir: str = "logs", app_name: str = APP_DIR_NAME) -> Path:
    """پوشهٔ لاگ کاربر (``~/<app_name>/<subdir>``)، در صورت نبود ساخته می‌شود."""

    log_dir = Path(os.path.expanduser("~")) / app_name / subdir
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir
