"""مدل خطای لایهٔ Infra برای خواندن منابع و تنظیمات."""
from __future__ import annotations

from dataclasses import dataclass


class InfraError(RuntimeError):
    """پایهٔ همهٔ خطاهای لایهٔ زیرساخت."""


@dataclass(eq=True)
class SourceReadError(InfraError):
    """فایل ورودی پیدا نشد یا قالب آن قابل خواندن نبود."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass(eq=True)
class SettingsFileError(InfraError):
    """فایل تنظیمات JSON خراب است یا مقدار نامعتبر دارد."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.path})"


__all__ = [
    "InfraError",
    "SourceReadError",
    "SettingsFileError",
]
