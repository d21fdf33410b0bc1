"""لایهٔ زیرساختی برای خواندن منابع، تنظیمات، لاگ و CLI."""

from lms_reconcile.infra.errors import InfraError, SettingsFileError, SourceReadError

__all__ = [
    "InfraError",
    "SettingsFileError",
    "SourceReadError",
]
