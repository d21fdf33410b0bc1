"""استنتاج اسکیما و ساخت رکورد از جدول‌های با ساختار آزاد."""

from .records import ingest_directory, ingest_platform
from .tabular import TabularData, load_table

__all__ = [
    "TabularData",
    "ingest_directory",
    "ingest_platform",
    "load_table",
]
