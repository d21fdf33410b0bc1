"""تطبیق حساب‌های تکراری فراگیران بین دو سامانهٔ آموزشی."""

__version__ = "0.3.0"
