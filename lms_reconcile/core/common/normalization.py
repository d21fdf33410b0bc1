# -*- coding: utf-8 -*-
"""
نرمال‌سازی متن برای کلیدهای مقایسه (Core-only, بدون I/O).

Public API:
- to_text(value: Any) -> str
- clean_text(value: Any) -> str
- normalize_arabic(value: Any) -> str
- comparison_key(value: Any, *, arabic: bool = True) -> str
- normalize_header(name: Any) -> str
- extract_ascii_digits(value: Any) -> str

Design notes:
- Side-effect free on import and on inputs.
- Deterministic; cell values coming from spreadsheets (float/NaN/None) are
  converted through :func:`to_text` before any comparison.
- Core string normalization cached with @lru_cache(maxsize=4096).
"""
from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Any, Dict

__all__ = [
    "to_text",
    "clean_text",
    "normalize_arabic",
    "comparison_key",
    "normalize_header",
    "extract_ascii_digits",
]

# ---------------------------------------------------------------------------
# Constants & Regex Patterns (internal)
# ---------------------------------------------------------------------------

# NBSP و فاصلهٔ صفرعرض پیش از فشرده‌سازی به فاصلهٔ ساده تبدیل می‌شوند.
_RE_INVISIBLE_SPACE = re.compile(r"[\u00a0\u200b]")

# Collapse any whitespace run to a single space.
_RE_WHITESPACE = re.compile(r"\s+")

# Arabic harakat U+064B..U+065F
_RE_ARABIC_DIACRITICS = re.compile(r"[\u064b-\u065f]")

_ARABIC_LETTER_FOLD: Dict[str, str] = {
    "أ": "ا",
    "إ": "ا",
    "آ": "ا",
    "ة": "ه",
    "ى": "ي",
}

# Arabic-Indic (0660–0669) and Extended Arabic-Indic (06F0–06F9) → ASCII digits
_DIGIT_TRANSLATION: Dict[int, int] = {
    **{ord(chr(0x0660 + i)): ord(str(i)) for i in range(10)},
    **{ord(chr(0x06F0 + i)): ord(str(i)) for i in range(10)},
}

_NAN_LIKE = frozenset({"nan", "none", "null", "nat", "<na>"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _format_float_stable(val: float) -> str:
    """Deterministic float to string; integral floats lose their '.0' suffix."""
    if not math.isfinite(val):
        return ""
    if val.is_integer():
        return str(int(val))
    return format(val, ".12g")


@lru_cache(maxsize=4096)
def _clean_core(s: str) -> str:
    s = _RE_INVISIBLE_SPACE.sub(" ", s)
    return _RE_WHITESPACE.sub(" ", s).strip().lower()


@lru_cache(maxsize=4096)
def _arabic_core(s: str) -> str:
    """
    Steps:
    1) clean_text (invisible spaces, whitespace collapse, lower())
    2) Remove harakat U+064B..U+065F
    3) Alef variants (أ/إ/آ) → ا
    4) Taa marbuta ة → ه
    5) Alef maqsura ى → ي
    """
    s = _clean_core(s)
    s = _RE_ARABIC_DIACRITICS.sub("", s)
    return s.translate(str.maketrans(_ARABIC_LETTER_FOLD))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def to_text(value: Any) -> str:
    """تبدیل پایدار مقدار سلول به رشته؛ None/NaN به رشتهٔ خالی تبدیل می‌شود.

    >>> to_text(12.0)
    '12'
    >>> to_text(float("nan"))
    ''
    >>> to_text("  Completed ")
    '  Completed '
    """

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float_stable(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", "ignore")
    text = str(value)
    if text.strip().lower() in _NAN_LIKE:
        return ""
    return text


def clean_text(value: Any) -> str:
    """حذف فاصله‌های نامرئی، فشرده‌سازی فاصله‌ها و حروف کوچک.

    این همان کلیدی است که برای ایمیل‌ها، عنوان ستون‌ها و نام دوره‌ها استفاده
    می‌شود.

    >>> clean_text("  John\\u00a0 DOE@X.com ")
    'john doe@x.com'
    """

    text = to_text(value)
    if not text:
        return ""
    return _clean_core(text)


def normalize_arabic(value: Any) -> str:
    """یکسان‌سازی املای عربی (الف، تاء مربوطه، الف مقصوره و حرکات).

    >>> normalize_arabic("أحمد  فاطمة") == "احمد فاطمه"
    True
    >>> normalize_arabic("مُحَمَّد") == "محمد"
    True
    """

    text = to_text(value)
    if not text:
        return ""
    return _arabic_core(text)


def comparison_key(value: Any, *, arabic: bool = True) -> str:
    """کلید مقایسهٔ نام‌ها؛ با ``arabic=False`` فقط :func:`clean_text` اعمال می‌شود."""

    return normalize_arabic(value) if arabic else clean_text(value)


def extract_ascii_digits(value: Any) -> str:
    """استخراج تنها ارقام انگلیسی از ورودی متنی/عددی (ارقام عربی هم تبدیل می‌شوند).

    >>> extract_ascii_digits("+966 ٥٥-123")
    '96655123'
    """

    text = to_text(value)
    if not text:
        return ""
    translated = text.translate(_DIGIT_TRANSLATION)
    return "".join(ch for ch in translated if "0" <= ch <= "9")


def normalize_header(name: Any) -> str:
    """نرمال‌سازی عنوان ستون: همان :func:`clean_text` با «_» به‌جای فاصله.

    >>> normalize_header(" Last_Login ")
    'last login'
    """

    text = to_text(name).replace("_", " ")
    if not text.strip():
        return ""
    return _clean_core(text)
