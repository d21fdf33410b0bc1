"""جداول کلیدواژهٔ سرستون‌ها و ابزار تطبیق ستون (SSoT اسکیمای ورودی).

همهٔ فهرست‌ها مرتب هستند: در :func:`find_column_index` نخستین کلیدواژه‌ای
که در هر سرستونی پیدا شود برنده است، پس ترتیب این جدول‌ها بخشی از قرارداد
است. منابع متنی و شیت‌ها از همین جداول استفاده می‌کنند تا نتیجهٔ استنتاج به
قالب فایل وابسته نباشد.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Tuple

from .normalization import normalize_header

__all__ = [
    "HEADER_SCAN_LIMIT",
    "PRIMARY_HEADER_KEYWORDS",
    "SECONDARY_HEADER_KEYWORDS",
    "FIELD_EMAIL",
    "FIELD_NAME",
    "FIELD_ID",
    "FIELD_PHONE",
    "FIELD_ROLE",
    "FIELD_LAST_LOGIN",
    "FIELD_OFFICIAL_EMAIL",
    "FIELD_PERSONAL_EMAIL",
    "FIELD_KEYWORDS",
    "is_primary_header_cell",
    "count_secondary_header_cells",
    "find_column_index",
]

HEADER_SCAN_LIMIT = 20

PRIMARY_HEADER_KEYWORDS: Tuple[str, ...] = (
    "email",
    "e-mail",
    "mail",
    "username",
    "user name",
    "login",
    "user_id",
)

SECONDARY_HEADER_KEYWORDS: Tuple[str, ...] = (
    "name",
    "fullname",
    "full name",
    "student",
    "phone",
    "mobile",
    "role",
    "status",
    "id",
    "user",
    "employee",
)

FIELD_EMAIL = "email"
FIELD_NAME = "full_name"
FIELD_ID = "identifier"
FIELD_PHONE = "phone"
FIELD_ROLE = "role"
FIELD_LAST_LOGIN = "last_login"
FIELD_OFFICIAL_EMAIL = "official_email"
FIELD_PERSONAL_EMAIL = "personal_email"

FIELD_KEYWORDS: Mapping[str, Tuple[str, ...]] = {
    FIELD_EMAIL: ("email", "e-mail", "mail", "username", "user name"),
    FIELD_NAME: ("fullname", "full name", "name", "student", "first name"),
    FIELD_ID: ("id", "user id", "code", "employee code"),
    FIELD_PHONE: ("phone", "mobile", "contact"),
    FIELD_ROLE: ("role", "job title", "title", "position"),
    FIELD_LAST_LOGIN: ("last login", "last access"),
    FIELD_OFFICIAL_EMAIL: ("official", "company email", "work email"),
    FIELD_PERSONAL_EMAIL: ("personal", "private"),
}


def is_primary_header_cell(cell: str) -> bool:
    """سلولی که دقیقاً کلیدواژهٔ شناسه است یا با «کلیدواژه + فاصله» شروع می‌شود.

    >>> is_primary_header_cell("email address")
    True
    >>> is_primary_header_cell("mailing list")
    False
    """

    text = normalize_header(cell)
    if not text:
        return False
    for keyword in PRIMARY_HEADER_KEYWORDS:
        needle = normalize_header(keyword)
        if text == needle or text.startswith(needle + " "):
            return True
    return False


def count_secondary_header_cells(cells: Sequence[object]) -> int:
    """تعداد سلول‌هایی که حداقل یک کلیدواژهٔ ثانویه را در خود دارند."""

    matches = 0
    for cell in cells:
        text = normalize_header(cell)
        if text and any(keyword in text for keyword in SECONDARY_HEADER_KEYWORDS):
            matches += 1
    return matches


def find_column_index(headers: Sequence[Optional[str]], candidates: Sequence[str]) -> Optional[int]:
    """یافتن اندیس ستون با تطبیق زیررشته‌ای کلیدواژه‌ها به ترتیب اولویت.

    مثال::

        >>> find_column_index(["ID", "Full Name", "E-Mail"], ("email", "e-mail"))
        2
        >>> find_column_index(["ID"], ("phone",)) is None
        True
    """

    normalized = [normalize_header(header) for header in headers]
    for candidate in candidates:
        needle = normalize_header(candidate)
        for idx, header in enumerate(normalized):
            if header and needle in header:
                return idx
    return None
