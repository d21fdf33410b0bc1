from __future__ import annotations

from typing import Optional

from lms_reconcile.core.common.normalization import extract_ascii_digits

__all__ = ["normalize_digits", "phone_key"]


def normalize_digits(value: object | None) -> Optional[str]:
    """بازگرداندن تنها digits انگلیسی از ورودی.

    - ارقام عربی/فارسی به انگلیسی برگردانده می‌شوند.
    - تمامی نویزها (فاصله، خط تیره، پرانتز و «+») حذف می‌شوند.
    - اگر خروجی خالی باشد ``None`` بازگردانده می‌شود.
    """

    digits = extract_ascii_digits(value)
    return digits or None


def phone_key(value: object | None) -> str:
    """کلید مقایسهٔ تلفن برای راهبرد «Same Phone».

    کلید خالی یعنی رکورد در تطبیق تلفنی شرکت نمی‌کند.

    مثال::

        >>> phone_key("(098) 765-4321")
        '0987654321'
        >>> phone_key("  ")
        ''
    """

    return normalize_digits(value) or ""
