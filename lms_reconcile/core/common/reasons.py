"""سیستم مرکزی متن هشدارها و دلایل (Core-only).

این ماژول تنها یک SSoT برای WarningCode فراهم می‌کند تا موتور تصمیم،
غنی‌ساز دایرکتوری و مرز enrichment پیام یکسانی تولید کنند و تست‌ها بتوانند
هشدار تساوی را بدون تکیه بر متن آزاد شناسایی کنند.

مثال::

    >>> warning_message(WarningCode.TIE_REVIEW_NEEDED)
    'Equal progress on both platforms. Please manually select the primary account.'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Mapping

__all__ = [
    "WarningCode",
    "warning_message",
    "DELETION_REASON_DUPLICATE",
    "DELETION_REASON_PENDING_REVIEW",
    "GAP_ACTION_TEMPLATE",
]


class WarningCode(StrEnum):
    """کدهای یکتای هشدارهای قابل گزارش روی هر جفت."""

    TIE_REVIEW_NEEDED = "TIE_REVIEW_NEEDED"
    BOTH_PERSONAL_EMAILS = "BOTH_PERSONAL_EMAILS"
    ENRICHMENT_FAILED = "ENRICHMENT_FAILED"


_WARNING_MESSAGES: Mapping[WarningCode, str] = {
    WarningCode.TIE_REVIEW_NEEDED: (
        "Equal progress on both platforms. Please manually select the primary account."
    ),
    WarningCode.BOTH_PERSONAL_EMAILS: (
        "Both accounts use Personal emails (not found in Master Official list)."
    ),
    WarningCode.ENRICHMENT_FAILED: "AI Analysis Failed",
}

DELETION_REASON_DUPLICATE = (
    "Duplicate account. Unique progress from this account needs to be merged to Primary."
)
DELETION_REASON_PENDING_REVIEW = (
    "Duplicate account. Archive only after the primary account has been confirmed manually."
)
GAP_ACTION_TEMPLATE = (
    "Gap Found: '{course}' is completed on secondary, missing/incomplete on primary."
)


def warning_message(code: WarningCode) -> str:
    """برگرداندن متن ذخیره‌شده برای یک کد هشدار."""

    try:
        return _WARNING_MESSAGES[code]
    except KeyError as exc:  # pragma: no cover - نگهبان نسخه‌های آینده
        raise ValueError(f"Warning code '{code}' تعریف نشده است") from exc
