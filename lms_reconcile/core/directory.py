"""غنی‌سازی جفت‌ها با دایرکتوری کارکنان (Core-only).

مثال::

    >>> from lms_reconcile.core.common.types import DirectoryRecord
    >>> index = DirectoryIndex.build([
    ...     DirectoryRecord("E1", "John Doe", "john@corp.com", personal_email="jd@gmail.com"),
    ... ])
    >>> index.classify("JOHN@corp.com"), index.classify("jd@gmail.com"), index.classify("x@y.com")
    (<EmailType.OFFICIAL: 'Official'>, <EmailType.PERSONAL: 'Personal'>, <EmailType.UNKNOWN: 'Unknown'>)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Mapping, Optional

from lms_reconcile.core.common.normalization import clean_text
from lms_reconcile.core.common.reasons import WarningCode, warning_message
from lms_reconcile.core.common.types import DirectoryRecord, EmailType, MatchedPair

__all__ = ["DirectoryIndex", "classify_email", "enrich_pair"]


@dataclass(frozen=True)
class DirectoryIndex:
    """نمایهٔ ایمیل (سازمانی و شخصی) به رکورد دایرکتوری.

    در برخورد دو رکورد روی یک ایمیل، رکورد زودتر حفظ می‌شود.
    """

    by_email: Mapping[str, DirectoryRecord]

    @classmethod
    def build(cls, records: Iterable[DirectoryRecord]) -> "DirectoryIndex":
        by_email: Dict[str, DirectoryRecord] = {}
        for record in records:
            for email in (record.official_email, record.personal_email):
                key = clean_text(email)
                if key and key not in by_email:
                    by_email[key] = record
        return cls(by_email=by_email)

    @classmethod
    def empty(cls) -> "DirectoryIndex":
        return cls(by_email={})

    def lookup(self, email: str) -> Optional[DirectoryRecord]:
        return self.by_email.get(clean_text(email))

    def classify(self, email: str) -> EmailType:
        return classify_email(self, email)

    def __len__(self) -> int:
        return len(self.by_email)


def classify_email(index: DirectoryIndex, email: str) -> EmailType:
    """Official اگر برابر ایمیل سازمانی رکورد باشد، Personal اگر فقط در نمایه باشد."""

    record = index.lookup(email)
    if record is None:
        return EmailType.UNKNOWN
    if clean_text(record.official_email) == clean_text(email):
        return EmailType.OFFICIAL
    return EmailType.PERSONAL


def enrich_pair(pair: MatchedPair, index: DirectoryIndex) -> MatchedPair:
    """افزودن نوع ایمیل هر طرف، نام نمایشی و کد کارمندی به جفت.

    اگر هر دو طرف ایمیل شخصی داشته باشند فقط هشدار اضافه می‌شود و تصمیم
    تغییر نمی‌کند.
    """

    type_a = classify_email(index, pair.account_a.email)
    type_b = classify_email(index, pair.account_b.email)
    warnings = pair.warnings
    if type_a is EmailType.PERSONAL and type_b is EmailType.PERSONAL:
        warnings = warnings + (warning_message(WarningCode.BOTH_PERSONAL_EMAILS),)
    master = index.lookup(pair.account_a.email) or index.lookup(pair.account_b.email)
    if master is not None:
        display_name = master.full_name or pair.account_a.full_name or pair.account_b.full_name
        employee_code: Optional[str] = master.employee_code
    else:
        display_name = pair.account_a.full_name or pair.account_b.full_name
        employee_code = None
    return replace(
        pair,
        email_a_type=type_a,
        email_b_type=type_b,
        warnings=warnings,
        display_name=display_name,
        employee_code=employee_code,
    )
