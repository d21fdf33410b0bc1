"""تعریف قراردادهای دادهٔ حوزهٔ تطبیق حساب‌ها (Core-only, بدون I/O).

این ماژول صرفاً تایپ‌ها را نگه می‌دارد و منطق تصمیم ندارد. همهٔ رکوردها
فقط‌خواندنی (frozen) هستند؛ هر مرحلهٔ بعدی به‌جای تغییر درجا، نسخهٔ جدید را
با :func:`dataclasses.replace` می‌سازد تا خروجی یک اجرا قابل تکرار بماند.

مثال:
    >>> rec = IdentityRecord(
    ...     identifier="T1",
    ...     full_name="John Doe",
    ...     email="john@x.com",
    ...     platform=Platform.TALENT,
    ...     completed_courses=("Safety",),
    ... )
    >>> rec.completed_count, rec.account_key
    (1, ('Talent', 'john@x.com'))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

__all__ = [
    "Platform",
    "EmailType",
    "MatchType",
    "MatchReason",
    "PairStatus",
    "Side",
    "REVIEW_NEEDED_LABEL",
    "SourceTable",
    "SourceReport",
    "IdentityRecord",
    "DirectoryRecord",
    "MigrationStep",
    "MatchedPair",
]

REVIEW_NEEDED_LABEL = "Review Needed"


class Platform(StrEnum):
    """سامانه‌های مبدأ؛ ``MASTER`` همان دایرکتوری کارکنان است."""

    TALENT = "Talent"
    PHARMACY = "Pharmacy"
    MASTER = "Master"


class EmailType(StrEnum):
    OFFICIAL = "Official"
    PERSONAL = "Personal"
    UNKNOWN = "Unknown"


class MatchType(StrEnum):
    INTER_PLATFORM = "Inter-Platform"
    INTRA_TALENT = "Intra-Talent"
    INTRA_PHARMACY = "Intra-Pharmacy"

    @classmethod
    def intra_for(cls, platform: Platform) -> "MatchType":
        """نوع تطبیق درون‌سامانه‌ای برای یک سامانه."""

        if platform is Platform.TALENT:
            return cls.INTRA_TALENT
        if platform is Platform.PHARMACY:
            return cls.INTRA_PHARMACY
        raise ValueError(f"intra-platform scan is not defined for {platform}")

    @property
    def is_intra(self) -> bool:
        return self is not MatchType.INTER_PLATFORM


class MatchReason(StrEnum):
    EXACT_EMAIL = "Exact Email"
    SAME_PHONE = "Same Phone"
    FUZZY_NAME = "Fuzzy Name Match"


class PairStatus(StrEnum):
    DECIDED = "decided"
    REVIEW_NEEDED = "review_needed"


class Side(StrEnum):
    A = "A"
    B = "B"


@dataclass(frozen=True, slots=True)
class SourceTable:
    """ورودی خام یک سامانه: متن جداشده یا گرید یک شیت.

    دقیقاً یکی از ``text`` یا ``grid`` مقدار دارد؛ هر دو خالی یعنی منبع تهی.
    """

    text: Optional[str] = None
    grid: Optional[Sequence[Sequence[Any]]] = None
    name: str = ""

    @property
    def is_empty(self) -> bool:
        if self.grid is not None:
            return len(self.grid) == 0
        return not (self.text or "").strip()


@dataclass(frozen=True, slots=True)
class SourceReport:
    """خلاصهٔ استنتاج اسکیمای یک منبع برای لاگ کیفیت داده در لایهٔ Infra."""

    platform: Platform
    delimiter: Optional[str]
    header_row: int
    columns: Mapping[str, Optional[int]]
    email_resolution: str
    rows_total: int
    records_built: int
    rows_skipped: int
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": str(self.platform),
            "delimiter": self.delimiter,
            "header_row": self.header_row,
            "columns": dict(self.columns),
            "email_resolution": self.email_resolution,
            "rows_total": self.rows_total,
            "records_built": self.records_built,
            "rows_skipped": self.rows_skipped,
            "notes": list(self.notes),
        }


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    """یک حساب کاربری در یک سامانه به همراه دوره‌های تکمیل‌شده."""

    identifier: str
    full_name: str
    email: str
    platform: Platform
    phone: Optional[str] = None
    role: str = "student"
    last_login: Optional[str] = None
    completed_courses: Tuple[str, ...] = ()
    # مبدأ رکورد در فایل ورودی؛ در برابری رکوردها شرکت نمی‌کند.
    row_index: Optional[int] = field(default=None, compare=False)

    @property
    def completed_count(self) -> int:
        return len(self.completed_courses)

    @property
    def account_key(self) -> Tuple[str, str]:
        return (str(self.platform), self.email)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "lastLogin": self.last_login,
            "platform": str(self.platform),
            "completedCourseNames": list(self.completed_courses),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IdentityRecord":
        return cls(
            identifier=str(data["id"]),
            full_name=str(data.get("fullName") or ""),
            email=str(data["email"]),
            platform=Platform(data["platform"]),
            phone=data.get("phone"),
            role=str(data.get("role") or "student"),
            last_login=data.get("lastLogin"),
            completed_courses=tuple(data.get("completedCourseNames") or ()),
        )


@dataclass(frozen=True, slots=True)
class DirectoryRecord:
    """ردیف دایرکتوری کارکنان (منبع مرجع ایمیل سازمانی)."""

    employee_code: str
    full_name: str
    official_email: str
    personal_email: Optional[str] = None
    job_title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeCode": self.employee_code,
            "fullName": self.full_name,
            "officialEmail": self.official_email,
            "personalEmail": self.personal_email,
            "jobTitle": self.job_title,
        }


@dataclass(frozen=True, slots=True)
class MigrationStep:
    course_name: str
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {"courseName": self.course_name, "action": self.action}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MigrationStep":
        return cls(course_name=str(data["courseName"]), action=str(data.get("action") or ""))


@dataclass(frozen=True, slots=True)
class MatchedPair:
    """جفت تکراری با تصمیم اصلی/ثانویه و گام‌های مهاجرت.

    ``account_a`` همیشه از سامانهٔ ورودی اول (یا رکورد زودتر در اسکن
    درون‌سامانه‌ای) است. در حالت تساوی ``primary_side`` موقتاً ``A`` است و
    ``status`` برابر ``review_needed`` می‌ماند.
    """

    pair_id: str
    match_type: MatchType
    match_reason: MatchReason
    match_score: int
    account_a: IdentityRecord
    account_b: IdentityRecord
    status: PairStatus
    primary_side: Side
    decision_reason: str
    migration_steps: Tuple[MigrationStep, ...] = ()
    warnings: Tuple[str, ...] = ()
    should_delete_secondary: bool = False
    deletion_reason: str = ""
    display_name: str = ""
    employee_code: Optional[str] = None
    email_a_type: EmailType = EmailType.UNKNOWN
    email_b_type: EmailType = EmailType.UNKNOWN
    analysis: Optional[str] = None
    email_draft: Optional[str] = None

    @property
    def primary(self) -> IdentityRecord:
        return self.account_a if self.primary_side is Side.A else self.account_b

    @property
    def secondary(self) -> IdentityRecord:
        return self.account_b if self.primary_side is Side.A else self.account_a

    @property
    def primary_email(self) -> str:
        return self.primary.email

    @property
    def secondary_email(self) -> str:
        return self.secondary.email

    @property
    def is_review_needed(self) -> bool:
        return self.status is PairStatus.REVIEW_NEEDED

    @property
    def primary_account(self) -> str:
        """برچسب نمایشی: نام سامانهٔ اصلی یا «Review Needed» در حالت تساوی."""

        if self.is_review_needed:
            return REVIEW_NEEDED_LABEL
        return str(self.primary.platform)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.pair_id,
            "type": str(self.match_type),
            "matchReason": str(self.match_reason),
            "matchScore": self.match_score,
            "name": self.display_name,
            "employeeCode": self.employee_code,
            "accountA": self.account_a.to_dict(),
            "accountB": self.account_b.to_dict(),
            "emailA_Type": str(self.email_a_type),
            "emailB_Type": str(self.email_b_type),
            "status": str(self.status),
            "primarySide": str(self.primary_side),
            "primaryAccount": self.primary_account,
            "primaryEmail": self.primary_email,
            "secondaryEmail": self.secondary_email,
            "decisionReason": self.decision_reason,
            "shouldDeleteSecondary": self.should_delete_secondary,
            "deletionReason": self.deletion_reason,
            "migrationSteps": [step.to_dict() for step in self.migration_steps],
            "warnings": list(self.warnings),
            "aiAnalysis": self.analysis,
            "emailDraft": self.email_draft,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchedPair":
        """بازسازی جفت از خروجی :meth:`to_dict` (مثلاً فایل JSON یک اجرای قبلی)."""

        return cls(
            pair_id=str(data["id"]),
            match_type=MatchType(data["type"]),
            match_reason=MatchReason(data["matchReason"]),
            match_score=int(data["matchScore"]),
            account_a=IdentityRecord.from_dict(data["accountA"]),
            account_b=IdentityRecord.from_dict(data["accountB"]),
            status=PairStatus(data["status"]),
            primary_side=Side(data["primarySide"]),
            decision_reason=str(data.get("decisionReason") or ""),
            migration_steps=tuple(MigrationStep.from_dict(step) for step in data.get("migrationSteps") or ()),
            warnings=tuple(data.get("warnings") or ()),
            should_delete_secondary=bool(data.get("shouldDeleteSecondary", False)),
            deletion_reason=str(data.get("deletionReason") or ""),
            display_name=str(data.get("name") or ""),
            employee_code=data.get("employeeCode"),
            email_a_type=EmailType(data.get("emailA_Type") or EmailType.UNKNOWN),
            email_b_type=EmailType(data.get("emailB_Type") or EmailType.UNKNOWN),
            analysis=data.get("aiAnalysis"),
            email_draft=data.get("emailDraft"),
        )
