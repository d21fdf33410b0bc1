"""تصمیم قطعی حساب اصلی/ثانویه و تحلیل شکاف دوره‌ها (Core-only).

قانون طلایی: حسابی که دورهٔ تکمیل‌شدهٔ بیشتری دارد اصلی است. در تساوی،
جفت به بازبینی دستی ارجاع می‌شود (``review_needed``) و طرف A فقط برای
محاسبهٔ شکاف به‌طور موقت اصلی فرض می‌شود.

مثال::

    >>> from lms_reconcile.core.common.types import IdentityRecord, Platform
    >>> a = IdentityRecord("T1", "J", "j@x.com", Platform.TALENT, completed_courses=("Safety",))
    >>> b = IdentityRecord("P1", "J", "j@x.com", Platform.PHARMACY, completed_courses=("Safety", "Ethics"))
    >>> [step.course_name for step in compute_gap(winner=b, loser=a)]
    []
    >>> [step.course_name for step in compute_gap(winner=a, loser=b)]
    ['Ethics']
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from lms_reconcile.core.common.normalization import clean_text
from lms_reconcile.core.common.reasons import (
    DELETION_REASON_DUPLICATE,
    DELETION_REASON_PENDING_REVIEW,
    GAP_ACTION_TEMPLATE,
    WarningCode,
    warning_message,
)
from lms_reconcile.core.common.types import (
    IdentityRecord,
    MatchedPair,
    MatchType,
    MigrationStep,
    PairStatus,
    Side,
)
from lms_reconcile.core.matching.matcher import MatchLink

__all__ = ["Decision", "decide", "compute_gap", "build_pair"]


@dataclass(frozen=True, slots=True)
class Decision:
    status: PairStatus
    primary_side: Side
    reason: str
    warnings: Tuple[str, ...] = ()


def _label(record: IdentityRecord, match_type: MatchType) -> str:
    if match_type.is_intra:
        return f"{record.platform} ({record.email})"
    return str(record.platform)


def decide(
    account_a: IdentityRecord,
    account_b: IdentityRecord,
    match_type: MatchType = MatchType.INTER_PLATFORM,
) -> Decision:
    """مقایسهٔ تعداد دوره‌های تکمیل‌شده و ساخت متن دلیل با هر دو شمارش.

    >>> from lms_reconcile.core.common.types import Platform
    >>> a = IdentityRecord("T1", "J", "j@x.com", Platform.TALENT)
    >>> b = IdentityRecord("P1", "J", "j@x.com", Platform.PHARMACY)
    >>> decision = decide(a, b)
    >>> decision.status, decision.primary_side, len(decision.warnings)
    (<PairStatus.REVIEW_NEEDED: 'review_needed'>, <Side.A: 'A'>, 1)
    """

    count_a = account_a.completed_count
    count_b = account_b.completed_count
    label_a = _label(account_a, match_type)
    label_b = _label(account_b, match_type)
    if count_a > count_b:
        return Decision(
            status=PairStatus.DECIDED,
            primary_side=Side.A,
            reason=f"{label_a} account has more completed courses ({count_a}) than {label_b} ({count_b}).",
        )
    if count_b > count_a:
        return Decision(
            status=PairStatus.DECIDED,
            primary_side=Side.B,
            reason=f"{label_b} account has more completed courses ({count_b}) than {label_a} ({count_a}).",
        )
    return Decision(
        status=PairStatus.REVIEW_NEEDED,
        primary_side=Side.A,
        reason=(
            f"Both accounts have equal course completion count ({count_a}). "
            f"Manual selection recommended (defaulting to {label_a} for gap view)."
        ),
        warnings=(warning_message(WarningCode.TIE_REVIEW_NEEDED),),
    )


def compute_gap(winner: IdentityRecord, loser: IdentityRecord) -> Tuple[MigrationStep, ...]:
    """دوره‌های تکمیل‌شدهٔ حساب ثانویه که در حساب اصلی تکمیل نشده‌اند.

    ترتیب خروجی همان ترتیب دوره‌های حساب ثانویه است.
    """

    present = {clean_text(course) for course in winner.completed_courses}
    steps = []
    for course in loser.completed_courses:
        if clean_text(course) in present:
            continue
        steps.append(MigrationStep(course_name=course, action=GAP_ACTION_TEMPLATE.format(course=course)))
    return tuple(steps)


def build_pair(link: MatchLink) -> MatchedPair:
    """ساخت :class:`MatchedPair` کامل (بدون اطلاعات دایرکتوری) از یک تطبیق."""

    decision = decide(link.account_a, link.account_b, link.match_type)
    if decision.primary_side is Side.A:
        winner, loser = link.account_a, link.account_b
    else:
        winner, loser = link.account_b, link.account_a
    review_needed = decision.status is PairStatus.REVIEW_NEEDED
    return MatchedPair(
        pair_id=link.pair_id,
        match_type=link.match_type,
        match_reason=link.reason,
        match_score=link.score,
        account_a=link.account_a,
        account_b=link.account_b,
        status=decision.status,
        primary_side=decision.primary_side,
        decision_reason=decision.reason,
        migration_steps=compute_gap(winner, loser),
        warnings=decision.warnings,
        should_delete_secondary=not review_needed,
        deletion_reason=DELETION_REASON_PENDING_REVIEW if review_needed else DELETION_REASON_DUPLICATE,
        display_name=link.account_a.full_name or link.account_b.full_name,
    )
