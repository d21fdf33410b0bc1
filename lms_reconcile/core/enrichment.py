"""مرز خالص غنی‌سازی روایی (تحلیل، متن حذف، پیش‌نویس ایمیل).

به‌روزرسانی‌ها ممکن است دیر برسند، هرگز نرسند یا شکست بخورند؛ در هر حالت
فیلدهای تطبیق و تصمیم (نوع، دلیل تطبیق، طرف اصلی، وضعیت و فهرست گام‌ها)
دست‌نخورده می‌مانند.

مثال::

    >>> from lms_reconcile.core.common.types import (
    ...     IdentityRecord, MatchedPair, MatchReason, MatchType, PairStatus, Platform, Side)
    >>> a = IdentityRecord("T1", "J", "j@x.com", Platform.TALENT)
    >>> b = IdentityRecord("P1", "J", "j@x.com", Platform.PHARMACY)
    >>> pair = MatchedPair("DUP-1", MatchType.INTER_PLATFORM, MatchReason.EXACT_EMAIL, 100,
    ...                    a, b, PairStatus.DECIDED, Side.A, "Talent wins.")
    >>> updated = apply_pair_update(pair, PairUpdate(analysis="Looks fine", verified=True))
    >>> updated.analysis, updated.decision_reason
    ('Looks fine', 'Talent wins. [AI Verified]')
    >>> apply_enrichment_failure(pair, RuntimeError("timeout")).warnings
    ('AI Analysis Failed',)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Tuple

from lms_reconcile.core.common.errors import EnrichmentError
from lms_reconcile.core.common.reasons import WarningCode, warning_message
from lms_reconcile.core.common.types import MatchedPair, MigrationStep

__all__ = [
    "VERIFIED_NOTE",
    "PairUpdate",
    "parse_pair_update",
    "apply_pair_update",
    "apply_enrichment_failure",
]

VERIFIED_NOTE = "[AI Verified]"


@dataclass(frozen=True, slots=True)
class PairUpdate:
    """محتوای بیرونی برای یک جفت؛ فیلد ``None`` یعنی بدون تغییر.

    ``step_actions`` نگاشت نام دوره به متن جدید اقدام است.
    """

    analysis: Optional[str] = None
    deletion_reason: Optional[str] = None
    step_actions: Mapping[str, str] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()
    email_draft: Optional[str] = None
    verified: bool = False


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise EnrichmentError(func="parse_pair_update", column=key, value=value)
    return value


def parse_pair_update(data: Mapping[str, Any]) -> PairUpdate:
    """تبدیل دیکشنری (مثلاً پاسخ JSON) به :class:`PairUpdate`.

    کلیدها: ``analysis``، ``deletionReason``، ``migrationSteps`` (فهرست
    ``{"courseName", "action"}``)، ``warnings``، ``emailDraft`` و ``verified``.

    Raises:
        EnrichmentError: نوع نامعتبر برای یکی از کلیدها.
    """

    steps_raw = data.get("migrationSteps") or []
    if not isinstance(steps_raw, list):
        raise EnrichmentError(func="parse_pair_update", column="migrationSteps", value=steps_raw)
    step_actions: dict[str, str] = {}
    for item in steps_raw:
        if not isinstance(item, Mapping):
            raise EnrichmentError(func="parse_pair_update", column="migrationSteps", value=item)
        course = item.get("courseName")
        action = item.get("action")
        if not isinstance(course, str) or not isinstance(action, str):
            raise EnrichmentError(func="parse_pair_update", column="migrationSteps", value=item)
        step_actions[course] = action
    warnings_raw = data.get("warnings") or []
    if not isinstance(warnings_raw, list) or not all(isinstance(w, str) for w in warnings_raw):
        raise EnrichmentError(func="parse_pair_update", column="warnings", value=warnings_raw)
    verified = data.get("verified", False)
    if not isinstance(verified, bool):
        raise EnrichmentError(func="parse_pair_update", column="verified", value=verified)
    return PairUpdate(
        analysis=_optional_text(data, "analysis"),
        deletion_reason=_optional_text(data, "deletionReason"),
        step_actions=step_actions,
        warnings=tuple(warnings_raw),
        email_draft=_optional_text(data, "emailDraft"),
        verified=verified,
    )


def _merge_steps(steps: Tuple[MigrationStep, ...], actions: Mapping[str, str]) -> Tuple[MigrationStep, ...]:
    if not actions:
        return steps
    return tuple(
        replace(step, action=actions[step.course_name]) if step.course_name in actions else step
        for step in steps
    )


def apply_pair_update(pair: MatchedPair, update: PairUpdate) -> MatchedPair:
    """اعمال به‌روزرسانی روایی بدون تغییر فیلدهای تطبیق یا تصمیم.

    متن اقدام گام‌ها فقط برای دوره‌های موجود جایگزین می‌شود؛ دورهٔ ناشناخته
    نادیده گرفته می‌شود تا فهرست گام‌ها همان خروجی موتور بماند.
    """

    decision_reason = pair.decision_reason
    if update.verified and VERIFIED_NOTE not in decision_reason:
        decision_reason = f"{decision_reason} {VERIFIED_NOTE}".strip()
    extra = tuple(w for w in update.warnings if w not in pair.warnings)
    return replace(
        pair,
        analysis=update.analysis if update.analysis is not None else pair.analysis,
        deletion_reason=(
            update.deletion_reason if update.deletion_reason is not None else pair.deletion_reason
        ),
        migration_steps=_merge_steps(pair.migration_steps, update.step_actions),
        warnings=pair.warnings + extra,
        email_draft=update.email_draft if update.email_draft is not None else pair.email_draft,
        decision_reason=decision_reason,
    )


def apply_enrichment_failure(pair: MatchedPair, error: BaseException | None = None) -> MatchedPair:
    """ثبت شکست غنی‌سازی به‌صورت هشدار؛ سایر فیلدها حفظ می‌شوند."""

    message = warning_message(WarningCode.ENRICHMENT_FAILED)
    if message in pair.warnings:
        return pair
    return replace(pair, warnings=pair.warnings + (message,))
