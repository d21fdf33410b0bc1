from __future__ import annotations

from lms_reconcile.core.common.reasons import (
    DELETION_REASON_DUPLICATE,
    DELETION_REASON_PENDING_REVIEW,
    WarningCode,
    warning_message,
)
from lms_reconcile.core.common.types import (
    IdentityRecord,
    MatchReason,
    MatchType,
    PairStatus,
    Platform,
    Side,
)
from lms_reconcile.core.decision import build_pair, compute_gap, decide
from lms_reconcile.core.matching.matcher import MatchLink

TIE = warning_message(WarningCode.TIE_REVIEW_NEEDED)


def _rec(platform: Platform, email: str, *courses: str, name: str = "John") -> IdentityRecord:
    return IdentityRecord(email, name, email, platform, completed_courses=tuple(courses))


def test_more_courses_wins_with_both_counts_in_reason() -> None:
    a = _rec(Platform.TALENT, "j@x.com", "Safety")
    b = _rec(Platform.PHARMACY, "j@x.com", "Safety", "Ethics")
    decision = decide(a, b)
    assert decision.status is PairStatus.DECIDED
    assert decision.primary_side is Side.B
    assert decision.reason == "Pharmacy account has more completed courses (2) than Talent (1)."
    assert decision.warnings == ()


def test_tie_requires_review_and_defaults_to_side_a() -> None:
    a = _rec(Platform.TALENT, "j@x.com", "Safety")
    b = _rec(Platform.PHARMACY, "j@x.com", "Ethics")
    decision = decide(a, b)
    assert decision.status is PairStatus.REVIEW_NEEDED
    assert decision.primary_side is Side.A
    assert "equal course completion count (1)" in decision.reason
    assert decision.warnings == (TIE,)


def test_intra_labels_include_email() -> None:
    a = _rec(Platform.TALENT, "a@x.com", "Safety", "Ethics")
    b = _rec(Platform.TALENT, "b@x.com")
    decision = decide(a, b, MatchType.INTRA_TALENT)
    assert decision.reason.startswith("Talent (a@x.com) account has more")


def test_gap_lists_loser_only_courses_in_loser_order() -> None:
    winner = _rec(Platform.PHARMACY, "j@x.com", "Safety", "Ethics")
    loser = _rec(Platform.TALENT, "j@x.com", "Leadership", "safety ", "Finance")
    steps = compute_gap(winner, loser)
    assert [s.course_name for s in steps] == ["Leadership", "Finance"]
    assert steps[0].action == (
        "Gap Found: 'Leadership' is completed on secondary, missing/incomplete on primary."
    )
    assert compute_gap(winner, winner) == ()


def _link(a: IdentityRecord, b: IdentityRecord) -> MatchLink:
    return MatchLink(MatchType.INTER_PLATFORM, MatchReason.EXACT_EMAIL, 100, a, b)


def test_build_pair_for_decided_pair() -> None:
    a = _rec(Platform.TALENT, "j@x.com")
    b = _rec(Platform.PHARMACY, "j@x.com", "Safety", name="Johnny")
    pair = build_pair(_link(a, b))
    assert pair.primary_account == "Pharmacy"
    assert pair.primary is b and pair.secondary is a
    assert pair.migration_steps == ()
    assert pair.should_delete_secondary is True
    assert pair.deletion_reason == DELETION_REASON_DUPLICATE
    assert pair.display_name == "John"
    assert pair.pair_id == _link(a, b).pair_id


def test_build_pair_for_tie_holds_deletion() -> None:
    a = _rec(Platform.TALENT, "j@x.com", "Safety")
    b = _rec(Platform.PHARMACY, "j@x.com", "Leadership")
    pair = build_pair(_link(a, b))
    assert pair.primary_account == "Review Needed"
    assert pair.is_review_needed
    assert [s.course_name for s in pair.migration_steps] == ["Leadership"]
    assert pair.should_delete_secondary is False
    assert pair.deletion_reason == DELETION_REASON_PENDING_REVIEW
    assert pair.warnings == (TIE,)
