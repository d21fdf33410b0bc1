from __future__ import annotations

import pytest

from lms_reconcile.core.common.errors import EnrichmentError
from lms_reconcile.core.common.types import (
    IdentityRecord,
    MatchReason,
    MatchType,
    Platform,
)
from lms_reconcile.core.decision import build_pair
from lms_reconcile.core.enrichment import (
    VERIFIED_NOTE,
    PairUpdate,
    apply_enrichment_failure,
    apply_pair_update,
    parse_pair_update,
)
from lms_reconcile.core.matching.matcher import MatchLink


@pytest.fixture
def tie_pair():
    a = IdentityRecord("T1", "Jane", "jane@x.com", Platform.TALENT, completed_courses=("Safety",))
    b = IdentityRecord("P1", "Jane", "jane@y.com", Platform.PHARMACY, completed_courses=("Leadership",))
    return build_pair(MatchLink(MatchType.INTER_PLATFORM, MatchReason.SAME_PHONE, 90, a, b))


def test_update_changes_narrative_fields_only(tie_pair) -> None:
    update = parse_pair_update(
        {
            "analysis": "Same person, two emails.",
            "deletionReason": "Archive after confirmation.",
            "migrationSteps": [
                {"courseName": "Leadership", "action": "Mark Leadership complete on Talent."},
                {"courseName": "Unknown Course", "action": "ignored"},
            ],
            "warnings": ["Check HR record."],
            "emailDraft": "Hello Jane",
            "verified": True,
        }
    )
    updated = apply_pair_update(tie_pair, update)
    assert updated.analysis == "Same person, two emails."
    assert updated.deletion_reason == "Archive after confirmation."
    assert [(s.course_name, s.action) for s in updated.migration_steps] == [
        ("Leadership", "Mark Leadership complete on Talent.")
    ]
    assert updated.warnings == tie_pair.warnings + ("Check HR record.",)
    assert updated.email_draft == "Hello Jane"
    assert updated.decision_reason.endswith(VERIFIED_NOTE)
    for name in ("pair_id", "match_type", "match_reason", "match_score", "status", "primary_side"):
        assert getattr(updated, name) == getattr(tie_pair, name)


def test_update_is_idempotent(tie_pair) -> None:
    update = PairUpdate(warnings=("Check HR record.",), verified=True)
    once = apply_pair_update(tie_pair, update)
    assert apply_pair_update(once, update) == once


def test_failure_is_recorded_once(tie_pair) -> None:
    failed = apply_enrichment_failure(tie_pair, TimeoutError("slow"))
    assert failed.warnings[-1] == "AI Analysis Failed"
    assert apply_enrichment_failure(failed) == failed
    assert failed.migration_steps == tie_pair.migration_steps


@pytest.mark.parametrize(
    "payload",
    [
        {"analysis": 3},
        {"migrationSteps": {"courseName": "x"}},
        {"migrationSteps": [{"courseName": "x"}]},
        {"warnings": "oops"},
        {"verified": "yes"},
    ],
)
def test_parse_rejects_malformed_updates(payload: dict) -> None:
    with pytest.raises(EnrichmentError):
        parse_pair_update(payload)
