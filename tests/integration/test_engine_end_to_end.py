from __future__ import annotations

import pytest

from lms_reconcile.core.common.types import (
    EmailType,
    MatchReason,
    PairStatus,
    Platform,
    SourceTable,
)
from lms_reconcile.core.engine import reconcile
from lms_reconcile.core.policy.config import MatchConfiguration


def test_demo_sources_produce_three_pairs(demo_sources) -> None:
    talent, pharmacy, master = demo_sources
    result = reconcile(talent, pharmacy, master)
    jane, john, ahmed = result.pairs

    assert jane.match_reason is MatchReason.SAME_PHONE
    assert jane.match_score == 90
    assert jane.status is PairStatus.REVIEW_NEEDED
    assert [s.course_name for s in jane.migration_steps] == ["Leadership"]
    assert (jane.email_a_type, jane.email_b_type) == (EmailType.UNKNOWN, EmailType.OFFICIAL)
    assert jane.employee_code == "E002"

    assert john.match_reason is MatchReason.FUZZY_NAME
    assert john.match_score == 100
    assert john.primary_account == "Review Needed"
    assert john.migration_steps == ()
    assert (john.email_a_type, john.email_b_type) == (EmailType.OFFICIAL, EmailType.PERSONAL)
    assert john.employee_code == "E001"

    assert ahmed.match_reason is MatchReason.FUZZY_NAME
    assert 85 <= ahmed.match_score < 100
    assert ahmed.primary_account == "Pharmacy"
    assert ahmed.status is PairStatus.DECIDED
    assert ahmed.migration_steps == ()
    assert ahmed.should_delete_secondary is True
    assert ahmed.employee_code == "E004"

    summary = result.summary
    assert summary.total_pairs == 3
    assert summary.needs_review == 2
    assert summary.ready_to_merge == 1
    assert summary.total_migration_steps == 1
    assert [r.platform for r in result.reports] == [Platform.TALENT, Platform.PHARMACY, Platform.MASTER]


def test_robert_and_bob_stay_unmatched(demo_sources) -> None:
    talent, pharmacy, master = demo_sources
    result = reconcile(talent, pharmacy, master)
    names = {pair.account_a.full_name for pair in result.pairs}
    assert "Robert Brown" not in names


def test_exact_email_pharmacy_wins_without_gaps() -> None:
    talent = SourceTable(text="id,fullname,email,Safety,Ethics\nT1,John,john@x.com,Completed,\n")
    pharmacy = SourceTable(
        text="id,fullname,email,Safety,Ethics\nP1,John,john@x.com,Completed,Completed\n"
    )
    (pair,) = reconcile(talent, pharmacy).pairs
    assert pair.match_reason is MatchReason.EXACT_EMAIL
    assert pair.match_score == 100
    assert pair.primary_account == "Pharmacy"
    assert pair.secondary_email == "john@x.com"
    assert pair.migration_steps == ()
    assert pair.decision_reason == "Pharmacy account has more completed courses (2) than Talent (1)."


def test_tie_with_distinct_courses_yields_review_and_gap() -> None:
    talent = SourceTable(text="id,fullname,email,Safety,Ethics\nT1,Sam Lee,sam@x.com,Completed,\n")
    pharmacy = SourceTable(text="id,fullname,email,Safety,Ethics\nP1,Sam Lee,s.lee@y.com,,Completed\n")
    (pair,) = reconcile(talent, pharmacy).pairs
    assert pair.primary_account == "Review Needed"
    assert [s.course_name for s in pair.migration_steps] == ["Ethics"]
    assert pair.should_delete_secondary is False


def test_preamble_and_secondary_keyword_header() -> None:
    talent = SourceTable(
        grid=[
            ["Quarterly export", None, None, None],
            [None, None, None, None],
            ["Full Name", "Mobile", "Contact", "Safety"],
            ["Nour Adel", "0100", "nour@x.com", "Completed"],
        ]
    )
    pharmacy = SourceTable(text="name,email,Safety\nNour Adel,nour@x.com,\n")
    result = reconcile(talent, pharmacy)
    (pair,) = result.pairs
    assert pair.account_a.completed_courses == ("Safety",)
    assert pair.account_a.full_name == "Nour Adel"
    assert result.reports[0].header_row == 1
    assert result.reports[0].email_resolution == "content"


def test_empty_and_missing_sources_give_no_pairs() -> None:
    result = reconcile(None, SourceTable(text=""))
    assert result.pairs == ()
    assert "source is empty" in result.reports[0].notes
    assert result.to_dict()["summary"]["total_pairs"] == 0


def test_intra_scan_adds_duplicates_after_inter_pairs() -> None:
    talent = SourceTable(
        text=(
            "id,fullname,email,phone,Safety\n"
            "T1,Dina Sami,dina@x.com,111,Completed\n"
            "T2,Dina Sami,dina.s@y.com,,\n"
        )
    )
    pharmacy = SourceTable(text="id,fullname,email,phone,Safety\nP1,Other Person,o@x.com,111,\n")
    config = MatchConfiguration(check_intra_platform=True)
    pairs = reconcile(talent, pharmacy, config=config).pairs
    assert [str(p.match_type) for p in pairs] == ["Inter-Platform", "Intra-Talent"]
    intra = pairs[1]
    assert intra.decision_reason.startswith("Talent (dina@x.com) account has more")
    assert intra.pair_id.startswith("INT-")


@pytest.mark.parametrize("workers", [1, 4])
def test_result_does_not_depend_on_worker_count(demo_sources, workers: int) -> None:
    talent, pharmacy, master = demo_sources
    baseline = reconcile(talent, pharmacy, master).to_dict()
    parallel = reconcile(talent, pharmacy, master, MatchConfiguration(workers=workers)).to_dict()
    assert parallel == baseline


def test_progress_reports_increase_to_100(demo_sources) -> None:
    talent, pharmacy, master = demo_sources
    seen: list[int] = []
    reconcile(talent, pharmacy, master, progress=lambda pct, _msg: seen.append(pct))
    assert seen == sorted(seen)
    assert seen[-1] == 100
