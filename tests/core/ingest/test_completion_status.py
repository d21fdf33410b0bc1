from __future__ import annotations

import pytest

from lms_reconcile.core.ingest.completion import (
    completed_courses_for_row,
    course_label,
    dedupe_courses,
    is_completed_status,
)


@pytest.mark.parametrize(
    "value",
    ["Completed", "completed", "  COMPLETED ", "Completed (achieved pass grade)", "Completed on 2023-01-01"],
)
def test_completed_values(value: str) -> None:
    assert is_completed_status(value)


@pytest.mark.parametrize(
    "value",
    ["Not Completed", "In Progress", "Failed", "Completed - Failed", "completed not graded", "", None, "Passed", 1.0],
)
def test_not_completed_values(value: object) -> None:
    assert not is_completed_status(value)


def test_course_label_uses_column_number_for_blank_header() -> None:
    headers = ("Email", None, "Safety")
    assert course_label(headers, 1) == "Column 2"
    assert course_label(headers, 2) == "Safety"
    assert course_label(headers, 5) == "Column 6"


def test_dedupe_courses_keeps_first_spelling() -> None:
    assert dedupe_courses(["Safety", "SAFETY ", "Ethics", "safety"]) == ("Safety", "Ethics")


def test_metadata_columns_are_never_scanned() -> None:
    headers = ("Email", "Name", "Safety", "Ethics")
    row = ("completed", "Completed", "Completed", "In Progress")
    assert completed_courses_for_row(row, headers, frozenset({0, 1})) == ("Safety",)
