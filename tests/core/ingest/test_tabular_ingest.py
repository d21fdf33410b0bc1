from __future__ import annotations

import pytest

from lms_reconcile.core.common.types import SourceTable
from lms_reconcile.core.ingest.tabular import (
    detect_delimiter,
    detect_header_row,
    grid_to_rows,
    load_table,
    parse_delimited_text,
)


@pytest.mark.parametrize(
    "sample, expected",
    [
        ("a,b,c\n1,2,3", ","),
        ("a;b;c\n1;2;3", ";"),
        ("a\tb\tc\n1\t2\t3", "\t"),
        ("a;b,c", ","),
        ("a\tb;c;d", ";"),
        ("", ","),
    ],
)
def test_detect_delimiter_counts_first_500_characters(sample: str, expected: str) -> None:
    assert detect_delimiter(sample) == expected


def test_detect_delimiter_ignores_text_after_sample_window() -> None:
    text = "a,b,c\n" + "x" * 600 + ";;;;;;;;"
    assert detect_delimiter(text) == ","


def test_parse_delimited_text_keeps_quoted_commas_and_skips_blank_lines() -> None:
    rows, sep = parse_delimited_text('id,name,email\n\n"1","Doe, John",j@x.com\n   \n2,Ann,a@x.com\n')
    assert sep == ","
    assert rows == [
        ("id", "name", "email"),
        ("1", "Doe, John", "j@x.com"),
        ("2", "Ann", "a@x.com"),
    ]


def test_parse_delimited_text_semicolon_export() -> None:
    rows, sep = parse_delimited_text("Email;Name;Safety\r\nj@x.com;John;Completed\r\n")
    assert sep == ";"
    assert rows[1] == ("j@x.com", "John", "Completed")


def test_detect_header_row_first_signal_wins() -> None:
    rows = [
        ("Report generated 2024-01-01",),
        ("Name", "Phone", "Notes"),
        ("Email", "Name"),
    ]
    # ردیف ۱ با دو کلیدواژهٔ ثانویه زودتر از ردیف ایمیل پیدا می‌شود.
    assert detect_header_row(rows) == 1
    assert detect_header_row([("Export",), ("Email Address", "x")]) == 1


def test_detect_header_row_secondary_keyword_fallback() -> None:
    rows = [
        ("LMS export",),
        ("Full Name", "Mobile", "Safety"),
        ("John", "0912", "Completed"),
    ]
    assert detect_header_row(rows) == 1


def test_detect_header_row_defaults_to_zero() -> None:
    rows = [("a", "b"), ("1", "2")]
    assert detect_header_row(rows) == 0


def test_detect_header_row_scans_at_most_twenty_rows() -> None:
    rows = [("x",)] * 20 + [("Email", "Name")]
    assert detect_header_row(rows) == 0


def test_grid_to_rows_stringifies_cells_and_drops_empty_rows() -> None:
    grid = [["id", "email"], [None, float("nan")], [1.0, "A@X.com"], ["", "  "]]
    assert grid_to_rows(grid) == [("id", "email"), ("1", "A@X.com")]


def test_load_table_same_logic_for_text_and_grid() -> None:
    text = "Banner\nEmail,Name,Safety\nj@x.com,John,Completed\n"
    grid = [["Banner", None, None], ["Email", "Name", "Safety"], ["j@x.com", "John", "Completed"]]
    from_text = load_table(SourceTable(text=text))
    from_grid = load_table(SourceTable(grid=grid))
    assert from_text.header_row == from_grid.header_row == 1
    assert from_text.headers == from_grid.headers == ("Email", "Name", "Safety")
    assert from_text.data_rows[0] == from_grid.data_rows[0] == ("j@x.com", "John", "Completed")
    assert from_text.delimiter == ","
    assert from_grid.delimiter is None


def test_load_table_blank_header_cells_become_none() -> None:
    table = load_table(SourceTable(text="Email,,Safety\nj@x.com,Completed,\n"))
    assert table.headers == ("Email", None, "Safety")


def test_load_table_empty_source() -> None:
    table = load_table(SourceTable())
    assert table.rows == ()
    assert table.data_rows == ()


def test_parse_delimited_text_open_quote_stays_on_its_line() -> None:
    text = 'email,Safety\n"a@x.com,Completed\nb@x.com,Completed\nc@x.com,Completed\n'
    rows, _ = parse_delimited_text(text)
    assert rows == [
        ("email", "Safety"),
        ("a@x.com", "Completed"),
        ("b@x.com", "Completed"),
        ("c@x.com", "Completed"),
    ]


def test_parse_delimited_text_pads_short_rows_and_drops_empty_tail() -> None:
    rows, _ = parse_delimited_text("id,name,email,,\nT1,John\nT2,Ann,a@x.com,,\n")
    assert rows == [("id", "name", "email"), ("T1", "John", ""), ("T2", "Ann", "a@x.com")]


@pytest.mark.parametrize("source", [SourceTable(text="  \n\r\n"), SourceTable(grid=[]), SourceTable(text="")])
def test_load_table_blank_sources_are_empty(source: SourceTable) -> None:
    assert source.is_empty
    table = load_table(source)
    assert table.rows == () and table.headers == ()
    assert table.delimiter is None
