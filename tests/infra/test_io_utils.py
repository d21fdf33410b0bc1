from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

from lms_reconcile.core.common.types import MatchedPair
from lms_reconcile.core.engine import reconcile
from lms_reconcile.infra.errors import SourceReadError
from lms_reconcile.infra.io_utils import (
    migration_steps_frame,
    pairs_frame,
    read_pairs_json,
    read_source,
    write_pairs_json,
    write_reconciliation_workbook,
)


@pytest.fixture
def demo_result(demo_sources):
    talent, pharmacy, master = demo_sources
    return reconcile(talent, pharmacy, master)


def test_read_csv_source_strips_bom(tmp_path: Path) -> None:
    path = tmp_path / "talent.csv"
    path.write_text("\ufeffid,email\nT1,a@x.com\n", encoding="utf-8")
    source = read_source(path)
    assert source.text == "id,email\nT1,a@x.com\n"
    assert source.grid is None
    assert source.name == "talent.csv"


def test_read_excel_source_returns_raw_grid(tmp_path: Path) -> None:
    path = tmp_path / "pharmacy.xlsx"
    frame = pd.DataFrame(
        [["Report", None, None], ["Name", "Email", "Safety"], ["Jo", "jo@x.com", "Completed"]]
    )
    frame.to_excel(path, header=False, index=False)
    source = read_source(path)
    assert source.text is None
    assert source.grid[1] == ["Name", "Email", "Safety"]
    assert source.grid[2] == ["Jo", "jo@x.com", "Completed"]
    assert source.grid[0][1] == ""


def test_missing_and_unsupported_sources(tmp_path: Path) -> None:
    with pytest.raises(SourceReadError, match="Source file not found"):
        read_source(tmp_path / "absent.csv")
    pdf = tmp_path / "export.pdf"
    pdf.write_bytes(b"%PDF")
    with pytest.raises(SourceReadError, match="Unsupported file type"):
        read_source(pdf)
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"not a zip archive")
    with pytest.raises(SourceReadError, match="Cannot read workbook"):
        read_source(broken)


def test_json_output_round_trips_pairs(tmp_path: Path, demo_result) -> None:
    target = write_pairs_json(demo_result, tmp_path / "out" / "pairs.json")
    data = json.loads(target.read_text(encoding="utf-8"))
    assert set(data) == {"pairs", "sources", "summary"}
    assert data["summary"]["total_pairs"] == 3
    assert data["pairs"][0]["primaryAccount"] == "Review Needed"
    restored = read_pairs_json(target)
    assert restored == list(demo_result.pairs)
    assert list(target.parent.iterdir()) == [target]


def test_read_pairs_json_accepts_raw_list_and_rejects_garbage(tmp_path: Path, demo_result) -> None:
    raw = tmp_path / "raw.json"
    raw.write_text(json.dumps([p.to_dict() for p in demo_result.pairs]), encoding="utf-8")
    assert [p.pair_id for p in read_pairs_json(raw)] == [p.pair_id for p in demo_result.pairs]
    bad = tmp_path / "bad.json"
    bad.write_text('{"pairs": [{"id": "X"}]}', encoding="utf-8")
    with pytest.raises(SourceReadError, match="Malformed pair record"):
        read_pairs_json(bad)
    invalid = tmp_path / "invalid.json"
    invalid.write_text("{", encoding="utf-8")
    with pytest.raises(SourceReadError, match="Invalid JSON"):
        read_pairs_json(invalid)


def test_frames_have_one_row_per_pair_and_step(demo_result) -> None:
    pairs: tuple[MatchedPair, ...] = demo_result.pairs
    frame = pairs_frame(pairs)
    assert len(frame) == 3
    assert frame.loc[0, "Primary Account"] == "Review Needed"
    steps = migration_steps_frame(pairs)
    assert steps["Course"].tolist() == ["Leadership"]
    assert list(pairs_frame([]).columns) == list(frame.columns)


def test_workbook_has_review_sheets(tmp_path: Path, demo_result) -> None:
    target = write_reconciliation_workbook(demo_result, tmp_path / "review.xlsx")
    workbook = load_workbook(target)
    assert workbook.sheetnames == ["Pairs", "Migration Steps", "Summary", "Sources"]
    pairs_sheet = workbook["Pairs"]
    assert pairs_sheet["A1"].value == "Pair ID"
    assert pairs_sheet.freeze_panes == "A2"
    assert pairs_sheet.max_row == 4


def test_workbook_from_plain_pairs_skips_summary(tmp_path: Path, demo_result) -> None:
    target = write_reconciliation_workbook(list(demo_result.pairs), tmp_path / "pairs.xlsx")
    assert load_workbook(target).sheetnames == ["Pairs", "Migration Steps"]
