from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from feedback_insights.excel.reader import (
    PARSE_ERROR_MESSAGE,
    IngestionFormatError,
    describe_source,
    read_feedback_records,
)


def test_read_first_sheet_records(make_workbook):
    path = make_workbook(
        [
            {"Faculty Name": "Dr. Lee", "Section": "A1", "Rating": 4, "Comments": "great"},
            {"Faculty Name": "Dr. Lee", "Section": "A1", "Rating": 2, "Comments": None},
        ],
        extra_sheets={"Other": [{"Faculty Name": "Ignored", "Rating": 1}]},
    )
    records = read_feedback_records(path)
    assert len(records) == 2
    assert records[0] == {"Faculty Name": "Dr. Lee", "Section": "A1", "Rating": 4, "Comments": "great"}
    # 空セルはレコードから除外される
    assert "Comments" not in records[1]
    assert all(r.get("Faculty Name") != "Ignored" for r in records)


def test_read_from_bytes(make_workbook):
    path = make_workbook([{"Name": "Dr. Kim", "Score": 5}])
    records = read_feedback_records(path.read_bytes())
    assert records == [{"Name": "Dr. Kim", "Score": 5}]


def test_headers_are_stripped(make_workbook):
    path = make_workbook([{" Rating ": 3, "Name": "A"}])
    assert read_feedback_records(path)[0]["Rating"] == 3


def test_blank_rows_are_skipped(make_workbook):
    path = make_workbook(
        [
            {"Name": "A", "Rating": 1},
            {"Name": None, "Rating": None},
            {"Name": "B", "Rating": 2},
        ]
    )
    records = read_feedback_records(path)
    assert [r["Name"] for r in records] == ["A", "B"]


def test_first_key_is_first_non_empty_cell(make_workbook):
    path = make_workbook([{"Teacher": None, "Instructor": "Dr. Park", "Notes": "x"}, {"Teacher": "T", "Instructor": "I"}])
    records = read_feedback_records(path)
    assert next(iter(records[0].values())) == "Dr. Park"


def test_header_only_sheet_returns_no_records(temp_workdir: Path):
    p = temp_workdir / "data" / "empty.xlsx"
    pd.DataFrame(columns=["Name", "Rating"]).to_excel(p, index=False)
    assert read_feedback_records(p) == []


def test_invalid_workbook_raises(temp_workdir: Path):
    bogus = temp_workdir / "data" / "not_excel.xlsx"
    bogus.write_text("this is not a workbook", encoding="utf-8")
    with pytest.raises(IngestionFormatError) as e:
        read_feedback_records(bogus)
    assert str(e.value) == PARSE_ERROR_MESSAGE
    assert e.value.__cause__ is not None


def test_invalid_bytes_raise():
    with pytest.raises(IngestionFormatError):
        read_feedback_records(b"\x00\x01garbage")


def test_describe_source():
    assert describe_source(Path("/tmp/x/feedback.xlsx")) == "feedback.xlsx"
    assert describe_source(b"abc") == "<bytes>"
