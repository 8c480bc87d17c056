from __future__ import annotations

import math
from datetime import date

import pytest

from feedback_insights.excel.normalizer import (
    DEFAULT_SECTION,
    EMPTY_FILE_MESSAGE,
    normalize_record,
    normalize_records,
    parse_rating,
)
from feedback_insights.excel.reader import IngestionFormatError
from feedback_insights.models.raw_row import RawRow

"""Unit tests for row normalization (alias tables, fallbacks, coercion)."""


def test_normalize_known_headers():
    row = normalize_record({"Faculty Name": "Dr. Lee", "Section": "A1", "Rating": 4, "Comments": "great"})
    assert row == RawRow(faculty_name="Dr. Lee", section="A1", rating=4.0, comment="great")


def test_alias_order_first_present_wins():
    row = normalize_record({"Professor": "Third", "Name": "Second", "Faculty Name": "First"})
    assert row.faculty_name == "First"
    row = normalize_record({"Professor": "Third", "Faculty": "Fourth"})
    assert row.faculty_name == "Third"


def test_blank_alias_falls_through_to_next():
    row = normalize_record({"Faculty Name": "   ", "Name": "Dr. Kim", "Score": "3", "Rating": ""})
    assert row.faculty_name == "Dr. Kim"
    assert row.rating == 3.0


def test_secondary_aliases_for_every_field():
    row = normalize_record({"Faculty": "Dr. Ito", "Course ID": "CS101", "Average": 2.5, "Review": "ok"})
    assert row.section == "CS101"
    assert row.rating == 2.5
    assert row.comment == "ok"

    row = normalize_record({"Name": "Dr. Ito", "Class": "B", "Feedback": "fine"})
    assert row.section == "B"
    assert row.comment == "fine"


def test_unrecognized_headers_fall_back_to_first_cell():
    row = normalize_record({"Instructor": "Dr. Park", "Stars": "five", "Notes": "x"})
    assert row.faculty_name == "Dr. Park"
    assert row.section == DEFAULT_SECTION
    assert row.rating == 0.0
    assert not math.isnan(row.rating)
    assert row.comment == ""


def test_empty_record_yields_empty_name():
    row = normalize_record({})
    assert row.faculty_name == ""
    assert row.section == "General"


def test_values_are_coerced_to_text():
    row = normalize_record({"Name": 12345, "Section": 101.0, "Rating": "4", "Comments": 7})
    assert row.faculty_name == "12345"
    assert row.section == "101"
    assert row.comment == "7"
    row = normalize_record({"Name": "X", "Section": date(2024, 9, 1)})
    assert row.section == "2024-09-01"


def test_huge_integer_cells_normalize_without_error():
    huge = 10**5000
    row = normalize_record({"Name": huge, "Section": "101", "Rating": huge, "Comments": huge})
    assert row.faculty_name == ""
    assert row.rating == 0.0
    assert row.comment == ""


def test_section_text_is_not_trimmed():
    assert normalize_record({"Name": "A", "Section": "101 "}).section == "101 "


@pytest.mark.parametrize(
    "value, expected",
    [
        (4, 4.0),
        (4.5, 4.5),
        ("3.25", 3.25),
        ("4.5/5", 4.5),
        (" 2 stars", 2.0),
        (".5", 0.5),
        ("-1", -1.0),
        ("excellent", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        ("1e400", 0.0),
        (10**400, 0.0),
        (-(10**400), 0.0),
    ],
)
def test_parse_rating(value, expected):
    assert parse_rating(value) == expected


def test_normalize_records_preserves_order():
    rows = normalize_records([{"Name": "A"}, {"Name": "B"}, {"Name": "C"}])
    assert [r.faculty_name for r in rows] == ["A", "B", "C"]


def test_normalize_records_empty_is_ingestion_error():
    with pytest.raises(IngestionFormatError) as e:
        normalize_records([])
    assert str(e.value) == EMPTY_FILE_MESSAGE
