from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from typing import Any

from ..models.raw_row import RawRow
from .reader import IngestionFormatError

"""Row normalization: heterogeneous spreadsheet headers → RawRow.

Column aliases are explicit ordered lookup tables, evaluated head to tail; the
first alias holding a non-blank value wins. Adding a synonym means appending
it to the relevant tuple below.
"""

__all__ = [
    "FACULTY_NAME_ALIASES",
    "SECTION_ALIASES",
    "RATING_ALIASES",
    "COMMENT_ALIASES",
    "DEFAULT_SECTION",
    "EMPTY_FILE_MESSAGE",
    "normalize_record",
    "normalize_records",
    "parse_rating",
]

FACULTY_NAME_ALIASES: tuple[str, ...] = ("Faculty Name", "Name", "Professor", "Faculty")
SECTION_ALIASES: tuple[str, ...] = ("Section", "Class", "Course ID")
RATING_ALIASES: tuple[str, ...] = ("Rating", "Score", "Average")
COMMENT_ALIASES: tuple[str, ...] = ("Comments", "Feedback", "Review")

DEFAULT_SECTION = "General"
EMPTY_FILE_MESSAGE = "The Excel file seems to be empty or in an unrecognized format."

# Leading numeric prefix, e.g. "4.5/5" → 4.5, " 3 stars" → 3
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def _lookup(record: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for alias in aliases:
        value = record.get(alias)
        if _is_present(value):
            return value
    return None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    try:
        return str(value)
    except ValueError:
        # int beyond the interpreter's digit limit
        return ""


def parse_rating(value: Any) -> float:
    """Parse a rating cell; anything that is not a finite number becomes 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    else:
        match = _LEADING_NUMBER.match(str(value))
        if match is None:
            return 0.0
        number = float(match.group(0))
    if not math.isfinite(number):
        return 0.0
    return number


def normalize_record(record: Mapping[str, Any]) -> RawRow:
    """Map one header → value record onto a RawRow.

    Faculty name falls back to the record's first cell (whatever its header)
    when none of the known aliases is present.
    """
    faculty = _lookup(record, FACULTY_NAME_ALIASES)
    if faculty is None:
        faculty = next(iter(record.values()), None)
    section = _lookup(record, SECTION_ALIASES)
    comment = _lookup(record, COMMENT_ALIASES)
    return RawRow(
        faculty_name=_to_text(faculty),
        section=_to_text(section) if section is not None else DEFAULT_SECTION,
        rating=parse_rating(_lookup(record, RATING_ALIASES)),
        comment=_to_text(comment),
    )


def normalize_records(records: Iterable[Mapping[str, Any]]) -> list[RawRow]:
    """Normalize every record, failing ingestion when there are none.

    Raises:
        IngestionFormatError: zero records (empty sheet or unrecognized layout).
    """
    rows = [normalize_record(r) for r in records]
    if not rows:
        raise IngestionFormatError(EMPTY_FILE_MESSAGE)
    return rows
