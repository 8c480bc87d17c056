from __future__ import annotations

import io
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

"""Workbook reader.

Reads the first sheet of an uploaded workbook into header → value records.
The first row is the header row; the rest are data rows. Only the first sheet
is ever read (multi-sheet ingestion is not supported).
"""

__all__ = [
    "IngestionFormatError",
    "read_feedback_records",
    "describe_source",
]

PARSE_ERROR_MESSAGE = "Failed to parse Excel file. Ensure it is a valid .xlsx or .xls file."


class IngestionFormatError(Exception):
    """Raised when the workbook cannot be read or yields no rows.

    The message is meant to be shown to the user verbatim.
    """


WorkbookSource = Path | str | bytes | BinaryIO


def describe_source(source: WorkbookSource) -> str:
    """Short label for logs and error records."""
    if isinstance(source, (str, Path)):
        return Path(source).name
    if isinstance(source, bytes):
        return "<bytes>"
    return getattr(source, "name", None) or "<stream>"


def _open_workbook(source: WorkbookSource) -> pd.ExcelFile:
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    return pd.ExcelFile(source)


def read_first_sheet(source: WorkbookSource) -> pd.DataFrame:
    """Return the first sheet as a DataFrame (header on row 1, values untyped).

    Raises:
        IngestionFormatError: if the workbook cannot be opened or parsed.
    """
    try:
        xls = _open_workbook(source)
        if not xls.sheet_names:
            raise ValueError("workbook has no sheets")
        first = xls.sheet_names[0]
        # dtype=object: セル値の Python 型をそのまま保持 (int が float 化しないように)
        return xls.parse(first, header=0, dtype=object)
    except Exception as e:
        raise IngestionFormatError(PARSE_ERROR_MESSAGE) from e


def frame_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a sheet DataFrame into header → value records.

    Steps:
    1. Header names are stringified and stripped
    2. Rows with every cell empty are skipped
    3. Empty cells are omitted from the record, so the first key of a record
       is its first non-empty column
    """
    columns = [str(c).strip() for c in df.columns]
    records: list[dict[str, Any]] = []
    for _, raw in df.iterrows():
        if raw.isna().all():
            continue
        record: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if val is None or (not isinstance(val, str) and pd.isna(val)):
                continue
            # 重複ヘッダは先勝ち
            record.setdefault(col, val)
        records.append(record)
    return records


def read_feedback_records(source: WorkbookSource) -> list[dict[str, Any]]:
    """Read the first sheet of ``source`` into a list of header → value records.

    ``source`` may be a filesystem path, the raw workbook bytes, or a binary
    file object. An empty list is returned for a sheet without data rows; the
    caller decides whether that is an error.
    """
    return frame_to_records(read_first_sheet(source))
