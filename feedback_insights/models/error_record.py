from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for diagnostic error logging.

Each record keeps the underlying cause of a failed run (exception type and
message) so that a generic user-facing message never hides it. The JSON shape
is fixed by contracts/error_log_schema.json.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: Workbook name (or "<bytes>") the run was started for
        stage: Pipeline stage that failed (ingestion / analysis / validation ...)
        error_type: Error classification in UPPER_SNAKE_CASE format
        detail: Underlying cause, e.g. "DeadlineExceeded: 504 Deadline Exceeded"
    """
    timestamp: str  # ISO8601 UTC
    source: str
    stage: str
    error_type: str  # UPPER_SNAKE
    detail: str

    @staticmethod
    def create(source: str, stage: str, error_type: str, detail: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            stage=stage,
            error_type=error_type,
            detail=detail,
        )

    @staticmethod
    def from_exception(source: str, stage: str, error_type: str, exc: BaseException) -> ErrorRecord:
        return ErrorRecord.create(source, stage, error_type, f"{type(exc).__name__}: {exc}")

    def to_json_line(self) -> str:
        """Serialize to a single JSON Lines entry (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
