from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""Run lifecycle models for the analysis pipeline.

AnalysisStatus tracks a single run: not_started → in_flight → (succeeded | failed).
RunStats carries the metrics rendered on the SUMMARY line.
"""

__all__ = [
    "AnalysisStatus",
    "RunStats",
]


class AnalysisStatus(Enum):
    """Status of one analysis run.

    - NOT_STARTED: nothing submitted yet (or session was reset)
    - IN_FLIGHT: the model call is outstanding
    - SUCCEEDED: a validated AnalysisResult is available
    - FAILED: the run ended with an error message
    """
    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RunStats:
    """Metrics for one completed pipeline run."""
    row_count: int  # normalized spreadsheet rows
    group_count: int  # distinct (faculty, section) pairs
    insight_count: int  # insights returned by the model
    started_at: datetime
    finished_at: datetime
    elapsed_seconds: float
