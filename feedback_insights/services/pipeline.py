from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from ..excel.normalizer import normalize_records
from ..excel.reader import IngestionFormatError, WorkbookSource, describe_source, read_feedback_records
from ..logging.error_log import ErrorLogBuffer
from ..models.analysis_result import AnalysisResult
from ..models.analysis_run import AnalysisStatus, RunStats
from ..models.error_record import ErrorRecord
from .aggregator import DEFAULT_COMMENT_SAMPLE_LIMIT, aggregate_feedback
from .analysis_client import AnalysisClient, AnalysisError
from .request_builder import build_analysis_request

logger = logging.getLogger(__name__)

"""Pipeline orchestration.

Runs one upload through read → normalize → aggregate → build request →
analyze, strictly sequentially. AnalysisSession keeps the state of the single
run a user has in flight (status, progress, result or error message) and
discards it on reset().
"""

__all__ = [
    "PipelineOutcome",
    "SessionBusyError",
    "AnalysisSession",
    "run_pipeline",
]

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred during processing."


class ProgressSink(Protocol):
    def advance_to(self, percent: int, message: str = "") -> None: ...


class SessionBusyError(Exception):
    """Raised when a second analysis is started while one is in flight."""


@dataclass(frozen=True)
class PipelineOutcome:
    result: AnalysisResult
    stats: RunStats


def _advance(progress: ProgressSink | None, percent: int, message: str) -> None:
    if progress is not None:
        progress.advance_to(percent, message)
    logger.debug(f"progress {percent}%: {message}")


def run_pipeline(
    source: WorkbookSource,
    client: AnalysisClient,
    *,
    comment_sample_limit: int = DEFAULT_COMMENT_SAMPLE_LIMIT,
    progress: ProgressSink | None = None,
    cancel_event: threading.Event | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> PipelineOutcome:
    """Analyze one workbook end to end.

    Raises:
        IngestionFormatError: unreadable workbook or no rows
        AnalysisError: any failure of the model call or its validation
    """
    source_label = describe_source(source)
    started_at = datetime.now(UTC)

    _advance(progress, 10, "Parsing Excel records...")
    try:
        rows = normalize_records(read_feedback_records(source))
    except IngestionFormatError as e:
        cause = e.__cause__ or e
        logger.error(f"ingestion: {source_label}: {e} (cause: {type(cause).__name__}: {cause})")
        if error_log is not None:
            error_log.append(ErrorRecord.from_exception(source_label, "ingestion", "INGESTION_FORMAT_ERROR", cause))
        raise
    logger.info(f"ingestion: {source_label}: {len(rows)} row(s)")

    _advance(progress, 25, "Grouping feedback by faculty and section...")
    groups = aggregate_feedback(rows, comment_sample_limit=comment_sample_limit)
    request = build_analysis_request(groups)
    logger.info(f"aggregation: {len(groups)} group(s), prompt {len(request.prompt)} chars")

    _advance(progress, 40, "Gemini is performing sentiment analysis...")
    result = client.analyze(request, cancel_event=cancel_event, source=source_label)

    _advance(progress, 100, "Analysis complete")
    finished_at = datetime.now(UTC)
    stats = RunStats(
        row_count=len(rows),
        group_count=len(groups),
        insight_count=len(result.insights),
        started_at=started_at,
        finished_at=finished_at,
        elapsed_seconds=(finished_at - started_at).total_seconds(),
    )
    return PipelineOutcome(result=result, stats=stats)


class _SessionProgress:
    """Mirrors pipeline milestones onto the session (and an optional bar)."""

    def __init__(self, session: AnalysisSession, tracker: ProgressSink | None) -> None:
        self._session = session
        self._tracker = tracker

    def advance_to(self, percent: int, message: str = "") -> None:
        self._session.progress = percent
        self._session.stage_message = message
        if self._tracker is not None:
            self._tracker.advance_to(percent, message)


class AnalysisSession:
    """In-memory state of one user's analysis (at most one run in flight).

    After analyze() the session holds either ``result`` (status SUCCEEDED) or
    ``error_message`` plus ``error`` (status FAILED). Nothing persists across
    reset().
    """

    def __init__(
        self,
        client: AnalysisClient,
        *,
        comment_sample_limit: int = DEFAULT_COMMENT_SAMPLE_LIMIT,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self._client = client
        self._comment_sample_limit = comment_sample_limit
        self._error_log = error_log
        self._lock = threading.Lock()
        self.reset()

    @property
    def loading(self) -> bool:
        return self.status is AnalysisStatus.IN_FLIGHT

    def reset(self) -> None:
        self.status = AnalysisStatus.NOT_STARTED
        self.progress = 0
        self.stage_message = ""
        self.result: AnalysisResult | None = None
        self.stats: RunStats | None = None
        self.error: Exception | None = None
        self.error_message: str | None = None

    def analyze(
        self,
        source: WorkbookSource,
        *,
        progress: ProgressSink | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AnalysisResult | None:
        """Run the pipeline for ``source``; returns the result or None on failure.

        Raises:
            SessionBusyError: if another analysis is still in flight.
        """
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError("an analysis is already in progress")
        try:
            self.reset()
            self.status = AnalysisStatus.IN_FLIGHT
            try:
                outcome = run_pipeline(
                    source,
                    self._client,
                    comment_sample_limit=self._comment_sample_limit,
                    progress=_SessionProgress(self, progress),
                    cancel_event=cancel_event,
                    error_log=self._error_log,
                )
            except IngestionFormatError as e:
                self._fail(e, str(e))
                return None
            except AnalysisError as e:
                self._fail(e, e.user_message)
                return None
            except Exception as e:
                source_label = describe_source(source)
                logger.error(f"unexpected: {source_label}: {type(e).__name__}: {e}")
                if self._error_log is not None:
                    self._error_log.append(ErrorRecord.from_exception(source_label, "analysis", "UNEXPECTED_ERROR", e))
                self._fail(e, UNEXPECTED_ERROR_MESSAGE)
                return None
            self.result = outcome.result
            self.stats = outcome.stats
            self.status = AnalysisStatus.SUCCEEDED
            return outcome.result
        finally:
            self._lock.release()

    def _fail(self, error: Exception, message: str) -> None:
        self.error = error
        self.error_message = message or UNEXPECTED_ERROR_MESSAGE
        self.progress = 0
        self.status = AnalysisStatus.FAILED
