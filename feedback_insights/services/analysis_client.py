from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from functools import lru_cache
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from jsonschema import Draft7Validator

from ..logging.error_log import ErrorLogBuffer
from ..models.analysis_request import AnalysisRequest
from ..models.analysis_result import AnalysisResult
from ..models.analysis_run import AnalysisStatus
from ..models.config_models import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS
from ..models.error_record import ErrorRecord
from .request_builder import load_result_schema

logger = logging.getLogger(__name__)

"""Analysis client: the only component that talks to the hosted model.

One analyze() call performs exactly one generate_content request (no retries,
no caching), waits for the single JSON response and validates it against the
AnalysisResult contract. Every failure is translated into an AnalysisError
subclass carrying a user-facing message; the underlying cause is chained,
logged and recorded in the error log buffer.
"""

__all__ = [
    "ANALYSIS_FAILED_MESSAGE",
    "AnalysisError",
    "TransportError",
    "ResponseValidationError",
    "AnalysisTimeoutError",
    "AnalysisCancelledError",
    "AnalysisClient",
    "gemini_model_factory",
    "parse_analysis_response",
]

ANALYSIS_FAILED_MESSAGE = "Failed to analyze feedback. Please ensure the data format is correct."
TIMEOUT_MESSAGE = "The analysis request timed out. Please try again."
CANCELLED_MESSAGE = "The analysis was cancelled."

POLL_INTERVAL_SECONDS = 0.1

ModelFactory = Callable[[str, dict[str, Any]], Any]


class AnalysisError(Exception):
    """Base class for analysis failures.

    ``str(exc)`` is the diagnostic detail; ``user_message`` is what the end
    user gets to see.
    """
    user_message = ANALYSIS_FAILED_MESSAGE
    error_type = "ANALYSIS_ERROR"
    stage = "analysis"


class TransportError(AnalysisError):
    """Network or provider-side failure while reaching the model."""
    error_type = "TRANSPORT_ERROR"


class ResponseValidationError(AnalysisError):
    """Response missing, not JSON, or not matching the declared schema."""
    error_type = "RESPONSE_VALIDATION_ERROR"
    stage = "validation"


class AnalysisTimeoutError(AnalysisError):
    user_message = TIMEOUT_MESSAGE
    error_type = "ANALYSIS_TIMEOUT"


class AnalysisCancelledError(AnalysisError):
    user_message = CANCELLED_MESSAGE
    error_type = "ANALYSIS_CANCELLED"


@lru_cache(maxsize=1)
def _result_validator() -> Draft7Validator:
    return Draft7Validator(load_result_schema())


def parse_analysis_response(text: str) -> AnalysisResult:
    """Parse and validate a raw model response into an AnalysisResult.

    All-or-nothing: one invalid insight (e.g. missing ``banding``) rejects the
    whole document.

    Raises:
        ResponseValidationError: on empty text, invalid JSON or schema violations.
    """
    if not text or not text.strip():
        raise ResponseValidationError("model returned an empty response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseValidationError(f"response is not valid JSON: {e}") from e

    errors = sorted(_result_validator().iter_errors(data), key=lambda err: [str(p) for p in err.absolute_path])
    if errors:
        first = errors[0]
        location = "/".join(str(p) for p in first.absolute_path) or "<root>"
        raise ResponseValidationError(
            f"response violates schema at {location}: {first.message} ({len(errors)} error(s))"
        )
    try:
        return AnalysisResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:  # pragma: no cover (schema already checked)
        raise ResponseValidationError(f"response could not be mapped: {e}") from e


def gemini_model_factory(api_key: str) -> ModelFactory:
    """Return a factory building ``genai.GenerativeModel`` instances for ``api_key``."""
    def factory(model_name: str, generation_config: dict[str, Any]) -> Any:
        genai.configure(api_key=api_key)
        return genai.GenerativeModel(model_name, generation_config=generation_config)
    return factory


def _response_text(response: Any) -> str:
    try:
        text = response.text
    except (ValueError, AttributeError) as e:
        # blocked prompt / no candidates: response.text raises ValueError
        raise ResponseValidationError(f"model response has no text: {e}") from e
    return text or ""


class AnalysisClient:
    """Sends one AnalysisRequest to Gemini and returns a validated AnalysisResult.

    The credential and model settings are injected here; nothing is read from
    the environment. Tests pass ``model_factory`` to substitute a fake model
    whose ``generate_content`` mimics the SDK.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model_name: str = DEFAULT_MODEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        model_factory: ModelFactory | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must not be empty")
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self._model_factory = model_factory or gemini_model_factory(api_key)
        self._error_log = error_log
        self.status = AnalysisStatus.NOT_STARTED

    def analyze(
        self,
        request: AnalysisRequest,
        *,
        cancel_event: threading.Event | None = None,
        source: str = "<request>",
    ) -> AnalysisResult:
        """Run the request and return the validated result.

        Raises:
            TransportError, ResponseValidationError, AnalysisTimeoutError,
            AnalysisCancelledError
        """
        self.status = AnalysisStatus.IN_FLIGHT
        logger.info(f"analysis: sending {len(request.groups)} group(s) to {self.model_name}")
        started = time.monotonic()
        try:
            text = self._call_model(request, cancel_event)
            result = parse_analysis_response(text)
        except AnalysisError as e:
            self.status = AnalysisStatus.FAILED
            self._record_failure(e, source)
            raise
        self.status = AnalysisStatus.SUCCEEDED
        logger.info(
            f"analysis: received {len(result.insights)} insight(s) in {time.monotonic() - started:.2f}s"
        )
        return result

    def _call_model(self, request: AnalysisRequest, cancel_event: threading.Event | None) -> str:
        generation_config = {
            "response_mime_type": "application/json",
            "response_schema": request.response_schema,
        }
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError("cancelled before the request was sent")
        try:
            model = self._model_factory(self.model_name, generation_config)
        except Exception as e:
            raise TransportError(f"could not create model client: {e}") from e

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="analysis-call")
        try:
            future = executor.submit(
                model.generate_content,
                request.prompt,
                request_options={"timeout": self.timeout_seconds},
            )
            response = self._await(future, cancel_event)
        finally:
            # 実行中の呼び出しは中断できないため待たずに切り離す (結果は破棄)
            executor.shutdown(wait=False, cancel_futures=True)
        return _response_text(response)

    def _await(self, future: Future, cancel_event: threading.Event | None) -> Any:
        deadline = time.monotonic() + self.timeout_seconds
        while True:
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise AnalysisCancelledError("cancelled while waiting for the model response")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise AnalysisTimeoutError(f"no response within {self.timeout_seconds}s")
            done, _ = wait_futures([future], timeout=min(POLL_INTERVAL_SECONDS, remaining))
            if done:
                break

        try:
            return future.result()
        except google_exceptions.DeadlineExceeded as e:
            raise AnalysisTimeoutError(f"provider deadline exceeded: {e}") from e
        except TimeoutError as e:
            raise AnalysisTimeoutError(f"request timed out: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            raise TransportError(f"provider error: {e}") from e
        except Exception as e:
            raise TransportError(f"request failed: {type(e).__name__}: {e}") from e

    def _record_failure(self, error: AnalysisError, source: str) -> None:
        cause = error.__cause__ or error
        logger.error(f"analysis: {error.error_type.lower()}: {error} (cause: {type(cause).__name__})")
        if self._error_log is not None:
            self._error_log.append(
                ErrorRecord.from_exception(source, error.stage, error.error_type, cause)
            )
