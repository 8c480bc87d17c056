# Shared pytest fixtures
from __future__ import annotations
import json
import tempfile
import threading
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pandas as pd
import pytest

from feedback_insights.logging.init import reset_logging
from feedback_insights.services.analysis_client import AnalysisClient


class FakeModel:
    """Stand-in for genai.GenerativeModel (only generate_content is used)."""

    def __init__(self, text: str | None = None, exc: BaseException | None = None,
                 block: threading.Event | None = None) -> None:
        self.text = text
        self.exc = exc
        self.block = block
        self.calls: list[tuple[Any, Any]] = []

    def generate_content(self, contents, request_options=None):
        self.calls.append((contents, request_options))
        if self.block is not None:
            self.block.wait(5)
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(text=self.text)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """model: gemini-test
timeout_seconds: 30
comment_sample_limit: 10
api_key_env: TEST_GEMINI_KEY
error_log_dir: logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "analyzer.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook(temp_workdir: Path):
    """Write ``rows`` (list of dicts or DataFrame) to data/<name> with pandas."""
    def _make(rows, name: str = "feedback.xlsx", extra_sheets: dict[str, Any] | None = None) -> Path:
        p = temp_workdir / "data" / name
        with pd.ExcelWriter(p) as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Feedback", index=False)
            for sheet, data in (extra_sheets or {}).items():
                pd.DataFrame(data).to_excel(writer, sheet_name=sheet, index=False)
        return p
    return _make


@pytest.fixture()
def sample_response() -> dict[str, Any]:
    return {
        "insights": [
            {
                "facultyName": "Dr. Lee",
                "section": "A1",
                "overallRating": 3.7,
                "summary": "Engaging lectures, slow grading.",
                "strengths": ["Clear explanations"],
                "weaknesses": ["Late feedback on assignments"],
                "suggestedModifications": [
                    "Publish a grading timeline",
                    "Add weekly office hours",
                    "Use rubrics for assignments",
                ],
                "banding": "Meets Expectations",
            },
            {
                "facultyName": "Prof. Diaz",
                "section": "B2",
                "overallRating": 4.8,
                "summary": "Consistently praised.",
                "strengths": ["Well organized", "Approachable"],
                "weaknesses": [],
                "suggestedModifications": [
                    "Share lecture notes earlier",
                    "Add more practice problems",
                    "Record review sessions",
                ],
                "banding": "Outstanding",
            },
        ],
        "topPerformers": ["Prof. Diaz"],
        "overallSummary": "Feedback is mostly positive.",
    }


@pytest.fixture()
def make_client():
    """Build an AnalysisClient backed by a FakeModel.

    Returns (client, model, factory_calls).
    """
    def _make(text: str | None = None, exc: BaseException | None = None,
              block: threading.Event | None = None, timeout: float = 5.0, error_log=None):
        model = FakeModel(text=text, exc=exc, block=block)
        factory_calls: list[tuple[str, dict]] = []

        def factory(model_name, generation_config):
            factory_calls.append((model_name, generation_config))
            return model

        client = AnalysisClient(
            "test-key",
            model_name="gemini-test",
            timeout_seconds=timeout,
            model_factory=factory,
            error_log=error_log,
        )
        return client, model, factory_calls
    return _make


@pytest.fixture()
def response_text(sample_response) -> str:
    return json.dumps(sample_response)
