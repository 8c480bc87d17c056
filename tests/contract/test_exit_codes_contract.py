from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

from google.api_core import exceptions as google_exceptions

from feedback_insights.cli.__main__ import main as cli_main

"""Exit code contract: 0 success, 1 fatal (config/credential/ingestion), 2 analysis failed."""

ROWS = [
    {"Faculty Name": "Dr. Lee", "Section": "A1", "Rating": 4, "Comments": "great"},
    {"Faculty Name": "Prof. Diaz", "Section": "B2", "Rating": 5, "Comments": "superb"},
]


def _fake_genai(text: str | None = None, exc: Exception | None = None) -> Mock:
    model = Mock()
    if exc is not None:
        model.generate_content.side_effect = exc
    else:
        model.generate_content.return_value = SimpleNamespace(text=text)
    genai = Mock()
    genai.GenerativeModel.return_value = model
    return genai


def test_exit_code_success(temp_workdir: Path, make_workbook, response_text, monkeypatch, capsys):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    path = make_workbook(ROWS)
    with patch("feedback_insights.services.analysis_client.genai", _fake_genai(text=response_text)):
        code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == 0
    assert '"topPerformers"' in out
    assert "SUMMARY rows=2 groups=2 insights=2 elapsed_sec=" in out


def test_exit_code_missing_file(temp_workdir: Path, monkeypatch, capsys):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    code = cli_main(["data/missing.xlsx"])
    assert code == 1
    assert "ERROR file not found" in capsys.readouterr().out


def test_exit_code_invalid_config(write_config: Path, make_workbook, capsys):
    write_config.write_text("unknown_key: 1\n", encoding="utf-8")
    code = cli_main([str(make_workbook(ROWS))])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_exit_code_missing_credential(write_config: Path, make_workbook, monkeypatch, capsys):
    monkeypatch.delenv("TEST_GEMINI_KEY", raising=False)
    code = cli_main([str(make_workbook(ROWS))])
    assert code == 1
    assert "ERROR credential: environment variable TEST_GEMINI_KEY is not set" in capsys.readouterr().out


def test_exit_code_unreadable_workbook(temp_workdir: Path, monkeypatch, capsys):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    bogus = temp_workdir / "data" / "bogus.xlsx"
    bogus.write_bytes(b"not a workbook")
    code = cli_main([str(bogus)])
    out = capsys.readouterr().out
    assert code == 1
    assert "Failed to parse Excel file" in out
    [log] = list((temp_workdir / "logs").glob("errors-*.log"))
    assert json.loads(log.read_text(encoding="utf-8").splitlines()[0])["stage"] == "ingestion"


def test_exit_code_analysis_failure(temp_workdir: Path, make_workbook, monkeypatch, capsys):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    path = make_workbook(ROWS)
    fake = _fake_genai(exc=google_exceptions.ServiceUnavailable("overloaded"))
    with patch("feedback_insights.services.analysis_client.genai", fake):
        code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR analysis: Failed to analyze feedback. Please ensure the data format is correct." in out
    [log] = list((temp_workdir / "logs").glob("errors-*.log"))
    record = json.loads(log.read_text(encoding="utf-8").splitlines()[0])
    assert record["error_type"] == "TRANSPORT_ERROR"
    assert "overloaded" in record["detail"]
