from __future__ import annotations

import copy
import json
from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

from ..models.analysis_request import AnalysisRequest
from ..models.group_summary import GroupSummary

"""Insight request builder.

Serializes aggregated groups together with the fixed analysis instruction and
the output schema declaration into one AnalysisRequest. No network I/O; the
packaged schema contract is read once and cached.
"""

__all__ = [
    "ANALYSIS_INSTRUCTION",
    "RESULT_SCHEMA_PATH",
    "load_result_schema",
    "to_provider_schema",
    "build_analysis_request",
]

RESULT_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "analysis_result.schema.json"

ANALYSIS_INSTRUCTION = """Analyze the following faculty feedback data extracted from an Excel sheet.
For each faculty/section:
1. Summarize the reviews.
2. Identify specific strengths and weaknesses.
3. Categorize them into bands (Outstanding, Exceeds Expectations, Meets Expectations, Needs Improvement, Critical).
4. Provide 3-5 specific pedagogical modifications they should implement based on student complaints/praise.
5. Identify the top performers overall.

Return exactly one insight per faculty/section listed below."""

# Keys the Gemini schema declaration understands; everything else is dropped
_PROVIDER_KEYS = {"type", "properties", "items", "required", "enum", "description", "nullable", "format"}


@lru_cache(maxsize=1)
def _cached_schema() -> dict[str, Any]:
    return json.loads(RESULT_SCHEMA_PATH.read_text(encoding="utf-8"))


def load_result_schema() -> dict[str, Any]:
    """Return the JSON Schema contract for AnalysisResult (a fresh copy)."""
    return copy.deepcopy(_cached_schema())


def to_provider_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert a JSON Schema fragment into the Gemini declaration form.

    Type names become upper case (OBJECT, ARRAY, STRING, NUMBER ...), keys the
    provider rejects ($schema, title, additionalProperties ...) are dropped.
    """
    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _PROVIDER_KEYS:
            continue
        if key == "type":
            out[key] = str(value).upper()
        elif key == "properties":
            out[key] = {name: to_provider_schema(sub) for name, sub in value.items()}
        elif key == "items":
            out[key] = to_provider_schema(value)
        else:
            out[key] = copy.deepcopy(value)
    if out.get("enum") and "format" not in out:
        out["format"] = "enum"
    return out


def serialize_groups(groups: Sequence[GroupSummary]) -> str:
    return json.dumps([g.to_payload() for g in groups], indent=2, ensure_ascii=False)


def build_analysis_request(groups: Sequence[GroupSummary]) -> AnalysisRequest:
    """Build the single analysis request for ``groups``.

    Every group appears exactly once in the payload, in input order.
    """
    payload = serialize_groups(groups)
    prompt = f"{ANALYSIS_INSTRUCTION}\n\nFeedback Data:\n{payload}"
    return AnalysisRequest(
        instruction=ANALYSIS_INSTRUCTION,
        groups=tuple(groups),
        prompt=prompt,
        response_schema=to_provider_schema(load_result_schema()),
    )
