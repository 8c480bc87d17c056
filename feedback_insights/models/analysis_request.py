from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .group_summary import GroupSummary

__all__ = [
    "AnalysisRequest",
]


@dataclass(frozen=True)
class AnalysisRequest:
    """Single-shot analysis request sent to the hosted model.

    ``prompt`` already contains the instruction followed by the serialized
    groups; ``response_schema`` is the provider-form output declaration.
    """
    instruction: str
    groups: tuple[GroupSummary, ...]
    prompt: str
    response_schema: dict[str, Any] = field(default_factory=dict, compare=False)
