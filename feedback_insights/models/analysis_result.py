from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Analysis result domain models.

FacultyInsight and AnalysisResult are produced entirely by the hosted model;
this module only maps an already schema-validated response document onto
immutable dataclasses (and back to the camelCase wire form for output).
"""

__all__ = [
    "Banding",
    "FacultyInsight",
    "AnalysisResult",
]


class Banding(Enum):
    """Qualitative performance band assigned to one faculty/section group."""
    OUTSTANDING = "Outstanding"
    EXCEEDS_EXPECTATIONS = "Exceeds Expectations"
    MEETS_EXPECTATIONS = "Meets Expectations"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    CRITICAL = "Critical"

    @classmethod
    def labels(cls) -> list[str]:
        return [b.value for b in cls]


@dataclass(frozen=True)
class FacultyInsight:
    faculty_name: str
    section: str
    overall_rating: float
    summary: str
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    suggested_modifications: tuple[str, ...]
    banding: Banding

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FacultyInsight:
        return cls(
            faculty_name=data["facultyName"],
            section=data["section"],
            overall_rating=float(data["overallRating"]),
            summary=data["summary"],
            strengths=tuple(data["strengths"]),
            weaknesses=tuple(data["weaknesses"]),
            suggested_modifications=tuple(data["suggestedModifications"]),
            banding=Banding(data["banding"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "facultyName": self.faculty_name,
            "section": self.section,
            "overallRating": self.overall_rating,
            "summary": self.summary,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "suggestedModifications": list(self.suggested_modifications),
            "banding": self.banding.value,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Root output of one analysis run, handed to the presentation layer as-is."""
    insights: tuple[FacultyInsight, ...]
    top_performers: tuple[str, ...]
    overall_summary: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        """Build from a response document that already passed schema validation.

        Raises:
            KeyError / ValueError: if the document does not have the declared
                shape (callers validate first, so this indicates a schema drift).
        """
        return cls(
            insights=tuple(FacultyInsight.from_dict(item) for item in data["insights"]),
            top_performers=tuple(data["topPerformers"]),
            overall_summary=data["overallSummary"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "insights": [i.to_dict() for i in self.insights],
            "topPerformers": list(self.top_performers),
            "overallSummary": self.overall_summary,
        }
