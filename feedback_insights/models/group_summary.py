from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""GroupSummary model: one aggregated record per (faculty, section) pair."""

__all__ = [
    "GroupKey",
    "GroupSummary",
]

GroupKey = tuple[str, str]


@dataclass(frozen=True)
class GroupSummary:
    """Aggregated feedback for one faculty/section group.

    ``average_rating`` is computed over every row of the group, independently
    of how many comments made it into ``comment_sample``.
    """
    faculty_name: str
    section: str
    average_rating: float
    comment_sample: tuple[str, ...] = ()
    response_count: int = 0  # rows contributing to the average

    @property
    def key(self) -> GroupKey:
        return (self.faculty_name, self.section)

    def to_payload(self) -> dict[str, Any]:
        """Return the mapping embedded in the analysis prompt."""
        return {
            "facultyName": self.faculty_name,
            "section": self.section,
            "averageRating": self.average_rating,
            "commentSample": list(self.comment_sample),
        }
