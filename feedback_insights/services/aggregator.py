from __future__ import annotations

from collections.abc import Iterable

from ..models.group_summary import GroupKey, GroupSummary
from ..models.raw_row import RawRow

"""Feedback aggregation: RawRow sequence → one GroupSummary per (faculty, section).

Grouping is a single pass with exact string equality on both key fields; no
trimming, case folding or near-duplicate merging is applied.
"""

__all__ = [
    "DEFAULT_COMMENT_SAMPLE_LIMIT",
    "GroupAccumulator",
    "aggregate_feedback",
]

DEFAULT_COMMENT_SAMPLE_LIMIT = 15


class GroupAccumulator:
    """Collects ratings and a bounded comment sample for one group.

    Ratings are kept as a running total so the average covers every row;
    comments stop being collected once ``comment_limit`` is reached.
    """

    def __init__(self, faculty_name: str, section: str, comment_limit: int) -> None:
        self.faculty_name = faculty_name
        self.section = section
        self.comment_limit = comment_limit
        self.rating_total = 0.0
        self.rating_count = 0
        self.comments: list[str] = []

    def add(self, row: RawRow) -> None:
        self.rating_total += row.rating
        self.rating_count += 1
        if row.comment and len(self.comments) < self.comment_limit:
            self.comments.append(row.comment)

    def to_summary(self) -> GroupSummary:
        # rating_count >= 1: a group only exists once a row created it
        return GroupSummary(
            faculty_name=self.faculty_name,
            section=self.section,
            average_rating=self.rating_total / self.rating_count,
            comment_sample=tuple(self.comments),
            response_count=self.rating_count,
        )


def aggregate_feedback(
    rows: Iterable[RawRow], *, comment_sample_limit: int = DEFAULT_COMMENT_SAMPLE_LIMIT
) -> list[GroupSummary]:
    """Group rows by (faculty_name, section), preserving first-seen order.

    Args:
        rows: Normalized rows in spreadsheet order
        comment_sample_limit: Maximum comments kept per group

    Returns:
        One GroupSummary per distinct key

    Raises:
        ValueError: if comment_sample_limit is negative
    """
    if comment_sample_limit < 0:
        raise ValueError(f"comment_sample_limit must be >= 0, got {comment_sample_limit}")

    groups: dict[GroupKey, GroupAccumulator] = {}
    for row in rows:
        key = row.group_key
        acc = groups.get(key)
        if acc is None:
            acc = GroupAccumulator(row.faculty_name, row.section, comment_sample_limit)
            groups[key] = acc
        acc.add(row)
    return [acc.to_summary() for acc in groups.values()]
