from __future__ import annotations

from dataclasses import dataclass

"""RawRow model for the feedback analysis pipeline.

RawRow represents one spreadsheet row after column-alias resolution and type
coercion. It only lives for the duration of a single analysis run.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Canonical shape of a single feedback row after normalization.

    Every field has already been coerced to its declared type; ``rating`` is
    never NaN (unparseable values become 0.0).
    """
    faculty_name: str
    section: str  # "General" when the sheet has no section column
    rating: float
    comment: str = ""

    @property
    def group_key(self) -> tuple[str, str]:
        # 完全一致でグループ化 (trim / case folding なし)
        return (self.faculty_name, self.section)
