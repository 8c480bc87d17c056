from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

The model call takes seconds, so the pipeline reports stage milestones
(percent complete plus a stage message) instead of blocking silently. A single
tqdm bar is used and only when stdout is a TTY; in CI/non-TTY runs the
tracker still records the last percent/message but draws nothing.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Percent-based progress bar for one analysis run."""

    def __init__(self, *, description: str = "Analyzing feedback") -> None:
        self.description = description
        self.percent = 0
        self.message = ""

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance_to(self, percent: int, message: str = "") -> None:
        """Move the bar to ``percent`` (never backwards) and show ``message``."""
        percent = max(0, min(100, percent))
        delta = percent - self.percent
        if delta > 0:
            self.percent = percent
        self.message = message

        if self.enabled and self.pbar is not None:
            if delta > 0:
                self.pbar.update(delta)
            if message:
                self.pbar.set_description(f"{self.description} ({message})")

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
