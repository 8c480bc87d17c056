from __future__ import annotations

from dataclasses import dataclass

from ..models.analysis_result import AnalysisResult, Banding, FacultyInsight
from ..models.analysis_run import RunStats

"""Summary rendering and dashboard data helpers.

The presentation layer draws charts and cards; the helpers here only derive
the data it needs from an AnalysisResult (search filter, rating distribution,
band counts) plus the SUMMARY line printed by the CLI.
"""

__all__ = [
    "RatingPoint",
    "filter_insights",
    "rating_distribution",
    "band_counts",
    "render_summary_line",
]


@dataclass(frozen=True)
class RatingPoint:
    name: str
    rating: float
    band: Banding


def filter_insights(result: AnalysisResult, term: str) -> list[FacultyInsight]:
    """Case-insensitive substring search over faculty name and section."""
    needle = term.lower()
    return [
        i for i in result.insights
        if needle in i.faculty_name.lower() or needle in i.section.lower()
    ]


def rating_distribution(result: AnalysisResult) -> list[RatingPoint]:
    """Insights as chart points, highest rating first (ties keep result order)."""
    ordered = sorted(result.insights, key=lambda i: i.overall_rating, reverse=True)
    return [RatingPoint(name=i.faculty_name, rating=i.overall_rating, band=i.banding) for i in ordered]


def band_counts(result: AnalysisResult) -> dict[Banding, int]:
    """Number of insights per band, in first-seen order."""
    counts: dict[Banding, int] = {}
    for i in result.insights:
        counts[i.banding] = counts.get(i.banding, 0) + 1
    return counts


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.2f}".rstrip('0').rstrip('.')


def render_summary_line(stats: RunStats) -> str:
    """Render the SUMMARY line for one run.

    Format:
    SUMMARY rows={rows} groups={groups} insights={insights} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2025, 1, 1, 10, 0, 4, tzinfo=timezone.utc)
        >>> render_summary_line(RunStats(120, 8, 8, start, end, 4.0))
        'SUMMARY rows=120 groups=8 insights=8 elapsed_sec=4'
    """
    return (
        f"SUMMARY rows={stats.row_count} "
        f"groups={stats.group_count} "
        f"insights={stats.insight_count} "
        f"elapsed_sec={_format_number(stats.elapsed_seconds)}"
    )
