"""Domain models for the faculty feedback analyzer.

This package contains the dataclasses passed between pipeline stages: rows
coming out of the workbook, aggregated groups, the outbound request and the
validated analysis result.
"""

from .analysis_request import AnalysisRequest
from .analysis_result import AnalysisResult, Banding, FacultyInsight
from .analysis_run import AnalysisStatus, RunStats
from .config_models import AnalyzerConfig
from .error_record import ErrorRecord
from .group_summary import GroupKey, GroupSummary
from .raw_row import RawRow

__all__ = [
    # Configuration models
    "AnalyzerConfig",
    # Pipeline models
    "RawRow",
    "GroupKey",
    "GroupSummary",
    "AnalysisRequest",
    # Result models
    "Banding",
    "FacultyInsight",
    "AnalysisResult",
    "AnalysisStatus",
    "RunStats",
    "ErrorRecord",
]
