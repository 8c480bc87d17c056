from __future__ import annotations

from dataclasses import dataclass

"""Configuration dataclasses for the feedback analyzer.

Values come from config/analyzer.yml (see config/loader.py); every field has a
default so the analyzer also runs without a config file.
"""

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_COMMENT_SAMPLE_LIMIT = 15
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_ERROR_LOG_DIR = "logs"


@dataclass(frozen=True)
class AnalyzerConfig:
    """Root configuration object for one analyzer process.

    The API key itself is never stored here; only the name of the environment
    variable the CLI reads it from.
    """
    model: str = DEFAULT_MODEL  # Gemini model name
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS  # per request, also bounds the local wait
    comment_sample_limit: int = DEFAULT_COMMENT_SAMPLE_LIMIT  # comments kept per group
    api_key_env: str = DEFAULT_API_KEY_ENV
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
