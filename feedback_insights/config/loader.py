from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_API_KEY_ENV,
    DEFAULT_COMMENT_SAMPLE_LIMIT,
    DEFAULT_ERROR_LOG_DIR,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    AnalyzerConfig,
)

"""Config loader for the feedback analyzer.

Responsibilities:
- Load YAML config (default config/analyzer.yml)
- Validate keys/types against contracts/config_schema.json
- Apply defaults for anything not set
"""

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/analyzer.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (unknown keys, wrong types, bounds).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> AnalyzerConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    return AnalyzerConfig(
        model=data.get("model", DEFAULT_MODEL),
        timeout_seconds=float(data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        comment_sample_limit=data.get("comment_sample_limit", DEFAULT_COMMENT_SAMPLE_LIMIT),
        api_key_env=data.get("api_key_env", DEFAULT_API_KEY_ENV),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
    )


def load_config_or_default(path: Path | None = None) -> AnalyzerConfig:
    """Load ``path``; fall back to defaults only when the default file is absent.

    An explicitly given path that does not exist is still a ConfigError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AnalyzerConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)
