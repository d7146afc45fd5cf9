from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_DISTANCE_FIELD_PATTERNS,
    DEFAULT_NUMERIC_UNIT_SUFFIXES,
    BlankLinePolicy,
    EngineConfig,
    NullPlacement,
)

"""Config loader.

Responsibilities:
- Load YAML (config/ingest.yml by default)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for every missing key
- Apply environment overrides (SHEETGRID_*), after .env loading by the CLI
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "config_from_dict",
    "resolve_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")

ENV_CONFIG_PATH = "SHEETGRID_CONFIG"
ENV_LEGACY_ENCODING = "SHEETGRID_LEGACY_ENCODING"
ENV_TYPE_THRESHOLD = "SHEETGRID_TYPE_THRESHOLD"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if
            the config data fails validation (unknown keys, wrong types,
            out-of-range values).
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


def config_from_dict(data: dict[str, Any]) -> EngineConfig:
    """Build an EngineConfig from already-validated config data."""
    header = data.get("header", {})
    rows = data.get("rows", {})
    encoding = data.get("encoding", {})
    inference = data.get("inference", {})
    sort = data.get("sort", {})
    defaults = EngineConfig()
    return EngineConfig(
        min_header_columns=header.get("min_columns", defaults.min_header_columns),
        max_header_search_rows=header.get("max_search_rows", defaults.max_header_search_rows),
        fallback_column_prefix=header.get("fallback_prefix", defaults.fallback_column_prefix),
        dedupe_headers=header.get("dedupe", defaults.dedupe_headers),
        skip_empty_rows=rows.get("skip_empty", defaults.skip_empty_rows),
        blank_line_policy=BlankLinePolicy(rows.get("blank_lines", defaults.blank_line_policy.value)),
        legacy_encoding=encoding.get("legacy", defaults.legacy_encoding),
        fallback_encoding=encoding.get("fallback", defaults.fallback_encoding),
        type_threshold=float(inference.get("threshold", defaults.type_threshold)),
        numeric_unit_suffixes=tuple(inference.get("unit_suffixes", DEFAULT_NUMERIC_UNIT_SUFFIXES)),
        null_placement=NullPlacement(sort.get("null_placement", defaults.null_placement.value)),
        blank_as_null=sort.get("blank_as_null", defaults.blank_as_null),
        distance_field_patterns=tuple(sort.get("distance_fields", DEFAULT_DISTANCE_FIELD_PATTERNS)),
    )


def load_config(path: Path) -> EngineConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return config_from_dict(data)


def _apply_env_overrides(cfg: EngineConfig) -> EngineConfig:
    changes: dict[str, Any] = {}
    legacy = os.getenv(ENV_LEGACY_ENCODING)
    if legacy:
        changes["legacy_encoding"] = legacy
    threshold = os.getenv(ENV_TYPE_THRESHOLD)
    if threshold:
        try:
            value = float(threshold)
        except ValueError as e:
            raise ConfigError(f"{ENV_TYPE_THRESHOLD} must be a number: {threshold!r}") from e
        if not 0 < value <= 1:
            raise ConfigError(f"{ENV_TYPE_THRESHOLD} must be in (0, 1]: {value}")
        changes["type_threshold"] = value
    return cfg.with_overrides(**changes) if changes else cfg


def resolve_config(path: Path | None = None) -> EngineConfig:
    """Config for a run.

    Priority for the file: explicit ``path`` > $SHEETGRID_CONFIG >
    config/ingest.yml when present > built-in defaults. An explicitly named
    file that does not exist is an error.
    """
    env_path = os.getenv(ENV_CONFIG_PATH)
    if path is not None:
        cfg = load_config(path)
    elif env_path:
        cfg = load_config(Path(env_path))
    elif DEFAULT_CONFIG_PATH.exists():
        cfg = load_config(DEFAULT_CONFIG_PATH)
    else:
        cfg = EngineConfig()
    return _apply_env_overrides(cfg)
