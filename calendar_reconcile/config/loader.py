from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from calendar_reconcile.models.config_models import (
    DEFAULT_COLUMN_ALIASES,
    DatabaseConfig,
    MatchingRules,
    ReconcileConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/reconcile.yml``)
- Validate against the JSON schema shipped next to this module
- Apply defaults for every omitted key
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/reconcile.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
            (unknown keys, wrong types, threshold out of range...).
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


def _build_matching(raw: dict[str, Any]) -> MatchingRules:
    defaults = MatchingRules()
    return MatchingRules(
        business_suffixes=tuple(
            s.strip().lower() for s in raw.get("business_suffixes", defaults.business_suffixes)
        ),
        punctuation=raw.get("punctuation", defaults.punctuation),
        space_variants=raw.get("space_variants", defaults.space_variants),
        fuzzy_threshold=float(raw.get("fuzzy_threshold", defaults.fuzzy_threshold)),
        word_overlap_fraction=float(
            raw.get("word_overlap_fraction", defaults.word_overlap_fraction)
        ),
        min_token_length=int(raw.get("min_token_length", defaults.min_token_length)),
    )


def config_from_dict(data: dict[str, Any]) -> ReconcileConfig:
    """Build a ReconcileConfig from already-parsed data (schema checked here)."""
    _validate_config_schema(data)

    aliases = dict(DEFAULT_COLUMN_ALIASES)
    for family, spellings in (data.get("column_aliases") or {}).items():
        aliases[family] = tuple(spellings)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    defaults = ReconcileConfig()
    return ReconcileConfig(
        column_aliases=aliases,
        matching=_build_matching(data.get("matching") or {}),
        date_formats=tuple(data.get("date_formats", defaults.date_formats)),
        default_priority=data.get("default_priority", defaults.default_priority),
        database=db,
    )


def load_config(path: Path) -> ReconcileConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)
