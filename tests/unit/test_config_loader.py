from __future__ import annotations

from pathlib import Path

import pytest

from calendar_reconcile.config.loader import ConfigError, config_from_dict, load_config
from calendar_reconcile.models.config_models import DEFAULT_COLUMN_ALIASES, ReconcileConfig


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.column_aliases["client"] == ("Client", "Customer")
    # families not mentioned keep their defaults
    assert cfg.column_aliases["hashtags"] == DEFAULT_COLUMN_ALIASES["hashtags"]
    assert cfg.matching.fuzzy_threshold == 0.8
    assert cfg.matching.business_suffixes == ("inc", "llc", "gmbh")
    assert cfg.date_formats == ("%d/%m/%Y", "%m/%d/%Y")
    assert cfg.default_priority == "Low"
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432


def test_empty_config_equals_defaults():
    assert config_from_dict({}) == ReconcileConfig()


def test_suffixes_are_lowercased():
    cfg = config_from_dict({"matching": {"business_suffixes": [" GmbH ", "AG"]}})
    assert cfg.matching.business_suffixes == ("gmbh", "ag")


@pytest.mark.parametrize(
    "data",
    [
        {"unknown": 1},
        {"matching": {"fuzzy_threshold": 1.5}},
        {"matching": {"word_overlap_fraction": -0.1}},
        {"column_aliases": {"client": []}},
        {"column_aliases": {"notes": ["Notes"]}},
        {"default_priority": "Urgent"},
        {"database": {"port": "5432"}},
    ],
)
def test_invalid_config_rejected(data):
    with pytest.raises(ConfigError, match="config validation failed"):
        config_from_dict(data)


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text("matching: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_non_mapping_root(temp_workdir: Path):
    p = temp_workdir / "config" / "list.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(p)


def test_empty_file_is_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "empty.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == ReconcileConfig()


def test_shipped_sample_config_is_valid():
    sample = Path(__file__).resolve().parents[2] / "config" / "reconcile.yml"
    cfg = load_config(sample)
    assert cfg.matching.fuzzy_threshold == 0.70
    assert "restaurant" in cfg.matching.business_suffixes
