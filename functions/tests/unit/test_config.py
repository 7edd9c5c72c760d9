"""
Unit Tests for Quality Configuration

Tests the packaged defaults and the QUALITY_CONFIG_PATH override file.
"""

import pytest
import json

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from shared import config
from shared.config import (
    ConfigError,
    deep_merge,
    load_quality_config,
    get_numbering_rule,
    get_sla_hours,
    get_calibration_settings,
    get_quotation_validity_days,
    get_max_cell_chars,
)
from shared.numbering import DocumentFamily


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Each test starts from the packaged defaults."""
    monkeypatch.delenv(config.ENV_CONFIG_PATH, raising=False)
    load_quality_config.cache_clear()
    yield
    load_quality_config.cache_clear()


@pytest.mark.unit
class TestDefaults:

    def test_every_family_has_a_rule(self):
        for family in DocumentFamily:
            rule = get_numbering_rule(family.value)
            assert rule["prefix"].endswith("-")
            assert rule["pad_width"] >= 1

    def test_known_prefixes(self):
        assert get_numbering_rule("RNC")["prefix"] == "RNC-"
        assert get_numbering_rule("NDT")["prefix"] == "END-"
        assert get_numbering_rule("QUOTATION")["prefix"] == "ORC-"
        assert get_numbering_rule("LESSON_LEARNED")["year_scoped"] is True

    def test_unknown_family(self):
        with pytest.raises(KeyError):
            get_numbering_rule("INVOICE")

    def test_sla_hours(self):
        assert get_sla_hours("critical") == 24
        assert get_sla_hours("unknown") == 168

    def test_other_settings(self):
        assert get_calibration_settings() == {"default_frequency_days": 365, "warning_window_days": 30}
        assert get_quotation_validity_days() == 30
        assert get_max_cell_chars() == 4000


@pytest.mark.unit
class TestOverride:

    def test_override_file_is_deep_merged(self, tmp_path, monkeypatch):
        override = tmp_path / "override.json"
        override.write_text(json.dumps({
            "numbering": {"QUOTATION": {"floor": 1200}},
            "sla_hours": {"critical": 12},
        }), encoding="utf-8")
        monkeypatch.setenv(config.ENV_CONFIG_PATH, str(override))
        load_quality_config.cache_clear()

        rule = get_numbering_rule("QUOTATION")
        assert rule["floor"] == 1200
        assert rule["prefix"] == "ORC-"
        assert get_sla_hours("critical") == 12
        assert get_sla_hours("high") == 72

    def test_missing_override_file_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv(config.ENV_CONFIG_PATH, str(tmp_path / "missing.json"))
        load_quality_config.cache_clear()
        with pytest.raises(ConfigError):
            load_quality_config()


@pytest.mark.unit
class TestDeepMerge:

    def test_nested_merge_keeps_siblings(self):
        merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}
