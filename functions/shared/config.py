"""
Business configuration for the quality and quotation functions.

Defaults live in ``quality_config.json`` next to this module. An operator can
point ``QUALITY_CONFIG_PATH`` at a JSON file whose values are deep-merged
over the defaults (e.g. to raise a numbering floor when continuing a legacy
counter).
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "QUALITY_CONFIG_PATH"
DEFAULT_CONFIG_FILE = Path(__file__).parent / "quality_config.json"


class ConfigError(Exception):
    """Raised when the quality configuration cannot be loaded."""
    pass


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries.
    Values in 'override' replace those in 'base'.
    """
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load {path}: {e}")


@lru_cache(maxsize=1)
def load_quality_config() -> Dict[str, Any]:
    """Load defaults, then apply the optional override file."""
    config = _read_json(DEFAULT_CONFIG_FILE)

    override_path = os.environ.get(ENV_CONFIG_PATH)
    if override_path:
        logger.info(f"Applying quality config override from: {override_path}")
        config = deep_merge(config, _read_json(Path(override_path)))

    return config


def get_numbering_rule(family: str) -> Dict[str, Any]:
    """Prefix, pad width, floor and scoping for a document family."""
    rules = load_quality_config().get("numbering", {})
    if family not in rules:
        raise KeyError(f"Unknown document family: {family}")
    return rules[family]


def get_sla_hours(severity: str) -> int:
    """Get SLA hours for a given RNC severity."""
    slas = load_quality_config().get("sla_hours", {})
    return slas.get(severity, 168)


def get_calibration_settings() -> Dict[str, int]:
    settings = load_quality_config().get("calibration", {})
    return {
        "default_frequency_days": settings.get("default_frequency_days", 365),
        "warning_window_days": settings.get("warning_window_days", 30),
    }


def get_quotation_validity_days() -> int:
    return load_quality_config().get("quotation", {}).get("default_validity_days", 30)


def get_max_cell_chars() -> int:
    return load_quality_config().get("limits", {}).get("max_cell_chars", 4000)
