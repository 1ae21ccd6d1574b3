"""Configuration loader with YAML and environment variable support."""

import os
from pathlib import Path
from typing import Any

import yaml

from .services.reconciliation_engine import ReconcilerOptions


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


# Default configuration values
DEFAULTS = {
    "logging": {
        "level": "INFO",
        "file": "logs/sauce-reconcile.log",
        "max_bytes": 10_000_000,
        "backup_count": 5,
    },
    "sauce": {
        "base_url": "https://saucelabs.com/",
        "username": "",
        "access_key": "",
        "timeout": 30,
        "retry": {
            "max_attempts": 3,
            "base_delay_seconds": 1.0,
            "max_delay_seconds": 30.0,
        },
    },
    "reconciler": {
        "job_visibility": "",
        "disable_usage_stats": False,
    },
    "run": {
        "state_file": "sauce-jobs.json",
    },
}

# Environment variable mappings
# Maps env var name to (config_section, config_key, type_converter)
ENV_MAPPINGS = {
    "LOG_LEVEL": ("logging", "level", str),
    "SAUCE_REST_ENDPOINT": ("sauce", "base_url", str),
    "SAUCE_USERNAME": ("sauce", "username", str),
    "SAUCE_ACCESS_KEY": ("sauce", "access_key", str),
    "SAUCE_TIMEOUT": ("sauce", "timeout", int),
    "SAUCE_JOB_VISIBILITY": ("reconciler", "job_visibility", str),
    "SAUCE_DISABLE_USAGE_STATS": ("reconciler", "disable_usage_stats", _to_bool),
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r") as f:
        content = yaml.safe_load(f)
        return content if content else {}


def apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides to configuration."""
    result = config.copy()

    for env_var, (section, key, converter) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is not None:
            # Copy the section so DEFAULTS is never mutated in place
            result[section] = dict(result.get(section, {}))
            result[section][key] = converter(value)

    return result


def load_config(config_path: str | Path = "config.yaml") -> dict:
    """Load config: env vars > config.yaml > DEFAULTS."""
    if isinstance(config_path, str):
        config_path = Path(config_path)

    config = deep_merge(DEFAULTS, load_yaml_config(config_path))
    return apply_env_overrides(config)


def get_value(config: dict, *keys: str, default: Any = None) -> Any:
    """Get a nested configuration value by key path."""
    result = config
    for key in keys:
        if isinstance(result, dict) and key in result:
            result = result[key]
        else:
            return default
    return result


def get_sauce_config(config: dict) -> dict:
    """Get Sauce REST client configuration with defaults."""
    retry = get_value(config, "sauce", "retry", default={}) or {}
    return {
        "base_url": get_value(config, "sauce", "base_url", default="https://saucelabs.com/"),
        "username": get_value(config, "sauce", "username", default=""),
        "access_key": get_value(config, "sauce", "access_key", default=""),
        "timeout": get_value(config, "sauce", "timeout", default=30),
        "retry": {
            "max_attempts": retry.get("max_attempts", 3),
            "base_delay_seconds": retry.get("base_delay_seconds", 1.0),
            "max_delay_seconds": retry.get("max_delay_seconds", 30.0),
        },
    }


def get_reconciler_options(config: dict) -> ReconcilerOptions:
    """Build the per-run reconciler options from configuration.

    Raises:
        ValueError: If the configured job visibility is not a known value.
    """
    visibility = get_value(config, "reconciler", "job_visibility", default="") or ""
    return ReconcilerOptions(
        visibility=str(visibility),
        disable_usage_stats=bool(
            get_value(config, "reconciler", "disable_usage_stats", default=False)
        ),
    )
