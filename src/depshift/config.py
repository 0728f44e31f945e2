"""Runtime configuration for registry endpoints, timeouts and scanning.

Values are read from a YAML (or JSON) file and environment variables and
copied onto :class:`~depshift.constants.Constants`. Loading never raises: a
missing or broken file simply leaves the defaults in place.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from .constants import Constants

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = [
    "depshift.yml",
    "depshift.yaml",
    os.path.join("~", ".config", "depshift", "depshift.yml"),
]

# config section -> key -> Constants attribute
_CONFIG_KEYS = {
    "registries": {
        "jsr_url": "REGISTRY_URL_JSR",
        "npm_url": "REGISTRY_URL_NPM",
    },
    "http": {
        "timeout": "REQUEST_TIMEOUT",
        "user_agent": "USER_AGENT",
    },
    "cache": {
        "ttl": "VERSION_CACHE_TTL_SEC",
        "max_entries": "VERSION_CACHE_MAX_ENTRIES",
    },
    "scan": {
        "manifest_files": "MANIFEST_FILES",
        "ignore_file": "IGNORE_FILE",
        "project_skip_dirs": "PROJECT_SKIP_DIRS",
        "reference_skip_dirs": "REFERENCE_SKIP_DIRS",
    },
}

_ENV_OVERRIDES = {
    "DEPSHIFT_JSR_URL": ("REGISTRY_URL_JSR", str),
    "DEPSHIFT_NPM_URL": ("REGISTRY_URL_NPM", str),
    "DEPSHIFT_REQUEST_TIMEOUT": ("REQUEST_TIMEOUT", float),
}


def _read_config_file(path: str) -> Dict[str, Any]:
    """Read one YAML/JSON file, returning {} when unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Failed to load config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from ``path``, ``DEPSHIFT_CONFIG`` or default locations.

    Args:
        path: Explicit config file path (highest precedence).

    Returns:
        Parsed configuration mapping, or {} when nothing was found.
    """
    explicit = path or os.environ.get("DEPSHIFT_CONFIG")
    if explicit:
        expanded = os.path.expanduser(explicit)
        if not os.path.isfile(expanded):
            logger.warning("Config file not found: %s", explicit)
            return {}
        return _read_config_file(expanded)

    for candidate in DEFAULT_CONFIG_PATHS:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            logger.debug("Using config file %s", expanded)
            return _read_config_file(expanded)
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognized config keys onto Constants; unknown keys are ignored."""
    for section, keys in _CONFIG_KEYS.items():
        values = cfg.get(section)
        if not isinstance(values, dict):
            continue
        for key, attr in keys.items():
            if key in values:
                setattr(Constants, attr, values[key])
                logger.debug("Config override %s.%s", section, key)


def apply_env_overrides(environ: Optional[Dict[str, str]] = None) -> None:
    """Apply ``DEPSHIFT_*`` environment overrides on top of file config."""
    env = os.environ if environ is None else environ
    for var, (attr, cast) in _ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        try:
            setattr(Constants, attr, cast(raw.strip()))
        except ValueError:
            logger.warning("Ignoring invalid value for %s: %r", var, raw)


def configure(path: Optional[str] = None) -> Dict[str, Any]:
    """Load file config, apply it, then apply environment overrides."""
    cfg = load_config(path)
    apply_config(cfg)
    apply_env_overrides()
    return cfg
