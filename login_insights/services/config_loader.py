"""
login_insights/services/config_loader.py

Loads and caches config/event_source.yaml: the remote API location, the
pipeline sizes and the raw-field alias table used to decode /get-events
records.

CLI validation:
    login-insights validate-config
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from login_insights.schemas.event_models import RAW_FIELDS

_CACHE: Optional[Dict[str, Any]] = None

_DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parents[2] / "config" / "event_source.yaml"
)

_REQUIRED_API_KEYS = ["base_url", "auth_path", "events_path"]

_PIPELINE_DEFAULTS: Dict[str, int] = {
    "page_size": 500,
    "table_limit": 50,
    "chart_user_limit": 20,
}


def config_path() -> Path:
    override = os.environ.get("EVENT_SOURCE_CONFIG_PATH")
    return Path(override) if override else _DEFAULT_CONFIG_PATH


def load_config(force_reload: bool = False) -> Dict[str, Any]:
    """Return the parsed config, reading it from disk on first use.

    EVENT_SOURCE_CONFIG_PATH replaces the bundled config/event_source.yaml.
    A missing file or a document that is not a mapping raises RuntimeError.
    """
    global _CACHE
    if _CACHE is None or force_reload:
        path = config_path()
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise RuntimeError(
                f"Event source config not found at {path} "
                "(set EVENT_SOURCE_CONFIG_PATH to point elsewhere)"
            ) from None

        data = yaml.safe_load(raw)
        if not isinstance(data, dict):
            raise RuntimeError(f"{path}: top level must be a mapping, got {type(data).__name__}")
        _CACHE = data
    return _CACHE


def get_api_settings() -> Dict[str, Any]:
    api = load_config().get("api") or {}
    return {
        "base_url": str(api.get("base_url", "")).rstrip("/"),
        "auth_path": api.get("auth_path", "/auth"),
        "events_path": api.get("events_path", "/get-events"),
        "timeout_seconds": float(api.get("timeout_seconds", 30)),
    }


def get_pipeline_settings() -> Dict[str, int]:
    """Pipeline sizes with defaults filled in.

    Raises RuntimeError when a configured value is not a positive integer.
    """
    pipeline = load_config().get("pipeline") or {}
    settings: Dict[str, int] = {}
    for key, default in _PIPELINE_DEFAULTS.items():
        value = pipeline.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise RuntimeError(f"'pipeline.{key}' must be a positive integer, got {value!r}")
        settings[key] = value
    return settings


def get_field_aliases(field: str) -> List[str]:
    """Return the ordered raw-key alias list for a canonical raw field.

    A field missing from the config resolves to its own name.
    """
    fields = load_config().get("fields") or {}
    aliases = fields.get(field)
    if not aliases:
        return [field]
    return list(aliases) if isinstance(aliases, list) else [str(aliases)]


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Validate the loaded config dict. Returns a list of error strings.

    Rules:
    - 'api' section must exist and define base_url, auth_path, events_path.
    - 'pipeline' values, when present, must be positive integers.
    - Every field in RAW_FIELDS must appear under 'fields' with a non-empty
      list of aliases.
    """
    errors: List[str] = []

    api = config.get("api")
    if not isinstance(api, dict):
        errors.append("Missing required 'api' section.")
    else:
        for key in _REQUIRED_API_KEYS:
            value = api.get(key)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"'api.{key}' must be a non-empty string.")

    pipeline = config.get("pipeline", {})
    if not isinstance(pipeline, dict):
        errors.append(f"'pipeline' must be a YAML mapping, got {type(pipeline).__name__}.")
    else:
        for key in _PIPELINE_DEFAULTS:
            if key not in pipeline:
                continue
            value = pipeline[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                errors.append(f"'pipeline.{key}' must be a positive integer, got {value!r}.")

    fields = config.get("fields")
    if not isinstance(fields, dict):
        errors.append("Missing required 'fields' section.")
        return errors

    for field in RAW_FIELDS:
        aliases = fields.get(field)
        if not aliases:
            errors.append(f"'fields' is missing aliases for required field '{field}'.")
        elif not isinstance(aliases, list):
            errors.append(f"'fields.{field}' must be a list of raw key names.")

    return errors
