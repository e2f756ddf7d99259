from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_EXTRACTION_CONFIG_CACHE: dict[str, Any] | None = None
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "extraction.yaml"


def _config_path() -> Path:
    override = (os.getenv("EXTRACTION_CONFIG_PATH") or "").strip()
    return Path(override) if override else _DEFAULT_CONFIG_PATH


def get_extraction_config() -> dict[str, Any]:
    """Load extraction tuning from repo-level config/extraction.yaml and cache it."""
    global _EXTRACTION_CONFIG_CACHE

    if _EXTRACTION_CONFIG_CACHE is not None:
        return _EXTRACTION_CONFIG_CACHE

    path = _config_path()
    if not path.exists():
        # Every caller supplies a default, so a missing file means "use defaults".
        _EXTRACTION_CONFIG_CACHE = {}
        return _EXTRACTION_CONFIG_CACHE

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read extraction config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in extraction config '{path}': {exc}") from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid extraction config '{path}': expected a top-level mapping."
        )

    _EXTRACTION_CONFIG_CACHE = parsed
    return _EXTRACTION_CONFIG_CACHE


def reset_extraction_config_cache() -> None:
    global _EXTRACTION_CONFIG_CACHE
    _EXTRACTION_CONFIG_CACHE = None


def get_extraction_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'retry.max_attempts'."""
    if not path:
        return default

    current: Any = get_extraction_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current
