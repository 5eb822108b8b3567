"""
Utility helpers for importer feature flag and tuning lookups.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import current_app

# Keyed by ImportKind value; this module must not import the importer package.
DEFAULT_CHUNK_SIZES = {
    "assignments": 10,
    "users": 50,
}
_CHUNK_SIZE_KEYS = {
    "assignments": "IMPORTER_ASSIGNMENT_CHUNK_SIZE",
    "users": "IMPORTER_USER_CHUNK_SIZE",
}


def _get_config(app=None):
    if app is not None:
        return app.config
    return current_app.config


def is_importer_enabled(app=None) -> bool:
    """Return True when the importer feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("IMPORTER_ENABLED", False))


def get_allowed_extensions(app=None) -> Tuple[str, ...]:
    """Return the configured upload extensions, lower-case and without dots."""
    config = _get_config(app)
    extensions: Iterable[str] = config.get("IMPORTER_ALLOWED_EXTENSIONS", ("xlsx", "xls", "csv"))
    return tuple(ext.strip().lstrip(".").lower() for ext in extensions if ext and ext.strip())


def get_chunk_size(kind, app=None) -> int:
    """Return the configured chunk size for an import kind (enum member or value)."""
    kind = getattr(kind, "value", kind)
    if kind not in _CHUNK_SIZE_KEYS:
        raise ValueError(f"Unknown import kind: {kind!r}")
    config = _get_config(app)
    value = config.get(_CHUNK_SIZE_KEYS[kind]) or DEFAULT_CHUNK_SIZES[kind]
    return max(int(value), 1)


def get_chunk_pause_seconds(app=None) -> float:
    """Return the pause inserted between chunks."""
    config = _get_config(app)
    value = config.get("IMPORTER_CHUNK_PAUSE_SECONDS", 0.1)
    return max(float(value), 0.0)
