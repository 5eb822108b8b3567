"""Canonical import contract helpers."""

from __future__ import annotations

from .fields import (
    ASSIGNMENT_FIELDS,
    USER_FIELDS,
    FieldSpec,
    ImportKind,
    get_canonical_fields,
    get_field_specs,
    get_required_fields,
)

__all__ = [
    "ASSIGNMENT_FIELDS",
    "USER_FIELDS",
    "FieldSpec",
    "ImportKind",
    "get_canonical_fields",
    "get_field_specs",
    "get_required_fields",
]
