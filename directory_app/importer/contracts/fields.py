"""Canonical field contracts for directory imports.

Each import kind declares its canonical fields in priority order together with
the lower-case substring patterns the column mapper tests headers against.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, Tuple


class ImportKind(str, enum.Enum):
    """Entity type carried by an import file."""

    ASSIGNMENTS = "assignments"
    USERS = "users"


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical import field."""

    name: str
    label: str
    required: bool = False
    patterns: Tuple[str, ...] = ()


ASSIGNMENT_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="colaborador_dpi",
        label="Collaborator DPI",
        required=True,
        patterns=(
            "colaborador",
            "empleado",
            "dpi col",
            "dpi_col",
            "colaborador_dpi",
            "colaborador dpi",
            "dpi colaborador",
            "cui colaborador",
            "cui col",
        ),
    ),
    FieldSpec(
        name="jefe_dpi",
        label="Supervisor DPI",
        required=True,
        patterns=(
            "jefe",
            "evaluador",
            "supervisor",
            "dpi jefe",
            "dpi_jefe",
            "jefe_dpi",
            "jefe dpi",
            "dpi evaluador",
            "cui jefe",
            "cui evaluador",
        ),
    ),
    FieldSpec(
        name="grupo_id",
        label="Group",
        required=False,
        patterns=("grupo", "equipo", "cuadrilla", "grupo_id", "equipo_id", "id grupo", "id equipo"),
    ),
)


USER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(name="dpi", label="DPI", required=True, patterns=("dpi", "documento", "cedula", "cédula")),
    FieldSpec(
        name="nombre",
        label="Full name",
        required=True,
        patterns=("nombre completo", "nombre", "empleado"),
    ),
    FieldSpec(
        name="fechaNacimiento",
        label="Birth date",
        required=True,
        patterns=("fecha de nacimiento", "nacimiento", "fecha nac", "fecha_nacimiento", "fechanacimiento"),
    ),
    FieldSpec(
        name="fechaIngreso",
        label="Hire date",
        required=False,
        patterns=(
            "fecha de inicio laboral",
            "fecha ingreso",
            "fecha de ingreso",
            "fecha_ingreso",
            "fechaingreso",
            "inicio",
        ),
    ),
    FieldSpec(
        name="nivel",
        label="Job level code",
        required=True,
        patterns=("nivel de puesto", "codigo nivel", "código nivel", "nivel"),
    ),
    FieldSpec(name="cargo", label="Position", required=True, patterns=("puesto", "cargo", "posicion", "posición")),
    FieldSpec(
        name="area",
        label="Area / department",
        required=True,
        patterns=("departamento o dependencia", "departamento", "dependencia", "area", "área", "direccion o unidad"),
    ),
    FieldSpec(name="genero", label="Gender", required=False, patterns=("sexo", "genero", "género")),
)


_FIELDS_BY_KIND: Mapping[ImportKind, Tuple[FieldSpec, ...]] = {
    ImportKind.ASSIGNMENTS: ASSIGNMENT_FIELDS,
    ImportKind.USERS: USER_FIELDS,
}


def get_field_specs(kind: ImportKind | str) -> Tuple[FieldSpec, ...]:
    """Return the canonical field specifications for an import kind."""

    return _FIELDS_BY_KIND[ImportKind(kind)]


def get_required_fields(kind: ImportKind | str) -> Tuple[str, ...]:
    """Canonical fields that must be mapped for rows to validate."""

    return tuple(spec.name for spec in get_field_specs(kind) if spec.required)


def get_canonical_fields(kind: ImportKind | str) -> Tuple[str, ...]:
    """Return all canonical field names for an import kind, in template order."""

    return tuple(spec.name for spec in get_field_specs(kind))
