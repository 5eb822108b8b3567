"""Header to canonical-field mapping for directory imports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from directory_app.importer.contracts import FieldSpec, ImportKind, get_field_specs
from directory_app.importer.errors import ImporterError
from .aliases import (
    DEFAULT_ALIASES_PATH,
    AliasLoadError,
    JobLevelAliases,
    get_active_job_level_aliases,
    load_job_level_aliases,
    normalize_alias_key,
)


class ColumnMappingError(ImporterError):
    """Raised when a caller-supplied column mapping references unknown headers or fields."""


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field -> source header assignment for one file.

    The mapping is advisory: unmapped required fields surface later as row
    errors, never as a rejection of the mapping itself.
    """

    kind: ImportKind
    fields: Mapping[str, str]
    unmapped_headers: Tuple[str, ...] = ()

    @property
    def missing_required(self) -> Tuple[str, ...]:
        return missing_required_fields(self.kind, self.fields)

    def header_for(self, field_name: str) -> str | None:
        return self.fields.get(field_name)

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind.value,
            "fields": dict(self.fields),
            "unmapped_headers": list(self.unmapped_headers),
            "missing_required": list(self.missing_required),
        }


@dataclass(frozen=True)
class MappedRow:
    """Raw cell values re-keyed by canonical field name."""

    row_number: int
    values: Mapping[str, object] = field(default_factory=dict)

    def get(self, field_name: str) -> object | None:
        return self.values.get(field_name)


def _header_key(header: str) -> str:
    return str(header).strip().casefold()


def _matches(spec: FieldSpec, header_key: str) -> bool:
    return any(pattern in header_key for pattern in spec.patterns)


def suggest_column_mapping(headers: Sequence[str], kind: ImportKind | str) -> ColumnMapping:
    """
    Pre-fill a mapping by testing each header against the field patterns.

    Headers are visited in file order and fields in contract order; the first
    field with a matching pattern wins. When that field was already claimed by
    an earlier header the header stays unmapped rather than falling through to
    a later field.
    """

    kind = ImportKind(kind)
    specs = get_field_specs(kind)
    claimed: Dict[str, str] = {}
    unmapped: list[str] = []
    for header in headers:
        key = _header_key(header)
        target = None
        if key:
            target = next((spec.name for spec in specs if _matches(spec, key)), None)
        if target is None or target in claimed:
            unmapped.append(header)
            continue
        claimed[target] = header
    ordered = {spec.name: claimed[spec.name] for spec in specs if spec.name in claimed}
    return ColumnMapping(kind=kind, fields=ordered, unmapped_headers=tuple(unmapped))


def resolve_column_mapping(
    headers: Sequence[str],
    kind: ImportKind | str,
    overrides: Mapping[str, str | None] | None = None,
) -> ColumnMapping:
    """
    Merge caller overrides onto the suggested mapping.

    ``overrides`` maps canonical field -> header; a ``None``/empty header removes
    the field from the mapping.

    Raises:
        ColumnMappingError: an override names an unknown field or header.
    """

    suggestion = suggest_column_mapping(headers, kind)
    if not overrides:
        return suggestion

    known_fields = {spec.name for spec in get_field_specs(suggestion.kind)}
    header_set = set(headers)
    merged = dict(suggestion.fields)
    for field_name, header in overrides.items():
        if field_name not in known_fields:
            raise ColumnMappingError(
                f"Unknown field '{field_name}' for {suggestion.kind.value} imports. "
                f"Expected one of: {', '.join(sorted(known_fields))}."
            )
        if not header:
            merged.pop(field_name, None)
            continue
        if header not in header_set:
            raise ColumnMappingError(f"Column '{header}' is not present in the file.")
        for other_field, other_header in list(merged.items()):
            if other_header == header and other_field != field_name:
                merged.pop(other_field)
        merged[field_name] = header

    ordered = {
        spec.name: merged[spec.name] for spec in get_field_specs(suggestion.kind) if spec.name in merged
    }
    used = set(ordered.values())
    return ColumnMapping(
        kind=suggestion.kind,
        fields=ordered,
        unmapped_headers=tuple(header for header in headers if header not in used),
    )


def missing_required_fields(kind: ImportKind | str, fields: Iterable[str]) -> Tuple[str, ...]:
    """Return required canonical fields absent from ``fields``."""

    present = set(fields)
    return tuple(spec.name for spec in get_field_specs(kind) if spec.required and spec.name not in present)


def apply_column_mapping(
    rows: Sequence[Mapping[str, object]],
    mapping: ColumnMapping,
    *,
    first_row_number: int = 2,
) -> list[MappedRow]:
    """
    Re-key header-keyed rows by canonical field.

    ``first_row_number`` is the sheet row of the first data row (2 when the
    file carries a header row) so errors point at the row users see.
    """

    mapped: list[MappedRow] = []
    for index, row in enumerate(rows):
        values = {field_name: row.get(header) for field_name, header in mapping.fields.items()}
        mapped.append(MappedRow(row_number=first_row_number + index, values=values))
    return mapped


__all__ = [
    "AliasLoadError",
    "ColumnMapping",
    "ColumnMappingError",
    "DEFAULT_ALIASES_PATH",
    "JobLevelAliases",
    "MappedRow",
    "apply_column_mapping",
    "get_active_job_level_aliases",
    "load_job_level_aliases",
    "missing_required_fields",
    "normalize_alias_key",
    "resolve_column_mapping",
    "suggest_column_mapping",
]
