"""
Record validation for directory imports.

Assignment rows run through an ordered, short-circuiting sequence of checks.
User rows check every field and report all problems at once. Both produce
immutable ``ValidationResult`` objects; nothing here raises for bad data.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from directory_app.importer.errors import FieldFormatError, IssueCategory
from directory_app.importer.mapping import JobLevelAliases, MappedRow
from directory_app.importer.pipeline.normalizers import (
    GENDER_UNRECOGNIZED,
    normalize_birth_date,
    normalize_gender,
    normalize_hire_date,
    normalize_identifier,
    normalize_job_level_code,
    split_full_name,
)
from directory_app.importer.pipeline.permissions import TierPolicy, check_assignment_permission
from directory_app.importer.pipeline.snapshot import DirectoryPerson, DirectorySnapshot

EXPECTED_DPI_DIGITS = 13
MAX_TEXT_LENGTH = 255


@dataclass(frozen=True)
class CanonicalAssignmentRecord:
    colaborador_dpi: str
    jefe_dpi: str
    grupo_id: str | None = None
    row_number: int | None = None
    colaborador_nombre: str | None = None
    jefe_nombre: str | None = None

    @property
    def pair(self) -> Tuple[str, str]:
        return self.colaborador_dpi, self.jefe_dpi

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class CanonicalUserRecord:
    dpi: str
    nombre: str
    apellidos: str
    fecha_nacimiento: str
    nivel: str
    cargo: str
    area: str
    fecha_ingreso: str | None = None
    genero: str | None = None
    row_number: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.nombre} {self.apellidos}".strip()

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    row_number: int
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    payload: CanonicalAssignmentRecord | CanonicalUserRecord | None = None
    category: IssueCategory | None = None
    is_duplicate: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "row_number": self.row_number,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "category": self.category.value if self.category else None,
            "is_duplicate": self.is_duplicate,
            "payload": self.payload.to_dict() if self.payload else None,
        }


@dataclass(frozen=True)
class BatchValidationStats:
    total: int = 0
    valid: int = 0
    invalid: int = 0
    warnings: int = 0
    duplicates: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class BatchValidationResult:
    results: Tuple[ValidationResult, ...] = ()
    stats: BatchValidationStats = field(default_factory=BatchValidationStats)

    @property
    def valid_records(self) -> List[CanonicalAssignmentRecord | CanonicalUserRecord]:
        return [result.payload for result in self.results if result.is_valid and result.payload is not None]

    @property
    def invalid_results(self) -> List[ValidationResult]:
        return [result for result in self.results if not result.is_valid]

    def error_messages(self) -> List[str]:
        return [f"Row {result.row_number}: {error}" for result in self.invalid_results for error in result.errors]

    def warning_messages(self) -> List[str]:
        return [
            f"Row {result.row_number}: {warning}" for result in self.results for warning in result.warnings
        ]

    def to_dict(self) -> Dict[str, object]:
        return {
            "stats": self.stats.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }


def summarize_results(results: Sequence[ValidationResult]) -> BatchValidationResult:
    """Aggregate per-row results into batch statistics."""

    valid = sum(1 for result in results if result.is_valid)
    stats = BatchValidationStats(
        total=len(results),
        valid=valid,
        invalid=len(results) - valid,
        warnings=sum(1 for result in results if result.warnings),
        duplicates=sum(1 for result in results if result.is_duplicate),
    )
    return BatchValidationResult(results=tuple(results), stats=stats)


def format_validation_errors(messages: Iterable[str]) -> str:
    """
    Group messages by their prefix (the text before the first colon).

    ``["Row 3: DPI is required.", "Row 3: Position is required."]`` becomes::

        Row 3:
          - DPI is required.
          - Position is required.
    """

    groups: "OrderedDict[str, List[str]]" = OrderedDict()
    for message in messages:
        prefix, sep, detail = message.partition(":")
        if not sep:
            prefix, detail = "General", message
        groups.setdefault(prefix.strip(), []).append(detail.strip())

    lines: List[str] = []
    for prefix, details in groups.items():
        lines.append(f"{prefix}:")
        lines.extend(f"  - {detail}" for detail in details)
    return "\n".join(lines)


def _clean_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class AssignmentValidator:
    """
    Validates assignment rows against a directory snapshot.

    Holds the run-scoped set of accepted pairs, so one instance must be used
    for exactly one import run.
    """

    def __init__(self, snapshot: DirectorySnapshot, *, policy: TierPolicy | None = None):
        self.snapshot = snapshot
        self.policy = policy
        self._accepted_pairs: set[Tuple[str, str]] = set()

    def validate(self, row: MappedRow) -> ValidationResult:
        warnings: List[str] = []

        def fail(message: str, category: IssueCategory) -> ValidationResult:
            return ValidationResult(
                row_number=row.row_number,
                is_valid=False,
                errors=(message,),
                warnings=tuple(warnings),
                category=category,
            )

        try:
            collaborator_id = normalize_identifier(row.get("colaborador_dpi"), label="Collaborator DPI")
        except FieldFormatError as exc:
            return fail(str(exc), IssueCategory.FORMAT)
        if collaborator_id.warning:
            warnings.append(collaborator_id.warning)

        collaborator = self._resolve(collaborator_id.value)
        if isinstance(collaborator, str):
            return fail(f"Collaborator {collaborator}", IssueCategory.REFERENTIAL)

        try:
            supervisor_id = normalize_identifier(row.get("jefe_dpi"), label="Supervisor DPI")
        except FieldFormatError as exc:
            return fail(str(exc), IssueCategory.FORMAT)
        if supervisor_id.warning:
            warnings.append(supervisor_id.warning)

        supervisor = self._resolve(supervisor_id.value)
        if isinstance(supervisor, str):
            return fail(f"Supervisor {supervisor}", IssueCategory.REFERENTIAL)

        if collaborator.dpi == supervisor.dpi:
            return fail(
                f"DPI {collaborator.dpi} cannot be assigned as their own supervisor.",
                IssueCategory.BUSINESS_RULE,
            )

        decision = check_assignment_permission(supervisor.nivel, collaborator.nivel, policy=self.policy)
        if not decision.allowed:
            return fail(decision.reason or "Assignment is not permitted.", IssueCategory.BUSINESS_RULE)

        pair = (collaborator.dpi, supervisor.dpi)
        is_duplicate = pair in self._accepted_pairs
        if is_duplicate:
            warnings.append(
                f"Duplicate assignment: collaborator {collaborator.dpi} is already assigned to "
                f"supervisor {supervisor.dpi} earlier in this file."
            )
        else:
            self._accepted_pairs.add(pair)

        grupo_id = _clean_text(row.get("grupo_id")) or None
        record = CanonicalAssignmentRecord(
            colaborador_dpi=collaborator.dpi,
            jefe_dpi=supervisor.dpi,
            grupo_id=grupo_id,
            row_number=row.row_number,
            colaborador_nombre=collaborator.full_name,
            jefe_nombre=supervisor.full_name,
        )
        return ValidationResult(
            row_number=row.row_number,
            is_valid=True,
            warnings=tuple(warnings),
            payload=record,
            category=IssueCategory.DUPLICATE if is_duplicate else None,
            is_duplicate=is_duplicate,
        )

    def _resolve(self, dpi: str) -> DirectoryPerson | str:
        person = self.snapshot.get_person(dpi)
        if person is None:
            return f"with DPI {dpi} does not exist in the directory."
        if not person.is_active:
            return f"with DPI {dpi} is inactive."
        return person


class UserValidator:
    """Validates user rows; collects every field problem instead of stopping at the first."""

    def __init__(self, snapshot: DirectorySnapshot, *, aliases: JobLevelAliases | None = None):
        self.snapshot = snapshot
        self.aliases = aliases
        self._seen_dpis: set[str] = set()

    def validate(self, row: MappedRow) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []
        category: IssueCategory | None = None
        is_duplicate = False

        def error(message: str, issue: IssueCategory) -> None:
            nonlocal category
            errors.append(message)
            category = category or issue

        dpi = ""
        try:
            identifier = normalize_identifier(row.get("dpi"))
        except FieldFormatError as exc:
            error(str(exc), IssueCategory.FORMAT)
        else:
            dpi = identifier.value
            if identifier.warning:
                warnings.append(identifier.warning)
            if len(dpi) != EXPECTED_DPI_DIGITS:
                warnings.append(f"DPI {dpi} has {len(dpi)} digits; DPI numbers usually have {EXPECTED_DPI_DIGITS}.")
            if dpi in self._seen_dpis:
                is_duplicate = True
                warnings.append(f"DPI {dpi} appears more than once in this file; the last row wins.")
            if self.snapshot.get_person(dpi) is not None:
                warnings.append(f"A person with DPI {dpi} already exists and will be updated.")

        nombre, apellidos = split_full_name(row.get("nombre"))
        if not nombre:
            error("Full name is required.", IssueCategory.FORMAT)

        fecha_nacimiento = ""
        try:
            fecha_nacimiento = normalize_birth_date(row.get("fechaNacimiento"))
        except FieldFormatError as exc:
            error(str(exc), IssueCategory.FORMAT)

        raw_hire_date = row.get("fechaIngreso")
        fecha_ingreso = normalize_hire_date(raw_hire_date)
        if fecha_ingreso is None and _clean_text(raw_hire_date):
            warnings.append(f"Hire date '{_clean_text(raw_hire_date)}' could not be read and will be left empty.")

        raw_level = _clean_text(row.get("nivel"))
        nivel = normalize_job_level_code(raw_level, self.aliases)
        if not nivel:
            error("Job level is required.", IssueCategory.FORMAT)
        elif self.snapshot.get_job_level(nivel) is None:
            error(
                f"Job level '{nivel}' does not exist. Valid codes: {', '.join(self.snapshot.valid_level_codes)}.",
                IssueCategory.REFERENTIAL,
            )
        elif nivel != raw_level.upper():
            warnings.append(f"Job level '{raw_level}' was converted to code {nivel}.")

        cargo = self._required_text(row.get("cargo"), "Position", error)
        area = self._required_text(row.get("area"), "Area", error)

        raw_gender = row.get("genero")
        genero = normalize_gender(raw_gender)
        if genero == GENDER_UNRECOGNIZED:
            warnings.append(f"Gender '{_clean_text(raw_gender)}' was not recognized and will be left empty.")
            genero = None

        if errors:
            return ValidationResult(
                row_number=row.row_number,
                is_valid=False,
                errors=tuple(errors),
                warnings=tuple(warnings),
                category=category,
                is_duplicate=is_duplicate,
            )

        self._seen_dpis.add(dpi)
        record = CanonicalUserRecord(
            dpi=dpi,
            nombre=nombre,
            apellidos=apellidos,
            fecha_nacimiento=fecha_nacimiento,
            fecha_ingreso=fecha_ingreso,
            nivel=nivel,
            cargo=cargo,
            area=area,
            genero=genero,
            row_number=row.row_number,
        )
        return ValidationResult(
            row_number=row.row_number,
            is_valid=True,
            warnings=tuple(warnings),
            payload=record,
            category=IssueCategory.DUPLICATE if is_duplicate else None,
            is_duplicate=is_duplicate,
        )

    @staticmethod
    def _required_text(value: object, label: str, error) -> str:
        text = _clean_text(value)
        if not text:
            error(f"{label} is required.", IssueCategory.FORMAT)
        elif len(text) > MAX_TEXT_LENGTH:
            error(f"{label} must be at most {MAX_TEXT_LENGTH} characters.", IssueCategory.FORMAT)
        return text


def validate_assignment_rows(
    rows: Sequence[MappedRow],
    snapshot: DirectorySnapshot,
    *,
    policy: TierPolicy | None = None,
) -> BatchValidationResult:
    """Validate assignment rows in source order."""

    validator = AssignmentValidator(snapshot, policy=policy)
    return summarize_results([validator.validate(row) for row in rows])


def validate_user_rows(
    rows: Sequence[MappedRow],
    snapshot: DirectorySnapshot,
    *,
    aliases: JobLevelAliases | None = None,
) -> BatchValidationResult:
    """Validate user rows in source order."""

    validator = UserValidator(snapshot, aliases=aliases)
    return summarize_results([validator.validate(row) for row in rows])
