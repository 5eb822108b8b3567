"""
Read-only directory snapshot used while validating one import run.

The snapshot is loaded once per run and never refreshed, so duplicate and
referential checks are scoped to the run rather than to live directory state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple

from flask import current_app, has_app_context
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from directory_app.importer.errors import PreconditionError
from directory_app.models import JobLevel, Person, PersonStatus, db


@dataclass(frozen=True)
class DirectoryPerson:
    dpi: str
    nombre: str
    apellidos: str
    nivel: str
    rol: str
    estado: str

    @property
    def full_name(self) -> str:
        return f"{self.nombre} {self.apellidos}".strip()

    @property
    def is_active(self) -> bool:
        return self.estado == PersonStatus.ACTIVE.value


@dataclass(frozen=True)
class JobLevelInfo:
    code: str
    name: str
    hierarchical_order: float


@dataclass(frozen=True)
class DirectorySnapshot:
    """People keyed by DPI plus active job levels keyed by code."""

    people: Mapping[str, DirectoryPerson] = field(default_factory=dict)
    job_levels: Mapping[str, JobLevelInfo] = field(default_factory=dict)

    def get_person(self, dpi: str) -> DirectoryPerson | None:
        return self.people.get(dpi)

    def get_job_level(self, code: str) -> JobLevelInfo | None:
        return self.job_levels.get(code)

    @property
    def valid_level_codes(self) -> Tuple[str, ...]:
        """Active codes ordered from most to least senior."""

        return tuple(
            level.code
            for level in sorted(self.job_levels.values(), key=lambda item: (item.hierarchical_order, item.code))
        )


def load_directory_snapshot(session=None) -> DirectorySnapshot:
    """
    Load people and active job levels into an immutable snapshot.

    Raises:
        PreconditionError: the directory or job-level tables cannot be read.
    """

    session = session or db.session
    try:
        people_rows = session.execute(
            select(
                Person.dpi,
                Person.nombre,
                Person.apellidos,
                Person.nivel,
                Person.rol,
                Person.estado,
            )
        ).all()
        level_rows = session.execute(
            select(JobLevel.code, JobLevel.name, JobLevel.hierarchical_order).where(JobLevel.is_active.is_(True))
        ).all()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PreconditionError(f"Unable to load directory reference data: {exc}") from exc

    people = {
        row.dpi: DirectoryPerson(
            dpi=row.dpi,
            nombre=row.nombre,
            apellidos=row.apellidos or "",
            nivel=(row.nivel or "").upper(),
            rol=row.rol,
            estado=row.estado,
        )
        for row in people_rows
    }
    job_levels = {
        row.code.upper(): JobLevelInfo(
            code=row.code.upper(),
            name=row.name,
            hierarchical_order=float(row.hierarchical_order),
        )
        for row in level_rows
    }
    if has_app_context():
        current_app.logger.debug(
            "Loaded directory snapshot with %s people and %s job levels", len(people), len(job_levels)
        )
    return DirectorySnapshot(people=people, job_levels=job_levels)
