"""
Chunked, sequential upsert of validated directory records.

``run_chunked_import`` writes records one at a time through a ``RecordWriter``,
reports progress after every record and pauses between chunks. A failed write
is captured and the batch moves on; only an unreachable destination aborts it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Sequence, Tuple

from flask import current_app, has_app_context
from sqlalchemy import select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from directory_app.importer.errors import DestinationUnavailableError, IssueCategory
from directory_app.importer.pipeline.roles import promote_supervisor_role_safely
from directory_app.importer.pipeline.validate import CanonicalAssignmentRecord, CanonicalUserRecord
from directory_app.models import Assignment, Person, PersonRole, PersonStatus, db

DEFAULT_ASSIGNMENT_CHUNK_SIZE = 10
DEFAULT_USER_CHUNK_SIZE = 50
DEFAULT_CHUNK_PAUSE_SECONDS = 0.1


@dataclass(frozen=True)
class ImportProgress:
    current: int
    total: int
    percentage: int

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "total": self.total, "percentage": self.percentage}


@dataclass(frozen=True)
class WriteResult:
    ok: bool
    message: str | None = None
    side_effect_warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportFailure:
    record: object
    message: str
    row_number: int | None = None
    category: IssueCategory = IssueCategory.PERSISTENCE

    def to_dict(self) -> Dict[str, object]:
        record = self.record.to_dict() if hasattr(self.record, "to_dict") else self.record
        return {
            "row_number": self.row_number,
            "message": self.message,
            "category": self.category.value,
            "record": record,
        }


@dataclass(frozen=True)
class BatchImportOutcome:
    total: int
    success_count: int
    failures: Tuple[ImportFailure, ...] = ()
    side_effect_warnings: Tuple[str, ...] = ()

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failures": [failure.to_dict() for failure in self.failures],
            "side_effect_warnings": list(self.side_effect_warnings),
        }


ProgressCallback = Callable[[ImportProgress], None]


class RecordWriter:
    """Writes one canonical record to the destination store."""

    def ensure_available(self) -> None:
        """Raise ``DestinationUnavailableError`` when the store cannot be reached."""

    def write(self, record) -> WriteResult:
        raise NotImplementedError


def compute_percentage(current: int, total: int) -> int:
    """
    Round ``100 * current / total`` half-up, holding at 99 until the last record
    so 100 is reported exactly once.
    """

    if total <= 0 or current >= total:
        return 100
    percentage = (200 * current + total) // (2 * total)
    return min(percentage, 99)


def run_chunked_import(
    records: Sequence[object],
    writer: RecordWriter,
    *,
    chunk_size: int,
    progress_callback: ProgressCallback | None = None,
    pause_seconds: float = DEFAULT_CHUNK_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchImportOutcome:
    """
    Write ``records`` in source order, ``chunk_size`` at a time.

    Raises:
        DestinationUnavailableError: the store cannot be reached at all.
    """

    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    total = len(records)
    writer.ensure_available()

    success_count = 0
    failures: list[ImportFailure] = []
    side_effect_warnings: list[str] = []
    current = 0

    for start in range(0, total, chunk_size):
        if start > 0 and pause_seconds > 0:
            sleep(pause_seconds)
        for record in records[start : start + chunk_size]:
            row_number = getattr(record, "row_number", None)
            try:
                result = writer.write(record)
            except DestinationUnavailableError:
                raise
            except SQLAlchemyError as exc:
                result = WriteResult(ok=False, message=_describe_db_error(exc))
            except Exception as exc:
                if has_app_context():
                    current_app.logger.exception("Unexpected error writing row %s", row_number)
                result = WriteResult(ok=False, message=str(exc) or type(exc).__name__)

            if result.ok:
                success_count += 1
            else:
                message = result.message or "Write failed."
                failures.append(ImportFailure(record=record, message=message, row_number=row_number))
                if has_app_context():
                    current_app.logger.warning("Import write failed for row %s: %s", row_number, message)
            side_effect_warnings.extend(result.side_effect_warnings)

            current += 1
            if progress_callback is not None:
                progress_callback(
                    ImportProgress(current=current, total=total, percentage=compute_percentage(current, total))
                )

    outcome = BatchImportOutcome(
        total=total,
        success_count=success_count,
        failures=tuple(failures),
        side_effect_warnings=tuple(side_effect_warnings),
    )
    if has_app_context():
        current_app.logger.info(
            "Import batch finished: total=%s success=%s failures=%s side_effect_warnings=%s",
            outcome.total,
            outcome.success_count,
            outcome.failure_count,
            len(outcome.side_effect_warnings),
        )
    return outcome


def _describe_db_error(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    return str(original or exc).strip().splitlines()[0]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _SessionWriter(RecordWriter):
    """Shared upsert plumbing: dialect-specific ON CONFLICT statements, one commit per record."""

    model = None
    conflict_columns: Tuple[str, ...] = ()

    def __init__(self, session=None):
        self.session = session or db.session

    def ensure_available(self) -> None:
        try:
            self.session.execute(text("SELECT 1"))
        except DBAPIError as exc:
            self.session.rollback()
            raise DestinationUnavailableError(f"Destination database is unreachable: {_describe_db_error(exc)}") from exc

    def values_for(self, record) -> Dict[str, object]:
        raise NotImplementedError

    def update_columns(self, values: Dict[str, object]) -> Tuple[str, ...]:
        raise NotImplementedError

    def write(self, record) -> WriteResult:
        values = self.values_for(record)
        try:
            self._upsert(values)
            self.session.commit()
        except DBAPIError as exc:
            self.session.rollback()
            if exc.connection_invalidated:
                raise DestinationUnavailableError(
                    f"Destination database connection was lost: {_describe_db_error(exc)}"
                ) from exc
            return WriteResult(ok=False, message=_describe_db_error(exc))
        except SQLAlchemyError as exc:
            self.session.rollback()
            return WriteResult(ok=False, message=_describe_db_error(exc))
        except Exception:
            self.session.rollback()
            raise
        return WriteResult(ok=True, side_effect_warnings=self.after_write(record))

    def after_write(self, record) -> Tuple[str, ...]:
        return ()

    def _upsert(self, values: Dict[str, object]) -> None:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            self._orm_upsert(values)
            return
        statement = insert(self.model).values(**values)
        update_set = {column: getattr(statement.excluded, column) for column in self.update_columns(values)}
        update_set["updated_at"] = _utcnow()
        statement = statement.on_conflict_do_update(index_elements=list(self.conflict_columns), set_=update_set)
        self.session.execute(statement)

    def _orm_upsert(self, values: Dict[str, object]) -> None:
        criteria = [getattr(self.model, column) == values[column] for column in self.conflict_columns]
        instance = self.session.scalars(select(self.model).where(*criteria)).one_or_none()
        if instance is None:
            self.session.add(self.model(**values))
            return
        for column in self.update_columns(values):
            setattr(instance, column, values[column])


class AssignmentWriter(_SessionWriter):
    """Upserts assignments on (colaborador_id, jefe_id) and cascades the supervisor role."""

    model = Assignment
    conflict_columns = ("colaborador_id", "jefe_id")

    def __init__(self, session=None, *, cascade_roles: bool = True):
        super().__init__(session)
        self.cascade_roles = cascade_roles

    def values_for(self, record: CanonicalAssignmentRecord) -> Dict[str, object]:
        return {
            "colaborador_id": record.colaborador_dpi,
            "jefe_id": record.jefe_dpi,
            "grupo_id": record.grupo_id,
            "activo": True,
        }

    def update_columns(self, values: Dict[str, object]) -> Tuple[str, ...]:
        return ("grupo_id", "activo")

    def after_write(self, record: CanonicalAssignmentRecord) -> Tuple[str, ...]:
        if not self.cascade_roles:
            return ()
        warning = promote_supervisor_role_safely(record.jefe_dpi, session=self.session)
        return (warning,) if warning else ()


class PersonWriter(_SessionWriter):
    """Upserts people on DPI. Existing roles and status are left untouched."""

    model = Person
    conflict_columns = ("dpi",)

    def values_for(self, record: CanonicalUserRecord) -> Dict[str, object]:
        return {
            "dpi": record.dpi,
            "nombre": record.nombre,
            "apellidos": record.apellidos,
            "fecha_nacimiento": record.fecha_nacimiento,
            "fecha_ingreso": date.fromisoformat(record.fecha_ingreso) if record.fecha_ingreso else None,
            "nivel": record.nivel,
            "cargo": record.cargo,
            "area": record.area,
            "genero": record.genero,
            "rol": PersonRole.COLABORADOR.value,
            "estado": PersonStatus.ACTIVE.value,
            "primer_ingreso": True,
        }

    def update_columns(self, values: Dict[str, object]) -> Tuple[str, ...]:
        return (
            "nombre",
            "apellidos",
            "fecha_nacimiento",
            "fecha_ingreso",
            "nivel",
            "cargo",
            "area",
            "genero",
        )
