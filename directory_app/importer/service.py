"""
Import run service: parse -> map -> validate -> write, recorded as an ``ImportRun``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Mapping

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from directory_app.importer.adapters import ParsedImportFile, parse_import_file
from directory_app.importer.contracts import ImportKind
from directory_app.importer.errors import DestinationUnavailableError, ImporterError
from directory_app.importer.mapping import (
    ColumnMapping,
    apply_column_mapping,
    get_active_job_level_aliases,
    resolve_column_mapping,
)
from directory_app.importer.pipeline import (
    AssignmentWriter,
    BatchImportOutcome,
    BatchValidationResult,
    ImportProgress,
    PersonWriter,
    format_validation_errors,
    get_tier_policy,
    load_directory_snapshot,
    run_chunked_import,
    validate_assignment_rows,
    validate_user_rows,
)
from directory_app.models import ImportRun, ImportRunStatus, db
from directory_app.utils.importer import get_chunk_pause_seconds, get_chunk_size


@dataclass(frozen=True)
class ImportPreview:
    kind: ImportKind
    parsed: ParsedImportFile
    mapping: ColumnMapping
    validation: BatchValidationResult

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind.value,
            "headers": list(self.parsed.headers),
            "has_headers": self.parsed.has_headers,
            "row_count": self.parsed.row_count,
            "mapping": self.mapping.to_dict(),
            "sample_values": {
                field_name: _sample_to_json(self.parsed.sample_values.get(header))
                for field_name, header in self.mapping.fields.items()
            },
            "validation": self.validation.to_dict(),
            "error_report": format_validation_errors(self.validation.error_messages()),
        }


def _sample_to_json(value: object) -> object:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class ImportRunResult:
    run_id: int
    kind: ImportKind
    status: ImportRunStatus
    dry_run: bool
    preview: ImportPreview
    outcome: BatchImportOutcome | None = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "run_id": self.run_id,
            "kind": self.kind.value,
            "status": self.status.value,
            "dry_run": self.dry_run,
            "validation": self.preview.validation.stats.to_dict(),
            "errors": self.preview.validation.error_messages(),
            "warnings": self.preview.validation.warning_messages(),
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DirectoryImportService:
    """Drives directory imports for the CLI and the HTTP blueprint."""

    def __init__(self, *, session=None, sleep: Callable[[float], None] = time.sleep):
        self.session = session or db.session
        self.sleep = sleep

    def preview(
        self,
        kind: ImportKind | str,
        content: bytes,
        filename: str,
        *,
        mapping_overrides: Mapping[str, str | None] | None = None,
    ) -> ImportPreview:
        """
        Parse, map and validate without writing.

        Raises:
            FileFormatError: the file cannot be parsed.
            ColumnMappingError: overrides reference unknown fields or headers.
            PreconditionError: reference data cannot be loaded.
        """

        kind = ImportKind(kind)
        parsed = parse_import_file(content, filename)
        mapping = resolve_column_mapping(parsed.headers, kind, mapping_overrides)
        rows = apply_column_mapping(parsed.rows, mapping, first_row_number=2 if parsed.has_headers else 1)
        snapshot = load_directory_snapshot(self.session)
        if kind is ImportKind.ASSIGNMENTS:
            validation = validate_assignment_rows(rows, snapshot, policy=get_tier_policy())
        else:
            validation = validate_user_rows(rows, snapshot, aliases=get_active_job_level_aliases())
        return ImportPreview(kind=kind, parsed=parsed, mapping=mapping, validation=validation)

    def run(
        self,
        kind: ImportKind | str,
        content: bytes,
        filename: str,
        *,
        mapping_overrides: Mapping[str, str | None] | None = None,
        dry_run: bool = False,
        chunk_size: int | None = None,
        progress_callback: Callable[[ImportProgress], None] | None = None,
    ) -> ImportRunResult:
        """
        Execute an import and record it as an ``ImportRun``.

        Only run-level failures raise; per-row problems are reported in the result.
        """

        kind = ImportKind(kind)
        run = ImportRun(
            kind=kind.value,
            source_filename=filename,
            status=ImportRunStatus.RUNNING,
            dry_run=dry_run,
            started_at=_now(),
        )
        try:
            self.session.add(run)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise DestinationUnavailableError(f"Unable to record the import run: {exc}") from exc
        run_id = run.id

        try:
            preview = self.preview(kind, content, filename, mapping_overrides=mapping_overrides)
            outcome = None
            if not dry_run:
                outcome = run_chunked_import(
                    preview.validation.valid_records,
                    self._writer_for(kind),
                    chunk_size=chunk_size or get_chunk_size(kind),
                    progress_callback=progress_callback,
                    pause_seconds=get_chunk_pause_seconds(),
                    sleep=self.sleep,
                )
        except ImporterError as exc:
            self._mark_failed(run_id, exc)
            raise
        except Exception as exc:
            if has_app_context():
                current_app.logger.exception("Import run %s aborted by an unexpected error", run_id)
            self._mark_failed(run_id, exc)
            raise

        status = self._final_status(outcome)
        run = self.session.get(ImportRun, run_id)
        run.status = status
        run.finished_at = _now()
        run.counts_json = {
            "validation": preview.validation.stats.to_dict(),
            "load": outcome.to_dict() if outcome else None,
        }
        if preview.validation.stats.invalid:
            run.error_summary = format_validation_errors(preview.validation.error_messages())
        self.session.commit()

        if has_app_context():
            current_app.logger.info(
                "Import run %s (%s, dry_run=%s) finished with status %s: %s",
                run_id,
                kind.value,
                dry_run,
                status.value,
                preview.validation.stats.to_dict(),
            )
        return ImportRunResult(
            run_id=run_id,
            kind=kind,
            status=status,
            dry_run=dry_run,
            preview=preview,
            outcome=outcome,
        )

    def _writer_for(self, kind: ImportKind):
        if kind is ImportKind.ASSIGNMENTS:
            return AssignmentWriter(self.session)
        return PersonWriter(self.session)

    @staticmethod
    def _final_status(outcome: BatchImportOutcome | None) -> ImportRunStatus:
        if outcome is None or not outcome.failures:
            return ImportRunStatus.SUCCEEDED
        if outcome.success_count:
            return ImportRunStatus.PARTIALLY_FAILED
        return ImportRunStatus.FAILED

    def _mark_failed(self, run_id: int, exc: Exception) -> None:
        try:
            self.session.rollback()
            run = self.session.get(ImportRun, run_id)
            if run is None:
                return
            run.status = ImportRunStatus.FAILED
            run.error_summary = str(exc)
            run.finished_at = _now()
            self.session.commit()
        except SQLAlchemyError as db_exc:
            self.session.rollback()
            if has_app_context():
                current_app.logger.error("Could not record failure of import run %s: %s", run_id, db_exc)
