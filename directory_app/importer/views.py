"""
Importer blueprint endpoints: health, templates, preview and run execution.
"""

from __future__ import annotations

import json
from http import HTTPStatus

from flask import Blueprint, Response, current_app, jsonify, request

from directory_app.importer.contracts import ImportKind
from directory_app.importer.errors import DestinationUnavailableError, ImporterError
from directory_app.importer.service import DirectoryImportService
from directory_app.importer.template import generate_template, template_filename
from directory_app.importer.utils import read_upload
from directory_app.utils.importer import get_allowed_extensions, is_importer_enabled

importer_blueprint = Blueprint("importer", __name__, url_prefix="/importer")


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


def _resolve_kind(kind: str) -> ImportKind | None:
    try:
        return ImportKind(kind)
    except ValueError:
        return None


def _coerce_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _mapping_overrides():
    raw = request.form.get("mapping")
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"mapping must be a JSON object: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ValueError("mapping must be a JSON object of field -> header.")
    return {str(field): (str(header) if header else None) for field, header in payload.items()}


def _read_request_upload():
    max_mb = current_app.config.get("IMPORTER_MAX_UPLOAD_MB")
    return read_upload(
        request.files.get("file"),
        allowed_extensions=get_allowed_extensions(),
        max_bytes=int(max_mb) * 1024 * 1024 if max_mb else None,
    )


def _error_status(exc: ImporterError) -> HTTPStatus:
    if isinstance(exc, DestinationUnavailableError):
        return HTTPStatus.SERVICE_UNAVAILABLE
    return HTTPStatus.BAD_REQUEST


@importer_blueprint.get("/health")
def importer_healthcheck():
    """
    Lightweight health endpoint proving the importer blueprint mounted correctly.
    """
    return (
        jsonify(
            {
                "status": "ok",
                "enabled": is_importer_enabled(current_app),
                "kinds": [kind.value for kind in ImportKind],
                "allowed_extensions": list(get_allowed_extensions()),
            }
        ),
        200,
    )


@importer_blueprint.get("/templates/<kind>")
def importer_template(kind: str):
    resolved = _resolve_kind(kind)
    if resolved is None:
        return _json_error(f"Unknown import kind '{kind}'.", HTTPStatus.NOT_FOUND)
    return Response(
        generate_template(resolved),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={template_filename(resolved)}"},
    )


@importer_blueprint.post("/<kind>/preview")
def importer_preview(kind: str):
    """Parse, map and validate an uploaded file without writing anything."""
    resolved = _resolve_kind(kind)
    if resolved is None:
        return _json_error(f"Unknown import kind '{kind}'.", HTTPStatus.NOT_FOUND)
    try:
        filename, content = _read_request_upload()
        preview = DirectoryImportService().preview(
            resolved,
            content,
            filename,
            mapping_overrides=_mapping_overrides(),
        )
    except ValueError as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)
    except ImporterError as exc:
        current_app.logger.warning("Importer preview for %s failed: %s", resolved.value, exc)
        return _json_error(str(exc), _error_status(exc))
    return jsonify(preview.to_dict()), HTTPStatus.OK


@importer_blueprint.post("/<kind>/runs")
def importer_run(kind: str):
    """Execute an import; ``dry_run=true`` validates only."""
    resolved = _resolve_kind(kind)
    if resolved is None:
        return _json_error(f"Unknown import kind '{kind}'.", HTTPStatus.NOT_FOUND)
    try:
        filename, content = _read_request_upload()
        result = DirectoryImportService().run(
            resolved,
            content,
            filename,
            mapping_overrides=_mapping_overrides(),
            dry_run=_coerce_bool(request.form.get("dry_run")),
        )
    except ValueError as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)
    except ImporterError as exc:
        current_app.logger.warning("Importer run for %s failed: %s", resolved.value, exc)
        return _json_error(str(exc), _error_status(exc))
    status = HTTPStatus.OK if result.dry_run else HTTPStatus.CREATED
    return jsonify(result.to_dict()), status
