"""
Importer-specific utilities for handling uploaded files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from directory_app.importer.adapters import SUPPORTED_EXTENSIONS, normalize_extension
from directory_app.importer.errors import FileFormatError


def allowed_file(filename: str, allowed_extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    if not filename or "." not in filename:
        return False
    return normalize_extension(filename) in {ext.lower() for ext in allowed_extensions}


def read_upload(
    file_storage: FileStorage | None,
    *,
    allowed_extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
    max_bytes: int | None = None,
) -> tuple[str, bytes]:
    """
    Return the sanitized filename and raw bytes of an uploaded file.

    Raises:
        FileFormatError: missing file, disallowed extension, empty or oversized content.
    """

    if file_storage is None or not file_storage.filename:
        raise FileFormatError("No file was uploaded.")
    filename = secure_filename(file_storage.filename) or file_storage.filename
    allowed = tuple(allowed_extensions)
    if not allowed_file(filename, allowed):
        raise FileFormatError(
            f"Unsupported file type. Allowed extensions: {', '.join(allowed)}.",
            extension=normalize_extension(filename),
        )
    content = file_storage.read()
    if not content:
        raise FileFormatError("The file is empty.", extension=normalize_extension(filename))
    if max_bytes is not None and len(content) > max_bytes:
        raise FileFormatError(
            f"The file exceeds the maximum upload size of {max_bytes // (1024 * 1024)} MB.",
            extension=normalize_extension(filename),
        )
    return filename, content


def read_local_file(path: str | Path, *, allowed_extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> tuple[str, bytes]:
    """Read an import file from disk for CLI runs."""

    path = Path(path)
    allowed = tuple(allowed_extensions)
    if not allowed_file(path.name, allowed):
        raise FileFormatError(
            f"Unsupported file type. Allowed extensions: {', '.join(allowed)}.",
            extension=normalize_extension(path.name),
        )
    return path.name, path.read_bytes()
