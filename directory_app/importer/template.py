"""
Downloadable CSV templates for directory imports.

Templates carry the canonical headers (which the column mapper recognizes)
and a couple of sample rows. They are generated on demand and never stored.
"""

from __future__ import annotations

import csv
import io

from directory_app.importer.contracts import ImportKind, get_canonical_fields

_SAMPLE_ROWS = {
    ImportKind.ASSIGNMENTS: (
        ("2345678901234", "1234567890123", "GRUPO-01"),
        ("3456789012345", "1234567890123", ""),
    ),
    ImportKind.USERS: (
        (
            "1234567890123",
            "Juan Perez Lopez",
            "15/03/1990",
            "2015-01-05",
            "D1",
            "Director de Finanzas",
            "Direccion Financiera",
            "masculino",
        ),
        (
            "2345678901234",
            "Maria Garcia",
            "02/10/1986",
            "",
            "O1",
            "Asistente Administrativo",
            "Direccion Financiera",
            "femenino",
        ),
    ),
}


def template_filename(kind: ImportKind | str) -> str:
    return f"{ImportKind(kind).value}_template.csv"


def generate_template(kind: ImportKind | str) -> str:
    """Return the CSV template text for ``kind``."""

    kind = ImportKind(kind)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(get_canonical_fields(kind))
    writer.writerows(_SAMPLE_ROWS[kind])
    return buffer.getvalue()
