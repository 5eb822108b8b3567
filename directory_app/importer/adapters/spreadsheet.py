"""Spreadsheet and CSV reader for directory imports.

Reads the first sheet of an ``.xlsx``/``.xls`` workbook or a delimited text file
into an ordered header list plus ordered rows keyed by those headers. Header
detection is heuristic: the first row is a header only when every cell is
non-empty text and the second row (if any) carries a purely numeric token, which
is how data rows starting with a national identifier look.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Sequence

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from directory_app.importer.errors import FileFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = ("xlsx", "xls", "csv")
GENERIC_HEADER_TEMPLATE = "Column {index}"

_INTEGER_TOKEN = re.compile(r"^\d+$")
_CSV_DELIMITERS = ",;\t|"
_CSV_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")

Cell = object | None


@dataclass(frozen=True)
class ParsedImportFile:
    """Ordered headers and rows read from an uploaded file."""

    headers: tuple[str, ...]
    rows: tuple[dict[str, Cell], ...]
    has_headers: bool
    extension: str
    sample_values: dict[str, Cell] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def normalize_extension(filename_or_extension: str | None) -> str:
    """Return the lower-case extension without the leading dot."""

    token = (filename_or_extension or "").strip().lower()
    if "." in token:
        token = token.rsplit(".", 1)[1]
    return token


def parse_import_file(content: bytes, extension: str) -> ParsedImportFile:
    """
    Parse raw file bytes into headers and rows.

    Raises:
        FileFormatError: unsupported extension, unreadable content, or no data rows.
    """

    normalized_extension = normalize_extension(extension)
    if normalized_extension not in SUPPORTED_EXTENSIONS:
        raise FileFormatError(
            f"Unsupported file type '.{normalized_extension}'. Use Excel (.xlsx, .xls) or CSV.",
            extension=normalized_extension,
        )
    if not content:
        raise FileFormatError("The file is empty.", extension=normalized_extension)

    try:
        if normalized_extension == "xlsx":
            raw_rows = _read_xlsx_rows(content)
        elif normalized_extension == "xls":
            raw_rows = _read_xls_rows(content)
        else:
            raw_rows = _read_csv_rows(content)
    except FileFormatError:
        raise
    except (zipfile.BadZipFile, InvalidFileException, xlrd.XLRDError, csv.Error, OSError, KeyError, ValueError) as exc:
        logger.warning("Unable to read .%s upload: %s", normalized_extension, exc)
        raise FileFormatError(
            "The file could not be read. Make sure it is a valid Excel or CSV file.",
            extension=normalized_extension,
        ) from exc

    return build_parsed_file(raw_rows, extension=normalized_extension)


def build_parsed_file(raw_rows: Sequence[Sequence[Cell]], *, extension: str) -> ParsedImportFile:
    """Apply header detection and blank-row filtering to raw cell rows."""

    populated = [list(row) for row in raw_rows if not _row_is_blank(row)]
    if not populated:
        raise FileFormatError("The file is empty.", extension=extension)

    width = max(len(row) for row in populated)
    # Trailing delimiters in data rows must not turn a label row into data.
    first_row = _strip_trailing_blanks(populated[0])
    second_row = populated[1] if len(populated) > 1 else None
    has_headers = detect_header_row(first_row, second_row)

    if has_headers:
        labels = [_cell_to_header(cell) for cell in first_row]
        labels.extend(GENERIC_HEADER_TEMPLATE.format(index=index) for index in range(len(labels) + 1, width + 1))
        headers = _dedupe_headers(labels)
        data_rows = populated[1:]
    else:
        headers = [GENERIC_HEADER_TEMPLATE.format(index=index) for index in range(1, width + 1)]
        data_rows = populated

    if not data_rows:
        raise FileFormatError("The file has a header row but no data rows.", extension=extension)

    rows = tuple(dict(zip(headers, _pad(row, width))) for row in data_rows)
    sample_values = {header: rows[0].get(header) for header in headers}
    logger.debug(
        "Parsed .%s upload: %s rows, headers=%s, has_headers=%s",
        extension,
        len(rows),
        headers,
        has_headers,
    )
    return ParsedImportFile(
        headers=tuple(headers),
        rows=rows,
        has_headers=has_headers,
        extension=extension,
        sample_values=sample_values,
    )


def detect_header_row(first_row: Sequence[Cell], second_row: Sequence[Cell] | None) -> bool:
    """
    Return True when ``first_row`` looks like a label row.

    Every cell must be non-empty text, and the following row must either be
    missing or contain at least one purely integer token.
    """

    if not first_row or not all(_is_label_cell(cell) for cell in first_row):
        return False
    if second_row is None:
        return True
    return any(_is_integer_token(cell) for cell in second_row)


def _is_label_cell(cell: Cell) -> bool:
    if not isinstance(cell, str):
        return False
    token = cell.strip()
    return bool(token) and not _INTEGER_TOKEN.match(token)


def _is_integer_token(cell: Cell) -> bool:
    if isinstance(cell, bool):
        return False
    if isinstance(cell, int):
        return True
    if isinstance(cell, float):
        return cell.is_integer()
    if isinstance(cell, str):
        return bool(_INTEGER_TOKEN.match(cell.strip()))
    return False


def _is_blank_cell(cell: Cell) -> bool:
    return cell is None or (isinstance(cell, str) and cell.strip() == "")


def _row_is_blank(row: Sequence[Cell]) -> bool:
    return all(_is_blank_cell(cell) for cell in row)


def _strip_trailing_blanks(row: Sequence[Cell]) -> list[Cell]:
    cells = list(row)
    while cells and _is_blank_cell(cells[-1]):
        cells.pop()
    return cells


def _pad(row: Sequence[Cell], width: int) -> list[Cell]:
    padded = ["" if cell is None else cell for cell in row]
    if len(padded) < width:
        padded.extend([""] * (width - len(padded)))
    return padded


def _cell_to_header(cell: Cell) -> str:
    return str(cell).strip().lstrip("\ufeff")


def _dedupe_headers(headers: list[str]) -> list[str]:
    seen: dict[str, int] = {}
    result: list[str] = []
    for header in headers:
        if header not in seen:
            seen[header] = 0
            result.append(header)
            continue
        seen[header] += 1
        result.append(f"{header}_{seen[header]}")
    return result


def _coerce_number(value: Cell) -> Cell:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _read_xlsx_rows(content: bytes) -> list[list[Cell]]:
    workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            raise FileFormatError("The workbook has no sheets.", extension="xlsx")
        sheet = workbook.worksheets[0]
        return [[_coerce_number(value) for value in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls_rows(content: bytes) -> list[list[Cell]]:
    workbook = xlrd.open_workbook(file_contents=content)
    if workbook.nsheets == 0:
        raise FileFormatError("The workbook has no sheets.", extension="xls")
    sheet = workbook.sheet_by_index(0)
    return [[_coerce_number(value) for value in sheet.row_values(index)] for index in range(sheet.nrows)]


def _decode_text(content: bytes) -> str:
    for encoding in _CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise FileFormatError("The CSV file encoding is not supported.", extension="csv")


def _read_csv_rows(content: bytes) -> list[list[Cell]]:
    text = _decode_text(content)
    if "\x00" in text:
        raise FileFormatError(
            "The file could not be read. Make sure it is a valid Excel or CSV file.",
            extension="csv",
        )
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=_CSV_DELIMITERS)
    except csv.Error:
        dialect = csv.excel
    reader = csv.reader(io.StringIO(text, newline=""), dialect)
    return [[cell.strip() for cell in row] for row in reader]
