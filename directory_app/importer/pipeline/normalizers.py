"""
Field normalizers for directory imports.

Each normalizer accepts a raw cell value (str, int, float, date or None) and
either returns the canonical value or raises ``FieldFormatError`` with a
message that names the offending value. The hire-date normalizer is the
exception: the field is optional, so failures collapse to ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Tuple

from directory_app.importer.errors import FieldFormatError
from directory_app.importer.mapping import JobLevelAliases, get_active_job_level_aliases
from directory_app.models.enums import Gender

IDENTIFIER_MIN_DIGITS = 10
IDENTIFIER_MAX_DIGITS = 20
MIN_YEAR = 1900
MAX_YEAR = 2100
TWO_DIGIT_YEAR_PIVOT = 49
SPREADSHEET_EPOCH = date(1899, 12, 30)
GENDER_UNRECOGNIZED = "unrecognized"

_DIGITS = re.compile(r"^\d+$")
_DATE_DELIMITERS = re.compile(r"[/\-. ]+")
_ISO_DATETIME = re.compile(r"^(\d{4}-\d{1,2}-\d{1,2})[T ]\d{1,2}:\d{2}")
_SHORT_CODE = re.compile(r"^[A-Z]{1,3}\d?$")
_CODE_PREFIX = re.compile(r"^\s*([A-Za-z]{1,3}\d?)\s*-\s*")


@dataclass(frozen=True)
class NormalizedIdentifier:
    value: str
    warning: str | None = None


def _as_text(raw: object) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def normalize_identifier(raw: object, *, label: str = "DPI") -> NormalizedIdentifier:
    """
    Strip all whitespace from a national identifier and check its shape.

    A warning is attached when whitespace had to be removed.
    """

    if isinstance(raw, bool):
        raise FieldFormatError(f"{label} must be numeric.", field=label, value=raw)
    text = _as_text(raw)
    compact = "".join(text.split())
    if not compact:
        raise FieldFormatError(f"{label} is required.", field=label, value=raw)
    if not _DIGITS.match(compact):
        raise FieldFormatError(f"{label} '{text.strip()}' must contain only digits.", field=label, value=raw)
    if not IDENTIFIER_MIN_DIGITS <= len(compact) <= IDENTIFIER_MAX_DIGITS:
        raise FieldFormatError(
            f"{label} '{compact}' must have between {IDENTIFIER_MIN_DIGITS} and "
            f"{IDENTIFIER_MAX_DIGITS} digits (found {len(compact)}).",
            field=label,
            value=raw,
        )
    warning = None
    if compact != text:
        warning = f"{label} '{text}' contained spaces; normalized to '{compact}'."
    return NormalizedIdentifier(value=compact, warning=warning)


def parse_date_value(raw: object, *, label: str = "Date") -> date:
    """
    Parse any of the accepted date shapes into a ``date``.

    Accepted: ``date``/``datetime`` objects, spreadsheet serial numbers, 8-digit
    DDMMYYYY strings and delimited triples (DD/MM/YYYY, YYYY-MM-DD, DD.MM.YY).
    """

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise FieldFormatError(f"{label} is required.", field=label, value=raw)
    if isinstance(raw, bool):
        raise FieldFormatError(f"{label} '{raw}' is not a valid date.", field=label, value=raw)
    if isinstance(raw, datetime):
        return _check_year(raw.date(), raw, label)
    if isinstance(raw, date):
        return _check_year(raw, raw, label)
    if isinstance(raw, (int, float)):
        return _from_serial(raw, raw, label)

    text = str(raw).strip()
    iso_match = _ISO_DATETIME.match(text)
    if iso_match:
        text = iso_match.group(1)

    if _DIGITS.match(text):
        if len(text) == 8:
            return _build_date(int(text[4:]), int(text[2:4]), int(text[:2]), raw, label)
        if len(text) <= 5:
            return _from_serial(int(text), raw, label)
        raise FieldFormatError(
            f"{label} '{text}' is not a valid date. Use DD/MM/YYYY or DDMMYYYY.",
            field=label,
            value=raw,
        )

    tokens = [token for token in _DATE_DELIMITERS.split(text) if token]
    if len(tokens) != 3 or not all(_DIGITS.match(token) for token in tokens):
        raise FieldFormatError(
            f"{label} '{text}' is not a valid date. Use DD/MM/YYYY or DDMMYYYY.",
            field=label,
            value=raw,
        )

    first, middle, last = tokens
    if len(first) == 4:
        year, month, day = int(first), int(middle), int(last)
    elif len(last) == 4:
        day, month, year = int(first), int(middle), int(last)
    elif len(last) == 2 and len(first) <= 2:
        day, month = int(first), int(middle)
        year = _expand_two_digit_year(int(last))
    else:
        raise FieldFormatError(
            f"{label} '{text}' is ambiguous; the year must have four digits.",
            field=label,
            value=raw,
        )
    return _build_date(year, month, day, raw, label)


def normalize_birth_date(raw: object, *, label: str = "Birth date") -> str:
    """Return the birth date as an 8-digit DDMMYYYY string."""

    return parse_date_value(raw, label=label).strftime("%d%m%Y")


def normalize_hire_date(raw: object) -> str | None:
    """Return the hire date as ISO ``YYYY-MM-DD`` or ``None`` when absent or unparseable."""

    try:
        return parse_date_value(raw, label="Hire date").isoformat()
    except FieldFormatError:
        return None


def normalize_job_level_code(raw: object, aliases: JobLevelAliases | None = None) -> str:
    """
    Resolve a job-level value to its short code.

    Order: short-code passthrough, alias dictionary, ``CODE - title`` prefix,
    otherwise the upper-cased input so the directory check can reject it.
    """

    text = _as_text(raw).strip()
    if not text:
        return ""
    upper = text.upper()
    if _SHORT_CODE.match(upper):
        return upper
    aliases = aliases or get_active_job_level_aliases()
    resolved = aliases.resolve(text)
    if resolved:
        return resolved
    prefix = _CODE_PREFIX.match(text)
    if prefix:
        return prefix.group(1).upper()
    return upper


def split_full_name(raw: object) -> Tuple[str, str]:
    """Split a full name into (given name, family name) on the first whitespace."""

    tokens = _as_text(raw).split()
    if not tokens:
        return "", ""
    return tokens[0], " ".join(tokens[1:])


def normalize_gender(raw: object) -> str | None:
    """
    Classify a gender cell into a ``Gender`` value.

    Returns ``None`` for blank input and ``GENDER_UNRECOGNIZED`` when the value
    cannot be classified.
    """

    text = _as_text(raw).strip().casefold()
    if not text:
        return None
    if "masc" in text or text in {"m", "h", "hombre"}:
        return Gender.MASCULINO.value
    if "femen" in text or text in {"f", "mujer"}:
        return Gender.FEMENINO.value
    if "otro" in text or text == "o":
        return Gender.OTRO.value
    if "prefiero" in text or text in {"no", "n/a", "na"}:
        return Gender.PREFIERO_NO_DECIR.value
    return GENDER_UNRECOGNIZED


def _expand_two_digit_year(year: int) -> int:
    return 2000 + year if year <= TWO_DIGIT_YEAR_PIVOT else 1900 + year


def _from_serial(serial: int | float, raw: object, label: str) -> date:
    if serial <= 0:
        raise FieldFormatError(f"{label} serial '{raw}' is not a valid date.", field=label, value=raw)
    try:
        parsed = SPREADSHEET_EPOCH + timedelta(days=int(serial))
    except OverflowError as exc:
        raise FieldFormatError(f"{label} serial '{raw}' is out of range.", field=label, value=raw) from exc
    return _check_year(parsed, raw, label)


def _build_date(year: int, month: int, day: int, raw: object, label: str) -> date:
    if not 1 <= month <= 12:
        raise FieldFormatError(
            f"{label} '{raw}' has an invalid month {month:02d}; expected 01-12.",
            field=label,
            value=raw,
        )
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise FieldFormatError(
            f"{label} '{raw}' has year {year}; expected {MIN_YEAR}-{MAX_YEAR}.",
            field=label,
            value=raw,
        )
    try:
        parsed = date(year, month, day)
    except ValueError as exc:
        raise FieldFormatError(
            f"{label} '{raw}' has an invalid day {day:02d} for month {month:02d}/{year}.",
            field=label,
            value=raw,
        ) from exc
    return _check_year(parsed, raw, label)


def _check_year(value: date, raw: object, label: str) -> date:
    if not MIN_YEAR <= value.year <= MAX_YEAR:
        raise FieldFormatError(
            f"{label} '{raw}' has year {value.year}; expected {MIN_YEAR}-{MAX_YEAR}.",
            field=label,
            value=raw,
        )
    return value
