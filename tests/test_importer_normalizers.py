from datetime import date, datetime

import pytest

from directory_app.importer.errors import FieldFormatError
from directory_app.importer.mapping import load_job_level_aliases
from directory_app.importer.pipeline.normalizers import (
    GENDER_UNRECOGNIZED,
    normalize_birth_date,
    normalize_gender,
    normalize_hire_date,
    normalize_identifier,
    normalize_job_level_code,
    split_full_name,
)


def test_identifier_whitespace_is_stripped_with_warning():
    result = normalize_identifier("1234 5678 9012")

    assert result.value == "123456789012"
    assert result.warning is not None
    assert "123456789012" in result.warning


def test_identifier_without_whitespace_has_no_warning():
    result = normalize_identifier(1234567890123)

    assert result.value == "1234567890123"
    assert result.warning is None


def test_identifier_from_spreadsheet_float_drops_decimal():
    assert normalize_identifier(1234567890123.0).value == "1234567890123"


@pytest.mark.parametrize(
    "raw, message",
    [
        ("", "required"),
        (None, "required"),
        ("12345-67890", "only digits"),
        ("123456789", "between 10 and 20"),
        ("1" * 21, "between 10 and 20"),
    ],
)
def test_identifier_rejections(raw, message):
    with pytest.raises(FieldFormatError) as excinfo:
        normalize_identifier(raw)

    assert message in str(excinfo.value)


@pytest.mark.parametrize(
    "raw",
    ["15-03-1990", "15/03/1990", "15.03.1990", "15 03 1990", "1990-03-15", "15031990", 32947, "32947"],
)
def test_birth_date_formats_normalize_to_ddmmyyyy(raw):
    assert normalize_birth_date(raw) == "15031990"


def test_birth_date_from_date_objects():
    assert normalize_birth_date(date(1986, 10, 2)) == "02101986"
    assert normalize_birth_date(datetime(1986, 10, 2, 0, 0)) == "02101986"
    assert normalize_birth_date("1986-10-02 00:00:00") == "02101986"


def test_impossible_day_names_day_and_month():
    with pytest.raises(FieldFormatError) as excinfo:
        normalize_birth_date("31/02/2020")

    message = str(excinfo.value)
    assert "31/02/2020" in message
    assert "day 31" in message
    assert "month 02" in message


def test_invalid_month_is_reported():
    with pytest.raises(FieldFormatError) as excinfo:
        normalize_birth_date("15131990")

    assert "month 13" in str(excinfo.value)


def test_two_digit_years_pivot():
    assert normalize_birth_date("15/03/90") == "15031990"
    assert normalize_birth_date("15/03/05") == "15032005"


@pytest.mark.parametrize("raw", ["", "yesterday", "1990/15", "15/03/1850", "123456"])
def test_birth_date_failures_never_default(raw):
    with pytest.raises(FieldFormatError):
        normalize_birth_date(raw)


def test_hire_date_is_iso_or_none():
    assert normalize_hire_date("05/01/2015") == "2015-01-05"
    assert normalize_hire_date(32947) == "1990-03-15"
    assert normalize_hire_date("31/02/2020") is None
    assert normalize_hire_date(None) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("d1", "D1"),
        ("OTE", "OTE"),
        ("Alcalde Municipal", "A1"),
        ("Operativos Técnico Especializado", "OTE"),
        ("D2 - Direcciones II", "D2"),
        ("e1-Encargado de bodega", "E1"),
        ("Gerente general", "GERENTE GENERAL"),
        ("", ""),
    ],
)
def test_job_level_resolution_order(raw, expected):
    assert normalize_job_level_code(raw, load_job_level_aliases()) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Juan Perez Lopez", ("Juan", "Perez Lopez")),
        ("  Ana   Maria  ", ("Ana", "Maria")),
        ("Cher", ("Cher", "")),
        ("", ("", "")),
    ],
)
def test_split_full_name(raw, expected):
    assert split_full_name(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Masculino", "masculino"),
        ("M", "masculino"),
        ("hombre", "masculino"),
        ("FEMENINO", "femenino"),
        ("f", "femenino"),
        ("Mujer", "femenino"),
        ("Otro", "otro"),
        ("Prefiero no decir", "prefiero_no_decir"),
        ("N/A", "prefiero_no_decir"),
        ("", None),
        (None, None),
        ("x", GENDER_UNRECOGNIZED),
    ],
)
def test_gender_classification(raw, expected):
    assert normalize_gender(raw) == expected
