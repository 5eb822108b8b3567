import pytest

from directory_app.importer.contracts import ImportKind, get_required_fields
from directory_app.importer.mapping import (
    ColumnMappingError,
    apply_column_mapping,
    load_job_level_aliases,
    missing_required_fields,
    normalize_alias_key,
    resolve_column_mapping,
    suggest_column_mapping,
)


def test_assignment_headers_are_suggested_case_insensitively():
    mapping = suggest_column_mapping(["  DPI Colaborador ", "DPI Jefe", "Equipo"], ImportKind.ASSIGNMENTS)

    assert dict(mapping.fields) == {
        "colaborador_dpi": "  DPI Colaborador ",
        "jefe_dpi": "DPI Jefe",
        "grupo_id": "Equipo",
    }
    assert mapping.missing_required == ()
    assert mapping.unmapped_headers == ()


def test_user_headers_from_hr_export_map_to_canonical_fields():
    headers = [
        "DPI",
        "Nombre Completo",
        "Fecha de Nacimiento",
        "Fecha de Inicio Laboral",
        "Nivel de Puesto",
        "Puesto",
        "Departamento o Dependencia",
        "Sexo",
    ]

    mapping = suggest_column_mapping(headers, "users")

    assert mapping.fields["nivel"] == "Nivel de Puesto"
    assert mapping.fields["cargo"] == "Puesto"
    assert mapping.fields["area"] == "Departamento o Dependencia"
    assert mapping.fields["fechaIngreso"] == "Fecha de Inicio Laboral"
    assert mapping.fields["genero"] == "Sexo"
    assert mapping.missing_required == ()


def test_field_claimed_by_earlier_header_is_not_reassigned():
    mapping = suggest_column_mapping(["Jefe inmediato", "Supervisor"], ImportKind.ASSIGNMENTS)

    assert mapping.fields == {"jefe_dpi": "Jefe inmediato"}
    assert mapping.unmapped_headers == ("Supervisor",)
    assert mapping.missing_required == ("colaborador_dpi",)


def test_header_whose_first_match_is_claimed_stays_unmapped():
    mapping = suggest_column_mapping(["Nivel", "Nivel de Puesto"], ImportKind.USERS)

    assert mapping.fields == {"nivel": "Nivel"}
    assert mapping.unmapped_headers == ("Nivel de Puesto",)
    assert "cargo" in mapping.missing_required


def test_mapper_never_rejects_unknown_headers():
    mapping = suggest_column_mapping(["Column 1", "Column 2"], ImportKind.ASSIGNMENTS)

    assert mapping.fields == {}
    assert set(mapping.missing_required) == set(get_required_fields(ImportKind.ASSIGNMENTS))


def test_overrides_replace_suggestions_and_free_headers():
    headers = ["Column 1", "Column 2", "Column 3"]

    mapping = resolve_column_mapping(
        headers,
        ImportKind.ASSIGNMENTS,
        {"colaborador_dpi": "Column 1", "jefe_dpi": "Column 2", "grupo_id": None},
    )

    assert mapping.fields == {"colaborador_dpi": "Column 1", "jefe_dpi": "Column 2"}
    assert mapping.unmapped_headers == ("Column 3",)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"unknown": "Column 1"}, "Unknown field"),
        ({"jefe_dpi": "Missing"}, "not present"),
    ],
)
def test_invalid_overrides_raise(overrides, message):
    with pytest.raises(ColumnMappingError) as excinfo:
        resolve_column_mapping(["Column 1"], ImportKind.ASSIGNMENTS, overrides)

    assert message in str(excinfo.value)


def test_apply_column_mapping_numbers_rows_from_sheet_position():
    mapping = suggest_column_mapping(["colaborador", "jefe"], ImportKind.ASSIGNMENTS)
    rows = [{"colaborador": "1", "jefe": "2"}, {"colaborador": "3", "jefe": "4"}]

    mapped = apply_column_mapping(rows, mapping, first_row_number=2)

    assert [row.row_number for row in mapped] == [2, 3]
    assert mapped[1].get("jefe_dpi") == "4"
    assert mapped[0].get("grupo_id") is None


def test_missing_required_fields_for_users():
    assert missing_required_fields("users", ["dpi", "nombre"]) == (
        "fechaNacimiento",
        "nivel",
        "cargo",
        "area",
    )


def test_packaged_alias_dictionary_resolves_titles():
    aliases = load_job_level_aliases()

    assert aliases.resolve("Alcalde Municipal") == "A1"
    assert aliases.resolve("operativos técnico especializado") == "OTE"
    assert aliases.resolve("Direcciones II") == "D2"
    assert aliases.resolve("Unknown title") is None


def test_alias_keys_drop_accents_and_punctuation():
    assert normalize_alias_key("  Asesoría-Profesional ") == "ASESORIA PROFESIONAL"


def test_alias_file_with_conflicting_titles_is_rejected(tmp_path):
    path = tmp_path / "aliases.yaml"
    path.write_text("version: 1\nlevels:\n  A1: [JEFE]\n  A2: [Jefe]\n", encoding="utf-8")

    from directory_app.importer.mapping import AliasLoadError

    with pytest.raises(AliasLoadError):
        load_job_level_aliases(path)


def test_configured_alias_file_is_used_and_reloaded(app, tmp_path, monkeypatch):
    import os

    from directory_app.importer.mapping import get_active_job_level_aliases

    path = tmp_path / "aliases.yaml"
    path.write_text("version: 1\nlevels:\n  D1: [Gerencia]\n", encoding="utf-8")
    monkeypatch.setitem(app.config, "IMPORTER_JOB_LEVEL_ALIASES_PATH", str(path))

    first = get_active_job_level_aliases()
    assert first.resolve("gerencia") == "D1"
    assert get_active_job_level_aliases() is first

    path.write_text("version: 2\nlevels:\n  D2: [Gerencia]\n", encoding="utf-8")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    reloaded = get_active_job_level_aliases()
    assert reloaded.version == 2
    assert reloaded.resolve("Gerencia") == "D2"
