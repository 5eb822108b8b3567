import io
import json

from sqlalchemy import select

from directory_app.models import Assignment, ImportRun, ImportRunStatus, db

ASSIGNMENTS_CSV = (
    b"colaborador_dpi,jefe_dpi,grupo_id\n"
    b"5000000000001,4000000000001,G1\n"
    b"5000000000001,4000000000001,G1\n"
    b"5000000000001,9999999999999,\n"
)


def _upload(content=ASSIGNMENTS_CSV, filename="asignaciones.csv", **fields):
    data = {"file": (io.BytesIO(content), filename)}
    data.update(fields)
    return data


def test_health_endpoint(client):
    response = client.get("/importer/health")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "ok"
    assert payload["enabled"] is True
    assert payload["kinds"] == ["assignments", "users"]


def test_template_download(client):
    response = client.get("/importer/templates/users")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "users_template.csv" in response.headers["Content-Disposition"]
    assert response.data.decode("utf-8").startswith("dpi,nombre,fechaNacimiento,fechaIngreso,nivel,cargo,area,genero")


def test_unknown_kind_returns_404(client):
    assert client.get("/importer/templates/vehicles").status_code == 404
    response = client.post("/importer/vehicles/runs", data=_upload(), content_type="multipart/form-data")
    assert response.status_code == 404
    assert "Unknown import kind" in response.get_json()["error"]


def test_preview_validates_without_writing(client, people):
    response = client.post("/importer/assignments/preview", data=_upload(), content_type="multipart/form-data")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["validation"]["stats"] == {"total": 3, "valid": 2, "invalid": 1, "warnings": 1, "duplicates": 1}
    assert payload["mapping"]["fields"]["colaborador_dpi"] == "colaborador_dpi"
    assert payload["sample_values"] == {
        "colaborador_dpi": "5000000000001",
        "jefe_dpi": "4000000000001",
        "grupo_id": "G1",
    }
    assert db.session.scalars(select(Assignment)).all() == []


def test_run_creates_assignments(client, people):
    response = client.post("/importer/assignments/runs", data=_upload(), content_type="multipart/form-data")

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["status"] == ImportRunStatus.SUCCEEDED.value
    assert payload["outcome"]["success_count"] == 2
    assert len(payload["errors"]) == 1
    assert len(db.session.scalars(select(Assignment)).all()) == 1


def test_dry_run_returns_200(client, people):
    response = client.post(
        "/importer/assignments/runs", data=_upload(dry_run="true"), content_type="multipart/form-data"
    )

    assert response.status_code == 200
    assert response.get_json()["dry_run"] is True
    assert db.session.scalars(select(Assignment)).all() == []


def test_run_accepts_mapping_json(client, people):
    content = b"Evaluado,Responsable\n5000000000001,4000000000001\n"
    mapping = json.dumps({"colaborador_dpi": "Evaluado", "jefe_dpi": "Responsable"})

    response = client.post(
        "/importer/assignments/runs",
        data=_upload(content, mapping=mapping),
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    assert response.get_json()["outcome"]["success_count"] == 1


def test_invalid_mapping_json_is_rejected(client, people):
    response = client.post(
        "/importer/assignments/preview",
        data=_upload(mapping="{not json"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "mapping must be a JSON object" in response.get_json()["error"]


def test_unsupported_file_type_is_rejected(client, people):
    response = client.post(
        "/importer/users/runs",
        data=_upload(b"dpi\n1\n", filename="usuarios.pdf"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "Unsupported file type" in response.get_json()["error"]
    assert db.session.scalars(select(ImportRun)).all() == []


def test_missing_file_is_rejected(client, people):
    response = client.post("/importer/users/preview", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["error"] == "No file was uploaded."


def test_unreadable_workbook_marks_run_failed(client, people):
    response = client.post(
        "/importer/users/runs",
        data=_upload(b"this is not a workbook", filename="usuarios.xlsx"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "could not be read" in response.get_json()["error"]
    run = db.session.scalars(select(ImportRun)).one()
    assert run.status is ImportRunStatus.FAILED
