# conftest.py

import os

import pytest

# Set testing environment BEFORE importing app so app.py uses TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app
from directory_app.models import Assignment, JobLevel, Person, PersonRole, PersonStatus, db

JOB_LEVELS = (
    ("C1", "Concejo Municipal", 1.0),
    ("A1", "Alcalde Municipal", 2.0),
    ("A2", "Asesoria Profesional", 3.0),
    ("D1", "Direcciones I", 4.0),
    ("D2", "Direcciones II", 5.0),
    ("E1", "Encargados y Jefes de Unidades I", 6.0),
    ("S2", "Secretario", 7.0),
    ("O1", "Operativos I", 8.0),
    ("OS", "Otros Servicios", 9.0),
)

# name -> (dpi, nombre, apellidos, nivel, rol, estado)
PEOPLE = {
    "council": ("1000000000001", "Ana", "Concejal Uno", "C1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "council_peer": ("1000000000002", "Luis", "Concejal Dos", "C1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "mayor": ("2000000000001", "Rosa", "Alcaldesa", "A1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "director": ("3000000000001", "Pedro", "Director Uno", "D1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "director_two": ("3000000000002", "Marta", "Directora Dos", "D2", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "supervisor": ("4000000000001", "Carlos", "Encargado", "E1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "collaborator": ("5000000000001", "Julia", "Operativa Uno", "O1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "collaborator_two": ("5000000000002", "Diego", "Operativo Dos", "O1", PersonRole.COLABORADOR.value, PersonStatus.ACTIVE.value),
    "hr_admin": ("6000000000001", "Sofia", "Recursos Humanos", "E1", PersonRole.ADMIN_RRHH.value, PersonStatus.ACTIVE.value),
    "inactive": ("7000000000001", "Tomas", "Retirado", "O1", PersonRole.COLABORADOR.value, PersonStatus.INACTIVE.value),
}


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application with a clean schema"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "LOG_LEVEL": "DEBUG",
            "IMPORTER_ENABLED": True,
            "IMPORTER_CHUNK_PAUSE_SECONDS": 0.0,
            "IMPORTER_ASSIGNMENT_CHUNK_SIZE": 10,
            "IMPORTER_USER_CHUNK_SIZE": 50,
            "IMPORTER_COUNCIL_TIER": "C1",
            "IMPORTER_MAYOR_TIER": "A1",
            "IMPORTER_DIRECTOR_TIER": "D1",
        }
    )

    from directory_app.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def job_levels(app):
    """Seed the job-level reference table"""
    levels = [
        JobLevel(code=code, name=name, hierarchical_order=order, is_active=True) for code, name, order in JOB_LEVELS
    ]
    db.session.add_all(levels)
    db.session.commit()
    return {level.code: level for level in levels}


@pytest.fixture
def people(job_levels):
    """Seed a small directory covering every special tier"""
    created = {}
    for key, (dpi, nombre, apellidos, nivel, rol, estado) in PEOPLE.items():
        person = Person(
            dpi=dpi,
            nombre=nombre,
            apellidos=apellidos,
            fecha_nacimiento="01011980",
            nivel=nivel,
            cargo="Puesto",
            area="Municipalidad",
            rol=rol,
            estado=estado,
        )
        db.session.add(person)
        created[key] = person
    db.session.commit()
    return created


@pytest.fixture
def active_assignment(people):
    """An existing assignment: supervisor -> collaborator"""
    assignment = Assignment(
        colaborador_id=people["collaborator"].dpi,
        jefe_id=people["supervisor"].dpi,
        activo=True,
    )
    db.session.add(assignment)
    db.session.commit()
    return assignment
