from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from directory_app.importer.pipeline import roles
from directory_app.importer.pipeline.roles import (
    promote_supervisor_role,
    promote_supervisor_role_safely,
    recompute_supervisor_roles,
    should_be_supervisor,
)
from directory_app.models import Assignment, Person, PersonRole, db


def _role(dpi):
    db.session.expire_all()
    return db.session.scalar(select(Person.rol).where(Person.dpi == dpi))


def _assign(collaborator, supervisor, activo=True):
    db.session.add(Assignment(colaborador_id=collaborator, jefe_id=supervisor, activo=activo))
    db.session.commit()


def test_supervisor_with_active_assignment_is_promoted(active_assignment, people):
    dpi = people["supervisor"].dpi

    assert should_be_supervisor(dpi)
    assert promote_supervisor_role(dpi) is True
    assert _role(dpi) == PersonRole.JEFE.value
    assert promote_supervisor_role(dpi) is False


def test_inactive_assignment_does_not_promote(people):
    _assign(people["collaborator"].dpi, people["supervisor"].dpi, activo=False)

    assert should_be_supervisor(people["supervisor"].dpi) is False
    assert promote_supervisor_role(people["supervisor"].dpi) is False
    assert _role(people["supervisor"].dpi) == PersonRole.COLABORADOR.value


def test_admin_roles_are_never_changed(people):
    _assign(people["collaborator"].dpi, people["hr_admin"].dpi)

    assert promote_supervisor_role(people["hr_admin"].dpi) is False
    assert _role(people["hr_admin"].dpi) == PersonRole.ADMIN_RRHH.value


def test_unknown_person_is_ignored(people):
    assert promote_supervisor_role("9999999999999") is False


def test_safe_promotion_turns_database_error_into_warning(people, monkeypatch):
    def failing(dpi, *, session=None):
        raise OperationalError("UPDATE people", {}, Exception("database is locked"))

    monkeypatch.setattr(roles, "promote_supervisor_role", failing)

    warning = promote_supervisor_role_safely(people["supervisor"].dpi)

    assert warning.startswith(f"Could not update the role of supervisor {people['supervisor'].dpi}")
    assert "database is locked" in warning


def test_safe_promotion_turns_any_error_into_warning(people, monkeypatch):
    def failing(dpi, *, session=None):
        raise RuntimeError("role service down")

    monkeypatch.setattr(roles, "promote_supervisor_role", failing)

    warning = promote_supervisor_role_safely(people["supervisor"].dpi)

    assert "role service down" in warning
    assert _role(people["supervisor"].dpi) == PersonRole.COLABORADOR.value


def test_safe_promotion_returns_none_on_success(active_assignment, people):
    assert promote_supervisor_role_safely(people["supervisor"].dpi) is None
    assert _role(people["supervisor"].dpi) == PersonRole.JEFE.value


def test_recompute_summarizes_every_supervisor(people):
    _assign(people["collaborator"].dpi, people["supervisor"].dpi)
    _assign(people["collaborator_two"].dpi, people["hr_admin"].dpi)
    _assign(people["director"].dpi, people["council"].dpi)
    _assign(people["director_two"].dpi, people["mayor"].dpi, activo=False)
    people["council"].rol = PersonRole.JEFE.value
    db.session.commit()

    summary = recompute_supervisor_roles()

    assert summary.supervisors_considered == 3
    assert summary.promoted == 1
    assert summary.already_supervisor == 1
    assert summary.skipped_protected == 1
    assert summary.missing == 0
    assert summary.failures == ()
    assert _role(people["supervisor"].dpi) == PersonRole.JEFE.value
    assert _role(people["mayor"].dpi) == PersonRole.COLABORADOR.value


def test_recompute_is_idempotent(active_assignment):
    first = recompute_supervisor_roles()
    second = recompute_supervisor_roles()

    assert first.promoted == 1
    assert second.promoted == 0
    assert second.already_supervisor == 1
    assert second.to_dict()["failures"] == []
