"""
Supervisor role cascade.

After an assignment is written the supervisor is promoted to ``jefe`` when they
hold at least one active assignment. Administrative roles are never changed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Tuple

from flask import current_app, has_app_context
from sqlalchemy import select

from directory_app.models import Assignment, Person, PersonRole, db

PROTECTED_ROLES = frozenset({PersonRole.ADMIN_RRHH.value, PersonRole.ADMIN_GENERAL.value})


@dataclass(frozen=True)
class RoleRecomputeSummary:
    supervisors_considered: int = 0
    promoted: int = 0
    already_supervisor: int = 0
    skipped_protected: int = 0
    missing: int = 0
    failures: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        payload = asdict(self)
        payload["failures"] = list(self.failures)
        return payload


def should_be_supervisor(dpi: str, *, session=None) -> bool:
    """Return True when ``dpi`` supervises at least one active assignment."""

    session = session or db.session
    assignment_id = session.scalar(
        select(Assignment.id).where(Assignment.jefe_id == dpi, Assignment.activo.is_(True)).limit(1)
    )
    return assignment_id is not None


def promote_supervisor_role(dpi: str, *, session=None) -> bool:
    """
    Promote ``dpi`` to ``jefe`` when they now supervise someone.

    Idempotent. Returns True only when the role actually changed.
    """

    session = session or db.session
    person = session.scalars(select(Person).where(Person.dpi == dpi)).one_or_none()
    if person is None:
        return False
    if person.rol in PROTECTED_ROLES or person.rol == PersonRole.JEFE.value:
        return False
    if not should_be_supervisor(dpi, session=session):
        return False
    person.rol = PersonRole.JEFE.value
    session.commit()
    if has_app_context():
        current_app.logger.info("Promoted %s to role %s", dpi, PersonRole.JEFE.value)
    return True


def promote_supervisor_role_safely(dpi: str, *, session=None) -> str | None:
    """
    Run the role cascade without letting a failure reach the caller.

    Returns a side-effect warning describing the failure, or ``None``.
    """

    session = session or db.session
    try:
        promote_supervisor_role(dpi, session=session)
    except Exception as exc:
        session.rollback()
        if has_app_context():
            current_app.logger.warning("Role update for supervisor %s failed: %s", dpi, exc, exc_info=True)
        return f"Could not update the role of supervisor {dpi}: {exc}"
    return None


def recompute_supervisor_roles(*, session=None) -> RoleRecomputeSummary:
    """Apply the role cascade to every distinct supervisor with an active assignment."""

    session = session or db.session
    supervisor_ids = session.scalars(
        select(Assignment.jefe_id).where(Assignment.activo.is_(True)).distinct().order_by(Assignment.jefe_id)
    ).all()
    roles = dict(session.execute(select(Person.dpi, Person.rol).where(Person.dpi.in_(supervisor_ids))).all())

    promoted = already = protected = missing = 0
    failures: list[str] = []
    for dpi in supervisor_ids:
        role = roles.get(dpi)
        if role is None:
            missing += 1
            continue
        if role in PROTECTED_ROLES:
            protected += 1
            continue
        if role == PersonRole.JEFE.value:
            already += 1
            continue
        try:
            if promote_supervisor_role(dpi, session=session):
                promoted += 1
        except Exception as exc:
            session.rollback()
            failures.append(f"{dpi}: {exc}")
            if has_app_context():
                current_app.logger.warning("Role recompute for supervisor %s failed: %s", dpi, exc)

    summary = RoleRecomputeSummary(
        supervisors_considered=len(supervisor_ids),
        promoted=promoted,
        already_supervisor=already,
        skipped_protected=protected,
        missing=missing,
        failures=tuple(failures),
    )
    if has_app_context():
        current_app.logger.info("Supervisor role recompute: %s", summary.to_dict())
    return summary
