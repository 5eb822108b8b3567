"""
Evaluation-eligibility rules between supervisors and collaborators.

Two special tiers carry bespoke rules: the council tier and the mayor tier.
Import-time checks only restrict those two evaluator tiers; the runtime check
additionally requires an active assignment and compares hierarchical ranks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from flask import current_app, has_app_context
from sqlalchemy import select

from directory_app.models import Assignment, JobLevel, Person, PersonStatus, db


@dataclass(frozen=True)
class TierPolicy:
    """Job-level codes that receive special evaluation rules."""

    council_tier: str = "C1"
    mayor_tier: str = "A1"
    director_tier: str = "D1"

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> "TierPolicy":
        defaults = cls()
        return cls(
            council_tier=str(config.get("IMPORTER_COUNCIL_TIER") or defaults.council_tier).upper(),
            mayor_tier=str(config.get("IMPORTER_MAYOR_TIER") or defaults.mayor_tier).upper(),
            director_tier=str(config.get("IMPORTER_DIRECTOR_TIER") or defaults.director_tier).upper(),
        )


def get_tier_policy() -> TierPolicy:
    if has_app_context():
        return TierPolicy.from_config(current_app.config)
    return TierPolicy()


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "PermissionDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "PermissionDecision":
        return cls(allowed=False, reason=reason)


@dataclass(frozen=True)
class RankedPerson:
    """A person with their tier and precomputed hierarchical order (lower is more senior)."""

    dpi: str
    tier: str
    hierarchical_order: float


def check_assignment_permission(
    supervisor_tier: str,
    collaborator_tier: str,
    *,
    policy: TierPolicy | None = None,
) -> PermissionDecision:
    """
    Decide whether a supervisor of ``supervisor_tier`` may be assigned a
    collaborator of ``collaborator_tier`` at import time.
    """

    policy = policy or get_tier_policy()
    supervisor_tier = (supervisor_tier or "").upper()
    collaborator_tier = (collaborator_tier or "").upper()

    if supervisor_tier == policy.council_tier:
        if collaborator_tier in {policy.director_tier, policy.mayor_tier}:
            return PermissionDecision.allow()
        return PermissionDecision.deny(
            f"Council members ({policy.council_tier}) may only evaluate directors "
            f"({policy.director_tier}) or the mayor ({policy.mayor_tier}); "
            f"collaborator has level {collaborator_tier or 'unknown'}."
        )
    if supervisor_tier == policy.mayor_tier:
        if collaborator_tier == policy.director_tier:
            return PermissionDecision.allow()
        return PermissionDecision.deny(
            f"The mayor ({policy.mayor_tier}) may only evaluate directors ({policy.director_tier}); "
            f"collaborator has level {collaborator_tier or 'unknown'}."
        )
    return PermissionDecision.allow()


def check_evaluation_permission(
    evaluator: RankedPerson,
    evaluated: RankedPerson,
    *,
    is_self_evaluation: bool = False,
    policy: TierPolicy | None = None,
) -> PermissionDecision:
    """
    Apply the five ordered evaluation rules, returning on the first violation.

    1. The council tier may only self-evaluate.
    2. The mayor tier may only be evaluated by the council tier.
    3. Self-evaluation is rejected unless ``is_self_evaluation`` is set.
    4. An evaluator may not evaluate a strictly more senior rank.
    5. An evaluator may not evaluate an equal rank.

    Rules 4 and 5 do not apply to council evaluating the mayor, nor to
    flagged self-evaluations.
    """

    policy = policy or get_tier_policy()
    evaluator_tier = evaluator.tier.upper()
    evaluated_tier = evaluated.tier.upper()

    if evaluated_tier == policy.council_tier and not is_self_evaluation:
        return PermissionDecision.deny(
            f"Council members ({policy.council_tier}) may only be evaluated through self-evaluation."
        )
    if evaluated_tier == policy.mayor_tier and evaluator_tier != policy.council_tier and not is_self_evaluation:
        return PermissionDecision.deny(
            f"The mayor ({policy.mayor_tier}) may only be evaluated by the council ({policy.council_tier})."
        )
    if evaluator.dpi == evaluated.dpi and not is_self_evaluation:
        return PermissionDecision.deny("A person cannot evaluate themselves outside a self-evaluation.")

    if is_self_evaluation:
        return PermissionDecision.allow()
    if evaluator_tier == policy.council_tier and evaluated_tier == policy.mayor_tier:
        return PermissionDecision.allow()

    if evaluated.hierarchical_order < evaluator.hierarchical_order:
        return PermissionDecision.deny(
            f"Level {evaluator_tier} cannot evaluate the more senior level {evaluated_tier}."
        )
    if evaluated.hierarchical_order == evaluator.hierarchical_order:
        return PermissionDecision.deny(
            f"Level {evaluator_tier} cannot evaluate a peer of the same rank ({evaluated_tier})."
        )
    return PermissionDecision.allow()


def check_runtime_evaluation_permission(
    evaluator_id: str,
    evaluated_id: str,
    *,
    allow_self_evaluation: bool = False,
    session=None,
    policy: TierPolicy | None = None,
) -> PermissionDecision:
    """
    Check whether ``evaluator_id`` may evaluate ``evaluated_id`` right now.

    Both people must be active and, outside self-evaluation, linked by an
    active assignment. Ranks come from the job-level table.
    """

    session = session or db.session
    people = {
        person.dpi: person
        for person in session.scalars(select(Person).where(Person.dpi.in_({evaluator_id, evaluated_id})))
    }
    evaluator = people.get(evaluator_id)
    evaluated = people.get(evaluated_id)
    if evaluator is None or evaluator.estado != PersonStatus.ACTIVE.value:
        return PermissionDecision.deny(f"Evaluator {evaluator_id} is not an active person in the directory.")
    if evaluated is None or evaluated.estado != PersonStatus.ACTIVE.value:
        return PermissionDecision.deny(f"Person {evaluated_id} is not an active person in the directory.")

    is_self_evaluation = allow_self_evaluation and evaluator_id == evaluated_id
    if not is_self_evaluation and evaluator_id != evaluated_id:
        has_assignment = session.scalar(
            select(Assignment.id).where(
                Assignment.jefe_id == evaluator_id,
                Assignment.colaborador_id == evaluated_id,
                Assignment.activo.is_(True),
            )
        )
        if has_assignment is None:
            return PermissionDecision.deny(
                f"Evaluator {evaluator_id} has no active assignment over {evaluated_id}."
            )

    codes = {evaluator.nivel.upper(), evaluated.nivel.upper()}
    orders = {
        code.upper(): float(order)
        for code, order in session.execute(
            select(JobLevel.code, JobLevel.hierarchical_order).where(JobLevel.code.in_(codes))
        )
    }
    for person in (evaluator, evaluated):
        if person.nivel.upper() not in orders:
            return PermissionDecision.deny(f"Job level {person.nivel} of {person.dpi} is not defined.")

    return check_evaluation_permission(
        RankedPerson(evaluator.dpi, evaluator.nivel, orders[evaluator.nivel.upper()]),
        RankedPerson(evaluated.dpi, evaluated.nivel, orders[evaluated.nivel.upper()]),
        is_self_evaluation=is_self_evaluation,
        policy=policy,
    )
