import pytest

from directory_app.importer.pipeline.permissions import (
    RankedPerson,
    TierPolicy,
    check_assignment_permission,
    check_evaluation_permission,
    check_runtime_evaluation_permission,
    get_tier_policy,
)
from directory_app.models import Assignment, PersonStatus, db

POLICY = TierPolicy(council_tier="C1", mayor_tier="A1", director_tier="D1")


@pytest.mark.parametrize(
    "supervisor_tier, collaborator_tier, allowed",
    [
        ("C1", "D1", True),
        ("C1", "A1", True),
        ("C1", "C1", False),
        ("C1", "O1", False),
        ("A1", "D1", True),
        ("A1", "D2", False),
        ("A1", "O1", False),
        ("E1", "O1", True),
        ("O1", "D1", True),
    ],
)
def test_import_time_tier_table(supervisor_tier, collaborator_tier, allowed):
    decision = check_assignment_permission(supervisor_tier, collaborator_tier, policy=POLICY)

    assert decision.allowed is allowed
    if not allowed:
        assert decision.reason


def test_council_peer_rejection_names_the_tiers():
    decision = check_assignment_permission("C1", "C1", policy=POLICY)

    assert "Council" in decision.reason
    assert "C1" in decision.reason


def test_mayor_with_non_director_is_rejected_with_reason():
    decision = check_assignment_permission("a1", "E1", policy=POLICY)

    assert decision.allowed is False
    assert "mayor" in decision.reason


def test_tier_policy_reads_app_config(app):
    app.config["IMPORTER_DIRECTOR_TIER"] = "d9"

    policy = get_tier_policy()

    assert policy.director_tier == "D9"
    assert policy.council_tier == "C1"


def _person(dpi, tier, order):
    return RankedPerson(dpi=dpi, tier=tier, hierarchical_order=order)


class TestEvaluationRules:
    council = _person("1", "C1", 1.0)
    council_peer = _person("2", "C1", 1.0)
    mayor = _person("3", "A1", 2.0)
    director = _person("4", "D1", 4.0)
    supervisor = _person("5", "E1", 6.0)
    peer_supervisor = _person("6", "E1", 6.0)
    operative = _person("7", "O1", 8.0)

    def test_council_may_only_self_evaluate(self):
        denied = check_evaluation_permission(self.council_peer, self.council, policy=POLICY)
        allowed = check_evaluation_permission(self.council, self.council, is_self_evaluation=True, policy=POLICY)

        assert denied.allowed is False
        assert "self-evaluation" in denied.reason
        assert allowed.allowed is True

    def test_mayor_only_evaluated_by_council(self):
        assert check_evaluation_permission(self.director, self.mayor, policy=POLICY).allowed is False
        assert check_evaluation_permission(self.council, self.mayor, policy=POLICY).allowed is True

    def test_self_evaluation_requires_flag(self):
        decision = check_evaluation_permission(self.supervisor, self.supervisor, policy=POLICY)

        assert decision.allowed is False
        assert check_evaluation_permission(
            self.supervisor, self.supervisor, is_self_evaluation=True, policy=POLICY
        ).allowed

    def test_cannot_evaluate_more_senior_rank(self):
        decision = check_evaluation_permission(self.operative, self.supervisor, policy=POLICY)

        assert decision.allowed is False
        assert "more senior" in decision.reason

    def test_cannot_evaluate_equal_rank(self):
        decision = check_evaluation_permission(self.supervisor, self.peer_supervisor, policy=POLICY)

        assert decision.allowed is False
        assert "same rank" in decision.reason

    def test_senior_evaluates_junior(self):
        assert check_evaluation_permission(self.supervisor, self.operative, policy=POLICY).allowed
        assert check_evaluation_permission(self.council, self.director, policy=POLICY).allowed


def test_runtime_check_requires_active_assignment(active_assignment, people):
    supervisor = people["supervisor"].dpi
    collaborator = people["collaborator"].dpi

    assert check_runtime_evaluation_permission(supervisor, collaborator).allowed is True

    other = check_runtime_evaluation_permission(supervisor, people["collaborator_two"].dpi)
    assert other.allowed is False
    assert "no active assignment" in other.reason


def test_runtime_check_rejects_inactive_assignment_and_people(people):
    db.session.add(
        Assignment(colaborador_id=people["collaborator"].dpi, jefe_id=people["supervisor"].dpi, activo=False)
    )
    db.session.commit()

    assert check_runtime_evaluation_permission(people["supervisor"].dpi, people["collaborator"].dpi).allowed is False
    assert check_runtime_evaluation_permission(people["supervisor"].dpi, people["inactive"].dpi).allowed is False
    assert check_runtime_evaluation_permission("9999999999999", people["collaborator"].dpi).allowed is False


def test_runtime_check_applies_rank_rules(people):
    db.session.add(
        Assignment(colaborador_id=people["supervisor"].dpi, jefe_id=people["collaborator"].dpi, activo=True)
    )
    db.session.commit()

    decision = check_runtime_evaluation_permission(people["collaborator"].dpi, people["supervisor"].dpi)

    assert decision.allowed is False
    assert "more senior" in decision.reason


def test_runtime_self_evaluation(people):
    dpi = people["supervisor"].dpi

    assert check_runtime_evaluation_permission(dpi, dpi).allowed is False
    assert check_runtime_evaluation_permission(dpi, dpi, allow_self_evaluation=True).allowed is True


def test_runtime_check_denies_deactivated_evaluator(active_assignment, people):
    people["supervisor"].estado = PersonStatus.INACTIVE.value
    db.session.commit()

    decision = check_runtime_evaluation_permission(people["supervisor"].dpi, people["collaborator"].dpi)

    assert decision.allowed is False
    assert "Evaluator" in decision.reason
