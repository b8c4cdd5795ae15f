"""Tests for the objective evaluator and solution helpers."""

import math

import pytest

from conftest import make_player
from team_balancer.domain.models import Assignment
from team_balancer.domain.services.optimization import SolutionEvaluator
from team_balancer.domain.services.optimization.solution_utils import (
    clone_solution,
    get_unused_players,
    has_duplicates,
    hash_solution,
    is_feasible,
    role_counts_match,
    shortfalls,
    sort_team_by_position,
)


def assign(player_id, role, rating):
    return Assignment(player=make_player(player_id, [role], rating), role=role, rating=rating)


@pytest.fixture
def evaluator():
    return SolutionEvaluator({"S": 2.0, "L": 1.0}, variance_weight=0.5, position_balance_weight=0.3)


class TestTeamStrength:
    def test_weighted_average(self, evaluator):
        team = [assign("1", "S", 1600), assign("2", "L", 1300)]
        # (1600*2 + 1300*1) / 3
        assert evaluator.team_strength(team) == pytest.approx(1500.0)

    def test_unknown_role_weight_defaults_to_one(self, evaluator):
        team = [assign("1", "X", 1400), assign("2", "L", 1600)]
        assert evaluator.team_strength(team) == pytest.approx(1500.0)

    def test_empty_team_is_zero(self, evaluator):
        assert evaluator.team_strength([]) == 0.0


class TestScore:
    def test_equal_teams_score_zero(self, evaluator):
        solution = [
            [assign("1", "S", 1500), assign("2", "L", 1500)],
            [assign("3", "S", 1500), assign("4", "L", 1500)],
        ]
        assert evaluator.score(solution) == pytest.approx(0.0)

    def test_score_formula(self, evaluator):
        solution = [[assign("1", "S", 1600)], [assign("2", "S", 1400)]]
        balance = 200.0
        std = 100.0
        # per-role totals 3200 vs 2800
        imbalance = 400.0
        expected = balance + std * 0.5 + imbalance * 0.3
        assert evaluator.score(solution) == pytest.approx(expected)

    def test_degenerate_inputs_are_infinite(self, evaluator):
        assert evaluator.score([]) == math.inf
        assert evaluator.score(None) == math.inf

    def test_nan_rating_is_infinite(self, evaluator):
        solution = [[assign("1", "S", float("nan"))], [assign("2", "S", 1500)]]
        assert evaluator.score(solution) == math.inf

    def test_lower_is_better(self, evaluator):
        balanced = [[assign("1", "S", 1550)], [assign("2", "S", 1450)]]
        unbalanced = [[assign("1", "S", 1700)], [assign("2", "S", 1300)]]
        assert evaluator.score(balanced) < evaluator.score(unbalanced)

    def test_custom_evaluation_replaces_formula(self):
        evaluator = SolutionEvaluator({}, custom_evaluation=lambda solution, ev: 42.0)
        assert evaluator.score([[assign("1", "S", 1500)]]) == 42.0

    def test_custom_evaluation_receives_evaluator(self):
        def strongest_team(solution, ev):
            return max(ev.team_strength(team) for team in solution) * ev.role_weight("S")

        evaluator = SolutionEvaluator({"S": 2.0}, custom_evaluation=strongest_team)
        solution = [[assign("1", "S", 1600)], [assign("2", "S", 1400)]]
        assert evaluator.score(solution) == pytest.approx(3200.0)


class TestBalanceMetrics:
    def test_metrics(self, evaluator):
        solution = [[assign("1", "S", 1600)], [assign("2", "S", 1400)]]
        metrics = evaluator.evaluate_balance(solution)
        assert metrics.difference == pytest.approx(200.0)
        assert metrics.variance == pytest.approx(10000.0)
        assert metrics.standard_deviation == pytest.approx(100.0)
        assert metrics.average == pytest.approx(1500.0)
        assert metrics.team_strengths == pytest.approx([1600.0, 1400.0])


class TestSolutionUtils:
    def test_clone_is_independent(self):
        solution = [[assign("1", "S", 1500)], [assign("2", "S", 1500)]]
        copy = clone_solution(solution)
        copy[0].append(assign("3", "L", 1500))
        assert len(solution[0]) == 1

    def test_hash_ignores_team_and_slot_order(self):
        a, b, c = assign("1", "S", 1), assign("2", "L", 1), assign("3", "S", 1)
        assert hash_solution([[a, b], [c]]) == hash_solution([[c], [b, a]])
        assert hash_solution([[a, b], [c]]) != hash_solution([[a, c], [b]])

    def test_duplicates_detected(self):
        a = assign("1", "S", 1500)
        assert has_duplicates([[a], [a]])
        assert not has_duplicates([[a], [assign("2", "S", 1500)]])

    def test_unused_players(self):
        placed = assign("1", "S", 1500)
        spare = make_player("2", ["L"])
        assert get_unused_players([[placed]], [placed.player, spare]) == [spare]

    def test_feasibility_and_shortfalls(self):
        team = [assign("1", "S", 1500), assign("2", "L", 1500)]
        other = [assign("3", "S", 1500)]
        assert not is_feasible([team, other], {"S": 1, "L": 1}, 2)
        assert shortfalls(other, {"S": 1, "L": 1}) == {"L": 1}
        assert is_feasible([team], {"S": 1, "L": 1}, 1)

    def test_role_counts_match(self):
        s1, s2, l1, l2 = (
            assign("1", "S", 1),
            assign("2", "S", 1),
            assign("3", "L", 1),
            assign("4", "L", 1),
        )
        assert role_counts_match([[s1, l1], [s2, l2]], [[l2, s2], [s1, l1]])
        assert not role_counts_match([[s1, s2], [l1, l2]], [[s1, l1], [s2, l2]])

    def test_sort_by_position_unknown_last(self):
        team = [assign("1", "X", 1), assign("2", "L", 1), assign("3", "S", 1)]
        ordered = sort_team_by_position(team, ["S", "L"])
        assert [a.role for a in ordered] == ["S", "L", "X"]
