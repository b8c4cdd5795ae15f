"""Tests for the local-improvement algorithms: local search, SA and tabu."""

import dataclasses
import random

import pytest

from conftest import VOLLEYBALL_COMPOSITION, build_context, flexible_volleyball_pool
from team_balancer.config.settings import (
    AdaptiveParametersConfig,
    LocalSearchConfig,
    SimulatedAnnealingConfig,
    TabuSearchConfig,
)
from team_balancer.domain.services.optimization import (
    Deadline,
    LocalSearchOptimizer,
    Optimizer,
    SimulatedAnnealingOptimizer,
    TabuSearchOptimizer,
    generate_greedy,
)
from team_balancer.domain.services.optimization.solution_utils import (
    has_duplicates,
    is_feasible,
)


@pytest.fixture
def greedy_start(context):
    return generate_greedy(
        context.composition, context.team_count, context.players_by_role, random.Random(0)
    )


def make_local_search(start, iterations=300, seed=1):
    return LocalSearchOptimizer(
        LocalSearchConfig(iterations=iterations),
        AdaptiveParametersConfig(),
        random.Random(seed),
        initial_solution=start,
    )


# ============================================================================
# Local search
# ============================================================================


class TestLocalSearch:
    def test_best_score_trace_is_non_increasing(self, context, greedy_start):
        optimizer = make_local_search(greedy_start)
        optimizer.solve(context)
        trace = optimizer.score_trace
        assert len(trace) == 301
        assert all(later <= earlier for earlier, later in zip(trace, trace[1:]))

    def test_never_worse_than_start(self, context, greedy_start):
        start_score = context.evaluator.score(greedy_start)
        result = make_local_search(greedy_start).solve(context)
        assert context.evaluator.score(result) <= start_score
        assert is_feasible(result, VOLLEYBALL_COMPOSITION, 2)

    def test_does_not_mutate_seed(self, context, greedy_start):
        snapshot = [[a.player_id for a in team] for team in greedy_start]
        make_local_search(greedy_start).solve(context)
        assert [[a.player_id for a in team] for team in greedy_start] == snapshot

    def test_satisfies_optimizer_protocol(self, greedy_start):
        assert isinstance(make_local_search(greedy_start), Optimizer)


# ============================================================================
# Simulated annealing
# ============================================================================


class TestSimulatedAnnealing:
    def test_returns_best_ever_solution(self, context, greedy_start):
        optimizer = SimulatedAnnealingOptimizer(
            SimulatedAnnealingConfig(iterations=800, reheat_iterations=50),
            AdaptiveParametersConfig(),
            random.Random(3),
            initial_solution=greedy_start,
        )
        result = optimizer.solve(context)
        assert context.evaluator.score(result) <= context.evaluator.score(greedy_start)
        assert context.evaluator.score(result) == pytest.approx(optimizer.statistics.best_score)
        assert is_feasible(result, VOLLEYBALL_COMPOSITION, 2)

    def test_reheats_on_stagnation(self, context, greedy_start):
        optimizer = SimulatedAnnealingOptimizer(
            SimulatedAnnealingConfig(
                iterations=600, reheat_iterations=5, initial_temperature=1e6
            ),
            AdaptiveParametersConfig(),
            random.Random(4),
            initial_solution=greedy_start,
        )
        optimizer.solve(context)
        assert optimizer.statistics.extra["reheats"] > 0

    def test_same_seed_same_result(self, context, greedy_start):
        def run():
            return SimulatedAnnealingOptimizer(
                SimulatedAnnealingConfig(iterations=300),
                AdaptiveParametersConfig(),
                random.Random(21),
                initial_solution=greedy_start,
            ).solve(context)

        first, second = run(), run()
        assert [[a.player_id for a in t] for t in first] == [
            [a.player_id for a in t] for t in second
        ]


# ============================================================================
# Tabu search
# ============================================================================


class TestTabuSearch:
    def test_improves_and_stays_feasible(self, context, greedy_start):
        optimizer = TabuSearchOptimizer(
            TabuSearchConfig(
                iterations=120,
                neighbor_count=8,
                diversification_frequency=40,
                stagnation_restart=15,
                tabu_tenure=10,
            ),
            AdaptiveParametersConfig(),
            random.Random(5),
            initial_solution=greedy_start,
        )
        result = optimizer.solve(context)
        assert context.evaluator.score(result) <= context.evaluator.score(greedy_start)
        assert is_feasible(result, VOLLEYBALL_COMPOSITION, 2)
        assert optimizer.statistics.extra["diversifications"] == 3
        assert optimizer.statistics.extra["tabu_size"] <= 10

    def test_multi_role_pool_has_no_duplicates(self):
        context = build_context(flexible_volleyball_pool(2, extra=4))
        result = TabuSearchOptimizer(
            TabuSearchConfig(iterations=80, neighbor_count=5),
            AdaptiveParametersConfig(),
            random.Random(6),
        ).solve(context)
        assert not has_duplicates(result)


# ============================================================================
# Deadline
# ============================================================================


class TestDeadline:
    def test_expired_deadline_stops_immediately(self, exact_pool, greedy_start):
        clock_value = [0.0]
        deadline = Deadline(1.0, clock=lambda: clock_value[0])
        clock_value[0] = 2.0
        context = dataclasses.replace(build_context(exact_pool), deadline=deadline)

        optimizer = make_local_search(greedy_start, iterations=1000)
        result = optimizer.solve(context)
        assert optimizer.statistics.stopped_by_deadline
        assert optimizer.statistics.iterations == 0
        assert is_feasible(result, VOLLEYBALL_COMPOSITION, 2)
