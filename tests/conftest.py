"""Shared fixtures: player pools, fast settings and problem contexts."""

import random
from typing import Dict, List, Optional

import pytest

from team_balancer.config import VOLLEYBALL
from team_balancer.config.settings import TeamBalancerConfig
from team_balancer.domain.common import DiagnosticsSink
from team_balancer.domain.models import Player
from team_balancer.domain.services.optimization import ProblemContext, SolutionEvaluator

VOLLEYBALL_COMPOSITION = {"S": 1, "OPP": 1, "OH": 2, "MB": 2, "L": 1}


def make_player(
    player_id: str, positions: List[str], rating: float = 1500.0, ratings: Optional[Dict] = None
) -> Player:
    return Player(
        id=player_id,
        name=f"Player {player_id}",
        positions=positions,
        ratings=ratings if ratings is not None else {role: rating for role in positions},
    )


def exact_volleyball_pool(team_count: int = 2, seed: Optional[int] = None) -> List[Player]:
    """Single-role players exactly matching the volleyball composition."""
    rng = random.Random(seed)
    players = []
    counter = 0
    for role, count in VOLLEYBALL_COMPOSITION.items():
        for _ in range(count * team_count):
            counter += 1
            rating = 1500.0 if seed is None else float(rng.randint(1200, 1800))
            players.append(make_player(f"p{counter}", [role], rating))
    return players


def flexible_volleyball_pool(team_count: int = 2, extra: int = 3, seed: int = 11) -> List[Player]:
    """Exact supply plus a few multi-role players and spares."""
    rng = random.Random(seed)
    players = exact_volleyball_pool(team_count, seed=seed)
    roles = list(VOLLEYBALL_COMPOSITION)
    for index in range(extra):
        positions = rng.sample(roles, 2)
        players.append(
            make_player(
                f"flex{index}",
                positions,
                ratings={role: float(rng.randint(1300, 1700)) for role in positions},
            )
        )
    return players


def fast_config(seed: Optional[int] = 7) -> TeamBalancerConfig:
    return TeamBalancerConfig(
        genetic={"population_size": 8, "generation_count": 15, "max_stagnation": 5},
        tabu={
            "iterations": 60,
            "neighbor_count": 6,
            "restarts": 2,
            "diversification_frequency": 25,
            "stagnation_restart": 20,
            "tabu_tenure": 20,
        },
        annealing={"iterations": 400, "reheat_iterations": 100},
        colony={"ant_count": 4, "iterations": 6},
        local_search={"iterations": 150},
        constraint={"max_backtracks": 2000},
        orchestration={"random_seed": seed, "max_workers": 4},
    )


def build_context(
    players: List[Player],
    team_count: int = 2,
    composition: Optional[Dict[str, int]] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> ProblemContext:
    evaluator = SolutionEvaluator(VOLLEYBALL.position_weights)
    return ProblemContext.build(
        composition or dict(VOLLEYBALL_COMPOSITION),
        team_count,
        players,
        evaluator,
        diagnostics=diagnostics,
    )


@pytest.fixture
def settings() -> TeamBalancerConfig:
    return fast_config()


@pytest.fixture
def exact_pool() -> List[Player]:
    return exact_volleyball_pool(2, seed=3)


@pytest.fixture
def flexible_pool() -> List[Player]:
    return flexible_volleyball_pool(2)


@pytest.fixture
def context(exact_pool) -> ProblemContext:
    return build_context(exact_pool)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
