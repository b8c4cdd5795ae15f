"""Neighborhood moves shared by the local-improvement algorithms.

All moves mutate the solution in place, so callers apply them to a clone.
"""

import random
from typing import List, Sequence

from team_balancer.config.settings import AdaptiveParametersConfig
from team_balancer.domain.models import Solution

from .evaluation import SolutionEvaluator


def _role_slots(team, role: str) -> List[int]:
    return [index for index, a in enumerate(team) if a.role == role]


def perform_swap(solution: Solution, roles: Sequence[str], rng: random.Random) -> None:
    """Swap one random same-role player between two distinct random teams."""
    if len(solution) < 2 or not roles:
        return
    first, second = rng.sample(range(len(solution)), 2)
    role = rng.choice(list(roles))
    first_slots = _role_slots(solution[first], role)
    second_slots = _role_slots(solution[second], role)
    if not first_slots or not second_slots:
        return
    i = rng.choice(first_slots)
    j = rng.choice(second_slots)
    solution[first][i], solution[second][j] = solution[second][j], solution[first][i]


def perform_adaptive_swap(
    solution: Solution,
    roles: Sequence[str],
    rng: random.Random,
    evaluator: SolutionEvaluator,
    probability: float,
) -> None:
    """Move strength from the strongest team towards the weakest.

    With ``probability``, swaps the weakest player of a random role in the
    strongest team with the strongest same-role player of the weakest team,
    but only when that lowers the strong team's rating. Otherwise, or when
    the targeted swap is not possible, falls back to ``perform_swap``.
    """
    if len(solution) < 2 or not roles or rng.random() >= probability:
        perform_swap(solution, roles, rng)
        return

    strengths = evaluator.team_strengths(solution)
    strong = max(range(len(solution)), key=lambda t: strengths[t])
    weak = min(range(len(solution)), key=lambda t: strengths[t])
    role = rng.choice(list(roles))
    strong_slots = _role_slots(solution[strong], role)
    weak_slots = _role_slots(solution[weak], role)
    if strong == weak or not strong_slots or not weak_slots:
        perform_swap(solution, roles, rng)
        return

    i = min(strong_slots, key=lambda s: solution[strong][s].rating)
    j = max(weak_slots, key=lambda s: solution[weak][s].rating)
    if solution[weak][j].rating < solution[strong][i].rating:
        solution[strong][i], solution[weak][j] = solution[weak][j], solution[strong][i]
    else:
        perform_swap(solution, roles, rng)


def perform_position_swap(
    solution: Solution, roles: Sequence[str], rng: random.Random
) -> None:
    """Swap two same-role players inside one team. Changes order only."""
    if not solution or not roles:
        return
    team = solution[rng.randrange(len(solution))]
    slots = _role_slots(team, rng.choice(list(roles)))
    if len(slots) < 2:
        return
    i, j = rng.sample(slots, 2)
    team[i], team[j] = team[j], team[i]


def perform_cross_team_swap(solution: Solution, rng: random.Random) -> bool:
    """Swap two arbitrary slots across two teams, ignoring roles.

    Returns:
        True when the per-team role counts are unchanged (no-op or a same-role
        swap), False when the move broke the composition.
    """
    if len(solution) < 2:
        return True
    first, second = rng.sample(range(len(solution)), 2)
    if not solution[first] or not solution[second]:
        return True
    i = rng.randrange(len(solution[first]))
    j = rng.randrange(len(solution[second]))
    preserved = solution[first][i].role == solution[second][j].role
    solution[first][i], solution[second][j] = solution[second][j], solution[first][i]
    return preserved


class NeighborhoodOperator:
    """Bundles the move parameters one algorithm run needs.

    ``universal`` is the default neighborhood: each of the four moves with
    equal probability.
    """

    def __init__(
        self,
        roles: Sequence[str],
        rng: random.Random,
        evaluator: SolutionEvaluator,
        adaptive: AdaptiveParametersConfig,
        adaptive_enabled: bool = True,
    ):
        self.roles = list(roles)
        self.rng = rng
        self.evaluator = evaluator
        self.adaptive = adaptive
        self.adaptive_enabled = adaptive_enabled

    def swap(self, solution: Solution) -> None:
        perform_swap(solution, self.roles, self.rng)

    def universal(self, solution: Solution) -> bool:
        """Apply one random move.

        Returns:
            False if the move changed some team's role counts; callers must
            reject such a neighbor.
        """
        choice = self.rng.random()
        if choice < 0.25:
            perform_swap(solution, self.roles, self.rng)
        elif choice < 0.5:
            if self.adaptive_enabled:
                perform_adaptive_swap(
                    solution,
                    self.roles,
                    self.rng,
                    self.evaluator,
                    self.adaptive.strong_weak_swap_probability,
                )
            else:
                perform_swap(solution, self.roles, self.rng)
        elif choice < 0.75:
            perform_position_swap(solution, self.roles, self.rng)
        else:
            return perform_cross_team_swap(solution, self.rng)
        return True
