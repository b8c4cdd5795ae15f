"""Constructive heuristics that build starting partitions.

Every generator returns ``team_count`` teams and never raises on a short
pool: when a role cannot be filled for a team it reports a ``partial_fill``
warning to the diagnostics sink and leaves the slot empty.
"""

import random
from typing import Callable, Dict, List, Optional, Set, Tuple

from team_balancer.config.settings import GeneratorConfig
from team_balancer.domain.common import DiagnosticsSink, NullDiagnosticsSink
from team_balancer.domain.models import Assignment, Solution

from .problem import ProblemContext, order_roles
from .solution_utils import shortfalls

Pools = Dict[str, Tuple[Assignment, ...]]


def _noisy(rating: float, rng: random.Random, span: float, randomize: bool) -> float:
    if not randomize or span <= 0:
        return rating
    return rating + (rng.random() - 0.5) * span


def _ranked(
    candidates: List[Assignment],
    rng: random.Random,
    span: float,
    randomize: bool,
    specialists_first: bool = False,
) -> List[Assignment]:
    """Sort by (jittered) rating, best first. Jitter is drawn once per candidate."""
    keyed = [(_noisy(a.rating, rng, span, randomize), index, a) for index, a in enumerate(candidates)]
    if specialists_first:
        keyed.sort(key=lambda item: (not item[2].is_specialist, -item[0], item[1]))
    else:
        keyed.sort(key=lambda item: (-item[0], item[1]))
    return [a for _, _, a in keyed]


def _available(pools: Pools, role: str, used: Set[str]) -> List[Assignment]:
    return [a for a in pools.get(role, ()) if a.player_id not in used]


def _role_order(
    composition: Dict[str, int],
    rng: random.Random,
    randomize: bool,
    settings: GeneratorConfig,
) -> List[str]:
    roles = order_roles(composition, settings.role_priority)
    if randomize:
        rng.shuffle(roles)
    return roles


def _report_shortfalls(
    teams: Solution, composition: Dict[str, int], diagnostics: DiagnosticsSink, source: str
) -> None:
    for index, team in enumerate(teams):
        for role, missing in shortfalls(team, composition).items():
            needed = composition[role]
            diagnostics.warn(
                "partial_fill",
                f"{source}: not enough {role} players for team {index + 1} "
                f"(need {needed}, placed {needed - missing})",
                role=role,
                team_index=index,
            )


def generate_greedy(
    composition: Dict[str, int],
    team_count: int,
    pools: Pools,
    rng: random.Random,
    randomize: bool = False,
    settings: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Solution:
    """Deal each role's best players team by team.

    Team 0 receives all of its slots for a role before team 1 gets any.
    """
    settings = settings or GeneratorConfig()
    diagnostics = diagnostics or NullDiagnosticsSink()
    teams: Solution = [[] for _ in range(team_count)]
    used: Set[str] = set()

    for role in _role_order(composition, rng, randomize, settings):
        candidates = _ranked(
            _available(pools, role, used), rng, settings.greedy_noise, randomize
        )
        cursor = 0
        for team in teams:
            for _ in range(composition[role]):
                if cursor >= len(candidates):
                    break
                team.append(candidates[cursor])
                used.add(candidates[cursor].player_id)
                cursor += 1

    _report_shortfalls(teams, composition, diagnostics, "Greedy")
    return teams


def generate_balanced(
    composition: Dict[str, int],
    team_count: int,
    pools: Pools,
    rng: random.Random,
    randomize: bool = False,
    settings: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Solution:
    """Round-robin: one slot per team per round, best players first."""
    settings = settings or GeneratorConfig()
    diagnostics = diagnostics or NullDiagnosticsSink()
    teams: Solution = [[] for _ in range(team_count)]
    used: Set[str] = set()
    offset = rng.randrange(team_count) if randomize and team_count > 0 else 0

    for role in _role_order(composition, rng, randomize, settings):
        candidates = _ranked(
            _available(pools, role, used), rng, settings.balanced_noise, randomize
        )
        cursor = 0
        for _ in range(composition[role]):
            for step in range(team_count):
                if cursor >= len(candidates):
                    break
                team = teams[(offset + step) % team_count]
                team.append(candidates[cursor])
                used.add(candidates[cursor].player_id)
                cursor += 1

    _report_shortfalls(teams, composition, diagnostics, "Balanced")
    return teams


def generate_snake(
    composition: Dict[str, int],
    team_count: int,
    pools: Pools,
    rng: random.Random,
    randomize: bool = False,
    settings: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Solution:
    """Snake draft: direction flips every round, specialists drafted first."""
    settings = settings or GeneratorConfig()
    diagnostics = diagnostics or NullDiagnosticsSink()
    teams: Solution = [[] for _ in range(team_count)]
    used: Set[str] = set()
    reverse = randomize and rng.random() < 0.5
    rounds = 0

    for role in _role_order(composition, rng, randomize, settings):
        candidates = _ranked(
            _available(pools, role, used),
            rng,
            settings.snake_noise,
            randomize,
            specialists_first=True,
        )
        cursor = 0
        for _ in range(composition[role]):
            if rounds >= settings.snake_max_rounds:
                diagnostics.warn(
                    "snake_round_cap",
                    f"Snake draft stopped after {settings.snake_max_rounds} rounds",
                )
                break
            order = range(team_count - 1, -1, -1) if reverse else range(team_count)
            for index in order:
                if cursor >= len(candidates):
                    break
                teams[index].append(candidates[cursor])
                used.add(candidates[cursor].player_id)
                cursor += 1
            reverse = not reverse
            rounds += 1

    _report_shortfalls(teams, composition, diagnostics, "Snake")
    return teams


def generate_smart(
    composition: Dict[str, int],
    team_count: int,
    pools: Pools,
    rng: random.Random,
    randomize: bool = False,
    settings: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Solution:
    """Scarcity-aware construction.

    Phase 1 places specialists, since they have nowhere else to go. Phase 2
    repeatedly serves the scarcest role first (unused supply / open demand),
    handing one player to each team still short of it, until a pass makes no
    progress.
    """
    settings = settings or GeneratorConfig()
    diagnostics = diagnostics or NullDiagnosticsSink()
    teams: Solution = [[] for _ in range(team_count)]
    totals = [0.0] * team_count
    used: Set[str] = set()
    roles = _role_order(composition, rng, randomize, settings)

    def open_slots(index: int, role: str) -> int:
        return composition[role] - sum(1 for a in teams[index] if a.role == role)

    def place(index: int, assignment: Assignment) -> None:
        teams[index].append(assignment)
        totals[index] += assignment.rating
        used.add(assignment.player_id)

    for role in roles:
        specialists = _ranked(
            [a for a in _available(pools, role, used) if a.is_specialist],
            rng,
            settings.snake_noise,
            randomize,
        )
        for assignment in specialists:
            short = [i for i in range(team_count) if open_slots(i, role) > 0]
            if not short:
                break
            place(min(short, key=lambda i: (totals[i], i)), assignment)

    for _ in range(settings.smart_max_passes):
        scarcity = {}
        for role in roles:
            demand = sum(max(0, open_slots(i, role)) for i in range(team_count))
            if demand > 0:
                scarcity[role] = len(_available(pools, role, used)) / demand
        if not scarcity:
            break

        progress = False
        for role in sorted(scarcity, key=lambda r: (scarcity[r], roles.index(r))):
            short = sorted(
                (i for i in range(team_count) if open_slots(i, role) > 0),
                key=lambda i: (totals[i], i),
            )
            for index in short:
                candidates = _available(pools, role, used)
                if not candidates:
                    break
                # fewest eligible roles first, then best (jittered) rating
                keyed = [
                    (
                        len(a.player.positions),
                        -_noisy(a.rating, rng, settings.snake_noise, randomize),
                        n,
                    )
                    for n, a in enumerate(candidates)
                ]
                place(index, candidates[min(keyed)[2]])
                progress = True
        if not progress:
            break

    _report_shortfalls(teams, composition, diagnostics, "Smart")
    return teams


def generate_random(
    composition: Dict[str, int],
    team_count: int,
    pools: Pools,
    rng: random.Random,
    randomize: bool = True,
    settings: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Solution:
    """Shuffle each role's eligible players, then deal team by team."""
    settings = settings or GeneratorConfig()
    diagnostics = diagnostics or NullDiagnosticsSink()
    teams: Solution = [[] for _ in range(team_count)]
    used: Set[str] = set()

    for role in _role_order(composition, rng, True, settings):
        candidates = _available(pools, role, used)
        rng.shuffle(candidates)
        cursor = 0
        for team in teams:
            for _ in range(composition[role]):
                if cursor >= len(candidates):
                    break
                team.append(candidates[cursor])
                used.add(candidates[cursor].player_id)
                cursor += 1

    _report_shortfalls(teams, composition, diagnostics, "Random")
    return teams


Generator = Callable[..., Solution]

GENERATORS: Dict[str, Generator] = {
    "greedy": generate_greedy,
    "balanced": generate_balanced,
    "snake": generate_snake,
    "smart": generate_smart,
    "random": generate_random,
}


def generate_from_context(
    name: str, context: ProblemContext, rng: random.Random, randomize: bool = False
) -> Solution:
    """Run a named generator against a problem context."""
    return GENERATORS[name](
        context.composition,
        context.team_count,
        context.players_by_role,
        rng,
        randomize=randomize,
        settings=context.generator_settings,
        diagnostics=context.diagnostics,
    )


def random_solution(context: ProblemContext, rng: random.Random) -> Solution:
    return generate_from_context("random", context, rng, randomize=True)


def greedy_solution(context: ProblemContext, rng: random.Random) -> Solution:
    return generate_from_context("greedy", context, rng, randomize=False)


def generate_initial_solutions(
    context: ProblemContext, rng: random.Random
) -> List[Solution]:
    """Diverse starting set; element 0 is the deterministic smart solution."""
    plan = [
        ("smart", False),
        ("smart", True),
        ("greedy", True),
        ("balanced", True),
        ("snake", True),
        ("random", True),
    ]
    return [generate_from_context(name, context, rng, randomize) for name, randomize in plan]
