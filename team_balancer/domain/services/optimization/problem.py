"""Problem model for one optimization request."""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from team_balancer.config.settings import GeneratorConfig
from team_balancer.domain.common import DiagnosticsSink, NullDiagnosticsSink
from team_balancer.domain.models import Assignment, Player

from .evaluation import SolutionEvaluator

RatingProvider = Callable[[Player, str], float]


def default_rating_provider(player: Player, role: str) -> float:
    return player.rating_for(role)


class Deadline:
    """Wall-clock budget shared by every task of one run."""

    def __init__(
        self,
        seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self.seconds = seconds
        self._expires_at = None if seconds is None else clock() + seconds

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at


def build_role_pools(
    players: Sequence[Player],
    rating_provider: RatingProvider = default_rating_provider,
) -> Dict[str, Tuple[Assignment, ...]]:
    """Index players by eligible role.

    A player shows up once per eligible role, each time with the rating for
    that role.
    """
    pools: Dict[str, List[Assignment]] = {}
    for player in players:
        for role in player.positions:
            pools.setdefault(role, []).append(
                Assignment(player=player, role=role, rating=rating_provider(player, role))
            )
    return {role: tuple(entries) for role, entries in pools.items()}


def order_roles(composition: Dict[str, int], priority: Sequence[str]) -> List[str]:
    """Active roles (positive count) in fill-priority order.

    Roles named in ``priority`` come first in that order; the rest follow in
    composition order.
    """
    active = [role for role, count in composition.items() if count > 0]
    ordered = [role for role in priority if role in active]
    ordered.extend(role for role in active if role not in ordered)
    return ordered


@dataclass(frozen=True)
class ProblemContext:
    """Immutable description of one request, shared read-only by all tasks."""

    composition: Dict[str, int]
    team_count: int
    players_by_role: Dict[str, Tuple[Assignment, ...]]
    roles: Tuple[str, ...]
    evaluator: SolutionEvaluator
    players: Tuple[Player, ...] = ()
    generator_settings: GeneratorConfig = field(default_factory=GeneratorConfig)
    diagnostics: DiagnosticsSink = field(default_factory=NullDiagnosticsSink)
    deadline: Deadline = field(default_factory=Deadline)
    yield_interval: int = 100

    @classmethod
    def build(
        cls,
        composition: Dict[str, int],
        team_count: int,
        players: Sequence[Player],
        evaluator: SolutionEvaluator,
        rating_provider: RatingProvider = default_rating_provider,
        generator_settings: Optional[GeneratorConfig] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
        deadline: Optional[Deadline] = None,
        yield_interval: int = 100,
    ) -> "ProblemContext":
        settings = generator_settings or GeneratorConfig()
        return cls(
            composition=dict(composition),
            team_count=team_count,
            players_by_role=build_role_pools(players, rating_provider),
            roles=tuple(order_roles(composition, settings.role_priority)),
            evaluator=evaluator,
            players=tuple(players),
            generator_settings=settings,
            diagnostics=diagnostics or NullDiagnosticsSink(),
            deadline=deadline or Deadline(),
            yield_interval=yield_interval,
        )

    @property
    def team_size(self) -> int:
        return sum(count for count in self.composition.values() if count > 0)

    def pool(self, role: str) -> Tuple[Assignment, ...]:
        return self.players_by_role.get(role, ())

    def assignment_for(self, player_id: str, role: str) -> Optional[Assignment]:
        """The pool entry for a player under a specific role, if eligible."""
        for assignment in self.pool(role):
            if assignment.player_id == player_id:
                return assignment
        return None

    def should_stop(self, iteration: int) -> bool:
        """Cooperative deadline check, evaluated every ``yield_interval`` iterations."""
        if iteration % self.yield_interval != 0:
            return False
        return self.deadline.expired()
