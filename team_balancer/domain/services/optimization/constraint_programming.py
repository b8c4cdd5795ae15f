"""Backtracking constraint solver for exact composition.

Model:
- one variable per (team, role, slot); its domain is the ids eligible for the role
- AllDifferent over every variable
- a soft team-balance constraint that never prunes (the score handles balance)

Search uses minimum-remaining-values variable ordering, least-constraining
value ordering and forward checking. When the backtrack budget (or the
deadline) runs out first, the greedy generator's solution is returned and
``statistics.fallback_used`` is set.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from team_balancer.config.settings import ConstraintProgrammingConfig
from team_balancer.domain.models import Solution

from .base import OptimizerStatistics
from .generators import greedy_solution
from .problem import ProblemContext

CONSTRAINTS = ("all-different", "team-balance (soft)")


@dataclass
class SlotVariable:
    team_index: int
    role: str
    slot: int
    domain: Set[str] = field(default_factory=set)
    order: List[str] = field(default_factory=list)
    value: Optional[str] = None

    @property
    def key(self) -> str:
        return f"team{self.team_index}_{self.role}_{self.slot}"


class _BudgetExhausted(Exception):
    pass


class ConstraintProgrammingOptimizer:
    """Complete when it succeeds: every slot filled, no player twice."""

    name = "Constraint Programming"

    def __init__(self, settings: ConstraintProgrammingConfig, rng: random.Random):
        self.settings = settings
        self.rng = rng
        self.statistics = OptimizerStatistics()
        self._backtracks = 0
        self._conflicts = 0

    def build_variables(self, context: ProblemContext) -> List[SlotVariable]:
        variables = []
        for team_index in range(context.team_count):
            for role, count in context.composition.items():
                ids = [a.player_id for a in context.pool(role)]
                for slot in range(max(count, 0)):
                    variables.append(
                        SlotVariable(team_index, role, slot, domain=set(ids), order=list(ids))
                    )
        return variables

    def _select_variable(self, unassigned: List[SlotVariable]) -> SlotVariable:
        if self.settings.variable_ordering == "most-constrained":
            return min(unassigned, key=lambda v: len(v.domain))
        return unassigned[0]

    def _order_values(
        self, variable: SlotVariable, unassigned: List[SlotVariable]
    ) -> List[str]:
        candidates = [pid for pid in variable.order if pid in variable.domain]
        if self.settings.value_ordering != "least-constraining":
            return candidates
        others = [v for v in unassigned if v is not variable]
        return sorted(candidates, key=lambda pid: sum(1 for v in others if pid in v.domain))

    def _forward_check(
        self, value: str, unassigned: List[SlotVariable]
    ) -> Tuple[List[SlotVariable], bool]:
        """Prune ``value`` from unassigned domains; report an emptied domain."""
        pruned = []
        consistent = True
        for other in unassigned:
            if value in other.domain:
                other.domain.discard(value)
                pruned.append(other)
                if not other.domain:
                    consistent = False
        return pruned, consistent

    def _search(
        self, variables: List[SlotVariable], assigned: Set[str], context: ProblemContext
    ) -> bool:
        self.statistics.iterations += 1
        unassigned = [v for v in variables if v.value is None]
        if not unassigned:
            return True
        if self._backtracks >= self.settings.max_backtracks:
            raise _BudgetExhausted()
        if context.should_stop(self.statistics.iterations):
            self.statistics.stopped_by_deadline = True
            raise _BudgetExhausted()

        variable = self._select_variable(unassigned)
        rest = [v for v in unassigned if v is not variable]
        for value in self._order_values(variable, unassigned):
            if value in assigned:
                self._conflicts += 1
                continue
            variable.value = value
            assigned.add(value)
            pruned, consistent = self._forward_check(value, rest)
            if consistent:
                if self._search(variables, assigned, context):
                    return True
            else:
                self._conflicts += 1
            for other in pruned:
                other.domain.add(value)
            assigned.discard(value)
            variable.value = None
            self._backtracks += 1
            if self._backtracks >= self.settings.max_backtracks:
                raise _BudgetExhausted()
        return False

    def _to_solution(self, variables: List[SlotVariable], context: ProblemContext) -> Solution:
        teams: Solution = [[] for _ in range(context.team_count)]
        for variable in variables:
            assignment = context.assignment_for(variable.value, variable.role)
            teams[variable.team_index].append(assignment)
        return teams

    def _fallback(self, context: ProblemContext, reason: str) -> Solution:
        logger.warning(f"⚠️ CP: {reason}, using greedy construction")
        context.diagnostics.warn("cp_fallback", f"Constraint programming fell back: {reason}")
        self.statistics.fallback_used = True
        return greedy_solution(context, self.rng)

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        self._backtracks = 0
        self._conflicts = 0

        try:
            variables = self.build_variables(context)
            empty = [v.key for v in variables if not v.domain]
            if empty:
                solution = self._fallback(context, f"empty domains for {', '.join(empty[:3])}")
            else:
                try:
                    found = self._search(variables, set(), context)
                except _BudgetExhausted:
                    found = False
                    reason = f"no solution after {self._backtracks} backtracks"
                else:
                    reason = "search space exhausted"
                if found:
                    solution = self._to_solution(variables, context)
                else:
                    solution = self._fallback(context, reason)
        except RecursionError as e:
            solution = self._fallback(context, f"search too deep ({e})")

        self.statistics.best_score = context.evaluator.score(solution)
        self.statistics.extra = {
            "backtracks": self._backtracks,
            "conflicts": self._conflicts,
            "constraints": list(CONSTRAINTS),
        }
        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🧩 CP finished: {self._backtracks} backtracks, {self._conflicts} conflicts"
            f"{' (fallback)' if self.statistics.fallback_used else ''}"
        )
        return solution
