"""Tabu search over sampled neighborhoods."""

import random
import time
from collections import deque
from typing import Deque, Optional, Set

from loguru import logger

from team_balancer.config.settings import AdaptiveParametersConfig, TabuSearchConfig
from team_balancer.domain.models import Solution

from .base import OptimizerStatistics, stop_requested
from .generators import random_solution
from .moves import NeighborhoodOperator
from .problem import ProblemContext
from .solution_utils import clone_solution, hash_solution

RESTART_SWAPS = 5


class TabuSearchOptimizer:
    """Moves to the best non-tabu neighbor each iteration.

    Recently visited partitions (by hash) are tabu for ``tabu_tenure``
    moves, unless a tabu neighbor beats the best score seen so far
    (aspiration).
    """

    name = "Tabu Search"

    def __init__(
        self,
        settings: TabuSearchConfig,
        adaptive: AdaptiveParametersConfig,
        rng: random.Random,
        initial_solution: Optional[Solution] = None,
        adaptive_enabled: bool = True,
    ):
        self.settings = settings
        self.adaptive = adaptive
        self.rng = rng
        self.initial_solution = initial_solution
        self.adaptive_enabled = adaptive_enabled
        self.statistics = OptimizerStatistics()

    def _perturb(self, solution: Solution, moves: NeighborhoodOperator, count: int) -> Solution:
        perturbed = clone_solution(solution)
        for _ in range(count):
            moves.swap(perturbed)
        return perturbed

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        settings = self.settings
        evaluator = context.evaluator
        moves = NeighborhoodOperator(
            context.roles, self.rng, evaluator, self.adaptive, self.adaptive_enabled
        )

        current = clone_solution(
            self.initial_solution
            if self.initial_solution is not None
            else random_solution(context, self.rng)
        )
        current_score = evaluator.score(current)
        best, best_score = clone_solution(current), current_score

        tabu_queue: Deque[str] = deque()
        tabu_set: Set[str] = set()

        def remember(fingerprint: str) -> None:
            tabu_queue.append(fingerprint)
            tabu_set.add(fingerprint)
            while len(tabu_queue) > settings.tabu_tenure:
                tabu_set.discard(tabu_queue.popleft())

        remember(hash_solution(current))
        since_improvement = 0
        aspirations = 0
        diversifications = 0
        restarts = 0

        for iteration in range(settings.iterations):
            if stop_requested(context, iteration, self.statistics):
                break
            self.statistics.iterations = iteration + 1

            chosen = None
            chosen_score = float("inf")
            chosen_hash = None
            chosen_by_aspiration = False
            for _ in range(settings.neighbor_count):
                candidate = clone_solution(current)
                if not moves.universal(candidate):
                    continue
                candidate_score = evaluator.score(candidate)
                fingerprint = hash_solution(candidate)
                is_tabu = fingerprint in tabu_set
                if is_tabu and not candidate_score < best_score:
                    continue
                if chosen is None or candidate_score < chosen_score:
                    chosen, chosen_score, chosen_hash = candidate, candidate_score, fingerprint
                    chosen_by_aspiration = is_tabu

            if chosen is not None:
                current, current_score = chosen, chosen_score
                remember(chosen_hash)
                if chosen_by_aspiration:
                    aspirations += 1
                if current_score < best_score:
                    best, best_score = clone_solution(current), current_score
                    self.statistics.improvements += 1
                    since_improvement = 0
                else:
                    since_improvement += 1
            else:
                since_improvement += 1

            if (iteration + 1) % settings.diversification_frequency == 0:
                team_size = max((len(team) for team in best), default=0)
                current = self._perturb(best, moves, max(3, team_size // 2))
                current_score = evaluator.score(current)
                keep = settings.tabu_tenure // 2
                while len(tabu_queue) > keep:
                    tabu_set.discard(tabu_queue.popleft())
                diversifications += 1
            elif since_improvement > settings.stagnation_restart:
                current = self._perturb(best, moves, RESTART_SWAPS)
                current_score = evaluator.score(current)
                since_improvement = 0
                restarts += 1

        self.statistics.best_score = best_score
        self.statistics.extra = {
            "aspirations": aspirations,
            "diversifications": diversifications,
            "restarts": restarts,
            "tabu_size": len(tabu_queue),
        }
        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🚫 Tabu search finished: best {best_score:.3f} "
            f"({diversifications} diversifications, {restarts} restarts)"
        )
        return best
