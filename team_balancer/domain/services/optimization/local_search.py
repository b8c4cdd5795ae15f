"""Hill-climbing local search."""

import random
import time
from typing import List, Optional

from loguru import logger

from team_balancer.config.settings import AdaptiveParametersConfig, LocalSearchConfig
from team_balancer.domain.models import Solution

from .base import OptimizerStatistics, stop_requested
from .generators import random_solution
from .moves import NeighborhoodOperator
from .problem import ProblemContext
from .solution_utils import clone_solution


class LocalSearchOptimizer:
    """Accepts a neighbor only when it strictly improves the score.

    The best-so-far score never increases; ``score_trace`` records it after
    every iteration.
    """

    name = "Local Search"

    def __init__(
        self,
        settings: LocalSearchConfig,
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
        self.score_trace: List[float] = []

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        self.score_trace = []

        seed = (
            self.initial_solution
            if self.initial_solution is not None
            else random_solution(context, self.rng)
        )
        current = clone_solution(seed)

        try:
            evaluator = context.evaluator
            moves = NeighborhoodOperator(
                context.roles, self.rng, evaluator, self.adaptive, self.adaptive_enabled
            )
            current_score = evaluator.score(current)
            self.score_trace.append(current_score)

            for iteration in range(self.settings.iterations):
                if stop_requested(context, iteration, self.statistics):
                    break
                self.statistics.iterations = iteration + 1

                candidate = clone_solution(current)
                if moves.universal(candidate):
                    candidate_score = evaluator.score(candidate)
                    if candidate_score < current_score:
                        current, current_score = candidate, candidate_score
                        self.statistics.improvements += 1
                self.score_trace.append(current_score)

            self.statistics.best_score = current_score
        except Exception as e:
            logger.error(f"❌ Local search failed, returning starting solution: {e}")
            self.statistics.fallback_used = True
            current = clone_solution(seed)
            self.statistics.best_score = context.evaluator.score(current)

        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🔍 Local search: {self.statistics.improvements} improvements in "
            f"{self.statistics.iterations} iterations (score {self.statistics.best_score:.3f})"
        )
        return current
