"""Simulated annealing with geometric cooling and stagnation reheat."""

import math
import random
import time
from typing import Optional

from loguru import logger

from team_balancer.config.settings import (
    AdaptiveParametersConfig,
    SimulatedAnnealingConfig,
)
from team_balancer.domain.models import Solution

from .base import OptimizerStatistics, stop_requested
from .generators import random_solution
from .moves import NeighborhoodOperator
from .problem import ProblemContext
from .solution_utils import clone_solution

MIN_TEMPERATURE = 1e-12


class SimulatedAnnealingOptimizer:
    """Metropolis acceptance: worse neighbors pass with probability exp(-delta/T)."""

    name = "Simulated Annealing"

    def __init__(
        self,
        settings: SimulatedAnnealingConfig,
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

    def _accept(self, delta: float, temperature: float) -> bool:
        if delta < 0:
            return True
        return self.rng.random() < math.exp(-delta / temperature)

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        settings = self.settings
        evaluator = context.evaluator

        current = clone_solution(
            self.initial_solution
            if self.initial_solution is not None
            else random_solution(context, self.rng)
        )
        current_score = evaluator.score(current)
        best, best_score = clone_solution(current), current_score

        moves = NeighborhoodOperator(
            context.roles, self.rng, evaluator, self.adaptive, self.adaptive_enabled
        )
        temperature = settings.initial_temperature
        since_improvement = 0
        reheats = 0
        accepted = 0

        for iteration in range(settings.iterations):
            if stop_requested(context, iteration, self.statistics):
                break
            self.statistics.iterations = iteration + 1

            candidate = clone_solution(current)
            if moves.universal(candidate):
                candidate_score = evaluator.score(candidate)
                if self._accept(candidate_score - current_score, temperature):
                    current, current_score = candidate, candidate_score
                    accepted += 1
                    if current_score < best_score:
                        best, best_score = clone_solution(current), current_score
                        self.statistics.improvements += 1
                        since_improvement = 0
                    else:
                        since_improvement += 1

            temperature = max(temperature * settings.cooling_rate, MIN_TEMPERATURE)

            if settings.reheat_enabled and since_improvement > settings.reheat_iterations:
                temperature = settings.reheat_temperature
                since_improvement = 0
                reheats += 1
                logger.debug(f"🔥 SA reheat #{reheats} at iteration {iteration}")

        self.statistics.best_score = best_score
        self.statistics.extra = {
            "accepted_moves": accepted,
            "reheats": reheats,
            "final_temperature": temperature,
        }
        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🌡️ SA finished: best {best_score:.3f} after {self.statistics.iterations} "
            f"iterations ({reheats} reheats)"
        )
        return best
