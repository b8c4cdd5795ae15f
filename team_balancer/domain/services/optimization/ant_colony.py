"""Ant colony optimization over (player, team) pheromone trails."""

import math
import random
import time
from typing import Dict, List, Optional

import numpy as np
from loguru import logger

from team_balancer.config.settings import AntColonyConfig
from team_balancer.domain.models import DEFAULT_RATING, Assignment, Solution

from .base import OptimizerStatistics
from .generators import generate_initial_solutions
from .problem import ProblemContext
from .solution_utils import clone_solution

MIN_HEURISTIC = 1e-6
MIN_PHEROMONE = 1e-6


class AntColonyOptimizer:
    """Builds every solution from scratch; needs no seed.

    Slot choice probability is proportional to
    pheromone(player, team) ** alpha * (rating / 1500) ** beta.
    """

    name = "Ant Colony"

    def __init__(self, settings: AntColonyConfig, rng: random.Random):
        self.settings = settings
        self.rng = rng
        self.statistics = OptimizerStatistics()

    def _roulette(self, weights: np.ndarray) -> int:
        total = float(weights.sum())
        if not math.isfinite(total) or total <= 0:
            return self.rng.randrange(len(weights))
        threshold = self.rng.random() * total
        cumulative = np.cumsum(weights)
        index = int(np.searchsorted(cumulative, threshold, side="right"))
        return min(index, len(weights) - 1)

    def _construct(
        self,
        context: ProblemContext,
        pheromones: np.ndarray,
        player_index: Dict[str, int],
    ) -> Solution:
        settings = self.settings
        teams: Solution = [[] for _ in range(context.team_count)]
        used = set()

        for role in context.roles:
            available: List[Assignment] = [
                a for a in context.pool(role) if a.player_id not in used
            ]
            if not available:
                continue
            heuristic = np.array(
                [max(a.rating / DEFAULT_RATING, MIN_HEURISTIC) for a in available]
            ) ** settings.beta
            rows = np.array([player_index[a.player_id] for a in available])

            for team_index in range(context.team_count):
                for _ in range(context.composition[role]):
                    if not available:
                        break
                    weights = pheromones[rows, team_index] ** settings.alpha * heuristic
                    pick = self._roulette(weights)
                    chosen = available.pop(pick)
                    rows = np.delete(rows, pick)
                    heuristic = np.delete(heuristic, pick)
                    teams[team_index].append(chosen)
                    used.add(chosen.player_id)

        return teams

    def _deposit(
        self,
        pheromones: np.ndarray,
        player_index: Dict[str, int],
        solution: Solution,
        amount: float,
    ) -> None:
        for team_index, team in enumerate(solution):
            for assignment in team:
                pheromones[player_index[assignment.player_id], team_index] += amount

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        settings = self.settings

        player_index: Dict[str, int] = {}
        for role in context.players_by_role:
            for assignment in context.pool(role):
                player_index.setdefault(assignment.player_id, len(player_index))
        pheromones = np.ones((max(len(player_index), 1), max(context.team_count, 1)))

        best: Optional[Solution] = None
        best_score = math.inf

        for iteration in range(settings.iterations):
            if context.deadline.expired():
                self.statistics.stopped_by_deadline = True
                break
            self.statistics.iterations = iteration + 1

            colony = []
            for _ in range(settings.ant_count):
                solution = self._construct(context, pheromones, player_index)
                score = context.evaluator.score(solution)
                colony.append((score, solution))
                if score < best_score:
                    best, best_score = clone_solution(solution), score
                    self.statistics.improvements += 1

            pheromones *= 1.0 - settings.evaporation_rate
            # shift so the lowest score maps to a denominator of at least 1
            finite = [score for score, _ in colony if math.isfinite(score)]
            if math.isfinite(best_score):
                finite.append(best_score)
            offset = max(0.0, -min(finite)) if finite else 0.0
            for score, solution in colony:
                if math.isfinite(score):
                    self._deposit(
                        pheromones,
                        player_index,
                        solution,
                        settings.pheromone_deposit / (1.0 + score + offset),
                    )
            if best is not None and math.isfinite(best_score):
                self._deposit(
                    pheromones,
                    player_index,
                    best,
                    settings.pheromone_deposit
                    * settings.elitist_weight
                    / (1.0 + best_score + offset),
                )
            np.maximum(pheromones, MIN_PHEROMONE, out=pheromones)

        if best is None:
            logger.warning("⚠️ Ant colony produced no solution, using first initial solution")
            self.statistics.fallback_used = True
            best = generate_initial_solutions(context, self.rng)[0]
            best_score = context.evaluator.score(best)

        self.statistics.best_score = best_score
        self.statistics.extra = {"min_pheromone": float(pheromones.min())}
        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🐜 Ant colony finished: best {best_score:.3f} after {self.statistics.iterations} iterations"
        )
        return best
