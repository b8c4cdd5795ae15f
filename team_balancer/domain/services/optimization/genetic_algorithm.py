"""Genetic algorithm with elitism, tournament selection and repaired crossover."""

import math
import random
import time
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from team_balancer.config.settings import (
    AdaptiveParametersConfig,
    GeneticAlgorithmConfig,
)
from team_balancer.domain.models import Assignment, Solution

from .base import OptimizerStatistics
from .generators import random_solution
from .moves import NeighborhoodOperator
from .problem import ProblemContext
from .solution_utils import clone_solution, role_counts_match

DIVERSITY_SAMPLE = 5
DIVERSITY_THRESHOLD = 0.2
STAGNATION_BOOST_AFTER = 10
MAX_BOOSTED_MUTATION_RATE = 0.5

Scored = List[Tuple[float, Solution]]


def solution_difference(first: Solution, second: Solution) -> int:
    """Players of ``first`` that sit in a different team index in ``second``."""
    differences = 0
    for index, team in enumerate(first):
        other = {a.player_id for a in second[index]} if index < len(second) else set()
        differences += sum(1 for a in team if a.player_id not in other)
    return differences


def crossover(
    parent1: Solution,
    parent2: Solution,
    context: ProblemContext,
    rng: random.Random,
) -> Solution:
    """Slice-point crossover by team index followed by a repair pass.

    Teams before the slice point are copied from ``parent1``. Every other
    player of ``parent2`` (then any ``parent1`` player still missing) goes to
    the first team short of its role. Players that fit nowhere under their
    current role are re-roled into an open slot they are eligible for, and
    only then dropped into the smallest team. The child never holds a player
    twice and never loses a player placed by either parent.
    """
    team_count = len(parent1)
    composition = context.composition
    child: Solution = [[] for _ in range(team_count)]
    used = set()
    slice_point = rng.randrange(team_count) if team_count > 0 else 0

    for index in range(slice_point):
        child[index] = list(parent1[index])
        used.update(a.player_id for a in parent1[index])

    def open_slots(team, role: str) -> int:
        return composition.get(role, 0) - sum(1 for a in team if a.role == role)

    overflow: List[Assignment] = []
    pending = [a for team in parent2 for a in team]
    pending.extend(a for team in parent1[slice_point:] for a in team)
    for assignment in pending:
        if assignment.player_id in used:
            continue
        used.add(assignment.player_id)
        target = next((team for team in child if open_slots(team, assignment.role) > 0), None)
        if target is None:
            overflow.append(assignment)
        else:
            target.append(assignment)

    for assignment in overflow:
        placed = False
        for role in assignment.player.positions:
            target = next((team for team in child if open_slots(team, role) > 0), None)
            replacement = context.assignment_for(assignment.player_id, role)
            if target is not None and replacement is not None:
                target.append(replacement)
                placed = True
                break
        if not placed and child:
            min(child, key=len).append(assignment)

    return child


class GeneticAlgorithmOptimizer:
    """Evolves a population seeded from the constructive generators."""

    name = "Genetic Algorithm"

    def __init__(
        self,
        settings: GeneticAlgorithmConfig,
        adaptive: AdaptiveParametersConfig,
        rng: random.Random,
        initial_population: Optional[Sequence[Solution]] = None,
        adaptive_enabled: bool = True,
    ):
        self.settings = settings
        self.adaptive = adaptive
        self.rng = rng
        self.initial_population = list(initial_population or [])
        self.adaptive_enabled = adaptive_enabled
        self.statistics = OptimizerStatistics()

    def _tournament(self, scored: Scored) -> Solution:
        best = None
        for _ in range(self.settings.tournament_size):
            entry = scored[self.rng.randrange(len(scored))]
            if best is None or entry[0] < best[0]:
                best = entry
        return best[1]

    def _is_diverse(self, child: Solution, population: List[Solution]) -> bool:
        if not population:
            return True
        total = sum(len(team) for team in child)
        nearest = min(
            solution_difference(child, population[self.rng.randrange(len(population))])
            for _ in range(min(DIVERSITY_SAMPLE, len(population)))
        )
        return nearest >= total * DIVERSITY_THRESHOLD

    def _mutate(self, child: Solution, moves: NeighborhoodOperator, swaps: int) -> Solution:
        for _ in range(swaps):
            trial = clone_solution(child)
            if moves.universal(trial):
                child = trial
        return child

    def _score_all(self, population: List[Solution], context: ProblemContext) -> Scored:
        scored = [(context.evaluator.score(s), s) for s in population]
        scored.sort(key=lambda entry: entry[0])
        return scored

    def solve(self, context: ProblemContext) -> Solution:
        started = time.perf_counter()
        self.statistics = OptimizerStatistics()
        settings = self.settings
        moves = NeighborhoodOperator(
            context.roles, self.rng, context.evaluator, self.adaptive, self.adaptive_enabled
        )

        population = [clone_solution(s) for s in self.initial_population[: settings.population_size]]
        while len(population) < settings.population_size:
            population.append(random_solution(context, self.rng))

        best: Optional[Solution] = None
        best_score = math.inf
        stagnation = 0
        regenerations = 0
        rejected_children = 0

        for generation in range(settings.generation_count):
            if context.deadline.expired():
                self.statistics.stopped_by_deadline = True
                break
            self.statistics.iterations = generation + 1

            scored = self._score_all(population, context)
            if scored[0][0] < best_score:
                best_score = scored[0][0]
                best = clone_solution(scored[0][1])
                self.statistics.improvements += 1
                stagnation = 0
            else:
                stagnation += 1

            next_population = [clone_solution(s) for _, s in scored[: settings.elitism_count]]
            while len(next_population) < settings.population_size:
                parent1 = self._tournament(scored)
                if self.rng.random() < settings.crossover_rate:
                    parent2 = self._tournament(scored)
                    child = crossover(parent1, parent2, context, self.rng)
                    if not role_counts_match(child, parent1):
                        rejected_children += 1
                        child = clone_solution(parent1)
                    elif not self._is_diverse(child, next_population):
                        child = random_solution(context, self.rng)
                else:
                    child = clone_solution(parent1)
                next_population.append(child)

            boosted = stagnation > STAGNATION_BOOST_AFTER
            mutation_rate = (
                min(MAX_BOOSTED_MUTATION_RATE, settings.mutation_rate * 2)
                if boosted
                else settings.mutation_rate
            )
            for index in range(settings.elitism_count, len(next_population)):
                if self.rng.random() < mutation_rate:
                    next_population[index] = self._mutate(
                        next_population[index], moves, 2 if boosted else 1
                    )

            if stagnation >= settings.max_stagnation:
                ranked = [s for _, s in self._score_all(next_population, context)]
                replace = math.ceil(len(ranked) / 2)
                for index in range(len(ranked) - replace, len(ranked)):
                    ranked[index] = random_solution(context, self.rng)
                next_population = ranked
                stagnation = 0
                regenerations += 1
                logger.debug(f"🧬 GA regenerated weaker half at generation {generation}")

            population = next_population

        final_score, final = self._score_all(population, context)[0]
        if best is None or final_score < best_score:
            best, best_score = clone_solution(final), final_score

        self.statistics.best_score = best_score
        self.statistics.extra = {
            "generations": self.statistics.iterations,
            "regenerations": regenerations,
            "rejected_children": rejected_children,
        }
        self.statistics.elapsed_seconds = time.perf_counter() - started
        logger.debug(
            f"🧬 GA finished: best {best_score:.3f} after {self.statistics.iterations} generations"
        )
        return best
