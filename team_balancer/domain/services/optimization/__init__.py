"""Optimization engine for balanced team partitioning.

This module provides:
- Problem model and objective evaluation
- Constructive generators for starting partitions
- Shared neighborhood moves
- Search algorithms (local search, SA, tabu, GA, ant colony, CP)

Usage:
    from team_balancer.domain.services.optimization import (
        ProblemContext,
        SolutionEvaluator,
        SimulatedAnnealingOptimizer,
    )
"""

from .ant_colony import AntColonyOptimizer
from .base import Optimizer, OptimizerStatistics
from .constraint_programming import ConstraintProgrammingOptimizer
from .evaluation import SolutionEvaluator
from .generators import (
    GENERATORS,
    generate_balanced,
    generate_greedy,
    generate_initial_solutions,
    generate_random,
    generate_smart,
    generate_snake,
)
from .genetic_algorithm import GeneticAlgorithmOptimizer, crossover
from .local_search import LocalSearchOptimizer
from .moves import (
    NeighborhoodOperator,
    perform_adaptive_swap,
    perform_cross_team_swap,
    perform_position_swap,
    perform_swap,
)
from .problem import Deadline, ProblemContext, build_role_pools, order_roles
from .simulated_annealing import SimulatedAnnealingOptimizer
from .tabu_search import TabuSearchOptimizer

__all__ = [
    "AntColonyOptimizer",
    "ConstraintProgrammingOptimizer",
    "GeneticAlgorithmOptimizer",
    "LocalSearchOptimizer",
    "SimulatedAnnealingOptimizer",
    "TabuSearchOptimizer",
    "Optimizer",
    "OptimizerStatistics",
    "SolutionEvaluator",
    "ProblemContext",
    "Deadline",
    "build_role_pools",
    "order_roles",
    "GENERATORS",
    "generate_balanced",
    "generate_greedy",
    "generate_initial_solutions",
    "generate_random",
    "generate_smart",
    "generate_snake",
    "crossover",
    "NeighborhoodOperator",
    "perform_adaptive_swap",
    "perform_cross_team_swap",
    "perform_position_swap",
    "perform_swap",
]
