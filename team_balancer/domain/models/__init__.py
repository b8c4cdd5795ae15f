"""Domain models with strict data contracts."""

from .optimization_result import (
    BalanceMetrics,
    InfeasibleProblemError,
    OptimizationResult,
    ValidationIssue,
    ValidationReport,
)
from .player import DEFAULT_RATING, Player
from .team import Assignment, Solution, Team

__all__ = [
    "DEFAULT_RATING",
    "Player",
    "Assignment",
    "Team",
    "Solution",
    "BalanceMetrics",
    "ValidationIssue",
    "ValidationReport",
    "OptimizationResult",
    "InfeasibleProblemError",
]
