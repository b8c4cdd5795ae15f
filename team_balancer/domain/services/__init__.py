"""Domain services for team balancing."""

from .team_optimizer_service import TeamOptimizerService

__all__ = [
    "TeamOptimizerService",
]
