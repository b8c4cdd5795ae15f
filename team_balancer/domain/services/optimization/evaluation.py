"""Objective evaluation for team partitions.

The score combines three terms, lower is better:
- spread: strongest minus weakest team strength
- sqrt(variance) of team strengths, scaled by ``variance_weight``
- per-role imbalance, scaled by ``position_balance_weight``
"""

import math
from typing import Callable, Dict, List, Optional

import numpy as np

from team_balancer.domain.models import BalanceMetrics, Solution, Team

# (solution, evaluator) -> score; the evaluator exposes team_strength and role_weight
CustomEvaluation = Callable[[Solution, "SolutionEvaluator"], float]


class SolutionEvaluator:
    """Pure scoring functions shared by every algorithm.

    Holds only immutable configuration, so one instance can be used from
    several worker threads at once.
    """

    def __init__(
        self,
        position_weights: Dict[str, float],
        variance_weight: float = 0.5,
        position_balance_weight: float = 0.3,
        custom_evaluation: Optional[CustomEvaluation] = None,
    ):
        self.position_weights = dict(position_weights)
        self.variance_weight = variance_weight
        self.position_balance_weight = position_balance_weight
        self.custom_evaluation = custom_evaluation

    def role_weight(self, role: str) -> float:
        return self.position_weights.get(role, 1.0)

    def team_strength(self, team: Team) -> float:
        """Weighted average rating: sum(rating * weight) / sum(weight)."""
        total_weight = 0.0
        weighted = 0.0
        for assignment in team:
            weight = self.role_weight(assignment.role)
            weighted += assignment.rating * weight
            total_weight += weight
        return weighted / total_weight if total_weight > 0 else 0.0

    def team_strengths(self, solution: Solution) -> List[float]:
        return [self.team_strength(team) for team in solution]

    def position_imbalance(self, solution: Solution) -> float:
        """Sum over roles of the spread of per-team weighted role totals."""
        if len(solution) < 2:
            return 0.0
        roles = sorted({a.role for team in solution for a in team})
        imbalance = 0.0
        for role in roles:
            weight = self.role_weight(role)
            totals = [
                sum(a.rating * weight for a in team if a.role == role)
                for team in solution
            ]
            if any(total > 0 for total in totals):
                imbalance += max(totals) - min(totals)
        return imbalance

    def score(self, solution: Solution) -> float:
        """Scalar cost of a solution; +inf for empty or malformed input."""
        if not isinstance(solution, list) or not solution:
            return math.inf

        if self.custom_evaluation is not None:
            value = float(self.custom_evaluation(solution, self))
            return math.inf if math.isnan(value) else value

        strengths = np.array(self.team_strengths(solution), dtype=float)
        if np.isnan(strengths).any():
            return math.inf

        balance = float(strengths.max() - strengths.min())
        variance = float(strengths.var())
        total = (
            balance
            + math.sqrt(variance) * self.variance_weight
            + self.position_imbalance(solution) * self.position_balance_weight
        )
        return math.inf if math.isnan(total) else total

    def evaluate_balance(self, solution: Solution) -> BalanceMetrics:
        """Spread statistics used in the final result."""
        strengths = self.team_strengths(solution)
        if not strengths:
            return BalanceMetrics(
                difference=0.0,
                variance=0.0,
                standard_deviation=0.0,
                average=0.0,
                min=0.0,
                max=0.0,
                team_strengths=[],
            )

        values = np.array(strengths, dtype=float)
        variance = float(values.var())
        return BalanceMetrics(
            difference=float(values.max() - values.min()),
            variance=variance,
            standard_deviation=math.sqrt(variance),
            average=float(values.mean()),
            min=float(values.min()),
            max=float(values.max()),
            team_strengths=[float(v) for v in values],
        )
