"""Capability interface shared by all search algorithms."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from team_balancer.domain.models import Solution

from .problem import ProblemContext


@dataclass
class OptimizerStatistics:
    """Per-run counters reported back to the orchestrator."""

    iterations: int = 0
    improvements: int = 0
    best_score: float = math.inf
    elapsed_seconds: float = 0.0
    fallback_used: bool = False
    stopped_by_deadline: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "iterations": self.iterations,
            "improvements": self.improvements,
            "best_score": self.best_score,
            "elapsed_seconds": round(self.elapsed_seconds, 4),
            "fallback_used": self.fallback_used,
            "stopped_by_deadline": self.stopped_by_deadline,
        }
        data.update(self.extra)
        return data


@runtime_checkable
class Optimizer(Protocol):
    """Anything that can turn a problem context into a solution.

    Implementations own their random source and seed solutions; the context
    is read-only and may be shared between concurrent tasks.
    """

    name: str
    statistics: OptimizerStatistics

    def solve(self, context: ProblemContext) -> Solution: ...


def stop_requested(
    context: ProblemContext, iteration: int, statistics: Optional[OptimizerStatistics] = None
) -> bool:
    """Deadline check used inside algorithm loops."""
    if context.should_stop(iteration):
        if statistics is not None:
            statistics.stopped_by_deadline = True
        return True
    return False
