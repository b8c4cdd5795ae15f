"""Result models returned by the team optimizer."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..common.diagnostics import Diagnostic
from .player import Player
from .team import Solution


class ValidationIssue(BaseModel):
    """A single pre-flight violation or warning."""

    message: str = Field(..., min_length=1, description="Human-readable message")
    role: Optional[str] = Field(None, description="Role the issue refers to")
    needed: Optional[int] = Field(None, description="Players required")
    available: Optional[int] = Field(None, description="Players available")


class ValidationReport(BaseModel):
    """Outcome of validating a composition against a player pool."""

    is_valid: bool = Field(..., description="True when no errors were found")
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    def error_messages(self) -> List[str]:
        return [issue.message for issue in self.errors]


class BalanceMetrics(BaseModel):
    """Spread statistics of team strengths."""

    difference: float = Field(..., description="max - min team strength")
    variance: float = Field(..., description="Population variance of strengths")
    standard_deviation: float = Field(..., description="Square root of variance")
    average: float = Field(..., description="Mean team strength")
    min: float = Field(..., description="Weakest team strength")
    max: float = Field(..., description="Strongest team strength")
    team_strengths: List[float] = Field(default_factory=list)


class InfeasibleProblemError(ValueError):
    """Raised when the player pool cannot satisfy the requested teams."""

    def __init__(self, report: ValidationReport):
        self.report = report
        super().__init__(
            "Validation failed: " + "; ".join(report.error_messages())
        )


@dataclass
class OptimizationResult:
    """Final partition plus diagnostics for one optimize() call."""

    teams: Solution
    balance: BalanceMetrics
    unused_players: List[Player]
    validation: ValidationReport
    algorithm: str
    feasible: bool = True  # every team matches the composition exactly
    statistics: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    candidate_scores: Dict[str, float] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def score(self) -> Optional[float]:
        return self.candidate_scores.get("final")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "teams": [
                [
                    {
                        "id": a.player_id,
                        "name": a.player.name,
                        "role": a.role,
                        "rating": a.rating,
                    }
                    for a in team
                ]
                for team in self.teams
            ],
            "balance": self.balance.model_dump(),
            "unused_players": [
                {"id": p.id, "name": p.name} for p in self.unused_players
            ],
            "validation": self.validation.model_dump(),
            "algorithm": self.algorithm,
            "feasible": self.feasible,
            "statistics": self.statistics,
            "candidate_scores": self.candidate_scores,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "elapsed_seconds": self.elapsed_seconds,
        }
