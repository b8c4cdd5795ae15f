"""Player and role domain models."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RATING = 1500.0


class Player(BaseModel):
    """
    Domain model for a player in the pool.

    Players are read-only inputs: the engine never mutates ratings.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable player identifier")
    name: str = Field(..., min_length=1, description="Display name")
    positions: List[str] = Field(
        default_factory=list, description="Eligible role codes"
    )
    ratings: Dict[str, float] = Field(
        default_factory=dict, description="Role code -> rating"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Accept numeric ids from JSON inputs."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("positions")
    @classmethod
    def dedupe_positions(cls, v: List[str]) -> List[str]:
        seen = []
        for role in v:
            if role not in seen:
                seen.append(role)
        return seen

    @property
    def is_specialist(self) -> bool:
        """True when the player can fill exactly one role."""
        return len(self.positions) == 1

    def can_play(self, role: str) -> bool:
        return role in self.positions

    def rating_for(self, role: str) -> float:
        """Rating for a role, falling back to the default rating."""
        return self.ratings.get(role, DEFAULT_RATING)
