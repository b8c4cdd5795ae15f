"""Sport presets: roles, role weights, display order and default composition."""

from typing import Dict, List

from loguru import logger
from pydantic import BaseModel, Field, model_validator


class SportConfig(BaseModel):
    """Role layout for one sport.

    Weights control how much a role influences team strength; the order
    controls how players are listed inside a finished team.
    """

    name: str = Field(..., min_length=1, description="Sport identifier")
    positions: Dict[str, str] = Field(
        ..., description="Role code -> display name"
    )
    position_weights: Dict[str, float] = Field(
        default_factory=dict, description="Role code -> importance weight"
    )
    position_order: List[str] = Field(
        default_factory=list, description="Role display order within a team"
    )
    default_composition: Dict[str, int] = Field(
        default_factory=dict, description="Role code -> players per team"
    )

    @model_validator(mode="after")
    def validate_weights(self):
        for role, weight in self.position_weights.items():
            if weight <= 0:
                raise ValueError(f"Weight for role {role} must be positive")
        return self

    @property
    def team_size(self) -> int:
        return sum(self.default_composition.values())

    def display_name(self, role: str) -> str:
        return self.positions.get(role, role)


VOLLEYBALL = SportConfig(
    name="volleyball",
    positions={
        "S": "Setter",
        "OPP": "Opposite",
        "OH": "Outside Hitter",
        "MB": "Middle Blocker",
        "L": "Libero",
    },
    position_weights={"S": 1.3, "OPP": 1.2, "OH": 1.15, "MB": 1.1, "L": 1.0},
    position_order=["S", "OPP", "OH", "MB", "L"],
    default_composition={"S": 1, "OPP": 1, "OH": 2, "MB": 2, "L": 1},
)

BASKETBALL = SportConfig(
    name="basketball",
    positions={
        "PG": "Point Guard",
        "SG": "Shooting Guard",
        "SF": "Small Forward",
        "PF": "Power Forward",
        "C": "Center",
    },
    position_weights={"PG": 1.2, "SG": 1.15, "SF": 1.15, "PF": 1.1, "C": 1.2},
    position_order=["PG", "SG", "SF", "PF", "C"],
    default_composition={"PG": 1, "SG": 1, "SF": 1, "PF": 1, "C": 1},
)

FOOTBALL = SportConfig(
    name="football",
    positions={
        "GK": "Goalkeeper",
        "DEF": "Defender",
        "MID": "Midfielder",
        "FWD": "Forward",
    },
    position_weights={"GK": 1.3, "DEF": 1.1, "MID": 1.2, "FWD": 1.15},
    position_order=["GK", "DEF", "MID", "FWD"],
    default_composition={"GK": 1, "DEF": 4, "MID": 3, "FWD": 3},
)

SPORTS: Dict[str, SportConfig] = {
    sport.name: sport for sport in (VOLLEYBALL, BASKETBALL, FOOTBALL)
}


def get_sport_config(name: str) -> SportConfig:
    """Look up a preset by name (case-insensitive).

    Raises:
        KeyError: If no preset exists for the name
    """
    key = name.lower()
    if key not in SPORTS:
        raise KeyError(
            f"Unknown sport '{name}'. Available: {', '.join(sorted(SPORTS))}"
        )
    return SPORTS[key]


def validate_sport_config(sport: SportConfig) -> SportConfig:
    """Return a copy with missing weights filled in and order gaps logged.

    Raises:
        ValueError: If the sport defines no positions
    """
    if not sport.positions:
        raise ValueError(f"Sport '{sport.name}' defines no positions")

    weights = dict(sport.position_weights)
    for role in sport.positions:
        if role not in weights:
            logger.warning(
                f"⚠️ Missing weight for position {role} in {sport.name}, using 1.0"
            )
            weights[role] = 1.0

    order = list(sport.position_order) or list(sport.positions)
    for role in sport.default_composition:
        if role not in order:
            logger.warning(
                f"⚠️ Position {role} from composition not in position order for {sport.name}"
            )

    return sport.model_copy(update={"position_weights": weights, "position_order": order})
