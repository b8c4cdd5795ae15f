"""Solution representation: assignments, teams and solutions."""

from dataclasses import dataclass
from typing import List

from .player import Player


@dataclass(frozen=True)
class Assignment:
    """A player placed under one role, with the rating used for that role.

    Immutable, so solutions can be cloned by copying the team lists.
    """

    player: Player
    role: str
    rating: float

    @property
    def player_id(self) -> str:
        return self.player.id

    @property
    def is_specialist(self) -> bool:
        return self.player.is_specialist


Team = List[Assignment]
Solution = List[Team]
