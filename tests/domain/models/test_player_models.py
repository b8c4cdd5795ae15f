"""Tests for player and assignment models."""

import pytest
from pydantic import ValidationError

from team_balancer.domain.models import DEFAULT_RATING, Assignment, Player


class TestPlayer:
    def test_rating_defaults_to_1500(self):
        player = Player(id="1", name="Ana", positions=["S", "OH"], ratings={"S": 1620})
        assert player.rating_for("S") == 1620
        assert player.rating_for("OH") == DEFAULT_RATING

    def test_specialist(self):
        assert Player(id="1", name="A", positions=["L"]).is_specialist
        assert not Player(id="2", name="B", positions=["L", "OH"]).is_specialist

    def test_positions_deduplicated(self):
        player = Player(id="1", name="A", positions=["S", "S", "L"])
        assert player.positions == ["S", "L"]

    def test_numeric_id_coerced(self):
        assert Player(id=7, name="A").id == "7"

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Player(id="", name="A")

    def test_frozen(self):
        player = Player(id="1", name="A", positions=["S"])
        with pytest.raises(ValidationError):
            player.name = "B"


class TestAssignment:
    def test_accessors(self):
        player = Player(id="9", name="Z", positions=["MB"])
        assignment = Assignment(player=player, role="MB", rating=1555.0)
        assert assignment.player_id == "9"
        assert assignment.is_specialist
