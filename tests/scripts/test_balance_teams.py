"""Tests for balance_teams.py CLI script."""

import importlib.util
import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import typer.testing
from loguru import logger

from conftest import exact_volleyball_pool, fast_config

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Import the script module
spec = importlib.util.spec_from_file_location(
    "balance_teams",
    project_root / "scripts" / "balance_teams.py",
)
balance_teams = importlib.util.module_from_spec(spec)
spec.loader.exec_module(balance_teams)

app = balance_teams.app


def write_pool(path: Path, players, **extra) -> Path:
    data = {"players": [p.model_dump() for p in players], **extra}
    path.write_text(json.dumps(data))
    return path


class TestBalanceTeamsCLI:
    """Test balance_teams.py CLI functionality."""

    @pytest.fixture(autouse=True)
    def fast_settings(self):
        with patch.object(balance_teams, "config", fast_config(seed=None)):
            yield
        logger.remove()
        logger.add(sys.stderr)

    @pytest.fixture
    def runner(self):
        return typer.testing.CliRunner()

    @pytest.fixture
    def pool_file(self, tmp_path):
        return write_pool(tmp_path / "pool.json", exact_volleyball_pool(2, seed=12))

    def test_optimize_json_output(self, runner, pool_file):
        result = runner.invoke(app, ["optimize", str(pool_file), "--seed", "3", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data["teams"]) == 2
        assert all(len(team) == 7 for team in data["teams"])
        assert data["algorithm"].endswith("+ Local Search Refinement")

    def test_seed_makes_output_reproducible(self, runner, pool_file):
        args = ["optimize", str(pool_file), "--seed", "9", "--json"]
        first = json.loads(runner.invoke(app, args).stdout)
        second = json.loads(runner.invoke(app, args).stdout)
        assert first["teams"] == second["teams"]

    def test_table_output(self, runner, pool_file):
        result = runner.invoke(
            app, ["optimize", str(pool_file), "--seed", "1", "--disable", "aco", "--disable", "cp"]
        )
        assert result.exit_code == 0, result.output
        assert "Team 1" in result.stdout
        assert "Algorithm:" in result.stdout

    def test_bare_list_input(self, runner, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([p.model_dump() for p in exact_volleyball_pool(2)]))
        result = runner.invoke(app, ["optimize", str(path), "--seed", "2", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["balance"]["difference"] == pytest.approx(0.0)

    def test_unknown_algorithm_rejected(self, runner, pool_file):
        result = runner.invoke(app, ["optimize", str(pool_file), "--disable", "magic"])
        assert result.exit_code != 0

    def test_infeasible_pool_exits_with_error(self, runner, pool_file):
        result = runner.invoke(app, ["optimize", str(pool_file), "--teams", "3"])
        assert result.exit_code == 1
        assert "Not enough" in result.stdout

    def test_validate_success(self, runner, pool_file):
        result = runner.invoke(app, ["validate", str(pool_file)])
        assert result.exit_code == 0
        assert "can fill every team" in result.stdout

    def test_validate_failure(self, runner, tmp_path):
        path = write_pool(
            tmp_path / "short.json",
            exact_volleyball_pool(1),
            composition={"S": 1, "L": 1},
        )
        result = runner.invoke(app, ["validate", str(path), "--teams", "2"])
        assert result.exit_code == 1
        assert "Not enough Setters: need 2, have 1" in result.stdout

    def test_zero_teams_is_not_replaced_by_file_default(self, runner, pool_file):
        result = runner.invoke(app, ["validate", str(pool_file), "--teams", "0"])
        assert result.exit_code == 1
        assert "Team count must be at least 1" in result.stdout

    def test_json_output_reports_complete_teams(self, runner, pool_file):
        result = runner.invoke(app, ["optimize", str(pool_file), "--seed", "4", "--json"])
        assert json.loads(result.stdout)["feasible"] is True
