#!/usr/bin/env python3
"""
Team balancing CLI.

Reads a JSON file with the player pool and prints balanced teams.

Input format:
    {
        "sport": "volleyball",             # optional, default volleyball
        "team_count": 2,                   # optional, overridden by --teams
        "composition": {"S": 1, "OH": 2},  # optional, default from sport
        "players": [
            {"id": "1", "name": "Ana", "positions": ["S"], "ratings": {"S": 1620}}
        ]
    }
A bare list of players is accepted too.

Usage:
    python scripts/balance_teams.py optimize players.json --teams 2 --seed 42
    python scripts/balance_teams.py optimize players.json --disable aco --disable cp
    python scripts/balance_teams.py validate players.json --teams 3
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

# Add project root
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from team_balancer.config import config, get_sport_config  # noqa: E402
from team_balancer.domain.models import (  # noqa: E402
    InfeasibleProblemError,
    OptimizationResult,
    ValidationReport,
)
from team_balancer.domain.services import TeamOptimizerService  # noqa: E402

app = typer.Typer(
    help="Split a player pool into balanced teams",
    add_completion=False,
)
console = Console()

ALGORITHM_FLAGS = {
    "ga": "use_genetic_algorithm",
    "tabu": "use_tabu_search",
    "sa": "use_simulated_annealing",
    "aco": "use_ant_colony",
    "cp": "use_constraint_programming",
}


def load_input(path: Path) -> Dict[str, Any]:
    """Read the pool file; a bare list is treated as the players list."""
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"players": data}
    if "players" not in data:
        raise typer.BadParameter(f"{path} has no 'players' list")
    return data


def build_service(
    sport: str,
    seed: Optional[int],
    time_budget: Optional[float],
    disable: List[str],
) -> TeamOptimizerService:
    settings = config.model_copy(deep=True)
    if seed is not None:
        settings.orchestration.random_seed = seed
    if time_budget is not None:
        settings.orchestration.time_budget_seconds = time_budget
    for name in disable:
        flag = ALGORITHM_FLAGS.get(name.lower())
        if flag is None:
            raise typer.BadParameter(
                f"Unknown algorithm '{name}'. Choose from: {', '.join(ALGORITHM_FLAGS)}"
            )
        setattr(settings.algorithms, flag, False)
    try:
        sport_config = get_sport_config(sport)
    except KeyError as e:
        raise typer.BadParameter(str(e))
    return TeamOptimizerService(sport_config, settings=settings)


def print_validation(report: ValidationReport) -> None:
    for issue in report.errors:
        console.print(f"[red]✗ {issue.message}[/red]")
    for issue in report.warnings:
        console.print(f"[yellow]! {issue.message}[/yellow]")
    if report.is_valid:
        console.print("[green]✓ Player pool can fill every team[/green]")


def print_result(result: OptimizationResult, service: TeamOptimizerService) -> None:
    for index, (team, strength) in enumerate(
        zip(result.teams, result.balance.team_strengths), start=1
    ):
        table = Table(title=f"Team {index} (strength {strength:.1f})")
        table.add_column("Role", style="cyan")
        table.add_column("Player")
        table.add_column("Rating", justify="right")
        for assignment in team:
            table.add_row(
                service.sport.display_name(assignment.role),
                assignment.player.name,
                f"{assignment.rating:.0f}",
            )
        console.print(table)

    console.print(f"\n[bold]Algorithm:[/bold] {result.algorithm}")
    console.print(
        f"[bold]Difference:[/bold] {result.balance.difference:.2f}   "
        f"[bold]Std dev:[/bold] {result.balance.standard_deviation:.2f}"
    )
    if not result.feasible:
        console.print("[yellow]! Some teams are missing players for their roles[/yellow]")
    if result.unused_players:
        names = ", ".join(p.name for p in result.unused_players)
        console.print(f"[yellow]Unused players:[/yellow] {names}")


# =============================================================================
# OPTIMIZE
# =============================================================================


@app.command("optimize")
def optimize(
    input_file: Path = typer.Argument(..., exists=True, help="JSON player pool"),
    teams: Optional[int] = typer.Option(None, help="Number of teams"),
    sport: Optional[str] = typer.Option(None, help="Sport preset"),
    seed: Optional[int] = typer.Option(None, help="Random seed for reproducible runs"),
    time_budget: Optional[float] = typer.Option(None, help="Wall-clock budget in seconds"),
    disable: List[str] = typer.Option([], help="Algorithm to skip (ga, tabu, sa, aco, cp)"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, help="Show debug logs"),
):
    """Build balanced teams from a player pool."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")

    data = load_input(input_file)
    service = build_service(sport or data.get("sport", "volleyball"), seed, time_budget, disable)
    team_count = teams if teams is not None else data.get("team_count", 2)

    try:
        result = service.optimize(data.get("composition"), team_count, data["players"])
    except InfeasibleProblemError as e:
        print_validation(e.report)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result, service)


# =============================================================================
# VALIDATE
# =============================================================================


@app.command("validate")
def validate(
    input_file: Path = typer.Argument(..., exists=True, help="JSON player pool"),
    teams: Optional[int] = typer.Option(None, help="Number of teams"),
    sport: Optional[str] = typer.Option(None, help="Sport preset"),
):
    """Check whether the pool can fill every team."""
    data = load_input(input_file)
    service = build_service(sport or data.get("sport", "volleyball"), None, None, [])
    report = service.validate(
        data.get("composition"),
        teams if teams is not None else data.get("team_count", 2),
        data["players"],
    )
    print_validation(report)
    if not report.is_valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
