"""Helpers for cloning, hashing and inspecting solutions."""

from collections import Counter
from typing import Dict, Iterable, List, Sequence, Set

from team_balancer.domain.models import Player, Solution, Team


def clone_solution(solution: Solution) -> Solution:
    """Copy a solution. Assignments are immutable, so copying the lists is enough."""
    return [list(team) for team in solution]


def hash_solution(solution: Solution) -> str:
    """Order-independent fingerprint of a partition (team and slot order ignored)."""
    teams = sorted(",".join(sorted(a.player_id for a in team)) for team in solution)
    return "|".join(teams)


def used_player_ids(solution: Solution) -> Set[str]:
    return {a.player_id for team in solution for a in team}


def has_duplicates(solution: Solution) -> bool:
    ids = [a.player_id for team in solution for a in team]
    return len(ids) != len(set(ids))


def get_unused_players(solution: Solution, players: Iterable[Player]) -> List[Player]:
    """Players from the pool that are placed in no team, in input order."""
    used = used_player_ids(solution)
    unused: List[Player] = []
    seen: Set[str] = set()
    for player in players:
        if player.id in used or player.id in seen:
            continue
        seen.add(player.id)
        unused.append(player)
    return unused


def role_counts(team: Team) -> Dict[str, int]:
    return dict(Counter(a.role for a in team))


def role_counts_match(solution: Solution, reference: Solution) -> bool:
    """True when every team holds the same role counts as in ``reference``."""
    if len(solution) != len(reference):
        return False
    return all(
        Counter(a.role for a in team) == Counter(a.role for a in ref)
        for team, ref in zip(solution, reference)
    )


def is_feasible(solution: Solution, composition: Dict[str, int], team_count: int) -> bool:
    """Exact composition in every team and no player placed twice."""
    if len(solution) != team_count or has_duplicates(solution):
        return False
    required = {role: count for role, count in composition.items() if count > 0}
    return all(role_counts(team) == required for team in solution)


def shortfalls(team: Team, composition: Dict[str, int]) -> Dict[str, int]:
    """Missing players per role for one team."""
    counts = role_counts(team)
    return {
        role: count - counts.get(role, 0)
        for role, count in composition.items()
        if count > counts.get(role, 0)
    }


def sort_team_by_position(team: Team, position_order: Sequence[str]) -> Team:
    """Stable sort by role display order; unknown roles go last."""
    rank = {role: index for index, role in enumerate(position_order)}
    return sorted(team, key=lambda a: rank.get(a.role, len(rank)))
