"""
Round robin pairing using the circle method.
"""
from typing import List, Optional, Tuple

from .exceptions import ValidationError
from .models import Pairing, Resolved

BYE = object()


def validate_team_ids(team_ids: List[str]):
    """Reject lists that cannot be paired: fewer than two teams or duplicate ids."""
    if len(team_ids) < 2:
        raise ValidationError(f'At least 2 teams are required, got {len(team_ids)}')
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError('Team ids must be unique')


def generate_round_robin_rounds(team_ids: List[str]) -> List[List[Tuple[str, str]]]:
    """
    Pair every team with every other team exactly once.

    Odd team counts get a bye placeholder; the team drawn against it sits
    out that round. Index i plays index n-1-i, then every team except the
    first rotates one position. Output depends only on input order.
    """
    validate_team_ids(team_ids)

    teams = list(team_ids)
    if len(teams) % 2 == 1:
        teams.append(BYE)

    team_count = len(teams)
    rounds = []
    for _ in range(team_count - 1):
        round_pairs = []
        for i in range(team_count // 2):
            home = teams[i]
            away = teams[team_count - 1 - i]
            if home is not BYE and away is not BYE:
                round_pairs.append((home, away))
        rounds.append(round_pairs)

        # Rotate everyone but the first team: last moves to index 1
        teams.insert(1, teams.pop())

    return rounds


def generate_round_robin_pairings(team_ids: List[str], group_name: Optional[str] = None) -> List[List[Pairing]]:
    """Round robin rounds as Pairing objects with 1-based round and match numbers."""
    prefix = f'{group_name}-' if group_name else ''
    rounds = []
    for round_index, round_pairs in enumerate(generate_round_robin_rounds(team_ids)):
        round_number = round_index + 1
        rounds.append([
            Pairing(
                Resolved(home),
                Resolved(away),
                round_number,
                match_index + 1,
                code=f'{prefix}R{round_number}-M{match_index + 1}',
                group_name=group_name,
            )
            for match_index, (home, away) in enumerate(round_pairs)
        ])
    return rounds


def assign_courts(match_count: int, concurrent_matches: int) -> List[int]:
    """Court numbers cycling 1..concurrent_matches across consecutive matches."""
    if concurrent_matches < 1:
        raise ValidationError('concurrent_matches must be at least 1')
    return [(index % concurrent_matches) + 1 for index in range(match_count)]
