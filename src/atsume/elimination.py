"""
Single elimination bracket generation.
"""
import math
from typing import List, Optional, Tuple

from .models import WINNERS, Bye, Pairing, PendingLoserOf, PendingWinnerOf, Resolved, TeamSlot
from .round_robin import validate_team_ids


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    """
    if bracket_size == 2:
        return [1, 2]

    half_size = bracket_size // 2
    upper_half = _generate_bracket_order(half_size)
    lower_half = [bracket_size + 1 - seed for seed in upper_half]

    result = []
    for u, l in zip(upper_half, lower_half):
        result.extend([u, l])
    return result


def seed_slots(team_ids: List[str], bracket_size: int) -> List[TeamSlot]:
    """
    Place teams into bracket positions; list order defines the seeds.

    Missing seeds become byes. Byes are always the highest seed numbers,
    so they face the top seeds and never meet each other.
    """
    seed_to_team = {seed: team for seed, team in enumerate(team_ids, 1)}
    return [
        Resolved(seed_to_team[seed]) if seed in seed_to_team else Bye()
        for seed in _generate_bracket_order(bracket_size)
    ]


class RoundBuilder:
    """
    Collects the matches of one bracket round.

    A pairing against a bye produces no match: the other side passes
    straight through as the winner and the loser is a bye.
    """

    def __init__(self, round_number: int, bracket: Optional[str], code_prefix: str):
        self.round_number = round_number
        self.bracket = bracket
        self.code_prefix = code_prefix
        self.pairings: List[Pairing] = []

    def play(self, slot1: TeamSlot, slot2: TeamSlot) -> Tuple[TeamSlot, TeamSlot]:
        """Return the (winner, loser) slots that come out of this pairing."""
        if isinstance(slot1, Bye):
            return slot2, Bye()
        if isinstance(slot2, Bye):
            return slot1, Bye()

        match_number = len(self.pairings) + 1
        code = f'{self.code_prefix}{self.round_number}-M{match_number}'
        self.pairings.append(Pairing(slot1, slot2, self.round_number, match_number,
                                     code=code, bracket=self.bracket))
        return PendingWinnerOf(code), PendingLoserOf(code)


def play_round(slots: List[TeamSlot], builder: RoundBuilder) -> Tuple[List[TeamSlot], List[TeamSlot]]:
    """Pair adjacent slots; return the winner and loser slots in bracket order."""
    winners, losers = [], []
    for i in range(0, len(slots), 2):
        winner, loser = builder.play(slots[i], slots[i + 1])
        winners.append(winner)
        losers.append(loser)
    return winners, losers


def generate_single_elimination_pairings(team_ids: List[str], has_third_place_match: bool = False) -> List[List[Pairing]]:
    """
    Generate every round of a single elimination bracket.

    Round 1 holds the real first-round matches; teams with a bye are
    resolved directly into their round 2 slot. Later rounds are shells
    whose slots reference earlier matches. The third place match, when
    requested, needs two real semifinals and is emitted as its own round
    after the final.
    """
    validate_team_ids(team_ids)

    bracket_size = calculate_bracket_size(len(team_ids))
    slots = seed_slots(team_ids, bracket_size)
    rounds = []
    semifinals = []

    while len(slots) > 1:
        builder = RoundBuilder(len(rounds) + 1, WINNERS, 'R')
        is_semifinal = len(slots) == 4
        slots, _ = play_round(slots, builder)
        if is_semifinal:
            semifinals = builder.pairings
        if builder.pairings:
            rounds.append(builder.pairings)

    if has_third_place_match and len(semifinals) == 2:
        rounds.append([Pairing(
            PendingLoserOf(semifinals[0].code),
            PendingLoserOf(semifinals[1].code),
            len(rounds) + 1,
            1,
            code='3P',
            bracket=WINNERS,
        )])

    return rounds
