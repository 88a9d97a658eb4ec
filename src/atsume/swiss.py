"""
Swiss system pairing.

Round 1 is a random draw. Every later round pairs teams with the nearest
ranked opponent they have not met yet.
"""
import logging
import random
from typing import Iterable, List, Optional, Set, Tuple, FrozenSet

from .exceptions import PairingError, ValidationError
from .models import Pairing, Resolved
from .round_robin import validate_team_ids

logger = logging.getLogger(__name__)


def validate_swiss_rounds(swiss_rounds, team_count: int) -> int:
    """Check the configured round count for a Swiss tournament."""
    if swiss_rounds is None:
        raise ValidationError('swiss_rounds is required for a Swiss tournament')
    if isinstance(swiss_rounds, bool) or not isinstance(swiss_rounds, int) or swiss_rounds < 1:
        raise ValidationError(f'swiss_rounds must be a positive integer, got {swiss_rounds!r}')
    # Teams run out of new opponents after n - 1 rounds
    max_rounds = team_count - 1 if team_count % 2 == 0 else team_count
    if swiss_rounds > max_rounds:
        raise ValidationError(f'{team_count} teams can play at most {max_rounds} Swiss rounds')
    return swiss_rounds


def _to_pairings(pairs: List[Tuple[str, str]], round_number: int) -> List[Pairing]:
    return [
        Pairing(Resolved(a), Resolved(b), round_number, index + 1, code=f'S{round_number}-M{index + 1}')
        for index, (a, b) in enumerate(pairs)
    ]


def generate_swiss_first_round(team_ids: List[str], rng: Optional[random.Random] = None) -> List[Pairing]:
    """Shuffle the teams and pair them off in order. An odd team out sits the round out."""
    validate_team_ids(team_ids)
    rng = rng or random.Random()

    shuffled = list(team_ids)
    rng.shuffle(shuffled)
    pairs = [(shuffled[i], shuffled[i + 1]) for i in range(0, len(shuffled) - 1, 2)]
    return _to_pairings(pairs, 1)


def _pair_key(a: str, b: str) -> FrozenSet[str]:
    return frozenset((a, b))


def _pair_remaining(remaining: List[str], played: Set[FrozenSet[str]]) -> Optional[List[Tuple[str, str]]]:
    """
    Pair the top remaining team with the closest ranked legal opponent, recursing on the rest.

    Falls back to the next candidate when the rest cannot be completed.
    """
    if not remaining:
        return []
    top = remaining[0]
    for index in range(1, len(remaining)):
        opponent = remaining[index]
        if _pair_key(top, opponent) in played:
            continue
        rest = remaining[1:index] + remaining[index + 1:]
        paired = _pair_remaining(rest, played)
        if paired is not None:
            return [(top, opponent)] + paired
    return None


def generate_swiss_round(ranked_team_ids: List[str], played_pairs: Iterable[Tuple[str, str]],
                         round_number: int, previous_byes: Iterable[str] = ()) -> List[Pairing]:
    """
    Pair the next Swiss round from the current ranking.

    ranked_team_ids is best first. With an odd count the lowest ranked team
    that has not had a bye yet sits out. Raises PairingError when no pairing
    without a rematch exists.
    """
    validate_team_ids(ranked_team_ids)
    played = {_pair_key(a, b) for a, b in played_pairs}
    previous_byes = set(previous_byes)

    candidates = list(ranked_team_ids)
    bye_options = [None]
    if len(candidates) % 2 == 1:
        bye_options = [team for team in reversed(candidates) if team not in previous_byes]
        if not bye_options:
            bye_options = list(reversed(candidates))

    for bye_team in bye_options:
        remaining = [team for team in candidates if team != bye_team]
        pairs = _pair_remaining(remaining, played)
        if pairs is not None:
            if bye_team is not None:
                logger.debug('Swiss round %d: %s sits out', round_number, bye_team)
            return _to_pairings(pairs, round_number)

    raise PairingError(f'No Swiss pairing without rematches exists for round {round_number}')
