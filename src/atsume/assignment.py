"""
Team assignment: split a participant list into a fixed number of teams.

Random mode shuffles and deals. Balanced mode sorts by skill (and any
extra balance keys) and distributes with a snake draft so the strongest
participants end up on different teams.
"""
import random
import string
from typing import Dict, List, Optional, Sequence

from .exceptions import ValidationError
from .models import Participant

DEFAULT_SKILL_LEVEL = 3

RANDOM = 'random'
BALANCED = 'balanced'

ATTENDING = 'attending'
CHECKED_IN = 'checked_in'

BALANCE_KEYS = ('skill_level', 'gender')


def team_name(index: int) -> str:
    """Team A .. Team Z, then Team 27 onwards."""
    if index < len(string.ascii_uppercase):
        return f'Team {string.ascii_uppercase[index]}'
    return f'Team {index + 1}'


def skill_of(participant: Participant) -> int:
    return participant.skill_level if participant.skill_level is not None else DEFAULT_SKILL_LEVEL


def select_participants(participants: List[Participant], target: str = ATTENDING) -> List[Participant]:
    """Keep the participants an assignment should use: those attending, or those checked in."""
    if target == CHECKED_IN:
        selected = [p for p in participants if p.check_in_status == CHECKED_IN]
        if not selected:
            raise ValidationError('No participants have checked in')
    elif target == ATTENDING:
        selected = [p for p in participants if p.attendance_status == ATTENDING]
        if not selected:
            raise ValidationError('No participants are attending')
    else:
        raise ValidationError(f'Unknown participant target: {target!r}')
    return selected


def shuffle(items: Sequence, rng: Optional[random.Random] = None) -> list:
    """Fisher-Yates shuffle returning a new list."""
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def snake_draft(ordered: List[Participant], team_count: int) -> Dict[int, List[Participant]]:
    """Deal in order 0, 1, .., k-1, k-1, .., 1, 0, 0, 1, .. so picks bounce between the ends."""
    teams = {index: [] for index in range(team_count)}
    direction = 1
    current = 0
    for participant in ordered:
        teams[current].append(participant)
        current += direction
        if current >= team_count:
            current = team_count - 1
            direction = -1
        elif current < 0:
            current = 0
            direction = 1
    return teams


def balance_order(participants: List[Participant], balance_keys: Sequence[str]) -> List[Participant]:
    """
    Order participants for the snake draft.

    Skill is always the innermost key, descending. Each extra key groups
    participants ahead of skill, so every group is spread across the teams.
    Python's sort is stable, so participants equal on every key keep
    their input order.
    """
    for key in balance_keys:
        if key not in BALANCE_KEYS:
            raise ValidationError(f'Unknown balance key: {key!r}')

    ordered = sorted(participants, key=lambda p: -skill_of(p))
    for key in reversed([k for k in balance_keys if k != 'skill_level']):
        ordered = sorted(ordered, key=lambda p: (getattr(p, key) is None, str(getattr(p, key) or '')))
    return ordered


def assign_teams(participants: List[Participant], team_count: int, mode: str = RANDOM,
                 balance_keys: Optional[Sequence[str]] = None,
                 rng: Optional[random.Random] = None) -> Dict[int, List[Participant]]:
    """
    Partition participants into exactly team_count teams keyed 0..team_count-1.

    Raises ValidationError if there are fewer participants than teams.
    """
    if isinstance(team_count, bool) or not isinstance(team_count, int) or team_count < 1:
        raise ValidationError(f'team_count must be a positive integer, got {team_count!r}')
    if team_count > len(participants):
        raise ValidationError(
            f'Fewer participants than teams requested ({len(participants)} < {team_count})'
        )

    if mode == RANDOM:
        teams = {index: [] for index in range(team_count)}
        for index, participant in enumerate(shuffle(participants, rng)):
            teams[index % team_count].append(participant)
        return teams
    if mode == BALANCED:
        return snake_draft(balance_order(participants, balance_keys or ('skill_level',)), team_count)
    raise ValidationError(f'Unknown assignment mode: {mode!r}')
