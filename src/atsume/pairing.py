"""
Format dispatch for pairing generation.

generate_pairings() is the single entry point used by the lifecycle
controller, the HTTP API and the command line tool. It has no side effects.
"""
import random
import string
from typing import Dict, List, Optional

from .double_elimination import generate_double_elimination_pairings
from .elimination import generate_single_elimination_pairings
from .exceptions import ValidationError
from .models import (
    DOUBLE_ELIMINATION,
    FORMATS,
    GROUP_STAGE,
    ROUND_ROBIN,
    SINGLE_ELIMINATION,
    SWISS,
    Pairing,
)
from .round_robin import generate_round_robin_pairings, validate_team_ids
from .swiss import generate_swiss_first_round, validate_swiss_rounds


def group_name(index: int) -> str:
    """Group A, Group B, ... then Group 27 onwards."""
    if index < len(string.ascii_uppercase):
        return f'Group {string.ascii_uppercase[index]}'
    return f'Group {index + 1}'


def split_into_groups(team_ids: List[str], group_count: int) -> Dict[str, List[str]]:
    """Deal teams into groups by index, keeping input order inside each group."""
    if isinstance(group_count, bool) or not isinstance(group_count, int) or group_count < 1:
        raise ValidationError(f'groups must be a positive integer, got {group_count!r}')
    if len(team_ids) < 2 * group_count:
        raise ValidationError(
            f'{len(team_ids)} teams cannot fill {group_count} groups of at least 2 teams'
        )
    groups = {group_name(index): [] for index in range(group_count)}
    names = list(groups)
    for index, team_id in enumerate(team_ids):
        groups[names[index % group_count]].append(team_id)
    return groups


def generate_group_stage_pairings(team_ids: List[str], group_count: int) -> List[List[Pairing]]:
    """Round robin inside every group; rounds with the same number are merged."""
    validate_team_ids(team_ids)
    merged: List[List[Pairing]] = []
    for name, members in split_into_groups(team_ids, group_count).items():
        for round_index, round_pairings in enumerate(generate_round_robin_pairings(members, group_name=name)):
            if round_index == len(merged):
                merged.append([])
            merged[round_index].extend(round_pairings)
    return merged


def generate_pairings(format: str, team_ids: List[str], config: Optional[dict] = None,
                      rng: Optional[random.Random] = None) -> List[List[Pairing]]:
    """
    Generate the rounds for a tournament format.

    config carries the format specific settings: has_third_place_match for
    single elimination, swiss_rounds for Swiss, groups for the group stage.
    Swiss only produces round 1 here; later rounds come from
    swiss.generate_swiss_round once results are in.
    """
    config = config or {}
    if format not in FORMATS:
        raise ValidationError(f'Unknown tournament format: {format!r}')
    validate_team_ids(team_ids)

    if format == ROUND_ROBIN:
        return generate_round_robin_pairings(team_ids)
    if format == SINGLE_ELIMINATION:
        return generate_single_elimination_pairings(team_ids, bool(config.get('has_third_place_match', False)))
    if format == DOUBLE_ELIMINATION:
        return generate_double_elimination_pairings(team_ids, rng=rng)
    if format == SWISS:
        validate_swiss_rounds(config.get('swiss_rounds'), len(team_ids))
        return [generate_swiss_first_round(team_ids, rng=rng)]
    return generate_group_stage_pairings(team_ids, config.get('groups', 2))
