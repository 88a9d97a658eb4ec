"""
Bracket advancement: fill pending match slots from recorded results.
"""
import logging
from typing import Dict, List, Optional

from .models import COMPLETED, SCHEDULED, Bye, Match, PendingLoserOf, PendingWinnerOf, Resolved, TeamSlot

logger = logging.getLogger(__name__)


def slot_team(slot: Optional[TeamSlot], matches_by_code: Dict[str, Match]) -> Optional[str]:
    """Team currently occupying a slot, or None while it is still undecided."""
    if slot is None or isinstance(slot, Bye):
        return None
    if isinstance(slot, Resolved):
        return slot.team_id

    source = matches_by_code.get(slot.match_code)
    if source is None or source.status != COMPLETED:
        return None
    if isinstance(slot, PendingWinnerOf):
        return source.winner_id
    if isinstance(slot, PendingLoserOf):
        return source.loser_id
    raise TypeError(f'Unsupported team slot: {slot!r}')


def resolve_slots(matches: List[Match]) -> List[Match]:
    """
    Recompute team1_id/team2_id of every match from its slots.

    A match whose teams change loses any result it had, and the change is
    carried forward to the matches that depend on it. Returns the matches
    that were modified, in the order they were first touched.
    """
    matches_by_code = {m.code: m for m in matches if m.code}
    changed: List[Match] = []

    progress = True
    while progress:
        progress = False
        for match in matches:
            team1 = slot_team(match.slot1, matches_by_code)
            team2 = slot_team(match.slot2, matches_by_code)
            if (team1, team2) == (match.team1_id, match.team2_id):
                continue

            if match.status != SCHEDULED or match.team1_score is not None or match.team2_score is not None:
                logger.info('Clearing result of %s: teams changed from (%s, %s) to (%s, %s)',
                            match.code, match.team1_id, match.team2_id, team1, team2)
                match.clear_result()
            match.team1_id = team1
            match.team2_id = team2
            if match not in changed:
                changed.append(match)
            progress = True

    return changed
