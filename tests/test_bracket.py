"""
Unit tests for bracket slot resolution.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from atsume.bracket import resolve_slots, slot_team
from atsume.elimination import generate_single_elimination_pairings
from atsume.models import COMPLETED, SCHEDULED, Bye, Match, PendingLoserOf, PendingWinnerOf, Resolved


def _matches_from(rounds):
    return [
        Match(p.code, "t", p.round, p.match_number, code=p.code, bracket=p.bracket, slot1=p.slot1, slot2=p.slot2)
        for round_pairings in rounds for p in round_pairings
    ]


def _complete(match, winner):
    match.winner_id = winner
    match.team1_score, match.team2_score = (1, 0) if winner == match.team1_id else (0, 1)
    match.status = COMPLETED


@pytest.fixture
def bracket():
    """Four team bracket with a third place match, slots resolved."""
    matches = _matches_from(generate_single_elimination_pairings(["A", "B", "C", "D"], has_third_place_match=True))
    resolve_slots(matches)
    return {m.code: m for m in matches}, matches


class TestSlotTeam:
    """Tests for slot_team."""

    def test_resolved_and_bye(self):
        assert slot_team(Resolved("A"), {}) == "A"
        assert slot_team(Bye(), {}) is None
        assert slot_team(None, {}) is None

    def test_pending_needs_completed_source(self):
        source = Match("m", "t", 1, 1, code="R1-M1", team1_id="A", team2_id="B", winner_id="A")
        by_code = {"R1-M1": source}
        assert slot_team(PendingWinnerOf("R1-M1"), by_code) is None
        source.status = COMPLETED
        assert slot_team(PendingWinnerOf("R1-M1"), by_code) == "A"
        assert slot_team(PendingLoserOf("R1-M1"), by_code) == "B"

    def test_unknown_source(self):
        assert slot_team(PendingWinnerOf("nope"), {}) is None


class TestResolveSlots:
    """Tests for resolve_slots."""

    def test_initial_resolution(self, bracket):
        by_code, _ = bracket
        assert (by_code["R1-M1"].team1_id, by_code["R1-M1"].team2_id) == ("A", "D")
        assert by_code["R2-M1"].team1_id is None

    def test_results_advance_winners_and_losers(self, bracket):
        by_code, matches = bracket
        _complete(by_code["R1-M1"], "A")
        _complete(by_code["R1-M2"], "C")
        changed = resolve_slots(matches)
        assert {m.code for m in changed} == {"R2-M1", "3P"}
        assert (by_code["R2-M1"].team1_id, by_code["R2-M1"].team2_id) == ("A", "C")
        assert (by_code["3P"].team1_id, by_code["3P"].team2_id) == ("D", "B")

    def test_no_change_is_empty(self, bracket):
        _, matches = bracket
        assert resolve_slots(matches) == []

    def test_edited_result_clears_stale_dependents(self, bracket):
        """Changing a semifinal winner wipes the final that was played with the old team."""
        by_code, matches = bracket
        _complete(by_code["R1-M1"], "A")
        _complete(by_code["R1-M2"], "C")
        resolve_slots(matches)
        _complete(by_code["R2-M1"], "A")

        _complete(by_code["R1-M1"], "D")
        changed = resolve_slots(matches)

        final = by_code["R2-M1"]
        assert final in changed
        assert (final.team1_id, final.team2_id) == ("D", "C")
        assert final.status == SCHEDULED
        assert final.winner_id is None
        assert by_code["3P"].team1_id == "A"
