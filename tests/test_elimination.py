"""
Unit tests for single elimination bracket generation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from atsume.elimination import (
    RoundBuilder,
    _generate_bracket_order,
    calculate_bracket_size,
    generate_single_elimination_pairings,
    seed_slots,
)
from atsume.exceptions import ValidationError
from atsume.models import WINNERS, Bye, PendingLoserOf, PendingWinnerOf, Resolved


def _teams(n):
    return [f"T{i}" for i in range(1, n + 1)]


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_calculate_bracket_size(self):
        assert calculate_bracket_size(2) == 2
        assert calculate_bracket_size(3) == 4
        assert calculate_bracket_size(5) == 8
        assert calculate_bracket_size(8) == 8
        assert calculate_bracket_size(9) == 16
        assert calculate_bracket_size(0) == 0

    def test_bracket_order(self):
        """Standard order keeps the top seeds apart until the late rounds."""
        assert _generate_bracket_order(2) == [1, 2]
        assert _generate_bracket_order(4) == [1, 4, 2, 3]
        assert _generate_bracket_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

    def test_seed_slots_byes_face_top_seeds(self):
        slots = seed_slots(["A", "B", "C"], 4)
        assert slots == [Resolved("A"), Bye(), Resolved("B"), Resolved("C")]


class TestRoundBuilder:
    """Tests for the bye collapse in RoundBuilder."""

    def test_bye_passes_team_through(self):
        builder = RoundBuilder(1, WINNERS, "R")
        winner, loser = builder.play(Resolved("A"), Bye())
        assert winner == Resolved("A")
        assert loser == Bye()
        assert builder.pairings == []

    def test_real_pairing_emits_match(self):
        builder = RoundBuilder(3, WINNERS, "R")
        winner, loser = builder.play(Resolved("A"), Resolved("B"))
        assert winner == PendingWinnerOf("R3-M1")
        assert loser == PendingLoserOf("R3-M1")
        assert builder.pairings[0].code == "R3-M1"


class TestSingleElimination:
    """Tests for generate_single_elimination_pairings."""

    def test_four_teams(self):
        rounds = generate_single_elimination_pairings(_teams(4))
        assert len(rounds) == 2
        assert [p.teams for p in rounds[0]] == [("T1", "T4"), ("T2", "T3")]
        final = rounds[1][0]
        assert final.slot1 == PendingWinnerOf("R1-M1")
        assert final.slot2 == PendingWinnerOf("R1-M2")

    def test_five_teams_bye_propagation(self):
        """Teams with a bye get no round 1 match and appear resolved in round 2."""
        rounds = generate_single_elimination_pairings(_teams(5))
        assert len(rounds[0]) == 1
        assert rounds[0][0].teams == ("T4", "T5")

        round2 = rounds[1]
        assert round2[0].slot1 == Resolved("T1")
        assert round2[0].slot2 == PendingWinnerOf("R1-M1")
        assert round2[1].teams == ("T2", "T3")
        assert rounds[2][0].code == "R3-M1"

    @pytest.mark.parametrize("n", range(2, 18))
    def test_structure(self, n):
        """n - 1 matches, no bye slots and every team seeded exactly once."""
        rounds = generate_single_elimination_pairings(_teams(n))
        pairings = [p for round_pairings in rounds for p in round_pairings]
        assert len(pairings) == n - 1

        resolved = []
        for pairing in pairings:
            for slot in (pairing.slot1, pairing.slot2):
                assert not isinstance(slot, Bye)
                if isinstance(slot, Resolved):
                    resolved.append(slot.team_id)
        assert sorted(resolved) == sorted(_teams(n))

    @pytest.mark.parametrize("n", range(2, 18))
    def test_references_point_backwards(self, n):
        """Pending slots only reference matches generated earlier."""
        seen = set()
        for round_pairings in generate_single_elimination_pairings(_teams(n)):
            for pairing in round_pairings:
                for slot in (pairing.slot1, pairing.slot2):
                    if isinstance(slot, (PendingWinnerOf, PendingLoserOf)):
                        assert slot.match_code in seen
            seen.update(p.code for p in round_pairings)

    def test_third_place_match(self):
        rounds = generate_single_elimination_pairings(_teams(4), has_third_place_match=True)
        assert len(rounds) == 3
        third = rounds[2][0]
        assert third.code == "3P"
        assert third.round == 3
        assert third.slot1 == PendingLoserOf("R1-M1")
        assert third.slot2 == PendingLoserOf("R1-M2")

    def test_third_place_needs_two_semifinals(self):
        """Three teams have only one real semifinal, so no third place match."""
        rounds = generate_single_elimination_pairings(_teams(3), has_third_place_match=True)
        assert all(p.code != "3P" for round_pairings in rounds for p in round_pairings)

    def test_two_teams(self):
        rounds = generate_single_elimination_pairings(["A", "B"], has_third_place_match=True)
        assert len(rounds) == 1
        assert rounds[0][0].teams == ("A", "B")

    def test_validation(self):
        with pytest.raises(ValidationError):
            generate_single_elimination_pairings(["A"])
