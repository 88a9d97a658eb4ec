"""
Unit tests for team assignment.
"""
import pytest
import random
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from atsume.assignment import (
    BALANCED,
    CHECKED_IN,
    RANDOM,
    assign_teams,
    balance_order,
    select_participants,
    shuffle,
    skill_of,
    snake_draft,
    team_name,
)
from atsume.exceptions import ValidationError
from atsume.models import Participant


def _ids(team):
    return [p.id for p in team]


class TestHelpers:
    """Tests for naming, skill defaults and participant selection."""

    def test_team_name(self):
        assert team_name(0) == "Team A"
        assert team_name(25) == "Team Z"
        assert team_name(26) == "Team 27"

    def test_skill_default(self):
        assert skill_of(Participant("p")) == 3
        assert skill_of(Participant("p", skill_level=5)) == 5

    def test_select_attending(self, participants):
        participants[0].attendance_status = "declined"
        selected = select_participants(participants)
        assert "p0" not in _ids(selected)
        assert len(selected) == 7

    def test_select_checked_in(self, participants):
        participants[2].check_in_status = "checked_in"
        assert _ids(select_participants(participants, CHECKED_IN)) == ["p2"]

    def test_select_empty_is_error(self, participants):
        with pytest.raises(ValidationError):
            select_participants(participants, CHECKED_IN)

    def test_select_unknown_target(self, participants):
        with pytest.raises(ValidationError):
            select_participants(participants, "everyone")

    def test_shuffle_keeps_items(self):
        items = list(range(20))
        shuffled = shuffle(items, random.Random(3))
        assert sorted(shuffled) == items
        assert items == list(range(20))


class TestSnakeDraft:
    """Tests for the snake draft order."""

    def test_bounce_order(self):
        ordered = [Participant(f"p{i}") for i in range(8)]
        teams = snake_draft(ordered, 3)
        assert _ids(teams[0]) == ["p0", "p5", "p6"]
        assert _ids(teams[1]) == ["p1", "p4", "p7"]
        assert _ids(teams[2]) == ["p2", "p3"]

    def test_single_team(self):
        ordered = [Participant(f"p{i}") for i in range(3)]
        assert _ids(snake_draft(ordered, 1)[0]) == ["p0", "p1", "p2"]


class TestAssignTeams:
    """Tests for assign_teams."""

    def test_random_sizes(self, participants):
        teams = assign_teams(participants, 3, RANDOM, rng=random.Random(9))
        sizes = sorted(len(team) for team in teams.values())
        assert sizes == [2, 3, 3]
        assigned = sorted(p.id for team in teams.values() for p in team)
        assert assigned == sorted(p.id for p in participants)

    def test_random_is_seeded(self, participants):
        first = assign_teams(participants, 2, RANDOM, rng=random.Random(9))
        second = assign_teams(participants, 2, RANDOM, rng=random.Random(9))
        assert {k: _ids(v) for k, v in first.items()} == {k: _ids(v) for k, v in second.items()}

    def test_balanced_spreads_top_skills(self, participants):
        """The k strongest participants land on k different teams."""
        teams = assign_teams(participants, 2, BALANCED)
        top = {"p0", "p1"}
        for team in teams.values():
            assert len(top & set(_ids(team))) == 1

    def test_balanced_sums_are_close(self, participants):
        teams = assign_teams(participants, 2, BALANCED)
        sums = [sum(skill_of(p) for p in team) for team in teams.values()]
        assert max(sums) - min(sums) <= 2

    def test_balance_by_gender(self, participants):
        """Each gender is spread evenly across the teams."""
        teams = assign_teams(participants, 2, BALANCED, balance_keys=("skill_level", "gender"))
        for team in teams.values():
            genders = [p.gender for p in team]
            assert genders.count("F") == 2
            assert genders.count("M") == 2

    def test_balance_order_is_stable(self):
        people = [Participant("a", skill_level=3), Participant("b", skill_level=3), Participant("c", skill_level=4)]
        assert _ids(balance_order(people, ("skill_level",))) == ["c", "a", "b"]

    def test_unknown_balance_key(self, participants):
        with pytest.raises(ValidationError):
            assign_teams(participants, 2, BALANCED, balance_keys=("height",))

    def test_fewer_participants_than_teams(self, participants):
        with pytest.raises(ValidationError, match="Fewer participants than teams"):
            assign_teams(participants[:2], 3)

    def test_invalid_team_count(self, participants):
        with pytest.raises(ValidationError):
            assign_teams(participants, 0)
        with pytest.raises(ValidationError):
            assign_teams(participants, None)

    def test_unknown_mode(self, participants):
        with pytest.raises(ValidationError):
            assign_teams(participants, 2, "alphabetical")
