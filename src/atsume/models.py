"""
Data models for teams, participants, tournaments, matches and standings.

Records are plain classes that round-trip through dicts so the data store
can keep them as YAML mappings.
"""
from typing import Any, Dict, List, Optional

ROUND_ROBIN = 'round_robin'
SINGLE_ELIMINATION = 'single_elimination'
DOUBLE_ELIMINATION = 'double_elimination'
SWISS = 'swiss'
GROUP_STAGE = 'group_stage'

FORMATS = (ROUND_ROBIN, SINGLE_ELIMINATION, DOUBLE_ELIMINATION, SWISS, GROUP_STAGE)

# Formats in which an equal score is a legitimate result
DRAW_FORMATS = (ROUND_ROBIN, GROUP_STAGE, SWISS)

SCHEDULED = 'scheduled'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'

WINNERS = 'winners'
LOSERS = 'losers'
FINALS = 'finals'


class TeamSlot:
    """One side of a match: a known team, a bye, or a reference to another match."""

    kind = None

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind}

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional['TeamSlot']:
        if data is None:
            return None
        kind = data.get('kind')
        if kind == Resolved.kind:
            return Resolved(data['team_id'])
        if kind == Bye.kind:
            return Bye()
        if kind == PendingWinnerOf.kind:
            return PendingWinnerOf(data['match_code'])
        if kind == PendingLoserOf.kind:
            return PendingLoserOf(data['match_code'])
        raise ValueError(f"Unknown team slot kind: {kind!r}")

    def __eq__(self, other):
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(sorted(self.to_dict().items())))


class Resolved(TeamSlot):
    kind = 'team'

    def __init__(self, team_id: str):
        self.team_id = team_id

    def to_dict(self):
        return {'kind': self.kind, 'team_id': self.team_id}

    def __repr__(self):
        return f"Resolved({self.team_id!r})"


class Bye(TeamSlot):
    kind = 'bye'

    def __repr__(self):
        return "Bye()"


class PendingWinnerOf(TeamSlot):
    kind = 'winner_of'

    def __init__(self, match_code: str):
        self.match_code = match_code

    def to_dict(self):
        return {'kind': self.kind, 'match_code': self.match_code}

    def __repr__(self):
        return f"PendingWinnerOf({self.match_code!r})"


class PendingLoserOf(TeamSlot):
    kind = 'loser_of'

    def __init__(self, match_code: str):
        self.match_code = match_code

    def to_dict(self):
        return {'kind': self.kind, 'match_code': self.match_code}

    def __repr__(self):
        return f"PendingLoserOf({self.match_code!r})"


class Team:
    def __init__(self, id: str, event_id: str, name: str, color: Optional[str] = None, order: int = 0):
        self.id = id
        self.event_id = event_id
        self.name = name
        self.color = color
        self.order = order

    def to_dict(self):
        return {'id': self.id, 'event_id': self.event_id, 'name': self.name,
                'color': self.color, 'order': self.order}

    @classmethod
    def from_dict(cls, data):
        return cls(data['id'], data['event_id'], data['name'], data.get('color'), data.get('order', 0))

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, order={self.order})"


class Participant:
    """Event participant as read from the externally owned participants collection."""

    def __init__(self, id: str, display_name: Optional[str] = None, skill_level: Optional[int] = None,
                 gender: Optional[str] = None, attendance_status: Optional[str] = None,
                 check_in_status: Optional[str] = None):
        self.id = id
        self.display_name = display_name
        self.skill_level = skill_level
        self.gender = gender
        self.attendance_status = attendance_status
        self.check_in_status = check_in_status

    def to_dict(self):
        return {
            'id': self.id,
            'display_name': self.display_name,
            'skill_level': self.skill_level,
            'gender': self.gender,
            'attendance_status': self.attendance_status,
            'check_in_status': self.check_in_status,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['id'],
            display_name=data.get('display_name'),
            skill_level=data.get('skill_level'),
            gender=data.get('gender'),
            attendance_status=data.get('attendance_status'),
            check_in_status=data.get('check_in_status'),
        )

    def __repr__(self):
        return f"Participant(id={self.id}, skill_level={self.skill_level})"


class TournamentSettings:
    """Scoring weights and format switches. Unknown keys are carried along untouched."""

    def __init__(self, win_points: int = 3, draw_points: int = 1, loss_points: int = 0,
                 has_third_place_match: bool = False, swiss_rounds: Optional[int] = None,
                 enable_standings: bool = True, groups: int = 2,
                 competition_type: str = 'team', extra: Optional[Dict[str, Any]] = None):
        self.win_points = win_points
        self.draw_points = draw_points
        self.loss_points = loss_points
        self.has_third_place_match = has_third_place_match
        self.swiss_rounds = swiss_rounds
        self.enable_standings = enable_standings
        self.groups = groups
        self.competition_type = competition_type
        self.extra = extra if extra else {}

    _FIELDS = ('win_points', 'draw_points', 'loss_points', 'has_third_place_match',
               'swiss_rounds', 'enable_standings', 'groups', 'competition_type')

    def to_dict(self):
        data = dict(self.extra)
        for field in self._FIELDS:
            data[field] = getattr(self, field)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = dict(data or {})
        known = {field: data.pop(field) for field in cls._FIELDS if field in data}
        return cls(extra=data, **known)

    def __repr__(self):
        return (f"TournamentSettings(win_points={self.win_points}, draw_points={self.draw_points}, "
                f"swiss_rounds={self.swiss_rounds}, enable_standings={self.enable_standings})")


class Tournament:
    def __init__(self, id: str, event_id: str, format: str, concurrent_matches: int = 1,
                 settings: Optional[TournamentSettings] = None, team_ids: Optional[List[str]] = None,
                 created_at: Optional[str] = None):
        self.id = id
        self.event_id = event_id
        self.format = format
        self.concurrent_matches = concurrent_matches
        self.settings = settings if settings else TournamentSettings()
        self.team_ids = list(team_ids) if team_ids else []
        self.created_at = created_at

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'format': self.format,
            'concurrent_matches': self.concurrent_matches,
            'settings': self.settings.to_dict(),
            'team_ids': list(self.team_ids),
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['id'],
            data['event_id'],
            data['format'],
            data.get('concurrent_matches', 1),
            TournamentSettings.from_dict(data.get('settings')),
            data.get('team_ids'),
            data.get('created_at'),
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, event_id={self.event_id}, format={self.format})"


class Match:
    def __init__(self, id: str, tournament_id: str, round: int, match_number: int,
                 code: Optional[str] = None, bracket: Optional[str] = None,
                 group_name: Optional[str] = None, court: Optional[int] = None,
                 slot1: Optional[TeamSlot] = None, slot2: Optional[TeamSlot] = None,
                 team1_id: Optional[str] = None, team2_id: Optional[str] = None,
                 team1_score: Optional[int] = None, team2_score: Optional[int] = None,
                 winner_id: Optional[str] = None, status: str = SCHEDULED,
                 scheduled_time: Optional[str] = None):
        self.id = id
        self.tournament_id = tournament_id
        self.round = round
        self.match_number = match_number
        self.code = code
        self.bracket = bracket
        self.group_name = group_name
        self.court = court
        self.slot1 = slot1
        self.slot2 = slot2
        self.team1_id = team1_id
        self.team2_id = team2_id
        self.team1_score = team1_score
        self.team2_score = team2_score
        self.winner_id = winner_id
        self.status = status
        self.scheduled_time = scheduled_time

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner_id is None:
            return None
        return self.team2_id if self.winner_id == self.team1_id else self.team1_id

    def clear_result(self):
        self.team1_score = None
        self.team2_score = None
        self.winner_id = None
        self.status = SCHEDULED

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'round': self.round,
            'match_number': self.match_number,
            'code': self.code,
            'bracket': self.bracket,
            'group_name': self.group_name,
            'court': self.court,
            'slot1': self.slot1.to_dict() if self.slot1 else None,
            'slot2': self.slot2.to_dict() if self.slot2 else None,
            'team1_id': self.team1_id,
            'team2_id': self.team2_id,
            'team1_score': self.team1_score,
            'team2_score': self.team2_score,
            'winner_id': self.winner_id,
            'status': self.status,
            'scheduled_time': self.scheduled_time,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['id'],
            data['tournament_id'],
            data['round'],
            data['match_number'],
            code=data.get('code'),
            bracket=data.get('bracket'),
            group_name=data.get('group_name'),
            court=data.get('court'),
            slot1=TeamSlot.from_dict(data.get('slot1')),
            slot2=TeamSlot.from_dict(data.get('slot2')),
            team1_id=data.get('team1_id'),
            team2_id=data.get('team2_id'),
            team1_score=data.get('team1_score'),
            team2_score=data.get('team2_score'),
            winner_id=data.get('winner_id'),
            status=data.get('status', SCHEDULED),
            scheduled_time=data.get('scheduled_time'),
        )

    def __repr__(self):
        return (f"Match(code={self.code}, round={self.round}, match_number={self.match_number}, "
                f"teams=({self.team1_id}, {self.team2_id}), status={self.status})")


class Standing:
    def __init__(self, team_id: str, played: int = 0, won: int = 0, drawn: int = 0, lost: int = 0,
                 goals_for: int = 0, goals_against: int = 0, points: int = 0, rank: int = 0,
                 tournament_id: Optional[str] = None, group_name: Optional[str] = None,
                 id: Optional[str] = None):
        self.id = id
        self.tournament_id = tournament_id
        self.group_name = group_name
        self.team_id = team_id
        self.played = played
        self.won = won
        self.drawn = drawn
        self.lost = lost
        self.goals_for = goals_for
        self.goals_against = goals_against
        self.points = points
        self.rank = rank

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'group_name': self.group_name,
            'team_id': self.team_id,
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
            'rank': self.rank,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['team_id'],
            played=data.get('played', 0),
            won=data.get('won', 0),
            drawn=data.get('drawn', 0),
            lost=data.get('lost', 0),
            goals_for=data.get('goals_for', 0),
            goals_against=data.get('goals_against', 0),
            points=data.get('points', 0),
            rank=data.get('rank', 0),
            tournament_id=data.get('tournament_id'),
            group_name=data.get('group_name'),
            id=data.get('id'),
        )

    def __eq__(self, other):
        return isinstance(other, Standing) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Standing(team_id={self.team_id}, rank={self.rank}, points={self.points}, "
                f"goal_difference={self.goal_difference})")


class Pairing:
    """A generated match before it is persisted: two slots plus its place in the bracket."""

    def __init__(self, slot1: TeamSlot, slot2: TeamSlot, round: int, match_number: int,
                 code: Optional[str] = None, bracket: Optional[str] = None,
                 group_name: Optional[str] = None):
        self.slot1 = slot1
        self.slot2 = slot2
        self.round = round
        self.match_number = match_number
        self.code = code
        self.bracket = bracket
        self.group_name = group_name

    @property
    def teams(self):
        """Resolved team ids, None for a side that is still pending."""
        return (_slot_team(self.slot1), _slot_team(self.slot2))

    def __repr__(self):
        return f"Pairing(code={self.code}, slots=({self.slot1!r}, {self.slot2!r}))"


def _slot_team(slot: Optional[TeamSlot]) -> Optional[str]:
    return slot.team_id if isinstance(slot, Resolved) else None
