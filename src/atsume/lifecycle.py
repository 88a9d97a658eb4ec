"""
Tournament lifecycle: creation, score recording, standings and teardown.

The controller owns every write to the data store. Each operation runs in a
single store transaction, so a failure part way through leaves the store as
it was before the call. Creation and deletion additionally hold a per-event
lock so two organizers regenerating the same event cannot interleave.
"""
import logging
import random
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

from . import config
from .assignment import ATTENDING, assign_teams, select_participants, team_name
from .bracket import resolve_slots
from .exceptions import NotFoundError, TournamentStateError, ValidationError
from .models import (
    COMPLETED,
    DRAW_FORMATS,
    FINALS,
    GROUP_STAGE,
    IN_PROGRESS,
    LOSERS,
    ROUND_ROBIN,
    SCHEDULED,
    SWISS,
    WINNERS,
    Match,
    Pairing,
    Participant,
    Standing,
    Team,
    Tournament,
    TournamentSettings,
)
from .pairing import generate_pairings
from .round_robin import assign_courts
from .standings import compute_standings, ranked_team_ids, scoring_weights
from .swiss import generate_swiss_round

logger = logging.getLogger(__name__)

COURT_FORMATS = (ROUND_ROBIN, GROUP_STAGE)

TEAM_FIELDS = ('name', 'color', 'order')

_BRACKET_ORDER = {None: 0, WINNERS: 0, LOSERS: 1, FINALS: 2}


def _match_sort_key(match: Match):
    return (_BRACKET_ORDER.get(match.bracket, 0), match.round, match.match_number)


def _validate_score(score) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError(f'Scores must be integers, got {score!r}')
    if score < 0:
        raise ValidationError(f'Scores cannot be negative, got {score}')
    return score


class TournamentController:
    def __init__(self, store, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    # -- reads ---------------------------------------------------------------

    def get_tournament(self, event_id: str) -> Optional[Tournament]:
        """Most recent tournament of an event, or None."""
        rows = self.store.select('tournaments', order_by=['created_at'], event_id=event_id)
        return Tournament.from_dict(rows[-1]) if rows else None

    def get_tournament_by_id(self, tournament_id: str) -> Tournament:
        row = self.store.get('tournaments', tournament_id)
        if row is None:
            raise NotFoundError(f'Tournament {tournament_id} not found')
        return Tournament.from_dict(row)

    def list_matches(self, tournament_id: str) -> List[Match]:
        matches = [Match.from_dict(row) for row in self.store.select('matches', tournament_id=tournament_id)]
        return sorted(matches, key=_match_sort_key)

    def get_match(self, match_id: str) -> Match:
        row = self.store.get('matches', match_id)
        if row is None:
            raise NotFoundError(f'Match {match_id} not found')
        return Match.from_dict(row)

    def list_standings(self, tournament_id: str) -> List[Standing]:
        rows = self.store.select('standings', tournament_id=tournament_id)
        return [Standing.from_dict(row) for row in rows]

    # -- tournaments ---------------------------------------------------------

    def create_tournament(self, event_id: str, format: str, concurrent_matches: int,
                          settings: Union[TournamentSettings, dict, None], team_ids: List[str]) -> Tournament:
        """
        Replace the event's tournament with a new one and generate its matches.

        Any existing tournament of the event is torn down first, together
        with its matches and standings. Pairings are generated before the
        store is touched, so invalid input never destroys the old tournament.
        """
        if isinstance(concurrent_matches, bool) or not isinstance(concurrent_matches, int) or concurrent_matches < 1:
            raise ValidationError(f'concurrent_matches must be a positive integer, got {concurrent_matches!r}')
        if not isinstance(settings, TournamentSettings):
            settings = TournamentSettings.from_dict(settings)

        rounds = generate_pairings(format, list(team_ids), settings.to_dict(), rng=self.rng)

        with self.store.event_lock(event_id):
            with self.store.transaction():
                for existing in self.store.select('tournaments', event_id=event_id):
                    logger.info('Replacing tournament %s of event %s', existing['id'], event_id)
                    self._delete_tournament_rows(existing['id'])

                tournament = Tournament(
                    str(uuid.uuid4()),
                    event_id,
                    format,
                    concurrent_matches,
                    settings,
                    list(team_ids),
                    created_at=datetime.now().isoformat(),
                )
                self.store.insert('tournaments', [tournament.to_dict()])
                matches = self._build_matches(tournament, rounds)
                self.store.insert('matches', [match.to_dict() for match in matches])

        logger.info('Created %s tournament %s for event %s: %d teams, %d matches',
                    format, tournament.id, event_id, len(team_ids), len(matches))
        return tournament

    def delete_tournament(self, tournament_id: str):
        """Delete matches, then standings, then the tournament itself."""
        tournament = self.get_tournament_by_id(tournament_id)
        with self.store.event_lock(tournament.event_id):
            with self.store.transaction():
                self._delete_tournament_rows(tournament_id)
        logger.info('Deleted tournament %s of event %s', tournament_id, tournament.event_id)

    def _delete_tournament_rows(self, tournament_id: str):
        self.store.delete('matches', tournament_id=tournament_id)
        self.store.delete('standings', tournament_id=tournament_id)
        self.store.delete('tournaments', id=tournament_id)

    def _build_matches(self, tournament: Tournament, rounds: List[List[Pairing]]) -> List[Match]:
        matches = []
        for round_pairings in rounds:
            for match_number, pairing in enumerate(round_pairings, 1):
                matches.append(Match(
                    str(uuid.uuid4()),
                    tournament.id,
                    pairing.round,
                    match_number,
                    code=pairing.code,
                    bracket=pairing.bracket,
                    group_name=pairing.group_name,
                    slot1=pairing.slot1,
                    slot2=pairing.slot2,
                ))

        if tournament.format in COURT_FORMATS:
            courts = assign_courts(len(matches), tournament.concurrent_matches)
            for match, court in zip(matches, courts):
                match.court = court

        resolve_slots(matches)
        return matches

    # -- matches -------------------------------------------------------------

    def record_match_score(self, match_id: str, score1: int, score2: int) -> Match:
        """
        Store a result, derive the winner and update everything that depends on it.

        Scores can be edited after completion. Bracket matches fed by this one
        are re-resolved; if standings are enabled they are rebuilt from scratch.
        """
        score1 = _validate_score(score1)
        score2 = _validate_score(score2)

        with self.store.transaction():
            match_row = self.store.get('matches', match_id)
            if match_row is None:
                raise NotFoundError(f'Match {match_id} not found')
            tournament = self.get_tournament_by_id(match_row['tournament_id'])
            matches = self.list_matches(tournament.id)
            match = next(m for m in matches if m.id == match_id)

            if not match.team1_id or not match.team2_id:
                raise ValidationError(f'Match {match.code} does not have both teams yet')

            winner_id = None
            if score1 > score2:
                winner_id = match.team1_id
            elif score2 > score1:
                winner_id = match.team2_id
            elif tournament.format not in DRAW_FORMATS:
                raise ValidationError(f'Draws are not allowed in {tournament.format} matches')

            match.team1_score = score1
            match.team2_score = score2
            match.winner_id = winner_id
            match.status = COMPLETED

            changed = [match] + [m for m in resolve_slots(matches) if m is not match]
            for m in changed:
                self.store.update('matches', m.id, m.to_dict())

            if tournament.settings.enable_standings:
                self._replace_standings(tournament, matches)

        logger.info('Recorded %s %d:%d (winner %s)', match.code, score1, score2, winner_id)
        return match

    def update_match_court(self, match_id: str, court: Optional[int]) -> Match:
        if court is not None and (isinstance(court, bool) or not isinstance(court, int) or court < 1):
            raise ValidationError(f'court must be a positive integer or None, got {court!r}')
        return self._update_match(match_id, {'court': court})

    def update_match_time(self, match_id: str, scheduled_time: Optional[str]) -> Match:
        return self._update_match(match_id, {'scheduled_time': scheduled_time})

    def start_match(self, match_id: str) -> Match:
        """Mark a scheduled match with both teams known as in progress."""
        with self.store.transaction():
            match = self.get_match(match_id)
            if match.status != SCHEDULED:
                raise TournamentStateError(f'Match {match.code} is already {match.status}')
            if not match.team1_id or not match.team2_id:
                raise TournamentStateError(f'Match {match.code} does not have both teams yet')
            match = self._update_match(match_id, {'status': IN_PROGRESS})
        logger.info('Started %s', match.code)
        return match

    def _update_match(self, match_id: str, fields: dict) -> Match:
        row = self.store.update('matches', match_id, fields)
        if row is None:
            raise NotFoundError(f'Match {match_id} not found')
        return Match.from_dict(row)

    # -- standings -----------------------------------------------------------

    def recalculate_standings(self, tournament_id: str) -> List[Standing]:
        with self.store.transaction():
            tournament = self.get_tournament_by_id(tournament_id)
            return self._replace_standings(tournament, self.list_matches(tournament_id))

    def _replace_standings(self, tournament: Tournament, matches: List[Match]) -> List[Standing]:
        weights = scoring_weights(tournament.settings)
        if tournament.format == GROUP_STAGE:
            standings = []
            group_names = list(dict.fromkeys(m.group_name for m in matches if m.group_name))
            for group in group_names:
                standings.extend(compute_standings(matches, weights, group_name=group))
        else:
            standings = compute_standings(matches, weights)

        for standing in standings:
            standing.tournament_id = tournament.id
        self.store.delete('standings', tournament_id=tournament.id)
        self.store.insert('standings', [standing.to_dict() for standing in standings])
        return standings

    # -- swiss ---------------------------------------------------------------

    def generate_next_swiss_round(self, tournament_id: str) -> List[Match]:
        """Pair the next Swiss round from the current results."""
        with self.store.transaction():
            tournament = self.get_tournament_by_id(tournament_id)
            if tournament.format != SWISS:
                raise TournamentStateError(f'Tournament {tournament_id} is not a Swiss tournament')

            matches = self.list_matches(tournament_id)
            unfinished = [m for m in matches if m.status != COMPLETED]
            if unfinished:
                raise TournamentStateError(f'{len(unfinished)} matches of the current round are not completed')

            rounds_played = max((m.round for m in matches), default=0)
            if rounds_played >= tournament.settings.swiss_rounds:
                raise TournamentStateError(f'All {tournament.settings.swiss_rounds} Swiss rounds have been played')

            ranked = ranked_team_ids(compute_standings(matches, scoring_weights(tournament.settings)),
                                     tournament.team_ids)
            played_pairs = [(m.team1_id, m.team2_id) for m in matches]
            previous_byes = set()
            for round_number in range(1, rounds_played + 1):
                playing = {t for m in matches if m.round == round_number for t in (m.team1_id, m.team2_id)}
                previous_byes.update(set(tournament.team_ids) - playing)

            pairings = generate_swiss_round(ranked, played_pairs, rounds_played + 1, previous_byes)
            new_matches = self._build_matches(tournament, [pairings])
            self.store.insert('matches', [match.to_dict() for match in new_matches])

        logger.info('Generated Swiss round %d for tournament %s', rounds_played + 1, tournament_id)
        return new_matches

    # -- teams ---------------------------------------------------------------

    def list_teams(self, event_id: str) -> List[Team]:
        return [Team.from_dict(row) for row in self.store.select('teams', order_by=['order'], event_id=event_id)]

    def list_team_members(self, event_id: str) -> Dict[str, List[str]]:
        """Participant ids per team id."""
        teams = self.list_teams(event_id)
        members = {team.id: [] for team in teams}
        for row in self.store.select('team_members', team_id=list(members)):
            members[row['team_id']].append(row['participant_id'])
        return members

    def load_participants(self, event_id: str) -> List[Participant]:
        return [Participant.from_dict(row) for row in self.store.select('participants', event_id=event_id)]

    def create_teams(self, event_id: str, team_count: int, team_names: Optional[Sequence[str]] = None) -> List[Team]:
        teams = []
        for index in range(team_count):
            name = team_names[index] if team_names and index < len(team_names) else team_name(index)
            teams.append(Team(str(uuid.uuid4()), event_id, name,
                              config.TEAM_COLORS[index % len(config.TEAM_COLORS)], index))
        self.store.insert('teams', [team.to_dict() for team in teams])
        return teams

    def delete_all_teams(self, event_id: str):
        with self.store.transaction():
            team_ids = [row['id'] for row in self.store.select('teams', event_id=event_id)]
            if team_ids:
                self.store.delete('team_members', team_id=team_ids)
                self.store.delete('teams', event_id=event_id)

    def get_team(self, team_id: str) -> Team:
        row = self.store.get('teams', team_id)
        if row is None:
            raise NotFoundError(f'Team {team_id} not found')
        return Team.from_dict(row)

    def update_team(self, team_id: str, fields: dict) -> Team:
        """Rename, recolor or reorder a team."""
        unknown = sorted(set(fields) - set(TEAM_FIELDS))
        if unknown:
            raise ValidationError(f'Cannot update team fields: {", ".join(unknown)}')
        if 'name' in fields and (not isinstance(fields['name'], str) or not fields['name'].strip()):
            raise ValidationError('Team name cannot be empty')
        if 'order' in fields and (isinstance(fields['order'], bool) or not isinstance(fields['order'], int)):
            raise ValidationError(f'Team order must be an integer, got {fields["order"]!r}')

        row = self.store.update('teams', team_id, fields)
        if row is None:
            raise NotFoundError(f'Team {team_id} not found')
        return Team.from_dict(row)

    def delete_team(self, team_id: str):
        with self.store.transaction():
            self.get_team(team_id)
            self.store.delete('team_members', team_id=team_id)
            self.store.delete('teams', id=team_id)
        logger.info('Deleted team %s', team_id)

    def add_member(self, team_id: str, participant_id: str) -> dict:
        with self.store.transaction():
            self.get_team(team_id)
            if self.store.select('team_members', team_id=team_id, participant_id=participant_id):
                raise ValidationError(f'Participant {participant_id} is already on team {team_id}')
            return self.store.insert('team_members', [{'team_id': team_id, 'participant_id': participant_id}])[0]

    def remove_member(self, member_id: str):
        if not self.store.delete('team_members', id=member_id):
            raise NotFoundError(f'Team member {member_id} not found')

    def move_member(self, member_id: str, team_id: str) -> dict:
        """Put an existing member on another team."""
        with self.store.transaction():
            self.get_team(team_id)
            row = self.store.update('team_members', member_id, {'team_id': team_id})
            if row is None:
                raise NotFoundError(f'Team member {member_id} not found')
        return row

    def auto_assign_teams(self, event_id: str, participants: Optional[List[Participant]], mode: str,
                          team_count: int, target: str = ATTENDING,
                          balance_keys: Optional[Sequence[str]] = None) -> List[Team]:
        """
        Discard the event's teams and build team_count new ones.

        participants defaults to the event's rows in the participants collection.
        """
        if participants is None:
            participants = self.load_participants(event_id)
        selected = select_participants(participants, target)
        assignments = assign_teams(selected, team_count, mode, balance_keys, rng=self.rng)

        with self.store.transaction():
            self.delete_all_teams(event_id)
            teams = self.create_teams(event_id, team_count)
            self.store.insert('team_members', [
                {'team_id': teams[index].id, 'participant_id': participant.id}
                for index, members in assignments.items()
                for participant in members
            ])

        logger.info('Assigned %d participants to %d teams (%s) for event %s',
                    len(selected), team_count, mode, event_id)
        return teams

    def generate_individual_teams(self, event_id: str, participants: List[Participant]) -> List[Team]:
        """One team per participant, for individual competitions."""
        teams = [
            Team(str(uuid.uuid4()), event_id, participant.display_name or 'Participant',
                 config.INDIVIDUAL_COLORS[index % len(config.INDIVIDUAL_COLORS)], index)
            for index, participant in enumerate(participants)
        ]
        with self.store.transaction():
            self.store.insert('teams', [team.to_dict() for team in teams])
            self.store.insert('team_members', [
                {'team_id': team.id, 'participant_id': participant.id}
                for team, participant in zip(teams, participants)
            ])
        return teams
