"""
Flask JSON API for the tournament engine.
"""
import os
import random

from flask import Flask, jsonify, request

from atsume import config
from atsume.assignment import ATTENDING, RANDOM, assign_teams
from atsume.exceptions import NotFoundError, StoreError, TournamentStateError, ValidationError
from atsume.lifecycle import TournamentController
from atsume.models import COMPLETED, Match, Participant, TournamentSettings
from atsume.pairing import generate_pairings
from atsume.standings import compute_standings
from atsume.store import YamlStore

app = Flask(__name__)

DATA_DIR = config.DATA_DIR
SETTINGS_FILE = os.environ.get('ATSUME_SETTINGS_FILE', os.path.join(DATA_DIR, 'settings.yaml'))

_store = None


def get_store() -> YamlStore:
    """Store for the configured data directory, created on first use."""
    global _store
    if _store is None:
        _store = YamlStore(DATA_DIR)
    return _store


def get_controller() -> TournamentController:
    return TournamentController(get_store())


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _rng(data: dict):
    """Seeded generator when the request asks for reproducible draws."""
    seed = data.get('seed')
    return random.Random(seed) if seed is not None else None


def _settings(data: dict) -> TournamentSettings:
    settings = config.load_settings(SETTINGS_FILE)
    settings.update(data.get('settings') or {})
    return TournamentSettings.from_dict(settings)


def _pairing_to_dict(pairing) -> dict:
    return {
        'code': pairing.code,
        'round': pairing.round,
        'match_number': pairing.match_number,
        'bracket': pairing.bracket,
        'group_name': pairing.group_name,
        'slot1': pairing.slot1.to_dict(),
        'slot2': pairing.slot2.to_dict(),
    }


def _participants(rows) -> list:
    if not isinstance(rows, list):
        raise ValidationError('participants must be a list')
    return [Participant.from_dict(row) for row in rows]


def _tournament_payload(controller: TournamentController, tournament) -> dict:
    return {
        'tournament': tournament.to_dict(),
        'matches': [m.to_dict() for m in controller.list_matches(tournament.id)],
        'standings': [s.to_dict() for s in controller.list_standings(tournament.id)],
    }


# -- error mapping -------------------------------------------------------------

@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


@app.errorhandler(TournamentStateError)
def handle_state_error(e):
    return jsonify({'error': str(e)}), 409


@app.errorhandler(StoreError)
def handle_store_error(e):
    app.logger.error(f'Store failure: {e}')
    return jsonify({'error': str(e)}), 503


# -- stateless helpers -----------------------------------------------------------

@app.route('/api/pairings', methods=['POST'])
def api_pairings():
    """Generate pairings for a team list without storing anything."""
    data = _json_body()
    settings = _settings(data)
    rounds = generate_pairings(data.get('format'), list(data.get('team_ids') or []),
                               settings.to_dict(), rng=_rng(data))
    return jsonify({'rounds': [[_pairing_to_dict(p) for p in round_pairings] for round_pairings in rounds]})


@app.route('/api/teams/assign', methods=['POST'])
def api_assign_teams():
    """Split a posted participant list into teams without storing anything."""
    data = _json_body()
    assignments = assign_teams(
        _participants(data.get('participants') or []),
        data.get('team_count'),
        data.get('mode', RANDOM),
        data.get('balance_keys'),
        rng=_rng(data),
    )
    return jsonify({'teams': [[p.id for p in assignments[index]] for index in sorted(assignments)]})


@app.route('/api/standings', methods=['POST'])
def api_standings():
    """Compute standings for posted match results."""
    data = _json_body()
    matches = []
    for index, row in enumerate(data.get('matches') or [], 1):
        defaults = {'id': None, 'tournament_id': None, 'round': 1, 'match_number': index, 'status': COMPLETED}
        matches.append(Match.from_dict({**defaults, **row}))
    standings = compute_standings(matches, _settings(data), group_name=data.get('group_name'))
    return jsonify({'standings': [s.to_dict() for s in standings]})


# -- events ----------------------------------------------------------------------

@app.route('/api/events/<event_id>/tournament', methods=['POST'])
def api_create_tournament(event_id):
    """Replace the event's tournament with a freshly generated one."""
    data = _json_body()
    controller = get_controller()
    if data.get('seed') is not None:
        controller.rng = _rng(data)
    tournament = controller.create_tournament(
        event_id,
        data.get('format'),
        data.get('concurrent_matches', 1),
        _settings(data),
        list(data.get('team_ids') or []),
    )
    app.logger.info(f'Tournament {tournament.id} created for event {event_id}')
    return jsonify(_tournament_payload(controller, tournament)), 201


@app.route('/api/events/<event_id>/tournament', methods=['GET'])
def api_get_tournament(event_id):
    controller = get_controller()
    tournament = controller.get_tournament(event_id)
    if tournament is None:
        raise NotFoundError(f'Event {event_id} has no tournament')
    return jsonify(_tournament_payload(controller, tournament))


@app.route('/api/events/<event_id>/teams', methods=['GET'])
def api_list_teams(event_id):
    controller = get_controller()
    members = controller.list_team_members(event_id)
    return jsonify({'teams': [
        dict(team.to_dict(), members=members.get(team.id, []))
        for team in controller.list_teams(event_id)
    ]})


@app.route('/api/events/<event_id>/teams/assign', methods=['POST'])
def api_auto_assign_teams(event_id):
    """Rebuild the event's teams from its participants."""
    data = _json_body()
    controller = get_controller()
    if data.get('seed') is not None:
        controller.rng = _rng(data)
    participants = data.get('participants')
    teams = controller.auto_assign_teams(
        event_id,
        _participants(participants) if participants is not None else None,
        data.get('mode', RANDOM),
        data.get('team_count'),
        data.get('target', ATTENDING),
        data.get('balance_keys'),
    )
    members = controller.list_team_members(event_id)
    return jsonify({'teams': [dict(team.to_dict(), members=members.get(team.id, [])) for team in teams]}), 201


@app.route('/api/events/<event_id>/teams/individual', methods=['POST'])
def api_individual_teams(event_id):
    data = _json_body()
    controller = get_controller()
    participants = data.get('participants')
    if participants is None:
        participants = controller.load_participants(event_id)
    else:
        participants = _participants(participants)
    teams = controller.generate_individual_teams(event_id, participants)
    return jsonify({'teams': [team.to_dict() for team in teams]}), 201


@app.route('/api/teams/<team_id>', methods=['PATCH'])
def api_update_team(team_id):
    team = get_controller().update_team(team_id, _json_body())
    return jsonify({'team': team.to_dict()})


@app.route('/api/teams/<team_id>', methods=['DELETE'])
def api_delete_team(team_id):
    get_controller().delete_team(team_id)
    app.logger.info(f'Team {team_id} deleted')
    return jsonify({'success': True})


@app.route('/api/teams/<team_id>/members', methods=['POST'])
def api_add_member(team_id):
    data = _json_body()
    if not data.get('participant_id'):
        return jsonify({'error': 'participant_id is required'}), 400
    member = get_controller().add_member(team_id, data['participant_id'])
    return jsonify({'member': member}), 201


@app.route('/api/members/<member_id>', methods=['PATCH'])
def api_move_member(member_id):
    """Move a member to the team given in the body."""
    data = _json_body()
    if not data.get('team_id'):
        return jsonify({'error': 'team_id is required'}), 400
    member = get_controller().move_member(member_id, data['team_id'])
    return jsonify({'member': member})


@app.route('/api/members/<member_id>', methods=['DELETE'])
def api_remove_member(member_id):
    get_controller().remove_member(member_id)
    return jsonify({'success': True})


# -- matches ---------------------------------------------------------------------

@app.route('/api/matches/<match_id>/score', methods=['POST'])
def api_record_score(match_id):
    """Record a result and return the updated match."""
    data = _json_body()
    if 'score1' not in data or 'score2' not in data:
        return jsonify({'error': 'Both score1 and score2 are required'}), 400
    match = get_controller().record_match_score(match_id, data['score1'], data['score2'])
    return jsonify({'match': match.to_dict()})


@app.route('/api/matches/<match_id>/start', methods=['POST'])
def api_start_match(match_id):
    match = get_controller().start_match(match_id)
    return jsonify({'match': match.to_dict()})


@app.route('/api/matches/<match_id>', methods=['PATCH'])
def api_update_match(match_id):
    """Move a match to another court and/or time."""
    data = _json_body()
    controller = get_controller()
    match = None
    if 'court' in data:
        match = controller.update_match_court(match_id, data['court'])
    if 'scheduled_time' in data:
        match = controller.update_match_time(match_id, data['scheduled_time'])
    if match is None:
        return jsonify({'error': 'Nothing to update: send court and/or scheduled_time'}), 400
    return jsonify({'match': match.to_dict()})


# -- tournaments -----------------------------------------------------------------

@app.route('/api/tournaments/<tournament_id>/swiss/next', methods=['POST'])
def api_next_swiss_round(tournament_id):
    matches = get_controller().generate_next_swiss_round(tournament_id)
    return jsonify({'matches': [m.to_dict() for m in matches]}), 201


@app.route('/api/tournaments/<tournament_id>/standings', methods=['POST'])
def api_recalculate_standings(tournament_id):
    standings = get_controller().recalculate_standings(tournament_id)
    return jsonify({'standings': [s.to_dict() for s in standings]})


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
def api_delete_tournament(tournament_id):
    get_controller().delete_tournament(tournament_id)
    app.logger.info(f'Tournament {tournament_id} deleted')
    return jsonify({'success': True})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
