from flask import Blueprint, jsonify, request, abort
from padel_score import db
from padel_score.services.matches import (
    Forbidden,
    MatchOrchestrator,
    NotFound,
    StatusConflict,
    VersionConflict,
)
from padel_score.socketio_events import broadcast_match_update


matches = Blueprint('matches', __name__)

_FAILURE_STATUS = {
    NotFound: 404,
    Forbidden: 403,
    StatusConflict: 409,
    VersionConflict: 409,
}


@matches.errorhandler(400)
def handle_bad_request(exc):
    return jsonify({'error': exc.description}), 400


def _orchestrator() -> MatchOrchestrator:
    return MatchOrchestrator(db.session)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def _user_id(value) -> str:
    if not isinstance(value, str) or not value.strip():
        abort(400, description='userId is required')
    return value


def _expected_version(data: dict) -> int:
    value = data.get('expectedVersion')
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        abort(400, description='expectedVersion must be a non-negative integer')
    return value


def _document(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, dict):
        abort(400, description=f'{key} must be a JSON object')
    return value


def _respond(outcome, status: int = 200):
    if outcome.ok:
        return jsonify(outcome.value.to_dict()), status
    body = {'error': outcome.message}
    if isinstance(outcome, VersionConflict):
        body['details'] = outcome.details()
    return jsonify(body), _FAILURE_STATUS[type(outcome)]


def _respond_and_broadcast(outcome):
    if outcome.ok:
        broadcast_match_update(outcome.value)
    return _respond(outcome)


@matches.route('', methods=['POST'])
def create_match():
    data = _json_body()
    user_id = _user_id(data.get('userId'))
    mode = data.get('mode')
    if mode is not None and not isinstance(mode, str):
        abort(400, description='mode must be a string')
    golden_point = data.get('goldenPoint', False)
    if not isinstance(golden_point, bool):
        abort(400, description='goldenPoint must be a boolean')
    players = data.get('players') or []
    if not isinstance(players, list) or not all(isinstance(p, str) for p in players):
        abort(400, description='players must be a list of strings')
    initial_state = _document(data, 'initialState', required=False)

    outcome = _orchestrator().create(
        user_id,
        mode=mode,
        golden_point=golden_point,
        players=players,
        initial_state=initial_state,
    )
    if not outcome.created:
        return _respond(outcome, 200)
    response, status = _respond(outcome, 201)
    response.headers['Location'] = f"/matches/{outcome.value.match_id}"
    return response, status


@matches.route('/active', methods=['GET'])
def get_active_match():
    user_id = _user_id(request.args.get('userId'))
    return _respond(_orchestrator().get_active(user_id))


@matches.route('/active', methods=['DELETE'])
def abandon_active_match():
    user_id = _user_id(request.args.get('userId'))
    outcome = _orchestrator().abandon_active(user_id)
    if outcome.value is not None:
        broadcast_match_update(outcome.value)
    return '', 204


@matches.route('/<uuid:match_id>/point', methods=['PUT'])
def register_point(match_id):
    data = _json_body()
    user_id = _user_id(data.get('userId'))
    winner = data.get('winner')
    if not isinstance(winner, str) or not winner:
        abort(400, description='winner is required')
    outcome = _orchestrator().register_point(
        str(match_id),
        user_id,
        winner,
        _expected_version(data),
        _document(data, 'newState'),
    )
    return _respond_and_broadcast(outcome)


@matches.route('/<uuid:match_id>/undo', methods=['POST'])
def undo(match_id):
    data = _json_body()
    outcome = _orchestrator().undo(
        str(match_id),
        _user_id(data.get('userId')),
        _expected_version(data),
        _document(data, 'newState'),
    )
    return _respond_and_broadcast(outcome)


@matches.route('/<uuid:match_id>/state', methods=['PUT'])
def update_state(match_id):
    data = _json_body()
    outcome = _orchestrator().update_state(
        str(match_id),
        _user_id(data.get('userId')),
        _expected_version(data),
        _document(data, 'state'),
    )
    return _respond_and_broadcast(outcome)


@matches.route('/<uuid:match_id>/finish', methods=['POST'])
def finish_match(match_id):
    data = _json_body()
    user_id = _user_id(data.get('userId'))
    won = data.get('won')
    if not isinstance(won, bool):
        abort(400, description='won must be a boolean')
    final_state = _document(data, 'finalState', required=False)
    # expectedVersion only matters when a final state is written
    expected_version = _expected_version(data) if final_state is not None else data.get('expectedVersion')
    outcome = _orchestrator().finish(
        str(match_id),
        user_id,
        won,
        expected_version=expected_version,
        final_state=final_state,
        final_stats=data.get('finalStats'),
    )
    if not outcome.ok:
        return _respond(outcome)
    broadcast_match_update(outcome.value)
    payload = outcome.value.to_dict()
    payload['message'] = 'Match finished successfully'
    return jsonify(payload)


@matches.route('/<uuid:match_id>/events', methods=['GET'])
def list_events(match_id):
    user_id = _user_id(request.args.get('userId'))
    outcome = _orchestrator().list_events(str(match_id), user_id)
    if not outcome.ok:
        return _respond(outcome)
    return jsonify({'matchId': str(match_id), 'events': outcome.value})
