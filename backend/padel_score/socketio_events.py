from flask_socketio import join_room, leave_room, emit
from flask import current_app
from padel_score import socketio


def match_room(match_id: str) -> str:
    return f"match:{match_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_match(data):
    match_id = (data or {}).get('matchId')
    if not match_id:
        emit('error', {'message': 'matchId is required'})
        return
    room = match_room(match_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_match(data):
    match_id = (data or {}).get('matchId')
    if not match_id:
        emit('error', {'message': 'matchId is required'})
        return
    room = match_room(match_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_match_update(snapshot) -> None:
    """Notify clients watching a match that its state or status changed.

    Only ids and the version are pushed; clients re-fetch the state they need.
    """
    if not current_app.config.get('BROADCAST_MATCH_UPDATES', True):
        return
    socketio.emit(
        'state_update',
        {'matchId': snapshot.match_id, 'status': snapshot.status, 'version': snapshot.version},
        to=match_room(snapshot.match_id),
        namespace='/ws',
    )


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_match': handle_join_match,
        'leave_match': handle_leave_match,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace='/')
