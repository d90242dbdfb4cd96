from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from hitgame import socketio
from hitgame.errors import ExpiredOrInvalidToken
from hitgame.services.accounts.tokens import verify_token
from typing import Dict


# Socket id -> user id for sockets that joined their wallet room
_sid_to_user: Dict[str, int] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_for(user_id: int) -> str:
    return f"user:{user_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    _sid_to_user.pop(_get_sid(), None)


def handle_join_wallet(data):
    token = (data or {}).get('token')
    try:
        user_id = verify_token(token)
    except ExpiredOrInvalidToken as exc:
        emit('error', {'message': exc.message})
        return
    room = _room_for(user_id)
    join_room(room)
    _sid_to_user[_get_sid()] = user_id
    current_app.logger.info(f"[ws-join] user={user_id}")
    emit('joined', {'room': room})


def handle_leave_wallet(data=None):
    user_id = _sid_to_user.pop(_get_sid(), None)
    if user_id is None:
        emit('error', {'message': 'Not joined'})
        return
    room = _room_for(user_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_wallet', handle_join_wallet, namespace=namespace)
        socketio.on_event('leave_wallet', handle_leave_wallet, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
