import threading

from flask import current_app, request
from flask_socketio import emit
from roomrelay import socketio
from roomrelay.services.rooms import (
    GUEST,
    HOST,
    ROLES,
    RoomError,
    RoomRegistry,
    SocketConnection,
    normalize_room_code,
)
from typing import Dict, Any, Optional, Set

NAMESPACE = '/'

# sid -> {'room_code': ..., 'role': ...}
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
# sids between connect and disconnect
_live_sids: Set[str] = set()
# Guards _sid_to_ctx/_live_sids together with the registry call they follow.
# Reentrant: a disconnect can be dispatched from inside another handler.
_ctx_lock = threading.RLock()


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _registry() -> RoomRegistry:
    return current_app.extensions['rooms']

def _connection() -> SocketConnection:
    return SocketConnection(_get_sid(), request.namespace or NAMESPACE)  # type: ignore

def _is_live() -> bool:
    return _get_sid() in _live_sids

def _bind(code: str, role: str) -> bool:
    """Point this connection at (code, role), vacating any slot it held before.

    Must be called under _ctx_lock. If the connection went away while the
    registry call ran, the fresh slot is given back and False is returned.
    """
    sid = _get_sid()
    if sid not in _live_sids:
        _registry().release_slot(code, role, _connection())
        return False
    previous = _sid_to_ctx.get(sid)
    _sid_to_ctx[sid] = {'room_code': code, 'role': role}
    if previous and (previous['room_code'], previous['role']) != (code, role):
        _registry().release_slot(previous['room_code'], previous['role'], _connection())
    return True

def _room_code_from(data) -> str:
    if not isinstance(data, dict):
        return ''
    return normalize_room_code(data.get('roomCode'))


def handle_connect(auth=None):
    with _ctx_lock:
        _live_sids.add(_get_sid())
    current_app.logger.info(f"[{_get_sid()}] Connected")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[{sid}] Disconnected: {reason}")
    with _ctx_lock:
        _live_sids.discard(sid)
        ctx = _sid_to_ctx.pop(sid, None)
        # Keep the room alive for a reconnect; the registry arms the cleanup check
        if ctx:
            _registry().release_slot(ctx['room_code'], ctx['role'], _connection())
        else:
            _registry().release_connection(_connection())


def handle_create_room(data=None):
    with _ctx_lock:
        if not _is_live():
            return
        room = _registry().create_room(_connection())
        if not _bind(room.code, HOST):
            return
    emit('room_created', {'roomCode': room.code})
    current_app.logger.info(f"[{_get_sid()}] Created room {room.code}")


def handle_join_room(data=None):
    code = _room_code_from(data)
    if not code:
        emit('join_error', {'reason': 'roomCode is required'})
        return
    with _ctx_lock:
        if not _is_live():
            return
        try:
            # Sends joined_room to us, then player_joined to the host
            _registry().join_room(code, _connection())
        except RoomError as exc:
            current_app.logger.info(f"[{_get_sid()}] Join {code} refused: {exc.reason}")
            emit('join_error', {'reason': exc.reason})
            return
        if not _bind(code, GUEST):
            return
    current_app.logger.info(f"[{_get_sid()}] Joined room {code}")


def handle_game_message(data=None):
    with _ctx_lock:
        ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        return
    _registry().relay(ctx['room_code'], ctx['role'], data)


def handle_rejoin_room(data=None):
    code = _room_code_from(data)
    role: Optional[str] = data.get('role') if isinstance(data, dict) else None
    if not code:
        emit('rejoin_error', {'reason': 'roomCode is required'})
        return
    if role not in ROLES:
        emit('rejoin_error', {'reason': 'role must be host or guest'})
        return
    with _ctx_lock:
        if not _is_live():
            return
        try:
            # Sends opponent_reconnected to the other slot, then rejoined_room to us
            _registry().rejoin_room(code, role, _connection())
        except RoomError as exc:
            current_app.logger.info(f"[{_get_sid()}] Rejoin {code} as {role} refused: {exc.reason}")
            emit('rejoin_error', {'reason': exc.reason})
            return
        if not _bind(code, role):
            return
    current_app.logger.info(f"[{_get_sid()}] {role.capitalize()} rejoined room {code}")


def handle_error(exc):
    # Faults stay with the connection that caused them
    current_app.logger.exception(f"[{_get_sid()}] Handler error: {exc}")


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    socketio.on_event('game_message', handle_game_message, namespace=namespace)
    socketio.on_event('rejoin_room', handle_rejoin_room, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
