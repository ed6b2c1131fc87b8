"""Room domain services: codes, registry, relay and timers.

Everything here is transport agnostic. Socket handlers hand in a
connection object exposing ``send(event, payload)`` and the services
decide who gets told what.
"""

from .codes import ROOM_CODE_ALPHABET, generate_room_code, normalize_room_code
from .connection import SocketConnection
from .registry import (
    GUEST,
    HOST,
    ROLES,
    Room,
    RoomError,
    RoomFull,
    RoomNotFound,
    RoomRegistry,
    SlotOccupied,
    opposite_role,
)

__all__ = [
    'ROOM_CODE_ALPHABET',
    'generate_room_code',
    'normalize_room_code',
    'SocketConnection',
    'GUEST',
    'HOST',
    'ROLES',
    'Room',
    'RoomError',
    'RoomFull',
    'RoomNotFound',
    'RoomRegistry',
    'SlotOccupied',
    'opposite_role',
]
