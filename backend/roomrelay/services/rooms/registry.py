"""In-memory room registry.

A room has two slots, ``host`` and ``guest``. A slot is either vacant
(``None``) or bound to exactly one connection. Rooms survive their
participants dropping out for a grace period so either side can rejoin;
after that, or once a room gets too old, it is removed.

All reads and writes of the room mapping go through one lock. Messages
to connections are collected while holding it and sent afterwards.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .codes import generate_room_code, normalize_room_code

logger = logging.getLogger(__name__)

HOST = 'host'
GUEST = 'guest'
ROLES = (HOST, GUEST)

OPPONENT_DISCONNECTED = {'type': 'opponent_disconnected'}
OPPONENT_RECONNECTED = {'type': 'opponent_reconnected'}


class RoomError(Exception):
    """An expected, user-facing failure of a room operation."""

    reason = 'Room error'

    def __init__(self, code: str, reason: Optional[str] = None):
        self.code = code
        if reason is not None:
            self.reason = reason
        super().__init__(f"{self.reason} ({code})")


class RoomNotFound(RoomError):
    reason = 'Room not found'


class RoomFull(RoomError):
    reason = 'Room is full'


class SlotOccupied(RoomError):
    reason = 'Slot already occupied'


def opposite_role(role: str) -> str:
    if role == HOST:
        return GUEST
    if role == GUEST:
        return HOST
    raise ValueError(f"unknown role: {role!r}")


@dataclass
class Room:
    code: str
    created_at: float
    host: Any = None
    guest: Any = None
    # When both slots last became vacant; None while anyone is connected
    vacant_since: Optional[float] = None
    release_generation: int = 0

    def slot(self, role: str):
        return self.host if role == HOST else self.guest

    def bind(self, role: str, connection) -> None:
        if role == HOST:
            self.host = connection
        else:
            self.guest = connection
        self.vacant_since = None

    def is_vacant(self) -> bool:
        return self.host is None and self.guest is None


Outbox = List[Tuple[Any, str, Any]]


class RoomRegistry:
    """Owns every live room, keyed by code.

    ``schedule(delay, fn, *args)`` is used to arm the per-disconnect
    abandonment check; without it only :meth:`sweep_expired` removes rooms.
    """

    def __init__(
        self,
        code_generator: Callable[[], str] = generate_room_code,
        clock: Callable[[], float] = time.time,
        grace_period: float = 60.0,
        max_age: float = 2 * 60 * 60,
        schedule: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._generate_code = code_generator
        self._clock = clock
        self.grace_period = grace_period
        self.max_age = max_age
        self._schedule = schedule
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code) -> bool:
        with self._lock:
            return normalize_room_code(code) in self._rooms

    def get(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_room_code(code))

    # ---- lifecycle ----

    def create_room(self, connection) -> Room:
        with self._lock:
            code = self._generate_code()
            while code in self._rooms:
                code = self._generate_code()
            room = Room(code=code, created_at=self._clock(), host=connection)
            self._rooms[code] = room
        logger.info(f"[room-created] code={code}")
        return room

    def join_room(self, code, connection) -> Room:
        """Seat ``connection`` as guest.

        The joiner's ``joined_room`` ack goes out before the host hears
        ``player_joined``.
        """
        code = normalize_room_code(code)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                raise RoomNotFound(code)
            if room.guest is not None:
                raise RoomFull(code)
            room.bind(GUEST, connection)
            outbox: Outbox = [
                (connection, 'joined_room', {'roomCode': code}),
                (room.host, 'player_joined', {}),
            ]
        logger.info(f"[room-joined] code={code}")
        self._deliver(outbox)
        return room

    def rejoin_room(self, code, role: str, connection) -> Room:
        code = normalize_room_code(code)
        other = opposite_role(role)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                raise RoomNotFound(code, 'Room no longer exists')
            if room.slot(role) is not None:
                raise SlotOccupied(code)
            room.bind(role, connection)
            outbox: Outbox = [
                (room.slot(other), 'game_message', dict(OPPONENT_RECONNECTED)),
                (connection, 'rejoined_room', {'roomCode': code}),
            ]
        logger.info(f"[room-rejoined] code={code} role={role}")
        self._deliver(outbox)
        return room

    def release_slot(self, code, role: str, connection=None) -> bool:
        """Vacate ``role`` in the room and arm the abandonment check.

        When ``connection`` is given the slot is only cleared if it is
        still bound to that connection. Returns whether anything changed.
        """
        code = normalize_room_code(code)
        other = opposite_role(role)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            current = room.slot(role)
            if current is None or (connection is not None and current != connection):
                return False
            if role == HOST:
                room.host = None
            else:
                room.guest = None
            if room.is_vacant():
                room.vacant_since = self._clock()
            room.release_generation += 1
            generation = room.release_generation
            outbox: Outbox = [(room.slot(other), 'game_message', dict(OPPONENT_DISCONNECTED))]
        logger.info(f"[room-released] code={code} role={role}")
        self._deliver(outbox)
        if self._schedule is not None:
            self._schedule(self.grace_period, self.expire_if_abandoned, code, generation)
        return True

    def release_connection(self, connection) -> List[str]:
        """Release every slot still bound to ``connection``."""
        with self._lock:
            held = [
                (code, role)
                for code, room in self._rooms.items()
                for role in ROLES
                if room.slot(role) == connection
            ]
        return [code for code, role in held if self.release_slot(code, role, connection)]

    def expire_if_abandoned(self, code: str, generation: int) -> bool:
        """Deferred check armed by :meth:`release_slot`.

        Only the check belonging to the latest release may act, and only
        while both slots are still vacant.
        """
        with self._lock:
            room = self._rooms.get(code)
            # A later release re-arms the check, so abandonment is timed
            # from the last disconnect rather than the first
            if room is None or room.release_generation != generation:
                return False
            if not room.is_vacant():
                return False
            del self._rooms[code]
        logger.info(f"[room-cleanup] code={code} both disconnected")
        return True

    def sweep_expired(self, now: Optional[float] = None) -> List[str]:
        """Drop rooms past their lifetime or abandoned past the grace period."""
        if now is None:
            now = self._clock()
        removed = []
        with self._lock:
            for code, room in list(self._rooms.items()):
                if now - room.created_at > self.max_age:
                    removed.append(code)
                elif room.is_vacant() and room.vacant_since is not None and now - room.vacant_since > self.grace_period:
                    removed.append(code)
            for code in removed:
                del self._rooms[code]
        if removed:
            logger.info(f"[room-sweep] removed={len(removed)} codes={','.join(removed)}")
        return removed

    # ---- relay ----

    def relay(self, code, from_role: str, payload) -> bool:
        """Forward ``payload`` untouched to the other slot, if anyone is there."""
        code = normalize_room_code(code)
        with self._lock:
            room = self._rooms.get(code)
            target = room.slot(opposite_role(from_role)) if room is not None else None
        if target is None:
            return False
        target.send('game_message', payload)
        return True

    @staticmethod
    def _deliver(outbox: Outbox) -> None:
        for connection, event, payload in outbox:
            if connection is not None:
                connection.send(event, payload)
