from dataclasses import dataclass
from typing import Any

from roomrelay import socketio


@dataclass(frozen=True)
class SocketConnection:
    """A single Socket.IO client, addressed by its sid."""

    sid: str
    namespace: str = '/'

    def send(self, event: str, payload: Any) -> None:
        socketio.emit(event, payload, to=self.sid, namespace=self.namespace)
