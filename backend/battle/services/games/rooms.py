"""Room membership and event fan-out.

Two independent groupings of live connections: game rooms (one per join
code) and team rooms (one per team). Delivery goes through a transport
callable ``transport(sid, event, payload)``; the app plugs in a Socket.IO
emit, tests plug in a recorder.
"""

from collections import defaultdict
import logging
import threading
from typing import Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

Transport = Callable[[str, str, dict], None]


def game_room(code) -> str:
    return f"game:{code}"


def team_room(team_id) -> str:
    return f"team:{team_id}"


class RoomBroadcaster:

    def __init__(self, transport: Optional[Transport] = None):
        self._transport = transport
        self._members: Dict[str, Set[str]] = defaultdict(set)
        self._rooms_by_sid: Dict[str, Set[str]] = defaultdict(set)
        self._lock = threading.RLock()

    def join(self, sid: str, room: str) -> None:
        with self._lock:
            self._members[room].add(sid)
            self._rooms_by_sid[sid].add(room)

    def leave(self, sid: str, room: str) -> None:
        with self._lock:
            members = self._members.get(room)
            if members is not None:
                members.discard(sid)
                if not members:
                    del self._members[room]
            joined = self._rooms_by_sid.get(sid)
            if joined is not None:
                joined.discard(room)
                if not joined:
                    del self._rooms_by_sid[sid]

    def leave_all(self, sid: str) -> Set[str]:
        """Drop every membership of ``sid``; returns the rooms it was in."""
        with self._lock:
            rooms = set(self._rooms_by_sid.get(sid, ()))
            for room in rooms:
                self.leave(sid, room)
            return rooms

    def members(self, room: str) -> Set[str]:
        with self._lock:
            return set(self._members.get(room, ()))

    def rooms_of(self, sid: str) -> Set[str]:
        with self._lock:
            return set(self._rooms_by_sid.get(sid, ()))

    def send(self, sid: str, event: str, payload: dict) -> bool:
        if self._transport is None:
            logger.warning(f"[rooms] no transport bound, dropping {event} for sid={sid}")
            return False
        try:
            self._transport(sid, event, payload)
        except Exception:
            # At-most-once delivery: one broken connection must not stop the fan-out
            logger.exception(f"[rooms] delivery of {event} to sid={sid} failed")
            return False
        return True

    def broadcast(self, room: str, event: str, payload: dict) -> int:
        """Send ``event`` to every connection currently in ``room``.

        Returns the number of connections the transport accepted.
        """
        recipients = self.members(room)
        delivered = 0
        for sid in sorted(recipients):
            if self.send(sid, event, payload):
                delivered += 1
        logger.debug(f"[rooms] {event} -> {room} ({delivered}/{len(recipients)})")
        return delivered
