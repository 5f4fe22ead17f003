"""In-memory mirror of active games, keyed by join code.

Nothing here is authoritative: every entry can be rebuilt from the
repository, and the coordinator loads entries lazily on first touch.
Status transitions are decided by conditional writes in the repository,
never by reading this mirror.
"""

from dataclasses import dataclass, field
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    game_id: int
    code: str
    status: str = 'waiting'
    current_level: int = 0
    settings: Any = None
    # team id -> {'name': ..., 'score': ...}
    teams: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    # active players: {'id', 'name', 'team_id', 'role', 'sid'}
    players: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_game(cls, game):
        return cls(
            game_id=game.id,
            code=game.code,
            status=game.status,
            current_level=game.current_level,
            settings=game.settings_data,
            teams={t.id: {'name': t.name, 'score': t.score} for t in game.teams},
            players=[
                {'id': p.id, 'name': p.name, 'team_id': p.team_id, 'role': p.role, 'sid': p.socket_id}
                for p in game.active_players
            ],
        )

    def has_team(self, team_id):
        return team_id in self.teams

    def remove_player(self, player_id):
        self.players = [p for p in self.players if p['id'] != player_id]


class SessionRegistry:

    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.RLock()

    def register(self, code: str, session: GameSession) -> GameSession:
        with self._lock:
            self._sessions[code] = session
        logger.debug(f"[registry] registered game={code}")
        return session

    def get(self, code: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(code)

    def update(self, code: str, mutator: Callable[[GameSession], None]) -> Optional[GameSession]:
        """Apply ``mutator`` to the entry for ``code`` if there is one."""
        with self._lock:
            session = self._sessions.get(code)
            if session is not None:
                mutator(session)
            return session

    def discard(self, code: str) -> None:
        with self._lock:
            removed = self._sessions.pop(code, None)
        if removed is not None:
            logger.debug(f"[registry] pruned game={code}")

    def find_by_team(self, team_id: int) -> Optional[GameSession]:
        with self._lock:
            for session in self._sessions.values():
                if session.has_team(team_id):
                    return session
        return None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
