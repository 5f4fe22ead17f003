from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app

from battle.errors import (
    CodeCollision,
    CodeSpaceExhausted,
    GameNotFound,
    InvalidInput,
    InvalidLevel,
    InvalidSettings,
    InvalidTeam,
    InvalidTransition,
    StorageUnavailable,
    TeamNotFound,
)
from battle.models import LEVELS
from .codes import CODE_LENGTH, generate_game_code
from .registry import GameSession, SessionRegistry
from .rooms import RoomBroadcaster, game_room, team_room

TEAM_NAMES = ['Alpha', 'Beta', 'Gamma', 'Delta', 'Epsilon', 'Sigma']


def team_names(count: int):
    return [f"Team {TEAM_NAMES[i]}" if i < len(TEAM_NAMES) else f"Team {i + 1}" for i in range(count)]


def _as_int(value) -> Optional[int]:
    """Accept ints and integer strings coming off the wire; reject bools."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _normalize_code(code) -> str:
    if not isinstance(code, str):
        raise GameNotFound()
    return code.strip().upper()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class GameCoordinator:
    """Runs every game state transition.

    Each operation follows the same order: validate, commit to the
    repository, update the session registry, then notify the rooms. A
    client can therefore never observe an event for state that is not
    committed yet.
    """

    def __init__(
        self,
        repository,
        registry: SessionRegistry,
        broadcaster: RoomBroadcaster,
        code_generator=generate_game_code,
        code_length: int = CODE_LENGTH,
        max_code_attempts: int = 10,
        initial_score: int = 100,
    ):
        self.repository = repository
        self.registry = registry
        self.broadcaster = broadcaster
        self.code_generator = code_generator
        self.code_length = code_length
        self.max_code_attempts = max_code_attempts
        self.initial_score = initial_score

    # ---- Registry helpers ----

    def _session(self, code: str) -> GameSession:
        session = self.registry.get(code)
        if session is not None:
            return session
        game = self.repository.get_game(code)
        if not game:
            raise GameNotFound(f'Game {code} not found')
        session = GameSession.from_game(game)
        if game.status != 'finished':
            self.registry.register(code, session)
        return session

    def _session_for_team(self, team_id: int) -> GameSession:
        session = self.registry.find_by_team(team_id)
        if session is not None:
            return session
        team = self.repository.get_team(team_id)
        if team is None:
            raise TeamNotFound(f'Team {team_id} not found')
        return self._session(team.game.code)

    def _resolve_team(self, team_id, code=None):
        tid = _as_int(team_id)
        if tid is None:
            raise TeamNotFound(f'Team {team_id} not found')
        if code is None:
            return tid, self._session_for_team(tid)
        session = self._session(_normalize_code(code))
        if not session.has_team(tid):
            raise TeamNotFound(f'Team {tid} not found in game {session.code}')
        return tid, session

    def _refresh(self, code: str, mutator) -> None:
        if self.registry.update(code, mutator) is None:
            # Not mirrored yet: load the committed state instead
            self._session(code)

    # ---- Operations ----

    def create_game(self, settings) -> Dict[str, Any]:
        if not isinstance(settings, dict):
            raise InvalidSettings('settings must be an object')
        team_count = _as_int(settings.get('teamCount'))
        if team_count is None or team_count < 1:
            raise InvalidSettings()

        names = team_names(team_count)
        game = None
        for attempt in range(1, self.max_code_attempts + 1):
            code = self.code_generator(self.code_length)
            try:
                game = self.repository.create_game(code, settings, names, self.initial_score)
                break
            except CodeCollision:
                current_app.logger.warning(f"[create] code collision on {code} (attempt {attempt}/{self.max_code_attempts})")
        if game is None:
            raise CodeSpaceExhausted(f'No free game code after {self.max_code_attempts} attempts')

        self.registry.register(game.code, GameSession.from_game(game))
        current_app.logger.info(f"[create] game={game.code} id={game.id} teams={team_count}")
        return {'code': game.code, 'gameId': game.id}

    def get_game(self, code) -> Dict[str, Any]:
        code = _normalize_code(code)
        snapshot = self.repository.snapshot(code)
        if snapshot is None:
            raise GameNotFound(f'Game {code} not found')
        return snapshot

    def join_game(self, code, player_name, team_id, role, sid, telegram_id=None) -> Dict[str, Any]:
        code = _normalize_code(code)
        session = self._session(code)
        if not isinstance(player_name, str) or not player_name.strip():
            raise InvalidInput('playerName is required')
        if team_id is not None:
            tid = _as_int(team_id)
            if tid is None or not session.has_team(tid):
                raise InvalidTeam(f'Team {team_id} does not belong to game {code}')
            team_id = tid

        # One active player per connection
        if self.broadcaster.rooms_of(sid):
            self.leave(sid)

        player = self.repository.add_player(
            session.game_id, team_id, player_name.strip(), role=role, socket_id=sid, telegram_id=telegram_id,
        )
        self.broadcaster.join(sid, game_room(code))
        if team_id is not None:
            self.broadcaster.join(sid, team_room(team_id))

        entry = {'id': player.id, 'name': player.name, 'team_id': team_id, 'role': role, 'sid': sid}
        self.registry.update(code, lambda s: s.players.append(entry))

        snapshot = self.repository.snapshot(code)
        teams = snapshot.pop('teams')
        players = snapshot.pop('players')
        self.broadcaster.send(sid, 'game-joined', {'game': snapshot, 'teams': teams, 'players': players})
        self.broadcaster.broadcast(game_room(code), 'player-joined', {
            'name': player.name,
            'teamId': team_id,
            'role': role,
        })
        current_app.logger.info(f"[join] game={code} player={player.name} team={team_id} role={role} sid={sid}")
        return {'playerId': player.id, 'game': snapshot, 'teams': teams, 'players': players}

    def update_score(self, team_id, points, code=None) -> int:
        change = _as_int(points)
        if change is None:
            raise InvalidInput('points must be an integer')
        tid, session = self._resolve_team(team_id, code)

        new_score = self.repository.increment_score(tid, change, game_id=session.game_id)
        if new_score is None:
            raise TeamNotFound(f'Team {tid} not found')

        def _apply(s):
            if tid in s.teams:
                s.teams[tid]['score'] = new_score
        self.registry.update(session.code, _apply)
        self.broadcaster.broadcast(game_room(session.code), 'score-updated', {
            'teamId': tid,
            'score': new_score,
            'change': change,
        })
        current_app.logger.info(f"[score] game={session.code} team={tid} change={change:+d} score={new_score}")
        return new_score

    def start_game(self, code) -> int:
        code = _normalize_code(code)
        if not self.repository.start_game(code):
            game = self.repository.get_game(code)
            if not game:
                raise GameNotFound(f'Game {code} not found')
            raise InvalidTransition(f'Game {code} is {game.status}; only a waiting game can start')

        def _started(s):
            s.status = 'playing'
            s.current_level = 1
        self._refresh(code, _started)
        self.broadcaster.broadcast(game_room(code), 'game-started', {'level': 1})
        current_app.logger.info(f"[start] game={code} level=1")
        return 1

    def advance_level(self, code) -> int:
        code = _normalize_code(code)
        level = self.repository.advance_level(code)
        if level is None:
            game = self.repository.get_game(code)
            if not game:
                raise GameNotFound(f'Game {code} not found')
            raise InvalidTransition(f'Game {code} is {game.status}; levels advance only while playing')

        def _advanced(s):
            s.current_level = max(s.current_level, level)
        self._refresh(code, _advanced)
        self.broadcaster.broadcast(game_room(code), 'level-changed', {'level': level})
        current_app.logger.info(f"[next_level] game={code} level={level}")
        return level

    def finish_game(self, code) -> Dict[str, Any]:
        code = _normalize_code(code)
        if not self.repository.finish_game(code):
            game = self.repository.get_game(code)
            if not game:
                raise GameNotFound(f'Game {code} not found')
            raise InvalidTransition(f'Game {code} is {game.status}; only a playing game can finish')

        game = self.repository.get_game(code)
        standings = [{'id': t.id, 'name': t.name, 'score': t.score} for t in self.repository.teams_for_game(game.id)]
        self.registry.discard(code)
        self.broadcaster.broadcast(game_room(code), 'game-finished', {'teams': standings})
        current_app.logger.info(f"[finish] game={code} level={game.current_level}")
        return {'teams': standings}

    def save_level_data(self, team_id, level, data, code=None) -> None:
        lvl = _as_int(level)
        if lvl not in LEVELS:
            raise InvalidLevel(f'Level must be one of {LEVELS}, got {level!r}')
        tid, session = self._resolve_team(team_id, code)
        team = self.repository.get_team(tid)
        if team is None or team.game_id != session.game_id:
            raise TeamNotFound(f'Team {tid} not found')

        self.repository.save_level_data(team, lvl, data)
        self.broadcaster.broadcast(team_room(tid), 'level-data-saved', {'level': lvl, 'data': data})
        current_app.logger.info(f"[level_data] game={session.code} team={tid} level={lvl}")

    def send_message(self, team_id, player_name, text) -> Dict[str, Any]:
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput('message is required')
        if not isinstance(player_name, str) or not player_name.strip():
            raise InvalidInput('playerName is required')
        tid, session = self._resolve_team(team_id)

        self.repository.add_message(tid, player_name, text)
        payload = {'playerName': player_name, 'message': text, 'timestamp': _utc_timestamp()}
        self.broadcaster.broadcast(team_room(tid), 'new-message', payload)
        current_app.logger.debug(f"[chat] game={session.code} team={tid} from={player_name}")
        return payload

    def team_messages(self, code, team_id, limit=50):
        tid, _ = self._resolve_team(team_id, code)
        return [m.to_dict() for m in self.repository.messages_for_team(tid, limit=limit)]

    def leave(self, sid):
        """Release everything bound to a connection that went away."""
        # Memberships go first so no later broadcast reaches this sid
        rooms = self.broadcaster.leave_all(sid)
        released = self.repository.deactivate_players(sid)
        for p in released:
            self.registry.update(p['code'], lambda s, pid=p['id']: s.remove_player(pid))
            self.broadcaster.broadcast(game_room(p['code']), 'player-left', {
                'name': p['name'],
                'teamId': p['team_id'],
                'role': p['role'],
            })
        if rooms or released:
            current_app.logger.info(f"[leave] sid={sid} rooms={sorted(rooms)} players={[p['id'] for p in released]}")
        return released

    def health(self) -> Dict[str, Any]:
        try:
            self.repository.ping()
            status, database = 'healthy', 'connected'
        except StorageUnavailable as exc:
            current_app.logger.error(f"[health] {exc.message}")
            status, database = 'unhealthy', 'disconnected'
        return {
            'status': status,
            'database': database,
            'websocket': 'ready',
            'timestamp': _utc_timestamp(),
        }
