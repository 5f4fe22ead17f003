"""Game coordination services: join codes, session registry, rooms and
the coordinator that ties them to the repository.

HTTP routes and socket handlers import from here, keeping transport
concerns separated from the state synchronization rules.
"""

from .codes import CODE_ALPHABET, generate_game_code
from .coordinator import GameCoordinator
from .registry import GameSession, SessionRegistry
from .rooms import RoomBroadcaster, game_room, team_room

__all__ = [
    'CODE_ALPHABET',
    'GameCoordinator',
    'GameSession',
    'RoomBroadcaster',
    'SessionRegistry',
    'game_room',
    'generate_game_code',
    'team_room',
]
