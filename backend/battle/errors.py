"""Error taxonomy shared by the coordinator and the transport wrappers.

Each error carries the HTTP status it maps to; Socket.IO handlers only use
the message.
"""


class GameError(Exception):
    status_code = 400
    default_message = 'Game error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(GameError):
    status_code = 404
    default_message = 'Not found'


class GameNotFound(NotFound):
    default_message = 'Game not found'


class TeamNotFound(NotFound):
    default_message = 'Team not found'


class InvalidInput(GameError):
    status_code = 400
    default_message = 'Invalid input'


class InvalidSettings(InvalidInput):
    default_message = 'settings.teamCount must be an integer >= 1'


class InvalidTeam(InvalidInput):
    default_message = 'Team does not belong to this game'


class InvalidLevel(InvalidInput):
    default_message = 'Level must be 1, 2 or 3'


class Conflict(GameError):
    status_code = 409
    default_message = 'Conflict'


class CodeCollision(Conflict):
    default_message = 'Game code already in use'


class InvalidTransition(Conflict):
    default_message = 'Game is not in a state that allows this action'


class CodeSpaceExhausted(GameError):
    status_code = 503
    default_message = 'Could not allocate a unique game code'


class CorruptPayload(GameError):
    status_code = 500
    default_message = 'Stored game data is corrupt'


class StorageUnavailable(GameError):
    status_code = 503
    default_message = 'Storage unavailable'
