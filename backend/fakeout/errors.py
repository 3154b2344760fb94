"""Error types shared by the HTTP routes, socket handlers and game services."""


class GameError(Exception):
    """A request the caller can be told about.

    Carries the user-facing message and the HTTP status the routes answer with.
    Socket handlers send the same message back as an ``errorMessage`` event.
    """

    status_code = 400
    default_message = 'Invalid request.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message}


class InvalidRequest(GameError):
    status_code = 400
    default_message = 'Invalid request.'


class GameNotFound(GameError):
    status_code = 404
    default_message = 'Game not found.'


class GameAlreadyStarted(GameError):
    status_code = 403
    default_message = 'Game has already started.'


class NotAuthorized(GameError):
    status_code = 403
    default_message = 'Only the host may start the game.'


class NotEnoughPlayers(GameError):
    status_code = 400
    default_message = 'Not enough players to start.'


class SessionFull(GameError):
    status_code = 403
    default_message = 'This game is full.'


class SessionAborted(Exception):
    """Raised inside an orchestration task when every player has left."""


class RoundInvariantError(RuntimeError):
    """Raised when a session would hold two active round contexts."""
