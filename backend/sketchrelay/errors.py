class GameError(Exception):
    """Base exception for game-related errors."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.message}


class NotFound(GameError):
    """Game, player or thread does not exist."""
    status_code = 404


class Forbidden(GameError):
    """Authorization or state precondition violated."""
    status_code = 403


class QuotaExceeded(Forbidden):
    """User already administers too many unfinished games."""


class InvalidInput(GameError):
    """Malformed or out-of-bounds submission."""
    status_code = 400
