"""Error taxonomy shared by the engine, the backends and the HTTP layer."""
from typing import Dict, Optional, Type

from temporalio.exceptions import ApplicationError


class GameError(Exception):
    """Base class for failures surfaced to callers.

    ``category`` is a stable slug callers can branch on; ``http_status`` is
    the status code the HTTP layer answers with.
    """
    category = 'error'
    http_status = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_application_error(self) -> ApplicationError:
        """Convert to a Temporal failure that crosses the workflow boundary."""
        return ApplicationError(
            self.message,
            type=self.category,
            non_retryable=True,
        )

    @staticmethod
    def from_application_error(error: ApplicationError) -> 'GameError':
        """Rebuild the original error from a Temporal failure."""
        error_class = _BY_CATEGORY.get(error.type or '')
        if error_class is None:
            return InternalError()
        return error_class(error.message)


class NotFound(GameError):
    category = 'not_found'
    http_status = 404


class InvalidInput(GameError):
    category = 'bad_request'
    http_status = 400


class Conflict(GameError):
    """Move attempted on a game that is no longer active."""
    category = 'conflict'
    http_status = 409


class InvalidTransition(GameError):
    """Action not permitted from the cell's current status."""
    category = 'invalid_transition'
    http_status = 422


class LockTimeout(GameError):
    """The game's exclusive hold could not be acquired in time."""
    category = 'timeout'
    http_status = 503
    retryable = True


class InternalError(GameError):
    category = 'internal_error'
    http_status = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or 'Internal server error')


_BY_CATEGORY: Dict[str, Type[GameError]] = {
    error_class.category: error_class
    for error_class in (NotFound, InvalidInput, Conflict, InvalidTransition, LockTimeout, InternalError)
}
