"""
Error taxonomy for the sign-up service.

Services and stores raise these; the API layer maps each one to an HTTP
status through `status_code` (see signups.api.errors). The membership engine
itself never raises.
"""

from typing import Optional

from fastapi import status


class SignupsError(Exception):
    """Base class for every error the service surfaces to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class GameNotFound(SignupsError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class GameAlreadyExists(SignupsError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} already exists")


class MembershipConflict(SignupsError):
    """Optimistic-concurrency retries exhausted. Safe for the caller to retry."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: str, attempts: int):
        self.game_id = game_id
        self.attempts = attempts
        super().__init__(
            f"Game {game_id} is under heavy contention, gave up after {attempts} attempts. Please try again."
        )


class InvalidInput(SignupsError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthenticated(SignupsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class StoreUnavailable(SignupsError):
    """Transient infrastructure failure talking to the game store."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Game store is temporarily unavailable"


class VersionConflict(SignupsError):
    """
    A conditional update lost the race: the stored version no longer matches.
    Consumed by the membership coordinator, which refetches and retries.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: str, expected_version: int):
        self.game_id = game_id
        self.expected_version = expected_version
        super().__init__(f"Game {game_id} changed since version {expected_version}")
