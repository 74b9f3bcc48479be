"""Custom exception classes for the application."""

from __future__ import annotations

from collections.abc import Iterable


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class InsufficientEntrantsError(ValidationError):
    """Raised when an elimination bracket has fewer than two entrants."""

    def __init__(self, count: int, minimum: int = 2):
        """Initialize the error."""
        super().__init__(
            f"At least {minimum} players are needed for an elimination "
            f"tournament (got {count})."
        )
        self.count = count


class InsufficientTeamsError(ValidationError):
    """Raised when a round robin has fewer than two valid teams."""

    def __init__(self, count: int, minimum: int = 2):
        """Initialize the error."""
        super().__init__(
            f"At least {minimum} teams are needed for a round robin "
            f"tournament (got {count})."
        )
        self.count = count


class InvalidTeamSizeError(ValidationError):
    """Raised when one or more teams do not have the required roster size."""

    def __init__(self, teams: Iterable[str], size: int = 5):
        """Initialize the error.

        Args:
            teams: Names (or ids) of the offending teams.
            size: The required number of members.
        """
        self.teams = list(teams)
        super().__init__(
            f"All teams must have exactly {size} players: {', '.join(self.teams)}."
        )


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class ConcurrentModificationError(AppError):
    """Raised when a tournament changed since the caller last read it."""

    def __init__(self, expected: int, actual: int):
        """Initialize the error."""
        super().__init__(
            f"Tournament was modified concurrently (expected revision "
            f"{expected}, found {actual}). Reload and try again.",
            409,
        )
        self.expected = expected
        self.actual = actual


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class TournamentNotFoundError(NotFoundError):
    """Raised when a tournament document does not exist."""

    def __init__(self, tournament_id: str):
        """Initialize the error."""
        super().__init__(f"Tournament {tournament_id} not found.")
        self.tournament_id = tournament_id


class MatchNotFoundError(NotFoundError):
    """Raised when no matchup matches the given key."""

    def __init__(self, key):
        """Initialize the error."""
        super().__init__(f"Matchup not found: {key}.")
        self.key = key


class PersistenceError(AppError):
    """Raised when the document store fails to read or write."""

    def __init__(self, message="The tournament store is unavailable. Please retry."):
        """Initialize the error."""
        super().__init__(message, 503)


class InvariantViolation(AppError):
    """Raised when the ledger is found in a state that should be unreachable."""

    def __init__(self, message="Tournament ledger is inconsistent."):
        """Initialize the error."""
        super().__init__(message, 500)
