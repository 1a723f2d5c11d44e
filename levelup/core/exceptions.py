"""Exception types raised by the engine."""


class LevelUpError(Exception):
    """Base class for engine errors."""


class EmptyCatalogError(LevelUpError):
    """Raised when a session is given no items at all."""


class SessionNotInitializedError(LevelUpError):
    """Raised when a session is used before initialize()."""


class SessionTerminatedError(LevelUpError):
    """Raised when a terminated session is asked for more work."""

    def __init__(self, status: str, message: str | None = None):
        self.status = status
        super().__init__(message or f"Session already terminated ({status})")
