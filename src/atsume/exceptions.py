"""Exceptions raised by the tournament engine."""


class AtsumeError(Exception):
    """Base class for all tournament engine errors."""


class ValidationError(AtsumeError):
    """Raised for caller-correctable input errors (team counts, scores, settings)."""


class PairingError(ValidationError):
    """Raised when no valid pairing can be produced for the given teams."""


class NotFoundError(AtsumeError):
    """Raised when a tournament or match id does not exist."""


class TournamentStateError(AtsumeError):
    """Raised when the tournament is in the wrong state for the requested operation."""


class StoreError(AtsumeError):
    """Raised when the data store cannot be read, written or locked."""
