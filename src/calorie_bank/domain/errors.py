"""Error types raised by the calorie bank."""


class CalorieBankError(Exception):
    """Base class for calorie bank errors."""


class ConfigurationMissingError(CalorieBankError):
    """Raised when an operation needs an active weekly goal and none exists."""


class InvalidEntryError(CalorieBankError, ValueError):
    """Raised when logged input is out of range."""


class NotFoundError(CalorieBankError):
    """Raised when an event, plan, meal or session does not exist."""


class AlreadyPlannedError(CalorieBankError):
    """Raised when a recovery plan already exists for an event."""


class SessionConflictError(CalorieBankError):
    """Raised when a recovery session is started while another is active."""


class PersistenceError(CalorieBankError):
    """Raised when loading or saving the snapshot fails."""


class CorruptStateError(PersistenceError):
    """Raised when a persisted snapshot does not decode to a valid state."""


class SuggestionError(CalorieBankError):
    """Raised when activity suggestions cannot be produced."""
