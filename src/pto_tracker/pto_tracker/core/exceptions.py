class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed, missing or out of range."""


class PreconditionError(DomainError):
    """Raised when an operation is invoked on the wrong record type or state."""


class InvalidStateError(DomainError):
    """Raised when a state-machine transition is rejected."""


class ConflictError(InvalidStateError):
    """Raised when a compare-and-set update finds a different stored value."""


class NotFoundError(DomainError):
    """Raised when a referenced entity is absent."""


class NotReadyError(DomainError):
    """Raised when identity or the record store is unavailable."""


class OperationCancelledError(NotReadyError):
    """Raised when a caller-supplied cancel signal was set."""


class PersistenceError(DomainError):
    """Raised when a store read/write fails."""
