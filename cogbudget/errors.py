"""
Error taxonomy for the cognitive budget engine.

ValidationError is local and never retried: the caller must fix its input.
StorageError covers every failure of an external store (activity log,
calendar, history), including timeouts. ConflictError is the StorageError
raised when another session wrote to the same user's ledger first.
"""


class CognitiveBudgetError(Exception):
    """Base class for engine errors."""


class ValidationError(CognitiveBudgetError, ValueError):
    """Invalid domain, cost, date or count."""


class StorageError(CognitiveBudgetError):
    """Backing store failed or timed out."""


class ConflictError(StorageError):
    """Ledger version moved underneath this session."""

    def __init__(self, user_id: str, expected: int, actual: int):
        self.user_id = user_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Ledger for {user_id} is at version {actual}, expected {expected} - "
            "refresh budget state and retry"
        )


__all__ = ["CognitiveBudgetError", "ConflictError", "StorageError", "ValidationError"]
