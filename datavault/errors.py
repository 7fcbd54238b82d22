"""Domain error taxonomy.

Every error carries a non-sensitive public message. ``NotFound`` never
reveals whether a record is missing or owned by someone else.
"""

from typing import Any


class DataVaultError(Exception):
    """Base exception for all DataVault operations.

    Attributes:
        message: Message safe to show to the caller.
        retryable: Whether repeating the call may succeed.
    """

    default_message = "Operation failed"
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(DataVaultError):
    """Raised when a record does not exist or belongs to another owner."""

    default_message = "Resource not found"

    def __init__(self, entity: str | None = None) -> None:
        super().__init__(f"{entity} not found" if entity else None)


class InvalidTransition(DataVaultError):
    """Raised when a consent transition is a rejected no-op."""

    default_message = "Invalid state transition"


class DataInactive(DataVaultError):
    """Raised when an operation targets erased (inactive) data."""

    default_message = "Data has been deleted"


class ValidationFailed(DataVaultError):
    """Raised when input is missing a required field or is malformed.

    Attributes:
        errors: Per-field error details, when available.
    """

    default_message = "Invalid input"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []


class StoreUnavailable(DataVaultError):
    """Raised when the durable store cannot be reached or times out."""

    default_message = "Storage temporarily unavailable, please retry"
    retryable = True


class AuditWriteFailed(DataVaultError):
    """Raised when an audit entry could not be appended."""

    default_message = "Audit entry could not be recorded"


class AppendOnlyViolation(DataVaultError):
    """Raised when something attempts to modify or remove an audit entry."""

    default_message = "Audit entries are append-only"


class TransformIntegrityError(DataVaultError):
    """Raised when a stored secret cannot be reversed to its plaintext."""

    default_message = "Stored secret failed integrity check"
