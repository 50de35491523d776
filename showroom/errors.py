"""Error taxonomy for Showroom.

- ValidationError: bad user input, reported per field, operation not attempted
- StorageError: a gateway operation failed, surfaced without retry
- SubscriptionError: the change feed could not be (re)established
- AuthenticationError: admin operation without an active session
"""

from typing import Dict, Optional


class ShowroomError(Exception):
    """Base class for all Showroom errors."""


class ValidationError(ShowroomError):
    """Raised when user input fails validation.

    Attributes:
        errors: Mapping of field name to message
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        summary = ", ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(summary or "invalid input")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message})


class StorageError(ShowroomError):
    """Raised when the persistence gateway fails."""


class RecordNotFound(StorageError):
    """Raised when a record addressed by id does not exist."""

    def __init__(self, collection: str, record_id: int):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found")


class SubscriptionError(ShowroomError):
    """Raised or reported when a change-feed channel cannot be established."""

    def __init__(self, message: str, collection: Optional[str] = None):
        self.collection = collection
        super().__init__(message)


class AuthenticationError(ShowroomError):
    """Raised when admin credentials are rejected or no session is active."""
