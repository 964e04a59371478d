"""Domain Ports - Abstract Contracts for the Roster Core.

This module defines the Port interfaces (abstract contracts) that Adapters must implement.
Following Hexagonal Architecture, the Domain Core defines what it needs, not how it's provided.

Security Impact:
    - Ports keep credential verification behind a single black-box call
    - Storage failures surface as typed errors so no partial roster escapes
    - Identities leave adapters in canonical string form

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (MongoDB, JWT) implement these ports
    - Domain Core is isolated from the document store and token format
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, TypeVar, Union

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Services return a Result so the route layer can map each failure kind
    to its HTTP status without catching domain exceptions itself.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Public error message (only present if success=False)
        error_type: Failure kind (Unavailable, NotFound, Unauthenticated, ...)
        error_details: Additional error context (organization_id, operation, ...)

    Example:
        ```python
        result = roster_service.list_doctors_with_records(org_id, header)
        if result.is_success():
            return result.value
        log_error(result.error_type, result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Failure kind (e.g., "NotFound", "Forbidden")
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class RosterError(Exception):
    """Base exception for all roster-core errors."""
    pass


class StorageError(RosterError):
    """Raised when the document store fails an operation.

    Attributes:
        operation: The store operation that failed (find, count, ...)
        details: Additional error details (collection name, etc.)
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


class StorageUnavailableError(StorageError):
    """Raised when the document store cannot be reached at all."""
    pass


class InvalidIdentifierError(RosterError):
    """Raised when an identifier cannot be parsed into the store's native key.

    Attributes:
        value: The identifier that failed to parse
    """

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.value = value


class OrganizationNotFoundError(RosterError):
    """Raised when an organization identifier does not resolve."""

    def __init__(self, organization_id: str):
        super().__init__("organization not found")
        self.organization_id = organization_id


class InvalidCredentialError(RosterError):
    """Raised by a credential verifier for any unverifiable token.

    The reason is kept for debug logging only and never returned to callers.
    """
    pass


class AuthorizationError(RosterError):
    """Base for authentication and authorization denials.

    Attributes:
        public_message: The message safe to return to the caller
    """

    error_type = "Denied"

    def __init__(self, public_message: str):
        super().__init__(public_message)
        self.public_message = public_message


class UnauthenticatedError(AuthorizationError):
    """Missing, invalid or unusable credential."""

    error_type = "Unauthenticated"


class ForbiddenError(AuthorizationError):
    """Authenticated, but not the organization's administrator."""

    error_type = "Forbidden"


# ============================================================================
# Ports
# ============================================================================

class DocumentStorePort(ABC):
    """Abstract contract for the document store collaborator.

    Queries use the MongoDB filter dialect restricted to equality on
    (possibly dotted) field paths, ``$in`` and ``$or``.

    Documents returned by ``find`` and ``find_one`` must have every native
    key (``_id`` and any nested key values) converted to its canonical
    string form. Query values may carry native keys obtained from
    ``parse_key``.

    All methods except ``is_available``, ``parse_key`` and ``generate_key``
    raise ``StorageError`` on failure.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the store is configured and reachable."""
        pass

    @abstractmethod
    def find(self, collection: str, query: Optional[dict] = None) -> list[dict]:
        """Return all documents in ``collection`` matching ``query``."""
        pass

    @abstractmethod
    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        """Return the first document matching ``query`` or None."""
        pass

    @abstractmethod
    def count(self, collection: str, query: Optional[dict] = None) -> int:
        """Return the number of documents matching ``query``."""
        pass

    @abstractmethod
    def insert_many(self, collection: str, documents: Iterable[dict]) -> list[str]:
        """Insert documents and return their identities as strings."""
        pass

    @abstractmethod
    def parse_key(self, value: str) -> Any:
        """Parse a string identifier into the store's native key.

        Raises:
            InvalidIdentifierError: If ``value`` is not a valid key
        """
        pass

    @abstractmethod
    def generate_key(self) -> str:
        """Return a fresh identifier in canonical string form."""
        pass


class CredentialVerifierPort(ABC):
    """Abstract contract for the signed-token verifier.

    Used as a black box: ``verify(token) -> claims``.
    """

    @abstractmethod
    def verify(self, token: str) -> dict:
        """Verify ``token`` and return its claims.

        Raises:
            InvalidCredentialError: If the token is malformed, expired or tampered
        """
        pass
