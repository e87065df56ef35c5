"""Exception hierarchy for the database component.

Every error carries an :class:`ErrorKind` so that operations can fold it
into an :class:`~ems_database_mongo.result.OperationResult` and callers can
branch on the kind without importing concrete classes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    """Failure kinds reported by component operations."""

    NOT_CONNECTED = "not_connected"
    INVALID_IDENTIFIER = "invalid_identifier"
    NOT_FOUND = "not_found"
    BACKEND_ERROR = "backend_error"
    CONNECTION_ERROR = "connection_error"
    INVALID_QUERY = "invalid_query"
    INVALID_DOCUMENT = "invalid_document"
    CONFIGURATION_ERROR = "configuration_error"


class DatabaseComponentError(Exception):
    """Root exception for the database component."""

    kind: ClassVar[ErrorKind] = ErrorKind.BACKEND_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": str(self),
        }


class NotConnectedError(DatabaseComponentError):
    """Raised when an operation runs outside the connection's lifetime."""

    kind = ErrorKind.NOT_CONNECTED


class DatabaseConnectionError(DatabaseComponentError):
    """Raised when the backend connection cannot be established."""

    kind = ErrorKind.CONNECTION_ERROR


class InvalidIdentifierError(DatabaseComponentError):
    """Raised when an identifier cannot be converted to the native form."""

    kind = ErrorKind.INVALID_IDENTIFIER

    def __init__(self, identifier: object) -> None:
        self.identifier = identifier
        super().__init__(f"Invalid document identifier {identifier!r}")


class DocumentNotFoundError(DatabaseComponentError):
    """Raised when a lookup by identifier matches no document."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, collection: str, identifier: object) -> None:
        self.collection = collection
        self.identifier = identifier
        super().__init__(
            f'Failed to find document with ID "{identifier}" in {collection!r}.'
        )


class BackendError(DatabaseComponentError):
    """Opaque wrapper around a failure reported by the backend.

    The original exception is kept on ``cause`` (and as ``__cause__`` when
    raised with ``from``); it is never interpreted or retried.
    """

    kind = ErrorKind.BACKEND_ERROR

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> BackendError:
        return cls(str(exc) or exc.__class__.__name__, cause=exc)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.cause is not None:
            data["cause"] = self.cause.__class__.__name__
        return data


class InvalidQueryError(DatabaseComponentError):
    """Raised when an abstract query is malformed."""

    kind = ErrorKind.INVALID_QUERY


class RQLSyntaxError(InvalidQueryError):
    """Raised when an RQL string cannot be parsed."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


class InvalidDocumentError(DatabaseComponentError):
    """Raised when documents or patches handed to an operation are unusable."""

    kind = ErrorKind.INVALID_DOCUMENT


class ConfigurationError(DatabaseComponentError):
    """Raised when component configuration is invalid."""

    kind = ErrorKind.CONFIGURATION_ERROR
