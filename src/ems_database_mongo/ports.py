"""Protocols for the database component and the backend it drives.

The host framework depends on :class:`IDatabaseComponent` only. Backends plug
in by providing an :class:`IBackendClient` (connection establishment), the
:class:`IBackendHandle` it returns, and an :class:`IIdentifierCodec` for
their native identifier type.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .result import OperationResult

Document = dict[str, Any]


@runtime_checkable
class IDatabaseComponent(Protocol):
    """Capability interface of a database component.

    Every operation takes the collection name first and resolves to exactly
    one :class:`~ems_database_mongo.result.OperationResult`.
    """

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def query(
        self, collection: str, query: Any = None
    ) -> OperationResult[list[Document]]: ...

    async def insert(
        self, collection: str, documents: Sequence[Mapping[str, Any]]
    ) -> OperationResult[list[str]]: ...

    async def update(
        self, collection: str, identifier: str, patch: Mapping[str, Any]
    ) -> OperationResult[bool]: ...

    async def get(
        self, collection: str, identifier: str
    ) -> OperationResult[Document]: ...

    async def delete(
        self, collection: str, identifier: str
    ) -> OperationResult[bool]: ...

    async def clear(self, collection: str) -> OperationResult[bool]: ...


@runtime_checkable
class IBackendHandle(Protocol):
    """A live backend connection, shared read-only by all operations."""

    async def find_many(
        self, collection: str, match: Mapping[str, Any], options: Mapping[str, Any]
    ) -> list[Document]: ...

    async def insert_many(
        self, collection: str, documents: Sequence[Document]
    ) -> list[Any]: ...

    async def update_one(
        self, collection: str, match: Mapping[str, Any], update: Mapping[str, Any]
    ) -> None: ...

    async def delete_one(self, collection: str, match: Mapping[str, Any]) -> None: ...

    async def delete_many(self, collection: str, match: Mapping[str, Any]) -> None: ...

    async def close(self) -> None: ...


@runtime_checkable
class IBackendClient(Protocol):
    """Establishes backend connections from a URL."""

    async def connect(self, url: str) -> IBackendHandle: ...


@runtime_checkable
class IIdentifierCodec(Protocol):
    """Converts opaque identifier strings to and from the native id type."""

    def parse(self, identifier: Any) -> Any:
        """Return the native identifier; raise ``InvalidIdentifierError``."""
        ...

    def format(self, native: Any) -> Any:
        """Return the caller-facing form of a native identifier."""
        ...

    def is_valid(self, identifier: Any) -> bool: ...
