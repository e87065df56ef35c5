"""DatabaseComponent — the database component contract over any backend.

Each operation resolves the live handle, validates and translates its
arguments, issues one backend call and folds the outcome into an
:class:`~ems_database_mongo.result.OperationResult`. Translation-layer
errors are detected before the backend is touched; backend failures are
wrapped in :class:`~ems_database_mongo.exceptions.BackendError` unchanged.

Update and delete acknowledge receipt of the request, not its effect: they
succeed even when no document matched.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from .config import DatabaseConfig
from .connection import ConnectionManager, ConnectionState
from .exceptions import (
    BackendError,
    DatabaseComponentError,
    DocumentNotFoundError,
    InvalidDocumentError,
)
from .hooks import HookChain, log_result_set
from .query import AbstractQuery
from .result import OperationResult
from .translator import QueryTranslator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .hooks import InstrumentationHook, ResultObserver
    from .ports import Document, IBackendClient, IBackendHandle, IIdentifierCodec

logger = logging.getLogger("ems_database.mongo.component")

T = TypeVar("T")


class DatabaseComponent:
    """Backend-agnostic implementation of ``IDatabaseComponent``."""

    def __init__(
        self,
        connection: ConnectionManager,
        translator: QueryTranslator,
        *,
        hooks: Iterable[InstrumentationHook] = (),
        result_observer: ResultObserver | None = None,
    ) -> None:
        self._connection = connection
        self._translator = translator
        self._hooks = HookChain(hooks)
        self._observe_results = result_observer or log_result_set

    @classmethod
    def create(
        cls,
        client: IBackendClient,
        codec: IIdentifierCodec,
        config: DatabaseConfig | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> DatabaseComponent:
        """Wire a component from a backend client and identifier codec."""
        connection = ConnectionManager(client, DatabaseConfig.from_mapping(config))
        return cls(connection, QueryTranslator(codec), **kwargs)

    @classmethod
    async def open(
        cls,
        client: IBackendClient,
        codec: IIdentifierCodec,
        config: DatabaseConfig | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> OperationResult[DatabaseComponent]:
        """Create and connect a component; connection failure is returned as a result."""
        try:
            component = cls.create(client, codec, config, **kwargs)
            await component.connect()
        except DatabaseComponentError as e:
            return OperationResult.failure(e)
        return OperationResult.success(component)

    # ── Lifecycle ────────────────────────────────────────────────

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def translator(self) -> QueryTranslator:
        return self._translator

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    async def connect(self) -> None:
        await self._connection.connect()

    async def disconnect(self) -> None:
        await self._connection.disconnect()

    # ── Operations ───────────────────────────────────────────────

    async def query(
        self, collection: str, query: Any = None
    ) -> OperationResult[list[Document]]:
        """Find documents matching an abstract query (or RQL / raw filter)."""

        async def run() -> list[Document]:
            handle = self._connection.handle
            abstract = AbstractQuery.coerce(query)
            if abstract.limit == 0:
                return []
            args = self._translator.build_find(abstract)
            docs = await self._call_backend(
                handle.find_many(collection, args.match, args.options)
            )
            docs = [self._present(doc) for doc in docs]
            self._report_results(collection, docs)
            return docs

        return await self._run("query", collection, run)

    async def insert(
        self, collection: str, documents: Sequence[Mapping[str, Any]]
    ) -> OperationResult[list[str]]:
        """Insert documents; returns their identifiers in input order."""

        async def run() -> list[str]:
            handle = self._connection.handle
            copies = self._prepare_documents(documents)
            native_ids = await self._call_backend(
                handle.insert_many(collection, copies)
            )
            if len(native_ids) != len(copies):
                raise BackendError(
                    f"Backend returned {len(native_ids)} identifier(s) "
                    f"for {len(copies)} document(s)"
                )
            return [self._translator.codec.format(i) for i in native_ids]

        return await self._run("insert", collection, run)

    async def update(
        self, collection: str, identifier: str, patch: Mapping[str, Any]
    ) -> OperationResult[bool]:
        """Apply *patch* to one document. Success means the request was accepted."""

        async def run() -> bool:
            handle = self._connection.handle
            match = self._translator.identifier_match(identifier)
            update = self._translator.build_patch(patch)
            await self._call_backend(handle.update_one(collection, match, update))
            return True

        return await self._run("update", collection, run, identifier=identifier)

    async def get(self, collection: str, identifier: str) -> OperationResult[Document]:
        """Load one document by identifier; ``NOT_FOUND`` when absent."""

        async def run() -> Document:
            handle = self._connection.handle
            match = self._translator.identifier_match(identifier)
            docs = await self._call_backend(
                handle.find_many(collection, match, {"limit": 1})
            )
            if not docs:
                raise DocumentNotFoundError(collection, identifier)
            return self._present(docs[0])

        return await self._run("get", collection, run, identifier=identifier)

    async def delete(self, collection: str, identifier: str) -> OperationResult[bool]:
        """Remove at most one document with *identifier*."""

        async def run() -> bool:
            handle = self._connection.handle
            match = self._translator.identifier_match(identifier)
            await self._call_backend(handle.delete_one(collection, match))
            return True

        return await self._run("delete", collection, run, identifier=identifier)

    async def clear(self, collection: str) -> OperationResult[bool]:
        """Remove every document in *collection*."""

        async def run() -> bool:
            handle: IBackendHandle = self._connection.handle
            await self._call_backend(handle.delete_many(collection, {}))
            return True

        return await self._run("clear", collection, run)

    # ── Internals ────────────────────────────────────────────────

    async def _run(
        self,
        operation: str,
        collection: str,
        fn: Callable[[], Awaitable[T]],
        **attributes: Any,
    ) -> OperationResult[T]:
        attrs = {"collection": collection, **attributes}
        try:
            value = await self._hooks.execute(operation, attrs, fn)
        except DatabaseComponentError as e:
            logger.debug("%s on %r failed: %s", operation, collection, e)
            return OperationResult.failure(e)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "%s on %r raised %s", operation, collection, e.__class__.__name__
            )
            return OperationResult.failure(BackendError.from_exception(e))
        return OperationResult.success(value)

    @staticmethod
    async def _call_backend(call: Awaitable[T]) -> T:
        try:
            return await call
        except DatabaseComponentError:
            raise
        except Exception as e:
            raise BackendError.from_exception(e) from e

    def _prepare_documents(
        self, documents: Sequence[Mapping[str, Any]]
    ) -> list[Document]:
        if isinstance(documents, (str, bytes, Mapping)) or not isinstance(
            documents, Sequence
        ):
            raise InvalidDocumentError("insert expects a sequence of documents")
        if not documents:
            raise InvalidDocumentError("insert expects at least one document")
        copies: list[Document] = []
        for index, doc in enumerate(documents):
            if not isinstance(doc, Mapping):
                raise InvalidDocumentError(
                    f"Document at index {index} is not a mapping"
                )
            copies.append(dict(doc))
        return copies

    def _present(self, doc: Document) -> Document:
        id_field = self._translator.id_field
        if id_field in doc:
            doc = dict(doc)
            doc[id_field] = self._translator.codec.format(doc[id_field])
        return doc

    def _report_results(self, collection: str, docs: list[Document]) -> None:
        try:
            self._observe_results(collection, docs)
        except Exception:  # noqa: BLE001
            logger.debug("Result observer failed", exc_info=True)
