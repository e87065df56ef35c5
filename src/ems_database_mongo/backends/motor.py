"""Motor (asyncio MongoDB driver) backend for :class:`DatabaseComponent`."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from ..component import DatabaseComponent
from ..config import DatabaseConfig
from ..exceptions import ConfigurationError, DatabaseConnectionError
from ..identifiers import ObjectIdCodec
from ..result import OperationResult
from ..serialization import from_bson_document, to_bson_document

if TYPE_CHECKING:
    from ..ports import Document

logger = logging.getLogger("ems_database.mongo.motor")


class MotorHandle:
    """Live Motor connection bound to one database."""

    def __init__(self, client: Any, database: Any) -> None:
        self._client = client
        self._database = database

    @property
    def database(self) -> Any:
        return self._database

    def _collection(self, name: str) -> Any:
        return self._database.get_collection(name)

    async def find_many(
        self, collection: str, match: Mapping[str, Any], options: Mapping[str, Any]
    ) -> list[Document]:
        cursor = self._collection(collection).find(to_bson_document(match), **options)
        return [from_bson_document(doc) async for doc in cursor]

    async def insert_many(
        self, collection: str, documents: Sequence[Document]
    ) -> list[Any]:
        result = await self._collection(collection).insert_many(
            [to_bson_document(doc) for doc in documents], ordered=True
        )
        return list(result.inserted_ids)

    async def update_one(
        self, collection: str, match: Mapping[str, Any], update: Mapping[str, Any]
    ) -> None:
        await self._collection(collection).update_one(
            to_bson_document(match), to_bson_document(update)
        )

    async def delete_one(self, collection: str, match: Mapping[str, Any]) -> None:
        await self._collection(collection).delete_one(to_bson_document(match))

    async def delete_many(self, collection: str, match: Mapping[str, Any]) -> None:
        await self._collection(collection).delete_many(to_bson_document(match))

    async def close(self) -> None:
        """Close the client (Motor's close() is sync)."""
        result = self._client.close()
        if inspect.isawaitable(result):
            await result


class MotorBackendClient:
    """Create Motor clients from a connection URL.

    Args:
        server_selection_timeout_ms: Driver server selection timeout.
        connect_timeout_ms: Driver socket connect timeout.
        ping: Verify the server answers before handing out the handle.
        **kwargs: Extra ``AsyncIOMotorClient`` options.
    """

    def __init__(
        self,
        *,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        ping: bool = True,
        **kwargs: Any,
    ) -> None:
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._ping = ping
        self._kwargs = kwargs

    async def connect(self, url: str) -> MotorHandle:
        try:
            client = AsyncIOMotorClient(
                url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
        except Exception as e:
            raise DatabaseConnectionError(str(e)) from e
        try:
            database = client.get_default_database()
            if self._ping:
                await client.admin.command("ping")
        except (PyMongoError, ValueError) as e:
            client.close()
            raise DatabaseConnectionError(str(e)) from e
        logger.debug("Motor client ready for database %r", database.name)
        return MotorHandle(client, database)


def _motor_client(
    config: DatabaseConfig, ping: bool, client_options: Mapping[str, Any] | None
) -> MotorBackendClient:
    return MotorBackendClient(
        server_selection_timeout_ms=config.server_selection_timeout_ms,
        connect_timeout_ms=config.connect_timeout_ms,
        ping=ping,
        **dict(client_options or {}),
    )


def create_mongo_component(
    config: DatabaseConfig | Mapping[str, Any] | None = None,
    *,
    ping: bool = True,
    client_options: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> DatabaseComponent:
    """Build an unconnected Mongo database component from component options."""
    cfg = DatabaseConfig.from_mapping(config)
    client = _motor_client(cfg, ping, client_options)
    return DatabaseComponent.create(client, ObjectIdCodec(), cfg, **kwargs)


async def open_mongo_component(
    config: DatabaseConfig | Mapping[str, Any] | None = None,
    *,
    ping: bool = True,
    client_options: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> OperationResult[DatabaseComponent]:
    """Build and connect a Mongo component; failures come back as a result."""
    try:
        cfg = DatabaseConfig.from_mapping(config)
    except ConfigurationError as e:
        return OperationResult.failure(e)
    client = _motor_client(cfg, ping, client_options)
    return await DatabaseComponent.open(client, ObjectIdCodec(), cfg, **kwargs)
