"""ConnectionManager — backend handle lifecycle for one component."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import DatabaseConnectionError, NotConnectedError

if TYPE_CHECKING:
    from .config import DatabaseConfig
    from .ports import IBackendClient, IBackendHandle

logger = logging.getLogger("ems_database.mongo.connection")


class ConnectionState(str, Enum):
    """Lifecycle states of a :class:`ConnectionManager`."""

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    FAILED = "failed"


class ConnectionManager:
    """Own exactly one backend handle: establish, expose, tear down.

    ``UNINITIALIZED → CONNECTING → CONNECTED → CLOSED``. A failed attempt
    moves to ``FAILED``; both ``CLOSED`` and ``FAILED`` are terminal.
    """

    def __init__(self, client: IBackendClient, config: DatabaseConfig) -> None:
        self._client = client
        self._config = config
        self._handle: IBackendHandle | None = None
        self._state = ConnectionState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def handle(self) -> IBackendHandle:
        """Return the live handle; raises if not connected."""
        if self._state is not ConnectionState.CONNECTED or self._handle is None:
            raise NotConnectedError(
                f"Database connection is {self._state.value}; no handle available"
            )
        return self._handle

    async def connect(self) -> IBackendHandle:
        """Establish the handle. Idempotent; concurrent callers share one attempt."""
        async with self._lock:
            if self._state is ConnectionState.CONNECTED and self._handle is not None:
                return self._handle
            if self._state in (ConnectionState.CLOSED, ConnectionState.FAILED):
                raise DatabaseConnectionError(
                    f"Connection is {self._state.value} and cannot be reopened"
                )
            self._state = ConnectionState.CONNECTING
            logger.info("Connecting to %s", self.url)
            try:
                handle = await self._client.connect(self.url)
            except Exception as e:
                self._state = ConnectionState.FAILED
                logger.error("Connection to %s failed: %s", self.url, e)
                if isinstance(e, DatabaseConnectionError):
                    raise
                raise DatabaseConnectionError(str(e)) from e
            self._handle = handle
            self._state = ConnectionState.CONNECTED
            logger.info("Connected to %s", self.url)
            return handle

    def start(self) -> asyncio.Task[IBackendHandle]:
        """Schedule :meth:`connect` on the running loop and return the task."""
        task = asyncio.get_running_loop().create_task(self.connect())
        task.add_done_callback(self._on_start_done)
        return task

    def _on_start_done(self, task: asyncio.Task[IBackendHandle]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background connect failed: %s", exc)

    async def disconnect(self) -> None:
        """Close the handle. Idempotent."""
        async with self._lock:
            handle, self._handle = self._handle, None
            previous, self._state = self._state, ConnectionState.CLOSED
            if handle is None:
                return
            logger.info("Closing connection to %s (was %s)", self.url, previous.value)
            await handle.close()
