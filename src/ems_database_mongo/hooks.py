"""Instrumentation hooks and result observers for component operations."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .ports import Document

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

logger = logging.getLogger("ems_database.mongo.hooks")


@runtime_checkable
class InstrumentationHook(Protocol):
    """Protocol for instrumentation hooks (tracing, metrics, logging)."""

    async def __call__(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Wrap an operation with instrumentation."""
        ...


ResultObserver = Callable[[str, list[Document]], None]


class HookChain:
    """Ordered hooks wrapped around every operation; the first hook is outermost."""

    def __init__(self, hooks: Iterable[InstrumentationHook] = ()) -> None:
        self._hooks: list[InstrumentationHook] = list(hooks)

    def add(self, hook: InstrumentationHook) -> None:
        self._hooks.append(hook)

    def __len__(self) -> int:
        return len(self._hooks)

    async def execute(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        if not self._hooks:
            return await next_handler()

        async def pipeline(index: int = 0) -> Any:
            if index >= len(self._hooks):
                return await next_handler()
            return await self._hooks[index](
                operation,
                attributes,
                lambda: pipeline(index + 1),
            )

        return await pipeline()


class LoggingHook:
    """Emits one JSON log entry per operation: name, collection, outcome, duration."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger("ems_database.mongo.operations")

    async def __call__(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        start = time.monotonic()
        outcome = "success"
        try:
            return await next_handler()
        except Exception:
            outcome = "error"
            raise
        finally:
            try:
                entry = {
                    "operation": operation,
                    "collection": attributes.get("collection"),
                    "outcome": outcome,
                    "duration_ms": round((time.monotonic() - start) * 1000, 2),
                }
                self._log.info(json.dumps(entry, default=str))
            except Exception:  # noqa: BLE001
                logger.debug("Failed to emit operation log entry", exc_info=True)


def log_result_set(collection: str, documents: list[Document]) -> None:
    """Default result observer: log the raw result set at DEBUG."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Query on %r returned %d document(s): %r",
            collection,
            len(documents),
            documents,
        )
