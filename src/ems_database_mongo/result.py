"""OperationResult — tagged success/failure outcome of a component operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from .exceptions import DatabaseComponentError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of exactly one operation.

    Usage::

        result = await component.get("users", user_id)
        if result.is_success:
            user = result.value
        elif result.kind is ErrorKind.NOT_FOUND:
            ...
    """

    value: T | None = None
    error: DatabaseComponentError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("OperationResult cannot carry both value and error")

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def success(cls, value: T) -> OperationResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: DatabaseComponentError) -> OperationResult[T]:
        return cls(error=error)

    # ── Accessors ────────────────────────────────────────────────

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Error kind of a failure, ``None`` on success."""
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return cast("T", self.value)

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"success": False, **self.error.to_dict()}
        return {"success": True, "value": self.value}

    def __bool__(self) -> bool:
        return self.is_success
