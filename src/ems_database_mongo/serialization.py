"""Python values <-> BSON-safe values (Decimal, UUID, nested containers)."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, cast
from uuid import UUID

from bson import Decimal128


def to_bson_value(value: Any) -> Any:
    """Convert Python types to BSON-safe types."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, Mapping):
        return {k: to_bson_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_bson_value(v) for v in value]
    return value


def from_bson_value(value: Any) -> Any:
    """Convert BSON types back to Python types."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, Mapping):
        return {k: from_bson_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_bson_value(v) for v in value]
    return value


def to_bson_document(doc: Mapping[str, Any]) -> dict[str, Any]:
    return cast("dict[str, Any]", to_bson_value(doc))


def from_bson_document(doc: Mapping[str, Any]) -> dict[str, Any]:
    return cast("dict[str, Any]", from_bson_value(doc))
