"""ObjectIdCodec — document identifier strings ↔ ``bson.ObjectId``."""

from __future__ import annotations

from typing import Any

from bson import ObjectId

from .exceptions import InvalidIdentifierError


class ObjectIdCodec:
    """Identifier codec for MongoDB's native 12-byte object ids."""

    def is_valid(self, identifier: Any) -> bool:
        if isinstance(identifier, ObjectId):
            return True
        return isinstance(identifier, str) and ObjectId.is_valid(identifier)

    def parse(self, identifier: Any) -> ObjectId:
        if isinstance(identifier, ObjectId):
            return identifier
        if not self.is_valid(identifier):
            raise InvalidIdentifierError(identifier)
        return ObjectId(identifier)

    def format(self, native: Any) -> Any:
        # Caller-supplied non-ObjectId ids are returned untouched.
        if isinstance(native, ObjectId):
            return str(native)
        return native
