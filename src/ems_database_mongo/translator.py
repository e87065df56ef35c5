"""QueryTranslator — abstract query → backend-native find arguments.

Translation is structural: the filter is copied as-is into the backend's
match grammar. The only value rewrite is identifier conversion, delegated
to the injected :class:`~ems_database_mongo.ports.IIdentifierCodec`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidDocumentError
from .query import AbstractQuery, Projection, SortDirection

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .ports import IIdentifierCodec

_LOGICAL_OPS = ("$and", "$or", "$nor")
_SCALAR_ID_OPS = ("$eq", "$ne")
_LIST_ID_OPS = ("$in", "$nin")


@dataclass(frozen=True)
class FindArguments:
    """Native match document plus find options (only present keys)."""

    match: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)


class QueryTranslator:
    """Builds match documents, sort lists, projections and update documents."""

    def __init__(self, codec: IIdentifierCodec, *, id_field: str = "_id") -> None:
        self._codec = codec
        self._id_field = id_field

    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def codec(self) -> IIdentifierCodec:
        return self._codec

    # ── Match ────────────────────────────────────────────────────

    def build_match(self, criteria: Mapping[str, Any] | None) -> dict[str, Any]:
        """Copy *criteria* 1:1, converting identifier values."""
        if not criteria:
            return {}
        match: dict[str, Any] = {}
        for key, value in criteria.items():
            if key in _LOGICAL_OPS and isinstance(value, (list, tuple)):
                match[key] = [
                    self.build_match(c) if isinstance(c, Mapping) else c
                    for c in value
                ]
            elif key == self._id_field:
                match[key] = self._convert_id_constraint(value)
            else:
                match[key] = value
        return match

    def _convert_id(self, value: Any) -> Any:
        if isinstance(value, str) and self._codec.is_valid(value):
            return self._codec.parse(value)
        return value

    def _convert_id_constraint(self, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return self._convert_id(value)
        converted: dict[str, Any] = {}
        for op, operand in value.items():
            if op in _SCALAR_ID_OPS:
                converted[op] = self._convert_id(operand)
            elif op in _LIST_ID_OPS and isinstance(operand, (list, tuple)):
                converted[op] = [self._convert_id(v) for v in operand]
            else:
                converted[op] = operand
        return converted

    def identifier_match(self, identifier: Any) -> dict[str, Any]:
        """Match exactly one identifier; raises ``InvalidIdentifierError``."""
        return {self._id_field: self._codec.parse(identifier)}

    # ── Options ──────────────────────────────────────────────────

    def build_sort(
        self,
        sort: Sequence[tuple[str, SortDirection | str | int]] | Sequence[str] | None,
    ) -> list[tuple[str, int]]:
        """Build ordered ``[(field, 1|-1)]``; the first entry is the primary key.

        Accepts either ``[(field, direction)]`` or ``["-field", "field"]``.
        """
        if not sort:
            return []
        result: list[tuple[str, int]] = []
        for item in sort:
            if isinstance(item, tuple):
                field_name, direction = item[0], SortDirection.parse(item[1])
                order = -1 if direction is SortDirection.DESC else 1
                result.append((field_name, order))
            elif isinstance(item, str):
                if item.startswith("-"):
                    result.append((item[1:], -1))
                else:
                    result.append((item, 1))
        return result

    def build_projection(self, projection: Projection | None) -> dict[str, int] | None:
        """Build ``{field: 1}`` (include) or ``{field: 0}`` (exclude)."""
        if projection is None or not projection.fields:
            return None
        flag = 0 if projection.exclude else 1
        return dict.fromkeys(projection.fields, flag)

    def build_find(self, query: AbstractQuery) -> FindArguments:
        """Translate a whole query. Absent options are omitted, not zeroed."""
        options: dict[str, Any] = {}
        if query.skip:
            options["skip"] = query.skip
        if query.limit is not None:
            options["limit"] = query.limit
        sort_list = self.build_sort(query.sort)
        if sort_list:
            options["sort"] = sort_list
        projection = self.build_projection(query.projection)
        if projection is not None:
            options["projection"] = projection
        match = self.build_match(query.filter_criteria)
        return FindArguments(match=match, options=options)

    # ── Updates ──────────────────────────────────────────────────

    def build_patch(self, patch: Mapping[str, Any]) -> dict[str, Any]:
        """Wrap field values in ``$set``; operator documents pass through."""
        if not isinstance(patch, Mapping) or not patch:
            raise InvalidDocumentError("Update patch must be a non-empty mapping")
        keys = [str(k) for k in patch]
        if all(k.startswith("$") for k in keys):
            return dict(patch)
        if any(k.startswith("$") for k in keys):
            raise InvalidDocumentError(
                "Update patch cannot mix operators and plain fields"
            )
        return {"$set": dict(patch)}
