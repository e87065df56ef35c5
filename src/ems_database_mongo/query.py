"""
Abstract query: filter, pagination, ordering and projection.

``AbstractQuery`` is the backend-agnostic description of *what* a find
should return. The translator turns it into backend-native arguments; the
query itself never touches a driver.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import InvalidQueryError


class SortDirection(str, Enum):
    """Sort direction of one ordering key."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any) -> SortDirection:
        """Accept ``"asc"/"desc"``, ``1/-1`` and ``"+"/"-"``."""
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, bool):
            raise InvalidQueryError(f"Invalid sort direction: {value!r}")
        if isinstance(value, int):
            if value == 1:
                return cls.ASC
            if value == -1:
                return cls.DESC
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("asc", "ascending", "+", "1"):
                return cls.ASC
            if text in ("desc", "descending", "-", "-1"):
                return cls.DESC
        raise InvalidQueryError(f"Invalid sort direction: {value!r}")


@dataclass(frozen=True)
class Projection:
    """Field set to include (default) or exclude from returned documents."""

    fields: tuple[str, ...]
    exclude: bool = False

    @classmethod
    def include(cls, *fields: str) -> Projection:
        return cls(fields=tuple(fields))

    @classmethod
    def omit(cls, *fields: str) -> Projection:
        return cls(fields=tuple(fields), exclude=True)


def _check_count(name: str, value: Any, *, allow_none: bool) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQueryError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidQueryError(f"{name} must be non-negative, got {value}")


def _normalise_sort(sort: Iterable[Any]) -> tuple[tuple[str, SortDirection], ...]:
    entries: list[tuple[str, SortDirection]] = []
    for item in sort:
        if isinstance(item, str):
            if item.startswith("-"):
                entries.append((item[1:], SortDirection.DESC))
            else:
                entries.append((item.lstrip("+"), SortDirection.ASC))
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            entries.append((str(item[0]), SortDirection.parse(item[1])))
        else:
            raise InvalidQueryError(f"Invalid sort entry: {item!r}")
    for field_name, _ in entries:
        if not field_name:
            raise InvalidQueryError("Sort entry has an empty field name")
    return tuple(entries)


@dataclass(frozen=True)
class AbstractQuery:
    """
    Immutable find description.

    Attributes:
        filter_criteria: Field path → match constraint, in the backend's
            match grammar. Empty means "match everything".
        skip: Number of leading matches to drop.
        limit: Maximum number of documents; ``None`` means no cap.
        projection: Fields to include or exclude; ``None`` returns whole
            documents.
        sort: Ordered ``(field, direction)`` pairs; the first entry is the
            primary key. Strings like ``"-created"`` are accepted on input.
    """

    filter_criteria: Mapping[str, Any] = field(default_factory=dict)
    skip: int = 0
    limit: int | None = None
    projection: Projection | None = None
    sort: tuple[tuple[str, SortDirection], ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.filter_criteria, Mapping):
            raise InvalidQueryError("filter_criteria must be a mapping")
        _check_count("skip", self.skip, allow_none=False)
        _check_count("limit", self.limit, allow_none=True)
        if self.projection is not None and not isinstance(
            self.projection, Projection
        ):
            object.__setattr__(
                self, "projection", Projection.include(*self.projection)
            )
        object.__setattr__(self, "sort", _normalise_sort(self.sort))

    def with_filter(self, criteria: Mapping[str, Any]) -> AbstractQuery:
        """Return a copy with the filter replaced."""
        return AbstractQuery(
            filter_criteria=dict(criteria),
            skip=self.skip,
            limit=self.limit,
            projection=self.projection,
            sort=self.sort,
        )

    def with_pagination(
        self,
        limit: int | None = None,
        skip: int | None = None,
    ) -> AbstractQuery:
        """Return a copy with updated pagination parameters.

        ``None`` keeps the current value; use :meth:`without_limit` to drop
        an existing limit.
        """
        return AbstractQuery(
            filter_criteria=self.filter_criteria,
            skip=skip if skip is not None else self.skip,
            limit=limit if limit is not None else self.limit,
            projection=self.projection,
            sort=self.sort,
        )

    def without_limit(self) -> AbstractQuery:
        """Return a copy with no limit."""
        return AbstractQuery(
            filter_criteria=self.filter_criteria,
            skip=self.skip,
            limit=None,
            projection=self.projection,
            sort=self.sort,
        )

    def with_sort(self, *entries: Any) -> AbstractQuery:
        """Return a copy with updated ordering."""
        return AbstractQuery(
            filter_criteria=self.filter_criteria,
            skip=self.skip,
            limit=self.limit,
            projection=self.projection,
            sort=tuple(entries),
        )

    def with_projection(self, projection: Projection | None) -> AbstractQuery:
        """Return a copy with the projection replaced."""
        return AbstractQuery(
            filter_criteria=self.filter_criteria,
            skip=self.skip,
            limit=self.limit,
            projection=projection,
            sort=self.sort,
        )

    @classmethod
    def from_rql(cls, text: str) -> AbstractQuery:
        """Parse an RQL query string."""
        from .rql import parse_rql

        return parse_rql(text)

    @classmethod
    def coerce(cls, value: Any) -> AbstractQuery:
        """Accept a query, an RQL string, a raw filter mapping or ``None``."""
        if value is None:
            return cls()
        if isinstance(value, AbstractQuery):
            return value
        if isinstance(value, str):
            return cls.from_rql(value)
        if isinstance(value, Mapping):
            return cls(filter_criteria=dict(value))
        raise InvalidQueryError(
            f"Unsupported query type: {value.__class__.__name__}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary."""
        result: dict[str, Any] = {}
        if self.filter_criteria:
            result["filter"] = dict(self.filter_criteria)
        if self.skip:
            result["skip"] = self.skip
        if self.limit is not None:
            result["limit"] = self.limit
        if self.sort:
            result["sort"] = [(f, d.value) for f, d in self.sort]
        if self.projection is not None:
            key = "exclude" if self.projection.exclude else "select"
            result[key] = list(self.projection.fields)
        return result
