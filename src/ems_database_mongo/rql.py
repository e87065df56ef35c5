"""
RQL (Resource Query Language) strings → :class:`AbstractQuery`.

Supported syntax::

    eq(name,alice)&gt(age,30)&sort(-age,+name)&limit(10,20)&select(name,age)
    name=alice&age=gt=30
    or(eq(status,open),eq(status,pending))
    in(tag,(red,blue))

Comparison operators map onto the Mongo match grammar (``lt`` → ``$lt``,
``out`` → ``$nin``, ``not`` → ``$nor`` ...). ``limit``, ``sort``,
``select`` and ``exclude`` are directives and only valid in the top-level
conjunction.

Values are typed: ``true``/``false``/``null``, integers and floats are
converted, everything else is a percent-decoded string. Explicit prefixes
(``string:``, ``number:``, ``boolean:``, ``date:``, ``re:``) override the
inference.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import unquote

from .exceptions import RQLSyntaxError
from .query import AbstractQuery, Projection, SortDirection

_SPECIAL = "()&|,="

_COMPARISON_OPS: dict[str, str] = {
    "ne": "$ne",
    "lt": "$lt",
    "le": "$lte",
    "lte": "$lte",
    "gt": "$gt",
    "ge": "$gte",
    "gte": "$gte",
}

_SET_OPS: dict[str, str] = {
    "in": "$in",
    "out": "$nin",
    "nin": "$nin",
}

_DIRECTIVES = frozenset({"limit", "sort", "select", "exclude"})

MAX_NESTING = 32

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


@dataclass
class _Token:
    kind: str
    text: str
    position: int


@dataclass
class _Call:
    name: str
    args: list[Any] = field(default_factory=list)
    position: int = 0


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in _SPECIAL:
            tokens.append(_Token(ch, ch, i))
            i += 1
            continue
        start = i
        while i < len(text) and text[i] not in _SPECIAL:
            i += 1
        tokens.append(_Token("word", text[start:i].strip(), start))
    return tokens


class _Parser:
    """Recursive-descent parser producing a tree of ``_Call`` nodes."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._pos = 0
        self._depth = 0

    def parse(self) -> _Call | None:
        if not self._tokens:
            return None
        node = self._parse_or()
        if self._peek() is not None:
            token = self._tokens[self._pos]
            raise RQLSyntaxError(f"Unexpected {token.text!r}", token.position)
        return node

    def _peek(self, kind: str | None = None) -> _Token | None:
        if self._pos >= len(self._tokens):
            return None
        token = self._tokens[self._pos]
        if kind is not None and token.kind != kind:
            return None
        return token

    def _expect(self, kind: str) -> _Token:
        token = self._peek()
        if token is None:
            raise RQLSyntaxError(
                f"Expected {kind!r} but the query ended", len(self._text)
            )
        if token.kind != kind:
            raise RQLSyntaxError(
                f"Expected {kind!r}, got {token.text!r}", token.position
            )
        self._pos += 1
        return token

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise RQLSyntaxError(
                f"Query nests deeper than {MAX_NESTING} levels",
                self._tokens[self._pos].position,
            )

    def _parse_or(self) -> _Call:
        first = self._parse_and()
        terms = [first]
        while self._peek("|"):
            self._pos += 1
            terms.append(self._parse_and())
        if len(terms) == 1:
            return first
        return _Call("or", terms, first.position)

    def _parse_and(self) -> _Call:
        first = self._parse_term()
        terms = [first]
        while self._peek("&"):
            self._pos += 1
            terms.append(self._parse_term())
        if len(terms) == 1:
            return first
        return _Call("and", terms, first.position)

    def _parse_term(self) -> _Call:
        if self._peek("("):
            self._descend()
            self._pos += 1
            node = self._parse_or()
            self._expect(")")
            self._depth -= 1
            return node
        name = self._expect("word")
        if self._peek("("):
            return _Call(name.text, self._parse_args(), name.position)
        if self._peek("="):
            return self._parse_fiql(name)
        raise RQLSyntaxError(f"Dangling term {name.text!r}", name.position)

    def _parse_fiql(self, name: _Token) -> _Call:
        self._expect("=")
        value = self._parse_arg()
        if self._peek("=") and isinstance(value, str):
            self._pos += 1
            return _Call(value, [name.text, self._parse_arg()], name.position)
        return _Call("eq", [name.text, value], name.position)

    def _parse_args(self) -> list[Any]:
        self._descend()
        self._expect("(")
        args: list[Any] = []
        if self._peek(")"):
            self._pos += 1
            self._depth -= 1
            return args
        args.append(self._parse_arg())
        while self._peek(","):
            self._pos += 1
            args.append(self._parse_arg())
        self._expect(")")
        self._depth -= 1
        return args

    def _parse_arg(self) -> Any:
        if self._peek("("):
            return self._parse_args()
        token = self._expect("word")
        if self._peek("("):
            return _Call(token.text, self._parse_args(), token.position)
        return token.text


# ── Value conversion ─────────────────────────────────────────────


def _to_number(text: str) -> int | float:
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    raise RQLSyntaxError(f"Invalid number {text!r}")


def _to_date(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise RQLSyntaxError(f"Invalid date {text!r}") from e


def _to_regex(text: str) -> re.Pattern[str]:
    try:
        return re.compile(text)
    except re.error as e:
        raise RQLSyntaxError(f"Invalid regular expression {text!r}: {e}") from e


_CONVERTERS = {
    "string": lambda text: text,
    "number": _to_number,
    "boolean": lambda text: text.lower() == "true",
    "date": _to_date,
    "re": _to_regex,
}


def convert_value(raw: Any) -> Any:
    """Convert one raw RQL argument to a Python value."""
    if isinstance(raw, list):
        return [convert_value(item) for item in raw]
    if isinstance(raw, _Call):
        raise RQLSyntaxError(
            f"Operator {raw.name!r} is not allowed as a value", raw.position
        )
    prefix, sep, rest = raw.partition(":")
    if sep and prefix in _CONVERTERS:
        return _CONVERTERS[prefix](unquote(rest))
    text = unquote(raw)
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if _INT_RE.match(text) or _FLOAT_RE.match(text):
        return _to_number(text)
    return text


def _field_name(call: _Call) -> str:
    if not call.args or not isinstance(call.args[0], str) or not call.args[0]:
        raise RQLSyntaxError(
            f"Operator {call.name!r} requires a field name", call.position
        )
    return unquote(call.args[0])


def _glob_to_regex(pattern: str) -> str:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "^" + "".join(parts) + "$"


# ── Compilation ──────────────────────────────────────────────────


def _combine(criteria: list[dict[str, Any]]) -> dict[str, Any]:
    criteria = [c for c in criteria if c]
    if not criteria:
        return {}
    if len(criteria) == 1:
        return criteria[0]
    seen: set[str] = set()
    for c in criteria:
        if seen & c.keys():
            return {"$and": criteria}
        seen |= c.keys()
    merged: dict[str, Any] = {}
    for c in criteria:
        merged.update(c)
    return merged


def _compile_condition(call: _Call) -> dict[str, Any]:
    name = call.name.lower()
    if name in _DIRECTIVES:
        raise RQLSyntaxError(
            f"{name}() is only allowed at the top level", call.position
        )
    if name == "and":
        return _combine([_compile_condition(_as_call(a)) for a in call.args])
    if name == "or":
        return {"$or": [_compile_condition(_as_call(a)) for a in call.args]}
    if name == "not":
        if len(call.args) != 1:
            raise RQLSyntaxError("not() takes exactly one condition", call.position)
        return {"$nor": [_compile_condition(_as_call(call.args[0]))]}

    field_name = _field_name(call)
    values = call.args[1:]
    if name == "exists":
        flag = convert_value(values[0]) if values else True
        return {field_name: {"$exists": bool(flag)}}
    if name in _SET_OPS:
        if len(values) == 1 and isinstance(values[0], list):
            items = convert_value(values[0])
        else:
            items = [convert_value(v) for v in values]
        return {field_name: {_SET_OPS[name]: items}}
    if len(values) != 1:
        raise RQLSyntaxError(
            f"Operator {name!r} takes a field and one value", call.position
        )
    value = convert_value(values[0])
    if name == "eq":
        return {field_name: value}
    if name in _COMPARISON_OPS:
        return {field_name: {_COMPARISON_OPS[name]: value}}
    if name == "like":
        if isinstance(value, re.Pattern):
            return {field_name: {"$regex": value.pattern}}
        return {field_name: {"$regex": _glob_to_regex(str(value))}}
    if name == "match":
        text = value.pattern if isinstance(value, re.Pattern) else str(value)
        return {field_name: {"$regex": text}}
    raise RQLSyntaxError(f"Unknown operator {call.name!r}", call.position)


def _as_call(node: Any) -> _Call:
    if not isinstance(node, _Call):
        raise RQLSyntaxError(f"Expected a condition, got {node!r}")
    return node


def _apply_directive(call: _Call, options: dict[str, Any]) -> None:
    name = call.name.lower()
    args = [a for a in call.args if not isinstance(a, _Call)]
    if name == "limit":
        if not args:
            raise RQLSyntaxError("limit() requires a count", call.position)
        count = convert_value(args[0])
        start = convert_value(args[1]) if len(args) > 1 else 0
        if not isinstance(count, int) or not isinstance(start, int):
            raise RQLSyntaxError("limit() arguments must be integers", call.position)
        options["limit"] = count
        options["skip"] = start
    elif name == "sort":
        entries = []
        for arg in args:
            text = unquote(str(arg))
            if text.startswith("-"):
                entries.append((text[1:], SortDirection.DESC))
            else:
                entries.append((text.lstrip("+"), SortDirection.ASC))
        options["sort"] = tuple(entries)
    elif name in ("select", "exclude"):
        fields = [unquote(str(a)) for a in args]
        negated = [f.startswith("-") for f in fields]
        if name == "exclude":
            options["projection"] = Projection.omit(*(f.lstrip("-") for f in fields))
        elif all(negated):
            options["projection"] = Projection.omit(*(f[1:] for f in fields))
        elif any(negated):
            raise RQLSyntaxError(
                "select() cannot mix included and excluded fields", call.position
            )
        else:
            options["projection"] = Projection.include(*(f.lstrip("+") for f in fields))


def parse_rql(text: str) -> AbstractQuery:
    """Parse an RQL string into an :class:`AbstractQuery`."""
    root = _Parser(text or "").parse()
    if root is None:
        return AbstractQuery()
    terms = root.args if root.name.lower() == "and" else [root]
    options: dict[str, Any] = {}
    criteria: list[dict[str, Any]] = []
    for term in terms:
        call = _as_call(term)
        if call.name.lower() in _DIRECTIVES:
            _apply_directive(call, options)
        else:
            criteria.append(_compile_condition(call))
    return AbstractQuery(filter_criteria=_combine(criteria), **options)
