"""Filter expressions in the ``field:value`` query syntax.

A parsed expression is a :class:`MetadataFilter`: it can test a document's
stored fields directly (``matches``) and, where Chroma can express the same
condition, render a Chroma ``where`` clause (``to_where``).

Supported clauses::

    category:news            equality (numbers and true/false are typed)
    title:"exact phrase"     quoted equality
    -category:news           negation (also ``NOT category:news``)
    category:(news OR blog)  membership
    year:[2020 TO *]         inclusive range, ``{}`` for exclusive bounds
    summary:*                field present
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import FilterParseError


class MetadataFilter(ABC):
    """Predicate over a document's stored fields."""

    @abstractmethod
    def matches(self, document: Mapping[str, Any]) -> bool:
        ...

    @abstractmethod
    def to_where(self) -> Optional[Dict[str, Any]]:
        """Chroma ``where`` clause, or None when Chroma cannot express it."""

    @abstractmethod
    def fields(self) -> Tuple[str, ...]:
        ...

    @staticmethod
    def all_of(filters: Sequence["MetadataFilter"]) -> Optional["MetadataFilter"]:
        if not filters:
            return None
        if len(filters) == 1:
            return filters[0]
        return AllOf(tuple(filters))


def _values(stored: Any) -> List[Any]:
    if stored is None:
        return []
    if isinstance(stored, (list, tuple)):
        return [item for item in stored if item is not None]
    return [stored]


def _equal(stored: Any, expected: Any) -> bool:
    if stored == expected and type(stored) is not bool and type(expected) is not bool:
        return True
    if isinstance(stored, bool) or isinstance(expected, bool):
        return stored is expected
    return str(stored) == str(expected)


class FieldEquals(MetadataFilter):
    def __init__(self, field: str, value: Any, *, negate: bool = False) -> None:
        self.field = field
        self.value = value
        self.negate = negate

    def matches(self, document: Mapping[str, Any]) -> bool:
        hit = any(_equal(item, self.value) for item in _values(document.get(self.field)))
        return not hit if self.negate else hit

    def to_where(self) -> Optional[Dict[str, Any]]:
        return {self.field: {"$ne" if self.negate else "$eq": self.value}}

    def fields(self) -> Tuple[str, ...]:
        return (self.field,)

    def __repr__(self) -> str:
        return f"FieldEquals({self.field!r}, {self.value!r}, negate={self.negate})"


class FieldIn(MetadataFilter):
    def __init__(self, field: str, values: Sequence[Any], *, negate: bool = False) -> None:
        self.field = field
        self.values = list(values)
        self.negate = negate

    def matches(self, document: Mapping[str, Any]) -> bool:
        stored = _values(document.get(self.field))
        hit = any(_equal(item, value) for item in stored for value in self.values)
        return not hit if self.negate else hit

    def to_where(self) -> Optional[Dict[str, Any]]:
        return {self.field: {"$nin" if self.negate else "$in": list(self.values)}}

    def fields(self) -> Tuple[str, ...]:
        return (self.field,)

    def __repr__(self) -> str:
        return f"FieldIn({self.field!r}, {self.values!r}, negate={self.negate})"


class FieldRange(MetadataFilter):
    def __init__(
        self,
        field: str,
        lower: Any = None,
        upper: Any = None,
        *,
        include_lower: bool = True,
        include_upper: bool = True,
        negate: bool = False,
    ) -> None:
        self.field = field
        self.lower = lower
        self.upper = upper
        self.include_lower = include_lower
        self.include_upper = include_upper
        self.negate = negate

    def _in_range(self, value: Any) -> bool:
        try:
            if self.lower is not None:
                if value < self.lower or (value == self.lower and not self.include_lower):
                    return False
            if self.upper is not None:
                if value > self.upper or (value == self.upper and not self.include_upper):
                    return False
        except TypeError:
            return False
        return True

    def matches(self, document: Mapping[str, Any]) -> bool:
        hit = any(self._in_range(item) for item in _values(document.get(self.field)))
        return not hit if self.negate else hit

    def to_where(self) -> Optional[Dict[str, Any]]:
        if self.negate or (self.lower is None and self.upper is None):
            return None
        clauses: List[Dict[str, Any]] = []
        if self.lower is not None:
            clauses.append({self.field: {"$gte" if self.include_lower else "$gt": self.lower}})
        if self.upper is not None:
            clauses.append({self.field: {"$lte" if self.include_upper else "$lt": self.upper}})
        return clauses[0] if len(clauses) == 1 else {"$and": clauses}

    def fields(self) -> Tuple[str, ...]:
        return (self.field,)

    def __repr__(self) -> str:
        return f"FieldRange({self.field!r}, {self.lower!r}, {self.upper!r}, negate={self.negate})"


class FieldExists(MetadataFilter):
    def __init__(self, field: str, *, negate: bool = False) -> None:
        self.field = field
        self.negate = negate

    def matches(self, document: Mapping[str, Any]) -> bool:
        hit = bool(_values(document.get(self.field)))
        return not hit if self.negate else hit

    def to_where(self) -> Optional[Dict[str, Any]]:
        return None

    def fields(self) -> Tuple[str, ...]:
        return (self.field,)

    def __repr__(self) -> str:
        return f"FieldExists({self.field!r}, negate={self.negate})"


class AllOf(MetadataFilter):
    def __init__(self, filters: Tuple[MetadataFilter, ...]) -> None:
        self.filters = filters

    def matches(self, document: Mapping[str, Any]) -> bool:
        return all(item.matches(document) for item in self.filters)

    def to_where(self) -> Optional[Dict[str, Any]]:
        clauses = [item.to_where() for item in self.filters]
        if any(clause is None for clause in clauses):
            return None
        return {"$and": clauses}

    def fields(self) -> Tuple[str, ...]:
        names: List[str] = []
        for item in self.filters:
            for name in item.fields():
                if name not in names:
                    names.append(name)
        return tuple(names)

    def __repr__(self) -> str:
        return f"AllOf({list(self.filters)!r})"


_CLAUSE_RE = re.compile(r"^(?P<field>[A-Za-z_][\w.]*)\s*:\s*(?P<value>.+)$", re.DOTALL)
_RANGE_RE = re.compile(r"^(?P<open>[\[{])\s*(?P<lower>\S+)\s+TO\s+(?P<upper>\S+)\s*(?P<close>[\]}])$")
_OR_RE = re.compile(r"\s+OR\s+")
_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def _coerce(token: str) -> Any:
    if len(token) >= 2 and token[0] == token[-1] == '"':
        return token[1:-1]
    lowered = token.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_RE.match(token):
        return int(token)
    if _FLOAT_RE.match(token):
        return float(token)
    return token


def _parse_term(expression: str, token: str) -> Any:
    token = token.strip()
    if not token:
        raise FilterParseError(expression, "empty value")
    if token.startswith('"') != token.endswith('"') or (token == '"'):
        raise FilterParseError(expression, "unbalanced quotes")
    if not token.startswith('"') and re.search(r"\s", token):
        raise FilterParseError(expression, f"unquoted value {token!r} contains whitespace")
    return _coerce(token)


def parse_filter_expression(expression: str) -> MetadataFilter:
    """Parse one filter expression, raising :class:`FilterParseError`."""

    if expression is None:
        raise FilterParseError("", "empty expression")
    text = expression.strip()
    if not text:
        raise FilterParseError(expression, "empty expression")

    negate = False
    if text.startswith("-"):
        negate, text = True, text[1:].lstrip()
    elif text.startswith("NOT "):
        negate, text = True, text[4:].lstrip()

    match = _CLAUSE_RE.match(text)
    if not match:
        raise FilterParseError(expression, "expected 'field:value'")
    field = match.group("field")
    value = match.group("value").strip()

    if value == "*":
        return FieldExists(field, negate=negate)

    if value[0] in "[{":
        range_match = _RANGE_RE.match(value)
        if not range_match:
            raise FilterParseError(expression, "expected '[lower TO upper]'")
        lower = range_match.group("lower")
        upper = range_match.group("upper")
        return FieldRange(
            field,
            None if lower == "*" else _parse_term(expression, lower),
            None if upper == "*" else _parse_term(expression, upper),
            include_lower=range_match.group("open") == "[",
            include_upper=range_match.group("close") == "]",
            negate=negate,
        )

    if value[0] == "(":
        if not value.endswith(")"):
            raise FilterParseError(expression, "unbalanced parentheses")
        inner = value[1:-1].strip()
        if not inner:
            raise FilterParseError(expression, "empty value list")
        values = [_parse_term(expression, part) for part in _OR_RE.split(inner)]
        return FieldIn(field, values, negate=negate)

    if value[0] in "[]{}()":
        raise FilterParseError(expression, "unbalanced brackets")
    return FieldEquals(field, _parse_term(expression, value), negate=negate)
