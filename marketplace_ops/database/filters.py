"""
Row filters understood by DataAccessClient.

A filter is a plain value object so the same predicate can be logged, compared
in tests, and translated to the PostgREST builder (`.eq`, `.ilike`, `.or_` ...).
"""

from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Tuple, Union

# Characters PostgREST treats as syntax inside an or=(...) expression
_RESERVED = set(',.:()"\\ ')


@dataclass(frozen=True)
class Filter:
    column: str
    operator: str  # eq | neq | ilike | in | is
    value: Any

    def to_postgrest(self) -> str:
        """Render as `column.operator.value` for use inside an or() group."""
        if self.operator == "in":
            values = ",".join(quote_value(v) for v in self.value)
            return f"{self.column}.in.({values})"
        if self.operator == "is":
            return f"{self.column}.is.{'null' if self.value is None else str(self.value).lower()}"
        return f"{self.column}.{self.operator}.{quote_value(self.value)}"


@dataclass(frozen=True)
class AnyOf:
    filters: Tuple[Filter, ...]

    def to_postgrest(self) -> str:
        return ",".join(f.to_postgrest() for f in self.filters)


Condition = Union[Filter, AnyOf]


def quote_value(value: Any) -> str:
    text = str(value).lower() if isinstance(value, bool) else str(value)
    if any(ch in _RESERVED for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, "ilike", pattern)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


def is_null(column: str) -> Filter:
    return Filter(column, "is", None)


def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(tuple(filters))


def contains(term: str) -> str:
    """Substring pattern for ilike"""
    return f"%{term}%"


def apply_filters(query, conditions: Sequence[Condition]):
    """Chain conditions onto a postgrest request builder"""
    for condition in conditions:
        if isinstance(condition, AnyOf):
            query = query.or_(condition.to_postgrest())
        elif condition.operator == "eq":
            query = query.eq(condition.column, condition.value)
        elif condition.operator == "neq":
            query = query.neq(condition.column, condition.value)
        elif condition.operator == "ilike":
            query = query.ilike(condition.column, condition.value)
        elif condition.operator == "in":
            query = query.in_(condition.column, list(condition.value))
        elif condition.operator == "is":
            query = query.is_(condition.column, "null" if condition.value is None else condition.value)
        else:
            raise ValueError(f"Unsupported filter operator: {condition.operator}")
    return query


def describe(conditions: Sequence[Condition]) -> str:
    if not conditions:
        return "(all rows)"
    return " and ".join(
        f"or({c.to_postgrest()})" if isinstance(c, AnyOf) else c.to_postgrest()
        for c in conditions
    )
