"""Store query predicates.

The core only builds predicates; stores evaluate them with ``matches``.
Fields are read from plain record dicts. A missing field behaves like
``None``.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


class Predicate:
    def matches(self, doc: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "And":
        return And((self, other))

    def __or__(self, other: "Predicate") -> "Or":
        return Or((self, other))


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def matches(self, doc: Dict[str, Any]) -> bool:
        return doc.get(self.field) == self.value


@dataclass(frozen=True)
class Range(Predicate):
    """Inclusive (``gte``/``lte``) or exclusive (``gt``/``lt``) bounds."""

    field: str
    gte: Optional[Any] = None
    lte: Optional[Any] = None
    gt: Optional[Any] = None
    lt: Optional[Any] = None

    def matches(self, doc: Dict[str, Any]) -> bool:
        value = doc.get(self.field)
        if value is None:
            return False
        try:
            if self.gte is not None and not value >= self.gte:
                return False
            if self.lte is not None and not value <= self.lte:
                return False
            if self.gt is not None and not value > self.gt:
                return False
            if self.lt is not None and not value < self.lt:
                return False
        except TypeError:
            return False
        return True


@dataclass(frozen=True)
class In(Predicate):
    """Set membership. For list-valued fields, any overlap matches."""

    field: str
    values: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))

    def matches(self, doc: Dict[str, Any]) -> bool:
        value = doc.get(self.field)
        if isinstance(value, (list, tuple)):
            return any(v in self.values for v in value)
        return value in self.values


@dataclass(frozen=True)
class IsNull(Predicate):
    field: str
    is_null: bool = True

    def matches(self, doc: Dict[str, Any]) -> bool:
        return (doc.get(self.field) is None) == self.is_null


@dataclass(frozen=True)
class Not(Predicate):
    inner: Predicate

    def matches(self, doc: Dict[str, Any]) -> bool:
        return not self.inner.matches(doc)


@dataclass(frozen=True)
class And(Predicate):
    parts: Tuple[Predicate, ...]

    def matches(self, doc: Dict[str, Any]) -> bool:
        return all(p.matches(doc) for p in self.parts)


@dataclass(frozen=True)
class Or(Predicate):
    parts: Tuple[Predicate, ...]

    def matches(self, doc: Dict[str, Any]) -> bool:
        return any(p.matches(doc) for p in self.parts)


def all_of(*parts: Optional[Predicate]) -> Optional[Predicate]:
    """AND the given predicates, skipping Nones. Returns None if nothing is left."""
    kept = tuple(p for p in parts if p is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return And(kept)


def any_of(*parts: Optional[Predicate]) -> Optional[Predicate]:
    kept = tuple(p for p in parts if p is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Or(kept)


def evaluate(predicate: Optional[Predicate], doc: Dict[str, Any]) -> bool:
    return predicate is None or predicate.matches(doc)
