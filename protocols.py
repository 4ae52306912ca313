"""
Shared contracts for lazy iteration.

Holds the pull result record every node returns, the collection protocol
table consumers fold into, the value-identity equality used by ``includes``
and ``group``, and the registry deciding which values count as sub-sequences
when flattening.
"""

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Protocol, Tuple, Type


@dataclass(frozen=True)
class PullResult:
    """Outcome of a single pull: either exhausted or carrying one value."""
    done: bool
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "PullResult":
        return cls(False, value)

    def __repr__(self) -> str:
        if self.done:
            return "PullResult(done)"
        return f"PullResult({self.value!r})"


DONE = PullResult(True)


class PullNode(Protocol):
    """Anything a LazyIterator can drive: one ``pull()`` per requested value."""

    def pull(self) -> PullResult:
        ...


# --------- collection protocol ----------

class CollectionKind(str, Enum):
    """Standard accumulator shapes"""
    LIST = "list"
    SET = "set"
    MAP = "map"
    STRING = "string"


class CollectionProtocol(NamedTuple):
    """A (create-empty, extend-with-item) pair describing one accumulator shape."""
    create: Callable[[], Any]
    extend: Callable[[Any, Any], Any]


def _extend_list(coll, item):
    coll.append(item)
    return coll


def _extend_set(coll, item):
    coll.add(item)
    return coll


def _extend_map(coll, item):
    key, value = item
    coll[key] = value
    return coll


def _extend_string(coll, item):
    return coll + str(item)


PROTOCOLS: Dict[CollectionKind, CollectionProtocol] = {
    CollectionKind.LIST: CollectionProtocol(list, _extend_list),
    CollectionKind.SET: CollectionProtocol(set, _extend_set),
    CollectionKind.MAP: CollectionProtocol(dict, _extend_map),
    CollectionKind.STRING: CollectionProtocol(str, _extend_string),
}

LIST = PROTOCOLS[CollectionKind.LIST]
SET = PROTOCOLS[CollectionKind.SET]
MAP = PROTOCOLS[CollectionKind.MAP]
STRING = PROTOCOLS[CollectionKind.STRING]


def get_protocol(kind) -> CollectionProtocol:
    """Look up a protocol by kind or by its string name ("list", "set", ...)"""
    return PROTOCOLS[CollectionKind(kind)]


# --------- equality helper ----------

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_nan(value) -> bool:
    return isinstance(value, float) and math.isnan(value)


def same_value_zero(a, b) -> bool:
    """
    Value-identity predicate used by membership and grouping.

    Numeric zeros compare by sign, so ``0.0`` and ``-0.0`` are distinct,
    while NaN is equal to NaN. Booleans never equal numbers.
    """
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if _is_number(a) and _is_number(b) and a == 0 and b == 0:
        return math.copysign(1.0, a) == math.copysign(1.0, b)
    if a is b or a == b:
        return True
    return _is_nan(a) and _is_nan(b)


# --------- sequence capability ----------

_ATOMIC_TYPES: Tuple[Type, ...] = (str, bytes, bytearray)


def register_atomic(cls: Type) -> Type:
    """Mark an iterable type as a scalar so flatten/flat_map never expand it."""
    global _ATOMIC_TYPES
    if cls not in _ATOMIC_TYPES:
        _ATOMIC_TYPES = _ATOMIC_TYPES + (cls,)
    return cls


def is_atomic(value) -> bool:
    return isinstance(value, _ATOMIC_TYPES)


def is_iterator(value) -> bool:
    """Whether value is already a pull-capable cursor."""
    return isinstance(value, Iterator)


def is_iterable(value) -> bool:
    """Whether value can hand out a one-shot cursor."""
    return isinstance(value, Iterable)


def is_sequence(value) -> bool:
    """Whether flattening should drain ``value`` instead of yielding it."""
    if is_atomic(value):
        return False
    return is_iterator(value) or is_iterable(value)
