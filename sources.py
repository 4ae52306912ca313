"""
Leaf nodes for lazy iteration.

Numeric ranges and repetition are written as generator functions and driven
through ``IteratorNode``; ``CacheCursor`` replays an already materialized
sequence by position.
"""

import operator

from errors import NotIterableError
from protocols import DONE, PullResult, is_iterable, is_iterator


class IteratorNode:
    """Pulls from a one-shot Python iterator and stays done once it stops."""

    def __init__(self, iterator):
        self._iterator = iterator
        self._exhausted = False

    def pull(self):
        if self._exhausted:
            return DONE
        try:
            value = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            return DONE
        return PullResult.of(value)


class CacheCursor:
    """Position index into a shared, immutable cache."""

    def __init__(self, cache, position=0):
        self._cache = cache
        self._position = position

    def pull(self):
        if self._position >= len(self._cache):
            return DONE
        value = self._cache[self._position]
        self._position += 1
        return PullResult.of(value)


def to_node(value):
    """Turn an iterator or iterable into a pull node, or fail before building anything."""
    if is_iterator(value):
        return IteratorNode(value)
    if is_iterable(value):
        return IteratorNode(iter(value))
    raise NotIterableError(value)


# --------- source generators ----------

def range_values(start, end, step, inclusive):
    """Arithmetic progression; the boundary test flips with the sign of step"""
    if step > 0:
        within = operator.le if inclusive else operator.lt
    else:
        within = operator.ge if inclusive else operator.gt
    index = 0
    current = start
    while within(current, end):
        yield current
        index += 1
        current = start + index * step


def repeat_values(item, amount):
    produced = 0
    while produced < amount:
        yield item
        produced += 1


def repeat_with_values(fn, amount):
    produced = 0
    while produced < amount:
        yield fn()
        produced += 1


def iterate_values(fn, init):
    # fn is applied only once the following value is requested
    value = init
    while True:
        yield value
        value = fn(value)
