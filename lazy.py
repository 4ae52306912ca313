"""
Chainable, pull-based lazy iteration.

A ``LazyIterator`` wraps a single pull node. Adaptor methods wrap the
current iterator in a new node and return a new ``LazyIterator``; nothing is
computed until a consumer (or a ``for`` loop) starts pulling.
"""

import logging
import math
from functools import partialmethod

from adaptors import (
    ChunkNode, ConcatNode, CycleNode, EachNode, EnumerateNode, FilterNode,
    FlatMapNode, FlattenNode, JoinNode, JoinWithNode, MapNode, ScanNode,
    SkipNode, SkipWhileNode, StepNode, TakeNode, TakeWhileNode, ZipNode,
)
from errors import EmptySequenceError
from protocols import (
    DONE, LIST, MAP, SET, STRING, is_iterable, is_iterator, same_value_zero,
)
from sources import (
    CacheCursor, IteratorNode, iterate_values, range_values,
    repeat_values, repeat_with_values, to_node,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _identity(value):
    return value


class LazyIterator:
    """
    A lazy cursor over a sequence.

    Supports look-ahead with ``peek()``; at most one peeked result is held and
    it is handed back by the following ``next()``.
    """

    def __init__(self, node):
        self._node = node
        self._peeked = None

    def __repr__(self):
        return f"LazyIterator({type(self._node).__name__})"

    # --------- iteration contract ----------
    def next(self):
        """Return the next pull result, consuming it"""
        if self._peeked is not None:
            item, self._peeked = self._peeked, None
            return item
        return self._node.pull()

    # lets a LazyIterator sit directly under an adaptor node
    pull = next

    def peek(self):
        """Return the next pull result without consuming it"""
        if self._peeked is None:
            self._peeked = self._node.pull()
        return self._peeked

    def __iter__(self):
        return self

    def __next__(self):
        item = self.next()
        if item.done:
            raise StopIteration
        return item.value

    # --------- source constructors ----------
    is_iterator = staticmethod(is_iterator)
    is_iterable = staticmethod(is_iterable)

    @classmethod
    def from_(cls, value):
        """
        Wrap an iterator or iterable.

        A LazyIterator is returned unchanged. Anything that is neither a
        cursor nor iterable raises NotIterableError.
        """
        if isinstance(value, LazyIterator):
            return value
        return cls(to_node(value))

    @classmethod
    def for_(cls, value):
        """Alias for from_()"""
        return cls.from_(value)

    @classmethod
    def of(cls, *items):
        return cls(CacheCursor(items))

    @classmethod
    def range(cls, start=0, end=math.inf, step=1, inclusive=False):
        """Yield start, start + step, ... while below end (or up to it when inclusive)"""
        if step == 0:
            raise ValueError("Range step must not be zero")
        return cls(IteratorNode(range_values(start, end, step, inclusive)))

    @classmethod
    def repeat(cls, item, amount=math.inf):
        return cls(IteratorNode(repeat_values(item, amount)))

    @classmethod
    def repeat_with(cls, fn, amount=math.inf):
        """Yield fn() afresh on every pull"""
        return cls(IteratorNode(repeat_with_values(fn, amount)))

    @classmethod
    def iterate(cls, fn, init):
        """Yield init, fn(init), fn(fn(init)), ... forever"""
        return cls(IteratorNode(iterate_values(fn, init)))

    # --------- chainable adaptors (lazy) ----------
    def step_by(self, step):
        """Yield the first element, then every step-th element after it"""
        if step < 1:
            raise ValueError("Step must be >= 1")
        return LazyIterator(StepNode(self, int(step)))

    def skip(self, amount):
        return LazyIterator(SkipNode(self, int(amount)))

    def take(self, amount):
        return LazyIterator(TakeNode(self, int(amount)))

    def skip_while(self, pred):
        return LazyIterator(SkipWhileNode(self, pred))

    def take_while(self, pred):
        return LazyIterator(TakeWhileNode(self, pred))

    def chunk(self, size):
        """Group elements into lists of size; a shorter final chunk keeps the remainder"""
        if size < 1:
            raise ValueError("Chunk size must be >= 1")
        return LazyIterator(ChunkNode(self, int(size)))

    def page(self, page_number, page_size):
        """Get a specific page of results (1-indexed)"""
        if page_number < 1:
            raise ValueError("Page number must be >= 1")
        offset = (page_number - 1) * page_size
        return self.skip(offset).take(page_size)

    def paginate(self, page_size):
        """Iterator of pages, each holding up to page_size elements"""
        return self.chunk(page_size)

    def enumerate(self):
        return LazyIterator(EnumerateNode(self))

    def concat(self, *others):
        return LazyIterator(ConcatNode(self, [LazyIterator.from_(o) for o in others]))

    def cycle(self):
        """Repeat the sequence forever. Never terminates on an infinite upstream"""
        return LazyIterator(CycleNode(self))

    def map(self, fn):
        return LazyIterator(MapNode(self, fn))

    def filter(self, pred):
        return LazyIterator(FilterNode(self, pred))

    def scan(self, fn, seed=_MISSING):
        """
        Running accumulation, yielding each state.

        With a seed, the seed is yielded first. Without one, the first element
        is the first state.
        """
        if seed is _MISSING:
            return LazyIterator(ScanNode(self, fn))
        return LazyIterator(ScanNode(self, fn, seed))

    def zip(self, *others):
        return LazyIterator(ZipNode(self, [LazyIterator.from_(o) for o in others]))

    def flatten(self, depth=1):
        """Flatten nested sequences up to depth levels; math.inf flattens completely"""
        return LazyIterator(FlattenNode(self, depth))

    def flat_map(self, fn):
        return LazyIterator(FlatMapNode(self, fn))

    def join(self, value):
        """Insert value between every pair of adjacent elements"""
        return LazyIterator(JoinNode(self, value))

    def join_with(self, other):
        """Insert the contents of other between every pair of adjacent elements"""
        return LazyIterator(JoinWithNode(self, LazyIterator.from_(other)))

    def each(self, fn):
        """Call fn on every element as it passes through"""
        return LazyIterator(EachNode(self, fn))

    # --------- consumers ----------
    def at(self, index):
        """Return the element at index, or None if the sequence ends first"""
        value = None
        for _ in range(index + 1):
            item = self.next()
            if item.done:
                return None
            value = item.value
        return value

    def first(self):
        return self.at(0)

    def last(self):
        """Return the last element, or None if empty"""
        value = None
        for value in self:
            pass
        return value

    def count(self):
        """Return the count of elements"""
        total = 0
        for _ in self:
            total += 1
        return total

    def for_each(self, fn):
        for value in self:
            fn(value)

    def reduce(self, fn, seed=_MISSING):
        """Apply a function of two arguments cumulatively to items, from left to right"""
        accum = seed
        if accum is _MISSING:
            first = self.next()
            if first.done:
                raise EmptySequenceError("Reduce of empty sequence with no initial value")
            accum = first.value
        for value in self:
            accum = fn(accum, value)
        return accum

    def and_(self):
        """Logical AND of every element; True when empty"""
        return self.reduce(lambda a, b: a and b, True)

    def or_(self):
        """Logical OR of every element; False when empty"""
        return self.reduce(lambda a, b: a or b, False)

    def sum(self):
        """Return the sum of all elements"""
        return self.reduce(lambda a, b: a + b, 0)

    def product(self):
        return self.reduce(lambda a, b: a * b, 1)

    def find(self, pred):
        """Return the first element that satisfies the predicate, or None"""
        for value in self:
            if pred(value):
                return value
        return None

    def find_index(self, pred):
        """Return the index of the first element satisfying pred, or -1"""
        for index, value in enumerate(self):
            if pred(value):
                return index
        return -1

    def includes(self, item, start=0):
        """Whether item occurs at or after position start"""
        for index, value in enumerate(self):
            if index < start:
                continue
            if same_value_zero(item, value):
                return True
        return False

    def every(self, pred):
        for value in self:
            if not pred(value):
                return False
        return True

    def some(self, pred):
        for value in self:
            if pred(value):
                return True
        return False

    def max(self, key=_identity):
        """Return the maximum element by key; the earliest one wins ties"""
        first = self.next()
        if first.done:
            return None
        best, best_key = first.value, key(first.value)
        for value in self:
            value_key = key(value)
            if value_key > best_key:
                best, best_key = value, value_key
        return best

    def min(self, key=_identity):
        """Return the minimum element by key; the earliest one wins ties"""
        first = self.next()
        if first.done:
            return None
        best, best_key = first.value, key(first.value)
        for value in self:
            value_key = key(value)
            if value_key < best_key:
                best, best_key = value, value_key
        return best

    def max_by(self, compare):
        """Return the maximum element by a three-way comparator"""
        best = self.next()
        if best.done:
            return None
        best = best.value
        for value in self:
            if compare(value, best) > 0:
                best = value
        return best

    def min_by(self, compare):
        """Return the minimum element by a three-way comparator"""
        best = self.next()
        if best.done:
            return None
        best = best.value
        for value in self:
            if compare(value, best) < 0:
                best = value
        return best

    # --------- collecting consumers ----------
    def collect(self, create=LIST.create, extend=LIST.extend):
        """Fold every element into a collection, a list by default"""
        coll = create()
        for value in self:
            coll = extend(coll, value)
        return coll

    def to_list(self):
        return self.collect()

    def partition(self, pred, create=LIST.create, extend=LIST.extend):
        """Split into (passing, failing) collections"""
        passing, failing = create(), create()
        for value in self:
            if pred(value):
                passing = extend(passing, value)
            else:
                failing = extend(failing, value)
        return passing, failing

    def unzip(self, size=None, create=LIST.create, extend=LIST.extend):
        """
        Split a sequence of tuples into one collection per position.

        The tuple size defaults to the length of the first element, so an
        empty sequence needs an explicit size.
        """
        first = self.next()
        if first.done:
            if size is None:
                raise EmptySequenceError("Unzip of empty sequence with no given size")
            length = size
        else:
            length = len(first.value) if size is None else size

        colls = [create() for _ in range(length)]
        if not first.done:
            for position in range(length):
                colls[position] = extend(colls[position], first.value[position])
        for value in self:
            for position in range(length):
                colls[position] = extend(colls[position], value[position])
        return colls

    def group(self, eq=same_value_zero, create=LIST.create, extend=LIST.extend):
        """Fold each run of consecutive equal elements into its own collection"""
        groups = []
        first = self.next()
        if first.done:
            return groups

        prev = first.value
        accum = extend(create(), prev)
        for value in self:
            if eq(prev, value):
                accum = extend(accum, value)
            else:
                groups.append(accum)
                accum = extend(create(), value)
            prev = value
        groups.append(accum)
        return groups

    def categorize(self, fn, create=LIST.create, extend=LIST.extend):
        """Map each fn(element) to a collection of the elements sharing it"""
        categories = {}
        for value in self:
            category = fn(value)
            if category not in categories:
                categories[category] = create()
            categories[category] = extend(categories[category], value)
        return categories

    collect_list = partialmethod(collect, create=LIST.create, extend=LIST.extend)
    collect_set = partialmethod(collect, create=SET.create, extend=SET.extend)
    collect_map = partialmethod(collect, create=MAP.create, extend=MAP.extend)
    collect_string = partialmethod(collect, create=STRING.create, extend=STRING.extend)

    partition_list = partialmethod(partition, create=LIST.create, extend=LIST.extend)
    partition_set = partialmethod(partition, create=SET.create, extend=SET.extend)
    partition_map = partialmethod(partition, create=MAP.create, extend=MAP.extend)
    partition_string = partialmethod(partition, create=STRING.create, extend=STRING.extend)

    unzip_list = partialmethod(unzip, create=LIST.create, extend=LIST.extend)
    unzip_set = partialmethod(unzip, create=SET.create, extend=SET.extend)
    unzip_map = partialmethod(unzip, create=MAP.create, extend=MAP.extend)
    unzip_string = partialmethod(unzip, create=STRING.create, extend=STRING.extend)

    group_list = partialmethod(group, create=LIST.create, extend=LIST.extend)
    group_set = partialmethod(group, create=SET.create, extend=SET.extend)
    group_map = partialmethod(group, create=MAP.create, extend=MAP.extend)
    group_string = partialmethod(group, create=STRING.create, extend=STRING.extend)

    categorize_list = partialmethod(categorize, create=LIST.create, extend=LIST.extend)
    categorize_set = partialmethod(categorize, create=SET.create, extend=SET.extend)
    categorize_map = partialmethod(categorize, create=MAP.create, extend=MAP.extend)
    categorize_string = partialmethod(categorize, create=STRING.create, extend=STRING.extend)

    # --------- cloning ----------
    def _materialize(self):
        # drains whatever is left, including a pending peek
        cache = tuple(self)
        self._node = CacheCursor(cache)
        self._peeked = None
        logger.debug(f"Materialized {len(cache)} values for cloning")
        return cache

    def clone(self):
        """
        Return an independent copy of the remaining sequence.

        Drains the remainder into memory; this iterator keeps working over the
        same cached values. Never terminates on an infinite sequence.
        """
        cache = self._materialize()
        return LazyIterator(CacheCursor(cache))

    def clone_many(self, amount):
        """Return amount independent copies of the remaining sequence"""
        if amount <= 0:
            logger.warning(f"clone_many called with amount={amount}; returning no clones")
        cache = self._materialize()
        return [LazyIterator(CacheCursor(cache)) for _ in range(max(amount, 0))]


__all__ = ["LazyIterator", "DONE"]
