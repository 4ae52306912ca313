"""
Adaptor nodes.

Each class is one stateful stage of a chain. A node owns its upstream (a
``LazyIterator`` or another pull node) and answers ``pull()`` by pulling that
upstream as little as it can. Stages that may need several upstream pulls
before producing a value retry in a loop rather than recursing.
"""

import logging
from collections import deque

from protocols import DONE, PullResult, is_sequence
from sources import CacheCursor, to_node

logger = logging.getLogger(__name__)


class StepNode:
    """Yields the first value, then every ``step``-th one after it."""

    def __init__(self, upstream, step):
        self._upstream = upstream
        self._step = step
        self._started = False

    def pull(self):
        if self._started:
            for _ in range(self._step - 1):
                if self._upstream.pull().done:
                    return DONE
        self._started = True
        return self._upstream.pull()


class SkipNode:
    def __init__(self, upstream, amount):
        self._upstream = upstream
        self._remaining = max(amount, 0)

    def pull(self):
        while self._remaining > 0:
            self._remaining -= 1
            if self._upstream.pull().done:
                self._remaining = 0
                return DONE
        return self._upstream.pull()


class TakeNode:
    def __init__(self, upstream, amount):
        self._upstream = upstream
        self._remaining = max(amount, 0)

    def pull(self):
        if self._remaining <= 0:
            return DONE
        self._remaining -= 1
        item = self._upstream.pull()
        if item.done:
            self._remaining = 0
        return item


class SkipWhileNode:
    """Drops values while ``pred`` holds; the first failing value switches to pass-through."""

    def __init__(self, upstream, pred):
        self._upstream = upstream
        self._pred = pred
        self._skipping = True

    def pull(self):
        while self._skipping:
            item = self._upstream.pull()
            if item.done:
                return DONE
            if not self._pred(item.value):
                self._skipping = False
                return item
        return self._upstream.pull()


class TakeWhileNode:
    """Passes values while ``pred`` holds; the first failing value is dropped and ends the stream."""

    def __init__(self, upstream, pred):
        self._upstream = upstream
        self._pred = pred
        self._finished = False

    def pull(self):
        if self._finished:
            return DONE
        item = self._upstream.pull()
        if item.done or not self._pred(item.value):
            self._finished = True
            return DONE
        return item


class ChunkNode:
    def __init__(self, upstream, size):
        self._upstream = upstream
        self._size = size

    def pull(self):
        bucket = []
        while len(bucket) < self._size:
            item = self._upstream.pull()
            if item.done:
                break
            bucket.append(item.value)
        if not bucket:
            return DONE
        return PullResult.of(bucket)


class EnumerateNode:
    def __init__(self, upstream):
        self._upstream = upstream
        self._index = 0

    def pull(self):
        item = self._upstream.pull()
        if item.done:
            return DONE
        pair = (self._index, item.value)
        self._index += 1
        return PullResult.of(pair)


class ConcatNode:
    """Drains the primary upstream, then each of ``others`` left to right."""

    def __init__(self, upstream, others):
        self._current = upstream
        self._pending = deque(others)

    def pull(self):
        while True:
            item = self._current.pull()
            if not item.done:
                return item
            if not self._pending:
                return DONE
            self._current = self._pending.popleft()


class CycleNode:
    """
    Replays the upstream forever.

    The first pass is passed through and cached as it goes; once the upstream
    is done every later pull comes from the cache. An empty upstream leaves
    nothing to replay, so the node is done for good.
    """

    def __init__(self, upstream):
        self._upstream = upstream
        self._cache = []
        self._replaying = False
        self._position = 0

    def pull(self):
        if not self._replaying:
            item = self._upstream.pull()
            if not item.done:
                self._cache.append(item.value)
                return item
            self._replaying = True
            logger.debug(f"cycle cached {len(self._cache)} values, replaying")

        if not self._cache:
            return DONE
        value = self._cache[self._position]
        self._position = (self._position + 1) % len(self._cache)
        return PullResult.of(value)


class MapNode:
    def __init__(self, upstream, fn):
        self._upstream = upstream
        self._fn = fn

    def pull(self):
        item = self._upstream.pull()
        if item.done:
            return DONE
        return PullResult.of(self._fn(item.value))


class FilterNode:
    def __init__(self, upstream, pred):
        self._upstream = upstream
        self._pred = pred

    def pull(self):
        while True:
            item = self._upstream.pull()
            if item.done or self._pred(item.value):
                return item


_MISSING = object()


class ScanNode:
    """
    Running accumulation with every intermediate state observable.

    With a seed, the seed itself is the first state yielded. Without one, the
    first upstream value becomes the first state as-is and ``fn`` is applied
    from the second value on.
    """

    def __init__(self, upstream, fn, seed=_MISSING):
        self._upstream = upstream
        self._fn = fn
        self._accum = seed
        self._emit_seed = seed is not _MISSING

    def pull(self):
        if self._emit_seed:
            self._emit_seed = False
            return PullResult.of(self._accum)
        item = self._upstream.pull()
        if item.done:
            return DONE
        if self._accum is _MISSING:
            self._accum = item.value
        else:
            self._accum = self._fn(self._accum, item.value)
        return PullResult.of(self._accum)


class ZipNode:
    """One tuple per position: primary value first, then one value from each of ``others``."""

    def __init__(self, upstream, others):
        self._participants = [upstream] + list(others)
        self._finished = False

    def pull(self):
        if self._finished:
            return DONE
        values = []
        for participant in self._participants:
            item = participant.pull()
            if item.done:
                self._finished = True
                return DONE
            values.append(item.value)
        return PullResult.of(tuple(values))


class FlattenNode:
    """Drains nested sequences up to ``depth`` levels; scalars pass through."""

    def __init__(self, upstream, depth=1):
        self._upstream = upstream
        self._depth = depth
        self._inner = None

    def pull(self):
        while True:
            if self._inner is not None:
                item = self._inner.pull()
                if not item.done:
                    return item
                self._inner = None

            item = self._upstream.pull()
            if item.done:
                return DONE
            if self._depth > 0 and is_sequence(item.value):
                self._inner = FlattenNode(to_node(item.value), self._depth - 1)
                continue
            return item


class FlatMapNode:
    """Maps each value; sequence results are drained one level before moving on."""

    def __init__(self, upstream, fn):
        self._upstream = upstream
        self._fn = fn
        self._inner = None

    def pull(self):
        while True:
            if self._inner is not None:
                item = self._inner.pull()
                if not item.done:
                    return item
                self._inner = None

            item = self._upstream.pull()
            if item.done:
                return DONE
            mapped = self._fn(item.value)
            if is_sequence(mapped):
                self._inner = to_node(mapped)
                continue
            return PullResult.of(mapped)


class JoinNode:
    """Places ``value`` between adjacent elements. The upstream must support ``peek()``."""

    def __init__(self, upstream, value):
        self._upstream = upstream
        self._value = value
        self._join_next = False

    def pull(self):
        if self._join_next:
            self._join_next = False
            return PullResult.of(self._value)
        item = self._upstream.pull()
        if item.done:
            return DONE
        if not self._upstream.peek().done:
            self._join_next = True
        return item


class JoinWithNode:
    """
    Places the whole of ``other`` between adjacent elements.

    The first gap pulls ``other`` live and caches it; every later gap replays
    the cache. An infinite ``other`` therefore never closes the first gap.
    """

    def __init__(self, upstream, other):
        self._upstream = upstream
        self._separator = other
        self._cache = []
        self._cached_all = False
        self._joining = False

    def pull(self):
        if self._joining:
            item = self._separator.pull()
            if not item.done:
                if not self._cached_all:
                    self._cache.append(item.value)
                return item
            if not self._cached_all:
                self._cached_all = True
                self._cache = tuple(self._cache)
                logger.debug(f"join_with cached a separator of {len(self._cache)} values")
            self._separator = CacheCursor(self._cache)
            self._joining = False

        item = self._upstream.pull()
        if item.done:
            return DONE
        if not self._upstream.peek().done:
            self._joining = True
        return item


class EachNode:
    def __init__(self, upstream, fn):
        self._upstream = upstream
        self._fn = fn

    def pull(self):
        item = self._upstream.pull()
        if not item.done:
            self._fn(item.value)
        return item
