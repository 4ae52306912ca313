"""
Exception taxonomy for lazy iteration.

Each error subclasses the builtin a caller would naturally catch, so
``except TypeError`` around ``reduce`` still works the way it does for
``functools.reduce``.
"""


class LazyIteratorError(Exception):
    """Base class for errors raised by lazy iterators."""
    pass


class NotIterableError(LazyIteratorError, TypeError):
    """Raised when a value is neither a sequence nor a pull-capable cursor."""

    def __init__(self, value=None):
        self.value = value
        super().__init__("Value given is neither a sequence nor a pull-capable cursor")


class EmptySequenceError(LazyIteratorError, TypeError):
    """Raised when a seed or shape cannot be inferred from an empty sequence."""
    pass


class InvalidOperationError(LazyIteratorError, ValueError):
    """Raised when a declarative pipeline names an operation that cannot be applied."""
    pass
