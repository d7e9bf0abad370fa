"""
Pennant invocation context: the shared flag table plus user values and
advisory cancellation.

Every Command.run publishes its declared flags into the context's FlagTable,
so a handler deep in the tree can read flags declared by any ancestor:

    >>> def handler(context, args):
    ...     verbose = context.table.get("verbose")
    ...     port = context.table.typed("port", int)

Contexts are immutable in shape: derive() makes a child carrying extra values
that shares the parent's table and observes the parent's cancellation.
"""
import threading
import types
import typing
import weakref

from .faults import FlagNotFoundError, FlagTypeError
from .utils import Unset


def _admits_bool(kind):
    if typing.get_origin(kind) in (typing.Union, types.UnionType):
        kind = typing.get_args(kind)
    return any(each is bool or each is object for each in (kind if isinstance(kind, tuple) else (kind,)))


class FlagTable:
    """
    Flags published by every command run so far, keyed by name.

    Publishing accumulates: flags are never evicted, and a later flag with an
    already published name replaces the earlier one.
    """

    def __init__(self):
        self._flags = {}

    def publish(self, flags, /):
        for flag in flags:
            self._flags[flag.name] = flag

    def lookup(self, name, /):
        """
        return the Flag published under name, or None.
        """
        return self._flags.get(name)

    def get(self, name, default=None, /):
        """
        return the raw value of the flag published under name, or default.
        """
        if (flag := self._flags.get(name)) is None:
            return default
        return flag.value.get()

    def typed(self, name, kind, /):
        """
        Return the raw value of a flag, checked against kind.

        Raises
        - FlagNotFoundError (a KeyError): nothing published under name.
        - FlagTypeError (a TypeError): the value is not an instance of kind.
        """
        if (flag := self._flags.get(name)) is None:
            raise FlagNotFoundError(f"flag -{name} not found", flag=name)
        value = flag.value.get()
        # bool is an int subclass but never stands in for one
        if not isinstance(value, kind) or (isinstance(value, bool) and not _admits_bool(kind)):
            expected = getattr(kind, "__name__", repr(kind))
            raise FlagTypeError(f"flag -{name} holds {type(value).__name__}, not {expected}", flag=name)
        return value

    def __getitem__(self, name):
        return self._flags[name]

    def __contains__(self, name):
        return name in self._flags

    def __iter__(self):
        return iter(self._flags)

    def __len__(self):
        return len(self._flags)

    def __repr__(self):
        return f"FlagTable({list(self._flags)!r})"


class Context:
    """
    Value and cancellation carrier threaded through command runs.

    Parameters
    - table: FlagTable to publish into (a fresh one by default).
    - **values: user values readable as context[key] / context.get(key).

    Cancellation is advisory: nothing in pennant polls it. Handlers and
    wrappers check .cancelled or block on .wait(); cancelling a context
    cancels every context derived from it.
    """

    def __init__(self, table=Unset, /, **values):
        table = FlagTable() if table is Unset else table
        if not isinstance(table, FlagTable):
            raise TypeError("context table must be a FlagTable")
        self._table = table
        self._values = values
        self._event = threading.Event()
        self._reason = None
        self._children = weakref.WeakSet()
        self._timer = None
        self._lock = threading.Lock()

    @property
    def table(self):
        return self._table

    @property
    def cancelled(self):
        return self._event.is_set()

    @property
    def reason(self):
        """
        why the context was cancelled ("cancelled", "deadline exceeded", ...), or None.
        """
        return self._reason

    def derive(self, **values):
        """
        Return a child context sharing the flag table, with values layered on
        top of this context's values.
        """
        child = Context(self._table, **(self._values | values))
        with self._lock:
            self._children.add(child)
            if self._event.is_set():
                child.cancel(self._reason)
        return child

    def cancellable(self):
        """
        Return a child context that can be cancelled on its own.
        """
        return self.derive()

    def deadline(self, seconds, /):
        """
        Return a child context cancelled automatically after seconds.

        Call cancel() on the child when done to release its timer early.
        """
        if not isinstance(seconds, int | float) or isinstance(seconds, bool):
            raise TypeError("deadline() argument must be a number of seconds")
        child = self.derive()
        timer = threading.Timer(seconds, child.cancel, ("deadline exceeded",))
        timer.daemon = True
        child._timer = timer
        timer.start()
        return child

    def cancel(self, reason="cancelled", /):
        """
        Cancel this context and every context derived from it (idempotent).
        """
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            children = list(self._children)
        if self._timer is not None:
            self._timer.cancel()
        for child in children:
            child.cancel(reason)

    def wait(self, timeout=None, /):
        """
        block until cancelled or timeout elapses; return whether cancelled.
        """
        return self._event.wait(timeout)

    def get(self, key, default=None, /):
        return self._values.get(key, default)

    def __getitem__(self, key):
        return self._values[key]

    def __contains__(self, key):
        return key in self._values

    def __repr__(self):
        state = "cancelled" if self.cancelled else "active"
        return f"Context({state}, values={sorted(self._values)!r}, flags={len(self._table)})"


def get(context, name, default=None, /):
    """
    return the raw value of a published flag, or default (also for a context of None).
    """
    if context is None:
        return default
    return context.table.get(name, default)


def lookup(context, name, /):
    """
    return the published Flag, or None (also for a context of None).
    """
    if context is None:
        return None
    return context.table.lookup(name)


__all__ = (
    "FlagTable",
    "Context",
    "get",
    "lookup",
)
