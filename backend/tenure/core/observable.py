"""Observable state cells and memoized derived values.

Replaces implicit reactive dependency tracking with explicit cells:
- ObservableState holds a value and notifies subscribers when it changes
- Derived memoizes a pure function over source cells and is invalidated
  explicitly by those sources, recomputing lazily on the next get()
"""

from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[Any], None]

_UNSET = object()


class ObservableState(Generic[T]):
    """A single mutable value with change notification."""

    def __init__(self, initial: T, name: str = ""):
        self._value = initial
        self.name = name
        self._listeners: list[Listener] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value; notify subscribers only if it changed.

        Returns:
            True if the value changed
        """
        if value == self._value:
            return False
        self._value = value
        self._notify(value)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, value: Any) -> None:
        for listener in list(self._listeners):
            listener(value)


class Derived(ObservableState[T]):
    """Memoized pure function of one or more source cells.

    The value is recomputed on get() after any source changed. Subscribers
    of a Derived are told about invalidation (with the fresh value).
    """

    def __init__(self, compute: Callable[[], T], sources: list[ObservableState], name: str = ""):
        super().__init__(_UNSET, name=name)  # type: ignore[arg-type]
        self._compute = compute
        self._stale = True
        self.recomputations = 0
        for source in sources:
            source.subscribe(self._invalidate)

    def get(self) -> T:
        if self._stale:
            self._value = self._compute()
            self._stale = False
            self.recomputations += 1
        return self._value

    def set(self, value: T) -> bool:
        raise TypeError(f"Derived value '{self.name}' is read-only")

    def _invalidate(self, _source_value: Any) -> None:
        self._stale = True
        if self._listeners:
            self._notify(self.get())
