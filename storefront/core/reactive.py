"""Observable state cells.

``Signal`` holds a value and notifies subscribers when it changes.
``Computed`` derives a value from other cells; it is recomputed lazily on
read and pushes one notification per effective change to its own
subscribers.
"""

from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[Any], None]


class _Observable(Generic[T]):
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def get(self) -> T:
        raise NotImplementedError

    def __call__(self) -> T:
        return self.get()


class Signal(_Observable[T]):
    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value is self._value or value == self._value:
            return
        self._value = value
        self._notify(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))


class Computed(_Observable[T]):
    def __init__(self, fn: Callable[[], T], *sources: _Observable[Any]) -> None:
        super().__init__()
        self._fn = fn
        self._dirty = True
        self._value: T | None = None
        for source in sources:
            source.subscribe(self._invalidate)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        # subscribers need a baseline to compare against
        self.get()
        return super().subscribe(listener)

    def get(self) -> T:
        if self._dirty:
            self._value = self._fn()
            self._dirty = False
        return self._value  # type: ignore[return-value]

    def _invalidate(self, _: Any) -> None:
        if self._dirty:
            return
        previous = self._value
        self._dirty = True
        if not self._listeners:
            return
        current = self.get()
        if current != previous:
            self._notify(current)
