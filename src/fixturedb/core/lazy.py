"""Compute-once values shared between threads."""
import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Lazy(Generic[T]):
    """A value computed by ``factory`` on first access and cached afterwards.

    Concurrent first readers block until the single computing reader
    publishes the result; once published, reads take no lock. If the
    factory raises, nothing is cached and the next reader tries again.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory: Optional[Callable[[], T]] = factory
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._realized = False

    @property
    def realized(self) -> bool:
        """Whether the value has been computed."""
        return self._realized

    def get(self) -> T:
        """Return the value, computing it if needed."""
        if self._realized:
            return self._value  # type: ignore[return-value]

        with self._lock:
            if not self._realized:
                self._value = self._factory()  # type: ignore[misc]
                # Published only after the value is fully built
                self._realized = True
                self._factory = None
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = repr(self._value) if self._realized else "pending"
        return f"<Lazy {state}>"
