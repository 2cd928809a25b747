"""Driver hierarchy.

Drivers form a DAG of is-a edges held in an explicit parent table. A driver
inherits behavior from its ancestors: ``redshift`` is-a ``postgres`` is-a
``sql``. Test extension support is itself a node of the hierarchy
(``TEST_EXTENSIONS``); a driver has test extensions when it descends from it.
"""

import threading
from collections import deque
from typing import Iterable, Iterator

# Administrative markers, never consulted when looking for test extensions
DRIVER = "fixturedb.driver/driver"
CONCRETE = "fixturedb.driver/concrete"
STRUCTURAL_PARENTS = frozenset({DRIVER, CONCRETE})

TEST_EXTENSIONS = "fixturedb.test/test-extensions"


class DriverHierarchy:
    """Parent table of driver ids; mutation is guarded by a lock."""

    def __init__(self):
        self._parents: dict[str, list[str]] = {}
        self._abstract: set[str] = set()
        self._lock = threading.RLock()
        self.register(DRIVER, parents=(), abstract=True)
        self.register(CONCRETE, parents=(DRIVER,), abstract=True)

    def register(self, driver: str, parents: Iterable[str] = (), abstract: bool = False) -> None:
        """Register ``driver`` below ``parents``.

        Concrete drivers without explicit parents hang below ``CONCRETE``.
        Registering again only adds edges.
        """
        parents = list(parents)
        if not parents and driver not in (DRIVER, CONCRETE):
            parents = [DRIVER] if abstract else [CONCRETE]

        with self._lock:
            self._parents.setdefault(driver, [])
            if abstract:
                self._abstract.add(driver)
            for parent in parents:
                if parent not in self._parents:
                    self.register(parent)
                self.add_parent(driver, parent)

    def add_parent(self, driver: str, parent: str) -> None:
        """Add the edge ``driver`` is-a ``parent``."""
        with self._lock:
            if driver == parent or self.isa(parent, driver):
                raise ValueError(f"Adding {parent} as a parent of {driver} would create a cycle")
            parents = self._parents.setdefault(driver, [])
            if parent not in parents:
                parents.append(parent)

    def is_registered(self, driver: str) -> bool:
        return driver in self._parents

    def is_abstract(self, driver: str) -> bool:
        return driver in self._abstract

    def parents(self, driver: str) -> list[str]:
        """Direct parents of ``driver`` in declaration order."""
        with self._lock:
            return list(self._parents.get(driver, ()))

    def ancestors(self, driver: str) -> Iterator[str]:
        """Ancestors of ``driver``, nearest first (breadth-first)."""
        seen = {driver}
        queue = deque(self.parents(driver))
        while queue:
            ancestor = queue.popleft()
            if ancestor in seen:
                continue
            seen.add(ancestor)
            yield ancestor
            queue.extend(self.parents(ancestor))

    def isa(self, driver: str, ancestor: str) -> bool:
        """Whether ``driver`` is ``ancestor`` or descends from it."""
        return driver == ancestor or any(a == ancestor for a in self.ancestors(driver))

    def descendants(self, ancestor: str) -> list[str]:
        """Every registered driver below ``ancestor``."""
        with self._lock:
            drivers = list(self._parents)
        return [driver for driver in drivers if driver != ancestor and self.isa(driver, ancestor)]
