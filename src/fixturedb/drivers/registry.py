"""Driver test extension registry and resolver.

Test extensions for a driver live in their own module (by default
``fixturedb.drivers.<driver>``). Importing that module registers the
extensions with ``register_test_extensions``. The registry loads modules
lazily, the first time a driver is asked for, falling back to the driver's
parents so a derived driver can reuse its base driver's extensions, and runs
each driver's ``before_run`` hook exactly once per process.
"""

import contextlib
import contextvars
import importlib
import sys
import threading
import time
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from loguru import logger

from fixturedb.core.exceptions import ExtensionLoadError, NoTestExtensionsError
from fixturedb.drivers.extensions import DriverTestExtensions
from fixturedb.drivers.hierarchy import STRUCTURAL_PARENTS, TEST_EXTENSIONS, DriverHierarchy
from fixturedb.models.config import DriversConfig

ExtensionsClass = TypeVar("ExtensionsClass", bound=type[DriverTestExtensions])

DEFAULT_MODULE_TEMPLATE = "fixturedb.drivers.{driver}"

# driver -> (parents, abstract)
BUILTIN_DRIVERS: dict[str, tuple[tuple[str, ...], bool]] = {
    "sql": ((), True),
    "sqlite": (("sql",), False),
    "duckdb": (("sql",), False),
    "postgres": (("sql",), False),
    "redshift": (("postgres",), False),
}

# Registry whose load is importing an extension module; receives its registrations
_loading_registry: contextvars.ContextVar[Optional["TestExtensionsRegistry"]] = contextvars.ContextVar(
    "loading_registry", default=None
)


class TestExtensionsRegistry:
    """Process-wide record of which drivers have test extensions.

    Two pieces of state are shared between threads: the driver hierarchy
    (mutated while extension modules load, under the global load lock) and
    the set of drivers whose ``before_run`` already ran (guarded per driver).
    """

    __test__ = False  # not a pytest test class

    def __init__(self, config: Optional[DriversConfig] = None, hierarchy: Optional[DriverHierarchy] = None):
        """Initialize registry.

        Args:
            config: Driver configuration (module overrides, extra parents,
                test drivers). Defaults to an empty configuration.
            hierarchy: Driver hierarchy to use; a fresh one by default
        """
        self.config = config or DriversConfig()
        self.hierarchy = hierarchy or DriverHierarchy()
        self.hierarchy.register(TEST_EXTENSIONS, abstract=True)

        for driver, (parents, abstract) in BUILTIN_DRIVERS.items():
            self.hierarchy.register(driver, parents=parents, abstract=abstract)
        for driver, parents in self.config.parents.items():
            self.hierarchy.register(driver, parents=parents)

        self._implementations: dict[str, DriverTestExtensions] = {}

        # Serializes module loading process-wide
        self._load_lock = threading.RLock()

        self._has_done_before_run: set[str] = set()
        self._has_done_after_run: set[str] = set()
        self._setup_locks: dict[str, threading.Lock] = {}
        self._setup_locks_lock = threading.Lock()

    # Registration

    def register_driver(self, driver: str, parents: tuple[str, ...] = (), abstract: bool = False) -> None:
        """Declare ``driver`` and its parents in the hierarchy."""
        self.hierarchy.register(driver, parents=parents, abstract=abstract)

    def register_test_extensions(self, driver: str, extensions: DriverTestExtensions) -> None:
        """Attach test extensions to ``driver``.

        Called by extension modules when they are imported.
        """
        if not self.hierarchy.is_registered(driver):
            self.hierarchy.register(driver)
        self._implementations[driver] = extensions
        self.hierarchy.add_parent(driver, TEST_EXTENSIONS)
        logger.info(f"Added test extensions for {driver}")

    def has_test_extensions(self, driver: str) -> bool:
        """Whether ``driver`` descends from the test extensions marker."""
        return self.hierarchy.isa(driver, TEST_EXTENSIONS) and driver != TEST_EXTENSIONS

    def implementation_for(self, driver: str) -> DriverTestExtensions:
        """Nearest registered implementation for ``driver`` in the hierarchy."""
        if driver in self._implementations:
            return self._implementations[driver]
        for ancestor in self.hierarchy.ancestors(driver):
            if ancestor in self._implementations:
                return self._implementations[ancestor]
        raise NoTestExtensionsError(driver)

    # Loading

    def module_name(self, driver: str) -> str:
        """Module expected to register test extensions for ``driver``."""
        return self.config.modules.get(driver, DEFAULT_MODULE_TEMPLATE.format(driver=driver))

    def _require_test_extensions_module(self, driver: str, reload: bool = False) -> None:
        module_name = self.module_name(driver)

        # Loading mutates module and registration state; one load at a time
        with self._load_lock:
            logger.info(f"Loading driver {driver} test extensions ({module_name}{', reload' if reload else ''})")
            token = _loading_registry.set(self)
            try:
                if reload and module_name in sys.modules:
                    importlib.reload(sys.modules[module_name])
                else:
                    importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                if e.name and (module_name == e.name or module_name.startswith(f"{e.name}.")):
                    raise ExtensionLoadError(driver, module_name) from e
                raise
            finally:
                _loading_registry.reset(token)

    def _load_test_extensions_if_needed(self, driver: str) -> None:
        if not self.has_test_extensions(driver):
            start = time.perf_counter()
            load_error: Optional[ExtensionLoadError] = None

            try:
                self._require_test_extensions_module(driver)
            except ExtensionLoadError as e:
                load_error = e
                logger.debug(str(e))

            # Derived drivers may rely on a parent to add test extensions
            if not self.has_test_extensions(driver):
                for parent in self.hierarchy.parents(driver):
                    if parent in STRUCTURAL_PARENTS:
                        continue
                    try:
                        self._load_test_extensions_if_needed(parent)
                    except Exception as e:
                        logger.debug(f"Could not load test extensions for {parent} (parent of {driver}): {e}")

            # Last resort: reload the driver's own module
            if not self.has_test_extensions(driver):
                try:
                    self._require_test_extensions_module(driver, reload=True)
                except ExtensionLoadError as e:
                    load_error = e
                if not self.has_test_extensions(driver):
                    raise NoTestExtensionsError(driver) from load_error

            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(f"Load {driver} test extensions took {elapsed_ms:.1f} ms")

        self._do_before_run_if_needed(driver)

    # Lifecycle hooks

    def _setup_lock(self, driver: str) -> threading.Lock:
        with self._setup_locks_lock:
            return self._setup_locks.setdefault(driver, threading.Lock())

    @staticmethod
    def _overrides(extensions: DriverTestExtensions, method_name: str) -> bool:
        return getattr(type(extensions), method_name) is not getattr(DriverTestExtensions, method_name)

    def _do_before_run_if_needed(self, driver: str) -> None:
        if driver in self._has_done_before_run:
            return

        with self._setup_lock(driver):
            if driver in self._has_done_before_run:
                return
            extensions = self.implementation_for(driver)
            if self._overrides(extensions, "before_run"):
                logger.info(f"Doing before-run for {driver}")
            extensions.before_run(driver)
            # Only marked once setup completed; a failed setup is retried
            self._has_done_before_run.add(driver)

    def has_done_before_run(self, driver: str) -> bool:
        return driver in self._has_done_before_run

    def run_all_teardowns(self, test_drivers: Optional[Iterable[str]] = None) -> list[str]:
        """Run ``after_run`` for every loaded driver that tests run against.

        ``test_drivers`` defaults to the configured ``drivers.test_drivers``.

        Each driver is torn down at most once, and only when it overrides
        the default no-op.

        Returns:
            Drivers whose teardown ran
        """
        torn_down = []
        test_drivers = set(self.config.test_drivers if test_drivers is None else test_drivers)

        for driver in self.hierarchy.descendants(TEST_EXTENSIONS):
            if driver not in test_drivers:
                continue
            with self._setup_lock(driver):
                if driver in self._has_done_after_run:
                    continue
                self._has_done_after_run.add(driver)

            extensions = self.implementation_for(driver)
            if not self._overrides(extensions, "after_run"):
                continue
            logger.info(f"Doing after-run for {driver}")
            extensions.after_run(driver)
            torn_down.append(driver)

        return torn_down

    # Resolution

    def the_driver_with_test_extensions(self, driver: str) -> str:
        """Return ``driver`` once its test extensions are loaded and set up.

        Raises:
            NoTestExtensionsError: If no test extensions can be found
        """
        self._load_test_extensions_if_needed(driver)
        return driver

    def dispatch_target(self, driver: str) -> str:
        """Driver id to dispatch contract calls on; loads extensions as a side effect."""
        return self.the_driver_with_test_extensions(driver)

    def extensions_for(self, driver: str) -> DriverTestExtensions:
        """Resolve ``driver`` and return the implementation to call for it."""
        return self.implementation_for(self.dispatch_target(driver))


# Global registry instance
_registry: Optional[TestExtensionsRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> TestExtensionsRegistry:
    """Get global registry instance, configured from ``drivers`` settings."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                from fixturedb.config import get_config

                _registry = TestExtensionsRegistry(get_config().drivers)
    return _registry


def reset_registry(registry: Optional[TestExtensionsRegistry] = None) -> None:
    """Replace the global registry (useful for testing)."""
    global _registry
    with _registry_lock:
        _registry = registry


def register_test_extensions(driver: str) -> Callable[[ExtensionsClass], ExtensionsClass]:
    """Class decorator registering test extensions for ``driver`` on import.

    Registrations go to the registry currently loading the module, or to the
    global registry when the module is imported directly.

    Example:
        >>> @register_test_extensions("sqlite")
        ... class SQLiteTestExtensions(SQLTestExtensions):
        ...     ...
    """

    def decorator(cls: ExtensionsClass) -> ExtensionsClass:
        registry = _loading_registry.get() or get_registry()
        registry.register_test_extensions(driver, cls())
        return cls

    return decorator


def has_test_extensions(driver: str) -> bool:
    return get_registry().has_test_extensions(driver)


def the_driver_with_test_extensions(driver: str) -> str:
    """Like ``TestExtensionsRegistry.the_driver_with_test_extensions`` on the global registry."""
    return get_registry().the_driver_with_test_extensions(driver)


def run_all_teardowns(test_drivers: Optional[Iterable[str]] = None) -> list[str]:
    return get_registry().run_all_teardowns(test_drivers)


_current_driver: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("current_driver", default=None)


@contextlib.contextmanager
def with_driver(driver: str) -> Iterator[str]:
    """Run the enclosed block against ``driver``."""
    token = _current_driver.set(driver)
    try:
        yield driver
    finally:
        _current_driver.reset(token)


def current_driver() -> str:
    """Driver for the current test, with test extensions loaded.

    Defaults to the first configured test driver.
    """
    driver = _current_driver.get()
    if driver is None:
        test_drivers = get_registry().config.test_drivers
        driver = test_drivers[0] if test_drivers else "sqlite"
    return the_driver_with_test_extensions(driver)
