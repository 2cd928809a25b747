"""pytest plugin for tests that run against FixtureDB test databases.

Registered through the ``pytest11`` entry point. It provides:

* a ``test_driver`` fixture, parametrized over ``drivers.test_drivers``
  (or ``--fixturedb-drivers``), with the driver's test extensions loaded;
* a ``fixture_database`` factory that materializes a dataset on that driver
  once per session and returns its connection details;
* teardown of every driver used, via ``after_run``, when the session ends.
"""

import threading
from typing import Any, Callable

import pytest
from loguru import logger

from fixturedb.dataset.naming import escaped_name
from fixturedb.dataset.sources import DefinitionLike, get_dataset_definition
from fixturedb.drivers.interface import create_db, dbdef_to_connection_details
from fixturedb.drivers.registry import get_registry, run_all_teardowns, the_driver_with_test_extensions, with_driver


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("fixturedb")
    group.addoption(
        "--fixturedb-drivers",
        action="store",
        default=None,
        help="Comma-separated drivers to run driver-parametrized tests against",
    )


def _test_drivers(config: pytest.Config) -> list[str]:
    option = config.getoption("fixturedb_drivers", default=None)
    if option:
        return [driver.strip() for driver in option.split(",") if driver.strip()]
    return list(get_registry().config.test_drivers)


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    if "test_driver" in metafunc.fixturenames:
        metafunc.parametrize("test_driver", _test_drivers(metafunc.config), indirect=True)


@pytest.fixture
def test_driver(request: pytest.FixtureRequest):
    """Driver id for the current test, with test extensions loaded."""
    driver = the_driver_with_test_extensions(request.param)
    with with_driver(driver):
        yield driver


class FixtureDatabases:
    """Test databases created during the session, one per driver and dataset."""

    def __init__(self):
        self._created: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, driver: str, definition: DefinitionLike) -> dict[str, Any]:
        dbdef = get_dataset_definition(definition)
        key = (driver, escaped_name(dbdef))
        with self._lock:
            if key not in self._created:
                logger.info(f"Creating test database {key[1]} for {driver}")
                create_db(driver, dbdef)
                self._created[key] = dbdef_to_connection_details(driver, "db", dbdef)
            return self._created[key]


@pytest.fixture(scope="session")
def fixture_databases() -> FixtureDatabases:
    return FixtureDatabases()


@pytest.fixture
def fixture_database(test_driver: str, fixture_databases: FixtureDatabases) -> Callable[[DefinitionLike], dict]:
    """Factory loading a dataset on the current driver; returns connection details."""

    def load(definition: DefinitionLike) -> dict[str, Any]:
        return fixture_databases.get(test_driver, definition)

    return load


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    torn_down = run_all_teardowns(_test_drivers(session.config))
    if torn_down:
        logger.info(f"Ran teardowns for {', '.join(torn_down)}")
