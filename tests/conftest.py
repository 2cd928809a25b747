"""Pytest configuration and fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest

from fixturedb.config import reset_config_manager
from fixturedb.core.logging import reset_logging
from fixturedb.dataset.sources import dataset_definition
from fixturedb.drivers.registry import reset_registry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture(autouse=True)
def fixturedb_home(temp_dir, monkeypatch):
    """Isolate configuration, registry and environment for every test."""
    monkeypatch.setenv("FIXTUREDB_HOME_DIR", str(temp_dir))
    for name in ("FIXTUREDB_DRIVERS_TEST_DRIVERS", "FIXTUREDB_CREDENTIALS_ENV_PREFIX", "FIXTUREDB_LOGGING_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    reset_config_manager()
    reset_registry()
    reset_logging()
    yield temp_dir
    reset_config_manager()
    reset_registry()


@pytest.fixture
def write_config(temp_dir):
    """Write ``fixturedb.yaml`` into the test home directory."""

    def write(text: str) -> Path:
        config_file = temp_dir / "fixturedb.yaml"
        config_file.write_text(text)
        reset_config_manager()
        reset_registry()
        return config_file

    return write


@pytest.fixture
def shop_definition():
    """Categories and products, joined by ``products.category_id``."""
    return dataset_definition(
        "shop",
        (
            "categories",
            [
                {"field_name": "id", "base_type": "Integer"},
                {"field_name": "name", "base_type": "Text"},
            ],
            [[1, "toys"], [2, "books"]],
        ),
        (
            "products",
            [
                {"field_name": "id", "base_type": "Integer"},
                {"field_name": "category_id", "base_type": "Integer", "fk": "categories"},
                {"field_name": "title", "base_type": "Text"},
            ],
            [[1, 1, "robot"], [2, 2, "atlas"]],
        ),
    )


@pytest.fixture
def orders_definition():
    """``orders.user_id -> users.region_id -> regions.name`` with implicit ids."""
    users = [[f"user {i}", 1] for i in range(1, 7)] + [["user 7", 3]]
    return dataset_definition(
        "orders",
        ("regions", [{"field_name": "name", "base_type": "Text"}], [["north"], ["south"], ["west"]]),
        (
            "users",
            [
                {"field_name": "name", "base_type": "Text"},
                {"field_name": "region_id", "base_type": "Integer", "fk": "regions"},
            ],
            users,
        ),
        (
            "orders",
            [
                {"field_name": "user_id", "base_type": "Integer", "fk": "users"},
                {"field_name": "total", "base_type": "Float"},
            ],
            [[7, 42.5], [1, 13.0]],
        ),
    )


@pytest.fixture
def definitions_dir(temp_dir):
    """Empty directory for YAML dataset resources."""
    path = temp_dir / "definitions"
    path.mkdir()
    return path
