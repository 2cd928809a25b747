"""Integration tests materializing datasets into file-based databases."""

import datetime as dt

import pandas as pd
import pytest
from sqlalchemy import create_engine, inspect, text

from fixturedb.core.exceptions import StorageError, UnknownTableError
from fixturedb.dataset.flatten import flattened_dataset_definition
from fixturedb.dataset.sources import FileDatasetSource, dataset_definition, get_dataset_definition
from fixturedb.drivers import interface
from fixturedb.drivers.registry import get_registry, the_driver_with_test_extensions

pytestmark = pytest.mark.integration


@pytest.fixture(params=["sqlite", "duckdb"])
def driver(request):
    return the_driver_with_test_extensions(request.param)


def url_for(driver, dbdef):
    extensions = get_registry().extensions_for(driver)
    return extensions.connection_url(driver, interface.dbdef_to_connection_details(driver, "db", dbdef))


class TestMaterialize:
    """Round-trip datasets through real databases."""

    def test_rows_round_trip(self, driver, shop_definition):
        interface.create_db(driver, shop_definition)

        df = get_registry().extensions_for(driver).read_table(driver, shop_definition, "products")

        assert df["id"].tolist() == [1, 2]
        assert df["category_id"].tolist() == [1, 2]
        assert df["title"].tolist() == ["robot", "atlas"]

    def test_implicit_ids_and_foreign_keys(self, driver, orders_definition):
        interface.create_db(driver, orders_definition)

        engine = create_engine(url_for(driver, orders_definition))
        try:
            with engine.connect() as conn:
                region = conn.execute(
                    text(
                        "SELECT r.name FROM orders o "
                        "JOIN users u ON o.user_id = u.id "
                        "JOIN regions r ON u.region_id = r.id "
                        "WHERE o.id = 1"
                    )
                ).scalar()
        finally:
            engine.dispose()

        assert region == "west"

    def test_recreate_drops_existing(self, driver, shop_definition):
        interface.create_db(driver, shop_definition)
        interface.create_db(driver, shop_definition)

        df = get_registry().extensions_for(driver).read_table(driver, shop_definition, "categories")
        assert len(df) == 2

    def test_bundled_dataset_with_dates(self, driver):
        dbdef = FileDatasetSource("orders").resolve()
        interface.create_db(driver, dbdef)

        df = get_registry().extensions_for(driver).read_table(driver, dbdef, "orders")

        assert len(df) == 4
        assert pd.to_datetime(df["ordered_on"]).dt.date.tolist()[0] == dt.date(2014, 4, 7)

    def test_flattened_dataset(self, driver, orders_definition):
        flat = flattened_dataset_definition(orders_definition, "orders", "flat-orders")
        interface.create_db(driver, flat)

        dbdef = get_dataset_definition(flat)
        df = get_registry().extensions_for(driver).read_table(driver, dbdef, "orders")
        assert df["user_region_name"].tolist() == ["west", "north"]

    def test_small_batches(self, driver, write_config):
        write_config("performance:\n  batch_size: 2\n")
        the_driver_with_test_extensions(driver)
        rows = [[f"item {i}"] for i in range(7)]
        dbdef = dataset_definition("batched", ("items", [{"field_name": "name", "base_type": "Text"}], rows))

        interface.create_db(driver, dbdef)

        df = get_registry().extensions_for(driver).read_table(driver, dbdef, "items")
        assert df["id"].tolist() == list(range(1, 8))

    def test_read_unknown_table(self, driver, shop_definition):
        with pytest.raises(UnknownTableError):
            get_registry().extensions_for(driver).read_table(driver, shop_definition, "missing")


class TestSQLiteConstraints:
    """SQLite-specific behavior."""

    def test_foreign_keys_enforced(self):
        dbdef = dataset_definition(
            "dangling",
            ("regions", [{"field_name": "name", "base_type": "Text"}], [["north"]]),
            ("users", [{"field_name": "region_id", "base_type": "Integer", "fk": "regions"}], [[5]]),
        )

        with pytest.raises(StorageError, match="Failed to create sqlite test database dangling"):
            interface.create_db("sqlite", dbdef)

    def test_foreign_keys_declared(self, orders_definition):
        interface.create_db("sqlite", orders_definition)

        engine = create_engine(url_for("sqlite", orders_definition))
        try:
            foreign_keys = inspect(engine).get_foreign_keys("users")
        finally:
            engine.dispose()

        assert foreign_keys[0]["referred_table"] == "regions"
        assert foreign_keys[0]["referred_columns"] == ["id"]
