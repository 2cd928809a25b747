"""Unit tests for flattening dataset definitions."""

import pytest

from fixturedb.core.exceptions import (
    FlattenedNameCollisionError,
    SchemaValidationError,
    UnknownForeignKeyTargetError,
    UnknownTableError,
)
from fixturedb.dataset.flatten import (
    flatten_field_name,
    flatten_rows,
    flattened_dataset_definition,
    nest_field_definitions,
    singularize,
)
from fixturedb.dataset.sources import dataset_definition, get_dataset_definition
from fixturedb.dataset.transform import TransformedDatasetSource


class TestNaming:
    """Test flattened field names."""

    @pytest.mark.parametrize(
        "table_name,expected",
        [("categories", "category"), ("users", "user"), ("regions", "region"), ("sheep", "sheep")],
    )
    def test_singularize(self, table_name, expected):
        assert singularize(table_name) == expected

    def test_plain_name(self):
        assert flatten_field_name("title") == "title"

    def test_nested_name(self):
        name = ("venue_id", "venues", ("category_id", "categories", "name"))
        assert flatten_field_name(name) == "venue_category_name"


class TestNestFieldDefinitions:
    """Test FK expansion."""

    def test_fk_replaced_by_referenced_fields(self, shop_definition):
        names = [nested.name for nested in nest_field_definitions(shop_definition, "products")]

        assert names == [
            "id",
            ("category_id", "categories", "id"),
            ("category_id", "categories", "name"),
            "title",
        ]

    def test_chain(self, orders_definition):
        names = [nested.name for nested in nest_field_definitions(orders_definition, "orders")]

        assert names == [
            ("user_id", "users", "name"),
            ("user_id", "users", ("region_id", "regions", "name")),
            "total",
        ]

    def test_unknown_table(self, shop_definition):
        with pytest.raises(UnknownTableError) as exc_info:
            nest_field_definitions(shop_definition, "missing")
        assert exc_info.value.table_name == "missing"

    def test_unknown_fk_target(self):
        dbdef = dataset_definition(
            "broken",
            ("products", [{"field_name": "vendor_id", "base_type": "Integer", "fk": "vendors"}], [[1]]),
        )

        with pytest.raises(UnknownForeignKeyTargetError) as exc_info:
            nest_field_definitions(dbdef, "products")

        assert exc_info.value.target == "vendors"
        assert "products.vendor_id" in str(exc_info.value)


class TestFlattenRows:
    """Test FK resolution of row values."""

    def test_chain_resolution(self, orders_definition):
        rows = flatten_rows(orders_definition, "orders")

        # Order 1 references user 7, whose region is 3 ("west")
        assert rows[0] == ("user 7", "west", 42.5)
        assert rows[1] == ("user 1", "north", 13.0)

    def test_null_fk(self):
        dbdef = dataset_definition(
            "nulls",
            ("regions", [{"field_name": "name", "base_type": "Text"}], [["north"]]),
            (
                "users",
                [{"field_name": "region_id", "base_type": "Integer", "fk": "regions"}],
                [[None], [5]],
            ),
        )

        assert flatten_rows(dbdef, "users") == [(None,), (None,)]


class TestFlattenedDatasetDefinition:
    """Test the flattened source."""

    def test_shop(self, shop_definition):
        source = flattened_dataset_definition(shop_definition, "products")
        dbdef = get_dataset_definition(source)

        assert isinstance(source, TransformedDatasetSource)
        assert dbdef.database_name == "shop"
        assert dbdef.table_names == ["products"]

        products = dbdef.table("products")
        assert products.field_names == ["id", "category_id", "category_name", "title"]
        assert products.rows == ((1, 1, "toys", "robot"), (2, 2, "books", "atlas"))
        assert all(field.fk is None for field in products.field_definitions)

    def test_chain_field(self, orders_definition):
        dbdef = flattened_dataset_definition(orders_definition, "orders", "flat-orders").resolve()
        orders = dbdef.table("orders")

        assert dbdef.database_name == "flat-orders"
        assert orders.field_names == ["user_name", "user_region_name", "total"]
        assert orders.rows[0][orders.field_names.index("user_region_name")] == "west"

    def test_no_foreign_keys_is_identity(self, shop_definition):
        categories = flattened_dataset_definition(shop_definition, "categories").resolve().table("categories")
        assert categories == shop_definition.table("categories")

    def test_types_carried_over(self, orders_definition):
        orders = flattened_dataset_definition(orders_definition, "orders").resolve().table("orders")
        assert orders.field("user_region_name").base_type == orders_definition.table("regions").field("name").base_type

    def test_unknown_table_raised_on_resolve(self, shop_definition):
        source = flattened_dataset_definition(shop_definition, "missing")
        with pytest.raises(UnknownTableError):
            source.resolve()

    def test_two_foreign_keys_to_one_table(self):
        flights = dataset_definition(
            "flights",
            ("airports", [{"field_name": "name", "base_type": "Text"}], [["SFO"], ["JFK"]]),
            (
                "flights",
                [
                    {"field_name": "origin_id", "base_type": "Integer", "fk": "airports"},
                    {"field_name": "dest_id", "base_type": "Integer", "fk": "airports"},
                ],
                [[1, 2]],
            ),
        )

        with pytest.raises(FlattenedNameCollisionError) as exc_info:
            flattened_dataset_definition(flights, "flights").resolve()

        assert exc_info.value.field_name == "airport_name"
        assert exc_info.value.paths == ["origin_id.airports.name", "dest_id.airports.name"]
        assert isinstance(exc_info.value, SchemaValidationError)
