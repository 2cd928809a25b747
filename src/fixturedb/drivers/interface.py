"""Driver test extension contract, dispatched on driver id.

Each function loads the driver's test extensions (and runs its
``before_run`` hook) the first time the driver is used, then calls the
nearest implementation in the driver hierarchy.
"""

from typing import Any, Mapping, Optional, Union

from fixturedb.dataset.sources import DefinitionLike, get_dataset_definition
from fixturedb.drivers.extensions import BaseType
from fixturedb.drivers.registry import get_registry
from fixturedb.models.enums import AggregationType, ConnectionContext, FieldType


def dbdef_to_connection_details(
    driver: str, context: Union[ConnectionContext, str], dbdef: DefinitionLike
) -> dict[str, Any]:
    """Connection details for the database created for ``dbdef``.

    ``context`` is ``"server"`` for DB-agnostic details or ``"db"`` for the
    database itself.
    """
    extensions = get_registry().extensions_for(driver)
    return extensions.dbdef_to_connection_details(
        driver, ConnectionContext(context), get_dataset_definition(dbdef)
    )


def create_db(driver: str, dbdef: DefinitionLike, skip_drop_db: bool = False) -> None:
    """Create the physical database for ``dbdef`` on ``driver``."""
    extensions = get_registry().extensions_for(driver)
    extensions.create_db(driver, get_dataset_definition(dbdef), skip_drop_db=skip_drop_db)


def expected_base_type_to_actual(driver: str, base_type: BaseType) -> BaseType:
    """Base type observed after storing a field of ``base_type`` on ``driver``."""
    return get_registry().extensions_for(driver).expected_base_type_to_actual(driver, base_type)


def format_name(driver: str, name: str) -> str:
    """Backend-appropriate form of a lowercase table or field name."""
    return get_registry().extensions_for(driver).format_name(driver, name)


def has_questionable_timezone_support(driver: str) -> bool:
    return get_registry().extensions_for(driver).has_questionable_timezone_support(driver)


def id_field_type(driver: str) -> FieldType:
    return get_registry().extensions_for(driver).id_field_type(driver)


def aggregate_column_info(
    driver: str,
    aggregation_type: Union[AggregationType, str],
    field: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Expected result column metadata for an aggregation on ``driver``."""
    return get_registry().extensions_for(driver).aggregate_column_info(driver, aggregation_type, field)


def supports(driver: str, feature: str) -> bool:
    return get_registry().extensions_for(driver).supports(driver, feature)
