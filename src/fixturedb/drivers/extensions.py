"""Driver test extension interface.

``DriverTestExtensions`` is the contract every backend plugin implements to
load a ``DatabaseDefinition`` into a real data store. Methods with a default
here apply to every driver that does not override them; the rest are
abstract. Each method receives the driver id it is being invoked for, which
may be a descendant of the driver the implementation was registered for.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping, Optional, Union

from fixturedb.models.dataset import DatabaseDefinition, NativeType
from fixturedb.models.enums import AggregationType, ConnectionContext, FieldType

BaseType = Union[FieldType, NativeType]


class DriverTestExtensions(ABC):
    """Base implementation of the driver test extension contract."""

    # Optional driver features, e.g. "set-timezone"
    features: ClassVar[frozenset[str]] = frozenset()

    def supports(self, driver: str, feature: str) -> bool:
        """Whether ``driver`` supports ``feature``."""
        return feature in self.features

    def before_run(self, driver: str) -> None:
        """Initialization needed before running tests for this driver, e.g.
        creating shared test databases.

        Called automatically, exactly once per driver per process, after the
        driver's extensions are loaded. Do not call it directly.
        """
        pass

    def after_run(self, driver: str) -> None:
        """Cleanup after all tests ran, e.g. deleting test databases.

        Called automatically at most once per driver. Do not call it directly.
        """
        pass

    @abstractmethod
    def dbdef_to_connection_details(
        self, driver: str, context: ConnectionContext, dbdef: DatabaseDefinition
    ) -> dict[str, Any]:
        """Connection details for the database created for ``dbdef``.

        Args:
            driver: Driver id
            context: ``SERVER`` for DB-agnostic details (creating/dropping
                databases), ``DATABASE`` for connecting to the database itself
            dbdef: Database definition

        Returns:
            Connection details mapping
        """
        pass

    @abstractmethod
    def create_db(self, driver: str, dbdef: DatabaseDefinition, skip_drop_db: bool = False) -> None:
        """Create the physical database for ``dbdef``: tables, fields, FK
        constraints and rows.

        An existing database with the same name is dropped first unless
        ``skip_drop_db`` is set.
        """
        pass

    def expected_base_type_to_actual(self, driver: str, base_type: BaseType) -> BaseType:
        """Base type observed after storing a field of ``base_type``.

        Identity by default; backends missing a type return the type they
        substitute for it.
        """
        return base_type

    def format_name(self, driver: str, name: str) -> str:
        """Backend-appropriate form of a lowercase table or field name."""
        return name

    def has_questionable_timezone_support(self, driver: str) -> bool:
        """Does this driver group by UTC instead of the report timezone?"""
        return not self.supports(driver, "set-timezone")

    def id_field_type(self, driver: str) -> FieldType:
        """Base type of synthetic ``id`` fields."""
        return FieldType.INTEGER

    def aggregate_column_info(
        self,
        driver: str,
        aggregation_type: Union[AggregationType, str],
        field: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Expected result column metadata for an aggregation.

        Args:
            driver: Driver id
            aggregation_type: Aggregation kind
            field: Type information of the aggregated field; must hold
                ``base_type`` and ``special_type``. Only ``count`` may omit it.

        Returns:
            Column metadata mapping
        """
        aggregation_type = AggregationType(aggregation_type)

        if field is None:
            if aggregation_type != AggregationType.COUNT:
                raise ValueError(f"Aggregation {aggregation_type.value} requires a field")
            return {
                "base_type": FieldType.INTEGER,
                "special_type": FieldType.NUMBER,
                "name": "count",
                "display_name": "count",
                "source": "aggregation",
            }

        missing = [key for key in ("base_type", "special_type") if not field.get(key)]
        if missing:
            raise ValueError(f"Field info for {aggregation_type.value} is missing {', '.join(missing)}")

        info = {
            "base_type": field["base_type"],
            "special_type": field["special_type"],
            "settings": None,
            "name": aggregation_type.value,
            "display_name": aggregation_type.value,
            "source": "aggregation",
        }
        # count always gets the same types regardless of the field
        if aggregation_type == AggregationType.COUNT:
            info.update(self.aggregate_column_info(driver, AggregationType.COUNT))
        return info
