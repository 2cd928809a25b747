"""SQLAlchemy-backed test extensions shared by the SQL drivers.

Builds SQLAlchemy ``MetaData`` from a ``DatabaseDefinition`` and loads it
into a database. Every table gets an ``id`` primary key holding the row's
1-based position (unless the table defines ``id`` itself), which is what
foreign keys reference.
"""

import datetime as dt
from abc import abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Iterator, Sequence

import pandas as pd
from loguru import logger
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Engine,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    Time,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import TypeEngine, UserDefinedType

from fixturedb.core.exceptions import StorageError, UnknownTableError
from fixturedb.dataset.naming import escaped_name
from fixturedb.drivers.extensions import BaseType, DriverTestExtensions
from fixturedb.models.dataset import DatabaseDefinition, FieldDefinition, NativeType, TableDefinition
from fixturedb.models.enums import ConnectionContext, FieldType

ID_FIELD_NAME = "id"


class NativeSQLType(UserDefinedType):
    """Column type emitted verbatim from a native type definition."""

    cache_ok = True

    def __init__(self, spec: str):
        self.spec = spec

    def get_col_spec(self, **kw: Any) -> str:
        return self.spec


SQL_TYPES: dict[FieldType, TypeEngine] = {
    FieldType.BOOLEAN: Boolean(),
    FieldType.INTEGER: Integer(),
    FieldType.BIG_INTEGER: BigInteger(),
    FieldType.FLOAT: Float(),
    FieldType.DECIMAL: Numeric(precision=38, scale=10),
    FieldType.TEXT: Text(),
    FieldType.DATE: Date(),
    FieldType.TIME: Time(),
    FieldType.DATETIME: DateTime(),
    FieldType.DATETIME_WITH_TZ: DateTime(timezone=True),
    FieldType.UUID: String(36),
    FieldType.DICTIONARY: JSON(),
    FieldType.ARRAY: JSON(),
}

_TEMPORAL_PARSERS = {
    FieldType.DATE: dt.date.fromisoformat,
    FieldType.TIME: dt.time.fromisoformat,
    FieldType.DATETIME: dt.datetime.fromisoformat,
    FieldType.DATETIME_WITH_TZ: dt.datetime.fromisoformat,
}


def coerce_value(fielddef: FieldDefinition, value: Any) -> Any:
    """Convert ISO strings of temporal fields into Python temporal values."""
    parser = _TEMPORAL_PARSERS.get(fielddef.base_type) if isinstance(fielddef.base_type, FieldType) else None
    if parser is not None and isinstance(value, str):
        return parser(value)
    if fielddef.base_type == FieldType.DATE and isinstance(value, dt.datetime):
        return value.date()
    return value


def batched(rows: Sequence[dict[str, Any]], size: int) -> Iterator[Sequence[dict[str, Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class SQLTestExtensions(DriverTestExtensions):
    """Test extensions for drivers reachable through SQLAlchemy."""

    sql_types: ClassVar[dict[FieldType, TypeEngine]] = SQL_TYPES

    # Connection

    @abstractmethod
    def connection_url(self, driver: str, details: dict[str, Any]) -> str:
        """SQLAlchemy URL for a set of connection details."""
        pass

    def engine_options(self, driver: str, details: dict[str, Any]) -> dict[str, Any]:
        """Extra keyword arguments for ``create_engine``."""
        from fixturedb.config import get_config

        return {"echo": get_config().database.sqlalchemy.echo}

    def create_engine(
        self, driver: str, context: ConnectionContext, dbdef: DatabaseDefinition, **kwargs: Any
    ) -> Engine:
        """SQLAlchemy engine for the server or the database of ``dbdef``."""
        from sqlalchemy import create_engine

        details = self.dbdef_to_connection_details(driver, context, dbdef)
        options = self.engine_options(driver, details)
        options.update(kwargs)
        return create_engine(self.connection_url(driver, details), **options)

    @abstractmethod
    def drop_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        """Drop the database for ``dbdef`` if it exists."""
        pass

    @abstractmethod
    def create_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        """Create an empty database for ``dbdef``."""
        pass

    # Schema

    def field_sql_type(self, driver: str, fielddef: FieldDefinition) -> TypeEngine:
        if isinstance(fielddef.base_type, NativeType):
            return NativeSQLType(fielddef.base_type.native)
        return self.sql_types.get(fielddef.base_type, Text())

    def expected_base_type_to_actual(self, driver: str, base_type: BaseType) -> BaseType:
        if base_type == FieldType.UUID and isinstance(self.sql_types.get(FieldType.UUID), String):
            return FieldType.TEXT
        return base_type

    def build_table(self, driver: str, tabledef: TableDefinition, metadata: MetaData) -> Table:
        """SQLAlchemy table for ``tabledef``, registered on ``metadata``."""
        columns = []
        if tabledef.field(ID_FIELD_NAME) is None:
            columns.append(
                Column(
                    self.format_name(driver, ID_FIELD_NAME),
                    self.sql_types[self.id_field_type(driver)],
                    primary_key=True,
                    autoincrement=False,
                )
            )

        for fielddef in tabledef.field_definitions:
            args: list[Any] = []
            if fielddef.fk:
                target = f"{self.format_name(driver, fielddef.fk)}.{self.format_name(driver, ID_FIELD_NAME)}"
                args.append(ForeignKey(target))
            columns.append(
                Column(
                    self.format_name(driver, fielddef.field_name),
                    self.field_sql_type(driver, fielddef),
                    *args,
                    primary_key=fielddef.field_name == ID_FIELD_NAME,
                    autoincrement=False,
                    comment=fielddef.field_comment,
                )
            )

        return Table(
            self.format_name(driver, tabledef.table_name),
            metadata,
            *columns,
            comment=tabledef.table_comment,
        )

    def build_metadata(self, driver: str, dbdef: DatabaseDefinition) -> MetaData:
        """SQLAlchemy metadata for every table of ``dbdef``."""
        metadata = MetaData()
        for tabledef in dbdef.table_definitions:
            self.build_table(driver, tabledef, metadata)
        return metadata

    # Data

    def table_rows(self, driver: str, tabledef: TableDefinition) -> list[dict[str, Any]]:
        """Rows of ``tabledef`` keyed by column name, with implicit ids."""
        implicit_id = tabledef.field(ID_FIELD_NAME) is None
        id_column = self.format_name(driver, ID_FIELD_NAME)
        column_names = [self.format_name(driver, name) for name in tabledef.field_names]

        rows = []
        for row_id, row in enumerate(tabledef.rows, start=1):
            values = {
                column: coerce_value(fielddef, value)
                for column, fielddef, value in zip(column_names, tabledef.field_definitions, row)
            }
            if implicit_id:
                values[id_column] = row_id
            rows.append(values)
        return rows

    def load_data(self, driver: str, dbdef: DatabaseDefinition, metadata: MetaData, engine: Engine) -> None:
        """Insert the rows of every table, referenced tables first."""
        from fixturedb.config import get_config

        batch_size = get_config().performance.batch_size
        tabledefs = {self.format_name(driver, t.table_name): t for t in dbdef.table_definitions}

        with engine.begin() as conn:
            for table in metadata.sorted_tables:
                rows = self.table_rows(driver, tabledefs[table.name])
                for batch in batched(rows, batch_size):
                    conn.execute(table.insert(), list(batch))
                logger.debug(f"Inserted {len(rows)} rows into {table.name}")

    def create_db(self, driver: str, dbdef: DatabaseDefinition, skip_drop_db: bool = False) -> None:
        name = escaped_name(dbdef)
        logger.info(f"Creating {driver} test database {name}")

        if not skip_drop_db:
            self.drop_database(driver, dbdef)
        self.create_database(driver, dbdef)

        engine = self.create_engine(driver, ConnectionContext.DATABASE, dbdef)
        try:
            metadata = self.build_metadata(driver, dbdef)
            metadata.create_all(engine)
            self.load_data(driver, dbdef, metadata, engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create {driver} test database {name}: {e}") from e
        finally:
            engine.dispose()

    def read_table(self, driver: str, dbdef: DatabaseDefinition, table_name: str) -> pd.DataFrame:
        """Read a materialized table back, ordered by primary key."""
        tabledef = dbdef.table(table_name)
        if tabledef is None:
            raise UnknownTableError(table_name, dbdef.database_name)

        table = self.build_table(driver, tabledef, MetaData())
        engine = self.create_engine(driver, ConnectionContext.DATABASE, dbdef)
        try:
            with engine.connect() as conn:
                return pd.read_sql_query(select(table).order_by(*table.primary_key.columns), conn)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read table {table_name}: {e}") from e
        finally:
            engine.dispose()


class FileSQLTestExtensions(SQLTestExtensions):
    """Drivers keeping each test database in its own file."""

    file_suffix: ClassVar[str] = ".db"
    url_scheme: ClassVar[str] = ""

    def databases_dir(self, driver: str) -> Path:
        from fixturedb.config import get_config_manager

        manager = get_config_manager()
        return manager.config.get_full_path("databases_path", manager.base_path) / driver

    def database_path(self, driver: str, dbdef: DatabaseDefinition) -> Path:
        return self.databases_dir(driver) / f"{escaped_name(dbdef)}{self.file_suffix}"

    def dbdef_to_connection_details(
        self, driver: str, context: ConnectionContext, dbdef: DatabaseDefinition
    ) -> dict[str, Any]:
        if context == ConnectionContext.SERVER:
            return {"db": str(self.databases_dir(driver))}
        return {"db": str(self.database_path(driver, dbdef))}

    def connection_url(self, driver: str, details: dict[str, Any]) -> str:
        return f"{self.url_scheme}:///{details['db']}"

    def database_files(self, path: Path) -> list[Path]:
        """Files making up the database at ``path``."""
        return [path]

    def drop_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        path = self.database_path(driver, dbdef)
        try:
            for file in self.database_files(path):
                if file.exists():
                    file.unlink()
        except OSError as e:
            raise StorageError(f"Failed to drop {driver} database {path}: {e}") from e

    def create_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        # The file itself is created on first connect
        self.database_path(driver, dbdef).parent.mkdir(parents=True, exist_ok=True)
