"""PostgreSQL test extensions.

Connection parameters come from ``MB_<DRIVER>_TEST_<KEY>`` variables
(``HOST``, ``PORT``, ``USER``, ``PASSWORD``), so drivers deriving from
``postgres`` read their own variables, e.g. ``MB_REDSHIFT_TEST_HOST``.
"""

from typing import Any, ClassVar

import psycopg2
from psycopg2 import errors, sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy import URL, Uuid
from sqlalchemy.types import TypeEngine

from fixturedb.core.exceptions import StorageError
from fixturedb.dataset.naming import escaped_name
from fixturedb.drivers.env import db_test_env_var, lookup_test_credential
from fixturedb.drivers.registry import register_test_extensions
from fixturedb.drivers.sql import SQL_TYPES, SQLTestExtensions
from fixturedb.models.dataset import DatabaseDefinition
from fixturedb.models.enums import ConnectionContext, FieldType

ADMIN_DATABASE = "postgres"


@register_test_extensions("postgres")
class PostgresTestExtensions(SQLTestExtensions):
    """One PostgreSQL database per test database."""

    features = frozenset({"set-timezone"})
    sql_types: ClassVar[dict[FieldType, TypeEngine]] = {**SQL_TYPES, FieldType.UUID: Uuid(as_uuid=False)}

    def dbdef_to_connection_details(
        self, driver: str, context: ConnectionContext, dbdef: DatabaseDefinition
    ) -> dict[str, Any]:
        details = {
            "host": lookup_test_credential(driver, "host", "localhost"),
            "port": int(lookup_test_credential(driver, "port", "5432")),
            "user": lookup_test_credential(driver, "user"),
        }
        password = db_test_env_var(driver, "password")
        if password:
            details["password"] = password
        details["dbname"] = escaped_name(dbdef) if context == ConnectionContext.DATABASE else ADMIN_DATABASE
        return details

    def connection_url(self, driver: str, details: dict[str, Any]) -> str:
        url = URL.create(
            "postgresql+psycopg2",
            username=details["user"],
            password=details.get("password"),
            host=details["host"],
            port=details["port"],
            database=details["dbname"],
        )
        return url.render_as_string(hide_password=False)

    def _admin_connection(self, driver: str, dbdef: DatabaseDefinition) -> Any:
        details = self.dbdef_to_connection_details(driver, ConnectionContext.SERVER, dbdef)
        conn = psycopg2.connect(**details)
        conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        return conn

    def drop_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        db_name = escaped_name(dbdef)
        try:
            conn = self._admin_connection(driver, dbdef)
            try:
                with conn.cursor() as cursor:
                    # Terminate existing connections to the database
                    cursor.execute(
                        "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                        "WHERE datname = %s AND pid <> pg_backend_pid()",
                        (db_name,),
                    )
                    cursor.execute(sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(db_name)))
            finally:
                conn.close()
        except psycopg2.Error as e:
            raise StorageError(f"Failed to drop PostgreSQL database {db_name}: {e}") from e

    def create_database(self, driver: str, dbdef: DatabaseDefinition) -> None:
        db_name = escaped_name(dbdef)
        try:
            conn = self._admin_connection(driver, dbdef)
            try:
                with conn.cursor() as cursor:
                    cursor.execute(sql.SQL("CREATE DATABASE {} ENCODING 'UTF8'").format(sql.Identifier(db_name)))
            finally:
                conn.close()
        except errors.DuplicateDatabase:
            # Kept from a previous run with skip_drop_db
            pass
        except psycopg2.Error as e:
            raise StorageError(f"Failed to create PostgreSQL database {db_name}: {e}") from e
