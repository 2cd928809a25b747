"""Enums for FixtureDB models."""

from enum import Enum


class FieldType(str, Enum):
    """Semantic field type.

    Used both as the base type of a field and as its optional special type.
    """

    # Base types
    BOOLEAN = "type/Boolean"
    INTEGER = "type/Integer"
    BIG_INTEGER = "type/BigInteger"
    FLOAT = "type/Float"
    DECIMAL = "type/Decimal"
    TEXT = "type/Text"
    DATE = "type/Date"
    TIME = "type/Time"
    DATETIME = "type/DateTime"
    DATETIME_WITH_TZ = "type/DateTimeWithTZ"
    UUID = "type/UUID"
    DICTIONARY = "type/Dictionary"
    ARRAY = "type/Array"

    # Special types
    NUMBER = "type/Number"
    PK = "type/PK"
    FK = "type/FK"
    CATEGORY = "type/Category"
    CURRENCY = "type/Currency"
    NAME = "type/Name"
    LATITUDE = "type/Latitude"
    LONGITUDE = "type/Longitude"
    URL = "type/URL"
    EMAIL = "type/Email"


class VisibilityType(str, Enum):
    """Field visibility classification."""

    NORMAL = "normal"
    DETAILS_ONLY = "details-only"
    HIDDEN = "hidden"
    SENSITIVE = "sensitive"
    RETIRED = "retired"


class ConnectionContext(str, Enum):
    """What a set of connection details should reach."""

    SERVER = "server"
    DATABASE = "db"


class AggregationType(str, Enum):
    """Aggregation kinds with expected result column metadata."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    DISTINCT = "distinct"
    MIN = "min"
    MAX = "max"
    STDDEV = "stddev"
    CUM_SUM = "cum-sum"
    CUM_COUNT = "cum-count"
