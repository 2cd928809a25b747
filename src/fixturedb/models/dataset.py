"""Dataset definition models.

A ``DatabaseDefinition`` describes a relational test dataset: its tables,
their fields and the rows to load. Definitions are immutable values;
transformations always build new ones.
"""

from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from fixturedb.core.exceptions import SchemaValidationError
from fixturedb.models.enums import FieldType, VisibilityType

if TYPE_CHECKING:
    import pandas as pd


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must be a non-blank string")
    return value


NonBlankString = Annotated[str, AfterValidator(_non_blank)]


def _coerce_field_type(value: Any) -> Any:
    """Allow ``Integer`` as shorthand for ``type/Integer``."""
    if isinstance(value, str) and not value.startswith("type/"):
        return f"type/{value}"
    return value


def _error_path(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return ""
    return ".".join(str(part) for part in errors[0]["loc"])


def _describe(model_name: str, name: Any, error: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in error.errors()
    )
    label = f"{model_name} '{name}'" if isinstance(name, str) and name else model_name
    return f"Invalid {label}: {details}"


class DefinitionModel(BaseModel):
    """Base class for the immutable definition models.

    Validation failures surface as ``SchemaValidationError`` naming the
    offending definition and path, never as a raw pydantic error.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name_field: ClassVar[str] = ""

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise SchemaValidationError(
                _describe(type(self).__name__, data.get(type(self).name_field), e),
                path=_error_path(e),
            ) from e

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any):
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            name = obj.get(cls.name_field) if isinstance(obj, dict) else None
            raise SchemaValidationError(_describe(cls.__name__, name, e), path=_error_path(e)) from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build a definition from a plain mapping."""
        if not isinstance(data, dict):
            raise SchemaValidationError(
                f"Invalid {cls.__name__}: expected a mapping, got {type(data).__name__}"
            )
        bad_keys = [key for key in data if not isinstance(key, str)]
        if bad_keys:
            raise SchemaValidationError(f"Invalid {cls.__name__}: keys must be strings, got {bad_keys!r}")
        return cls(**data)

    def replace(self, **changes: Any):
        """Return a validated copy with ``changes`` applied."""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)


class NativeType(DefinitionModel):
    """Escape hatch carrying a backend-specific column type verbatim."""

    native: NonBlankString

    def __str__(self) -> str:
        return self.native


class FieldDefinition(DefinitionModel):
    """A single field (column) of a table definition."""

    name_field: ClassVar[str] = "field_name"

    field_name: NonBlankString = Field(description="Field name, unique within its table")
    base_type: Union[NativeType, FieldType] = Field(description="Semantic or native type")
    special_type: Optional[FieldType] = Field(default=None, description="Semantic tag")
    visibility_type: Optional[VisibilityType] = Field(default=None, description="Visibility")
    fk: Optional[NonBlankString] = Field(default=None, description="Referenced table name")
    field_comment: Optional[NonBlankString] = Field(default=None, description="Comment")

    @field_validator("base_type", "special_type", mode="before")
    @classmethod
    def coerce_field_type(cls, v: Any) -> Any:
        """Accept short type names."""
        return _coerce_field_type(v)

    def pretty(self) -> str:
        base_type = self.base_type.value if isinstance(self.base_type, FieldType) else f"native {self.base_type}"
        fk = f" -> {self.fk}" if self.fk else ""
        return f"{self.field_name}: {base_type}{fk}"


class TableDefinition(DefinitionModel):
    """A table: ordered fields plus rows aligned positionally with them.

    The 1-based position of a row is its implicit id, which is what
    foreign keys refer to.
    """

    name_field: ClassVar[str] = "table_name"

    table_name: NonBlankString = Field(description="Table name, unique within its database")
    field_definitions: tuple[FieldDefinition, ...] = Field(description="Ordered fields")
    rows: tuple[tuple[Any, ...], ...] = Field(default=(), description="Row values")
    table_comment: Optional[NonBlankString] = Field(default=None, description="Comment")

    @field_validator("field_definitions")
    @classmethod
    def validate_unique_field_names(cls, v: tuple[FieldDefinition, ...]) -> tuple[FieldDefinition, ...]:
        """Field names must be unique within a table."""
        seen: set[str] = set()
        for field_def in v:
            if field_def.field_name in seen:
                raise ValueError(f"duplicate field name '{field_def.field_name}'")
            seen.add(field_def.field_name)
        return v

    @field_validator("rows")
    @classmethod
    def validate_row_lengths(cls, v: tuple[tuple[Any, ...], ...], info: ValidationInfo) -> tuple[tuple[Any, ...], ...]:
        """Every row needs exactly one value per field."""
        field_definitions = info.data.get("field_definitions")
        if field_definitions is None:
            # Fields already failed validation
            return v
        expected = len(field_definitions)
        for i, row in enumerate(v, start=1):
            if len(row) != expected:
                raise ValueError(
                    f"row {i} has {len(row)} values but {expected} fields are defined"
                )
        return v

    @property
    def field_names(self) -> list[str]:
        return [field_def.field_name for field_def in self.field_definitions]

    def field(self, field_name: str) -> Optional[FieldDefinition]:
        """Return the field named ``field_name``, if any."""
        for field_def in self.field_definitions:
            if field_def.field_name == field_name:
                return field_def
        return None

    def to_dataframe(self) -> "pd.DataFrame":
        """Rows of this table as a pandas DataFrame."""
        import pandas as pd

        return pd.DataFrame([list(row) for row in self.rows], columns=self.field_names)

    def pretty(self) -> str:
        return f"TableDefinition({self.table_name!r}, fields={self.field_names}, rows={len(self.rows)})"


class DatabaseDefinition(DefinitionModel):
    """A whole test database: a name and its tables."""

    name_field: ClassVar[str] = "database_name"

    database_name: NonBlankString = Field(description="Database name")
    table_definitions: tuple[TableDefinition, ...] = Field(default=(), description="Ordered tables")

    @field_validator("table_definitions")
    @classmethod
    def validate_unique_table_names(cls, v: tuple[TableDefinition, ...]) -> tuple[TableDefinition, ...]:
        """Table names must be unique within a database."""
        seen: set[str] = set()
        for table_def in v:
            if table_def.table_name in seen:
                raise ValueError(f"duplicate table name '{table_def.table_name}'")
            seen.add(table_def.table_name)
        return v

    @property
    def table_names(self) -> list[str]:
        return [table_def.table_name for table_def in self.table_definitions]

    def table(self, table_name: str) -> Optional[TableDefinition]:
        """Return the table named ``table_name``, if any."""
        for table_def in self.table_definitions:
            if table_def.table_name == table_name:
                return table_def
        return None

    def resolve(self) -> "DatabaseDefinition":
        """A definition is its own source."""
        return self

    def pretty(self) -> str:
        return f"DatabaseDefinition({self.database_name!r}, tables={self.table_names})"
