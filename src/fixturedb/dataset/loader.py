"""Reading dataset definitions from YAML resources.

A resource is a YAML document holding a list of tables. Each table is either
a mapping::

    - table_name: categories
      field_definitions:
        - {field_name: name, base_type: Text}
      rows:
        - [toys]

or a positional ``[table_name, fields, rows]`` triple.
"""

from pathlib import Path
from typing import Any, Optional, Sequence, Union

import yaml
from loguru import logger

from fixturedb.core.exceptions import MalformedResourceError, ResourceNotFoundError, SchemaValidationError
from fixturedb.models.dataset import DatabaseDefinition, FieldDefinition, TableDefinition

BUNDLED_DEFINITIONS_DIR = Path(__file__).parent / "definitions"
DEFINITION_SUFFIXES = (".yaml", ".yml")

TableSpec = Union[Sequence[Any], dict[str, Any]]


def definitions_dir(override: Optional[Path] = None) -> Path:
    """Directory dataset resources are read from.

    Precedence: explicit ``override``, configured ``paths.definitions_path``,
    the bundled definitions shipped with the package.
    """
    if override is not None:
        return Path(override).expanduser()

    from fixturedb.config import get_config

    configured = get_config().paths.definitions_path
    if configured:
        return Path(configured).expanduser()
    return BUNDLED_DEFINITIONS_DIR


def resource_path(dataset_name: str, directory: Path) -> Path:
    """Locate the resource for ``dataset_name`` in ``directory``.

    Raises:
        ResourceNotFoundError: If no resource file exists
    """
    for suffix in DEFINITION_SUFFIXES:
        candidate = directory / f"{dataset_name}{suffix}"
        if candidate.is_file():
            return candidate
    raise ResourceNotFoundError(dataset_name, str(directory / f"{dataset_name}.yaml"))


def read_resource(path: Path) -> Any:
    """Read and parse a YAML resource."""
    logger.debug(f"Reading dataset definition {path}")
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f)


def _field_definition(spec: Any) -> FieldDefinition:
    if isinstance(spec, FieldDefinition):
        return spec
    return FieldDefinition.from_dict(spec)


def _field_definitions(table_name: Any, field_specs: Any) -> list[FieldDefinition]:
    if not isinstance(field_specs, (list, tuple)):
        raise SchemaValidationError(
            f"Invalid table '{table_name}': field_definitions must be a list, got {type(field_specs).__name__}",
            path="field_definitions",
        )
    return [_field_definition(field_spec) for field_spec in field_specs]


def table_definition(spec: TableSpec) -> TableDefinition:
    """Parse one table specification into a ``TableDefinition``."""
    if isinstance(spec, TableDefinition):
        return spec

    if isinstance(spec, dict):
        data = dict(spec)
        if "field_definitions" not in data:
            raise SchemaValidationError(
                f"Invalid table '{data.get('table_name')}': missing field_definitions",
                path="field_definitions",
            )
        data["field_definitions"] = _field_definitions(data.get("table_name"), data["field_definitions"])
        data["rows"] = data.get("rows") or []
        return TableDefinition.from_dict(data)

    if isinstance(spec, (list, tuple)) and len(spec) == 3:
        table_name, field_specs, rows = spec
        return TableDefinition(
            table_name=table_name,
            field_definitions=_field_definitions(table_name, field_specs),
            rows=rows or [],
        )

    raise SchemaValidationError(
        f"Invalid table specification: expected a mapping or a [name, fields, rows] triple, got {spec!r}"
    )


def parse_definition(database_name: str, table_specs: Sequence[TableSpec]) -> DatabaseDefinition:
    """Build a ``DatabaseDefinition`` from raw table specifications."""
    return DatabaseDefinition(
        database_name=database_name,
        table_definitions=[table_definition(spec) for spec in table_specs],
    )


def load_definition(dataset_name: str, directory: Optional[Path] = None) -> DatabaseDefinition:
    """Load the dataset resource named ``dataset_name``.

    Raises:
        ResourceNotFoundError: If the resource does not exist
        MalformedResourceError: If it cannot be parsed or fails validation
    """
    path = resource_path(dataset_name, definitions_dir(directory))

    try:
        raw = read_resource(path)
    except yaml.YAMLError as e:
        raise MalformedResourceError(dataset_name, f"invalid YAML in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise MalformedResourceError(dataset_name, f"{path} is not valid UTF-8: {e}") from e

    if not isinstance(raw, list):
        raise MalformedResourceError(
            dataset_name, f"expected a list of tables in {path}, got {type(raw).__name__}"
        )

    try:
        return parse_definition(dataset_name, raw)
    except SchemaValidationError as e:
        raise MalformedResourceError(dataset_name, str(e)) from e
