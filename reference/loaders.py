"""
Builds the SchemaRegistry from static configuration.

Schema sources:
- SQL DDL (.sql): CREATE TABLE statements, parsed with sqlglot
- YAML/JSON: {tables: {name: {columns: {col: type}, primary_key: [...],
  foreign_keys: [{column: c, references: "table.column"}]}}}

Seed sources:
- YAML/JSON: {collections: {name: [document, ...]}}

Anything missing or malformed raises ConfigError; no validation is
meaningful without a reference.
"""

import json
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

import sqlglot
import yaml
from sqlglot import exp

from harness.errors import ConfigError
from harness.logging import get_logger

from .classic_models import CLASSIC_MODELS_DDL, SEED_COLLECTIONS
from .schema_registry import CollectionSeed, ForeignKey, SchemaRegistry, SchemaTable, seed_fields


log = get_logger("reference")


def table_from_create(statement: exp.Expression, dialect: str = "mysql") -> Optional[SchemaTable]:
    """
    Convert a parsed CREATE TABLE / CREATE VIEW statement into a SchemaTable.

    Handles column-level and table-level PRIMARY KEY / REFERENCES, and
    CREATE ... AS SELECT (columns taken from the select list).

    Returns:
        SchemaTable, or None if the statement does not create a table
    """
    if not isinstance(statement, exp.Create):
        return None
    if str(statement.args.get("kind", "")).upper() not in ("TABLE", "VIEW"):
        return None

    target = statement.this
    table = target if isinstance(target, exp.Table) else target.find(exp.Table)
    if table is None or not table.name:
        return None

    columns = []
    primary_key = set()
    foreign_keys = []

    if isinstance(target, exp.Schema):
        for item in target.expressions:
            if isinstance(item, exp.ColumnDef):
                kind = item.args.get("kind")
                declared = kind.sql(dialect=dialect) if kind is not None else ""
                columns.append((item.name, declared))
                if item.find(exp.PrimaryKeyColumnConstraint):
                    primary_key.add(item.name)
                reference = item.find(exp.Reference)
                if reference is not None:
                    ref_table, ref_columns = _reference_target(reference)
                    if ref_table:
                        ref_column = ref_columns[0] if ref_columns else item.name
                        foreign_keys.append(ForeignKey(item.name, ref_table, ref_column))
            elif isinstance(item, exp.PrimaryKey):
                primary_key.update(_identifier_names(item.expressions))

        for fk in target.find_all(exp.ForeignKey):
            local_columns = _identifier_names(fk.expressions)
            reference = fk.args.get("reference")
            if reference is None:
                continue
            ref_table, ref_columns = _reference_target(reference)
            if not ref_table:
                continue
            for pos, column in enumerate(local_columns):
                ref_column = ref_columns[pos] if pos < len(ref_columns) else column
                foreign_keys.append(ForeignKey(column, ref_table, ref_column))

    query = statement.expression
    if not columns and isinstance(query, exp.Query):
        columns = [(name, "") for name in query.named_selects if name and name != "*"]

    return SchemaTable(
        name=table.name,
        columns=tuple(columns),
        primary_key=frozenset(primary_key),
        foreign_keys=tuple(foreign_keys),
    )


def _identifier_names(expressions: Iterable[exp.Expression]) -> List[str]:
    names = []
    for expression in expressions:
        ident = expression if isinstance(expression, exp.Identifier) else expression.find(exp.Identifier)
        if ident is not None:
            names.append(ident.name)
    return names


def _reference_target(reference: exp.Expression):
    """(table, [columns]) named by a REFERENCES clause."""
    target = reference.this
    table = target if isinstance(target, exp.Table) else target.find(exp.Table)
    if table is None:
        return None, []
    columns = _identifier_names(target.expressions) if isinstance(target, exp.Schema) else []
    return table.name, columns


def schema_from_ddl(ddl: str, dialect: str = "mysql", source: str = "<ddl>") -> List[SchemaTable]:
    """Parse every CREATE TABLE in `ddl`."""
    try:
        statements = sqlglot.parse(ddl, read=dialect or None)
    except sqlglot.errors.SqlglotError as e:
        raise ConfigError.parse_error(source, str(e)) from e

    tables = []
    for statement in statements:
        if statement is None:
            continue
        table = table_from_create(statement, dialect)
        if table is not None:
            tables.append(table)

    if not tables:
        raise ConfigError.missing_definition(source, "CREATE TABLE statements")
    return tables


def schema_from_mapping(data: Any, source: str = "<mapping>") -> List[SchemaTable]:
    """Build tables from the YAML/JSON schema layout."""
    if not isinstance(data, Mapping) or not isinstance(data.get("tables"), Mapping) or not data["tables"]:
        raise ConfigError.missing_definition(source, "'tables' mapping")

    tables = []
    for name, definition in data["tables"].items():
        field_prefix = f"tables.{name}"
        if not isinstance(definition, Mapping):
            raise ConfigError.invalid_value(field_prefix, definition, "table definition must be a mapping")

        raw_columns = definition.get("columns")
        if isinstance(raw_columns, Mapping):
            columns = tuple((str(col), str(col_type or "")) for col, col_type in raw_columns.items())
        elif isinstance(raw_columns, list):
            columns = tuple((str(col), "") for col in raw_columns)
        else:
            raise ConfigError.invalid_value(
                f"{field_prefix}.columns", raw_columns, "expected a mapping of column -> type"
            )

        primary_key = definition.get("primary_key") or []
        if isinstance(primary_key, str):
            primary_key = [primary_key]

        foreign_keys = []
        for fk in definition.get("foreign_keys") or []:
            if not isinstance(fk, Mapping) or "column" not in fk or "." not in str(fk.get("references", "")):
                raise ConfigError.invalid_value(
                    f"{field_prefix}.foreign_keys", fk, "expected {column, references: table.column}"
                )
            ref_table, ref_column = str(fk["references"]).split(".", 1)
            foreign_keys.append(ForeignKey(str(fk["column"]), ref_table, ref_column))

        tables.append(SchemaTable(
            name=str(name),
            columns=columns,
            primary_key=frozenset(str(c) for c in primary_key),
            foreign_keys=tuple(foreign_keys),
        ))
    return tables


def seed_from_mapping(data: Any, source: str = "<mapping>") -> List[CollectionSeed]:
    """Build collection seeds; fields are the union over all seed documents."""
    collections = data.get("collections") if isinstance(data, Mapping) else None
    if not isinstance(collections, Mapping) or not collections:
        raise ConfigError.missing_definition(source, "'collections' mapping")

    seeds = []
    for name, documents in collections.items():
        if not isinstance(documents, list) or not all(isinstance(d, Mapping) for d in documents):
            raise ConfigError.invalid_value(
                f"collections.{name}", documents, "expected a list of documents"
            )
        seeds.append(CollectionSeed(name=str(name), fields=seed_fields(documents)))
    return seeds


def _read_structured(path: Path) -> Any:
    if not path.exists():
        raise ConfigError.file_not_found(str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e


def load_schema(path: Path, dialect: str = "mysql") -> List[SchemaTable]:
    """Load reference tables from a .sql, .yaml/.yml or .json file."""
    if path.suffix.lower() == ".sql":
        if not path.exists():
            raise ConfigError.file_not_found(str(path))
        try:
            ddl = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError.parse_error(str(path), str(e)) from e
        return schema_from_ddl(ddl, dialect, source=str(path))
    return schema_from_mapping(_read_structured(path), source=str(path))


def load_seed(path: Path) -> List[CollectionSeed]:
    """Load reference collections from a .yaml/.yml or .json file."""
    return seed_from_mapping(_read_structured(path), source=str(path))


def build_registry(
    schema_path: Optional[Path] = None,
    seed_path: Optional[Path] = None,
    dialect: str = "mysql",
) -> SchemaRegistry:
    """
    Build the process-wide registry for a run.

    Args:
        schema_path: Reference schema file; embedded sample schema if None
        seed_path: Reference seed file; embedded sample seed if None
        dialect: Dialect of DDL schema files

    Raises:
        ConfigError: If a given file is missing or malformed
    """
    if schema_path is not None:
        tables = load_schema(schema_path, dialect)
    else:
        tables = schema_from_ddl(CLASSIC_MODELS_DDL, "mysql", source="classic_models")

    if seed_path is not None:
        collections = load_seed(seed_path)
    else:
        collections = seed_from_mapping({"collections": SEED_COLLECTIONS}, source="classic_models")

    log.info(
        "registry_built",
        tables=len(tables),
        collections=len(collections),
        schema=str(schema_path) if schema_path else "embedded",
        seed=str(seed_path) if seed_path else "embedded",
    )
    return SchemaRegistry(tables, collections)
