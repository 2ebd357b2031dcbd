"""Tests for reference/schema_registry.py and reference/loaders.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import sqlglot

from harness.errors import ConfigError, ErrorCode
from reference.loaders import (
    build_registry,
    load_schema,
    load_seed,
    schema_from_ddl,
    schema_from_mapping,
    seed_from_mapping,
    table_from_create,
)
from reference.schema_registry import CollectionSeed, SchemaRegistry, SchemaTable, seed_fields


class TestEmbeddedRegistry:
    """The embedded sample schema and seed."""

    def test_sample_tables_present(self, registry: SchemaRegistry) -> None:
        expected = {
            "productlines", "products", "offices", "employees",
            "customers", "payments", "orders", "orderdetails",
        }
        assert set(registry.tables) == expected

    def test_lookup_table_is_case_insensitive(self, registry: SchemaRegistry) -> None:
        """Table names resolve regardless of case or schema qualifier."""
        assert registry.lookup_table("Customers").name == "customers"
        assert registry.lookup_table("classicmodels.customers").name == "customers"
        assert registry.lookup_table("widgets") is None

    def test_lookup_column(self, registry: SchemaRegistry) -> None:
        assert registry.lookup_column("customers", "customerNumber")
        assert registry.lookup_column("customers", "CUSTOMERNUMBER")
        assert not registry.lookup_column("customers", "custId")
        assert not registry.lookup_column("widgets", "id")

    def test_foreign_keys_parsed_from_ddl(self, registry: SchemaRegistry) -> None:
        orders = registry.lookup_table("orders")
        fks = orders.references("customers")
        assert len(fks) == 1
        assert fks[0].column == "customerNumber"
        assert fks[0].referenced_column == "customerNumber"

    def test_composite_primary_key(self, registry: SchemaRegistry) -> None:
        assert registry.lookup_table("orderdetails").primary_key == frozenset({"orderNumber", "productCode"})

    def test_collections_are_case_sensitive(self, registry: SchemaRegistry) -> None:
        assert registry.lookup_collection("customers") is not None
        assert registry.lookup_collection("Customers") is None
        assert registry.lookup_collection("widgets") is None

    def test_seed_fields_include_nested_paths(self, registry: SchemaRegistry) -> None:
        customers = registry.lookup_collection("customers")
        assert customers.has_field("customerName")
        assert customers.has_field("address.city")
        assert customers.has_field("address")
        assert not customers.has_field("custId")


class TestRegistryOverlay:
    """with_tables / with_collections never modify the original."""

    def test_with_tables_returns_new_registry(self, registry: SchemaRegistry) -> None:
        extra = SchemaTable(name="top_customers", columns=(("customerNumber", "INT"),))

        extended = registry.with_tables([extra])

        assert extended.has_table("top_customers")
        assert not registry.has_table("top_customers")
        assert extended.has_table("customers")

    def test_with_collections_returns_new_registry(self, registry: SchemaRegistry) -> None:
        extended = registry.with_collections([CollectionSeed(name="audit")])

        assert extended.lookup_collection("audit") is not None
        assert registry.lookup_collection("audit") is None

    def test_tables_mapping_is_read_only(self, registry: SchemaRegistry) -> None:
        with pytest.raises(TypeError):
            registry.tables["x"] = None  # type: ignore[index]

    def test_tables_with_column(self, registry: SchemaRegistry) -> None:
        found = registry.tables_with_column("customerNumber", ["customers", "orders", "products"])
        assert found == ["customers", "orders"]


class TestSeedFields:
    def test_lists_of_documents_are_walked(self) -> None:
        fields = seed_fields([{"items": [{"sku": 1}, {"qty": 2}], "tags": ["a"]}])
        assert fields == frozenset({"items", "items.sku", "items.qty", "tags"})


class TestDdlLoader:
    """CREATE TABLE parsing."""

    def test_column_level_constraints(self) -> None:
        ddl = (
            "CREATE TABLE a (id INT PRIMARY KEY, name VARCHAR(20));\n"
            "CREATE TABLE b (id INT, a_id INT REFERENCES a (id));"
        )

        tables = {t.name: t for t in schema_from_ddl(ddl)}

        assert tables["a"].primary_key == frozenset({"id"})
        assert tables["a"].column_names == ["id", "name"]
        assert tables["b"].foreign_keys[0].referenced_table == "a"
        assert tables["b"].foreign_keys[0].column == "a_id"

    def test_create_table_as_select_takes_select_columns(self) -> None:
        statement = sqlglot.parse_one(
            "CREATE TABLE big AS SELECT customerNumber, creditLimit AS lim FROM customers",
            read="mysql",
        )

        table = table_from_create(statement)

        assert table.name == "big"
        assert table.column_names == ["customerNumber", "lim"]

    def test_non_create_statement_is_ignored(self) -> None:
        assert table_from_create(sqlglot.parse_one("SELECT 1")) is None

    def test_ddl_without_tables_raises(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            schema_from_ddl("SELECT 1;", source="empty.sql")
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING_DEFINITION


class TestStructuredLoaders:
    """YAML / JSON schema and seed files."""

    def test_yaml_schema(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(
            "tables:\n"
            "  authors:\n"
            "    columns: {id: INT, name: TEXT}\n"
            "    primary_key: id\n"
            "  books:\n"
            "    columns: [id, author_id, title]\n"
            "    foreign_keys:\n"
            "      - {column: author_id, references: authors.id}\n"
        )

        tables = {t.name: t for t in load_schema(path)}

        assert tables["authors"].column_type("name") == "TEXT"
        assert tables["authors"].primary_key == frozenset({"id"})
        assert tables["books"].column_names == ["id", "author_id", "title"]
        assert tables["books"].references("authors")[0].referenced_column == "id"

    def test_sql_schema_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.sql"
        path.write_text("CREATE TABLE t (id INT);")

        tables = load_schema(path)

        assert [t.name for t in tables] == ["t"]

    def test_json_seed(self, tmp_path: Path) -> None:
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"collections": {"events": [{"kind": "click", "meta": {"x": 1}}]}}))

        seeds = load_seed(path)

        assert seeds[0].name == "events"
        assert seeds[0].has_field("meta.x")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_schema(tmp_path / "nope.yaml")
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            load_schema(path)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"tables": {}},
            {"tables": ["a", "b"]},
        ],
    )
    def test_schema_without_tables_raises(self, data) -> None:
        with pytest.raises(ConfigError):
            schema_from_mapping(data)

    def test_bad_foreign_key_raises(self) -> None:
        data = {"tables": {"t": {"columns": ["a"], "foreign_keys": [{"column": "a", "references": "x"}]}}}
        with pytest.raises(ConfigError) as exc_info:
            schema_from_mapping(data)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE

    def test_seed_collection_must_be_list_of_documents(self) -> None:
        with pytest.raises(ConfigError):
            seed_from_mapping({"collections": {"c": "not a list"}})

    def test_build_registry_with_custom_files(self, tmp_path: Path) -> None:
        schema = tmp_path / "schema.yaml"
        schema.write_text("tables:\n  widgets:\n    columns: [id]\n")
        seed = tmp_path / "seed.yaml"
        seed.write_text("collections:\n  widgets:\n    - {id: 1}\n")

        registry = build_registry(schema, seed)

        assert list(registry.tables) == ["widgets"]
        assert registry.lookup_collection("widgets") is not None
        assert registry.lookup_collection("customers") is None
