"""Tests for validation/block_validator.py and the SQL reference checks."""

from __future__ import annotations

from validation.block_validator import BlockValidator
from validation.models import Severity, ValidationStatus


def _codes(result) -> list:
    return [d.code for d in result.diagnostics]


class TestRelationalReferences:
    """Tables and columns against the sample schema."""

    def test_known_column_is_valid(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT customerNumber FROM customers;"), validator.registry
        )

        assert result.status == ValidationStatus.VALID
        assert result.errors == []

    def test_unknown_column_is_reported(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT custId FROM customers;"), validator.registry
        )

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert any("custId" in message for message in result.messages)
        assert _codes(result) == ["unknown-column"]

    def test_unknown_table_is_reported(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT id FROM widgets;"), validator.registry
        )

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert "unknown-table" in _codes(result)
        assert any("widgets" in message for message in result.messages)
        # Columns of an unknown table are not reported a second time
        assert "unknown-column" not in _codes(result)

    def test_join_with_aliases(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "SELECT c.customerName, o.orderNumber\n"
            "FROM customers AS c\n"
            "JOIN orders AS o ON o.customerNumber = c.customerNumber\n"
            "WHERE o.status = 'Shipped';"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID
        assert result.diagnostics == ()

    def test_qualified_unknown_column(self, validator: BlockValidator, make_block) -> None:
        sql = "SELECT c.customerName, c.nickname FROM customers c;"

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert [d.identifier for d in result.errors] == ["nickname"]

    def test_unknown_qualifier(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT x.customerName FROM customers c;"), validator.registry
        )

        assert "unknown-qualifier" in _codes(result)

    def test_ambiguous_column_is_a_warning(self, validator: BlockValidator, make_block) -> None:
        sql = "SELECT customerNumber FROM customers JOIN payments USING (customerNumber);"

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID
        assert [d.code for d in result.warnings] == ["ambiguous-column"]

    def test_output_alias_in_order_by(self, validator: BlockValidator, make_block) -> None:
        sql = "SELECT status, COUNT(*) AS total FROM orders GROUP BY status ORDER BY total DESC;"

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID

    def test_correlated_subquery_resolves_outer_table(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "SELECT customerName FROM customers c\n"
            "WHERE EXISTS (SELECT 1 FROM orders o WHERE o.customerNumber = c.customerNumber\n"
            "              AND creditLimit > 1000);"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID

    def test_derived_table_columns_are_not_failures(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "SELECT t.n FROM (SELECT COUNT(*) AS n FROM orders) AS t;"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID

    def test_insert_with_unknown_column(self, validator: BlockValidator, make_block) -> None:
        sql = "INSERT INTO offices (officeCode, town) VALUES ('9', 'Oslo');"

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert {d.identifier for d in result.errors} == {"town"}

    def test_update_and_delete(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "UPDATE customers SET creditLimit = 0 WHERE customerNumber = 103;\n"
            "DELETE FROM payments WHERE amount < 10;"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID

    def test_empty_block_is_valid(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(make_block("\n"), validator.registry)

        assert result.status == ValidationStatus.VALID
        assert _codes(result) == ["no-statements"]

    def test_database_statements_are_not_table_references(
        self, validator: BlockValidator, make_block
    ) -> None:
        """CREATE DATABASE / USE name a database, not a table."""
        sql = (
            "CREATE DATABASE IF NOT EXISTS classicmodels;\n"
            "USE classicmodels;\n"
            "SELECT customerNumber FROM customers;"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID
        assert result.errors == []

    def test_drop_database_is_not_a_table_reference(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("DROP DATABASE scratchpad;"), validator.registry
        )

        assert result.status == ValidationStatus.VALID

    def test_tables_in_a_named_database_are_still_checked(
        self, validator: BlockValidator, make_block
    ) -> None:
        sql = "USE classicmodels;\nSELECT * FROM widgets;"

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert [d.identifier for d in result.errors] == ["widgets"]


class TestJoinPaths:
    """Joins that do not follow a foreign key are informational."""

    def test_join_off_foreign_key_is_info(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "SELECT c.customerName FROM customers c "
            "JOIN orders o ON o.orderNumber = c.customerNumber;"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.status == ValidationStatus.VALID
        infos = [d for d in result.diagnostics if d.severity == Severity.INFO]
        assert [d.code for d in infos] == ["join-without-foreign-key"]
        assert "foreign key" in infos[0].message

    def test_join_along_foreign_key_is_silent(self, validator: BlockValidator, make_block) -> None:
        sql = (
            "SELECT p.productName, l.textDescription FROM products p "
            "JOIN productlines l ON p.productLine = l.productLine;"
        )

        result, _ = validator.validate_block(make_block(sql), validator.registry)

        assert result.diagnostics == ()


class TestParseErrors:
    def test_unparseable_sql(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT * FROM customers WHERE (creditLimit > 10"), validator.registry
        )

        assert result.status == ValidationStatus.PARSE_ERROR
        assert _codes(result)[0] == "parse-error"
        assert result.diagnostics[0].message.startswith("SQL could not be parsed")

    def test_unparseable_sql_still_reports_unknown_tables(
        self, validator: BlockValidator, make_block
    ) -> None:
        result, _ = validator.validate_block(
            make_block("SELECT * FROM widgets WHERE (id > 10"), validator.registry
        )

        assert result.status == ValidationStatus.PARSE_ERROR
        assert "unknown-table" in _codes(result)


class TestDocumentScope:
    """Earlier blocks of a document can create tables for later ones."""

    def test_created_table_visible_to_later_blocks(self, validator: BlockValidator, make_block) -> None:
        blocks = [
            make_block("CREATE TABLE vip (customerNumber INT, joined DATE);", index=0),
            make_block("SELECT joined FROM vip;", index=1),
        ]

        results = validator.validate_all(blocks)

        assert [r.status for r in results] == [ValidationStatus.VALID, ValidationStatus.VALID]

    def test_created_table_not_visible_in_other_documents(
        self, validator: BlockValidator, make_block
    ) -> None:
        blocks = [
            make_block("CREATE TABLE vip (customerNumber INT);", document="a.md"),
            make_block("SELECT customerNumber FROM vip;", document="b.md"),
        ]

        results = validator.validate_all(blocks)

        assert results[0].is_valid
        assert results[1].status == ValidationStatus.UNKNOWN_REFERENCE

    def test_create_table_as_select_checks_query(self, validator: BlockValidator, make_block) -> None:
        blocks = [
            make_block("CREATE TABLE rich AS SELECT customerName, creditLimt FROM customers;", index=0),
        ]

        results = validator.validate_all(blocks)

        assert results[0].status == ValidationStatus.UNKNOWN_REFERENCE
        assert [d.identifier for d in results[0].errors] == ["creditLimt"]

    def test_reference_registry_is_not_modified(self, validator: BlockValidator, make_block) -> None:
        validator.validate_all([make_block("CREATE TABLE scratch (id INT);")])

        assert not validator.registry.has_table("scratch")

    def test_results_are_deterministic(self, validator: BlockValidator, make_block) -> None:
        blocks = [
            make_block("SELECT custId, customerName FROM customers;", index=0),
            make_block("SELECT * FROM widgets JOIN gadgets ON widgets.id = gadgets.id;", index=1),
        ]

        first = validator.validate_all(blocks)
        second = validator.validate_all(blocks)

        assert first == second


class TestDocumentBlocks:
    """Document-store blocks go through the document query checks."""

    def test_known_collection_is_valid(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block('db.customers.find({"address.city": "Nantes"})', language="mongodb"),
            validator.registry,
        )

        assert result.status == ValidationStatus.VALID

    def test_unknown_collection(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("db.widgets.find({})", language="mongodb"), validator.registry
        )

        assert result.status == ValidationStatus.UNKNOWN_REFERENCE
        assert any("widgets" in message for message in result.messages)

    def test_unbalanced_brackets_are_parse_errors(self, validator: BlockValidator, make_block) -> None:
        result, _ = validator.validate_block(
            make_block("db.customers.find({name: 'x'", language="mongodb"), validator.registry
        )

        assert result.status == ValidationStatus.PARSE_ERROR

    def test_created_collection_visible_to_later_blocks(
        self, validator: BlockValidator, make_block
    ) -> None:
        blocks = [
            make_block('db.createCollection("audit")', language="mongodb", index=0),
            make_block("db.audit.insertOne({event: 'login'})", language="mongodb", index=1),
        ]

        results = validator.validate_all(blocks)

        assert all(r.is_valid for r in results)
