from .models import ColumnReference, Diagnostic, IdentifierSet, Severity
from reference.schema_registry import SchemaRegistry
from typing import List, Optional, Set


class SchemaValidator:
    """
    Validates SQL identifiers against the reference schema.
    Checks that tables and columns actually exist.

    Unqualified columns that cannot be pinned to one table (several
    candidates, or a derived source in scope) are reported as warnings:
    the parse is shallow and such cases are expected.
    """

    def validate(self, identifiers: IdentifierSet, schema: SchemaRegistry) -> List[Diagnostic]:
        """
        Validate extracted identifiers against schema.

        Args:
            identifiers: IdentifierSet from SQLParser
            schema: SchemaRegistry (possibly extended with tables created earlier)

        Returns:
            Diagnostics, errors first in statement order
        """
        diagnostics: List[Diagnostic] = []

        # Check tables exist
        unknown_tables: Set[str] = set()
        for table in identifiers.tables:
            if not schema.has_table(table):
                unknown_tables.add(table.lower())
                diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    code="unknown-table",
                    message=f"Table '{table}' does not exist in the reference schema.",
                    identifier=table,
                ))

        # Check columns exist
        seen: Set[str] = set()
        for col in identifiers.columns:
            key = col.display.lower()
            if key in seen:
                continue
            seen.add(key)
            diagnostic = self._check_column(col, identifiers, unknown_tables, schema)
            if diagnostic is not None:
                diagnostics.append(diagnostic)

        # Check INSERT column lists
        for table, column in identifiers.insert_columns:
            if table.lower() in unknown_tables or not schema.has_table(table):
                continue
            if not schema.lookup_column(table, column):
                diagnostics.append(self._unknown_column(column, [schema.lookup_table(table).name]))

        return diagnostics

    def _check_column(
        self,
        col: ColumnReference,
        identifiers: IdentifierSet,
        unknown_tables: Set[str],
        schema: SchemaRegistry,
    ) -> Optional[Diagnostic]:
        """Check one column reference; None when it resolves."""
        derived = {d.lower() for d in identifiers.derived_sources}

        # If column has table qualifier, check that specific table
        if col.qualifier:
            qualifier = col.qualifier.lower()
            if qualifier in derived:
                return None
            actual_table = identifiers.table_aliases.get(qualifier)
            if actual_table is None:
                if not schema.has_table(col.qualifier):
                    return Diagnostic(
                        severity=Severity.ERROR,
                        code="unknown-qualifier",
                        message=f"Column '{col.display}' is qualified by '{col.qualifier}', "
                                f"which names no table or alias in the query.",
                        identifier=col.display,
                    )
                actual_table = col.qualifier
            if actual_table.lower() in unknown_tables:
                return None
            if schema.lookup_column(actual_table, col.name):
                return None
            return self._unknown_column(col.name, [schema.lookup_table(actual_table).name])

        # Output aliases may be referenced in ORDER BY / HAVING
        if col.name.lower() in {a.lower() for a in identifiers.output_aliases}:
            return None

        # Otherwise, check referenced tables scope by scope (innermost first)
        innermost_known: List[str] = []
        for scope in col.candidate_scopes:
            if any(t.lower() in unknown_tables for t in scope):
                # Already reported; the column cannot be judged
                return None
            if not scope:
                continue
            if not innermost_known:
                innermost_known = [schema.lookup_table(t).name for t in scope]
            matches = schema.tables_with_column(col.name, scope)
            if len(matches) == 1:
                return None
            if len(matches) > 1:
                return Diagnostic(
                    severity=Severity.WARNING,
                    code="ambiguous-column",
                    message=f"Column '{col.name}' is ambiguous; it exists in {', '.join(matches)}.",
                    identifier=col.name,
                )

        if col.has_derived_source or not innermost_known:
            return Diagnostic(
                severity=Severity.WARNING,
                code="unresolved-column",
                message=f"Column '{col.name}' could not be resolved to a reference table.",
                identifier=col.name,
            )
        return self._unknown_column(col.name, innermost_known)

    @staticmethod
    def _unknown_column(column: str, tables: List[str]) -> Diagnostic:
        if len(tables) == 1:
            where = f"table '{tables[0]}'"
        else:
            where = "any of the tables " + ", ".join(f"'{t}'" for t in tables)
        return Diagnostic(
            severity=Severity.ERROR,
            code="unknown-column",
            message=f"Column '{column}' does not exist in {where}.",
            identifier=column,
        )
