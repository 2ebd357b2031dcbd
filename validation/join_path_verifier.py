from typing import Any, List, Optional, Tuple
from .models import Diagnostic, IdentifierSet, Severity
from reference.schema_registry import SchemaRegistry
from sqlglot import exp


class JoinPathVerifier:
    """
    Checks JOIN conditions against foreign key relationships.

    A join that does not follow a declared foreign key is often a typo
    in course material (joining on the wrong column), but it can also be
    intentional, so findings are informational only.
    """

    def verify(self, ast: Any, identifiers: IdentifierSet, schema: SchemaRegistry) -> List[Diagnostic]:
        """
        Verify JOIN conditions are valid based on schema relationships.

        Args:
            ast: Parsed statement
            identifiers: IdentifierSet of the same statement (for alias lookup)
            schema: SchemaRegistry with FK info

        Returns:
            Info diagnostics for joins without a matching foreign key
        """
        diagnostics = []

        for join in ast.find_all(exp.Join):
            on_clause = join.args.get("on")
            if not on_clause:
                # No ON clause - USING, CROSS JOIN or implicit join
                continue

            for left_col, right_col in self._extract_join_columns(on_clause):
                left = self._resolve(left_col, identifiers, schema)
                right = self._resolve(right_col, identifiers, schema)
                if left is None or right is None or left[0].lower() == right[0].lower():
                    continue
                if self._is_valid_join_path(left, right, schema):
                    continue
                condition = f"{left[0]}.{left[1]} = {right[0]}.{right[1]}"
                joinable = [t.lower() for t in self.get_valid_join_paths(left[0], schema)]
                if right[0].lower() in joinable:
                    reason = f"does not follow the foreign key between {left[0]} and {right[0]}"
                else:
                    reason = f"joins {left[0]} and {right[0]}, which no foreign key links"
                diagnostics.append(Diagnostic(
                    severity=Severity.INFO,
                    code="join-without-foreign-key",
                    message=f"Join {condition} {reason}.",
                    identifier=condition,
                ))

        return diagnostics

    def _extract_join_columns(self, on_clause: Any) -> List[Tuple[exp.Column, exp.Column]]:
        """Extract column pairs from JOIN ON clause."""
        pairs = []

        # Find all EQ expressions (col1 = col2)
        for eq in on_clause.find_all(exp.EQ):
            left = eq.left
            right = eq.right

            if isinstance(left, exp.Column) and isinstance(right, exp.Column):
                pairs.append((left, right))

        return pairs

    def _resolve(
        self, column: exp.Column, identifiers: IdentifierSet, schema: SchemaRegistry
    ) -> Optional[Tuple[str, str]]:
        """(table, column) for a qualified column of a reference table."""
        if not column.table:
            return None  # Can't verify without table qualifier
        table = identifiers.table_aliases.get(column.table.lower())
        table_info = schema.lookup_table(table) if table else None
        if table_info is None or not table_info.has_column(column.name):
            return None
        return table_info.name, column.name

    def _is_valid_join_path(
        self, left: Tuple[str, str], right: Tuple[str, str], schema: SchemaRegistry
    ) -> bool:
        """Check if there's a FK relationship between the two columns, either direction."""
        for (src_table, src_col), (dst_table, dst_col) in ((left, right), (right, left)):
            for fk in schema.lookup_table(src_table).references(dst_table):
                if fk.column.lower() == src_col.lower() and fk.referenced_column.lower() == dst_col.lower():
                    return True
        return False

    def get_valid_join_paths(self, table: str, schema: SchemaRegistry) -> List[str]:
        """
        Get all tables that can be validly JOINed with the given table.

        Args:
            table: Table name to find join paths for
            schema: SchemaRegistry with FK info

        Returns:
            List of table names that have FK relationships
        """
        valid_tables: List[str] = []

        table_info = schema.lookup_table(table)
        if not table_info:
            return valid_tables

        # Find tables this table can join to (outgoing FKs)
        for fk in table_info.foreign_keys:
            if fk.referenced_table not in valid_tables:
                valid_tables.append(fk.referenced_table)

        # Find tables that can join to this table (incoming FKs)
        for other in schema.tables.values():
            if other.name == table_info.name:
                continue
            if other.references(table_info.name) and other.name not in valid_tables:
                valid_tables.append(other.name)

        return valid_tables
