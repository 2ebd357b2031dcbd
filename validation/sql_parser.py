import sqlglot
from sqlglot import exp
from sqlglot.tokens import TokenType
from typing import Any, Dict, List, Optional, Set
from dataclasses import dataclass
from .models import ColumnReference, IdentifierSet


# Supported dialects mapping to sqlglot dialect names
DIALECT_MAP = {
    "postgres": "postgres",
    "postgresql": "postgres",
    "sqlite": "sqlite",
    "duckdb": "duckdb",
    "mysql": "mysql",
    "mariadb": "mysql",
    "tsql": "tsql",
    "sqlserver": "tsql",
    "oracle": "oracle",
    "": None,  # Auto-detect
}

# Tried in order when the configured dialect cannot parse a snippet
FALLBACK_DIALECTS = ["mysql", "postgres", "sqlite", None]

# Keywords whose next identifier names a table in the lexical fallback
TABLE_KEYWORDS = {TokenType.FROM, TokenType.JOIN, TokenType.UPDATE, TokenType.INTO}

# Pseudo-tables that never appear in a reference schema
PSEUDO_TABLES = {"dual"}

# CREATE / DROP kinds that name a database rather than a table
DATABASE_KINDS = {"DATABASE", "SCHEMA"}


def is_database_statement(ast: exp.Expression) -> bool:
    """USE db, CREATE DATABASE db, DROP SCHEMA db and the like."""
    if isinstance(ast, exp.Use):
        return True
    if isinstance(ast, (exp.Create, exp.Drop)):
        return str(ast.args.get("kind") or "").upper() in DATABASE_KINDS
    return False


@dataclass
class ParsedSQL:
    """Structured representation of one parsed SQL statement."""
    ast: Any
    dialect: str
    identifiers: IdentifierSet


class SQLParser:
    """
    Multi-dialect SQL parser using sqlglot.

    Splits a snippet into statements and extracts the identifiers each
    statement references. This is a reference check, not full semantic
    analysis: types, arity and permissions are not looked at.
    """

    def __init__(self, default_dialect: str = "mysql"):
        self.default_dialect = self._normalize_dialect(default_dialect)

    def _normalize_dialect(self, dialect: str) -> Optional[str]:
        """Normalize dialect name to sqlglot format."""
        if not dialect:
            return None
        dialect_lower = dialect.lower().strip()
        return DIALECT_MAP.get(dialect_lower, dialect_lower)

    def parse_statements(self, sql: str, dialect: str = "") -> List[ParsedSQL]:
        """
        Parse every statement of a snippet.

        Args:
            sql: Snippet text, possibly several ;-separated statements
            dialect: SQL dialect (mysql, postgres, sqlite, ...)

        Returns:
            One ParsedSQL per non-empty statement

        Raises:
            sqlglot.errors.SqlglotError: If no dialect can parse the snippet
        """
        normalized_dialect = self._normalize_dialect(dialect) or self.default_dialect
        used_dialect, statements = self._parse_with_fallback(sql, normalized_dialect)

        parsed = []
        for ast in statements:
            if ast is None:
                continue
            parsed.append(ParsedSQL(
                ast=ast,
                dialect=used_dialect or "auto",
                identifiers=self._extract_all_identifiers(ast),
            ))
        return parsed

    def _parse_with_fallback(self, sql: str, dialect: Optional[str]):
        """Try the configured dialect first, then the fallbacks."""
        try:
            return dialect, sqlglot.parse(sql, read=dialect)
        except sqlglot.errors.SqlglotError as primary_error:
            for fallback in FALLBACK_DIALECTS:
                if fallback == dialect:
                    continue
                try:
                    return fallback, sqlglot.parse(sql, read=fallback)
                except sqlglot.errors.SqlglotError:
                    continue
            raise primary_error

    def extract_identifiers(self, statement: exp.Expression) -> IdentifierSet:
        """Extract identifiers from an already parsed statement."""
        return self._extract_all_identifiers(statement)

    def _extract_all_identifiers(self, ast: exp.Expression) -> IdentifierSet:
        """Extract tables, aliases, scoped columns and insert targets from AST."""
        cte_names = {cte.alias.lower() for cte in ast.find_all(exp.CTE) if cte.alias}

        tables: List[str] = []
        table_aliases: Dict[str, str] = {}
        derived: List[str] = []
        scope_tables: Dict[Optional[int], List[str]] = {}
        derived_scopes: Set[Optional[int]] = set()

        skipped = set()
        if is_database_statement(ast) or (isinstance(ast, exp.Drop) and ast.args.get("exists")):
            skipped = {id(t) for t in ast.find_all(exp.Table)}

        # Extract tables (handle qualified names like schema.table)
        for table in ast.find_all(exp.Table):
            name = table.name
            if not name or id(table) in skipped or name.lower() in PSEUDO_TABLES:
                continue
            scope = self._scope_key(table)
            if name.lower() in cte_names:
                derived.append(name)
                derived_scopes.add(scope)
                if table.alias:
                    derived.append(table.alias)
                continue
            table_name = f"{table.db}.{name}" if table.db else name
            if table_name not in tables:
                tables.append(table_name)
            scope_tables.setdefault(scope, [])
            if table_name not in scope_tables[scope]:
                scope_tables[scope].append(table_name)
            table_aliases[name.lower()] = table_name
            if table.alias:
                table_aliases[table.alias.lower()] = table_name

        # Derived tables: FROM (SELECT ...) AS alias
        for subquery in ast.find_all(exp.Subquery):
            if subquery.alias:
                derived.append(subquery.alias)
                derived_scopes.add(self._scope_key(subquery))

        # Extract columns (qualified like alias.column, or bare)
        columns: List[ColumnReference] = []
        for col in ast.find_all(exp.Column):
            if isinstance(col.this, exp.Star) or not col.name:
                continue
            scopes = []
            has_derived = False
            select = col.find_ancestor(exp.Select)
            while True:
                key = id(select) if select is not None else None
                scopes.append(list(scope_tables.get(key, [])))
                has_derived = has_derived or key in derived_scopes
                if select is None:
                    break
                select = select.find_ancestor(exp.Select)
            columns.append(ColumnReference(
                name=col.name,
                qualifier=col.table or None,
                candidate_scopes=scopes,
                has_derived_source=has_derived,
            ))

        # Extract output aliases (SELECT expr AS alias)
        output_aliases = [a.alias for a in ast.find_all(exp.Alias) if a.alias]

        # INSERT INTO table (col, ...) column lists
        insert_columns = []
        for insert in ast.find_all(exp.Insert):
            target = insert.this
            if isinstance(target, exp.Schema) and isinstance(target.this, exp.Table):
                for ident in target.expressions:
                    if isinstance(ident, (exp.Identifier, exp.Column)) and ident.name:
                        insert_columns.append((target.this.name, ident.name))

        return IdentifierSet(
            tables=tables,
            columns=columns,
            table_aliases=table_aliases,
            output_aliases=output_aliases,
            derived_sources=derived,
            insert_columns=insert_columns,
        )

    @staticmethod
    def _scope_key(node: exp.Expression) -> Optional[int]:
        """Identity of the nearest enclosing SELECT (None at statement level)."""
        select = node.find_ancestor(exp.Select)
        return id(select) if select is not None else None

    def scan_table_names(self, sql: str, dialect: str = "") -> List[str]:
        """
        Lexical fallback: identifiers following FROM / JOIN / UPDATE / INTO.

        Used when a snippet cannot be parsed, so that unknown tables are
        still reported alongside the parse error.

        Raises:
            sqlglot.errors.TokenError: If the snippet cannot even be tokenized
        """
        normalized_dialect = self._normalize_dialect(dialect) or self.default_dialect
        tokens = sqlglot.tokenize(sql, read=normalized_dialect)

        names: List[str] = []
        for i, token in enumerate(tokens[:-1]):
            if token.token_type not in TABLE_KEYWORDS:
                continue
            nxt = tokens[i + 1]
            if nxt.token_type not in (TokenType.VAR, TokenType.IDENTIFIER):
                continue
            name = nxt.text
            # schema.table
            if i + 3 < len(tokens) and tokens[i + 2].token_type == TokenType.DOT:
                name = f"{name}.{tokens[i + 3].text}"
            if name.lower() not in PSEUDO_TABLES and name not in names:
                names.append(name)
        return names

    def transpile(self, sql: str, from_dialect: str, to_dialect: str) -> List[str]:
        """
        Transpile SQL from one dialect to another.

        Args:
            sql: Source SQL, possibly several statements
            from_dialect: Source dialect
            to_dialect: Target dialect

        Returns:
            One transpiled SQL string per statement. Database-level
            statements (USE, CREATE DATABASE, ...) are left out.
        """
        from_normalized = self._normalize_dialect(from_dialect)
        to_normalized = self._normalize_dialect(to_dialect)

        return [
            statement.sql(dialect=to_normalized)
            for statement in sqlglot.parse(sql, read=from_normalized)
            if statement is not None and not is_database_statement(statement)
        ]
