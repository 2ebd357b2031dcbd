from typing import Dict, Iterable, List, Tuple

import sqlglot
from sqlglot import exp

from extraction.data_structures import CodeBlock, RELATIONAL
from harness.logging import get_logger
from reference.loaders import table_from_create
from reference.schema_registry import SchemaRegistry

from .document_query_validator import DocumentQueryValidator
from .join_path_verifier import JoinPathVerifier
from .models import Diagnostic, Severity, ValidationResult, ValidationStatus, status_for
from .schema_validator import SchemaValidator
from .sql_parser import SQLParser


log = get_logger("validation")


class BlockValidator:
    """
    Validates CodeBlocks against the reference registry.

    Blocks of one document share a scope: tables created with CREATE
    TABLE / CREATE VIEW and collections created with db.createCollection
    are known to later blocks of the same document. The reference
    registry itself is never modified.
    """

    def __init__(self, registry: SchemaRegistry, dialect: str = "mysql"):
        self.registry = registry
        self.dialect = dialect
        self.parser = SQLParser(dialect)
        self.schema_validator = SchemaValidator()
        self.join_verifier = JoinPathVerifier()
        self.document_validator = DocumentQueryValidator()

    def validate_all(self, blocks: Iterable[CodeBlock]) -> List[ValidationResult]:
        """
        Validate blocks in order, one result per block.

        Args:
            blocks: CodeBlocks in document order, then appearance order

        Returns:
            ValidationResults in the same order
        """
        scopes: Dict[str, SchemaRegistry] = {}
        results = []
        for block in blocks:
            scope = scopes.get(block.source_document, self.registry)
            result, scopes[block.source_document] = self.validate_block(block, scope)
            results.append(result)
        return results

    def validate_block(
        self, block: CodeBlock, scope: SchemaRegistry
    ) -> Tuple[ValidationResult, SchemaRegistry]:
        """
        Validate one block.

        Returns:
            (result, scope for the next block of the same document)
        """
        if block.engine == RELATIONAL:
            result, scope = self._validate_relational(block, scope)
        else:
            result, scope = self._validate_document(block, scope)

        log.info(
            "block_validated",
            document=block.source_document,
            line=block.line_span[0],
            engine=block.engine,
            status=result.status.value,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result, scope

    def _validate_relational(
        self, block: CodeBlock, scope: SchemaRegistry
    ) -> Tuple[ValidationResult, SchemaRegistry]:
        try:
            statements = self.parser.parse_statements(block.text)
        except sqlglot.errors.SqlglotError as e:
            return self._parse_failure(block, scope, e), scope

        if not statements:
            diagnostic = Diagnostic(Severity.INFO, "no-statements", "Block contains no SQL statements.")
            return ValidationResult(block, ValidationStatus.VALID, (diagnostic,)), scope

        diagnostics: List[Diagnostic] = []
        for parsed in statements:
            created = table_from_create(parsed.ast, self.dialect)
            if created is not None:
                query = parsed.ast.expression
                if isinstance(query, exp.Query):
                    identifiers = self.parser.extract_identifiers(query)
                    diagnostics.extend(self.schema_validator.validate(identifiers, scope))
                scope = scope.with_tables([created])
                continue

            identifiers = parsed.identifiers
            diagnostics.extend(self.schema_validator.validate(identifiers, scope))
            diagnostics.extend(self.join_verifier.verify(parsed.ast, identifiers, scope))

        return ValidationResult(block, status_for(diagnostics), tuple(diagnostics)), scope

    def _parse_failure(
        self, block: CodeBlock, scope: SchemaRegistry, error: sqlglot.errors.SqlglotError
    ) -> ValidationResult:
        """parse-error result, plus unknown tables found by lexical scanning."""
        diagnostics = [Diagnostic(
            severity=Severity.ERROR,
            code="parse-error",
            message=f"SQL could not be parsed: {self._describe(block, error)}",
        )]
        try:
            table_names = self.parser.scan_table_names(block.text)
        except sqlglot.errors.TokenError:
            # Not even tokenizable; the parse error above says it all
            table_names = []
        for table in table_names:
            if not scope.has_table(table):
                diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    code="unknown-table",
                    message=f"Table '{table}' does not exist in the reference schema.",
                    identifier=table,
                ))
        return ValidationResult(block, ValidationStatus.PARSE_ERROR, tuple(diagnostics))

    @staticmethod
    def _describe(block: CodeBlock, error: sqlglot.errors.SqlglotError) -> str:
        """First parser error, with its line mapped back into the document."""
        errors = getattr(error, "errors", None)
        if errors:
            first = errors[0]
            description = first.get("description") or "invalid syntax"
            line = first.get("line")
            if isinstance(line, int):
                return f"{description} (line {block.line_span[0] + line})"
            return description
        return str(error).splitlines()[0] if str(error) else type(error).__name__

    def _validate_document(
        self, block: CodeBlock, scope: SchemaRegistry
    ) -> Tuple[ValidationResult, SchemaRegistry]:
        check = self.document_validator.validate(block.text, scope)
        if check.parse_error:
            diagnostic = Diagnostic(
                severity=Severity.ERROR,
                code="parse-error",
                message=f"Query could not be parsed: {check.parse_error}",
            )
            return ValidationResult(block, ValidationStatus.PARSE_ERROR, (diagnostic,)), scope

        scope = self.document_validator.extend_scope(scope, check.created_collections)
        diagnostics = tuple(check.diagnostics)
        return ValidationResult(block, status_for(list(diagnostics)), diagnostics), scope
