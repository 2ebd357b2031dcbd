'''
ExecutionChecker runs relational snippets that passed the reference check
against a seeded sample database and reports statements that fail.
'''


from typing import Dict

import sqlglot

from extraction.data_structures import RELATIONAL
from harness.logging import get_logger
from reference.schema_registry import SchemaRegistry
from validation.models import Diagnostic, Severity, ValidationResult, ValidationStatus
from validation.sql_parser import SQLParser

from .sample_database import SampleDatabase


log = get_logger("evaluation")


class ExecutionChecker:
    """
    Executes valid relational blocks statement by statement.

    Each document gets its own fresh sample database, so tables and rows
    created by earlier blocks of a document are visible to later ones,
    and nothing leaks between documents.
    """

    def __init__(self, registry: SchemaRegistry, dialect: str = "mysql"):
        self.registry = registry
        self.dialect = dialect
        self.parser = SQLParser(dialect)
        self._databases: Dict[str, SampleDatabase] = {}

    def check(self, result: ValidationResult) -> ValidationResult:
        """
        Returns:
            `result` unchanged if it is not a valid relational block or all
            of its statements run; otherwise a new execution-error result
        """
        block = result.block
        if block.engine != RELATIONAL or not result.is_valid:
            return result

        database = self._database_for(block.source_document)
        try:
            statements = self.parser.transpile(block.text, self.dialect, "sqlite")
        except sqlglot.errors.SqlglotError as e:
            return self._failed(result, f"Could not translate block for the sample database: {e}")

        outcomes = database.executor.execute_all(statements)
        if outcomes and not outcomes[-1].succeeded:
            failure = outcomes[-1]
            log.info(
                "execution_failed",
                document=block.source_document,
                line=block.line_span[0],
                statement=failure.index,
                error=str(failure.error),
            )
            return self._failed(result, failure.describe_failure())
        log.debug("block_executed", document=block.source_document, statements=len(outcomes))
        return result

    def _database_for(self, document: str) -> SampleDatabase:
        if document not in self._databases:
            self._databases[document] = SampleDatabase(self.registry, self.dialect)
        return self._databases[document]

    @staticmethod
    def _failed(result: ValidationResult, message: str) -> ValidationResult:
        diagnostic = Diagnostic(
            severity=Severity.ERROR,
            code="execution-failed",
            message=message,
        )
        return ValidationResult(
            block=result.block,
            status=ValidationStatus.EXECUTION_ERROR,
            diagnostics=result.diagnostics + (diagnostic,),
        )

    def close(self) -> None:
        for database in self._databases.values():
            database.close()
        self._databases.clear()

    def __enter__(self) -> "ExecutionChecker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
