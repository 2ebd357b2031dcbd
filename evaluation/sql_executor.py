'''
Statement execution for the sample-data check.
StatementExecutor - interface: run one statement, or a snippet's statements in order.
DBAPIStatementExecutor - runs statements on a DB-API connection (sqlite3 by default).
'''


from abc import ABC, abstractmethod
import sqlite3
import time
from typing import Any, Iterable, List, Tuple, Type

from .data_structures import ExecutionResult


class StatementExecutor(ABC):
    """
    Runs the statements of a snippet against a sample database.

    Driver errors are never raised to the caller; they are returned in
    ExecutionResult.error so one bad snippet cannot stop a run.
    """

    @abstractmethod
    def execute(self, sql: str, index: int = 0) -> ExecutionResult:
        raise NotImplementedError

    def execute_all(self, statements: Iterable[str]) -> List[ExecutionResult]:
        """
        Execute non-empty statements in order, stopping after the first one
        that fails. The last element is the failure, if there was one.
        """
        results: List[ExecutionResult] = []
        for index, sql in enumerate(statements):
            if not sql.strip():
                continue
            result = self.execute(sql, index)
            results.append(result)
            if not result.succeeded:
                break
        return results


class DBAPIStatementExecutor(StatementExecutor):
    """
    StatementExecutor over a DB-API 2.0 connection.

    Fields:
        connection  -> open connection; statements share its state
        error_types -> the driver's error classes; anything else propagates
    """

    def __init__(
        self,
        connection: Any,
        error_types: Tuple[Type[Exception], ...] = (sqlite3.Error,),
    ) -> None:
        self.connection = connection
        self.error_types = error_types

    def execute(self, sql: str, index: int = 0) -> ExecutionResult:
        start_time = time.perf_counter()
        rows: List[Any] = []
        columns: List[str] = []
        rowcount = -1
        error: Exception | None = None

        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            if cursor.description is not None:
                columns = [col[0] for col in cursor.description]
                rows = cursor.fetchall()
            rowcount = cursor.rowcount
        except self.error_types as exc:
            error = exc
        finally:
            timing_ms = (time.perf_counter() - start_time) * 1000.0
            cursor.close()

        return ExecutionResult(
            sql=sql,
            index=index,
            rows=rows,
            columns=columns,
            rowcount=rowcount,
            timing_ms=timing_ms,
            error=error,
        )
