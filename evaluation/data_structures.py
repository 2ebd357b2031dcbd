from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class ExecutionResult:
    """
    Outcome of running one statement of a snippet on the sample database.

    What it contains:
        sql         -> statement as sent to SQLite (after transpiling)
        index       -> position of the statement within its snippet
        rows        -> fetched rows for statements that return a result set
        columns     -> result column names; empty for DDL/DML
        rowcount    -> rows affected as reported by the driver (-1 if unknown)
        timing_ms   -> wall time in milliseconds
        error       -> driver error if the statement failed
    """
    sql: str
    index: int = 0
    rows: List[Any] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    rowcount: int = -1
    timing_ms: float = 0.0
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def describe_failure(self) -> str:
        return f"Statement {self.index + 1} failed on sample data: {self.error} [{self.sql}]"
