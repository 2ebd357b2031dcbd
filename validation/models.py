from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from extraction.data_structures import CodeBlock


class Severity(str, Enum):
    ERROR = "error"        # fails the block
    WARNING = "warning"    # reported, never fails (ambiguity, shallow parsing limits)
    INFO = "info"


class ValidationStatus(str, Enum):
    VALID = "valid"
    UNKNOWN_REFERENCE = "unknown-reference"
    PARSE_ERROR = "parse-error"
    EXECUTION_ERROR = "execution-error"


@dataclass(frozen=True)
class Diagnostic:
    """One finding about a block."""
    severity: Severity
    code: str
    message: str
    identifier: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "identifier": self.identifier,
        }


@dataclass
class ColumnReference:
    """
    A column as written in a statement.

    candidate_scopes lists the tables visible to the column, innermost
    SELECT first, so correlated references resolve against outer queries.
    """
    name: str
    qualifier: Optional[str] = None
    candidate_scopes: List[List[str]] = field(default_factory=list)
    has_derived_source: bool = False

    @property
    def display(self) -> str:
        return f"{self.qualifier}.{self.name}" if self.qualifier else self.name


@dataclass
class IdentifierSet:
    """Extracted SQL identifiers for one statement."""
    tables: List[str]
    columns: List[ColumnReference]
    table_aliases: Dict[str, str]
    output_aliases: List[str] = field(default_factory=list)
    derived_sources: List[str] = field(default_factory=list)
    insert_columns: List[Tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating one CodeBlock. Never mutated after creation."""
    block: CodeBlock
    status: ValidationStatus
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.status == ValidationStatus.VALID

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]


def status_for(diagnostics: List[Diagnostic]) -> ValidationStatus:
    """unknown-reference if any error-severity diagnostic, else valid."""
    if any(d.severity == Severity.ERROR for d in diagnostics):
        return ValidationStatus.UNKNOWN_REFERENCE
    return ValidationStatus.VALID
