"""Harness error types with typed error codes.

Error code ranges:
- 2xxx: Config (fatal, aborts the run before validation)
- 3xxx: Input (fatal for one document only)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_DEFINITION = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Input (3xxx)
    INPUT_UNREADABLE = 3001
    INPUT_NOT_FOUND = 3002


@dataclass(frozen=True, slots=True)
class HarnessError(Exception):
    """Base error with structured context for reports."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(HarnessError):
    """Reference schema, seed or settings are missing or malformed."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_definition(cls, path: str, what: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_DEFINITION,
            message=f"{path} defines no {what}",
            details={"path": path, "what": what},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class InputError(HarnessError):
    """A document could not be read."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "InputError":
        return cls(
            code=ErrorCode.INPUT_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def not_found(cls, path: str) -> "InputError":
        return cls(
            code=ErrorCode.INPUT_NOT_FOUND,
            message=f"No such document or directory: {path}",
            details={"path": path},
        )
