"""Valhalla error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Declarations (read-only .vapi units)
- 4xxx: Units (live source units)
- 9xxx: Internal

None of these ever reach the end user as a blocking failure. The session and
CLI boundaries catch them and degrade to "fewer or no suggestions".
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Declarations (3xxx)
    DECLARATIONS_DIR_NOT_FOUND = 3001
    DECLARATIONS_UNREADABLE = 3002

    # Units (4xxx)
    UNIT_TOO_LARGE = 4001
    UNIT_UNREADABLE = 4002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ValhallaError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ValhallaError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
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
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class DeclarationError(ValhallaError):
    """Errors while bulk-loading interface-declaration units."""

    @classmethod
    def directory_not_found(cls, path: str) -> "DeclarationError":
        return cls(
            code=ErrorCode.DECLARATIONS_DIR_NOT_FOUND,
            message=f"Declarations directory not found: {path}",
            details={"path": path},
        )

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "DeclarationError":
        return cls(
            code=ErrorCode.DECLARATIONS_UNREADABLE,
            message=f"Cannot read declarations directory {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )


class UnitError(ValhallaError):
    """Errors feeding a single source unit."""

    @classmethod
    def too_large(cls, unit_id: str, size: int, limit: int) -> "UnitError":
        return cls(
            code=ErrorCode.UNIT_TOO_LARGE,
            message=f"Unit {unit_id} is {size} bytes, limit is {limit}",
            details={"unit": unit_id, "size": size, "limit": limit},
        )

    @classmethod
    def unreadable(cls, unit_id: str, reason: str) -> "UnitError":
        return cls(
            code=ErrorCode.UNIT_UNREADABLE,
            message=f"Cannot read unit {unit_id}: {reason}",
            retryable=True,
            details={"unit": unit_id, "reason": reason},
        )


class InternalError(ValhallaError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
