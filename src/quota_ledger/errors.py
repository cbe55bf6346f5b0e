"""
Error taxonomy for quota-ledger.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Structured context for debugging
- Serialization errors scoped to a single account

Quota outcomes are never exceptions: writes report success as a bool.
Exceptions are reserved for caller mistakes (bad sizes, bad config) and
codec failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for the ledger."""

    # Input errors (1xxx)
    INVALID_INPUT = "LEDGER_1000"
    INVALID_SIZE = "LEDGER_1001"
    INVALID_IDENTITY = "LEDGER_1002"

    # Serialization errors (2xxx)
    SERIALIZATION_ERROR = "LEDGER_2000"
    ENCODE_ERROR = "LEDGER_2001"
    DECODE_ERROR = "LEDGER_2002"
    KIND_MISMATCH = "LEDGER_2003"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "LEDGER_6000"
    INVALID_CONFIG = "LEDGER_6001"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "LEDGER_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    identity: str | None = None
    ledger: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "ledger": self.ledger,
            "operation": self.operation,
            **self.extra,
        }


class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.identity:
            parts.append(f"(identity={self.context.identity})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Input Errors
# =============================================================================


class InvalidSizeError(LedgerError, ValueError):
    """A byte count is negative, not an integer, or wider than 64 bits."""

    code = ErrorCode.INVALID_SIZE

    def __init__(
        self,
        message: str = "Invalid size",
        *,
        size: Any = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.size = size


class InvalidIdentityError(LedgerError, ValueError):
    """Identity bytes have the wrong type or length."""

    code = ErrorCode.INVALID_IDENTITY


# =============================================================================
# Serialization Errors
# =============================================================================


class SerializationError(LedgerError):
    """Base class for codec failures."""

    code = ErrorCode.SERIALIZATION_ERROR


class EncodeError(SerializationError):
    """An account could not be turned into a payload."""

    code = ErrorCode.ENCODE_ERROR


class DecodeError(SerializationError):
    """A payload could not be turned back into an account."""

    code = ErrorCode.DECODE_ERROR


class PayloadKindMismatchError(DecodeError):
    """A payload carries a different account kind than the one expected."""

    code = ErrorCode.KIND_MISMATCH

    def __init__(
        self,
        message: str = "Payload kind mismatch",
        *,
        expected: Any = None,
        actual: Any = None,
        **kwargs,
    ):
        if expected is not None and actual is not None:
            message = f"Payload kind mismatch: expected {expected}, got {actual}"
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(LedgerError):
    """Base class for configuration errors."""

    code = ErrorCode.CONFIG_ERROR


class InvalidConfigError(ConfigError, ValueError):
    """Configuration is invalid."""

    code = ErrorCode.INVALID_CONFIG


__all__ = [
    # Base
    "ErrorCode",
    "ErrorContext",
    "LedgerError",
    # Input errors
    "InvalidSizeError",
    "InvalidIdentityError",
    # Serialization errors
    "SerializationError",
    "EncodeError",
    "DecodeError",
    "PayloadKindMismatchError",
    # Config errors
    "ConfigError",
    "InvalidConfigError",
]
