"""
Structured error types for the Oracle dialect layer.

Every failure that leaves oraspine is a typed ``OraSpineError`` carrying
enough context to understand what the backend actually saw: the query as
the caller wrote it, the text after dialect rewriting, the bound arguments
and the native driver message.

Manifesto:
    - **Typed Error Hierarchy:** Callers catch ``ConstraintViolationError``
      instead of grepping for ``ORA-00001`` in a message string
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the original and prepared SQL
    - **Error Chaining:** The native driver exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       OraSpineError                              │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError        ValidationError        DatabaseError         │
        │  (CONFIG)           (VALIDATION)           (DATABASE)            │
        │                          │                      │                │
        │               SentinelCollisionError   DatabaseConnectionError   │
        │                                        IncompatibleSyntaxError   │
        │                                        IdentifierTooLongError    │
        │                                        ConstraintViolationError  │
        │                                        GenericBackendError       │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConstraintViolationError("duplicate key")
    >>> error.category
    <ErrorCategory.DATABASE: 'DATABASE'>
    >>> error.with_context(query="INSERT INTO {users} ...", error_code=1)
    ConstraintViolationError('duplicate key', category=DATABASE)
    >>> error.context.error_code
    1

Guardrails:
    ❌ DON'T: Raise the raw driver exception out of the execution layer
    ✅ DO: Wrap it in the matching DatabaseError subclass with cause=

    ❌ DON'T: Put passwords into ErrorContext.metadata
    ✅ DO: Keep context to SQL text, argument names and codes

Tags:
    error-handling, exception-hierarchy, oracle, retry-logic, error-context

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Query, constraint or connection failures
        VALIDATION: Caller-supplied values the layer refuses to bind
        CONFIG: Missing driver, unparseable URL, invalid settings
        INTERNAL: Bugs, unexpected state
    """

    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        query: The query text as the caller submitted it
        prepared: The backend-native text after rewriting
        args: The bound arguments (after encoding)
        native_message: The message reported by the driver
        error_code: The numeric ORA code, when one could be extracted
        metadata: Additional key-value pairs
    """

    query: str | None = None
    prepared: str | None = None
    args: Any = None
    native_message: str | None = None
    error_code: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["query", "prepared", "args", "native_message", "error_code"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class OraSpineError(Exception):
    """
    Base exception for all oraspine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers rarely pass either explicitly.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OraSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise GenericBackendError("Failed").with_context(
                query=query,
                native_message=str(exc),
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION & VALIDATION ERRORS (Never Retryable)
# =============================================================================


class ConfigError(OraSpineError):
    """Missing driver, bad connection URL or invalid settings."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ValidationError(OraSpineError):
    """A caller-supplied value the layer refuses to handle."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class SentinelCollisionError(ValidationError):
    """
    A bound value collides with one of the layer's reserved encodings.

    The empty-string sentinel (``'^'``) and blob references (``B^#<id>``)
    are rewritten on the way back out, so a caller value spelled exactly
    like one of them could never round-trip. Such values are rejected at
    encode time instead of being silently corrupted.
    """


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(OraSpineError):
    """Base for every failure reported by the backend."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class DatabaseConnectionError(DatabaseError):
    """Could not open a connection to the backend."""

    default_retryable = True


class IncompatibleSyntaxError(DatabaseError):
    """The backend rejected a construct, and the compatibility retry failed too."""


class IdentifierTooLongError(DatabaseError):
    """ORA-00972 persisted after the long identifiers were registered."""


class ConstraintViolationError(DatabaseError):
    """Unique or integrity constraint violated (ORA-00001)."""


class GenericBackendError(DatabaseError):
    """Any other backend failure, wrapped with the query and native message."""


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OraSpineError",
    "ConfigError",
    "ValidationError",
    "SentinelCollisionError",
    "DatabaseError",
    "DatabaseConnectionError",
    "IncompatibleSyntaxError",
    "IdentifierTooLongError",
    "ConstraintViolationError",
    "GenericBackendError",
]
