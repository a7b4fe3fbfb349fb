"""
oraspine - Oracle SQL dialect adaptation and identifier resolution.

Write portable SQL once; run it on Oracle. ``connect()`` returns an
``OracleConnection`` that rewrites each query (table prefixes, reserved
words, names over the identifier limit, ANSI and MySQL-isms), encodes
bound values Oracle would mangle (empty strings, over-length strings) and
decodes them again on fetch.
"""

__version__ = "0.1.0"

from oraspine.connection import ConnectionInfo, OracleConnection, connect
from oraspine.core.errors import (
    ConfigError,
    ConstraintViolationError,
    DatabaseConnectionError,
    DatabaseError,
    GenericBackendError,
    IdentifierTooLongError,
    IncompatibleSyntaxError,
    OraSpineError,
    SentinelCollisionError,
    ValidationError,
)
from oraspine.execution import ReturnMode
from oraspine.statement import PreparedStatement, Statement

__all__ = [
    "__version__",
    "connect",
    "ConnectionInfo",
    "OracleConnection",
    "ReturnMode",
    "Statement",
    "PreparedStatement",
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
