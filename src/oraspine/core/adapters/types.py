"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from oraspine.core.errors import ConfigError

USE_TNS = "USETNS"


class DatabaseType(str, Enum):
    """Supported database types."""

    ORACLE = "oracle"
    SQLITE = "sqlite"


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None
    schemas: tuple[str, ...] = ()

    # Oracle
    host: str = "localhost"
    port: int = 1521
    service_name: str = ""
    username: str | None = None
    password: str | None = None
    pool_size: int = 2

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def use_tns(self) -> bool:
        """Host ``USETNS`` means ``service_name`` is a tnsnames.ora alias."""
        return self.host.upper() == USE_TNS

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.ORACLE:
                if self.use_tns:
                    return self.service_name
                return f"{self.host}:{self.port}/{self.service_name}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "USE_TNS",
    "DatabaseType",
    "DatabaseConfig",
]
