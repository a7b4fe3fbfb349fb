"""oraspine core -- backend-facing primitives.

Architecture::

    errors.py          Structured error hierarchy (OraSpineError, DatabaseError)
    logging.py         structlog configuration + get_logger()
    settings.py        pydantic-settings (OracleSettings, ConnectionSettings)
    protocols.py       Connection, Cursor, StatementRunner, RowDecoder
    dialect.py         Oracle and SQLite dialects (ranges, sequences, DDL)
    hashing.py         Content digests for blob dedup and the statement cache
    adapters/          Database adapters (Oracle, SQLite dev backend)
"""
