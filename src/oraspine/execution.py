"""
Execution and retry controller.

Runs one query through rewrite, encode and execute, and heals the two
failures that the dialect layer can fix on its own:

* **incompatible syntax**: the text matches a registered incompatibility
  pattern; the substitution is applied and the query retried once
* **ORA-00972** (identifier too long): the failed text is scanned for
  over-length names, each is registered as a long identifier, the statement
  cache is invalidated and the query retried once

Anything else is classified and raised, or turned into ``None`` when the
caller asked for ``throw_exception=False``.

Architecture:
    ::

        INITIAL ──expand/rewrite/prepare──▶ PREPARED ──encode/execute──▶ EXECUTED
           ▲                                   │                          │
           │                                   ▼                          ▼
           └────────── RETRYING ◀──────── (driver error)              SUCCESS
                         │ at most one retry per reason                   │
                         ▼                                                ▼
                       FAILED ──▶ ConstraintViolationError        Statement | rowcount
                                  IdentifierTooLongError          | sequence value | None
                                  IncompatibleSyntaxError
                                  GenericBackendError

Manifesto:
    - **Bounded:** one incompatibility retry and one long-identifier retry
      per call, so a call can never loop
    - **Explicit outcome:** the caller either gets a typed error or asked
      for ``None`` and gets ``None``; nothing is silently swallowed
    - **Observable:** every attempt records its state history

Guardrails:
    ❌ DON'T: Catch ``Exception`` around the driver call
    ✅ DO: Catch the adapter's ``driver_errors`` only; encoding errors such
      as ``SentinelCollisionError`` must reach the caller untouched

Tags:
    execution, retry, state-machine, oracle, ORA-00972, ORA-00001

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from oraspine.core.errors import (
    ConstraintViolationError,
    DatabaseError,
    ErrorContext,
    GenericBackendError,
    IdentifierTooLongError,
    IncompatibleSyntaxError,
    ValidationError,
)
from oraspine.core.logging import get_logger
from oraspine.sql.arguments import expand_arguments
from oraspine.sql.lexer import MaskedQuery
from oraspine.statement import PreparedStatement, Statement

if TYPE_CHECKING:
    from oraspine.connection import OracleConnection

logger = get_logger(__name__)

ORA_UNIQUE_CONSTRAINT = 1
ORA_IDENTIFIER_TOO_LONG = 972

_QUERY_RE = re.compile(r"^\s*(SELECT|WITH)\b", re.IGNORECASE)


class ReturnMode(str, Enum):
    """What ``execute`` hands back on success."""

    STATEMENT = "statement"
    AFFECTED = "affected"
    INSERT_ID = "insert_id"
    NULL = "null"


class ExecutionState(str, Enum):
    INITIAL = "initial"
    PREPARED = "prepared"
    EXECUTED = "executed"
    SUCCESS = "success"
    RETRYING = "retrying"
    FAILED = "failed"


class RetryReason(str, Enum):
    INCOMPATIBILITY = "incompatibility"
    LONG_IDENTIFIER = "long_identifier"


@dataclass
class ExecutionAttempt:
    """State of one ``execute`` call across its retries."""

    query: str
    prepared: str | None = None
    args: Any = None
    state: ExecutionState = ExecutionState.INITIAL
    history: list[ExecutionState] = field(default_factory=lambda: [ExecutionState.INITIAL])
    retries: list[RetryReason] = field(default_factory=list)

    def transition(self, state: ExecutionState) -> None:
        self.state = state
        self.history.append(state)

    def retry(self, reason: RetryReason) -> None:
        self.retries.append(reason)
        self.transition(ExecutionState.RETRYING)
        self.transition(ExecutionState.INITIAL)

    def has_retried(self, reason: RetryReason) -> bool:
        return reason in self.retries


class IncompatibilityRules:
    """
    Regex substitutions tried only after the backend rejected a query.

    Unlike the fixed compatibility table, these are registered at runtime
    for constructs that are valid on some servers and not on others.
    """

    def __init__(self) -> None:
        self._rules: list[tuple[re.Pattern[str], str]] = []

    def register(self, pattern: str | re.Pattern[str], replacement: str) -> None:
        self._rules.append((re.compile(pattern), replacement))

    def apply(self, query: str) -> tuple[str, int]:
        """Rewritten query and the number of substitutions made."""
        total = 0
        for pattern, replacement in self._rules:
            query, count = pattern.subn(replacement, query)
            total += count
        return query, total

    def __len__(self) -> int:
        return len(self._rules)


class ExecutionController:
    """Drives one connection's queries through the execution state machine."""

    def __init__(self, connection: OracleConnection):
        self._connection = connection
        self.incompatibilities = IncompatibilityRules()
        self.last_attempt: ExecutionAttempt | None = None

    # ── Entry point ──────────────────────────────────────────────────────

    def execute(
        self,
        query: str | PreparedStatement,
        args: Any = None,
        *,
        return_mode: ReturnMode = ReturnMode.STATEMENT,
        sequence_name: str | None = None,
        throw_exception: bool = True,
    ) -> Any:
        return_mode = ReturnMode(return_mode)
        if return_mode is ReturnMode.INSERT_ID and not sequence_name:
            raise ValidationError(
                "The name of the sequence is mandatory for Oracle",
                field="sequence_name",
            )

        handle = query if isinstance(query, PreparedStatement) else None
        text = handle.query if handle else query
        attempt = ExecutionAttempt(query=text, args=args)
        self.last_attempt = attempt
        conn = self._connection

        while True:
            try:
                prepared, bound = self._prepare(attempt, text, args, handle)
                cursor = self._run(attempt, prepared, bound)
                result = self._result(attempt, cursor, return_mode, sequence_name)
                attempt.transition(ExecutionState.SUCCESS)
                return result
            except conn.adapter.driver_errors as exc:
                code = conn.adapter.error_code(exc)

                if not attempt.has_retried(RetryReason.INCOMPATIBILITY):
                    rewritten, count = self.incompatibilities.apply(attempt.query)
                    if count:
                        logger.info("retrying_query", reason="incompatibility", error_code=code)
                        attempt.retry(RetryReason.INCOMPATIBILITY)
                        text, attempt.query, handle = rewritten, rewritten, None
                        continue

                if (
                    code == ORA_IDENTIFIER_TOO_LONG
                    and not conn.external
                    and not attempt.has_retried(RetryReason.LONG_IDENTIFIER)
                ):
                    registered = conn.long_identifiers.find_and_register(attempt.query)
                    conn.clear_statement_cache()
                    logger.info("retrying_query", reason="long_identifier", registered=registered)
                    attempt.retry(RetryReason.LONG_IDENTIFIER)
                    text, handle = attempt.query, None
                    continue

                attempt.transition(ExecutionState.FAILED)
                if not conn.in_transaction and conn.settings.autocommit:
                    conn.adapter.rollback()
                error = self._classify(exc, code, attempt)
                logger.error("query_failed", **error.to_dict())
                if throw_exception:
                    raise error from exc
                return None

    # ── States ───────────────────────────────────────────────────────────

    def _prepare(
        self,
        attempt: ExecutionAttempt,
        text: str,
        args: Any,
        handle: PreparedStatement | None,
    ) -> tuple[PreparedStatement, Any]:
        conn = self._connection
        if handle is None:
            masked = MaskedQuery.lex(text)
            masked.text, args = expand_arguments(
                masked.text, args, in_max_size=conn.settings.in_max_size
            )
            handle = conn.cache_statement(text, conn.rewriter.rewrite_masked(masked))
        attempt.prepared = handle.final_text
        attempt.transition(ExecutionState.PREPARED)
        return handle, args

    def _run(self, attempt: ExecutionAttempt, prepared: PreparedStatement, args: Any) -> Any:
        conn = self._connection
        bound = conn.codec.encode_args(args)
        attempt.args = bound
        cursor = conn.adapter.execute(prepared.final_text, bound)
        attempt.transition(ExecutionState.EXECUTED)
        if not conn.in_transaction and conn.settings.autocommit and not _QUERY_RE.match(prepared.final_text):
            conn.adapter.commit()
        return cursor

    def _result(
        self,
        attempt: ExecutionAttempt,
        cursor: Any,
        return_mode: ReturnMode,
        sequence_name: str | None,
    ) -> Any:
        match return_mode:
            case ReturnMode.STATEMENT:
                return Statement(
                    cursor,
                    self._connection.codec,
                    query=attempt.query,
                    prepared=attempt.prepared or "",
                )
            case ReturnMode.AFFECTED:
                return cursor.rowcount
            case ReturnMode.INSERT_ID:
                return self._connection.last_insert_id(sequence_name)
            case ReturnMode.NULL:
                return None

    def _classify(self, exc: Exception, code: int | None, attempt: ExecutionAttempt) -> DatabaseError:
        message = str(exc)
        if code == ORA_UNIQUE_CONSTRAINT or "ORA-00001" in message:
            cls: type[DatabaseError] = ConstraintViolationError
        elif code == ORA_IDENTIFIER_TOO_LONG:
            cls = IdentifierTooLongError
        elif attempt.has_retried(RetryReason.INCOMPATIBILITY):
            cls = IncompatibleSyntaxError
        else:
            cls = GenericBackendError

        context = ErrorContext(
            query=attempt.query,
            prepared=attempt.prepared,
            args=attempt.args,
            native_message=message,
            error_code=code,
        )
        return cls(
            f"{attempt.query} (prepared: {attempt.prepared}) e: {message}",
            context=context,
            cause=exc,
        )


__all__ = [
    "ReturnMode",
    "ExecutionState",
    "RetryReason",
    "ExecutionAttempt",
    "IncompatibilityRules",
    "ExecutionController",
]
