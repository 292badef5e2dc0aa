"""Database Error Classification — maps driver/SQLAlchemy failures onto the MovR taxonomy.

Invariants:
    - SQLSTATE 40001 (serialization_failure) → RetryableConflictError
    - SQLSTATE class 08 (connection exception) / 28 (invalid authorization),
      OSError, InterfaceError, invalidated connections → DatabaseConnectionError
    - IntegrityError → ConstraintViolationError; is_unique_violation singles out
      primary key / unique clashes (SQLSTATE 23505, SQLite "UNIQUE constraint failed")
    - Everything else from the driver → DatabaseError
    - MovRError instances are never re-wrapped

Design Decisions:
    - SQLSTATE read from the DBAPI exception (asyncpg adapter exposes .sqlstate,
      psycopg exposes .pgcode), falling back to the driver exception in __cause__
    - CockroachDB "restart transaction" text accepted as a conflict even when the
      SQLSTATE is lost by a proxy
    - SQLite "database is locked" treated as contention: the local stand-in reports
      write-write conflicts this way
"""

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError

from movr.core.errors import (
    ConstraintViolationError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorContext,
    MovRError,
    RetryableConflictError,
)

SERIALIZATION_FAILURE = "40001"
UNIQUE_VIOLATION = "23505"
_CONNECTION_SQLSTATE_CLASSES = ("08", "28")
_ADMIN_SHUTDOWN = ("57P01", "57P02", "57P03")
_RETRY_MARKERS = ("restart transaction", "TransactionRetryError", "database is locked")


def extract_sqlstate(error: BaseException) -> str | None:
    """Return the SQLSTATE carried by a DB error, if any."""
    orig = getattr(error, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None), error):
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str) and code:
                return code
    return None


def is_retryable(error: BaseException) -> bool:
    """True when the store aborted the transaction and a fresh attempt may succeed."""
    if isinstance(error, RetryableConflictError):
        return True
    if not isinstance(error, DBAPIError):
        return False
    if extract_sqlstate(error) == SERIALIZATION_FAILURE:
        return True
    text = str(error.orig) if error.orig is not None else str(error)
    return any(marker in text for marker in _RETRY_MARKERS)


def is_unique_violation(error: BaseException) -> bool:
    """True when an IntegrityError comes from a primary key or unique constraint."""
    if not isinstance(error, IntegrityError):
        return False
    if extract_sqlstate(error) == UNIQUE_VIOLATION:
        return True
    text = str(error.orig) if error.orig is not None else str(error)
    return "UNIQUE constraint failed" in text


def is_connection_error(error: BaseException) -> bool:
    """True when the failure means the store cannot be reached or refused us."""
    if isinstance(error, OSError):
        return True
    if not isinstance(error, DBAPIError):
        return False
    if error.connection_invalidated or isinstance(error, InterfaceError):
        return True
    sqlstate = extract_sqlstate(error) or ""
    return sqlstate[:2] in _CONNECTION_SQLSTATE_CLASSES or sqlstate in _ADMIN_SHUTDOWN


def translate_db_error(
    error: BaseException, context: ErrorContext | None = None,
) -> MovRError:
    """Map a raw DB/driver failure to the matching MovRError."""
    if isinstance(error, MovRError):
        return error
    ctx = context or ErrorContext()
    ctx.sqlstate = extract_sqlstate(error)
    if is_retryable(error):
        return RetryableConflictError(
            "Transaction aborted by a conflicting transaction", ctx,
        )
    if is_connection_error(error):
        return DatabaseConnectionError(type(error).__name__, ctx)
    if isinstance(error, IntegrityError):
        return ConstraintViolationError(
            "Integrity constraint violated", _constraint_name(error), ctx,
        )
    return DatabaseError(type(error).__name__, ctx.operation or "query", ctx)


def _constraint_name(error: IntegrityError) -> str | None:
    """Best-effort constraint name (asyncpg exposes constraint_name on the cause)."""
    orig = getattr(error, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    return None
