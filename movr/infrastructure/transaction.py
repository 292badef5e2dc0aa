"""Transaction Executor — runs a unit of work with automatic retry on serialization conflicts.

Invariants:
    - Every attempt gets a fresh session from session_factory; sessions never
      outlive their attempt
    - Success commits; any exception rolls back before the session is closed
    - Retryable conflicts (SQLSTATE 40001): exponential backoff with jitter,
      bounded by RetryPolicy.max_retries, then TransactionFailedError
    - Non-retryable failures (constraint, connectivity, domain, programming
      errors) propagate after the first attempt
    - cancel_event is checked before every attempt and interrupts backoff sleeps
    - asyncio.CancelledError propagates after the in-flight session is released

Design Decisions:
    - ±25% jitter on backoff: concurrent losers of the same conflict spread out
    - Work is a coroutine function taking the session: it may be re-run, so it
      must not keep state outside the session between attempts
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from movr.config import Settings
from movr.core.errors import (
    ErrorContext,
    RetryableConflictError,
    TransactionCancelledError,
    TransactionFailedError,
)
from movr.infrastructure.db_errors import translate_db_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
SessionFactory = Callable[[], AsyncSession]
UnitOfWork = Callable[[AsyncSession], Awaitable[T]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for conflict retries."""
    max_retries: int = 100
    base_delay_ms: int = 10
    max_delay_ms: int = 2_000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.txn_max_retries,
            base_delay_ms=settings.txn_base_delay_ms,
            max_delay_ms=settings.txn_max_delay_ms,
        )

    def backoff_ms(self, attempt: int) -> float:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return delay * random.uniform(0.75, 1.25)  # nosec B311


async def run_transaction(
    session_factory: SessionFactory,
    work: UnitOfWork[T],
    *,
    policy: RetryPolicy | None = None,
    cancel_event: asyncio.Event | None = None,
    operation: str | None = None,
    city: str | None = None,
) -> T:
    """Run work(session) in its own transaction, retrying on serialization conflicts."""
    policy = policy or RetryPolicy()
    name = operation or getattr(work, "__name__", "transaction")
    attempt = 0
    while True:
        context = ErrorContext(operation=name, city=city, attempt=attempt + 1)
        _raise_if_cancelled(cancel_event, context)
        try:
            return await _run_attempt(session_factory, work, context)
        except RetryableConflictError as e:
            if attempt >= policy.max_retries:
                logger.error(
                    f"Transaction {name} gave up after {attempt + 1} attempts",
                    extra={
                        "operation": name, "city": city,
                        "attempt": attempt + 1, "sqlstate": e.context.sqlstate,
                    },
                )
                raise TransactionFailedError(attempt + 1, context) from e
            delay_ms = policy.backoff_ms(attempt)
            logger.warning(
                f"Serialization conflict in {name}, retry after {delay_ms:.0f}ms "
                f"(attempt {attempt + 1})",
                extra={
                    "operation": name, "city": city,
                    "attempt": attempt + 1, "sqlstate": e.context.sqlstate,
                },
            )
            attempt += 1
            await _sleep_or_cancel(delay_ms, cancel_event, context)


async def _run_attempt(
    session_factory: SessionFactory, work: UnitOfWork[T], context: ErrorContext,
) -> T:
    """One attempt: fresh session, begin, work, commit — or rollback and translate."""
    async with session_factory() as session:
        try:
            async with session.begin():
                return await work(session)
        except (DBAPIError, OSError) as e:
            raise translate_db_error(e, context) from e


def _raise_if_cancelled(
    cancel_event: asyncio.Event | None, context: ErrorContext,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(
            f"Transaction {context.operation} cancelled before attempt {context.attempt}",
            extra={"operation": context.operation, "attempt": context.attempt},
        )
        raise TransactionCancelledError(context)


async def _sleep_or_cancel(
    delay_ms: float, cancel_event: asyncio.Event | None, context: ErrorContext,
) -> None:
    """Back off for delay_ms; wake early and raise if the caller cancels."""
    if cancel_event is None:
        await asyncio.sleep(delay_ms / 1000)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay_ms / 1000)
    except asyncio.TimeoutError:
        return
    raise TransactionCancelledError(context)
