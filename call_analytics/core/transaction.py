import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.database import Database
from call_analytics.core.errors import AppError, ConflictError, StorageError, TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WRITE_CONFLICT_MARKERS = ("deadlock", "could not serialize", "database is locked", "serialization failure")
_TIMEOUT_MARKERS = ("timeout", "timed out", "canceling statement")


@dataclass(frozen=True)
class TransactionOptions:
    timeout: float = 10.0
    isolation_level: Optional[str] = "READ COMMITTED"


def classify_storage_error(error: BaseException) -> Optional[AppError]:
    """Map a low-level storage exception onto the error taxonomy.

    Returns ``None`` when the exception is not a storage failure.
    """
    if isinstance(error, sa_exc.IntegrityError):
        return ConflictError()
    if isinstance(error, sa_exc.TimeoutError):
        return TransientStorageError("pool_timeout", "Timed out waiting for a database connection. Please try again.")
    if isinstance(error, sa_exc.DBAPIError):
        detail = str(error.orig or error).lower()
        if any(marker in detail for marker in _WRITE_CONFLICT_MARKERS):
            return TransientStorageError(
                "write_conflict", "Transaction failed due to a write conflict. Please retry the operation."
            )
        if any(marker in detail for marker in _TIMEOUT_MARKERS):
            return TransientStorageError("timeout", "Transaction timed out. The operation took too long to complete.")
        if error.connection_invalidated or isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError)):
            return TransientStorageError("connection", "Database connection error. Please try again.")
        return StorageError()
    if isinstance(error, sa_exc.SQLAlchemyError):
        return StorageError()
    return None


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    except AppError:
        raise
    except sa_exc.SQLAlchemyError as error:
        classified = classify_storage_error(error)
        logger.error(
            "Storage operation failed operation=%s error=%s reason=%s duration=%dms",
            operation,
            type(error).__name__,
            getattr(classified, "reason", None),
            _elapsed_ms(started),
            exc_info=error,
        )
        raise classified from error


async def run_in_transaction(
    database: Database,
    callback: Callable[[AsyncSession], Awaitable[T]],
    options: Optional[TransactionOptions] = None,
) -> T:
    """Run ``callback`` inside one transaction and commit it.

    The callback and the commit must finish within ``options.timeout``
    seconds, otherwise the transaction is rolled back and a
    ``TransientStorageError`` with reason ``timeout`` is raised.
    """
    opts = options or TransactionOptions()
    started = time.perf_counter()
    isolation_level = opts.isolation_level if database.isolation_level else None
    logger.debug("Starting database transaction timeout=%ss isolation_level=%s", opts.timeout, isolation_level)

    async def _run(session: AsyncSession) -> T:
        if isolation_level:
            await session.connection(execution_options={"isolation_level": isolation_level})
        result = await callback(session)
        await session.commit()
        return result

    with translate_storage_errors("transaction"):
        async with database.session() as session:
            try:
                result = await asyncio.wait_for(_run(session), timeout=opts.timeout)
            except asyncio.TimeoutError as error:
                await session.rollback()
                logger.error(
                    "Transaction timed out duration=%dms timeout=%ss", _elapsed_ms(started), opts.timeout
                )
                raise TransientStorageError(
                    "timeout", f"Transaction timed out after {int(opts.timeout * 1000)}ms. Please try again."
                ) from error
            except BaseException:
                await session.rollback()
                raise

    logger.debug("Transaction completed duration=%dms", _elapsed_ms(started))
    return result


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
