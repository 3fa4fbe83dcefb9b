import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import exc as sa_exc
from sqlalchemy import text

from call_analytics.core.database import Database
from call_analytics.core.errors import ConflictError, StorageError, TransientStorageError, ValidationError
from call_analytics.core.transaction import (
    TransactionOptions,
    classify_storage_error,
    run_in_transaction,
    translate_storage_errors,
)


def _dbapi(cls, message):
    return cls("SELECT 1", {}, Exception(message))


def test_integrity_error_is_conflict():
    assert isinstance(classify_storage_error(_dbapi(sa_exc.IntegrityError, "UNIQUE constraint failed")), ConflictError)


@pytest.mark.parametrize(
    "error, reason",
    [
        (_dbapi(sa_exc.OperationalError, "database is locked"), "write_conflict"),
        (_dbapi(sa_exc.OperationalError, "deadlock detected"), "write_conflict"),
        (_dbapi(sa_exc.DBAPIError, "canceling statement due to statement timeout"), "timeout"),
        (_dbapi(sa_exc.OperationalError, "connection refused"), "connection"),
        (sa_exc.TimeoutError("QueuePool limit reached"), "pool_timeout"),
    ],
)
def test_transient_errors(error, reason):
    classified = classify_storage_error(error)
    assert isinstance(classified, TransientStorageError)
    assert classified.reason == reason


def test_other_errors():
    assert type(classify_storage_error(_dbapi(sa_exc.ProgrammingError, "syntax error"))) is StorageError
    assert type(classify_storage_error(sa_exc.NoResultFound())) is StorageError
    assert classify_storage_error(ValueError("not storage")) is None


def test_translate_storage_errors_passes_app_errors_through():
    with pytest.raises(ValidationError):
        with translate_storage_errors("test"):
            raise ValidationError("bad input")
    with pytest.raises(TransientStorageError):
        with translate_storage_errors("test"):
            raise _dbapi(sa_exc.OperationalError, "server closed the connection unexpectedly")


@pytest_asyncio.fixture()
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'tx.db'}", isolation_level="READ COMMITTED")
    yield db
    await db.dispose()


@pytest.mark.asyncio
async def test_commits_and_returns_result(database):
    async def _create(session):
        await session.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY)"))
        await session.execute(text("INSERT INTO items (id) VALUES (1)"))
        return "done"

    assert await run_in_transaction(database, _create) == "done"
    async with database.session() as session:
        assert (await session.execute(text("SELECT COUNT(*) FROM items"))).scalar() == 1


@pytest.mark.asyncio
async def test_times_out(database):
    async def _slow(session):
        await asyncio.sleep(1)

    with pytest.raises(TransientStorageError) as exc_info:
        await run_in_transaction(database, _slow, TransactionOptions(timeout=0.05))
    assert exc_info.value.reason == "timeout"
    assert "50ms" in exc_info.value.message


@pytest.mark.asyncio
async def test_callback_error_rolls_back(database):
    async def _setup(session):
        await session.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY)"))

    async def _fail(session):
        await session.execute(text("INSERT INTO items (id) VALUES (1)"))
        raise ValidationError("stop")

    await run_in_transaction(database, _setup)
    with pytest.raises(ValidationError):
        await run_in_transaction(database, _fail)
    async with database.session() as session:
        assert (await session.execute(text("SELECT COUNT(*) FROM items"))).scalar() == 0


@pytest.mark.asyncio
async def test_duplicate_insert_is_conflict(database):
    async def _setup(session):
        await session.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY)"))
        await session.execute(text("INSERT INTO items (id) VALUES (1)"))

    async def _duplicate(session):
        await session.execute(text("INSERT INTO items (id) VALUES (1)"))

    await run_in_transaction(database, _setup)
    with pytest.raises(ConflictError):
        await run_in_transaction(database, _duplicate)


def test_sqlite_skips_isolation_level(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'iso.db'}", isolation_level="READ COMMITTED")
    assert db.isolation_level is None
