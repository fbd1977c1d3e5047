from typing import Awaitable, Callable, TypeVar

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .settings import DATABASE_URL, SQL_ECHO

# Every service keeps its tables in its own schema to simulate microservice isolation
SERVICE_SCHEMAS = ("order_schema", "product_schema", "payment_schema")

T = TypeVar("T")

Base = declarative_base()


class StoreError(Exception):
    """A unit of work failed inside the relational store and was rolled back."""


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        # SQLite has no schemas: collapse them into the default one
        engine = create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool,
            execution_options={"schema_translate_map": {s: None for s in SERVICE_SCHEMAS}},
        )
        _serialize_sqlite_writers(engine)
        return engine
    return create_async_engine(url, echo=echo)


def _serialize_sqlite_writers(engine: AsyncEngine):
    """
    SQLite ignores FOR UPDATE, and the driver defers BEGIN until the first
    write, so reads that precede it see no lock. Every transaction takes the
    database write lock up front instead; a second one waits for the first
    to commit and then reads what it left behind.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine(DATABASE_URL, echo=SQL_ECHO)

AsyncSessionLocal = build_session_factory(engine)


async def init_models(bind: AsyncEngine, schemas=SERVICE_SCHEMAS):
    """Creates the given service schemas (PostgreSQL only) and the tables that live in them."""
    tables = [t for t in Base.metadata.sorted_tables if t.schema in schemas]
    async with bind.begin() as conn:
        if bind.dialect.name == "postgresql":
            for schema in schemas:
                await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
        await conn.run_sync(Base.metadata.create_all, tables=tables)


async def run_in_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """
    Runs `work` inside a fresh session and a single transaction.

    Commits when `work` returns, rolls back when it raises. Store failures
    surface as StoreError; any other exception propagates unchanged after
    the rollback.
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                return await work(session)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal
