"""Database session management for the FastAPI backend."""
from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy import String, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from .config import get_settings

# Seconds a SQLite writer waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT = 30


class casefold(FunctionElement):
    """Unicode case folding of a text expression.

    SQLite's own lower() only folds ASCII, so on SQLite this calls a Python
    function registered per connection; other backends use lower().
    """

    type = String()
    inherit_cache = True


@compiles(casefold)
def _compile_casefold(element, compiler, **kw):
    return "lower(%s)" % compiler.process(element.clauses, **kw)


@compiles(casefold, "sqlite")
def _compile_casefold_sqlite(element, compiler, **kw):
    return "casefold(%s)" % compiler.process(element.clauses, **kw)


def _sqlite_casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, applying SQLite specific connection options."""

    is_sqlite = database_url.startswith("sqlite+")
    connect_args = (
        {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT} if is_sqlite else {}
    )
    new_engine = create_async_engine(
        database_url, future=True, echo=False, connect_args=connect_args, **kwargs
    )
    if is_sqlite:
        event.listen(new_engine.sync_engine, "connect", _prepare_sqlite_connection)
    return new_engine


def _prepare_sqlite_connection(dbapi_connection, connection_record) -> None:
    dbapi_connection.create_function("casefold", 1, _sqlite_casefold)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


settings = get_settings()
engine = build_engine(settings.database_url)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request."""

    async with AsyncSessionLocal() as session:
        yield session
