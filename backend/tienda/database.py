"""
Tienda Services: Store (Engine, Sessions, Schema Bootstrap)
=============================================================

What:  The Store component owns the async SQLAlchemy engine and session
       factory, bootstraps the schema once at startup, and hands out
       per-request sessions.
How:   Constructed explicitly by the app factory (tienda.main.create_app) or
       by tests, attached to `app.state.store`, and injected into route
       handlers through the `get_db_session` dependency. Nothing here is
       created at import time.

Connection Pooling:
    pool_size / max_overflow come from settings on server dialects.
    SQLite (local development, tests) uses SQLAlchemy's default pool.
    pool_pre_ping validates connections before use.

Schema Bootstrap:
    initialize(tables) is an idempotent CREATE ... IF NOT EXISTS pass over the
    tables a service owns, plus the purchase-number sequence on dialects that
    support sequences. Column-level evolution of existing databases is done
    with Alembic (backend/alembic).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable, Optional

from fastapi import Request
from sqlalchemy import Sequence, Table, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tienda.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, Store.initialize() and
    Alembic's autogenerate.
    """
    pass


# Purchase numbers for receipts come from this sequence on every service
# that writes the boleta table.
PURCHASE_NUMBER_SEQUENCE = Sequence("seq_numero_compra", start=1, metadata=Base.metadata)


class Store:
    """
    Database access component shared by the route handlers of one service.

    Lifecycle:
        store = Store(url)              # engine created, no connection yet
        await store.initialize(tables)  # once, in the app lifespan
        async with store.session() as s # per request
        await store.dispose()           # at shutdown
    """

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        url = database_url or settings.database_url
        engine_kwargs = {
            "pool_pre_ping": settings.db_pool_pre_ping,
            "echo": settings.log_level == "DEBUG" if echo is None else echo,
        }
        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False keeps ORM rows readable after the commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def supports_sequences(self) -> bool:
        return bool(self.engine.dialect.supports_sequences)

    async def initialize(self, tables: Iterable[Table]) -> None:
        """
        Create the purchase-number sequence and the given tables if absent.

        Safe to run on every boot: existing objects are left untouched.
        """
        tables = list(tables)
        async with self.engine.begin() as conn:
            if self.supports_sequences:
                await conn.run_sync(PURCHASE_NUMBER_SEQUENCE.create, checkfirst=True)
            await conn.run_sync(Base.metadata.create_all, tables=tables, checkfirst=True)
        logger.info(
            "Schema verified on %s: %s",
            self.dialect_name,
            ", ".join(t.name for t in tables) or "(no tables)",
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit of work: commits on success, rolls back on any error, always closes.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> bool:
        """Lightweight connectivity check used by GET /health."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Dependencies ──────────────────────────────────────────────────────────

def get_store(request: Request) -> Store:
    """FastAPI dependency returning the Store attached by the app factory."""
    return request.app.state.store


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one transactional session per request.

    Example usage in a route:
        @router.get("/productos")
        async def listar(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    store: Store = request.app.state.store
    async with store.session() as session:
        yield session
