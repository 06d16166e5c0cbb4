import asyncio
import weakref
from contextlib import nullcontext

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bazaar.core.config import settings


def build_engine(url: str):
    if url.startswith("sqlite"):
        # One shared connection so every request sees the same in-memory store
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_store_locks = weakref.WeakKeyDictionary()


def store_guard():
    """Async context that lets one session at a time use the store.

    Sessions on the in-memory engine share a single connection and therefore
    a single transaction: a rollback in one would discard the pending writes
    of another. A server-backed database isolates sessions on its own.
    """
    if not settings.is_memory_db:
        return nullcontext()
    loop = asyncio.get_running_loop()
    lock = _store_locks.get(loop)
    if lock is None:
        lock = _store_locks[loop] = asyncio.Lock()
    return lock


async def get_db():
    async with store_guard():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()
