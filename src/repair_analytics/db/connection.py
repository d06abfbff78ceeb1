"""Async SQLAlchemy engine and session factory for the ticket database."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

ASYNC_SCHEME = "postgresql+psycopg://"
LOCAL_HOSTS = ("localhost", "127.0.0.1")


def _normalise_url(url: str) -> str:
    """Force the async psycopg driver and require SSL for non-local hosts."""
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            url = ASYNC_SCHEME + url[len(scheme):]
            break

    host = ""
    if "@" in url:
        host = url.rsplit("@", 1)[1].split("/", 1)[0].split(":", 1)[0]
    if host and host not in LOCAL_HOSTS and "sslmode" not in url:
        url += ("&" if "?" in url else "?") + "sslmode=require"
    return url


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Create the engine on first use so importing this module needs no driver."""
    return create_async_engine(_normalise_url(settings.database_url), echo=False)


@lru_cache(maxsize=1)
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_session():
    """Yield an async database session for the dashboard service calls."""
    async with get_sessionmaker()() as session:
        yield session
