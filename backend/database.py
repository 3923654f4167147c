"""
Database connection: PostgreSQL in deployment, SQLite locally.

Env vars (set in platform variables or .env):
    DATABASE_URL  -- full postgres:// connection string
    DATABASE_URL_FALLBACK -- optional sqlite+aiosqlite:///./local.db for local dev
"""

from __future__ import annotations

import os
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

import config_env  # noqa: F401  (loads .env before DATABASE_URL is read)


def normalize_database_url(raw_url: str) -> str:
    # Hosting platforms hand out postgres:// but asyncpg needs postgresql+asyncpg://
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return raw_url


_raw_url = os.environ.get("DATABASE_URL", "")

if _raw_url:
    DATABASE_URL = normalize_database_url(_raw_url)
else:
    # Local fallback: async sqlite via aiosqlite
    DATABASE_URL = os.environ.get(
        "DATABASE_URL_FALLBACK", "sqlite+aiosqlite:///./local_backend.db"
    )

engine = create_async_engine(DATABASE_URL, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def init_db(bind: Optional[AsyncEngine] = None):
    """Create all tables (safe to call multiple times)."""
    from backend import models  # noqa: F401  (registers tables on Base.metadata)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

