"""
pytest configuration for the marketplace API.

Configures:
- fast bcrypt work factor and an in-memory database URL
- storage fixtures (in-memory map and SQL on in-memory SQLite)
- a scripted LLM client and an httpx client bound to the ASGI app
"""

import os

# Must be set before config_env is imported anywhere.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL_FALLBACK", "sqlite+aiosqlite://")
os.environ["APP_ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app import create_app
from backend.database import init_db
from data.memory_storage import MemoryStorage
from data.sql_storage import SqlStorage
from domain.errors import UpstreamError
from services.pitch_analyzer import PitchAnalyzer


class FakeLLMClient:
    """Returns queued answers in order; an Exception instance in the queue is raised."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def queue(self, *answers):
        self.answers.extend(answers)

    async def generate(self, prompt, system=None):
        self.prompts.append(prompt)
        if not self.answers:
            raise UpstreamError("AI service returned no choices")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


async def _sql_storage():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    return SqlStorage(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture(params=["memory", "sql"])
async def storage(request):
    """Every repository contract test runs against both implementations."""
    if request.param == "memory":
        yield MemoryStorage()
        return
    store = await _sql_storage()
    yield store
    await store.close()


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def app(memory_storage, fake_llm):
    return create_app(storage=memory_storage, analyzer=PitchAnalyzer(fake_llm))


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
