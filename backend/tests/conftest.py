"""Shared fixtures: in-memory database, scripted AI client and a fixed caller."""
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aceprep.db import Base, get_db
from aceprep.gemini_client import get_gemini_client, get_optional_gemini_client
from aceprep.main import app
from aceprep.routers.auth import User, get_current_user


def gemini_body(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeGemini:
    """Replays queued replies; an Exception in the queue is raised instead of returned."""

    def __init__(self) -> None:
        self.replies: List[Any] = []
        self.raw_replies: List[Any] = []
        self.prompts: List[str] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    def queue_raw(self, *replies: Any) -> None:
        self.raw_replies.extend(replies)

    @staticmethod
    def _next(queue: List[Any]) -> Any:
        if not queue:
            raise AssertionError("unexpected AI call")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def generate(self, prompt: str, *, thinking_budget=None) -> str:
        self.prompts.append(prompt)
        return self._next(self.replies)

    async def generate_raw(self, prompt: str) -> Dict[str, Any]:
        self.prompts.append(prompt)
        return self._next(self.raw_replies)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_ai():
    return FakeGemini()


@pytest.fixture
def set_user():
    def _set(username: str) -> None:
        app.dependency_overrides[get_current_user] = lambda: User(username=username)

    return _set


@pytest.fixture
def client(session_factory, fake_ai, set_user):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def override_ai():
        yield fake_ai

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gemini_client] = override_ai
    app.dependency_overrides[get_optional_gemini_client] = override_ai
    set_user("alice")
    yield TestClient(app)
    app.dependency_overrides.clear()
