# tests/conftest.py
from __future__ import annotations

import asyncio
import inspect
import os
import sys
from pathlib import Path
from typing import List

import pytest
from starlette.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep the import-time app in app.main off the network and out of JSON logging.
os.environ.pop("PERSPECTIVE_API_KEY", None)
os.environ.pop("NEXT_PUBLIC_PERSPECTIVE_API_KEY", None)
os.environ.setdefault("LOG_JSON", "false")

from app.main import create_app  # noqa: E402
from app.services.moderation.pipeline import ContentModerator, reset_moderator  # noqa: E402
from app.services.moderation.scorer import CategoryScores  # noqa: E402


class FakeScorer:
    """Counting scorer double: returns fixed scores or raises ``error``."""

    name = "fake"

    def __init__(
        self,
        scores: CategoryScores | None = None,
        error: BaseException | None = None,
        configured: bool = True,
    ) -> None:
        self.scores = scores or CategoryScores.zero()
        self.error = error
        self.configured = configured
        self.calls: List[str] = []

    async def score(self, text: str) -> CategoryScores:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.scores


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    monkeypatch.delenv("PERSPECTIVE_API_KEY", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_PERSPECTIVE_API_KEY", raising=False)
    monkeypatch.setenv("LOG_JSON", "false")
    reset_moderator()
    yield
    reset_moderator()


@pytest.fixture()
def fake_scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture()
def moderator(fake_scorer: FakeScorer) -> ContentModerator:
    return ContentModerator(fake_scorer)


@pytest.fixture()
def app(moderator: ContentModerator):
    # Function scope: new app for each test to pick up monkeypatched env.
    return create_app(moderator=moderator)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Minimal asyncio support without requiring pytest-asyncio."""

    test_func = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_func):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            call_kwargs = {
                name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
            }
            loop.run_until_complete(test_func(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None
