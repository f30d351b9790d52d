"""Shared helpers for coachdir tests - no internet required."""

import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
import structlog

from coachdir.config import Settings
from coachdir.models.profile import Niche, Profile
from coachdir.providers.base import ProfileProvider

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str):
    """Load a JSON fixture by file name."""
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


def make_profile(username: str, followers: int = 1000, **overrides) -> Profile:
    """Build a stored-looking profile."""
    data = {
        "id": f"id-{username}",
        "username": username,
        "full_name": username.replace("_", " ").title(),
        "biography": "Coach aus Berlin",
        "profile_picture": f"https://scontent.cdninstagram.com/{username}.jpg",
        "followers_count": followers,
        "niche": Niche.FITNESS,
        "last_fetched": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return Profile(**data)


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler(request)``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class StubProvider(ProfileProvider):
    """Provider answering from a dict; values may be Profiles, None or exceptions."""

    name = "stub"

    def __init__(self, answers: dict | None = None, request_delay_ms: int = 0):
        super().__init__("test-key", client=mock_client(lambda r: httpx.Response(500)), request_delay_ms=request_delay_ms)
        self.answers = answers or {}
        self.calls: list[str] = []

    async def fetch_profile(self, username: str) -> Profile | None:
        self.calls.append(username)
        answer = self.answers.get(username)
        if isinstance(answer, Exception):
            raise answer
        if answer is not None:
            return answer.model_copy(update={"last_fetched": None})
        return None


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop logging configuration and cached loggers between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temporary database with no pacing delays."""
    return Settings(
        hasdata_api_key="test-key",
        database_path=str(tmp_path / "coachdir.db"),
        hasdata_delay_ms=0,
        brightdata_delay_ms=0,
        migration_batch_delay_ms=0,
        migration_item_delay_ms=0,
        migration_retry_delay_ms=0,
    )
