"""
Integration tests - live requests against the scraping APIs.

These tests require internet and API credits, and are skipped without keys.

Run with: COACHDIR_HASDATA_API_KEY=... pytest tests/test_integration_providers.py -m integration -v
"""

import os

import pytest

from coachdir.providers.brightdata import BrightDataProvider
from coachdir.providers.hasdata import HasDataProvider

# Mark all tests in this module as integration tests (slow, requires internet)
pytestmark = pytest.mark.integration

# German-speaking coach accounts expected to stay public
TEST_ACCOUNTS = ["pamela_rf", "sophiathiel"]

HASDATA_KEY = os.getenv("COACHDIR_HASDATA_API_KEY")
BRIGHTDATA_KEY = os.getenv("COACHDIR_BRIGHTDATA_API_KEY")


def check_profile(profile, username: str):
    assert profile is not None, f"{username}: rejected"
    assert profile.username.lower() == username
    assert profile.id
    assert profile.followers_count > 0
    assert profile.profile_picture.startswith("http")


@pytest.mark.skipif(not HASDATA_KEY, reason="COACHDIR_HASDATA_API_KEY not set")
class TestHasDataLive:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", TEST_ACCOUNTS)
    async def test_fetch_profile(self, username):
        async with HasDataProvider(HASDATA_KEY) as provider:
            check_profile(await provider.fetch_profile(username), username)


@pytest.mark.skipif(not BRIGHTDATA_KEY, reason="COACHDIR_BRIGHTDATA_API_KEY not set")
class TestBrightDataLive:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", TEST_ACCOUNTS)
    async def test_fetch_profile(self, username):
        async with BrightDataProvider(BRIGHTDATA_KEY, timeout_seconds=120) as provider:
            check_profile(await provider.fetch_profile(username), username)
