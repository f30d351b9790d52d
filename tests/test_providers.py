"""Unit tests for scraping API providers - mocked HTTP transport, no internet."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from coachdir.exceptions import ConfigError, RateLimitedError, UpstreamError
from coachdir.providers.brightdata import BRIGHTDATA_SCRAPE_URL, BrightDataProvider
from coachdir.providers.hasdata import HASDATA_PROFILE_URL, HasDataProvider

from conftest import load_fixture, mock_client


def hasdata_payload(username: str, bio: str = "Coach aus Berlin") -> dict:
    return {"id": f"id-{username}", "username": username, "biography": bio, "followersCount": 100}


class TestProviderConstruction:
    """Test credential checks at construction time."""

    def test_hasdata_requires_key(self):
        with pytest.raises(ConfigError):
            HasDataProvider("")

    def test_brightdata_requires_key(self):
        with pytest.raises(ConfigError):
            BrightDataProvider("")

    def test_default_delays(self):
        client = mock_client(lambda r: httpx.Response(200))
        assert HasDataProvider("k", client=client).request_delay_ms == 500
        assert BrightDataProvider("k", client=client).request_delay_ms == 1000

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        client = mock_client(lambda r: httpx.Response(200))
        async with HasDataProvider("k", client=client):
            pass
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        provider = HasDataProvider("k")
        await provider.close()
        assert provider._client.is_closed is True


class TestHasDataProvider:
    """Test HasData request building and response handling."""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=load_fixture("hasdata_profile.json"))

        async with HasDataProvider("secret", client=mock_client(handler)) as provider:
            profile = await provider.fetch_profile("coach_anna")

        assert profile is not None
        assert profile.username == "coach_anna"
        request = seen["request"]
        assert str(request.url).startswith(HASDATA_PROFILE_URL)
        assert request.url.params["handle"] == "coach_anna"
        assert request.headers["x-api-key"] == "secret"

    @pytest.mark.asyncio
    async def test_404_returns_none(self):
        provider = HasDataProvider("k", client=mock_client(lambda r: httpx.Response(404)))
        assert await provider.fetch_profile("ghost") is None

    @pytest.mark.asyncio
    async def test_429_raises_rate_limited(self):
        provider = HasDataProvider("k", client=mock_client(lambda r: httpx.Response(429)))
        with pytest.raises(RateLimitedError):
            await provider.fetch_profile("anna")

    @pytest.mark.asyncio
    async def test_500_raises_upstream_error(self):
        provider = HasDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(500, json={"message": "boom"})),
        )
        with pytest.raises(UpstreamError) as exc_info:
            await provider.fetch_profile("anna")
        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_json_raises_upstream_error(self):
        provider = HasDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(200, content=b"<html>")),
        )
        with pytest.raises(UpstreamError):
            await provider.fetch_profile("anna")

    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = HasDataProvider("k", client=mock_client(handler))
        with pytest.raises(UpstreamError):
            await provider.fetch_profile("anna")

    @pytest.mark.asyncio
    async def test_non_german_returns_none(self):
        provider = HasDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(200, json=hasdata_payload("joe", "Coach from Texas"))),
        )
        assert await provider.fetch_profile("joe") is None


class TestBrightDataProvider:
    """Test Bright Data request building and response shapes."""

    @pytest.mark.asyncio
    async def test_fetch_array_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=load_fixture("brightdata_profile.json"))

        provider = BrightDataProvider("secret", dataset_id="ds_1", client=mock_client(handler))
        profile = await provider.fetch_profile("max_mindset")

        assert profile.username == "max_mindset"
        request = seen["request"]
        assert request.method == "POST"
        assert str(request.url).startswith(BRIGHTDATA_SCRAPE_URL)
        assert request.url.params["dataset_id"] == "ds_1"
        assert request.url.params["discover_by"] == "user_name"
        assert request.headers["authorization"] == "Bearer secret"
        assert json.loads(request.content) == {"input": [{"user_name": "max_mindset"}]}

    @pytest.mark.asyncio
    async def test_fetch_object_response(self):
        record = load_fixture("brightdata_profile.json")[0]
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(200, json=record)))
        profile = await provider.fetch_profile("max_mindset")
        assert profile.id == "4120398812"

    @pytest.mark.asyncio
    async def test_empty_array_returns_none(self):
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(200, json=[])))
        assert await provider.fetch_profile("anna") is None

    @pytest.mark.asyncio
    async def test_error_object_returns_none(self):
        provider = BrightDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(200, json={"error": "dead_page"})),
        )
        assert await provider.fetch_profile("anna") is None

    @pytest.mark.asyncio
    async def test_error_fields_with_identity_are_kept(self):
        record = {"id": "7", "account": "lena", "biography": "Berlin", "message": "partial"}
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(200, json=record)))
        profile = await provider.fetch_profile("lena")
        assert profile.username == "lena"

    @pytest.mark.asyncio
    async def test_private_returns_none(self):
        provider = BrightDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(200, json=[{"id": "1", "account": "x", "is_private": True}])),
        )
        assert await provider.fetch_profile("x") is None

    @pytest.mark.asyncio
    async def test_masked_account_stored_under_requested_handle(self):
        record = {"id": "9", "account": "j**n_doe", "biography": "Coach aus Wien"}
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(200, json=[record])))
        profile = await provider.fetch_profile("john_doe")
        assert profile.username == "john_doe"

    @pytest.mark.asyncio
    async def test_malformed_record_raises_upstream_error(self):
        record = {"id": "9", "account": "lena", "biography": "Berlin", "followers": "10", "full_name": ["x"]}
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(200, json=record)))
        with pytest.raises(UpstreamError):
            await provider.fetch_profile("lena")

    @pytest.mark.asyncio
    async def test_error_detail_in_message(self):
        provider = BrightDataProvider(
            "k",
            client=mock_client(lambda r: httpx.Response(400, json={"detail": "bad dataset"})),
        )
        with pytest.raises(UpstreamError, match="bad dataset"):
            await provider.fetch_profile("anna")

    @pytest.mark.asyncio
    async def test_429_raises_rate_limited(self):
        provider = BrightDataProvider("k", client=mock_client(lambda r: httpx.Response(429)))
        with pytest.raises(RateLimitedError):
            await provider.fetch_profile("anna")


class TestFetchProfiles:
    """Test sequential batch fetching."""

    @staticmethod
    def _handler(request: httpx.Request) -> httpx.Response:
        handle = request.url.params["handle"]
        if handle == "missingOne":
            return httpx.Response(404)
        if handle == "limited":
            return httpx.Response(429)
        if handle == "broken":
            return httpx.Response(503)
        if handle == "foreign":
            return httpx.Response(200, json=hasdata_payload(handle, "Coach from Texas"))
        if handle == "links":
            return httpx.Response(200, json={
                **hasdata_payload(handle),
                "externalUrls": [{"title": "site", "url": "https://coach.de"}],
            })
        if handle == "huge":
            return httpx.Response(200, json={**hasdata_payload(handle), "followersCount": "1e400"})
        if handle == "badtype":
            return httpx.Response(200, json={**hasdata_payload(handle), "username": 12345})
        return httpx.Response(200, json=hasdata_payload(handle))

    @pytest.mark.asyncio
    async def test_missing_profile_is_skipped_in_order(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=0)
        profiles = await provider.fetch_profiles(["a", "missingOne", "b"])
        assert [p.username for p in profiles] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_errors_do_not_abort_batch(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=0)
        profiles = await provider.fetch_profiles(["limited", "a", "broken", "foreign", "b"])
        assert [p.username for p in profiles] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_link_objects_and_overflowing_counts_do_not_abort_batch(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=0)
        profiles = await provider.fetch_profiles(["a", "links", "huge", "b"])

        assert [p.username for p in profiles] == ["a", "links", "huge", "b"]
        assert profiles[1].external_url == "https://coach.de"
        assert profiles[2].followers_count == 0

    @pytest.mark.asyncio
    async def test_malformed_record_is_skipped(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=0)
        profiles = await provider.fetch_profiles(["a", "badtype", "b"])
        assert [p.username for p in profiles] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_malformed_record_raises_upstream_error(self):
        provider = HasDataProvider("k", client=mock_client(self._handler))
        with pytest.raises(UpstreamError, match="Malformed"):
            await provider.fetch_profile("badtype")

    @pytest.mark.asyncio
    async def test_requests_are_sequential_in_input_order(self):
        order = []

        def handler(request):
            order.append(request.url.params["handle"])
            return self._handler(request)

        provider = HasDataProvider("k", client=mock_client(handler), request_delay_ms=0)
        await provider.fetch_profiles(["c", "a", "b"])
        assert order == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_delay_between_requests(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=500)
        with patch("coachdir.providers.base.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await provider.fetch_profiles(["a", "missingOne", "b"])

        # Between requests only, not after the last one
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        provider = HasDataProvider("k", client=mock_client(self._handler), request_delay_ms=0)
        assert await provider.fetch_profiles([]) == []
