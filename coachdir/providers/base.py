"""Abstract scraping API provider."""

import asyncio
from abc import ABC, abstractmethod

import httpx

from coachdir.exceptions import CoachDirError, ConfigError, RateLimitedError, UpstreamError
from coachdir.logging import get_logger
from coachdir.models.profile import Profile


class ProfileProvider(ABC):
    """
    Base class for Instagram profile providers.

    Subclasses implement ``fetch_profile``; batch fetching, pacing and
    client lifecycle live here.

    Example:
        async with HasDataProvider(api_key) as provider:
            profiles = await provider.fetch_profiles(["coach_anna", "fit_max"])
    """

    name: str = "provider"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        request_delay_ms: int = 0,
        timeout_seconds: float = 30.0,
    ):
        """
        Args:
            api_key: Credential for the scraping API
            client: Shared HTTP client; the provider creates and owns one if None
            request_delay_ms: Pause between successive requests in a batch
            timeout_seconds: Timeout for an owned client
        """
        if not api_key:
            raise ConfigError(f"An API key is required for the {self.name} provider")

        self.api_key = api_key
        self.request_delay_ms = request_delay_ms
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._log = get_logger(self.name)

    async def __aenter__(self) -> "ProfileProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    @abstractmethod
    async def fetch_profile(self, username: str) -> Profile | None:
        """
        Fetch and normalize one profile.

        Args:
            username: Instagram handle (without @)

        Returns:
            Profile, or None if missing, private or not German-speaking

        Raises:
            RateLimitedError: Upstream answered 429
            UpstreamError: Any other failure status or unreadable body
        """
        ...

    async def fetch_profiles(self, usernames: list[str]) -> list[Profile]:
        """
        Fetch profiles one after another with a fixed delay in between.

        A failing username is logged and skipped; the batch continues.

        Args:
            usernames: Instagram handles

        Returns:
            Profiles in input order, skipped handles omitted
        """
        profiles = []

        for i, username in enumerate(usernames):
            try:
                profile = await self.fetch_profile(username)
            except CoachDirError as e:
                self._log.warning("profile_fetch_failed", username=username, error=str(e))
                profile = None

            if profile is not None:
                profiles.append(profile)

            if self.request_delay_ms > 0 and i < len(usernames) - 1:
                await asyncio.sleep(self.request_delay_ms / 1000)

        return profiles

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send a request, mapping transport failures to UpstreamError."""
        try:
            return await self._client.send(request)
        except httpx.HTTPError as e:
            raise UpstreamError(f"{self.name} request failed: {e}") from e

    def _raise_for_status(self, response: httpx.Response, username: str) -> None:
        """
        Raise for failure statuses other than 404.

        Callers check for 404 themselves and treat it as absence.
        """
        if response.is_success:
            return

        if response.status_code == 429:
            raise RateLimitedError("Rate limit exceeded. Please try again later.")

        message = f"API error: {response.status_code} {response.reason_phrase}"
        try:
            error_data = response.json()
        except ValueError:
            error_data = None

        if isinstance(error_data, dict):
            message = (
                error_data.get("message")
                or error_data.get("error")
                or error_data.get("detail")
                or message
            )

        self._log.error(
            "upstream_error",
            username=username,
            status=response.status_code,
            message=message,
        )
        raise UpstreamError(str(message), status_code=response.status_code)

    def _json(self, response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON response from {self.name}",
                status_code=response.status_code,
            ) from e

    def _normalize(self, normalize, record: dict, handle: str, **kwargs) -> Profile | None:
        """
        Run a normalizer over one upstream record.

        Records whose fields have unusable types (a pydantic ValidationError
        is a ValueError) are reported as UpstreamError, so batches skip them.
        """
        try:
            return normalize(record, **kwargs)
        except (TypeError, ValueError) as e:
            self._log.error("malformed_record", username=handle, error=str(e))
            raise UpstreamError(f"Malformed {self.name} record for {handle}: {e}") from e
