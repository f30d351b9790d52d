"""HasData Instagram profile API."""

import httpx

from coachdir.core.normalizer import normalize_hasdata
from coachdir.exceptions import UpstreamError
from coachdir.models.profile import Profile
from coachdir.providers.base import ProfileProvider

HASDATA_PROFILE_URL = "https://api.hasdata.com/scrape/instagram/profile"


class HasDataProvider(ProfileProvider):
    """Provider backed by the HasData profile endpoint (one JSON object per request)."""

    name = "hasdata"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        request_delay_ms: int = 500,
        timeout_seconds: float = 30.0,
    ):
        super().__init__(api_key, client, request_delay_ms, timeout_seconds)

    async def fetch_profile(self, username: str) -> Profile | None:
        self._log.debug("fetch_start", username=username)

        request = self._client.build_request(
            "GET",
            HASDATA_PROFILE_URL,
            params={"handle": username},
            headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
        )
        response = await self._send(request)

        if response.status_code == 404:
            self._log.warning("profile_not_found", username=username)
            return None
        self._raise_for_status(response, username)

        data = self._json(response)
        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected HasData payload for {username}")

        profile = self._normalize(normalize_hasdata, data, username)
        if profile is None:
            self._log.info("profile_skipped", username=username, reason="private_or_not_german")
        return profile
