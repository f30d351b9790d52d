"""Bright Data Instagram profiles dataset API."""

import httpx

from coachdir.core.normalizer import normalize_brightdata
from coachdir.models.profile import Profile
from coachdir.providers.base import ProfileProvider

BRIGHTDATA_SCRAPE_URL = "https://api.brightdata.com/datasets/v3/scrape"
DEFAULT_DATASET_ID = "gd_l1vikfch901nx3by4"


class BrightDataProvider(ProfileProvider):
    """
    Provider backed by a Bright Data synchronous dataset scrape.

    The endpoint answers with either a list of records or a single record.
    Records may carry masked strings (see ``normalize_brightdata``).
    """

    name = "brightdata"

    def __init__(
        self,
        api_key: str,
        dataset_id: str = DEFAULT_DATASET_ID,
        client: httpx.AsyncClient | None = None,
        request_delay_ms: int = 1000,
        timeout_seconds: float = 60.0,
    ):
        super().__init__(api_key, client, request_delay_ms, timeout_seconds)
        self.dataset_id = dataset_id or DEFAULT_DATASET_ID

    def _build_request(self, username: str) -> httpx.Request:
        return self._client.build_request(
            "POST",
            BRIGHTDATA_SCRAPE_URL,
            params={
                "dataset_id": self.dataset_id,
                "notify": "false",
                "include_errors": "true",
                "type": "discover_new",
                "discover_by": "user_name",
            },
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={"input": [{"user_name": username}]},
        )

    def _extract_record(self, payload, username: str) -> dict | None:
        """Pick the profile record out of a list-or-object payload."""
        if not payload:
            self._log.warning("empty_response", username=username)
            return None

        if isinstance(payload, list):
            record = payload[0]
            return record if isinstance(record, dict) else None

        if not isinstance(payload, dict):
            self._log.warning("unexpected_response", username=username, kind=type(payload).__name__)
            return None

        if payload.get("id") or payload.get("account"):
            return payload

        if payload.get("error") or payload.get("message"):
            self._log.error(
                "upstream_error_record",
                username=username,
                error=payload.get("error") or payload.get("message"),
            )
        else:
            self._log.warning("unexpected_response", username=username, keys=sorted(payload))
        return None

    async def fetch_profile(self, username: str) -> Profile | None:
        self._log.debug("fetch_start", username=username)

        response = await self._send(self._build_request(username))

        if response.status_code == 404:
            self._log.warning("profile_not_found", username=username)
            return None
        self._raise_for_status(response, username)

        record = self._extract_record(self._json(response), username)
        if record is None:
            return None

        profile = self._normalize(normalize_brightdata, record, username, username=username)
        if profile is None:
            self._log.info("profile_skipped", username=username, reason="private_or_not_german")
        return profile
