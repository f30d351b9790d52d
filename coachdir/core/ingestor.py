"""Ingestion pipeline - coordinates fetching, image re-hosting, persistence."""

import asyncio
from datetime import datetime, timedelta, timezone

from coachdir.config import Settings
from coachdir.core.directory import search_directory
from coachdir.exceptions import CoachDirError
from coachdir.logging import configure_logging, get_logger
from coachdir.models.directory import DirectoryPage, DirectoryQuery
from coachdir.models.profile import Profile
from coachdir.providers.base import ProfileProvider
from coachdir.providers.factory import create_provider
from coachdir.storage.images import ImageStore
from coachdir.storage.repository import ProfileRepository


def normalize_username(username: str) -> str:
    return username.strip().lstrip("@").lower()


class Ingestor:
    """
    Fetch profiles from the configured provider into the directory.

    Collaborators passed in are used as-is and left open on exit; missing
    ones are built from settings on entry and closed on exit.

    Example:
        async with Ingestor() as ingestor:
            profile = await ingestor.ingest("coach_anna")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: ProfileProvider | None = None,
        repository: ProfileRepository | None = None,
        image_store: ImageStore | None = None,
    ):
        """
        Args:
            settings: Settings instance, uses defaults if None
            provider: Scraping API provider, built by the factory if None
            repository: Profile store, opened at ``settings.database_path`` if None
            image_store: Object storage, built when Supabase is configured if None
        """
        self.settings = settings or Settings()
        self.provider = provider
        self.repository = repository
        self.image_store = image_store
        self._owned: list = []
        self._log = get_logger("ingestor")

    async def __aenter__(self) -> "Ingestor":
        """Build any collaborator that was not injected."""
        configure_logging(self.settings)

        if self.repository is None:
            self.repository = ProfileRepository(self.settings.database_path)
            self._owned.append(self.repository)

        if self.provider is None:
            self.provider = create_provider(self.settings)
            self._owned.append(self.provider)

        if self.image_store is None and self.settings.storage_enabled:
            self.image_store = ImageStore(
                self.settings.supabase_url,
                self.settings.supabase_service_key,
                bucket=self.settings.storage_bucket,
                timeout_seconds=self.settings.http_timeout_seconds,
            )
            self._owned.append(self.image_store)

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close owned collaborators in reverse order of creation."""
        while self._owned:
            await self._owned.pop().close()

    def is_stale(self, profile: Profile, now: datetime | None = None) -> bool:
        """Whether a stored profile is old enough to be fetched again."""
        if profile.last_fetched is None:
            return True
        now = now or datetime.now(timezone.utc)
        last_fetched = profile.last_fetched
        if last_fetched.tzinfo is None:
            last_fetched = last_fetched.replace(tzinfo=timezone.utc)
        return now - last_fetched >= timedelta(hours=self.settings.stale_after_hours)

    async def _fresh_from_store(self, username: str) -> Profile | None:
        stored = await self.repository.get(username)
        if stored is not None and not self.is_stale(stored):
            self._log.info("cache_hit", username=username, last_fetched=stored.last_fetched.isoformat())
            return stored
        return None

    async def _fetch_and_store(self, username: str) -> Profile | None:
        profile = await self.provider.fetch_profile(username)
        if profile is None:
            self._log.info("profile_rejected", username=username)
            return None

        update: dict = {"last_fetched": datetime.now(timezone.utc)}
        if self.image_store and profile.profile_picture and not self.image_store.is_rehosted(profile.profile_picture):
            public_url = await self.image_store.rehost(profile.profile_picture, profile.username)
            if public_url:
                update["profile_picture"] = public_url

        profile = profile.model_copy(update=update)
        await self.repository.upsert(profile)
        self._log.info(
            "profile_stored",
            username=profile.username,
            niche=profile.niche.value,
            followers=profile.followers_count,
        )
        return profile

    async def ingest(self, username: str, force_refresh: bool = False) -> Profile | None:
        """
        Return a profile, fetching it when the stored copy is stale or missing.

        Args:
            username: Instagram handle (with or without @)
            force_refresh: Skip the stored copy and fetch fresh data

        Returns:
            Stored or freshly fetched Profile, or None if the provider rejected it

        Raises:
            RateLimitedError: Upstream answered 429
            UpstreamError: Upstream failed otherwise
        """
        username = normalize_username(username)
        self._log.info("ingest_start", username=username, force_refresh=force_refresh)

        if not force_refresh:
            stored = await self._fresh_from_store(username)
            if stored is not None:
                return stored

        return await self._fetch_and_store(username)

    async def ingest_many(
        self,
        usernames: list[str],
        force_refresh: bool = False,
    ) -> list[Profile]:
        """
        Ingest several handles one after another.

        The provider's request delay is applied between upstream fetches; a
        handle that fails is logged and left out.

        Args:
            usernames: Instagram handles
            force_refresh: Skip stored copies for all

        Returns:
            Profiles in input order, rejected or failed handles omitted
        """
        delay = self.provider.request_delay_ms
        profiles = []
        fetched_before = False

        for raw in usernames:
            username = normalize_username(raw)
            if not username:
                continue

            if not force_refresh:
                stored = await self._fresh_from_store(username)
                if stored is not None:
                    profiles.append(stored)
                    continue

            if fetched_before and delay > 0:
                await asyncio.sleep(delay / 1000)
            fetched_before = True

            try:
                profile = await self._fetch_and_store(username)
            except CoachDirError as e:
                self._log.warning("ingest_failed", username=username, error=str(e))
                continue

            if profile is not None:
                profiles.append(profile)

        return profiles

    async def directory(self, query: DirectoryQuery) -> DirectoryPage:
        """Read a page of the stored directory."""
        return await search_directory(self.repository, query)
