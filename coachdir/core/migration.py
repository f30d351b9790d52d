"""Move stored profile pictures from expiring CDN links into object storage."""

import asyncio
from dataclasses import dataclass, field

from coachdir.core.ingestor import Ingestor
from coachdir.exceptions import CoachDirError, ConfigError
from coachdir.logging import get_logger
from coachdir.models.profile import Profile


@dataclass
class MigrationSummary:
    """Outcome of an image migration run."""

    migrated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.migrated) + len(self.failed)


async def _refetch_with_retry(
    ingestor: Ingestor,
    username: str,
    max_attempts: int,
    retry_delay_ms: int,
) -> Profile | None:
    log = get_logger("migration")

    for attempt in range(1, max_attempts + 1):
        try:
            return await ingestor.ingest(username, force_refresh=True)
        except CoachDirError as e:
            log.warning("refetch_attempt_failed", username=username, attempt=attempt, error=str(e))
            if attempt < max_attempts and retry_delay_ms > 0:
                await asyncio.sleep(retry_delay_ms / 1000)

    return None


async def migrate_profile_images(
    ingestor: Ingestor,
    batch_size: int | None = None,
    batch_delay_ms: int | None = None,
    item_delay_ms: int | None = None,
    max_attempts: int | None = None,
    retry_delay_ms: int | None = None,
) -> MigrationSummary:
    """
    Re-fetch every stored profile whose picture is not in object storage yet.

    Each profile is marked stale, then re-ingested; ingestion re-hosts the
    fresh image. Arguments left as None fall back to the ingestor's settings.

    Args:
        ingestor: Entered Ingestor with an image store
        batch_size: Profiles per batch
        batch_delay_ms: Pause between batches
        item_delay_ms: Pause between profiles
        max_attempts: Fetch attempts per profile
        retry_delay_ms: Pause between attempts

    Returns:
        MigrationSummary listing migrated and failed usernames

    Raises:
        ConfigError: No image store is configured
    """
    settings = ingestor.settings
    batch_size = batch_size or settings.migration_batch_size
    batch_delay_ms = settings.migration_batch_delay_ms if batch_delay_ms is None else batch_delay_ms
    item_delay_ms = settings.migration_item_delay_ms if item_delay_ms is None else item_delay_ms
    max_attempts = max_attempts or settings.migration_max_attempts
    retry_delay_ms = settings.migration_retry_delay_ms if retry_delay_ms is None else retry_delay_ms

    store = ingestor.image_store
    if store is None:
        raise ConfigError("Image migration needs COACHDIR_SUPABASE_URL and COACHDIR_SUPABASE_SERVICE_KEY")

    log = get_logger("migration")
    profiles = await ingestor.repository.list_all()
    pending = [p for p in profiles if not store.is_rehosted(p.profile_picture)]
    log.info("migration_start", total=len(profiles), pending=len(pending))

    summary = MigrationSummary()
    total_batches = (len(pending) + batch_size - 1) // batch_size

    for start in range(0, len(pending), batch_size):
        batch = pending[start:start + batch_size]
        log.info("batch_start", batch=start // batch_size + 1, of=total_batches, size=len(batch))

        for i, profile in enumerate(batch):
            await ingestor.repository.mark_stale(profile.username)
            fresh = await _refetch_with_retry(ingestor, profile.username, max_attempts, retry_delay_ms)

            if fresh is not None and store.is_rehosted(fresh.profile_picture):
                summary.migrated.append(profile.username)
            else:
                log.warning("profile_not_migrated", username=profile.username)
                summary.failed.append(profile.username)

            if item_delay_ms > 0 and i < len(batch) - 1:
                await asyncio.sleep(item_delay_ms / 1000)

        if batch_delay_ms > 0 and start + batch_size < len(pending):
            await asyncio.sleep(batch_delay_ms / 1000)

    log.info("migration_complete", migrated=len(summary.migrated), failed=len(summary.failed))
    return summary
