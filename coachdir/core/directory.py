"""Directory reads over persisted profiles."""

from coachdir.models.directory import DirectoryPage, DirectoryQuery, Pagination
from coachdir.storage.repository import ProfileRepository


def parse_niches(value: str | None) -> list[str]:
    """Split a comma-separated niche filter, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


async def search_directory(repository: ProfileRepository, query: DirectoryQuery) -> DirectoryPage:
    """
    Fetch one page of the directory.

    Args:
        repository: Profile store to query
        query: Search text, niche set, follower bounds and paging

    Returns:
        DirectoryPage with profiles ordered by followers descending
    """
    profiles, total = await repository.search(query)
    global_total = await repository.count()

    return DirectoryPage(
        profiles=profiles,
        pagination=Pagination.build(query.page, query.limit, total, global_total),
    )
