"""SQLite-backed coach profile directory."""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from coachdir.exceptions import StorageError
from coachdir.models.directory import DirectoryQuery
from coachdir.models.profile import Profile

COLUMNS = (
    "username",
    "id",
    "full_name",
    "biography",
    "profile_picture",
    "external_url",
    "followers_count",
    "follows_count",
    "posts_count",
    "is_business_account",
    "is_professional_account",
    "verified",
    "niche",
    "last_fetched",
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _casefold(value: str | None) -> str | None:
    return value.lower() if value is not None else None


def _to_row(profile: Profile) -> tuple:
    data = profile.model_dump(mode="json")
    last_fetched = profile.last_fetched.timestamp() if profile.last_fetched else None
    return tuple(
        last_fetched if column == "last_fetched" else data[column]
        for column in COLUMNS
    )


def _from_row(row: aiosqlite.Row) -> Profile:
    data = dict(row)
    for flag in ("is_business_account", "is_professional_account", "verified"):
        data[flag] = bool(data[flag])
    if data["last_fetched"] is not None:
        data["last_fetched"] = datetime.fromtimestamp(data["last_fetched"], tz=timezone.utc)
    return Profile.model_validate(data)


class ProfileRepository:
    """Persisted profiles keyed case-insensitively by username, using aiosqlite."""

    def __init__(self, db_path: str = "coachdir.db"):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def __aenter__(self) -> "ProfileRepository":
        await self._ensure_db()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database connection and schema exist."""
        if self._db is None:
            try:
                self._db = await aiosqlite.connect(self.db_path)
            except aiosqlite.Error as e:
                raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
            self._db.row_factory = aiosqlite.Row
            # SQLite's own lower() only folds ASCII; umlauts need Python's.
            await self._db.create_function("py_lower", 1, _casefold, deterministic=True)
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    username TEXT PRIMARY KEY COLLATE NOCASE,
                    id TEXT NOT NULL,
                    full_name TEXT,
                    biography TEXT,
                    profile_picture TEXT NOT NULL DEFAULT '',
                    external_url TEXT,
                    followers_count INTEGER NOT NULL DEFAULT 0,
                    follows_count INTEGER NOT NULL DEFAULT 0,
                    posts_count INTEGER NOT NULL DEFAULT 0,
                    is_business_account INTEGER NOT NULL DEFAULT 0,
                    is_professional_account INTEGER NOT NULL DEFAULT 0,
                    verified INTEGER NOT NULL DEFAULT 0,
                    niche TEXT NOT NULL,
                    last_fetched REAL
                )
            """)
            await self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_followers ON profiles(followers_count)"
            )
            await self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_niche ON profiles(niche)"
            )
            await self._db.commit()
        return self._db

    async def upsert(self, profile: Profile) -> None:
        """Insert a profile or overwrite the stored one with the same username."""
        db = await self._ensure_db()
        placeholders = ", ".join("?" for _ in COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in COLUMNS if c != "username")

        await db.execute(
            f"""
            INSERT INTO profiles ({", ".join(COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT(username) DO UPDATE SET {updates}
            """,
            _to_row(profile),
        )
        await db.commit()

    async def get(self, username: str) -> Profile | None:
        """Look up one profile, ignoring case."""
        db = await self._ensure_db()
        async with db.execute(
            "SELECT * FROM profiles WHERE username = ?", (username,)
        ) as cursor:
            row = await cursor.fetchone()
        return _from_row(row) if row else None

    async def list_all(self) -> list[Profile]:
        """Return every stored profile."""
        db = await self._ensure_db()
        async with db.execute("SELECT * FROM profiles ORDER BY username") as cursor:
            rows = await cursor.fetchall()
        return [_from_row(row) for row in rows]

    async def search(self, query: DirectoryQuery) -> tuple[list[Profile], int]:
        """
        Run a directory query.

        Args:
            query: Filters and pagination

        Returns:
            Tuple of (page of profiles by followers descending, filtered total)
        """
        db = await self._ensure_db()
        clauses: list[str] = []
        params: list = []

        if query.search:
            needle = query.search.lower()
            clauses.append(
                "(instr(py_lower(username), ?) > 0"
                " OR instr(py_lower(coalesce(full_name, '')), ?) > 0)"
            )
            params.extend([needle, needle])
        if query.niches:
            clauses.append(f"niche IN ({', '.join('?' for _ in query.niches)})")
            params.extend(query.niches)
        if query.min_followers > 0:
            clauses.append("followers_count >= ?")
            params.append(query.min_followers)
        if query.max_followers > 0:
            clauses.append("followers_count <= ?")
            params.append(query.max_followers)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with db.execute(f"SELECT COUNT(*) FROM profiles {where}", params) as cursor:
            (total,) = await cursor.fetchone()

        async with db.execute(
            f"SELECT * FROM profiles {where} ORDER BY followers_count DESC LIMIT ? OFFSET ?",
            [*params, query.limit, query.offset],
        ) as cursor:
            rows = await cursor.fetchall()

        return [_from_row(row) for row in rows], total

    async def count(self) -> int:
        """Count all stored profiles."""
        db = await self._ensure_db()
        async with db.execute("SELECT COUNT(*) FROM profiles") as cursor:
            (total,) = await cursor.fetchone()
        return total

    async def mark_stale(self, username: str) -> None:
        """Reset the staleness marker so the next ingest refetches."""
        db = await self._ensure_db()
        await db.execute(
            "UPDATE profiles SET last_fetched = ? WHERE username = ?",
            (EPOCH.timestamp(), username),
        )
        await db.commit()

    async def delete(self, username: str) -> None:
        """Remove a profile."""
        db = await self._ensure_db()
        await db.execute("DELETE FROM profiles WHERE username = ?", (username,))
        await db.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None
