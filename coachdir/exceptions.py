"""Custom exception hierarchy for coachdir."""


class CoachDirError(Exception):
    """Base exception for all coachdir errors."""


class ConfigError(CoachDirError):
    """Invalid or incomplete configuration."""


class ProviderError(CoachDirError):
    """Scraping API request failed."""


class UpstreamError(ProviderError):
    """Scraping API answered with an error status or an unreadable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """Scraping API signalled HTTP 429. Callers decide whether to back off."""

    status_code = 429


class StorageError(CoachDirError):
    """Profile database could not be opened."""
