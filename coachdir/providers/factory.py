"""Select the configured scraping API provider."""

import httpx

from coachdir.config import ProviderKind, Settings
from coachdir.exceptions import ConfigError
from coachdir.providers.base import ProfileProvider
from coachdir.providers.brightdata import BrightDataProvider
from coachdir.providers.hasdata import HasDataProvider


def _create_hasdata(settings: Settings, client: httpx.AsyncClient | None) -> ProfileProvider:
    if not settings.hasdata_api_key:
        raise ConfigError("COACHDIR_HASDATA_API_KEY is required when using the HasData provider")
    return HasDataProvider(
        settings.hasdata_api_key,
        client=client,
        request_delay_ms=settings.hasdata_delay_ms,
        timeout_seconds=settings.http_timeout_seconds,
    )


def _create_brightdata(settings: Settings, client: httpx.AsyncClient | None) -> ProfileProvider:
    if not settings.brightdata_api_key:
        raise ConfigError("COACHDIR_BRIGHTDATA_API_KEY is required when using the Bright Data provider")
    return BrightDataProvider(
        settings.brightdata_api_key,
        dataset_id=settings.brightdata_dataset_id,
        client=client,
        request_delay_ms=settings.brightdata_delay_ms,
        timeout_seconds=settings.http_timeout_seconds,
    )


_BUILDERS = {
    ProviderKind.HASDATA: _create_hasdata,
    ProviderKind.BRIGHTDATA: _create_brightdata,
}


def create_provider(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ProfileProvider:
    """
    Build the provider named by ``settings.provider``.

    Args:
        settings: Settings instance, uses defaults if None
        client: Optional shared HTTP client passed to the provider

    Returns:
        Configured ProfileProvider

    Raises:
        ConfigError: The selected provider's API key is not set
    """
    settings = settings or Settings()
    return _BUILDERS[ProviderKind(settings.provider)](settings, client)
