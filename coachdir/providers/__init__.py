"""Scraping API providers."""

from coachdir.providers.base import ProfileProvider
from coachdir.providers.hasdata import HasDataProvider
from coachdir.providers.brightdata import BrightDataProvider
from coachdir.providers.factory import create_provider

__all__ = ["ProfileProvider", "HasDataProvider", "BrightDataProvider", "create_provider"]
