"""Pydantic models for coachdir."""

from coachdir.models.profile import Niche, Profile
from coachdir.models.directory import DirectoryPage, DirectoryQuery, Pagination

__all__ = [
    "Niche",
    "Profile",
    "DirectoryQuery",
    "DirectoryPage",
    "Pagination",
]
