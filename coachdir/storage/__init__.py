"""Persistence: profile directory database and image object storage."""

from coachdir.storage.repository import ProfileRepository
from coachdir.storage.images import ImageStore

__all__ = ["ProfileRepository", "ImageStore"]
