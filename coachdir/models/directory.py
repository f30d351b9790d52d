"""Directory query and result page models."""

import math

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coachdir.models.profile import Profile


class DirectoryQuery(BaseModel):
    """Filter and pagination state for a directory read."""

    search: str = ""
    niches: list[str] = []
    min_followers: int = 0
    max_followers: int = 0
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=100, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    """Paging metadata returned with every directory page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    global_total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int, global_total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            global_total=global_total,
            total_pages=math.ceil(total / limit),
        )


class DirectoryPage(BaseModel):
    """One page of matching profiles plus counts."""

    profiles: list[Profile] = []
    pagination: Pagination
