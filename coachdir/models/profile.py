"""Profile data model."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Niche(str, Enum):
    """Content focus of a coach profile."""
    FITNESS = "Fitness"
    BUSINESS = "Business"
    MARKETING = "Marketing"
    FINANCE = "Finance"
    PERSONAL_DEVELOPMENT = "Personal Development"
    NUTRITION = "Nutrition"
    MINDFULNESS = "Mindfulness"
    HEALTH_WELLNESS = "Health & Wellness"
    ENTREPRENEURSHIP = "Entrepreneurship"
    LIFESTYLE = "Lifestyle"


class Profile(BaseModel):
    """Canonical Instagram coach profile, independent of the source API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    full_name: str | None = None
    biography: str | None = None
    profile_picture: str = ""
    external_url: str | None = None
    followers_count: int = Field(default=0, ge=0)
    follows_count: int = Field(default=0, ge=0)
    posts_count: int = Field(default=0, ge=0)
    is_business_account: bool = False
    is_professional_account: bool = False
    verified: bool = False
    niche: Niche = Niche.LIFESTYLE
    last_fetched: datetime | None = None

    @property
    def bio(self) -> str | None:
        return self.biography

    @property
    def profile_pic_url(self) -> str:
        return self.profile_picture
