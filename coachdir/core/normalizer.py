"""Map provider-specific payloads onto the canonical Profile."""

import math
from typing import Any

from coachdir.core.classifier import detect_niche, is_german_account
from coachdir.models.profile import Niche, Profile

MASK_CHAR = "*"
URL_SCHEME_PREFIX = "http"


def _float_to_count(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return max(0, int(value))


def normalize_count(value: Any) -> int:
    """
    Convert an upstream count to a non-negative integer.

    Examples:
        1200 -> 1200
        "1.2K" -> 1200
        "1,234" -> 1234
        None -> 0
        "n/a" -> 0
        "1e400" -> 0
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return max(0, value)

    if isinstance(value, float):
        return _float_to_count(value)

    if not isinstance(value, str):
        return 0

    count_str = value.strip().upper().replace(",", "")
    if not count_str:
        return 0

    multipliers = {
        "K": 1_000,
        "M": 1_000_000,
        "B": 1_000_000_000,
    }

    for suffix, multiplier in multipliers.items():
        if count_str.endswith(suffix):
            try:
                return _float_to_count(float(count_str[:-1]) * multiplier)
            except ValueError:
                return 0

    try:
        return _float_to_count(float(count_str))
    except ValueError:
        return 0


def strip_mask(value: str | None) -> str:
    """Remove masking characters some providers put into strings."""
    if not value:
        return ""
    return value.replace(MASK_CHAR, "")


def pick_image_url(standard: str | None, hd: str | None = None) -> str:
    """Prefer the standard-resolution image, then HD, else empty."""
    return standard or hd or ""


def _resolve_niche(niche: Niche | str | None, bio: str | None, full_name: str | None) -> Niche:
    if niche:
        return Niche(niche)
    return detect_niche(bio, full_name)


def _first(value: Any) -> str | None:
    """First link of a string, a list of strings or a list of link objects."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url")
    return value if isinstance(value, str) and value else None


def normalize_hasdata(data: dict, niche: Niche | str | None = None) -> Profile | None:
    """
    Transform a HasData profile payload to a Profile.

    Args:
        data: Raw JSON object from the HasData profile endpoint
        niche: Explicit niche, detected from the bio if None

    Returns:
        Profile, or None for private, non-German or anonymous payloads
    """
    username = data.get("username")
    if not username:
        return None

    if data.get("isPrivate"):
        return None

    bio = data.get("biography")
    full_name = data.get("fullName")
    if not is_german_account(bio, full_name):
        return None

    is_business = bool(data.get("isBusinessAccount"))
    is_professional = bool(data.get("isProfessionalAccount"))

    return Profile(
        id=str(data.get("id") or username),
        username=username,
        full_name=full_name,
        biography=bio,
        profile_picture=pick_image_url(data.get("profilePicUrl"), data.get("profilePicUrlHD")),
        external_url=_first(data.get("externalUrls")),
        followers_count=normalize_count(data.get("followersCount")),
        follows_count=normalize_count(data.get("followsCount")),
        posts_count=normalize_count(data.get("postsCount")),
        is_business_account=is_business,
        is_professional_account=is_professional,
        verified=is_business or is_professional,
        niche=_resolve_niche(niche, bio, full_name),
    )


def normalize_brightdata(
    data: dict,
    username: str | None = None,
    niche: Niche | str | None = None,
) -> Profile | None:
    """
    Transform a Bright Data profile record to a Profile.

    Bright Data masks parts of ``account`` and ``profile_image_link`` with
    asterisks. A masked account is replaced by the requested handle when one
    is given, otherwise stripped; an image link that is not a URL after
    stripping is dropped.

    Args:
        data: One record from the Bright Data scrape response
        username: Requested handle, used when ``account`` is missing or masked
        niche: Explicit niche, detected from the bio if None

    Returns:
        Profile, or None for private, non-German or anonymous records
    """
    if data.get("is_private"):
        return None

    account = data.get("account")
    if account and MASK_CHAR in account and username:
        handle = username
    else:
        handle = strip_mask(account) or username
    if not handle:
        return None

    bio = data.get("biography")
    full_name = data.get("full_name")
    if not is_german_account(bio, full_name):
        return None

    image_url = strip_mask(data.get("profile_image_link"))
    if not image_url.startswith(URL_SCHEME_PREFIX):
        image_url = ""

    is_business = bool(data.get("is_business_account"))
    is_professional = bool(data.get("is_professional_account"))
    explicit_verified = data.get("is_verified")
    verified = (
        bool(explicit_verified)
        if explicit_verified is not None
        else is_business or is_professional
    )

    return Profile(
        id=str(data.get("id") or handle),
        username=handle,
        full_name=full_name,
        biography=bio,
        profile_picture=pick_image_url(image_url),
        external_url=_first(data.get("external_url")),
        followers_count=normalize_count(data.get("followers")),
        follows_count=normalize_count(data.get("following")),
        posts_count=normalize_count(data.get("posts_count")),
        is_business_account=is_business,
        is_professional_account=is_professional,
        verified=verified,
        niche=_resolve_niche(niche, bio, full_name),
    )
