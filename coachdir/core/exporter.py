"""Export utilities for profiles."""

import json
from datetime import datetime
from pathlib import Path

from pydantic import TypeAdapter

from coachdir.models.profile import Profile

_PROFILE_LIST = TypeAdapter(list[Profile])


def to_json(profile: Profile, indent: int = 2) -> str:
    """
    Convert a Profile to a JSON string with camelCase keys.

    Args:
        profile: Profile to serialize
        indent: JSON indentation level

    Returns:
        JSON string
    """
    return profile.model_dump_json(indent=indent, by_alias=True)


def to_dict(profile: Profile) -> dict:
    """Convert a Profile to its wire dictionary (camelCase keys)."""
    return profile.model_dump(mode="json", by_alias=True)


def save_json(profile: Profile, filepath: str | Path, indent: int = 2) -> Path:
    """
    Save a Profile to a JSON file.

    Args:
        profile: Profile to save
        filepath: Output file path
        indent: JSON indentation level

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_json(profile, indent=indent), encoding="utf-8")
    return path


def save_many_json(profiles: list[Profile], filepath: str | Path, indent: int = 2) -> Path:
    """Save profiles to one JSON document with export metadata."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "exportedAt": datetime.now().isoformat(),
        "count": len(profiles),
        "profiles": [to_dict(p) for p in profiles],
    }
    path.write_text(json.dumps(document, indent=indent, ensure_ascii=False), encoding="utf-8")
    return path


def load_json(filepath: str | Path) -> Profile:
    """Load a Profile from a file written by ``save_json``."""
    path = Path(filepath)
    return Profile.model_validate_json(path.read_text(encoding="utf-8"))


def load_many_json(filepath: str | Path) -> list[Profile]:
    """Load profiles from a file written by ``save_many_json``."""
    document = json.loads(Path(filepath).read_text(encoding="utf-8"))
    return _PROFILE_LIST.validate_python(document["profiles"])
