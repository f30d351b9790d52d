"""coachdir - directory of German-speaking Instagram coaches."""

__version__ = "0.1.0"

from coachdir.models.profile import Niche, Profile
from coachdir.models.directory import DirectoryPage, DirectoryQuery, Pagination
from coachdir.config import ProviderKind, Settings
from coachdir.core.classifier import detect_niche, is_german_account
from coachdir.core.ingestor import Ingestor
from coachdir.core.exporter import to_json, to_dict, save_json, load_json
from coachdir.providers import BrightDataProvider, HasDataProvider, ProfileProvider, create_provider

__all__ = [
    # Main interface
    "Ingestor",
    "Settings",
    "ProviderKind",
    # Providers
    "ProfileProvider",
    "HasDataProvider",
    "BrightDataProvider",
    "create_provider",
    # Classification
    "is_german_account",
    "detect_niche",
    # Models
    "Niche",
    "Profile",
    "DirectoryQuery",
    "DirectoryPage",
    "Pagination",
    # Export utilities
    "to_json",
    "to_dict",
    "save_json",
    "load_json",
    "__version__",
]
