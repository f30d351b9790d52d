"""Keyword heuristics over bio and name text.

Both checks lowercase ``"{bio} {full_name}"`` and look for plain substrings.
Short tokens such as ``"de"`` therefore also hit inside unrelated words
("made", "code"); matching is not word-bounded.
"""

from coachdir.models.profile import Niche

GERMAN_INDICATORS: tuple[str, ...] = (
    "deutschland",
    "germany",
    "deutsch",
    "berlin",
    "münchen",
    "hamburg",
    "köln",
    "frankfurt",
    "stuttgart",
    "düsseldorf",
    "de",
    "🇩🇪",
    "german",
    "deutsche",
    "deutscher",
    "deutschsprachig",
    "wien",
    "zürich",
    "schweiz",
    "österreich",
)

# Declaration order is the tie-break: the first category with a hit wins.
NICHE_KEYWORDS: tuple[tuple[Niche, tuple[str, ...]], ...] = (
    (Niche.FITNESS, (
        "fitness", "trainer", "workout", "gym", "sport", "athlet",
        "training", "fit", "bodybuilding", "pilates",
    )),
    (Niche.BUSINESS, (
        "business", "entrepreneur", "startup", "founder", "ceo",
        "consultant", "business coach",
    )),
    (Niche.MARKETING, (
        "marketing", "social media", "content creator", "influencer",
        "brand", "advertising", "digital marketing",
    )),
    (Niche.FINANCE, (
        "finance", "invest", "money", "wealth", "financial", "trading",
        "crypto", "stock", "finanz",
    )),
    (Niche.PERSONAL_DEVELOPMENT, (
        "personal development", "self improvement", "mindset", "motivation",
        "growth", "success", "life coach",
    )),
    (Niche.NUTRITION, (
        "nutrition", "food", "diet", "healthy eating", "meal", "recipe",
        "ernährung", "ernährungsberater",
    )),
    (Niche.MINDFULNESS, (
        "mindfulness", "meditation", "yoga", "zen", "mental health",
        "wellness", "mindful", "achtsamkeit",
    )),
    (Niche.HEALTH_WELLNESS, (
        "wellness", "health", "healthy", "wellbeing", "gesundheit",
        "wohlbefinden",
    )),
    (Niche.ENTREPRENEURSHIP, (
        "entrepreneur", "startup", "founder", "business owner",
        "startup coach",
    )),
)


def _haystack(bio: str | None, full_name: str | None) -> str:
    return f"{bio or ''} {full_name or ''}".lower()


def is_german_account(bio: str | None = None, full_name: str | None = None) -> bool:
    """
    Check whether an account is likely German-speaking.

    Args:
        bio: Profile biography
        full_name: Profile display name

    Returns:
        True if any German indicator occurs in either text
    """
    if not bio and not full_name:
        return False

    text = _haystack(bio, full_name)
    return any(indicator in text for indicator in GERMAN_INDICATORS)


def detect_niche(
    bio: str | None = None,
    full_name: str | None = None,
    table: tuple[tuple[Niche, tuple[str, ...]], ...] = NICHE_KEYWORDS,
) -> Niche:
    """
    Classify profile text into a niche.

    Args:
        bio: Profile biography
        full_name: Profile display name
        table: Ordered category -> keywords mapping

    Returns:
        First matching niche, Lifestyle when nothing matches
    """
    if not bio and not full_name:
        return Niche.LIFESTYLE

    text = _haystack(bio, full_name)
    for niche, keywords in table:
        if any(keyword in text for keyword in keywords):
            return niche

    return Niche.LIFESTYLE
