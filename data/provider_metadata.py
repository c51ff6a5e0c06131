"""Provider display metadata with graceful fallback to the raw provider key."""

from typing import Callable, Dict, Iterable, Optional

from loguru import logger

PROVIDER_DISPLAY_NAMES = {
    "CCS": "CCS (Anchor)",
    "Experian": "Experian",
    "ONS": "Office for National Statistics",
    "Outra": "Outra",
    "YouGov": "YouGov",
    "TwentyCI": "TwentyCI",
    "Captify": "Captify",
    "Kogenta": "Kogenta",
    "Starcount": "Starcount",
}

DisplayNameLookup = Callable[[str], Optional[str]]


def static_display_name(provider_key: str) -> Optional[str]:
    return PROVIDER_DISPLAY_NAMES.get(provider_key)


def resolve_display_names(
    provider_keys: Iterable[str],
    lookup: Optional[DisplayNameLookup] = None,
) -> Dict[str, str]:
    """Map provider keys to display labels. Each failed lookup falls back to the key."""
    lookup = lookup or static_display_name
    names = {}
    for key in provider_keys:
        try:
            name = lookup(key)
        except Exception as e:
            logger.warning("Provider metadata lookup failed for {}: {}", key, e)
            name = None
        names[key] = name or key
    return names
