"""Catalogue of geo signals that can be toggled in construction settings."""

from typing import Dict, List, Optional
from models.settings import SignalConfig, SignalDefinition

AUDIENCE_INTENTS = ["home_movers", "home_renovators", "home_owners_general"]

SIGNAL_DEFINITIONS: Dict[str, SignalDefinition] = {
    d.id: d for d in [
        SignalDefinition(
            "planning_approval", "Planning Approval Intent",
            "Areas with recent planning permission activity for extensions and renovations",
            0.8, 0.7, "suburban", ("home_renovators", "home_owners_general"), "Outra",
        ),
        SignalDefinition(
            "property_age_0_5", "Property Age 0-5 Years",
            "New build properties, likely first-time buyers or recent movers",
            0.6, 0.6, "suburban", ("home_movers",), "TwentyCI",
        ),
        SignalDefinition(
            "property_age_5_10", "Property Age 5-10 Years",
            "Established properties, potential for first major renovation",
            0.7, 0.65, "suburban", ("home_renovators", "home_owners_general"), "TwentyCI",
        ),
        SignalDefinition(
            "property_age_10_20", "Property Age 10-20 Years",
            "Properties at typical renovation lifecycle point",
            0.8, 0.7, "suburban", ("home_renovators", "home_owners_general"), "TwentyCI",
        ),
        SignalDefinition(
            "property_age_20_plus", "Property Age 20+ Years",
            "Older properties, higher renovation likelihood",
            0.75, 0.65, "urban", ("home_renovators", "home_owners_general"), "TwentyCI",
        ),
        SignalDefinition(
            "ownership_confidence_low", "Ownership Confidence: Low",
            "Areas with lower owner-occupier rates",
            0.3, 0.4, "urban", ("home_owners_general",), "ONS",
        ),
        SignalDefinition(
            "ownership_confidence_medium", "Ownership Confidence: Medium",
            "Areas with moderate owner-occupier rates",
            0.6, 0.6, "suburban", ("home_owners_general", "home_renovators"), "ONS",
        ),
        SignalDefinition(
            "ownership_confidence_high", "Ownership Confidence: High",
            "Areas with high owner-occupier rates",
            0.9, 0.8, "suburban", ("home_owners_general", "home_renovators", "home_movers"), "ONS",
        ),
        SignalDefinition(
            "affluence_proxy", "Affluence Proxy",
            "Income and property value indicators",
            0.7, 0.65, "suburban", ("home_movers", "home_renovators", "home_owners_general"), "Experian",
        ),
        SignalDefinition(
            "household_size_small", "Household Size: Small (1-2)",
            "Single person or couple households",
            0.4, 0.5, "urban", ("home_movers",), "Experian",
        ),
        SignalDefinition(
            "household_size_medium", "Household Size: Medium (3-4)",
            "Family households",
            0.8, 0.7, "suburban", ("home_movers", "home_renovators"), "Experian",
        ),
        SignalDefinition(
            "household_size_large", "Household Size: Large (5+)",
            "Large family households",
            0.7, 0.65, "suburban", ("home_movers", "home_renovators"), "Experian",
        ),
    ]
}

# Extension-mode inference rules:
# (target signal, trigger predicate over enabled ids, weight, confidence, bias)
INFERENCE_RULES = [
    ("property_age_10_20", lambda ids: "planning_approval" in ids, 0.5, 0.5, "suburban"),
    ("ownership_confidence_medium", lambda ids: any(i.startswith("property_age_") for i in ids), 0.4, 0.5, "suburban"),
    ("affluence_proxy", lambda ids: "ownership_confidence_high" in ids, 0.4, 0.5, "suburban"),
]


def signals_for_intent(intent: Optional[str]) -> List[SignalDefinition]:
    """Signals applicable to an audience intent (all signals when intent is None)."""
    if not intent:
        return list(SIGNAL_DEFINITIONS.values())
    return [
        s for s in SIGNAL_DEFINITIONS.values()
        if s.applicable_intents is None or intent in s.applicable_intents
    ]


def default_signal_config(signal: SignalDefinition, enabled: bool = False) -> SignalConfig:
    return SignalConfig(
        enabled=enabled,
        base_weight=signal.default_weight,
        confidence=signal.default_confidence,
        spatial_bias=signal.default_spatial_bias,
    )
