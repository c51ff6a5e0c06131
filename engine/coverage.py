"""Coverage and profile metrics derived from settings and scored units."""

from typing import List, Optional

from config.defaults import CONFIDENCE_TIERS, DEFAULT_BASE_AUDIENCE_SIZE
from engine.scoring_engine import round_half_up
from models.geo_unit import GeoUnit
from models.profile import CoverageMetrics, DerivedStats, TierSummary
from models.settings import ConstructionSettings

SIGNAL_DIVERSITY_PER_SIGNAL = 15
DIVERSITY_WEIGHT = 0.4
CONFIDENCE_WEIGHT = 0.6
EXTENSION_COVERAGE_MULTIPLIER = 1.2


def calculate_coverage_metrics(settings: Optional[ConstructionSettings]) -> CoverageMetrics:
    """Signal count, weight-weighted confidence and an estimated match coverage."""
    if settings is None:
        return CoverageMetrics()

    enabled = [cfg for _, cfg in settings.enabled_signals]
    if not enabled:
        return CoverageMetrics()

    total_weight = sum(s.base_weight for s in enabled)
    weighted = sum(s.base_weight * s.confidence for s in enabled)
    modelled_confidence = weighted / total_weight * 100 if total_weight > 0 else 0.0

    diversity = min(100, len(enabled) * SIGNAL_DIVERSITY_PER_SIGNAL)
    multiplier = EXTENSION_COVERAGE_MULTIPLIER if settings.construction_mode == "extension" else 1.0
    coverage = min(100, (diversity * DIVERSITY_WEIGHT + modelled_confidence * CONFIDENCE_WEIGHT) * multiplier)

    return CoverageMetrics(
        active_signals_count=len(enabled),
        modelled_confidence=round_half_up(modelled_confidence),
        estimated_match_coverage=round_half_up(coverage),
    )


def calculate_derived_stats(scale_accuracy: float, base_size: int = DEFAULT_BASE_AUDIENCE_SIZE) -> DerivedStats:
    """0 = maximum reach, 100 = maximum precision.

    Size runs from 1.5x base (reach) down to 0.5x (precision); the high
    confidence share rises from 0.3 to 0.8 as accuracy increases.
    """
    scale_accuracy = max(0.0, min(100.0, float(scale_accuracy)))
    scale_factor = (100 - scale_accuracy) / 100
    accuracy_factor = scale_accuracy / 100

    size_multiplier = 0.5 + scale_factor
    return DerivedStats(
        derived_audience_size=round_half_up(base_size * size_multiplier),
        confidence_high=round_half_up((0.3 + accuracy_factor * 0.5) * 100) / 100,
        confidence_medium=round_half_up((0.4 - accuracy_factor * 0.2) * 100) / 100,
        confidence_low=round_half_up((0.3 - accuracy_factor * 0.3) * 100) / 100,
    )


def summarize_tiers(units: List[GeoUnit]) -> TierSummary:
    counts = {tier: 0 for tier in CONFIDENCE_TIERS}
    for u in units:
        counts[u.confidence_tier] = counts.get(u.confidence_tier, 0) + 1
    total = len(units)
    return TierSummary(
        counts=counts,
        total_units=total,
        avg_score=sum(u.score for u in units) / total if total else 0.0,
    )
