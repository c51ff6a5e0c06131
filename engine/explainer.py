"""Generates human-readable explanations for scores, agreement and provider impact."""

from typing import List, Optional

from config.defaults import BASE_UNIVERSE_THRESHOLD
from engine.scoring_engine import tier_thresholds
from models.geo_unit import GeoUnit
from models.results import ProviderImpactStats, ValidationResult


def explain_geo_unit_score(unit: GeoUnit, scale_accuracy: float) -> List[str]:
    """Produce step-by-step explanation for a scored geo unit."""
    steps = []
    drivers = unit.drivers

    if not drivers.signals:
        return [f"{unit.geo_id}: no enabled signals => score 0, discarded"]

    bias = drivers.spatial_bias_applied or "unknown"
    steps.append(f"Step 1 - Spatial profile: {unit.geo_id} is treated as {bias}")

    explicit = [s for s in drivers.signals if not s.inferred]
    inferred = [s for s in drivers.signals if s.inferred]
    parts = ", ".join(f"{s.signal_type} {s.contribution:.1f}" for s in explicit)
    steps.append(f"Step 2 - Signals: {parts}")

    if inferred:
        parts = ", ".join(f"{s.signal_type} {s.contribution:.1f}" for s in inferred)
        steps.append(f"Step 3 - Inferred (40% weight): {parts}")

    raw = sum(s.contribution for s in drivers.signals)
    steps.append(
        f"Step {3 + bool(inferred)} - Total: {raw:.1f} capped at 100, x {scale_accuracy:.0f}% accuracy "
        f"= {drivers.total_score:.1f} => score {unit.score}"
    )

    high, medium = tier_thresholds(scale_accuracy)
    steps.append(
        f"Tier: {unit.confidence_tier} (high >= {high:.1f}, medium >= {medium:.1f})"
    )
    return steps


def explain_validation(
    result: ValidationResult,
    min_agreement: int,
    base_threshold: float = BASE_UNIVERSE_THRESHOLD,
) -> List[str]:
    """Produce step-by-step explanation for a validation result."""
    totals = result.totals
    steps = [
        f"Step 1 - Base universe: {totals.eligible_districts} districts where the anchor "
        f"provider has presence and score >= {base_threshold:g}",
        f"Step 2 - Agreement: {totals.contributing_providers_count} validating providers, "
        f"max agreement {result.max_agreement}",
        f"Step 3 - Included: {totals.districts_included} districts with agreement >= {min_agreement} "
        f"(avg agreement {totals.avg_agreement:.2f})",
        f"Step 4 - Confidence band: {totals.confidence_band}",
        f"Step 5 - Households: {totals.estimated_households:,}",
    ]
    if result.missing_centroid_count:
        steps.append(f"Note: {result.missing_centroid_count} included districts have no centroid")
    return steps


def explain_provider_impact(stats: ProviderImpactStats, anchor_provider: Optional[str] = None) -> str:
    name = stats.display_name or stats.provider
    if anchor_provider and stats.provider == anchor_provider and "anchor" not in name.lower():
        prefix = f"{name} (anchor)"
    else:
        prefix = name
    return (
        f"{prefix}: supports {stats.districts_supporting} districts, "
        f"{stats.incremental_districts} incremental, {stats.overlap_districts} overlap "
        f"({stats.overlap_pct:.0f}%), avg confidence {stats.avg_provider_confidence:.2f}"
    )
