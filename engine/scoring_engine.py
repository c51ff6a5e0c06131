"""Deterministic geo unit scoring from a weighted signal configuration."""

import math
from typing import List, Optional, Tuple

from config.defaults import (
    SIGNAL_SCALE, INFERRED_SIGNAL_FACTOR, VALIDATION_MODE_FACTOR,
    PLANNING_SUBURBAN_BOOST, AFFLUENCE_BOOST, MAX_SCORE,
    URBAN_CUTOFF, SUBURBAN_CUTOFF,
    SPATIAL_MATCH_EXACT, SPATIAL_MATCH_URBAN_SUBURBAN,
    SPATIAL_MATCH_RURAL_SUBURBAN, SPATIAL_MATCH_URBAN_RURAL,
    TIER_HIGH_BASE, TIER_HIGH_SLOPE, TIER_MEDIUM_BASE, TIER_MEDIUM_SLOPE,
)
from config.signal_catalog import INFERENCE_RULES
from engine.hashing import hash_mod
from models.geo_unit import GeoUnit, ScoringDrivers, ScoringResult, SignalDriver
from models.settings import ConstructionSettings, SignalConfig


def get_spatial_bias(geo_id: str, rule_config: Optional[dict] = None) -> str:
    """Urban / suburban / rural from hash(geo_id) % 100 (30 / 50 / 20 split)."""
    cfg = rule_config or {}
    urban_cutoff = cfg.get("urban_cutoff", URBAN_CUTOFF)
    suburban_cutoff = cfg.get("suburban_cutoff", SUBURBAN_CUTOFF)

    mod = hash_mod(geo_id)
    if mod < urban_cutoff:
        return "urban"
    if mod < suburban_cutoff:
        return "suburban"
    return "rural"


def spatial_match(signal_bias: Optional[str], unit_bias: Optional[str]) -> float:
    if not signal_bias or not unit_bias or signal_bias == unit_bias:
        return SPATIAL_MATCH_EXACT
    pair = {signal_bias, unit_bias}
    if pair == {"urban", "suburban"}:
        return SPATIAL_MATCH_URBAN_SUBURBAN
    if pair == {"rural", "suburban"}:
        return SPATIAL_MATCH_RURAL_SUBURBAN
    return SPATIAL_MATCH_URBAN_RURAL


def _band(signal_id: str) -> str:
    # "property_age_10_20" -> "10_20", "ownership_confidence_high" -> "high"
    return "_".join(signal_id.split("_")[2:])


def property_age_boost(band: str, geo_id: str) -> float:
    """0.8 to 1.2."""
    return 0.8 + hash_mod(geo_id + band) / 100 * 0.4


def ownership_boost(level: str, geo_id: str) -> float:
    mod = hash_mod(geo_id + level)
    if level == "high":
        return 1.0 + mod / 100 * 0.3
    if level == "medium":
        return 0.9 + mod / 100 * 0.2
    return 0.7 + mod / 100 * 0.2


def household_size_boost(size: str, geo_id: str) -> float:
    """0.85 to 1.15."""
    return 0.85 + hash_mod(geo_id + size) / 100 * 0.3


def signal_contribution(
    signal_id: str,
    config: SignalConfig,
    geo_id: str,
    unit_bias: str,
    construction_mode: str,
) -> float:
    """Contribution of one signal to one unit before the inferred-signal factor."""
    # Step 1: Weight scaled to 0-50, then confidence and spatial fit
    contribution = config.base_weight * SIGNAL_SCALE
    contribution *= config.confidence
    contribution *= spatial_match(config.spatial_bias, unit_bias)

    # Step 2: Per-unit deterministic boosts
    if signal_id.startswith("property_age_"):
        contribution *= property_age_boost(_band(signal_id), geo_id)
    if signal_id.startswith("ownership_confidence_"):
        contribution *= ownership_boost(_band(signal_id), geo_id)
    if signal_id == "planning_approval" and unit_bias == "suburban":
        contribution *= PLANNING_SUBURBAN_BOOST
    if signal_id == "affluence_proxy":
        contribution *= AFFLUENCE_BOOST
    if signal_id.startswith("household_size_"):
        contribution *= household_size_boost(_band(signal_id), geo_id)

    # Step 3: Validation scores slightly tighter
    if construction_mode == "validation":
        contribution *= VALIDATION_MODE_FACTOR

    return contribution


def infer_signals(enabled_ids) -> List[Tuple[str, SignalConfig]]:
    """Signals implied by the enabled set. A rule never fires for an enabled target."""
    ids = set(enabled_ids)
    inferred = []
    for target, predicate, weight, confidence, bias in INFERENCE_RULES:
        if target not in ids and predicate(ids):
            inferred.append((target, SignalConfig(
                enabled=True, base_weight=weight, confidence=confidence, spatial_bias=bias,
            )))
    return inferred


def tier_thresholds(scale_accuracy: float, rule_config: Optional[dict] = None) -> Tuple[float, float]:
    """(high, medium) score cut-offs. Lower accuracy relaxes both."""
    cfg = rule_config or {}
    slack = 100 - scale_accuracy
    high = cfg.get("tier_high_base", TIER_HIGH_BASE) - slack * cfg.get("tier_high_slope", TIER_HIGH_SLOPE)
    medium = cfg.get("tier_medium_base", TIER_MEDIUM_BASE) - slack * cfg.get("tier_medium_slope", TIER_MEDIUM_SLOPE)
    return high, medium


def confidence_tier(score: float, scale_accuracy: float, rule_config: Optional[dict] = None) -> str:
    high, medium = tier_thresholds(scale_accuracy, rule_config)
    if score >= high:
        return "high"
    if score >= medium:
        return "medium"
    if score > 0:
        return "low"
    return "discarded"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_geo_unit(
    unit,
    settings: ConstructionSettings,
    scale_accuracy: float,
    rule_config: Optional[dict] = None,
) -> ScoringResult:
    """Score one unit (a GeoUnit or its geo_id).

    Output is fully determined by (geo_id, settings, scale_accuracy).
    """
    geo_id = unit if isinstance(unit, str) else unit.geo_id
    enabled = settings.enabled_signals
    if not enabled:
        return ScoringResult(score=0, confidence_tier="discarded", drivers=ScoringDrivers())

    scale_accuracy = max(0.0, min(100.0, float(scale_accuracy)))
    mode = settings.construction_mode
    unit_bias = get_spatial_bias(geo_id, rule_config)

    total = 0.0
    drivers: List[SignalDriver] = []
    for signal_id, config in enabled:
        contribution = signal_contribution(signal_id, config, geo_id, unit_bias, mode)
        total += contribution
        drivers.append(SignalDriver(signal_id, config.base_weight, contribution))

    if mode == "extension":
        for signal_id, config in infer_signals(sid for sid, _ in enabled):
            contribution = signal_contribution(signal_id, config, geo_id, unit_bias, mode)
            contribution *= INFERRED_SIGNAL_FACTOR
            total += contribution
            drivers.append(SignalDriver(
                signal_id, config.base_weight * INFERRED_SIGNAL_FACTOR, contribution, inferred=True,
            ))

    clamped = min(MAX_SCORE, max(0.0, total))
    adjusted = clamped * (scale_accuracy / 100)

    return ScoringResult(
        score=round_half_up(adjusted),
        confidence_tier=confidence_tier(adjusted, scale_accuracy, rule_config),
        drivers=ScoringDrivers(signals=drivers, total_score=adjusted, spatial_bias_applied=unit_bias),
    )


def score_geo_units(
    units: List[GeoUnit],
    settings: ConstructionSettings,
    scale_accuracy: float,
    rule_config: Optional[dict] = None,
) -> List[GeoUnit]:
    """Scored copies of ``units``; the inputs are left untouched."""
    scored = []
    for unit in units:
        result = score_geo_unit(unit, settings, scale_accuracy, rule_config)
        scored.append(GeoUnit(
            geo_id=unit.geo_id,
            geo_type=unit.geo_type,
            score=result.score,
            confidence_tier=result.confidence_tier,
            drivers=result.drivers,
            geometry=unit.geometry,
            centroid_lat=unit.centroid_lat,
            centroid_lng=unit.centroid_lng,
        ))
    return scored
