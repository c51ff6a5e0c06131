"""Build orchestration: settings -> engine -> households -> result store."""

from typing import List, Optional

from loguru import logger

from config.defaults import DEFAULT_CONFIDENCE_THRESHOLD, DEFAULT_GEO_UNIT_COUNT
from config.settings import get_runtime_settings
from data.repository import ResultStore, SignalRepository
from engine.extension_engine import get_provider_impact
from engine.geo_generator import generate_base_geo_units
from engine.scoring_engine import score_geo_units
from engine.validation_engine import get_validation_results
from models.geo_unit import GeoUnit
from models.results import ExtensionResult, ValidationResult
from models.settings import ConstructionSettings


class SettingsNotConfiguredError(Exception):
    """Raised when an audience has no construction settings record."""

    def __init__(self, audience_id: str):
        super().__init__(f"No construction settings configured for audience '{audience_id}'")
        self.audience_id = audience_id


def load_settings(repository: SignalRepository, audience_id: str) -> ConstructionSettings:
    settings = repository.get_construction_settings(audience_id)
    if settings is None:
        raise SettingsNotConfiguredError(audience_id)
    return settings


def run_validation_build(
    audience_id: str,
    segment_key: str,
    repository: SignalRepository,
    store: Optional[ResultStore] = None,
    providers: Optional[List[str]] = None,
    anchor_provider: Optional[str] = None,
    rule_config: Optional[dict] = None,
) -> ValidationResult:
    """Validate one anchor segment with the audience's agreement settings."""
    settings = load_settings(repository, audience_id)
    result = get_validation_results(
        repository, segment_key, settings.validation_min_agreement,
        base_provider=anchor_provider or get_runtime_settings().anchor_provider,
        providers=providers,
        rule_config=rule_config,
        agreement_mode=settings.validation_agreement_mode,
    )
    logger.info(
        "Validation build {}: {} districts included, band {}",
        audience_id, result.totals.districts_included, result.totals.confidence_band,
    )
    if store is not None:
        store.replace_validation_result(audience_id, result)
    return result


def run_extension_build(
    audience_id: str,
    anchor_key: str,
    included_segment_keys: List[str],
    repository: SignalRepository,
    store: Optional[ResultStore] = None,
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    include_anchor_only: bool = True,
    providers: Optional[List[str]] = None,
    anchor_provider: Optional[str] = None,
    display_name_lookup=None,
    rule_config: Optional[dict] = None,
) -> ExtensionResult:
    load_settings(repository, audience_id)
    result = get_provider_impact(
        repository, anchor_key, included_segment_keys,
        confidence_threshold=confidence_threshold,
        include_anchor_only=include_anchor_only,
        anchor_provider=anchor_provider or get_runtime_settings().anchor_provider,
        providers=providers,
        display_name_lookup=display_name_lookup,
        rule_config=rule_config,
    )
    if store is not None:
        store.replace_extension_result(audience_id, result)
    return result


def rescore_geo_units(
    audience_id: str,
    repository: SignalRepository,
    scale_accuracy: float,
    store: Optional[ResultStore] = None,
    units: Optional[List[GeoUnit]] = None,
    count: int = DEFAULT_GEO_UNIT_COUNT,
    rule_config: Optional[dict] = None,
) -> List[GeoUnit]:
    """Score the audience's units against its current settings and replace the stored set."""
    settings = load_settings(repository, audience_id)
    base_units = units if units is not None else generate_base_geo_units(audience_id, count)
    scored = score_geo_units(base_units, settings, scale_accuracy, rule_config)
    logger.info(
        "Rescored {} geo units for {} at accuracy {} ({} mode)",
        len(scored), audience_id, scale_accuracy, settings.construction_mode,
    )
    if store is not None:
        store.replace_geo_units(audience_id, scored)
    return scored


def run_build(
    audience_id: str,
    anchor_key: str,
    repository: SignalRepository,
    store: Optional[ResultStore] = None,
    included_segment_keys: Optional[List[str]] = None,
    mode: Optional[str] = None,
    **kwargs,
):
    """Dispatch on the audience's construction mode, or on ``mode`` when given."""
    settings = load_settings(repository, audience_id)
    mode = mode or settings.construction_mode
    logger.info("Build {} in {} mode (anchor {})", audience_id, mode, anchor_key)

    if mode == "validation":
        return run_validation_build(audience_id, anchor_key, repository, store, **kwargs)
    if mode == "extension":
        return run_extension_build(
            audience_id, anchor_key, included_segment_keys or [], repository, store, **kwargs,
        )
    raise ValueError(f"Unknown construction mode '{mode}'")
