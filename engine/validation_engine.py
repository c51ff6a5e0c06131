"""Validation mode: cross-provider agreement on the anchor segment's base universe."""

from typing import Dict, List, Optional

from loguru import logger

from config.defaults import (
    ANCHOR_PROVIDER, BASE_UNIVERSE_THRESHOLD,
    CONFIDENCE_BAND_HIGH, CONFIDENCE_BAND_MED,
)
from engine.eligibility import (
    compute_eligible_universe, distinct_districts,
    group_by_provider, index_by_district,
)
from engine.household import estimate_households
from models.geography import GeoDistrict
from models.results import (
    ValidatedDistrict, ValidationProviderStats,
    ValidationResult, ValidationTotals,
)
from models.signal import DistrictSignal


def compute_confidence_band(min_agreement: int, provider_count: int, rule_config: Optional[dict] = None) -> str:
    """Low / Med / High from the ratio min_agreement / provider_count."""
    cfg = rule_config or {}
    high = cfg.get("confidence_band_high", CONFIDENCE_BAND_HIGH)
    med = cfg.get("confidence_band_med", CONFIDENCE_BAND_MED)

    if provider_count <= 0:
        return "Low"
    ratio = min_agreement / max(1, provider_count)
    if ratio >= high:
        return "High"
    if ratio >= med:
        return "Med"
    return "Low"


def resolve_min_agreement(agreement_mode: str, min_agreement: int, provider_count: int) -> int:
    """Effective agreement threshold for an agreement mode.

    threshold: the configured value. majority: more than half the providers.
    unanimous: every provider. With no providers, majority/unanimous yield 0,
    which the engine treats as "nothing qualifies".
    """
    if agreement_mode == "majority":
        return provider_count // 2 + 1 if provider_count > 0 else 0
    if agreement_mode == "unanimous":
        return provider_count
    return min_agreement


def select_validating_providers(
    signals_by_provider: Dict[str, List[DistrictSignal]],
    base_provider: str,
    providers: Optional[List[str]] = None,
) -> List[str]:
    """Every provider other than the base, optionally restricted to an allow-list.

    ``providers=None`` means no filter; an empty list filters everything out.
    """
    validating = sorted(p for p in signals_by_provider if p != base_provider)
    if providers is not None:
        allowed = set(providers)
        validating = [p for p in validating if p in allowed]
    return validating


def compute_validation_results(
    signals: List[DistrictSignal],
    geo_lookup: Dict[str, GeoDistrict],
    min_agreement: int,
    base_provider: str = ANCHOR_PROVIDER,
    providers: Optional[List[str]] = None,
    rule_config: Optional[dict] = None,
) -> ValidationResult:
    """Pure agreement computation over one segment's signal rows.

    ``geo_lookup`` maps normalised district -> reference row. Household totals
    are left at zero; see ``get_validation_results`` for the full pipeline.
    """
    cfg = rule_config or {}
    threshold = cfg.get("base_universe_threshold", BASE_UNIVERSE_THRESHOLD)

    if not signals:
        return ValidationResult()

    by_provider = group_by_provider(signals)
    eligible_ids = compute_eligible_universe(by_provider.get(base_provider, []), base_provider, threshold=threshold)
    validating = select_validating_providers(by_provider, base_provider, providers)
    provider_count = len(validating)

    logger.debug(
        "Validation: {} eligible districts, validating providers {}",
        len(eligible_ids), validating,
    )

    district_maps = {p: index_by_district(by_provider.get(p, [])) for p in validating}
    provider_stats = {}
    for p in validating:
        rows = by_provider.get(p, [])
        label = rows[0].provider_segment_label if rows else None
        provider_stats[p] = ValidationProviderStats(agreeing_districts=0, provider_segment_label=label)

    agreement_by_district: Dict[str, int] = {}
    agreeing_by_district: Dict[str, List[str]] = {}
    max_agreement = 0

    for district in eligible_ids:
        agreeing = []
        for p in validating:
            row = district_maps[p].get(district)
            if row is not None and row.passes(threshold):
                agreeing.append(p)
                provider_stats[p].agreeing_districts += 1
        agreement_by_district[district] = len(agreeing)
        agreeing_by_district[district] = agreeing
        max_agreement = max(max_agreement, len(agreeing))

    if min_agreement < 1:
        logger.warning("min_agreement {} < 1; no districts qualify", min_agreement)
        included_ids: List[str] = []
    else:
        included_ids = [d for d in eligible_ids if agreement_by_district[d] >= min_agreement]

    join_missing = sum(1 for d in distinct_districts(signals) if d not in geo_lookup)

    included: List[ValidatedDistrict] = []
    missing_centroids = 0
    for district in included_ids:
        geo = geo_lookup.get(district)
        if geo is None or not geo.has_centroid:
            missing_centroids += 1
            continue
        count = agreement_by_district[district]
        included.append(ValidatedDistrict(
            district=district,
            centroid_lat=float(geo.centroid_lat),
            centroid_lng=float(geo.centroid_lng),
            agreement_count=count,
            avg_confidence=count / provider_count if provider_count > 0 else 0.0,
            agreeing_providers=agreeing_by_district[district],
        ))

    districts_included = len(included)
    avg_agreement = (
        sum(d.agreement_count for d in included) / districts_included
        if districts_included > 0 else 0.0
    )

    if join_missing or missing_centroids:
        logger.debug(
            "Validation join: {} signal districts missing geography, {} included without centroid",
            join_missing, missing_centroids,
        )

    return ValidationResult(
        included_districts=included,
        included_district_ids=included_ids,
        eligible_district_ids=eligible_ids,
        agreement_by_district=agreement_by_district,
        provider_stats=provider_stats,
        max_agreement=max(1, max_agreement),
        totals=ValidationTotals(
            districts_included=districts_included,
            eligible_districts=len(eligible_ids),
            contributing_providers_count=provider_count,
            confidence_band=compute_confidence_band(min_agreement, provider_count, cfg),
            avg_agreement=avg_agreement,
        ),
        join_missing_count=join_missing,
        missing_centroid_count=missing_centroids,
    )


def get_validation_results(
    repository,
    segment_key: str,
    min_agreement: int,
    base_provider: str = ANCHOR_PROVIDER,
    providers: Optional[List[str]] = None,
    rule_config: Optional[dict] = None,
    agreement_mode: str = "threshold",
) -> ValidationResult:
    """Fetch one segment's signals, compute agreement, then estimate households.

    ``min_agreement`` is used as given in threshold mode; majority and
    unanimous modes derive it from the validating providers found in the rows.
    """
    cfg = rule_config or {}
    signals = repository.fetch_signals([segment_key], page_size=cfg.get("page_size"))
    if not signals:
        logger.info("No signal rows for segment {}", segment_key)
        return ValidationResult()

    validating = select_validating_providers(group_by_provider(signals), base_provider, providers)
    effective = resolve_min_agreement(agreement_mode, min_agreement, len(validating))

    geo_lookup = repository.lookup_geo_districts(
        distinct_districts(signals), batch_size=cfg.get("lookup_batch_size"),
    )
    result = compute_validation_results(
        signals, geo_lookup, effective, base_provider, providers, cfg,
    )
    households = estimate_households(result.included_district_ids, repository, cfg)
    result.totals.estimated_households = households.estimated_households

    logger.info(
        "Validation {}: {}/{} districts at agreement >= {} ({} mode, band {}, {} providers)",
        segment_key, result.totals.districts_included, result.totals.eligible_districts,
        effective, agreement_mode, result.totals.confidence_band,
        result.totals.contributing_providers_count,
    )
    return result
