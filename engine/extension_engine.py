"""Extension mode: incremental reach from behaviourally adjacent segments.

A district enters the extended audience when it sits in the anchor segment's
base universe and either the anchor provider supports the anchor segment there
or any other provider supports one of the included segments there. Provider
stats then split each provider's supported districts into incremental (the
district would drop out without it) and overlap.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from loguru import logger

from config.defaults import (
    ANCHOR_PROVIDER, BASE_UNIVERSE_THRESHOLD, DEFAULT_CONFIDENCE_THRESHOLD,
)
from data.provider_metadata import DisplayNameLookup, resolve_display_names
from engine.eligibility import compute_eligible_universe, distinct_districts
from engine.household import estimate_households
from engine.normalizer import normalize_district
from models.geography import GeoDistrict
from models.results import (
    ExtendedDistrict, ExtensionResult, ExtensionTotals, ProviderImpactStats,
)
from models.signal import DistrictSignal


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def include_segment_keys(anchor_key: str, included_segment_keys: List[str]) -> List[str]:
    """Anchor first, then the included segments, without duplicates."""
    return list(dict.fromkeys([anchor_key] + list(included_segment_keys or [])))


def sort_provider_stats(
    stats: List[ProviderImpactStats],
    anchor_provider: str = ANCHOR_PROVIDER,
    include_anchor_only: bool = True,
) -> List[ProviderImpactStats]:
    """Anchor first (when it is part of the base), then incremental desc, then key."""
    def key(s: ProviderImpactStats):
        anchor_rank = 0 if (include_anchor_only and s.provider == anchor_provider) else 1
        return (anchor_rank, -s.incremental_districts, s.provider)
    return sorted(stats, key=key)


def compute_provider_impact(
    signals: List[DistrictSignal],
    geo_lookup: Dict[str, GeoDistrict],
    anchor_key: str,
    included_segment_keys: List[str],
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    include_anchor_only: bool = True,
    anchor_provider: str = ANCHOR_PROVIDER,
    providers: Optional[List[str]] = None,
    display_name_lookup: Optional[DisplayNameLookup] = None,
    rule_config: Optional[dict] = None,
) -> ExtensionResult:
    """Pure provider-impact computation over the rows of every included segment.

    ``providers`` restricts the non-anchor providers considered; the anchor
    provider is always considered. Household totals are left at zero.
    """
    cfg = rule_config or {}
    base_threshold = cfg.get("base_universe_threshold", BASE_UNIVERSE_THRESHOLD)

    segment_keys = include_segment_keys(anchor_key, included_segment_keys)
    wanted = set(segment_keys)
    allowed = set(providers) if providers is not None else None

    def considered(provider: str) -> bool:
        return provider == anchor_provider or allowed is None or provider in allowed

    rows = [s for s in signals if s.segment_key in wanted and considered(s.provider)]
    if not rows:
        return ExtensionResult()

    eligible_ids = compute_eligible_universe(
        rows, anchor_provider, segment_key=anchor_key, threshold=base_threshold,
    )
    eligible = set(eligible_ids)

    base_districts = set()
    supporters: Dict[str, Dict[str, None]] = defaultdict(dict)   # district -> ordered provider set
    confidences: Dict[str, List[float]] = defaultdict(list)
    provider_districts: Dict[str, Dict[str, None]] = defaultdict(dict)
    provider_confidences: Dict[str, List[float]] = defaultdict(list)
    provider_labels: Dict[str, Dict[str, str]] = defaultdict(dict)
    included: Dict[str, None] = {}

    for s in rows:
        if s.provider_segment_label:
            provider_labels[s.provider].setdefault(s.segment_key, s.provider_segment_label)

        district = normalize_district(s.district)
        if district not in eligible or not s.passes(confidence_threshold):
            continue

        supporters[district][s.provider] = None
        confidences[district].append(s.confidence)
        provider_districts[s.provider][district] = None
        provider_confidences[s.provider].append(s.confidence)

        is_anchor_row = s.provider == anchor_provider and s.segment_key == anchor_key
        if is_anchor_row and include_anchor_only:
            base_districts.add(district)
            included[district] = None
        elif s.provider != anchor_provider:
            included[district] = None

    included_ids = list(included)

    # Providers reported: everyone with rows, the anchor only when it forms the base.
    reported = [
        p for p in dict.fromkeys(s.provider for s in rows)
        if p != anchor_provider or include_anchor_only
    ]
    names = resolve_display_names(reported, display_name_lookup)

    stats: List[ProviderImpactStats] = []
    for provider in reported:
        supported = [d for d in provider_districts.get(provider, {}) if d in included]
        incremental = 0
        for district in supported:
            others = [p for p in supporters[district] if p != provider]
            if not others or (include_anchor_only and others == [anchor_provider]):
                incremental += 1
        overlap = len(supported) - incremental
        stats.append(ProviderImpactStats(
            provider=provider,
            display_name=names[provider],
            provider_label_for_segments=dict(provider_labels.get(provider, {})),
            districts_supporting=len(supported),
            incremental_districts=incremental,
            overlap_districts=overlap,
            overlap_pct=overlap / len(supported) * 100 if supported else 0.0,
            avg_provider_confidence=_mean(provider_confidences.get(provider, [])),
        ))

    extended: List[ExtendedDistrict] = []
    missing_centroids = 0
    for district in included_ids:
        geo = geo_lookup.get(district)
        if geo is None or not geo.has_centroid:
            missing_centroids += 1
            continue
        district_supporters = list(supporters[district])
        extended.append(ExtendedDistrict(
            district=district,
            centroid_lat=float(geo.centroid_lat),
            centroid_lng=float(geo.centroid_lng),
            agreement_count=len(district_supporters),
            supporting_providers=district_supporters,
            avg_confidence=_mean(confidences[district]),
        ))

    logger.debug(
        "Extension {} + {}: {} eligible, {} included, {} missing centroids",
        anchor_key, segment_keys[1:], len(eligible_ids), len(included_ids), missing_centroids,
    )

    return ExtensionResult(
        totals=ExtensionTotals(
            base_districts=len(base_districts),
            included_districts=len(extended),
            avg_confidence=_mean([d.avg_confidence for d in extended]),
        ),
        provider_stats=sort_provider_stats(stats, anchor_provider, include_anchor_only),
        included_districts=extended,
        included_district_ids=included_ids,
        eligible_districts_count=len(eligible_ids),
        missing_centroids_count=missing_centroids,
    )


def get_provider_impact(
    repository,
    anchor_key: str,
    included_segment_keys: List[str],
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    include_anchor_only: bool = True,
    anchor_provider: str = ANCHOR_PROVIDER,
    providers: Optional[List[str]] = None,
    display_name_lookup: Optional[DisplayNameLookup] = None,
    rule_config: Optional[dict] = None,
) -> ExtensionResult:
    """Fetch every included segment once, compute impact, then estimate households."""
    cfg = rule_config or {}
    segment_keys = include_segment_keys(anchor_key, included_segment_keys)
    signals = repository.fetch_signals(segment_keys, page_size=cfg.get("page_size"))
    if not signals:
        logger.info("No signal rows for segments {}", segment_keys)
        return ExtensionResult()

    geo_lookup = repository.lookup_geo_districts(
        distinct_districts(signals), batch_size=cfg.get("lookup_batch_size"),
    )
    result = compute_provider_impact(
        signals, geo_lookup, anchor_key, included_segment_keys,
        confidence_threshold=confidence_threshold,
        include_anchor_only=include_anchor_only,
        anchor_provider=anchor_provider,
        providers=providers,
        display_name_lookup=display_name_lookup,
        rule_config=cfg,
    )
    households = estimate_households(result.included_district_ids, repository, cfg)
    result.totals.estimated_households = households.estimated_households

    logger.info(
        "Extension {}: {} districts included ({} base), {} providers",
        anchor_key, result.totals.included_districts,
        result.totals.base_districts, len(result.provider_stats),
    )
    return result
