"""Household totals for a district set, with a fixed per-district fallback."""

from typing import Dict, Iterable, Optional

from loguru import logger

from config.defaults import HOUSEHOLD_FALLBACK
from config.settings import get_runtime_settings
from data.pagination import chunked
from engine.normalizer import normalize_district, normalize_districts
from models.geography import GeoDistrict
from models.results import HouseholdEstimate


def sum_households(
    districts: Iterable[str],
    geo_lookup: Dict[str, GeoDistrict],
    rule_config: Optional[dict] = None,
) -> HouseholdEstimate:
    """Sum real households where positive; fallback constant for every other district."""
    cfg = rule_config or {}
    fallback = cfg.get("household_fallback", HOUSEHOLD_FALLBACK)

    estimate = HouseholdEstimate()
    for d in normalize_districts(districts):
        geo = geo_lookup.get(d)
        if geo is not None and geo.has_households:
            estimate.estimated_households += int(geo.households)
            estimate.districts_with_data += 1
        else:
            estimate.estimated_households += fallback
            estimate.districts_fallback += 1
    return estimate


def estimate_households(
    districts: Iterable[str],
    repository,
    rule_config: Optional[dict] = None,
) -> HouseholdEstimate:
    """Batched household estimate against the repository.

    A failed batch contributes the fallback for each of its districts and the
    estimate continues with the next batch.
    """
    cfg = rule_config or {}
    fallback = cfg.get("household_fallback", HOUSEHOLD_FALLBACK)
    batch_size = cfg.get("lookup_batch_size") or get_runtime_settings().lookup_batch_size

    keys = normalize_districts(districts)
    total = HouseholdEstimate()
    for i, batch in enumerate(chunked(keys, batch_size)):
        try:
            rows = repository.fetch_geo_district_batch(batch)
        except Exception as e:
            logger.warning(
                "Household lookup batch {} failed ({} districts), using fallback {}: {}",
                i + 1, len(batch), fallback, e,
            )
            total.estimated_households += fallback * len(batch)
            total.districts_fallback += len(batch)
            total.failed_batches += 1
            continue

        lookup = {normalize_district(r.district): r for r in rows}
        part = sum_households(batch, lookup, cfg)
        total.estimated_households += part.estimated_households
        total.districts_with_data += part.districts_with_data
        total.districts_fallback += part.districts_fallback

    logger.debug(
        "Households: {} ({} with data, {} fallback, {} failed batches)",
        total.estimated_households, total.districts_with_data,
        total.districts_fallback, total.failed_batches,
    )
    return total
