"""Tabular views of engine outputs for export consumers. No file IO happens here."""

from typing import List

import pandas as pd

from models.geo_unit import GeoUnit
from models.results import ExtensionResult, ValidationResult


def validation_districts_frame(result: ValidationResult) -> pd.DataFrame:
    """One row per included district with a centroid."""
    rows = [{
        "district": d.district,
        "centroid_lat": d.centroid_lat,
        "centroid_lng": d.centroid_lng,
        "agreement_count": d.agreement_count,
        "avg_confidence": d.avg_confidence,
        "agreeing_providers": ";".join(d.agreeing_providers),
    } for d in result.included_districts]
    return pd.DataFrame(rows, columns=[
        "district", "centroid_lat", "centroid_lng",
        "agreement_count", "avg_confidence", "agreeing_providers",
    ])


def validation_providers_frame(result: ValidationResult) -> pd.DataFrame:
    rows = [{
        "provider": provider,
        "provider_segment_label": stats.provider_segment_label,
        "agreeing_districts": stats.agreeing_districts,
    } for provider, stats in result.provider_stats.items()]
    return pd.DataFrame(rows, columns=["provider", "provider_segment_label", "agreeing_districts"])


def extension_districts_frame(result: ExtensionResult) -> pd.DataFrame:
    rows = [{
        "district": d.district,
        "centroid_lat": d.centroid_lat,
        "centroid_lng": d.centroid_lng,
        "agreement_count": d.agreement_count,
        "avg_confidence": d.avg_confidence,
        "supporting_providers": ";".join(d.supporting_providers),
    } for d in result.included_districts]
    return pd.DataFrame(rows, columns=[
        "district", "centroid_lat", "centroid_lng",
        "agreement_count", "avg_confidence", "supporting_providers",
    ])


def provider_impact_frame(result: ExtensionResult) -> pd.DataFrame:
    """Provider stats in their sorted order."""
    rows = [{
        "provider": s.provider,
        "display_name": s.display_name,
        "districts_supporting": s.districts_supporting,
        "incremental_districts": s.incremental_districts,
        "overlap_districts": s.overlap_districts,
        "overlap_pct": s.overlap_pct,
        "avg_provider_confidence": s.avg_provider_confidence,
    } for s in result.provider_stats]
    return pd.DataFrame(rows, columns=[
        "provider", "display_name", "districts_supporting", "incremental_districts",
        "overlap_districts", "overlap_pct", "avg_provider_confidence",
    ])


def geo_units_frame(units: List[GeoUnit]) -> pd.DataFrame:
    """One row per scored unit; drivers flattened to 'signal:contribution' pairs."""
    rows = []
    for u in units:
        rows.append({
            "geo_id": u.geo_id,
            "geo_type": u.geo_type,
            "score": u.score,
            "confidence_tier": u.confidence_tier,
            "centroid_lat": u.centroid_lat,
            "centroid_lng": u.centroid_lng,
            "spatial_bias": u.drivers.spatial_bias_applied,
            "total_score": u.drivers.total_score,
            "drivers": ";".join(
                f"{s.signal_type}{'*' if s.inferred else ''}:{s.contribution:.4f}"
                for s in u.drivers.signals
            ),
        })
    return pd.DataFrame(rows, columns=[
        "geo_id", "geo_type", "score", "confidence_tier", "centroid_lat", "centroid_lng",
        "spatial_bias", "total_score", "drivers",
    ])
