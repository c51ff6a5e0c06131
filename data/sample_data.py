"""Generate synthetic signal and geography datasets for local runs and demos."""

import json
import os
import random

import pandas as pd

from config.defaults import UK_POPULATION_CENTRES

# Postcode areas matching UK_POPULATION_CENTRES by position
POSTCODE_AREAS = ["SW", "M", "B", "LS", "CF", "NG", "SO", "L", "EH", "NE"]
DISTRICTS_PER_AREA = 12

SAMPLE_PROVIDERS = ["CCS", "Experian", "ONS", "Outra", "TwentyCI"]
SAMPLE_SEGMENTS = {
    "home_movers": {"CCS": "Recent Movers", "Experian": "Movers & Shakers", "Outra": "Likely Movers"},
    "home_renovators": {"CCS": "Home Improvers", "TwentyCI": "Renovation Intent", "Outra": "Planning Applicants"},
    "first_time_buyers": {"ONS": "FTB Households", "Experian": "Starter Homes"},
}


def sample_districts():
    """Ordered district codes, e.g. 'SW1', 'SW2', ..., 'NE12'."""
    return [f"{area}{n}" for area in POSTCODE_AREAS for n in range(1, DISTRICTS_PER_AREA + 1)]


def generate_geography_df(seed: int = 42) -> pd.DataFrame:
    """One reference row per district; roughly one in ten has no household count."""
    rng = random.Random(seed)
    rows = []
    for i, area in enumerate(POSTCODE_AREAS):
        _, lat, lng = UK_POPULATION_CENTRES[i]
        for n in range(1, DISTRICTS_PER_AREA + 1):
            households = rng.choice([None] + [rng.randint(6000, 32000)] * 9)
            rows.append({
                "district": f"{area}{n}",
                "centroid_lat": round(lat + rng.uniform(-0.15, 0.15), 5),
                "centroid_lng": round(lng + rng.uniform(-0.2, 0.2), 5),
                "households": households,
            })
    return pd.DataFrame(rows)


def generate_signals_df(seed: int = 42) -> pd.DataFrame:
    """Provider signal rows for every sample segment.

    Raw district codes are deliberately messy (lower case, inner spaces) so the
    normaliser is exercised end to end.
    """
    rng = random.Random(seed)
    rows = []
    for segment_key, labels in SAMPLE_SEGMENTS.items():
        for provider, label in labels.items():
            coverage = 0.75 if provider == "CCS" else 0.5
            for district in sample_districts():
                if rng.random() > coverage:
                    continue
                has_score = rng.random() < 0.7
                raw = district.lower() if rng.random() < 0.2 else district
                if rng.random() < 0.1:
                    raw = f" {raw[:-1]} {raw[-1]} "
                rows.append({
                    "segment_key": segment_key,
                    "provider": provider,
                    "district": raw,
                    "sectors_count": rng.choice([0, 1, 2, 3, 4, 6]),
                    "has_score": has_score,
                    "district_score_norm": round(rng.random(), 4) if has_score else None,
                    "provider_segment_label": label,
                })
    return pd.DataFrame(rows)


def generate_settings_records() -> dict:
    """Two audiences: one per construction mode."""
    return {
        "aud_validation": {
            "construction_mode": "validation",
            "validation_min_agreement": 1,
            "validation_agreement_mode": "threshold",
            "audience_intent": "home_movers",
            "active_signals": {
                "ownership_confidence_high": {"enabled": True, "base_weight": 0.9, "confidence": 0.8, "spatial_bias": "suburban"},
                "household_size_medium": {"enabled": True, "base_weight": 0.8, "confidence": 0.7, "spatial_bias": "suburban"},
            },
        },
        "aud_extension": {
            "construction_mode": "extension",
            "audience_intent": "home_renovators",
            "active_signals": {
                "planning_approval": {"enabled": True, "base_weight": 0.8, "confidence": 0.7, "spatial_bias": "suburban"},
                "ownership_confidence_high": {"enabled": True, "base_weight": 0.9, "confidence": 0.8, "spatial_bias": "suburban"},
                "property_age_20_plus": {"enabled": False, "base_weight": 0.75, "confidence": 0.65, "spatial_bias": "urban"},
            },
        },
    }


def generate_segment_library_records() -> dict:
    """Segment library with adjacency for the sample segments, plus provider aliases."""
    return {
        "segments": [
            {
                "segment_key": "home_movers", "label": "Home Movers", "provider": "CCS",
                "tags": ["property", "life_event"],
                "adjacency": {"related_segments": ["home_renovators", "first_time_buyers"]},
            },
            {
                "segment_key": "home_renovators", "label": "Home Renovators", "provider": "CCS",
                "description": "Households planning or undertaking renovation work",
                "tags": ["property"],
                "adjacency": {"adjacency_score": 0.82},
            },
            {
                "segment_key": "home_renovators", "label": "Renovation Intent", "provider": "TwentyCI",
                "tags": ["property"],
                "adjacency": {"adjacency_score": 0.82},
            },
            {
                "segment_key": "first_time_buyers", "label": "First Time Buyers", "provider": "ONS",
                "description": "Households recently purchasing their first home",
                "tags": ["property", "life_event"],
                "adjacency": {
                    "adjacency_score": 0.74,
                    "evidence": "Movers and first-time buyers share purchase timing",
                },
            },
        ],
        "aliases": [
            {"canonical_key": "home_renovators", "provider": "Outra", "provider_segment_label": "Planning Applicants"},
            {"canonical_key": "first_time_buyers", "provider": "Experian", "provider_segment_label": "Starter Homes"},
        ],
    }


def generate_sample_csvs(output_dir: str):
    """Write sample CSV files plus settings and segment library JSON to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    generate_signals_df().to_csv(os.path.join(output_dir, "signals.csv"), index=False)
    generate_geography_df().to_csv(os.path.join(output_dir, "geography.csv"), index=False)
    with open(os.path.join(output_dir, "settings.json"), "w", encoding="utf-8") as f:
        json.dump(generate_settings_records(), f, indent=2)
    with open(os.path.join(output_dir, "segment_library.json"), "w", encoding="utf-8") as f:
        json.dump(generate_segment_library_records(), f, indent=2)


def generate_sample_excel(output_dir: str):
    """Write a single two-tab Excel file with signals and geography."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_data.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_signals_df().to_excel(writer, sheet_name="Signals", index=False)
        generate_geography_df().to_excel(writer, sheet_name="Geography", index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csvs(out)
    generate_sample_excel(out)
    print("Sample CSV, JSON and Excel files generated in sample_files/")
