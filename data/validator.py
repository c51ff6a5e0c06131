"""Schema validation for signal and geography tables."""

from dataclasses import dataclass, field
from typing import List
import pandas as pd
from engine.normalizer import normalize_district, normalize_districts


@dataclass
class ValidationReport:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


SIGNAL_REQUIRED_COLUMNS = [
    "segment_key",
    "provider",
    "district",
    "sectors_count",
    "has_score",
]

GEOGRAPHY_REQUIRED_COLUMNS = [
    "district",
    "centroid_lat",
    "centroid_lng",
]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> ValidationReport:
    report = ValidationReport()
    missing = [col for col in required if col not in df.columns]
    if missing:
        report.is_valid = False
        report.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        report.is_valid = False
        report.errors.append(f"{file_label}: File contains no data rows.")
    return report


def validate_signals(df: pd.DataFrame) -> ValidationReport:
    report = _check_required_columns(df, SIGNAL_REQUIRED_COLUMNS, "Signals")
    if not report.is_valid:
        return report

    sectors = pd.to_numeric(df["sectors_count"], errors="coerce")
    if sectors.isna().any():
        report.is_valid = False
        report.errors.append("Signals: sectors_count must be numeric.")
    elif (sectors < 0).any():
        report.is_valid = False
        report.errors.append("Signals: sectors_count cannot be negative.")

    if "district_score_norm" in df.columns:
        scores = pd.to_numeric(df["district_score_norm"], errors="coerce")
        out_of_range = scores.notna() & ((scores < 0) | (scores > 1))
        if out_of_range.any():
            report.is_valid = False
            report.errors.append("Signals: district_score_norm must be between 0 and 1.")
    else:
        report.warnings.append(
            "Signals: no district_score_norm column. Every row is treated as presence-only."
        )

    blank = df["district"].isna() | (df["district"].astype(str).str.strip() == "")
    if blank.any():
        report.warnings.append(f"Signals: {int(blank.sum())} rows have a blank district and will never join.")

    dupes = df.duplicated(subset=["segment_key", "provider", "district"], keep=False)
    if dupes.any():
        report.warnings.append(
            f"Signals: {int(dupes.sum())} rows repeat a (segment, provider, district). The last row wins."
        )

    return report


def validate_geography(df: pd.DataFrame) -> ValidationReport:
    report = _check_required_columns(df, GEOGRAPHY_REQUIRED_COLUMNS, "Geography")
    if not report.is_valid:
        return report

    lat = pd.to_numeric(df["centroid_lat"], errors="coerce")
    lng = pd.to_numeric(df["centroid_lng"], errors="coerce")
    if ((lat < -90) | (lat > 90)).any() or ((lng < -180) | (lng > 180)).any():
        report.is_valid = False
        report.errors.append("Geography: centroid coordinates out of range.")

    missing = int((lat.isna() | lng.isna()).sum())
    if missing:
        report.warnings.append(
            f"Geography: {missing} districts have no centroid and will be excluded from results."
        )

    keys = df["district"].map(lambda d: normalize_district(d) if pd.notna(d) else "")
    dupes = keys.duplicated(keep=False)
    if dupes.any():
        report.is_valid = False
        report.errors.append(f"Geography: Duplicate districts after normalisation: {sorted(keys[dupes].unique().tolist())}")

    if "households" not in df.columns:
        report.warnings.append("Geography: no households column. Every district uses the fallback estimate.")

    return report


def validate_cross_file(signals_df: pd.DataFrame, geography_df: pd.DataFrame) -> ValidationReport:
    """Check that signal districts join to the reference geography."""
    report = ValidationReport()
    signal_districts = set(normalize_districts(signals_df["district"].dropna()))
    geo_districts = set(normalize_districts(geography_df["district"].dropna()))

    unmatched = signal_districts - geo_districts
    if unmatched:
        sample = ", ".join(sorted(unmatched)[:10])
        report.warnings.append(
            f"{len(unmatched)} signal districts have no reference geography (e.g. {sample}). "
            "They cannot appear in results."
        )
    return report
