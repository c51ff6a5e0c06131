"""File parsing: CSV/XLSX signal and geography tables into typed model lists."""

import json
import pandas as pd
from typing import Dict, List, Optional, Tuple
from models.geography import GeoDistrict
from models.segment import ProviderSegmentAlias, SegmentLibraryEntry
from models.settings import ConstructionSettings
from models.signal import DistrictSignal
from engine.normalizer import normalize_district

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}


def _optional_str(row, col: str) -> Optional[str]:
    if col in row.index and pd.notna(row[col]):
        value = str(row[col]).strip()
        return value or None
    return None


def _optional_float(row, col: str) -> Optional[float]:
    if col in row.index and pd.notna(row[col]):
        try:
            return float(row[col])
        except (TypeError, ValueError):
            return None
    return None


def parse_bool(value) -> bool:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def parse_households(value) -> Optional[int]:
    """'25,000' -> 25000. Non-positive or unparseable values become None."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if number != number or number <= 0:
        return None
    return int(number)


def parse_signals(df: pd.DataFrame) -> List[DistrictSignal]:
    """Convert a signals DataFrame into DistrictSignal objects.

    Districts are kept raw; normalisation happens at join time.
    """
    signals = []
    for _, row in df.iterrows():
        has_score = parse_bool(row["has_score"]) if "has_score" in df.columns else False
        signals.append(DistrictSignal(
            segment_key=str(row["segment_key"]).strip(),
            provider=str(row["provider"]).strip(),
            district=str(row["district"]) if pd.notna(row["district"]) else "",
            sectors_count=int(row["sectors_count"]) if pd.notna(row["sectors_count"]) else 0,
            has_score=has_score,
            district_score_norm=_optional_float(row, "district_score_norm"),
            provider_segment_label=_optional_str(row, "provider_segment_label"),
        ))
    return signals


def parse_geo_districts(df: pd.DataFrame) -> List[GeoDistrict]:
    """Convert a reference geography DataFrame into GeoDistrict objects keyed by normalised district."""
    districts = []
    for _, row in df.iterrows():
        district = normalize_district(row["district"] if pd.notna(row["district"]) else None)
        if not district:
            continue
        households = parse_households(row["households"]) if "households" in df.columns else None
        districts.append(GeoDistrict(
            district=district,
            centroid_lat=_optional_float(row, "centroid_lat"),
            centroid_lng=_optional_float(row, "centroid_lng"),
            households=households,
        ))
    return districts


def load_file(uploaded_file) -> pd.DataFrame:
    """Load a file (CSV or XLSX) into a DataFrame. Accepts a path or a named file object."""
    name = str(getattr(uploaded_file, "name", uploaded_file)).lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


# Expected sheet names for a combined workbook (case-insensitive matching)
SHEET_ALIASES = {
    "signals": ["signals", "district signals", "geo_district_signals", "provider signals"],
    "geography": ["geography", "geo districts", "geo_districts", "districts", "reference geography"],
}


def _match_sheet(sheet_names: List[str], category: str) -> str:
    """Find a sheet name matching the given category. Returns the matched name or raises."""
    aliases = SHEET_ALIASES[category]
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    raise ValueError(
        f"Could not find a sheet for '{category}'. "
        f"Expected one of: {aliases}. "
        f"Found sheets: {sheet_names}"
    )


def load_workbook(uploaded_file) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load one Excel file with a signals tab and a geography tab.

    Returns (signals_df, geography_df).
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    signals_sheet = _match_sheet(xl.sheet_names, "signals")
    geography_sheet = _match_sheet(xl.sheet_names, "geography")
    return (
        pd.read_excel(xl, sheet_name=signals_sheet),
        pd.read_excel(xl, sheet_name=geography_sheet),
    )


def load_settings_file(path: str) -> Dict[str, ConstructionSettings]:
    """Read a JSON object of audience_id -> settings record."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object keyed by audience id")
    return {audience_id: ConstructionSettings.from_dict(record) for audience_id, record in raw.items()}


def load_segment_library_file(path: str) -> Tuple[List[SegmentLibraryEntry], List[ProviderSegmentAlias]]:
    """Read a JSON segment library: {"segments": [...], "aliases": [...]}.

    A bare JSON list is read as segments with no aliases.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, list):
        raw = {"segments": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object or list of segment records")

    segments = [SegmentLibraryEntry.from_dict(record) for record in raw.get("segments", [])]
    aliases = []
    for record in raw.get("aliases", []):
        try:
            aliases.append(ProviderSegmentAlias(
                record["canonical_key"], record["provider"], record["provider_segment_label"],
            ))
        except KeyError as e:
            raise ValueError(f"{path}: alias record missing {e}: {record}") from e
    return segments, aliases
