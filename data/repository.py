"""Signal repository adapter and downstream result store.

Engines read signal rows and reference geography through ``SignalRepository``.
Derived outputs are written through ``ResultStore`` with full-replace semantics.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger

from config.settings import get_runtime_settings
from data.loader import parse_geo_districts, parse_signals
from data.pagination import chunked, fetch_all
from engine.normalizer import normalize_district, normalize_districts
from models.geo_unit import GeoUnit
from models.geography import GeoDistrict
from models.results import ExtensionResult, ValidationResult
from models.segment import ProviderSegmentAlias, SegmentLibraryEntry
from models.settings import ConstructionSettings
from models.signal import DistrictSignal


class RepositoryError(Exception):
    """Raised when the backing store cannot serve a request."""


class SignalRepository(ABC):
    """Read-only access to signals, reference geography and settings records."""

    @abstractmethod
    def fetch_signal_page(self, segment_keys: List[str], offset: int, limit: int) -> List[DistrictSignal]:
        """Return at most ``limit`` signal rows for the segments, starting at ``offset``."""

    @abstractmethod
    def fetch_geo_district_batch(self, districts: List[str]) -> List[GeoDistrict]:
        """Return reference rows for one batch of normalised district keys."""

    @abstractmethod
    def get_construction_settings(self, audience_id: str) -> Optional[ConstructionSettings]:
        """Return the audience's settings record, or None when not configured."""

    def get_segment_library(self) -> List[SegmentLibraryEntry]:
        """Segment library rows (one per segment and provider). Empty when not backed."""
        return []

    def get_segment_aliases(self) -> List[ProviderSegmentAlias]:
        return []

    def fetch_signals(self, segment_keys: List[str], page_size: Optional[int] = None) -> List[DistrictSignal]:
        """All signal rows for the segments, read page by page."""
        size = page_size or get_runtime_settings().page_size
        keys = list(dict.fromkeys(segment_keys))
        return fetch_all(lambda offset, limit: self.fetch_signal_page(keys, offset, limit), size)

    def lookup_geo_districts(
        self,
        districts: Iterable[str],
        batch_size: Optional[int] = None,
    ) -> Dict[str, GeoDistrict]:
        """Reference rows keyed by normalised district.

        A failed batch is logged and skipped; its districts are treated as missing.
        """
        size = batch_size or get_runtime_settings().lookup_batch_size
        keys = normalize_districts(districts)
        found: Dict[str, GeoDistrict] = {}
        for i, batch in enumerate(chunked(keys, size)):
            try:
                rows = self.fetch_geo_district_batch(batch)
            except Exception as e:
                logger.warning("Geo district lookup batch {} failed ({} keys): {}", i + 1, len(batch), e)
                continue
            for row in rows:
                found[normalize_district(row.district)] = row
        return found


class InMemorySignalRepository(SignalRepository):
    """Repository over pre-loaded rows, honouring a per-request row cap."""

    def __init__(
        self,
        signals: List[DistrictSignal],
        geo_districts: List[GeoDistrict],
        settings: Optional[Dict[str, ConstructionSettings]] = None,
        max_rows_per_request: Optional[int] = None,
        segment_library: Optional[List[SegmentLibraryEntry]] = None,
        segment_aliases: Optional[List[ProviderSegmentAlias]] = None,
    ):
        self._signals = list(signals)
        self._library = list(segment_library or [])
        self._aliases = list(segment_aliases or [])
        self._geo = {normalize_district(g.district): g for g in geo_districts}
        self._settings = dict(settings or {})
        self._max_rows = max_rows_per_request

    @classmethod
    def from_frames(
        cls,
        signals_df: pd.DataFrame,
        geography_df: pd.DataFrame,
        settings: Optional[Dict[str, ConstructionSettings]] = None,
        max_rows_per_request: Optional[int] = None,
        segment_library: Optional[List[SegmentLibraryEntry]] = None,
        segment_aliases: Optional[List[ProviderSegmentAlias]] = None,
    ) -> "InMemorySignalRepository":
        """Build a repository from signal and geography tables (see data.loader)."""
        return cls(
            parse_signals(signals_df),
            parse_geo_districts(geography_df),
            settings=settings,
            max_rows_per_request=max_rows_per_request,
            segment_library=segment_library,
            segment_aliases=segment_aliases,
        )

    def fetch_signal_page(self, segment_keys: List[str], offset: int, limit: int) -> List[DistrictSignal]:
        if self._max_rows is not None:
            limit = min(limit, self._max_rows)
        wanted = set(segment_keys)
        matching = [s for s in self._signals if s.segment_key in wanted]
        return matching[offset:offset + limit]

    def fetch_geo_district_batch(self, districts: List[str]) -> List[GeoDistrict]:
        if self._max_rows is not None and len(districts) > self._max_rows:
            raise RepositoryError(
                f"Lookup of {len(districts)} keys exceeds row cap {self._max_rows}"
            )
        return [self._geo[d] for d in districts if d in self._geo]

    def get_construction_settings(self, audience_id: str) -> Optional[ConstructionSettings]:
        return self._settings.get(audience_id)

    def get_segment_library(self) -> List[SegmentLibraryEntry]:
        return list(self._library)

    def get_segment_aliases(self) -> List[ProviderSegmentAlias]:
        return list(self._aliases)

    def save_construction_settings(self, audience_id: str, settings: ConstructionSettings):
        self._settings[audience_id] = settings


class ResultStore:
    """Downstream store for derived outputs. Every write replaces the audience's previous output."""

    def __init__(self):
        self._geo_units: Dict[str, List[GeoUnit]] = {}
        self._validation: Dict[str, ValidationResult] = {}
        self._extension: Dict[str, ExtensionResult] = {}

    def replace_geo_units(self, audience_id: str, units: List[GeoUnit]):
        # Deterministic key: geo_id. Later duplicates win.
        by_id = {u.geo_id: copy.deepcopy(u) for u in units}
        self._geo_units[audience_id] = list(by_id.values())
        logger.info("Stored {} geo units for audience {}", len(by_id), audience_id)

    def replace_validation_result(self, audience_id: str, result: ValidationResult):
        self._validation[audience_id] = copy.deepcopy(result)

    def replace_extension_result(self, audience_id: str, result: ExtensionResult):
        self._extension[audience_id] = copy.deepcopy(result)

    def get_geo_units(self, audience_id: str) -> List[GeoUnit]:
        return list(self._geo_units.get(audience_id, []))

    def get_validation_result(self, audience_id: str) -> Optional[ValidationResult]:
        return self._validation.get(audience_id)

    def get_extension_result(self, audience_id: str) -> Optional[ExtensionResult]:
        return self._extension.get(audience_id)
