"""Tests for household estimation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.geography import GeoDistrict
from data.repository import InMemorySignalRepository, RepositoryError
from engine.household import estimate_households, sum_households


def make_geo(district, households=None):
    return GeoDistrict(district, 51.0, -1.0, households)


class FlakyRepository:
    """Fails the first batch lookup, then serves normally."""

    def __init__(self, geo):
        self._geo = {g.district: g for g in geo}
        self.calls = 0

    def fetch_geo_district_batch(self, districts):
        self.calls += 1
        if self.calls == 1:
            raise RepositoryError("timeout")
        return [self._geo[d] for d in districts if d in self._geo]


class TestSumHouseholds:
    def test_real_plus_fallback(self):
        lookup = {"D1": make_geo("D1", 12000), "D2": make_geo("D2", None)}
        estimate = sum_households(["D1", "D2"], lookup)
        assert estimate.estimated_households == 12000 + 2500
        assert estimate.districts_with_data == 1
        assert estimate.districts_fallback == 1

    def test_non_positive_households_use_fallback(self):
        lookup = {"D1": make_geo("D1", 0), "D2": make_geo("D2", -5)}
        assert sum_households(["D1", "D2"], lookup).estimated_households == 5000

    def test_missing_district_uses_fallback(self):
        assert sum_households(["D9"], {}).estimated_households == 2500

    def test_duplicates_and_blanks_collapsed(self):
        lookup = {"D1": make_geo("D1", 1000)}
        estimate = sum_households(["D1", " d1", "", None], lookup)
        assert estimate.estimated_households == 1000

    def test_fallback_configurable(self):
        assert sum_households(["D9"], {}, {"household_fallback": 100}).estimated_households == 100

    def test_empty(self):
        assert sum_households([], {}).estimated_households == 0


class TestEstimateHouseholds:
    def test_against_repository(self):
        repo = InMemorySignalRepository([], [make_geo("D1", 12000), make_geo("D2")])
        estimate = estimate_households(["D1", "D2"], repo)
        assert estimate.estimated_households == 14500
        assert estimate.failed_batches == 0

    def test_batches_are_chunked(self):
        geo = [make_geo(f"D{i}", 100) for i in range(7)]
        repo = InMemorySignalRepository([], geo, max_rows_per_request=3)
        estimate = estimate_households([g.district for g in geo], repo, {"lookup_batch_size": 3})
        assert estimate.estimated_households == 700
        assert estimate.failed_batches == 0

    def test_failed_batch_uses_fallback_and_continues(self):
        geo = [make_geo("D1", 1000), make_geo("D2", 1000), make_geo("D3", 1000), make_geo("D4", 4000)]
        repo = FlakyRepository(geo)
        estimate = estimate_households(["D1", "D2", "D3", "D4"], repo, {"lookup_batch_size": 3})
        assert estimate.failed_batches == 1
        assert estimate.districts_fallback == 3
        assert estimate.estimated_households == 3 * 2500 + 4000
        assert repo.calls == 2

    def test_oversized_batch_rejected_by_row_cap_falls_back(self):
        repo = InMemorySignalRepository([], [make_geo("D1", 9000), make_geo("D2", 9000)], max_rows_per_request=1)
        estimate = estimate_households(["D1", "D2"], repo, {"lookup_batch_size": 2})
        assert estimate.failed_batches == 1
        assert estimate.estimated_households == 5000

    def test_repository_rows_keyed_by_normalised_district(self):
        class RawRepo:
            def fetch_geo_district_batch(self, districts):
                return [GeoDistrict("d 1", households=3000)]

        assert estimate_households(["D1"], RawRepo()).estimated_households == 3000


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
