"""Tests for extension-mode provider impact."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.geography import GeoDistrict
from models.signal import DistrictSignal
from data.repository import InMemorySignalRepository
from data.sample_data import generate_geography_df, generate_signals_df
from engine.extension_engine import (
    compute_provider_impact,
    get_provider_impact,
    include_segment_keys,
    sort_provider_stats,
)
from models.results import ProviderImpactStats


def make_signal(provider, district, sectors=1, score=None, segment="ANCHOR", label=None):
    return DistrictSignal(segment, provider, district, sectors, score is not None, score, label)


def make_lookup(*districts):
    return {d: GeoDistrict(d, 52.0, -1.0) for d in districts}


def scenario_signals():
    """Anchor A eligible in D1, D2; X supports D2 and the non-eligible D3."""
    return [
        make_signal("A", "D1"),
        make_signal("A", "D2"),
        make_signal("X", "D2", segment="ADJ"),
        make_signal("X", "D3", segment="ADJ"),
    ]


def stats_by_provider(result):
    return {s.provider: s for s in result.provider_stats}


class TestIncludeSegmentKeys:
    def test_anchor_first_without_duplicates(self):
        assert include_segment_keys("A", ["B", "A", "C", "B"]) == ["A", "B", "C"]

    def test_none_included(self):
        assert include_segment_keys("A", None) == ["A"]


class TestComputeProviderImpact:
    def test_scenario_excludes_non_eligible_district(self):
        result = compute_provider_impact(
            scenario_signals(), make_lookup("D1", "D2", "D3"), "ANCHOR", ["ADJ"], anchor_provider="A",
        )
        assert set(result.included_district_ids) == {"D1", "D2"}
        assert result.totals.included_districts == 2
        assert result.totals.base_districts == 2
        assert result.eligible_districts_count == 2

    def test_scenario_provider_stats(self):
        result = compute_provider_impact(
            scenario_signals(), make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A",
        )
        stats = stats_by_provider(result)

        # X is the only non-anchor supporter of D2
        assert stats["X"].districts_supporting == 1
        assert stats["X"].incremental_districts == 1
        assert stats["X"].overlap_districts == 0

        assert stats["A"].districts_supporting == 2
        assert stats["A"].incremental_districts == 1
        assert stats["A"].overlap_districts == 1
        assert stats["A"].overlap_pct == pytest.approx(50.0)

    def test_anchor_sorted_first(self):
        result = compute_provider_impact(
            scenario_signals(), make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A",
        )
        assert [s.provider for s in result.provider_stats] == ["A", "X"]

    def test_overlap_between_non_anchor_providers(self):
        signals = scenario_signals() + [make_signal("Y", "D2", segment="ADJ")]
        result = compute_provider_impact(signals, make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A")
        stats = stats_by_provider(result)
        assert stats["X"].incremental_districts == 0
        assert stats["X"].overlap_districts == 1
        assert stats["X"].overlap_pct == pytest.approx(100.0)
        assert stats["Y"].overlap_districts == 1

    def test_without_anchor_only(self):
        result = compute_provider_impact(
            scenario_signals(), make_lookup("D1", "D2"), "ANCHOR", ["ADJ"],
            include_anchor_only=False, anchor_provider="A",
        )
        assert result.included_district_ids == ["D2"]
        assert result.totals.base_districts == 0
        assert [s.provider for s in result.provider_stats] == ["X"]

    def test_confidence_threshold_filters_support(self):
        signals = [
            make_signal("A", "D1"),
            make_signal("A", "D2"),
            make_signal("X", "D1", segment="ADJ", score=0.3),
            make_signal("X", "D2", segment="ADJ", score=0.8),
        ]
        result = compute_provider_impact(
            signals, make_lookup("D1", "D2"), "ANCHOR", ["ADJ"],
            confidence_threshold=0.5, include_anchor_only=False, anchor_provider="A",
        )
        assert result.included_district_ids == ["D2"]
        assert stats_by_provider(result)["X"].avg_provider_confidence == pytest.approx(0.8)

    def test_eligibility_uses_fixed_base_threshold(self):
        signals = [
            make_signal("A", "D1", score=0.55),
            make_signal("X", "D1", segment="ADJ"),
        ]
        strict = compute_provider_impact(
            signals, make_lookup("D1"), "ANCHOR", ["ADJ"], confidence_threshold=0.9, anchor_provider="A",
        )
        assert strict.eligible_districts_count == 1
        assert strict.included_district_ids == ["D1"]
        assert strict.totals.base_districts == 0

    def test_avg_confidence(self):
        signals = [
            make_signal("A", "D1", score=0.9),
            make_signal("X", "D1", segment="ADJ", score=0.7),
        ]
        result = compute_provider_impact(signals, make_lookup("D1"), "ANCHOR", ["ADJ"], anchor_provider="A")
        district = result.included_districts[0]
        assert district.avg_confidence == pytest.approx(0.8)
        assert district.agreement_count == 2
        assert district.supporting_providers == ["A", "X"]
        assert result.totals.avg_confidence == pytest.approx(0.8)

    def test_unscored_rows_record_half_confidence(self):
        result = compute_provider_impact(scenario_signals(), make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A")
        assert stats_by_provider(result)["A"].avg_provider_confidence == pytest.approx(0.5)

    def test_missing_centroid_counted(self):
        result = compute_provider_impact(scenario_signals(), make_lookup("D1"), "ANCHOR", ["ADJ"], anchor_provider="A")
        assert result.missing_centroids_count == 1
        assert [d.district for d in result.included_districts] == ["D1"]
        assert result.totals.included_districts == 1

    def test_provider_filter(self):
        signals = scenario_signals() + [make_signal("Y", "D1", segment="ADJ")]
        result = compute_provider_impact(
            signals, make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A", providers=["Y"],
        )
        assert "X" not in stats_by_provider(result)
        assert set(stats_by_provider(result)) == {"A", "Y"}

    def test_segment_labels(self):
        signals = [
            make_signal("A", "D1", label="Anchor Label"),
            make_signal("X", "D1", segment="ADJ", label="X Adjacent"),
        ]
        result = compute_provider_impact(signals, make_lookup("D1"), "ANCHOR", ["ADJ"], anchor_provider="A")
        stats = stats_by_provider(result)
        assert stats["A"].provider_label_for_segments == {"ANCHOR": "Anchor Label"}
        assert stats["X"].provider_label_for_segments == {"ADJ": "X Adjacent"}

    def test_display_name_lookup_failure_falls_back_to_key(self):
        def broken(key):
            raise RuntimeError("metadata service down")

        result = compute_provider_impact(
            scenario_signals(), make_lookup("D1", "D2"), "ANCHOR", ["ADJ"],
            anchor_provider="A", display_name_lookup=broken,
        )
        assert stats_by_provider(result)["X"].display_name == "X"

    def test_rows_outside_included_segments_ignored(self):
        signals = scenario_signals() + [make_signal("Z", "D1", segment="OTHER")]
        result = compute_provider_impact(signals, make_lookup("D1", "D2"), "ANCHOR", ["ADJ"], anchor_provider="A")
        assert "Z" not in stats_by_provider(result)

    def test_no_rows(self):
        result = compute_provider_impact([], {}, "ANCHOR", ["ADJ"])
        assert result.provider_stats == []
        assert result.totals.included_districts == 0


class TestSortProviderStats:
    def test_incremental_desc_then_key(self):
        stats = [
            ProviderImpactStats("B", incremental_districts=3),
            ProviderImpactStats("C", incremental_districts=5),
            ProviderImpactStats("A", incremental_districts=3),
            ProviderImpactStats("CCS", incremental_districts=0),
        ]
        ordered = [s.provider for s in sort_provider_stats(stats)]
        assert ordered == ["CCS", "C", "A", "B"]

    def test_anchor_not_pinned_without_anchor_only(self):
        stats = [ProviderImpactStats("CCS", incremental_districts=0), ProviderImpactStats("B", incremental_districts=1)]
        ordered = [s.provider for s in sort_provider_stats(stats, include_anchor_only=False)]
        assert ordered == ["B", "CCS"]


class TestPartitionOnSampleData:
    @pytest.fixture
    def repository(self):
        return InMemorySignalRepository.from_frames(generate_signals_df(), generate_geography_df())

    def test_incremental_plus_overlap_equals_supporting(self, repository):
        for anchor_only in (True, False):
            result = get_provider_impact(
                repository, "home_movers", ["home_renovators", "first_time_buyers"],
                include_anchor_only=anchor_only,
            )
            assert result.provider_stats
            for s in result.provider_stats:
                assert s.incremental_districts + s.overlap_districts == s.districts_supporting

    def test_included_subset_of_eligible_and_households(self, repository):
        result = get_provider_impact(repository, "home_movers", ["home_renovators"])
        assert len(result.included_district_ids) <= result.eligible_districts_count
        assert result.totals.estimated_households > 0
        assert result.provider_stats[0].provider == "CCS"

    def test_repeatable(self, repository):
        first = get_provider_impact(repository, "home_movers", ["home_renovators"])
        second = get_provider_impact(repository, "home_movers", ["home_renovators"])
        assert first.to_dict() == second.to_dict()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
