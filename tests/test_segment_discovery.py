"""Tests for extension segment availability and adjacency suggestions."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import pytest

from models.segment import ProviderSegmentAlias, SegmentLibraryEntry
from models.signal import DistrictSignal
from data.loader import load_segment_library_file, parse_signals
from data.repository import InMemorySignalRepository
from data.sample_data import generate_segment_library_records, generate_signals_df
from engine.segment_discovery import (
    available_segment_keys,
    available_segments,
    get_extension_suggestions,
    match_percent,
    suggest_extensions,
)


def make_rows(segment, count, provider="CCS", start=0):
    return [DistrictSignal(segment, provider, f"D{i}", 1) for i in range(start, start + count)]


def make_entry(key, label=None, provider="CCS", score=None, related=None, **kwargs):
    return SegmentLibraryEntry(
        segment_key=key,
        label=label or key.title(),
        provider=provider,
        related_segments=related or [],
        adjacency_score=score,
        **kwargs,
    )


def make_library():
    return [
        make_entry("anchor", related=["near", "far", "thin"]),
        make_entry("near", "Near", score=0.9, tags=["property"]),
        make_entry("near", "Near (B)", provider="B", score=0.9),
        make_entry("far", "Far", score=0.6, description="Renovation households"),
        make_entry("thin", "Thin", score=0.95),
        make_entry("unrelated", "Unrelated", score=0.99),
    ]


def make_signals():
    return (
        make_rows("near", 5) + make_rows("near", 5, provider="B", start=3)
        + make_rows("far", 4) + make_rows("thin", 1) + make_rows("unrelated", 9)
    )


class TestAvailability:
    def test_counts_distinct_normalised_districts(self):
        signals = [
            DistrictSignal("S", "A", "sw1", 1), DistrictSignal("S", "B", " SW 1 ", 1),
            DistrictSignal("S", "A", "SW2", 1),
        ]
        [seg] = available_segments(signals, min_districts=1)
        assert (seg.segment_key, seg.districts, seg.providers) == ("S", 2, 2)

    def test_min_districts_filter(self):
        assert available_segment_keys(make_signals(), min_districts=4) == ["far", "near", "unrelated"]

    def test_widest_segment_first(self):
        keys = [a.segment_key for a in available_segments(make_signals(), min_districts=4)]
        assert keys == ["unrelated", "near", "far"]

    def test_default_requires_200_districts(self):
        assert available_segment_keys(make_rows("S", 199)) == []
        assert available_segment_keys(make_rows("S", 200)) == ["S"]


class TestMatchPercent:
    def test_uses_adjacency_score(self):
        assert match_percent(0.82, 5) == 82

    def test_rank_fallback(self):
        assert match_percent(1.5, 0) == 92
        assert match_percent(1.5, 3) == 73
        assert match_percent(-0.2, 7) == 49

    def test_rank_fallback_floor(self):
        assert match_percent(2.0, 8) == 44
        assert match_percent(2.0, 20) == 40


class TestGetExtensionSuggestions:
    def test_filters_and_sorts(self):
        suggestions = get_extension_suggestions("anchor", make_library(), make_signals(), min_districts=4)
        assert [s.segment_key for s in suggestions] == ["near", "far"]

    def test_collapses_provider_rows(self):
        near = get_extension_suggestions("anchor", make_library(), make_signals(), min_districts=4)[0]
        assert near.label == "Near"
        assert near.providers == ["CCS", "B"]
        assert near.districts_available_count == 8
        assert near.providers_available_count == 2
        assert near.match_percent == 90

    def test_aliases_add_providers(self):
        aliases = [ProviderSegmentAlias("far", "Outra", "Far Movers"), ProviderSegmentAlias("gone", "X", "x")]
        suggestions = get_extension_suggestions(
            "anchor", make_library(), make_signals(), aliases=aliases, min_districts=4,
        )
        assert suggestions[1].providers == ["CCS", "Outra"]

    def test_tied_scores_sort_by_label(self):
        library = [
            make_entry("anchor", related=["b", "a"]),
            make_entry("b", "Beta", score=0.7),
            make_entry("a", "Alpha", score=0.7005),
        ]
        signals = make_rows("a", 2) + make_rows("b", 2)
        suggestions = get_extension_suggestions("anchor", library, signals, min_districts=1)
        assert [s.label for s in suggestions] == ["Alpha", "Beta"]

    def test_missing_score_defaults_to_half(self):
        library = [make_entry("anchor", related=["x"]), make_entry("x")]
        [x] = get_extension_suggestions("anchor", library, make_rows("x", 1), min_districts=1)
        assert x.adjacency_score == 0.5
        assert x.match_percent == 50
        assert '"anchor"' in x.rationale

    def test_query_tag_and_provider_filters(self):
        library, signals = make_library(), make_signals()
        assert [s.segment_key for s in get_extension_suggestions(
            "anchor", library, signals, q="renovation", min_districts=4)] == ["far"]
        assert [s.segment_key for s in get_extension_suggestions(
            "anchor", library, signals, tags=["property"], min_districts=4)] == ["near"]
        near = get_extension_suggestions("anchor", library, signals, provider="B", min_districts=4)
        assert [s.label for s in near] == ["Near (B)"]

    def test_no_adjacency_gives_nothing(self):
        library = [make_entry("anchor"), make_entry("near", score=0.9)]
        assert get_extension_suggestions("anchor", library, make_signals(), min_districts=1) == []

    def test_inactive_anchor_gives_nothing(self):
        library = [make_entry("anchor", related=["near"], is_active=False), make_entry("near", score=0.9)]
        assert get_extension_suggestions("anchor", library, make_signals(), min_districts=1) == []


class TestSuggestExtensions:
    def test_reads_repository(self):
        repo = InMemorySignalRepository(make_signals(), [], segment_library=make_library())
        suggestions = suggest_extensions(repo, "anchor", min_districts=4)
        assert [s.segment_key for s in suggestions] == ["near", "far"]

    def test_pages_through_row_cap(self):
        repo = InMemorySignalRepository(make_signals(), [], segment_library=make_library(), max_rows_per_request=2)
        suggestions = suggest_extensions(repo, "anchor", min_districts=4, rule_config={"page_size": 3})
        assert suggestions[0].districts_available_count == 8

    def test_unbacked_repository(self):
        assert suggest_extensions(InMemorySignalRepository(make_signals(), []), "anchor", min_districts=1) == []

    def test_sample_library(self, tmp_path):
        path = tmp_path / "segment_library.json"
        path.write_text(json.dumps(generate_segment_library_records()), encoding="utf-8")
        library, aliases = load_segment_library_file(str(path))
        repo = InMemorySignalRepository(
            parse_signals(generate_signals_df()), [], segment_library=library, segment_aliases=aliases,
        )
        suggestions = suggest_extensions(repo, "home_movers", min_districts=50)
        assert [s.segment_key for s in suggestions] == ["home_renovators", "first_time_buyers"]
        assert suggestions[0].providers == ["CCS", "TwentyCI", "Outra"]
        assert suggestions[1].rationale.startswith("Movers and first-time buyers")


class TestLoadSegmentLibrary:
    def test_bare_list(self, tmp_path):
        path = tmp_path / "lib.json"
        path.write_text(json.dumps([{"segment_key": "s", "adjacency": {"related_segments": ["t"]}}]))
        library, aliases = load_segment_library_file(str(path))
        assert library[0].label == "s"
        assert library[0].related_segments == ["t"]
        assert aliases == []

    def test_alias_missing_field(self, tmp_path):
        path = tmp_path / "lib.json"
        path.write_text(json.dumps({"segments": [], "aliases": [{"canonical_key": "s"}]}))
        with pytest.raises(ValueError):
            load_segment_library_file(str(path))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
