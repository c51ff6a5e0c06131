"""Tests for district normalisation and hashing."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.normalizer import normalize_district, normalize_districts
from engine.hashing import hash_fraction, hash_mod, string_hash


class TestNormalizeDistrict:
    def test_trims_and_uppercases(self):
        assert normalize_district(" ab12 ") == "AB12"

    def test_removes_inner_whitespace(self):
        assert normalize_district("AB 12") == "AB12"
        assert normalize_district("sw1a\t1") == "SW1A1"

    def test_none_maps_to_empty(self):
        assert normalize_district(None) == ""
        assert normalize_district("   ") == ""

    def test_idempotent(self):
        for raw in [" ab12 ", "AB 12", "m1", "EH1-2", ""]:
            once = normalize_district(raw)
            assert normalize_district(once) == once

    def test_punctuation_is_kept(self):
        assert normalize_district("eh1-2") == "EH1-2"

    def test_normalize_districts_dedupes_and_drops_blanks(self):
        result = normalize_districts([" ab12 ", "AB 12", None, "", "m1", "M1"])
        assert result == ["AB12", "M1"]


class TestStringHash:
    def test_empty_string(self):
        assert string_hash("") == 0

    def test_single_character(self):
        assert string_hash("a") == 97
        assert string_hash("A") == 65

    def test_two_characters(self):
        assert string_hash("ab") == 97 * 31 + 98

    def test_matches_known_32bit_value(self):
        assert string_hash("hello") == 99162322

    def test_wraps_to_signed_32bit_then_abs(self):
        # Overflows to exactly -2**31
        assert string_hash("polygenelubricants") == 2 ** 31

    def test_non_negative_and_deterministic(self):
        for s in ["h3_aud_1_123", "audience-42", "£€"]:
            assert string_hash(s) >= 0
            assert string_hash(s) == string_hash(s)

    def test_hash_mod_and_fraction(self):
        assert hash_mod("a") == 97
        assert hash_mod("a", 10) == 7
        assert hash_fraction("a") == 0.97


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
