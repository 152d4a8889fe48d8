"""Unit tests for point id and spot name canonicalization."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mapmark.validation import (
    fold_width,
    format_point_id,
    format_spot_name,
    is_valid_point_id_format,
    point_id_key,
    spot_name_key,
)

# Characters people actually type into the id field, including IME output.
_ID_ALPHABET = "abzABZ0159０１９ＡａＺ－−‐―- 　"


class TestFoldWidth:
    def test_full_width_letters_and_digits(self) -> None:
        assert fold_width("Ａｂ１２") == "Ab12"

    @pytest.mark.parametrize("hyphen", ["－", "−", "‐", "―"])
    def test_hyphen_variants(self, hyphen: str) -> None:
        assert fold_width(f"A{hyphen}7") == "A-7"

    def test_other_characters_untouched(self) -> None:
        assert fold_width("東京タワー") == "東京タワー"


class TestFormatPointId:
    """Tests for format_point_id."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("a1", "A-01"),
            ("A1", "A-01"),
            ("a-1", "A-01"),
            ("b12", "B-12"),
            ("B-12", "B-12"),
            ("Ａ-７", "A-07"),
            ("ｃ－０３", "C-03"),
            ("  d4  ", "D-04"),
        ],
    )
    def test_canonical_forms(self, value: str, expected: str) -> None:
        assert format_point_id(value) == expected

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_returned_unchanged(self, value: str) -> None:
        assert format_point_id(value) == value

    def test_unrecognized_is_folded_and_uppercased(self) -> None:
        """Test text that is not an id is normalized but left for validation."""
        assert format_point_id("ab123") == "AB123"
        assert not is_valid_point_id_format(format_point_id("ab123"))

    @given(st.text(alphabet=_ID_ALPHABET, max_size=6))
    def test_idempotent(self, value: str) -> None:
        once = format_point_id(value)
        assert format_point_id(once) == once

    @given(
        letter=st.sampled_from("abcxyzABCXYZ"),
        number=st.integers(min_value=0, max_value=99),
        hyphen=st.booleans(),
    )
    def test_letter_and_number_always_valid(self, letter: str, number: int, hyphen: bool) -> None:
        value = f"{letter}{'-' if hyphen else ''}{number}"
        assert is_valid_point_id_format(format_point_id(value))


class TestIsValidPointIdFormat:
    @pytest.mark.parametrize("value", ["A-01", "Z-99", "", "  ", None])
    def test_valid(self, value: str | None) -> None:
        assert is_valid_point_id_format(value)

    @pytest.mark.parametrize("value", ["A01", "a-01", "A-1", "AB-01", "A-001", "東京"])
    def test_invalid(self, value: str) -> None:
        assert not is_valid_point_id_format(value)


class TestKeys:
    def test_point_id_key_matches_spellings(self) -> None:
        assert point_id_key("a1") == point_id_key("Ａ－０１") == "A-01"

    def test_spot_name_key_ignores_width_and_case(self) -> None:
        assert spot_name_key("Ｐark ") == spot_name_key("park")


class TestFormatSpotName:
    def test_trims_and_folds(self) -> None:
        assert format_spot_name("  Ｇａｔｅ１  ") == "Gate1"

    def test_preserves_case(self) -> None:
        assert format_spot_name("Main Gate") == "Main Gate"

    def test_truncates(self) -> None:
        assert format_spot_name("abcdefghijklmno", max_length=10) == "abcdefghij"
