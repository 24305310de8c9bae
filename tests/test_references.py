"""Tests for sheetwatch.references module."""

import pytest

from sheetwatch.exceptions import ReferenceParseError
from sheetwatch.references import (
    CellRef,
    RegionSpans,
    Span,
    column_letters_to_index,
    parse_cell,
    parse_range,
    parse_region,
)


class TestColumnLetters:
    """Tests for the A=0 base-26 column decoding."""

    def test_single_letters(self) -> None:
        assert column_letters_to_index("A") == 0
        assert column_letters_to_index("B") == 1
        assert column_letters_to_index("Z") == 25

    def test_double_letters_use_zero_based_digits(self) -> None:
        """AA collides with A; BA is the first two-letter column past Z."""
        assert column_letters_to_index("AA") == 0
        assert column_letters_to_index("AB") == 1
        assert column_letters_to_index("BA") == 26
        assert column_letters_to_index("ZZ") == 25 * 26 + 25

    def test_lowercase(self) -> None:
        assert column_letters_to_index("c") == 2

    def test_empty_prefix_is_column_zero(self) -> None:
        assert column_letters_to_index("") == 0

    def test_non_letter_rejected(self) -> None:
        with pytest.raises(ValueError):
            column_letters_to_index("A$")


class TestParseCell:
    """Tests for parse_cell."""

    def test_basic(self) -> None:
        assert parse_cell("A1") == CellRef(row=0, col=0)
        assert parse_cell("B10") == CellRef(row=9, col=1)
        assert parse_cell("z3") == CellRef(row=2, col=25)

    def test_aa_collides_with_a(self) -> None:
        assert parse_cell("AA1") == CellRef(row=0, col=0)
        assert parse_cell("AA1") == parse_cell("A1")

    def test_digits_only_is_column_zero(self) -> None:
        assert parse_cell("7") == CellRef(row=6, col=0)

    def test_empty_string(self) -> None:
        with pytest.raises(ReferenceParseError, match="no digit found"):
            parse_cell("")

    def test_letters_only(self) -> None:
        with pytest.raises(ReferenceParseError, match="no digit found"):
            parse_cell("ABC")

    def test_digit_first(self) -> None:
        """The first digit is the boundary, so '1A' has row suffix '1A'."""
        with pytest.raises(ReferenceParseError, match="invalid row number"):
            parse_cell("1A")

    def test_letters_after_digits(self) -> None:
        """'A1B2' splits into 'A' and '1B2', which is not an integer."""
        with pytest.raises(ReferenceParseError) as exc_info:
            parse_cell("A1B2")
        assert exc_info.value.text == "A1B2"
        assert "1B2" in exc_info.value.reason

    def test_non_letter_prefix(self) -> None:
        with pytest.raises(ReferenceParseError, match="invalid column reference"):
            parse_cell("$A1")

    def test_row_zero(self) -> None:
        with pytest.raises(ReferenceParseError, match="positive"):
            parse_cell("A0")

    def test_oversized_row_number(self) -> None:
        """Rows too long for int() are reported as a parse error."""
        text = "A" + "9" * 5000
        with pytest.raises(ReferenceParseError, match="invalid row number") as exc_info:
            parse_cell(text)
        assert exc_info.value.text == text

    @pytest.mark.parametrize("text", ["ß1", "ı1", "ﬁ1", "Ä1"])
    def test_non_ascii_letters_rejected(self, text: str) -> None:
        with pytest.raises(ReferenceParseError, match="invalid column reference"):
            parse_cell(text)

    def test_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_cell("")


class TestParseRange:
    """Tests for parse_range."""

    def test_range(self) -> None:
        span = parse_range("A1:B2")
        assert span.start == CellRef(0, 0)
        assert span.end == CellRef(1, 1)
        assert not span.is_single_cell

    def test_single_cell(self) -> None:
        span = parse_range("A1")
        assert span.start == span.end == CellRef(0, 0)
        assert span.is_single_cell

    def test_three_parts(self) -> None:
        with pytest.raises(ReferenceParseError, match="invalid cell range format") as exc_info:
            parse_range("A1:B2:C3")
        assert exc_info.value.text == "A1:B2:C3"

    def test_bad_endpoint(self) -> None:
        with pytest.raises(ReferenceParseError):
            parse_range("A1:B")

    def test_inverted_range_is_kept(self) -> None:
        span = parse_range("C5:A1")
        assert span.start == CellRef(4, 2)
        assert span.end == CellRef(0, 0)
        assert span.is_inverted
        assert list(span.rows()) == []
        assert list(span.cols()) == []

    def test_rows_and_cols_inclusive(self) -> None:
        span = parse_range("B2:C4")
        assert list(span.rows()) == [1, 2, 3]
        assert list(span.cols()) == [1, 2]


class TestParseRegion:
    """Tests for parse_region."""

    def test_fields(self) -> None:
        region = parse_region(
            "Sheet1", value_range="A2:C5", title_range="B1", time_range="C1"
        )
        assert region == RegionSpans(
            value=Span(CellRef(1, 0), CellRef(4, 2)),
            title=Span.single(CellRef(0, 1)),
            time=Span.single(CellRef(0, 2)),
        )

    def test_error_annotated_with_sheet(self) -> None:
        with pytest.raises(ReferenceParseError) as exc_info:
            parse_region("Week 3", value_range="A1", title_range="B", time_range="C1")
        error = exc_info.value
        assert error.sheet_name == "Week 3"
        assert error.text == "B"
        assert "Week 3" in str(error)

    def test_first_error_wins(self) -> None:
        """Value is parsed before title and time."""
        with pytest.raises(ReferenceParseError) as exc_info:
            parse_region("S", value_range="A1:B2:C3", title_range="", time_range="")
        assert exc_info.value.text == "A1:B2:C3"

    def test_arguments_are_keyword_only(self) -> None:
        with pytest.raises(TypeError):
            parse_region("S", "A1", "B1", "C1")  # type: ignore[misc]
