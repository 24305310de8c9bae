"""Cell and range reference parsing.

Converts human-readable references such as ``B10`` or ``A1:C5`` into
zero-based row/column coordinates.

Column letters are decoded as a plain base-26 number where ``A`` is 0 and
``Z`` is 25. This is *not* the usual spreadsheet bijective numbering:
``AA`` decodes to ``0 * 26 + 0 = 0``, the same column as ``A``. Existing
region configurations rely on this, so it is kept as-is.
"""

from __future__ import annotations

from dataclasses import dataclass

from sheetwatch.exceptions import ReferenceParseError

_DIGITS = "0123456789"


@dataclass(frozen=True)
class CellRef:
    """A zero-based (row, column) coordinate."""

    row: int
    col: int


@dataclass(frozen=True)
class Span:
    """An inclusive rectangle of cells from ``start`` to ``end``.

    ``parse_range`` does not reorder its endpoints, so a span may be
    inverted (``end`` above or left of ``start``). Inverted spans contain
    no cells.
    """

    start: CellRef
    end: CellRef

    @classmethod
    def single(cls, cell: CellRef) -> Span:
        return cls(start=cell, end=cell)

    @property
    def is_single_cell(self) -> bool:
        return self.start == self.end

    @property
    def is_inverted(self) -> bool:
        return self.start.row > self.end.row or self.start.col > self.end.col

    def rows(self) -> range:
        return range(self.start.row, self.end.row + 1)

    def cols(self) -> range:
        return range(self.start.col, self.end.col + 1)


@dataclass(frozen=True)
class RegionSpans:
    """Parsed form of one tracked region.

    Attributes:
        value: Cells whose values are compared.
        title: Cell holding the region's title (normally a single cell).
        time: Cell holding the region's time label (normally a single cell).
    """

    value: Span
    title: Span
    time: Span


def column_letters_to_index(letters: str) -> int:
    """Decode column letters with ``A`` = 0 in every position.

    Examples:
        A -> 0, B -> 1, Z -> 25, AA -> 0, BA -> 26
    """
    col = 0
    for char in letters:
        if not (char.isascii() and char.isalpha()):
            raise ValueError(f"invalid column letter {char!r}")
        col = col * 26 + (ord(char.upper()) - ord("A"))
    return col


def parse_cell(text: str) -> CellRef:
    """Parse a single cell reference such as ``B10`` into a CellRef.

    The first digit in the text splits it into a column prefix and a row
    suffix. Everything after that digit must form an integer, so ``A1B2``
    is rejected. A reference made only of digits yields column 0.

    Examples:
        A1 -> (0, 0), B10 -> (9, 1), AA1 -> (0, 0)

    Raises:
        ReferenceParseError: If no digit is present, the row suffix is not
            a positive integer, or the prefix contains non-letters.
    """
    for index, char in enumerate(text):
        if char in _DIGITS:
            break
    else:
        raise ReferenceParseError(text, "no digit found")

    prefix, suffix = text[:index], text[index:]

    if not all(c in _DIGITS for c in suffix):
        raise ReferenceParseError(text, f"invalid row number '{suffix}'")
    try:
        row = int(suffix)
    except ValueError as e:
        raise ReferenceParseError(text, f"invalid row number '{suffix}'") from e
    if row < 1:
        raise ReferenceParseError(text, f"row number must be positive, got {row}")

    try:
        col = column_letters_to_index(prefix)
    except ValueError as e:
        raise ReferenceParseError(text, f"invalid column reference: {e}") from e

    return CellRef(row=row - 1, col=col)


def parse_range(text: str) -> Span:
    """Parse ``A1`` or ``A1:B5`` into a Span.

    Endpoints are kept in the order written; no normalisation is applied.

    Raises:
        ReferenceParseError: If either endpoint is malformed or the text
            has more than one ``:``.
    """
    parts = text.split(":")
    if len(parts) == 1:
        return Span.single(parse_cell(parts[0]))
    if len(parts) == 2:
        return Span(start=parse_cell(parts[0]), end=parse_cell(parts[1]))
    raise ReferenceParseError(text, "invalid cell range format")


def parse_region(
    sheet_name: str,
    *,
    value_range: str,
    title_range: str,
    time_range: str,
) -> RegionSpans:
    """Parse the three references that make up a tracked region.

    Texts are parsed in the order value, title, time and the first failure
    is raised, annotated with ``sheet_name``.
    """
    try:
        value = parse_range(value_range)
        title = parse_range(title_range)
        time = parse_range(time_range)
    except ReferenceParseError as e:
        raise e.for_sheet(sheet_name) from e
    return RegionSpans(value=value, title=title, time=time)
