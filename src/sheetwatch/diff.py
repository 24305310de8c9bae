"""Region-based diff engine.

Compares the current grid of a sheet against its previous copy, restricted
to the configured regions, and produces one ChangeRecord per tracked cell
whose value changed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from sheetwatch.exceptions import ReferenceParseError
from sheetwatch.references import RegionSpans, parse_region

Grid = Sequence[Sequence[Any]]

ABSENT: Any = object()


class RegionConfig(Protocol):
    """The configured texts of one tracked region."""

    @property
    def value_range(self) -> str: ...

    @property
    def title_range(self) -> str: ...

    @property
    def time_range(self) -> str: ...


@dataclass(frozen=True)
class ChangeRecord:
    """A tracked cell whose value differs from the previous grid.

    ``old_value`` is empty when the cell did not exist in the previous grid.
    """

    sheet_name: str
    row: int  # 0-based row index
    col: int  # 0-based column index
    value: str
    time: str
    title: str
    old_value: str

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON object sent to the notification service."""
        return {
            "date": self.sheet_name,
            "cell": {
                "row": self.row,
                "col": self.col,
                "value": self.value,
                "time": self.time,
                "title": self.title,
            },
            "oldValue": self.old_value,
        }


@dataclass(frozen=True)
class SkippedRegion:
    """A configured region that could not be parsed."""

    index: int
    value_range: str
    error: ReferenceParseError


@dataclass
class RegionResolution:
    """Result of parsing every configured region for one sheet."""

    regions: list[RegionSpans] = field(default_factory=list)
    skipped: list[SkippedRegion] = field(default_factory=list)


def cell_text(value: Any) -> str:
    """Stringify a grid value for comparison.

    Missing values become the empty string. Booleans render in lowercase and
    floats holding a whole number render without a fractional part, so a
    JSON ``5.0`` compares equal to ``"5"``. The result is whitespace-trimmed.
    """
    if value is None or value is ABSENT:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value).strip()


def cell_at(grid: Grid, row: int, col: int) -> Any:
    """Return ``grid[row][col]`` or ABSENT when the coordinate is out of bounds.

    Rows may have different lengths; columns past the end of a short row
    are absent.
    """
    if row < 0 or col < 0 or row >= len(grid):
        return ABSENT
    cells = grid[row]
    if col >= len(cells):
        return ABSENT
    return cells[col]


def resolve_regions(
    sheet_name: str, configs: Iterable[RegionConfig]
) -> RegionResolution:
    """Parse configured regions, skipping (and logging) malformed ones."""
    resolution = RegionResolution()
    for index, config in enumerate(configs):
        try:
            region = parse_region(
                sheet_name,
                value_range=config.value_range,
                title_range=config.title_range,
                time_range=config.time_range,
            )
        except ReferenceParseError as e:
            logger.bind(sheet=sheet_name, reference=e.text).warning(
                f"Skipping region #{index} on sheet {sheet_name!r}: {e}"
            )
            resolution.skipped.append(
                SkippedRegion(index=index, value_range=config.value_range, error=e)
            )
            continue
        if region.value.is_inverted:
            logger.debug(
                f"Region #{index} on sheet {sheet_name!r} has an inverted value "
                f"range {config.value_range!r}; it covers no cells"
            )
        resolution.regions.append(region)
    return resolution


def diff_region(
    current: Grid, previous: Grid, sheet_name: str, region: RegionSpans
) -> list[ChangeRecord]:
    """Diff the cells of one parsed region.

    Only coordinates present in ``current`` are considered. A coordinate
    missing from ``previous`` is reported with an empty ``old_value``.
    """
    title = cell_text(cell_at(current, region.title.start.row, region.title.start.col))
    time = cell_text(cell_at(current, region.time.start.row, region.time.start.col))

    # Coordinates outside current never produce records.
    span = region.value
    changes: list[ChangeRecord] = []
    for row in range(span.start.row, min(span.end.row + 1, len(current))):
        cells = current[row]
        for col in range(span.start.col, min(span.end.col + 1, len(cells))):
            value = cell_text(cells[col])

            old_raw = cell_at(previous, row, col)
            if old_raw is ABSENT:
                old_value = ""
            else:
                old_value = cell_text(old_raw)
                if old_value == value:
                    continue

            changes.append(
                ChangeRecord(
                    sheet_name=sheet_name,
                    row=row,
                    col=col,
                    value=value,
                    time=time,
                    title=title,
                    old_value=old_value,
                )
            )
    return changes


def compute_diff(
    current: Grid,
    previous: Grid,
    sheet_name: str,
    regions: Iterable[RegionConfig],
) -> list[ChangeRecord]:
    """Compare ``current`` against ``previous`` within the configured regions.

    Records are returned in region order, then row-major order within each
    region. Malformed regions are skipped; this function never raises for
    bad reference text.

    Example:
        >>> regions = [TrackedRegion(value_range="A1:A2", title_range="B1", time_range="C1")]
        >>> compute_diff([["x", "title1", "t1"], ["y"]], [["x"]], "Sheet1", regions)
        [ChangeRecord(sheet_name='Sheet1', row=1, col=0, value='y', time='t1', title='title1', old_value='')]
    """
    resolution = resolve_regions(sheet_name, regions)
    changes: list[ChangeRecord] = []
    for region in resolution.regions:
        changes.extend(diff_region(current, previous, sheet_name, region))
    return changes
