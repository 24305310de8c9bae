"""sheetwatch - detect value changes between two Google Sheets.

Compares a source spreadsheet against a mirror copy, sheet by sheet,
reports changed cells inside configured regions and mirrors the source
into the copy.
"""

__version__ = "0.1.0"

from sheetwatch.checker import RunSummary, SheetChecker, SheetResult
from sheetwatch.config import TrackedRegion, WatchConfig, load_config
from sheetwatch.diff import ChangeRecord, compute_diff, diff_region, resolve_regions
from sheetwatch.exceptions import (
    ConfigError,
    CredentialsError,
    NotificationError,
    ReferenceParseError,
    SheetwatchError,
)
from sheetwatch.references import (
    CellRef,
    RegionSpans,
    Span,
    parse_cell,
    parse_range,
    parse_region,
)
from sheetwatch.transport import (
    APIError,
    AuthenticationError,
    GoogleSheetsTransport,
    LocalFileTransport,
    NotFoundError,
    SheetNotFoundError,
    Transport,
    TransportError,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "CellRef",
    "ChangeRecord",
    "ConfigError",
    "CredentialsError",
    "GoogleSheetsTransport",
    "LocalFileTransport",
    "NotFoundError",
    "NotificationError",
    "ReferenceParseError",
    "RegionSpans",
    "RunSummary",
    "SheetChecker",
    "SheetNotFoundError",
    "SheetResult",
    "SheetwatchError",
    "Span",
    "TrackedRegion",
    "Transport",
    "TransportError",
    "WatchConfig",
    "__version__",
    "compute_diff",
    "diff_region",
    "load_config",
    "parse_cell",
    "parse_range",
    "parse_region",
    "resolve_regions",
]
