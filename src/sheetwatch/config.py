"""Configuration for sheetwatch.

Two layers:

- ``Settings``: process-level settings from environment variables (and an
  optional ``.env`` file) using pydantic-settings.
- ``WatchConfig``: the JSON watch configuration pointed to by
  ``Settings.config_path``. It names the two spreadsheets, the credentials
  file, the notification URL and the tracked regions.

Example watch configuration::

    {
      "spreadsheetIDs": {"sheet1": "<source id>", "sheet2": "<mirror id>"},
      "credentialsFile": "/root/config/credentials.json",
      "tgServiceURL": "http://notifier:8080/changes",
      "preDefinedCells": [
        {"cellRange": "B3:F20", "titleRange": "A1", "timeRange": "B1"}
      ],
      "sheetFilter": {"excludeSubstrings": ["copy"], "maxIndex": 4}
    }

In each ``preDefinedCells`` entry ``titleRange`` is the cell holding the
region title and ``timeRange`` the cell holding its time label.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from sheetwatch.exceptions import ConfigError

DEFAULT_CONFIG_PATH = "/root/config/config.json"


class Settings(BaseSettings):
    """Process settings loaded from environment variables.

    Environment variables:
    - CONFIG_PATH: Path to the JSON watch configuration
    - ENVIRONMENT: "production" enables JSON logs
    - LOG_LEVEL: Minimum log level
    - REQUEST_TIMEOUT: HTTP timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    config_path: str = DEFAULT_CONFIG_PATH
    environment: str = "development"
    log_level: str = "INFO"
    request_timeout: int = 60

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SpreadsheetIds(_CamelModel):
    """The spreadsheet that is watched and the one that mirrors it."""

    source: str = Field(alias="sheet1")
    mirror: str = Field(alias="sheet2")


class TrackedRegion(_CamelModel):
    """One configured region: the cells to compare plus its title/time cells."""

    value_range: str = Field(alias="cellRange")
    title_range: str = Field(alias="titleRange")
    time_range: str = Field(alias="timeRange")


class SheetFilter(_CamelModel):
    """Selects which sheets of the source spreadsheet are processed."""

    exclude_names: list[str] = Field(default_factory=list, alias="excludeNames")
    exclude_substrings: list[str] = Field(
        default_factory=list, alias="excludeSubstrings"
    )
    max_index: int | None = Field(default=None, alias="maxIndex")
    right_to_left: bool = Field(default=True, alias="rightToLeft")

    def allows(self, sheet_name: str, index: int) -> bool:
        """Check whether the sheet at position ``index`` should be processed."""
        if sheet_name in self.exclude_names:
            return False
        if any(part in sheet_name for part in self.exclude_substrings):
            return False
        return self.max_index is None or index <= self.max_index


class WatchConfig(_CamelModel):
    """The JSON watch configuration."""

    spreadsheet_ids: SpreadsheetIds = Field(alias="spreadsheetIDs")
    credentials_file: str = Field(alias="credentialsFile")
    notify_url: str = Field(alias="tgServiceURL")
    regions: list[TrackedRegion] = Field(
        default_factory=list, alias="preDefinedCells"
    )
    sheet_filter: SheetFilter = Field(default_factory=SheetFilter, alias="sheetFilter")


def load_config(path: str | Path) -> WatchConfig:
    """Load and validate the watch configuration from a JSON file.

    Raises:
        ConfigError: If the file is missing, is not JSON, or does not match
            the schema.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(str(path), "file not found") from e
    except json.JSONDecodeError as e:
        raise ConfigError(str(path), f"invalid JSON: {e}") from e

    try:
        return WatchConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(path), str(e)) from e
