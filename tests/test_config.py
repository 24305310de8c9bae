"""Tests for sheetwatch.config module."""

import json
from pathlib import Path

import pytest

from sheetwatch.config import Settings, SheetFilter, TrackedRegion, load_config
from sheetwatch.exceptions import ConfigError

GOLDEN_DIR = Path(__file__).parent / "golden"


def write_config(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_golden_config(self) -> None:
        config = load_config(GOLDEN_DIR / "config.json")

        assert config.spreadsheet_ids.source == "source"
        assert config.spreadsheet_ids.mirror == "mirror"
        assert config.credentials_file == "/root/config/credentials.json"
        assert config.notify_url == "http://notifier.local/changes"
        assert config.regions == [
            TrackedRegion(value_range="A2:C3", title_range="B1", time_range="C1")
        ]
        assert config.sheet_filter.exclude_substrings == ["copy"]
        assert config.sheet_filter.max_index == 4

    def test_title_and_time_mapping(self, tmp_path: Path) -> None:
        """titleRange maps to the title cell and timeRange to the time cell."""
        path = write_config(
            tmp_path,
            {
                "spreadsheetIDs": {"sheet1": "a", "sheet2": "b"},
                "credentialsFile": "c.json",
                "tgServiceURL": "http://x",
                "preDefinedCells": [
                    {"cellRange": "A1:A9", "titleRange": "T1", "timeRange": "M1"}
                ],
            },
        )
        region = load_config(path).regions[0]
        assert region.value_range == "A1:A9"
        assert region.title_range == "T1"
        assert region.time_range == "M1"

    def test_defaults(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            {
                "spreadsheetIDs": {"sheet1": "a", "sheet2": "b"},
                "credentialsFile": "c.json",
                "tgServiceURL": "http://x",
            },
        )
        config = load_config(path)
        assert config.regions == []
        assert config.sheet_filter == SheetFilter()
        assert config.sheet_filter.right_to_left is True

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="file not found"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid JSON"):
            load_config(path)

    def test_missing_required_field(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, {"spreadsheetIDs": {"sheet1": "a", "sheet2": "b"}})
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.path == str(path)

    def test_malformed_reference_loads(self, tmp_path: Path) -> None:
        """Reference syntax is checked per region at diff time, not at load."""
        path = write_config(
            tmp_path,
            {
                "spreadsheetIDs": {"sheet1": "a", "sheet2": "b"},
                "credentialsFile": "c.json",
                "tgServiceURL": "http://x",
                "preDefinedCells": [
                    {"cellRange": "A1:B2:C3", "titleRange": "B1", "timeRange": "C1"}
                ],
            },
        )
        assert load_config(path).regions[0].value_range == "A1:B2:C3"


class TestSheetFilter:
    """Tests for SheetFilter.allows."""

    def test_allows_everything_by_default(self) -> None:
        sheet_filter = SheetFilter()
        assert sheet_filter.allows("anything", 0)
        assert sheet_filter.allows("anything", 100)

    def test_exclusions(self) -> None:
        sheet_filter = SheetFilter(
            exclude_names=["מספרים אישיים"],
            exclude_substrings=["עותק", "שלד"],
            max_index=4,
        )
        assert sheet_filter.allows("שבוע 1", 0)
        assert not sheet_filter.allows("מספרים אישיים", 1)
        assert not sheet_filter.allows("עותק של שבוע 1", 2)
        assert not sheet_filter.allows("שלד", 3)
        assert sheet_filter.allows("שבוע 5", 4)
        assert not sheet_filter.allows("שבוע 6", 5)

    def test_exact_name_only(self) -> None:
        sheet_filter = SheetFilter(exclude_names=["Totals"])
        assert sheet_filter.allows("Totals 2", 0)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CONFIG_PATH", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.config_path == "/root/config/config.json"
        assert not settings.is_production

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFIG_PATH", "/etc/sheetwatch.json")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.config_path == "/etc/sheetwatch.json"
        assert settings.is_production
        assert settings.log_level == "DEBUG"
