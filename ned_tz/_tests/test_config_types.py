"""
Unit tests for typed configuration.

Run with: python -m pytest ned_tz/_tests/test_config_types.py -v
"""

from pathlib import Path

import pytest


class TestAppConfig:
    """Test AppConfig creation from CONFIG."""

    def test_from_master_config(self):
        """The shipped CONFIG converts cleanly."""
        from ned_tz.config import (
            CACHE_BINCODE_DESTINATION_NAME,
            CONFIG,
            TIMEZONE_BINCODE_DESTINATION_NAME,
        )
        from ned_tz.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
        assert app_config.file_paths.timezone_artifact_name == TIMEZONE_BINCODE_DESTINATION_NAME
        assert app_config.file_paths.cache_artifact_name == CACHE_BINCODE_DESTINATION_NAME
        assert app_config.parallel.backend == "loky"
        assert app_config.get_raw("source")["geojson_url"].endswith(
            "ne_10m_time_zones.geojson"
        )

    def test_artifact_names(self):
        """Artifact file names are fixed."""
        from ned_tz.config import (
            CACHE_BINCODE_DESTINATION_NAME,
            TIMEZONE_BINCODE_DESTINATION_NAME,
        )

        assert TIMEZONE_BINCODE_DESTINATION_NAME == "ne_10m_time_zones.bincode"
        assert CACHE_BINCODE_DESTINATION_NAME == "ne_time_zone_cache.bincode"

    def test_partial_dict_uses_defaults(self):
        """Missing sections fall back to dataclass defaults."""
        from ned_tz.config_types import AppConfig

        app_config = AppConfig.from_dict({"parallel": {"max_workers": 2}})
        assert app_config.parallel.max_workers == 2
        assert app_config.parallel.longitudes_per_task == 10
        assert app_config.quality_control.verify_cache is True

    def test_artifact_paths(self):
        """Artifact paths resolve under the output directory."""
        from ned_tz.config_types import FilePathsConfig

        paths = FilePathsConfig(output_dir="out")
        root = Path("/workspace")
        assert paths.timezone_artifact_path(root) == root / "out" / "ne_10m_time_zones.bincode"
        assert paths.cache_artifact_path(root) == root / "out" / "ne_time_zone_cache.bincode"

    @pytest.mark.parametrize(
        "parallel", [{"longitudes_per_task": 0}, {"max_workers": 0}, {"max_workers": -2}]
    )
    def test_invalid_parallel_settings(self, parallel):
        """Impossible parallel settings are rejected at load time."""
        from ned_tz.config_types import AppConfig

        with pytest.raises(ValueError):
            AppConfig.from_dict({"parallel": parallel})

    def test_frozen(self):
        """Config objects are immutable."""
        from dataclasses import FrozenInstanceError

        from ned_tz.config_types import ParallelConfig

        with pytest.raises(FrozenInstanceError):
            ParallelConfig().enabled = False


class TestEnvironmentOverrides:
    """Test environment variable helpers."""

    def test_env_or_default(self, monkeypatch):
        """Values are converted when set, defaults otherwise."""
        from ned_tz.config import _env_or_default

        monkeypatch.delenv("NEDTZ_TEST_VALUE", raising=False)
        assert _env_or_default("NEDTZ_TEST_VALUE", 3, int) == 3
        monkeypatch.setenv("NEDTZ_TEST_VALUE", "7")
        assert _env_or_default("NEDTZ_TEST_VALUE", 3, int) == 7

    def test_env_bool(self, monkeypatch):
        """Only true/1/yes count as True."""
        from ned_tz.config import _env_bool

        monkeypatch.setenv("NEDTZ_TEST_FLAG", "Yes")
        assert _env_bool("NEDTZ_TEST_FLAG", False) is True
        monkeypatch.setenv("NEDTZ_TEST_FLAG", "off")
        assert _env_bool("NEDTZ_TEST_FLAG", True) is False
        monkeypatch.delenv("NEDTZ_TEST_FLAG")
        assert _env_bool("NEDTZ_TEST_FLAG", True) is True
