"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Typed, frozen views over the CONFIG dictionary in config.py.

Usage:
    from ned_tz.config import CONFIG
    from ned_tz.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Pass explicitly to build-mode entry points
    cache = build_spatial_cache(dataset, config=app_config)

NAVIGATION GUIDE
----------------
# ═════ 1. SOURCE CONFIGURATION
# ═════ 2. FILE PATHS CONFIGURATION
# ═════ 3. PARALLEL PROCESSING CONFIGURATION
# ═════ 4. QUALITY CONTROL CONFIGURATION
# ═════ 5. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any


# ═══════════════════════════════════════════════════════════════════════════════
# 🌍 1. SOURCE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SourceConfig:
    """Where the boundary dataset originates (informational)."""

    geojson_url: str = ""
    resolution: str = "10m"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        """Create SourceConfig from CONFIG['source'] dictionary."""
        return cls(
            geojson_url=d.get("geojson_url", ""),
            resolution=d.get("resolution", "10m"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 📁 2. FILE PATHS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for inputs and outputs.

    Attributes:
        geojson_input: Path to the source GeoJSON FeatureCollection.
        output_dir: Directory receiving the generated artifacts.
        log_dir: Directory for log files.
        timezone_artifact_name: File name of the encoded TimezoneDataset.
        cache_artifact_name: File name of the encoded SpatialCache.
    """

    geojson_input: str = ""
    output_dir: str = "assets"
    log_dir: str = "logs"
    timezone_artifact_name: str = "ne_10m_time_zones.bincode"
    cache_artifact_name: str = "ne_time_zone_cache.bincode"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            geojson_input=d.get("geojson_input", ""),
            output_dir=d.get("output_dir", "assets"),
            log_dir=d.get("log_dir", "logs"),
            timezone_artifact_name=d.get(
                "timezone_artifact_name", "ne_10m_time_zones.bincode"
            ),
            cache_artifact_name=d.get(
                "cache_artifact_name", "ne_time_zone_cache.bincode"
            ),
        )

    def geojson_input_path(self, workspace_root: Path) -> Path:
        """Get source GeoJSON path resolved against workspace root."""
        return workspace_root / self.geojson_input

    def output_dir_path(self, workspace_root: Path) -> Path:
        """Get output directory resolved against workspace root."""
        return workspace_root / self.output_dir

    def log_dir_path(self, workspace_root: Path) -> Path:
        """Get log directory resolved against workspace root."""
        return workspace_root / self.log_dir

    def timezone_artifact_path(self, workspace_root: Path) -> Path:
        return self.output_dir_path(workspace_root) / self.timezone_artifact_name

    def cache_artifact_path(self, workspace_root: Path) -> Path:
        return self.output_dir_path(workspace_root) / self.cache_artifact_name


# ═══════════════════════════════════════════════════════════════════════════════
# ⚡ 3. PARALLEL PROCESSING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParallelConfig:
    """
    Configuration for the parallel longitude-band sweep.

    Attributes:
        enabled: Master toggle for parallel processing.
        max_workers: Number of worker processes (-1 = auto).
        optimal_workers_default: Default worker count when auto-detecting.
        min_longitudes_for_parallel: Minimum longitudes to justify parallel.
        longitudes_per_task: Contiguous longitude values per joblib task.
        fallback_on_error: Re-run sequentially if the process pool breaks.
        backend: Joblib backend ("loky" = process-based).
        verbose: Verbosity level (0-10).
    """

    enabled: bool = True
    max_workers: int = -1
    optimal_workers_default: int = 8
    min_longitudes_for_parallel: int = 30
    longitudes_per_task: int = 10
    fallback_on_error: bool = True
    backend: str = "loky"
    verbose: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParallelConfig":
        """Create ParallelConfig from CONFIG['parallel'] dictionary."""
        return cls(
            enabled=d.get("enabled", True),
            max_workers=d.get("max_workers", -1),
            optimal_workers_default=d.get("optimal_workers_default", 8),
            min_longitudes_for_parallel=d.get("min_longitudes_for_parallel", 30),
            longitudes_per_task=d.get("longitudes_per_task", 10),
            fallback_on_error=d.get("fallback_on_error", True),
            backend=d.get("backend", "loky"),
            verbose=d.get("verbose", 0),
        )

    def __post_init__(self) -> None:
        if self.longitudes_per_task < 1:
            raise ValueError(
                f"longitudes_per_task must be >= 1, got {self.longitudes_per_task}"
            )
        if self.max_workers == 0 or self.max_workers < -1:
            raise ValueError(
                f"max_workers must be -1 (auto) or >= 1, got {self.max_workers}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 🔍 4. QUALITY CONTROL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class QualityControlConfig:
    """Post-build checks run by the generation entry point."""

    verify_cache: bool = True
    log_entry_histogram: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "QualityControlConfig":
        """Create QualityControlConfig from CONFIG['quality_control'] dictionary."""
        return cls(
            verify_cache=d.get("verify_cache", True),
            log_entry_histogram=d.get("log_entry_histogram", True),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 5. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for artifact generation.

    Create it once using AppConfig.from_dict(CONFIG) and pass it to the
    functions that need settings. Nothing in the package reads CONFIG on its
    own.

    Attributes:
        source: Source dataset description.
        file_paths: File path configuration.
        parallel: Parallel sweep configuration.
        quality_control: Post-build verification settings.
    """

    source: SourceConfig = field(default_factory=SourceConfig)
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    quality_control: QualityControlConfig = field(default_factory=QualityControlConfig)

    # Raw config dict (kept for logging the effective settings)
    _raw_config: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py (or any subset).

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            source=SourceConfig.from_dict(config_dict.get("source", {})),
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
            parallel=ParallelConfig.from_dict(config_dict.get("parallel", {})),
            quality_control=QualityControlConfig.from_dict(
                config_dict.get("quality_control", {})
            ),
            _raw_config=config_dict,
        )

    def get_raw(self, key: str, default: Any = None) -> Any:
        """Get a top-level section of the raw CONFIG dictionary."""
        return self._raw_config.get(key, default)


__all__ = [
    "SourceConfig",
    "FilePathsConfig",
    "ParallelConfig",
    "QualityControlConfig",
    "AppConfig",
]
