#!/usr/bin/env python3
"""
Natural Earth Timezone Cache - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for self-contained artifact
generation. Single source of truth for the source dataset location, artifact
file names, parallel sweep settings and post-build verification.

Configuration Sections:
1. source: Where the Natural Earth GeoJSON comes from
2. file_paths: Input/output file locations and artifact names
3. parallel: Longitude-band sweep settings (joblib)
4. quality_control: Post-build cross-check of the cache

The module-level constants below (GEOJSON_ADDRESS and the two artifact
names) are read-only. Build-mode entry points never read them implicitly;
main.py resolves them through AppConfig and passes paths explicitly.

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "NEDTZ_MAX_WORKERS")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("NEDTZ_MAX_WORKERS", -1, int)
        -1  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 SOURCE DATASET CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

# Natural Earth 10m time zones, the dataset the artifacts are generated from
GEOJSON_ADDRESS = "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/master/geojson/ne_10m_time_zones.geojson"
TIMEZONE_BINCODE_DESTINATION_NAME = "ne_10m_time_zones.bincode"
CACHE_BINCODE_DESTINATION_NAME = "ne_time_zone_cache.bincode"


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# NEDTZ_GEOJSON_INPUT        - path to the downloaded ne_10m_time_zones.geojson
# NEDTZ_OUTPUT_DIR           - directory receiving both artifacts
# NEDTZ_LOG_DIR              - directory for run logs
# NEDTZ_PARALLEL             - "true" or "false" (default: "true")
# NEDTZ_MAX_WORKERS          - int, -1 = auto (default: -1)
# NEDTZ_LONGITUDES_PER_TASK  - int, longitude bands per joblib task (default: 10)
# NEDTZ_VERIFY_CACHE         - "true" or "false" (default: "true")
#
# Example usage:
#   export NEDTZ_GEOJSON_INPUT=data/ne_10m_time_zones.geojson
#   export NEDTZ_MAX_WORKERS=4
#   python -m ned_tz.main
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🌍 SOURCE DATASET
    # ═══════════════════════════════════════════════════════════════════════
    "source": {
        # Informational only - fetching is done by the calling tool
        "geojson_url": GEOJSON_ADDRESS,
        # Resolution tag recorded in logs
        "resolution": "10m",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "geojson_input": _env_or_default(
            "NEDTZ_GEOJSON_INPUT", "data/ne_10m_time_zones.geojson"
        ),
        "output_dir": _env_or_default("NEDTZ_OUTPUT_DIR", "assets"),
        "log_dir": _env_or_default("NEDTZ_LOG_DIR", "logs"),
        "timezone_artifact_name": TIMEZONE_BINCODE_DESTINATION_NAME,
        "cache_artifact_name": CACHE_BINCODE_DESTINATION_NAME,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ⚡ PARALLEL GRID SWEEP
    # ═══════════════════════════════════════════════════════════════════════
    "parallel": {
        # Master toggle - set False to use n_jobs=1 (sequential execution)
        "enabled": _env_bool("NEDTZ_PARALLEL", True),
        # Number of worker processes (-1 = auto, based on CPU cores)
        "max_workers": _env_or_default("NEDTZ_MAX_WORKERS", -1, int),
        # Default optimal worker count when auto-detecting
        "optimal_workers_default": 8,
        # Minimum longitudes needed to justify process start-up
        "min_longitudes_for_parallel": 30,
        # Contiguous longitude values handled by one task (360 / 10 = 36 tasks)
        "longitudes_per_task": _env_or_default("NEDTZ_LONGITUDES_PER_TASK", 10, int),
        # Fall back to a full sequential sweep if the process pool breaks
        "fallback_on_error": True,
        # Joblib backend ("loky" = process-based, safe for CPU-bound GEOS work)
        "backend": "loky",
        # Verbosity level for joblib progress output (0-10)
        "verbose": 0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 QUALITY CONTROL
    # ═══════════════════════════════════════════════════════════════════════
    "quality_control": {
        # Recompute every cell with a geopandas spatial join after the sweep
        "verify_cache": _env_bool("NEDTZ_VERIFY_CACHE", True),
        # Log how many cells carry 0..N candidates
        "log_entry_histogram": True,
    },
}


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════
if __name__ == "__main__":
    # Running config.py directly launches the generation run
    import subprocess
    import sys

    sys.exit(subprocess.call([sys.executable, "-m", "ned_tz.main"]))
