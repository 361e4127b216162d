#!/usr/bin/env python3
"""
Natural Earth Timezone Cache - Generation Entry Point

Builds both distributable artifacts from the downloaded Natural Earth 10m
time zones GeoJSON:
- <output_dir>/ne_10m_time_zones.bincode  (TimezoneDataset)
- <output_dir>/ne_time_zone_cache.bincode (1-degree SpatialCache)

Usage:
    python -m ned_tz.main

Paths and parallel settings come from config.py (NEDTZ_* environment
overrides apply).
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from ned_tz.config import CONFIG
from ned_tz.config_types import AppConfig
from ned_tz.generation import generate_artifacts
from ned_tz.geojson_loader import load_features_from_file

# Workspace root for resolving config paths (repository root)
WORKSPACE_ROOT = Path(__file__).parent.parent

# ═══════════════════════════════════════════════════════════════════════════
# 🎯 MODULE-LEVEL CONFIG (Single Source of Truth)
# ═══════════════════════════════════════════════════════════════════════════
APP_CONFIG = AppConfig.from_dict(CONFIG)


# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(app_config: AppConfig = APP_CONFIG) -> Tuple[logging.Logger, Path]:
    """Configure logging with file and console handlers.

    Handlers are attached to the "NedTz" logger so that every module logger
    (NedTz.Dataset, NedTz.Parallel.Orchestrator, ...) reaches them.

    Returns:
        Tuple of (logger, run_log_folder)

    Folder naming convention:
        generation_{MMDD}_{HHMM}, e.g. generation_0129_1028
    """
    log_dir = app_config.file_paths.log_dir_path(WORKSPACE_ROOT)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Compact timestamp: MMDD_HHMM
    timestamp = datetime.now().strftime("%m%d_%H%M")

    run_log_folder = log_dir / f"generation_{timestamp}"
    run_log_folder.mkdir(parents=True, exist_ok=True)
    log_path = run_log_folder / "main.log"

    logger = logging.getLogger("NedTz")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    # File handler
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(fh)
    logger.addHandler(ch)

    return logger, run_log_folder


# ═══════════════════════════════════════════════════════════════════════════
# 📊 SUMMARY
# ═══════════════════════════════════════════════════════════════════════════


def _log_summary(
    logger: logging.Logger,
    artifacts: Dict[str, Tuple[Path, int]],
    histogram: Any,
    timings: Dict[str, float],
) -> Dict[str, Dict[str, Any]]:
    """
    Log artifact sizes, the entry histogram and timings.

    Args:
        artifacts: name -> (written path, row count known from the build)
    """
    logger.info("=" * 60)
    logger.info("📊 SUMMARY")
    logger.info("=" * 60)

    descriptions = {}
    for name, (path, rows) in artifacts.items():
        size_bytes = path.stat().st_size
        descriptions[name] = {"rows": rows, "size_bytes": size_bytes}
        logger.info(f"   {name}: {path.name} ({rows} rows, {size_bytes / 1024:.1f} KB)")

    if histogram is not None:
        logger.info("   Candidates per cell:")
        for n_ids, n_cells in enumerate(histogram):
            if n_cells:
                logger.info(f"      {n_ids}: {int(n_cells)} cells")

    logger.info("   Timings:")
    for phase, seconds in timings.items():
        logger.info(f"      {phase}: {seconds:.2f}s")

    return descriptions


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 GENERATION RUN
# ═══════════════════════════════════════════════════════════════════════════


def run_generation(app_config: AppConfig = APP_CONFIG) -> Dict[str, Any]:
    """Run the full generation: load, build both artifacts, verify, summarize."""
    logger, run_log_folder = setup_logging(app_config)
    logger.info("=" * 60)
    logger.info("🌍 Natural Earth Timezone Cache Generation")
    logger.info("=" * 60)
    logger.info(f"   Log folder: {run_log_folder}")
    logger.info(f"   Source: {app_config.source.geojson_url} ({app_config.source.resolution})")

    file_paths = app_config.file_paths
    geojson_path = file_paths.geojson_input_path(WORKSPACE_ROOT)
    timezone_path = file_paths.timezone_artifact_path(WORKSPACE_ROOT)
    cache_path = file_paths.cache_artifact_path(WORKSPACE_ROOT)

    timings: Dict[str, float] = {}
    total_start = time.perf_counter()

    try:
        # Phase 1: Source features
        step_start = time.perf_counter()
        features = load_features_from_file(geojson_path)
        timings["load"] = time.perf_counter() - step_start

        # Phase 2: Both artifacts (the cache is cross-checked before it is written)
        dataset, cache, generation_timings = generate_artifacts(
            features,
            timezone_path,
            cache_path,
            config=app_config,
            verify=app_config.quality_control.verify_cache,
        )
        timings.update(generation_timings)
        timings["total"] = time.perf_counter() - total_start

        histogram = (
            cache.entry_length_histogram()
            if app_config.quality_control.log_entry_histogram
            else None
        )
        descriptions = _log_summary(
            logger,
            {
                "timezones": (timezone_path, len(dataset)),
                "cache": (cache_path, len(cache)),
            },
            histogram,
            timings,
        )
        logger.info("✅ Generation complete")

        return {
            "timezone_artifact": timezone_path,
            "cache_artifact": cache_path,
            "timezones": len(dataset),
            "max_entry_length": cache.max_entry_length(),
            "artifacts": descriptions,
            "timings": timings,
            "log_folder": run_log_folder,
        }

    except Exception as e:
        logger.error(f"❌ Generation failed: {str(e)}")
        import traceback

        logger.error(traceback.format_exc())
        raise


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


if __name__ == "__main__":
    run_generation()
