"""
Orchestrator for the parallel grid sweep that builds the SpatialCache.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Split the 360 longitudes into contiguous bands, dispatch the
bands to joblib workers, and merge the per-band results into one immutable
SpatialCache.

Concurrency model (shard-and-merge):
- Each band is owned by exactly one task, so every cell is written once
- Workers share nothing but the read-only dataset geometries (WKB)
- Results are merged after the join barrier; band completion order does not
  matter because the merged mapping is re-keyed in canonical grid order
- Any failed band aborts the build: there is never a partial cache

Follows the package's parallel patterns:
- should_use_parallel() check for environment validation
- Serialize inputs ONCE before dispatch (avoid per-band overhead)
- joblib Parallel with delayed for process-based parallelism
- Always uses parallel infrastructure (n_jobs=1 for sequential)

Key Functions:
- build_spatial_cache(): Main entry point
- split_longitude_bands(): Contiguous band layout
- _dispatch_longitude_bands(): Parallel job dispatch (also handles n_jobs=1)
- _collect_results(): Fan-in, fail-fast

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional, Tuple, Union

import shapely
from joblib import Parallel, delayed

from ned_tz.config_types import AppConfig
from ned_tz.errors import SpatialCacheBuildError
from ned_tz.models.grid_types import GRID_CELL_COUNT, GridCell, longitudes
from ned_tz.models.spatial_cache import SpatialCache
from ned_tz.models.timezone_models import TimezoneDataset
from ned_tz.parallel.cache_worker import CellPredicate, worker_process_longitude_band

logger = logging.getLogger("NedTz.Parallel.Orchestrator")

ConfigLike = Union[Dict[str, Any], AppConfig, None]


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ CONFIG NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def _normalize_config(config: ConfigLike) -> AppConfig:
    """
    Normalize config to AppConfig for internal use.

    Accepts a raw CONFIG dictionary, an AppConfig object, or None (defaults).
    """
    if config is None:
        return AppConfig()
    if isinstance(config, AppConfig):
        return config
    return AppConfig.from_dict(config)


# ═══════════════════════════════════════════════════════════════════════════
# 📋 DEFAULT PARALLEL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

DEFAULT_PARALLEL_CONFIG: Dict[str, Any] = {
    "enabled": True,
    "max_workers": -1,  # Auto-detect from CPU
    "optimal_workers_default": 8,
    "min_longitudes_for_parallel": 30,
    "longitudes_per_task": 10,
    "fallback_on_error": True,
    "backend": "loky",
    "verbose": 0,
}


def get_parallel_config(config: ConfigLike) -> Dict[str, Any]:
    """
    Extract parallel config with defaults fallback.

    Args:
        config: Main CONFIG dictionary, AppConfig object, or None.

    Returns:
        Merged parallel config dict with defaults applied.
    """
    parallel = _normalize_config(config).parallel

    user_config = {
        "enabled": parallel.enabled,
        "max_workers": parallel.max_workers,
        "optimal_workers_default": parallel.optimal_workers_default,
        "min_longitudes_for_parallel": parallel.min_longitudes_for_parallel,
        "longitudes_per_task": parallel.longitudes_per_task,
        "fallback_on_error": parallel.fallback_on_error,
        "backend": parallel.backend,
        "verbose": parallel.verbose,
    }
    return {**DEFAULT_PARALLEL_CONFIG, **user_config}


# ═══════════════════════════════════════════════════════════════════════════
# 🧮 BAND LAYOUT
# ═══════════════════════════════════════════════════════════════════════════


def split_longitude_bands(longitudes_per_task: int) -> List[List[int]]:
    """
    Split -180..179 into contiguous bands.

    Args:
        longitudes_per_task: Band width (the last band may be narrower)

    Returns:
        List of longitude lists, west to east, covering each longitude once

    Example:
        >>> bands = split_longitude_bands(100)
        >>> [len(b) for b in bands]
        [100, 100, 100, 60]
    """
    if longitudes_per_task < 1:
        raise ValueError(f"longitudes_per_task must be >= 1, got {longitudes_per_task}")
    all_lngs = list(longitudes())
    return [
        all_lngs[start : start + longitudes_per_task]
        for start in range(0, len(all_lngs), longitudes_per_task)
    ]


def get_band_key(band: List[int]) -> str:
    """
    Unique key for a band.

    Example:
        >>> get_band_key([-180, -179, -178])
        'lng-180_-178'
    """
    return f"lng{band[0]}_{band[-1]}"


def serialize_geometries(dataset: TimezoneDataset) -> List[bytes]:
    """WKB of every record geometry, in id order (picklable worker input)."""
    return [shapely.to_wkb(record.geometry) for record in dataset]


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 PARALLEL DECISION LOGIC
# ═══════════════════════════════════════════════════════════════════════════


def should_use_parallel(n_longitudes: int, config: ConfigLike) -> Tuple[bool, str]:
    """
    Determine if parallel processing should be used.

    Args:
        n_longitudes: Number of longitude values to sweep.
        config: Main CONFIG dictionary, AppConfig object, or None.

    Returns:
        Tuple of (should_use: bool, reason: str).
    """
    parallel_config = get_parallel_config(config)

    if not parallel_config.get("enabled", True):
        return False, "Parallel disabled in config"

    min_lngs = parallel_config.get("min_longitudes_for_parallel", 30)
    if n_longitudes < min_lngs:
        return False, f"Only {n_longitudes} longitudes (< {min_lngs} threshold)"

    return True, f"OK ({n_longitudes} longitudes)"


def get_effective_worker_count(n_tasks: int, config: ConfigLike) -> int:
    """
    Calculate worker count based on task count and config.

    Args:
        n_tasks: Number of bands to process.
        config: Main CONFIG dictionary, AppConfig object, or None.

    Returns:
        Number of workers to use (at least 1).
    """
    parallel_config = get_parallel_config(config)
    max_workers = parallel_config.get("max_workers", -1)

    if max_workers == -1:
        cpu_count = os.cpu_count() or 4
        optimal = parallel_config.get("optimal_workers_default", 8)
        max_workers = min(cpu_count, optimal)

    # Don't use more workers than bands
    return max(1, min(max_workers, n_tasks))


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ORCHESTRATOR FUNCTION
# ═══════════════════════════════════════════════════════════════════════════


def build_spatial_cache(
    dataset: TimezoneDataset,
    config: ConfigLike = None,
    predicate: Optional[CellPredicate] = None,
    n_jobs: Optional[int] = None,
) -> SpatialCache:
    """
    Sweep all 64,800 grid cells and build the SpatialCache.

    Every cell's entry is exactly the set of dataset ids whose geometry
    intersects the cell rectangle, in ascending id order. The result does
    not depend on the number of workers.

    Args:
        dataset: Timezone dataset (read-only, shared by all workers)
        config: CONFIG dict, AppConfig or None for defaults
        predicate: Optional module-level (geometry, cell) -> bool replacing
            GEOS intersects; must be picklable for process backends
        n_jobs: Explicit worker count; overrides the config decision

    Returns:
        SpatialCache covering every grid cell

    Raises:
        SpatialCacheBuildError: if any band failed
    """
    start_time = time.time()
    app_config = _normalize_config(config)
    parallel_config = get_parallel_config(app_config)

    bands = split_longitude_bands(parallel_config["longitudes_per_task"])
    n_longitudes = sum(len(band) for band in bands)

    logger.info("=" * 60)
    logger.info("🧮 BUILDING SPATIAL CACHE")
    logger.info("=" * 60)
    logger.info(f"   Timezones: {len(dataset)}")
    logger.info(f"   Cells: {GRID_CELL_COUNT} ({n_longitudes} longitudes)")
    logger.info(f"   Bands: {len(bands)} x {parallel_config['longitudes_per_task']}")

    if n_jobs is not None:
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")
        n_workers = min(n_jobs, len(bands))
        reason = f"explicit n_jobs={n_jobs}"
    else:
        use_parallel, reason = should_use_parallel(n_longitudes, app_config)
        if use_parallel:
            n_workers = get_effective_worker_count(len(bands), app_config)
        else:
            n_workers = 1
            reason = f"{reason} -> using n_jobs=1"

    logger.info(f"   ⚡ Using parallel processing: {reason}")
    results = _dispatch_longitude_bands(
        dataset, bands, n_workers, parallel_config, predicate
    )

    merged = _collect_results(results)
    cache = SpatialCache(merged)

    elapsed = time.time() - start_time
    logger.info("=" * 60)
    logger.info("✅ SPATIAL CACHE COMPLETE")
    logger.info(f"   Non-empty cells: {sum(1 for ids in cache.values() if ids)}")
    logger.info(f"   Max candidates per cell: {cache.max_entry_length()}")
    logger.info(f"   Total time: {elapsed:.1f}s")
    logger.info("=" * 60)

    return cache


# ═══════════════════════════════════════════════════════════════════════════
# ⚡ PARALLEL DISPATCH
# ═══════════════════════════════════════════════════════════════════════════


def _dispatch_longitude_bands(
    dataset: TimezoneDataset,
    bands: List[List[int]],
    n_workers: int,
    parallel_config: Dict[str, Any],
    predicate: Optional[CellPredicate],
) -> List[Dict[str, Any]]:
    """
    Dispatch one joblib task per band.

    Serializes the dataset geometries once before dispatch. If the process
    pool itself breaks, the whole sweep is re-run inline when
    fallback_on_error is set; the sweep is never resumed from partial
    results.

    Returns:
        List of worker result dicts, one per band
    """
    logger.info(f"🚀 Dispatching {len(bands)} bands to {n_workers} workers...")

    logger.info("   📦 Serializing geometries...")
    geometries_wkb = serialize_geometries(dataset)

    try:
        dispatch_start = time.time()
        results_list = list(
            Parallel(
                n_jobs=n_workers,
                backend=parallel_config.get("backend", "loky"),
                verbose=parallel_config.get("verbose", 0),
            )(
                delayed(worker_process_longitude_band)(
                    task_key=get_band_key(band),
                    band=band,
                    geometries_wkb=geometries_wkb,
                    predicate=predicate,
                )
                for band in bands
            )
        )
        dispatch_time = time.time() - dispatch_start
        logger.info(f"   ⏱️ Parallel dispatch completed in {dispatch_time:.1f}s")

    except (ImportError, RuntimeError, OSError) as e:
        logger.warning(f"⚠️ Parallel dispatch failed: {e}")
        if not parallel_config.get("fallback_on_error", True):
            raise
        logger.info("📋 Falling back to inline sequential sweep...")
        results_list = []
        for i, band in enumerate(bands):
            band_key = get_band_key(band)
            logger.info(f"📋 Processing {i + 1}/{len(bands)}: {band_key}")
            results_list.append(
                worker_process_longitude_band(
                    task_key=band_key,
                    band=band,
                    geometries_wkb=geometries_wkb,
                    predicate=predicate,
                )
            )

    return results_list


# ═══════════════════════════════════════════════════════════════════════════
# 📦 RESULT COLLECTION
# ═══════════════════════════════════════════════════════════════════════════


def _collect_results(
    results_list: List[Optional[Dict[str, Any]]],
) -> Dict[GridCell, Tuple[int, ...]]:
    """
    Merge band results into one cell -> ids dict.

    Args:
        results_list: List of result dicts from workers

    Returns:
        Dict mapping every swept cell to its ascending id tuple

    Raises:
        SpatialCacheBuildError: if any band failed or a cell was produced twice
    """
    failures = [
        result
        for result in results_list
        if result is None or not result.get("success")
    ]
    if failures:
        for result in failures:
            if result is None:
                logger.error("❌ A band returned no result")
            else:
                logger.error(f"❌ {result.get('key')}: {result.get('error')}")
        raise SpatialCacheBuildError(
            f"{len(failures)} of {len(results_list)} longitude bands failed; "
            f"no cache was produced"
        )

    merged: Dict[GridCell, Tuple[int, ...]] = {}
    for result in results_list:
        for cell, ids in result["entries"]:
            if cell in merged:
                raise SpatialCacheBuildError(f"Cell {cell} produced by two bands")
            merged[cell] = ids

    logger.info(f"📦 Collected {len(merged)} cells from {len(results_list)} bands")
    return merged


# ═══════════════════════════════════════════════════════════════════════════
# 📦 MODULE EXPORTS
# ═══════════════════════════════════════════════════════════════════════════

__all__ = [
    "build_spatial_cache",
    "should_use_parallel",
    "get_effective_worker_count",
    "DEFAULT_PARALLEL_CONFIG",
    "get_parallel_config",
    "split_longitude_bands",
    "get_band_key",
    "serialize_geometries",
]
