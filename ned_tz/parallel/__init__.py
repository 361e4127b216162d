"""
Spatial Cache Parallel Processing Module

Builds the 1-degree SpatialCache by sweeping longitude bands in parallel.
- Thin workers computing one band each
- Always uses parallel infrastructure (n_jobs=1 for sequential)
- Geometries travel to workers as WKB, serialized once

Module Structure:
- cache_orchestrator.py: Band layout, dispatch, fan-in
- cache_worker.py: Thin worker for a single longitude band
"""

from ned_tz.parallel.cache_orchestrator import (
    build_spatial_cache,
    should_use_parallel,
    get_effective_worker_count,
    get_parallel_config,
    split_longitude_bands,
    get_band_key,
    serialize_geometries,
    DEFAULT_PARALLEL_CONFIG,
)

from ned_tz.parallel.cache_worker import (
    compute_longitude_entries,
    geometry_intersects_cell,
    worker_process_longitude_band,
)

__all__ = [
    # Orchestrator
    "build_spatial_cache",
    "should_use_parallel",
    "get_effective_worker_count",
    "get_parallel_config",
    "split_longitude_bands",
    "get_band_key",
    "serialize_geometries",
    "DEFAULT_PARALLEL_CONFIG",
    # Worker
    "compute_longitude_entries",
    "geometry_intersects_cell",
    "worker_process_longitude_band",
]
