"""
Self-contained generation entry points.

Produces the two distributable artifacts from source features:
- generate_timezone_artifact(): features -> TimezoneDataset artifact
- generate_cache_artifact(): dataset artifact -> sweep -> SpatialCache artifact
- generate_artifacts(): both, in that order

All paths are passed in explicitly; nothing here reads config.py. File I/O
happens strictly before the sweep (reading the dataset artifact back) and
after it (writing the cache); the parallel region never touches disk.

These functions only run in build mode. Ordinary library use loads the
prebuilt artifacts with artifacts.load_timezones / artifacts.load_cache.
"""

import logging
import os
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ned_tz.artifacts import discard_artifact, load_timezones, save_cache, save_timezones
from ned_tz.errors import SpatialCacheBuildError
from ned_tz.models.spatial_cache import SpatialCache
from ned_tz.models.timezone_models import TimezoneDataset
from ned_tz.parallel.cache_orchestrator import ConfigLike, build_spatial_cache
from ned_tz.parallel.cache_worker import CellPredicate
from ned_tz.verification import cross_check_cache

logger = logging.getLogger("NedTz.Generation")

PathLike = Union[str, os.PathLike]
Features = Union[Mapping[str, Any], List[Mapping[str, Any]]]


def generate_timezone_artifact(
    features: Features,
    destination: PathLike,
) -> TimezoneDataset:
    """
    Build the dataset from features and write its artifact.

    Args:
        features: Parsed GeoJSON FeatureCollection (or list of features)
        destination: Artifact file to write

    Returns:
        The dataset that was written

    Raises:
        MalformedInputError: invalid feature (nothing is written)
        ArtifactIOError: the artifact could not be written
    """
    logger.info("🗂️ Generating timezone artifact...")
    dataset = TimezoneDataset.from_features(features)
    save_timezones(dataset, destination)
    return dataset


def generate_cache_artifact(
    timezone_artifact: PathLike,
    destination: PathLike,
    config: ConfigLike = None,
    predicate: Optional[CellPredicate] = None,
    n_jobs: Optional[int] = None,
    verify: bool = False,
) -> SpatialCache:
    """
    Read the dataset artifact back, sweep the grid and write the cache artifact.

    Reading the artifact (rather than taking the in-memory dataset) makes the
    cache depend only on what is actually distributed. The cache is written
    only after the sweep (and the optional cross-check) succeeded; on failure
    any cache already at `destination` is discarded, since it was built from
    a different dataset.

    Args:
        timezone_artifact: Dataset artifact written by generate_timezone_artifact
        destination: Cache artifact file to write
        config: CONFIG dict, AppConfig or None (parallel settings)
        predicate: Optional replacement intersection predicate
        n_jobs: Explicit worker count
        verify: Cross-check the cache against a spatial join before writing

    Returns:
        The cache that was written

    Raises:
        ArtifactIOError / ArtifactDecodeError: dataset artifact unusable
        SpatialCacheBuildError: the sweep or the cross-check failed (nothing
            is written)
        ArtifactIOError: the cache artifact could not be written
    """
    logger.info("🧮 Generating cache artifact...")
    dataset = load_timezones(timezone_artifact)
    try:
        cache = build_spatial_cache(
            dataset, config=config, predicate=predicate, n_jobs=n_jobs
        )
        if verify:
            mismatches = cross_check_cache(dataset, cache)
            if mismatches:
                raise SpatialCacheBuildError(
                    f"Cache disagrees with spatial join in {len(mismatches)} cells"
                )
    except SpatialCacheBuildError:
        if discard_artifact(destination):
            logger.warning(f"   🗑️ Discarded stale cache artifact: {destination}")
        raise

    save_cache(cache, destination)
    return cache


def generate_artifacts(
    features: Features,
    timezone_destination: PathLike,
    cache_destination: PathLike,
    config: ConfigLike = None,
    n_jobs: Optional[int] = None,
    verify: bool = False,
) -> Tuple[TimezoneDataset, SpatialCache, Dict[str, float]]:
    """
    Generate both artifacts.

    Returns:
        (dataset, cache, timings) where timings has "timezones", "cache"
        and "total" durations in seconds
    """
    timings: Dict[str, float] = {}
    total_start = time.perf_counter()

    step_start = time.perf_counter()
    dataset = generate_timezone_artifact(features, timezone_destination)
    timings["timezones"] = time.perf_counter() - step_start

    step_start = time.perf_counter()
    cache = generate_cache_artifact(
        timezone_destination,
        cache_destination,
        config=config,
        n_jobs=n_jobs,
        verify=verify,
    )
    timings["cache"] = time.perf_counter() - step_start

    timings["total"] = time.perf_counter() - total_start
    return dataset, cache, timings


__all__ = [
    "generate_timezone_artifact",
    "generate_cache_artifact",
    "generate_artifacts",
]
