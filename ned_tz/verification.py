"""
Independent cross-check of a built SpatialCache.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Recompute every cell's expected candidate ids with a
geopandas spatial join (STRtree-backed, predicate "intersects") and compare
them with the cache produced by the parallel sweep.

The join uses the same GEOS predicate as the sweep but a completely
different traversal (index query instead of column scans), so agreement
means no cell was dropped, duplicated or mis-keyed during fan-out/fan-in.

Key Functions:
- build_grid_geodataframe(): 64,800 unit cells as a GeoDataFrame
- expected_entries(): cell -> ascending ids from the spatial join
- cross_check_cache(): list of mismatching cells (empty = consistent)
"""

import logging
from typing import Any, Dict, List, Tuple

import geopandas as gpd
import numpy as np
import shapely

from ned_tz.models.grid_types import GridCell, iter_grid_cells
from ned_tz.models.spatial_cache import SpatialCache
from ned_tz.models.timezone_models import CRS_WGS84, TimezoneDataset

logger = logging.getLogger("NedTz.Verification")


def build_grid_geodataframe() -> gpd.GeoDataFrame:
    """All grid cells as unit boxes, in canonical order."""
    cells = list(iter_grid_cells())
    lngs = np.array([lng for lng, _ in cells], dtype=np.int64)
    lats = np.array([lat for _, lat in cells], dtype=np.int64)
    geometries = shapely.box(
        lngs.astype(np.float64),
        lats.astype(np.float64),
        lngs + 1.0,
        lats + 1.0,
    )
    return gpd.GeoDataFrame(
        {"lng": lngs, "lat": lats}, geometry=geometries, crs=CRS_WGS84
    )


def expected_entries(dataset: TimezoneDataset) -> Dict[GridCell, Tuple[int, ...]]:
    """
    Expected cache content computed by spatial join.

    Returns:
        Dict mapping every cell to its ascending tuple of intersecting ids
    """
    collected: Dict[GridCell, List[int]] = {cell: [] for cell in iter_grid_cells()}
    if len(dataset) == 0:
        return {cell: () for cell in collected}

    grid = build_grid_geodataframe()
    zones = dataset.to_geodataframe()[["id", "geometry"]]
    joined = gpd.sjoin(grid, zones, how="inner", predicate="intersects")

    for lng, lat, tz_id in zip(joined["lng"], joined["lat"], joined["id"]):
        collected[(int(lng), int(lat))].append(int(tz_id))

    return {cell: tuple(sorted(ids)) for cell, ids in collected.items()}


def cross_check_cache(
    dataset: TimezoneDataset,
    cache: SpatialCache,
) -> List[Dict[str, Any]]:
    """
    Compare a cache against the spatial-join expectation.

    Args:
        dataset: Dataset the cache was built from
        cache: Cache to check

    Returns:
        List of {"cell", "expected", "actual"} dicts; empty when every cell
        matches exactly (same ids, same order)
    """
    logger.info("🔍 Cross-checking spatial cache against spatial join...")
    expected = expected_entries(dataset)

    mismatches = []
    for cell, ids in expected.items():
        actual = tuple(cache.get(cell, ()))
        if actual != ids:
            mismatches.append({"cell": cell, "expected": ids, "actual": actual})

    if mismatches:
        logger.warning(f"   ⚠️ {len(mismatches)} cells differ from the spatial join")
        for mismatch in mismatches[:10]:
            logger.warning(
                f"      {mismatch['cell']}: expected {mismatch['expected']}, "
                f"got {mismatch['actual']}"
            )
    else:
        logger.info(f"   ✅ All {len(expected)} cells match")
    return mismatches


__all__ = ["build_grid_geodataframe", "expected_entries", "cross_check_cache"]
