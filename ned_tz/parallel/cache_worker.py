"""
Worker function for sweeping one band of longitudes.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: For every longitude of one band and every latitude
-90..89, list the ids of the timezone geometries that intersect the unit
cell [lng, lng + 1] x [lat, lat + 1].

Follows the orchestrator/worker split used across this package:
- Accept only primitive/serializable parameters (WKB bytes, ints)
- Return dict with success/error status instead of raising
- No file I/O; results travel back through joblib
- Quiet logging (loky child processes do not inherit handlers)

Intersection semantics are GEOS `intersects`: any shared point, boundary
contact included, counts. No tolerance is added. Records are tested in
ascending id order, so every entry comes out ascending without sorting.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry

from ned_tz.models.grid_types import GridCell, MAX_LAT, MIN_LAT

CellPredicate = Callable[[BaseGeometry, BaseGeometry], bool]

# Shared by every band; messages carry the band key
logger = logging.getLogger("NedTz.Parallel.Worker")


# ═══════════════════════════════════════════════════════════════════════════
# 📐 INTERSECTION PREDICATES
# ═══════════════════════════════════════════════════════════════════════════


def geometry_intersects_cell(geometry: BaseGeometry, cell: BaseGeometry) -> bool:
    """Scalar form of the default predicate (GEOS intersects, edges count)."""
    return bool(geometry.intersects(cell))


def deserialize_geometries(geometries_wkb: Sequence[bytes]) -> np.ndarray:
    """Rebuild and prepare the dataset geometries sent by the orchestrator."""
    geometries = shapely.from_wkb(np.asarray(geometries_wkb, dtype=object))
    shapely.prepare(geometries)
    return geometries


# ═══════════════════════════════════════════════════════════════════════════
# 🧮 CELL SWEEP
# ═══════════════════════════════════════════════════════════════════════════


def compute_longitude_entries(
    lng: int,
    geometries: Sequence[BaseGeometry],
    predicate: Optional[CellPredicate] = None,
) -> List[Tuple[GridCell, Tuple[int, ...]]]:
    """
    Candidate ids of all 180 cells of one longitude.

    Args:
        lng: Cell longitude (west edge), -180..179
        geometries: Dataset geometries; position = timezone id
        predicate: Optional module-level (geometry, cell) -> bool. None uses
            the vectorised GEOS intersects over the whole column.

    Returns:
        [((lng, lat), ids), ...] for lat -90..89, ids ascending
    """
    lats = np.arange(MIN_LAT, MAX_LAT + 1, dtype=np.float64)
    cells = shapely.box(float(lng), lats, float(lng) + 1.0, lats + 1.0)

    column: List[List[int]] = [[] for _ in range(len(lats))]
    for tz_id, geometry in enumerate(geometries):
        if predicate is None:
            hits = shapely.intersects(geometry, cells)
        else:
            hits = np.fromiter(
                (predicate(geometry, cell) for cell in cells),
                dtype=bool,
                count=len(cells),
            )
        for row in np.flatnonzero(hits):
            column[int(row)].append(tz_id)

    return [
        ((lng, MIN_LAT + row), tuple(ids)) for row, ids in enumerate(column)
    ]


def _create_empty_result(task_key: str, band: Sequence[int]) -> Dict[str, Any]:
    """Result skeleton; filled in by worker_process_longitude_band."""
    return {
        "key": task_key,
        "success": False,
        "longitudes": list(band),
        "entries": [],
        "cells": 0,
        "non_empty_cells": 0,
        "duration_seconds": 0.0,
        "error": None,
    }


def worker_process_longitude_band(
    task_key: str,
    band: Sequence[int],
    geometries_wkb: Sequence[bytes],
    predicate: Optional[CellPredicate] = None,
) -> Dict[str, Any]:
    """
    Worker function to sweep one band of longitudes.

    Args:
        task_key: Unique key for this band (e.g., "lng-180_-171")
        band: Contiguous longitude values owned by this task
        geometries_wkb: WKB of every dataset geometry, in id order
        predicate: Optional module-level cell predicate (see
            compute_longitude_entries)

    Returns:
        Dict with keys: key, success, longitudes, entries (list of
        ((lng, lat), ids)), cells, non_empty_cells, duration_seconds, error
    """
    start_time = time.time()
    result = _create_empty_result(task_key, band)

    try:
        geometries = deserialize_geometries(geometries_wkb)

        entries: List[Tuple[GridCell, Tuple[int, ...]]] = []
        for lng in band:
            entries.extend(compute_longitude_entries(lng, geometries, predicate))

        result["entries"] = entries
        result["cells"] = len(entries)
        result["non_empty_cells"] = sum(1 for _, ids in entries if ids)
        result["success"] = True
        logger.debug(
            "✅ %s: %d cells, %d non-empty",
            task_key,
            result["cells"],
            result["non_empty_cells"],
        )
    except Exception as e:
        result["error"] = f"{type(e).__name__}: {e}"
        logger.error("❌ %s failed: %s", task_key, result["error"])

    result["duration_seconds"] = time.time() - start_time
    return result


__all__ = [
    "CellPredicate",
    "geometry_intersects_cell",
    "deserialize_geometries",
    "compute_longitude_entries",
    "worker_process_longitude_band",
]
