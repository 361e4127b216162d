"""
One-degree grid cells and the fixed-width candidate id array.

Architectural Overview:
=======================
The Earth is split into 360 x 180 unit cells named by their integer
south-west corner (lng, lat). A cell covers [lng, lng + 1) x [lat, lat + 1).

Each cell's candidate list is stored in the distributed structure as a
CandidateIdArray: TIMEZONE_LIST_LENGTH int16 slots, padded with
INVALID_TIMEZONE_ID. A fixed, small, inline record keeps all 64,800 entries
in one contiguous block (no per-cell indirection) for the runtime query path.

MODIFICATION POINT: TIMEZONE_LIST_LENGTH is chosen from the current dataset.
A denser dataset that puts more candidates in one cell makes
to_candidate_ids() raise CapacityExceededError - raise the constant then.
"""

from typing import Iterator, List, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon, box

from ned_tz.errors import CapacityExceededError


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GRID CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

MIN_LNG = -180
MAX_LNG = 179
MIN_LAT = -90
MAX_LAT = 89

GRID_WIDTH = MAX_LNG - MIN_LNG + 1  # 360
GRID_HEIGHT = MAX_LAT - MIN_LAT + 1  # 180
GRID_CELL_COUNT = GRID_WIDTH * GRID_HEIGHT  # 64,800

TIMEZONE_LIST_LENGTH = 5
INVALID_TIMEZONE_ID = -1

# int16 storage
MAX_TIMEZONE_ID = int(np.iinfo(np.int16).max)

GridCell = Tuple[int, int]
CacheEntry = List[int]


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ GRID CELLS
# ═══════════════════════════════════════════════════════════════════════════


def longitudes() -> range:
    """All cell longitudes, west to east."""
    return range(MIN_LNG, MAX_LNG + 1)


def latitudes() -> range:
    """All cell latitudes, south to north."""
    return range(MIN_LAT, MAX_LAT + 1)


def iter_grid_cells() -> Iterator[GridCell]:
    """Yield every cell in canonical (longitude-major) order."""
    for lng in longitudes():
        for lat in latitudes():
            yield (lng, lat)


def is_valid_cell(cell: Tuple[int, int]) -> bool:
    """True if `cell` is an integer (lng, lat) pair inside the grid."""
    if not isinstance(cell, tuple) or len(cell) != 2:
        return False
    lng, lat = cell
    if type(lng) is not int or type(lat) is not int:
        return False
    return MIN_LNG <= lng <= MAX_LNG and MIN_LAT <= lat <= MAX_LAT


def cell_rectangle(lng: int, lat: int) -> Polygon:
    """Unit rectangle of the cell whose south-west corner is (lng, lat)."""
    return box(float(lng), float(lat), float(lng) + 1.0, float(lat) + 1.0)


def cell_index(cell: GridCell) -> Tuple[int, int]:
    """Zero-based (column, row) of a cell in a (360, 180) table."""
    lng, lat = cell
    return lng - MIN_LNG, lat - MIN_LAT


# ═══════════════════════════════════════════════════════════════════════════
# 🔢 CANDIDATE ID ARRAY
# ═══════════════════════════════════════════════════════════════════════════


def to_candidate_ids(entry: Sequence[int]) -> np.ndarray:
    """
    Encode a cache entry as a fixed-width, sentinel-padded int16 array.

    Args:
        entry: Ascending timezone ids of one cell

    Returns:
        Array of TIMEZONE_LIST_LENGTH int16 values; the first len(entry)
        slots hold the entry in order, the rest are INVALID_TIMEZONE_ID.

    Raises:
        CapacityExceededError: if the entry has more than
            TIMEZONE_LIST_LENGTH ids, or an id does not fit in int16.

    Example:
        >>> to_candidate_ids([3, 17]).tolist()
        [3, 17, -1, -1, -1]
    """
    if len(entry) > TIMEZONE_LIST_LENGTH:
        raise CapacityExceededError(
            f"Cannot encode {len(entry)} candidate ids into an array of "
            f"TIMEZONE_LIST_LENGTH={TIMEZONE_LIST_LENGTH}: {list(entry)}"
        )

    for tz_id in entry:
        if tz_id < 0 or tz_id > MAX_TIMEZONE_ID:
            raise CapacityExceededError(
                f"Timezone id {tz_id} does not fit in a 16-bit candidate slot"
            )

    ids = np.full(TIMEZONE_LIST_LENGTH, INVALID_TIMEZONE_ID, dtype=np.int16)
    ids[: len(entry)] = entry
    return ids


def from_candidate_ids(ids: Sequence[int]) -> CacheEntry:
    """Strip the sentinel padding from a candidate id array."""
    return [int(tz_id) for tz_id in ids if tz_id != INVALID_TIMEZONE_ID]


__all__ = [
    "MIN_LNG",
    "MAX_LNG",
    "MIN_LAT",
    "MAX_LAT",
    "GRID_WIDTH",
    "GRID_HEIGHT",
    "GRID_CELL_COUNT",
    "TIMEZONE_LIST_LENGTH",
    "INVALID_TIMEZONE_ID",
    "MAX_TIMEZONE_ID",
    "GridCell",
    "CacheEntry",
    "longitudes",
    "latitudes",
    "iter_grid_cells",
    "is_valid_cell",
    "cell_rectangle",
    "cell_index",
    "to_candidate_ids",
    "from_candidate_ids",
]
