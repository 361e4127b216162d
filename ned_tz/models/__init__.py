"""Data models package for timezone records, grid cells and the spatial cache."""

from .grid_types import (
    GRID_CELL_COUNT,
    INVALID_TIMEZONE_ID,
    TIMEZONE_LIST_LENGTH,
    CacheEntry,
    GridCell,
    cell_rectangle,
    from_candidate_ids,
    is_valid_cell,
    iter_grid_cells,
    to_candidate_ids,
)

from .timezone_models import (
    BoundingBox,
    TimezoneDataset,
    TimezoneRecord,
    raw_offset_from_zone,
)

from .spatial_cache import SpatialCache, empty_entries

__all__ = [
    # Grid
    "GRID_CELL_COUNT",
    "INVALID_TIMEZONE_ID",
    "TIMEZONE_LIST_LENGTH",
    "CacheEntry",
    "GridCell",
    "cell_rectangle",
    "from_candidate_ids",
    "is_valid_cell",
    "iter_grid_cells",
    "to_candidate_ids",
    # Dataset
    "BoundingBox",
    "TimezoneDataset",
    "TimezoneRecord",
    "raw_offset_from_zone",
    # Cache
    "SpatialCache",
    "empty_entries",
]
