"""
Immutable grid-cell -> candidate timezone ids mapping.

Architectural Overview:
=======================
SpatialCache is the product of the grid sweep (parallel.cache_orchestrator).
It holds exactly one entry for each of the 64,800 one-degree cells; an entry
lists, in ascending order, the ids of every TimezoneRecord whose geometry
intersects the cell. Empty entries (open ocean) are kept as empty tuples so
that a missing key always means a bug rather than "no candidates".

Once constructed the mapping is never written again. Consumers read it by
key; the iteration order is the canonical grid order (iter_grid_cells),
which is also the order used when the cache is encoded.
"""

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from ned_tz.models.grid_types import (
    GRID_CELL_COUNT,
    GRID_HEIGHT,
    GRID_WIDTH,
    INVALID_TIMEZONE_ID,
    TIMEZONE_LIST_LENGTH,
    GridCell,
    cell_index,
    is_valid_cell,
    iter_grid_cells,
    to_candidate_ids,
)


class SpatialCache(Mapping):
    """
    Mapping from GridCell (lng, lat) to an ascending tuple of timezone ids.

    Args:
        entries: Mapping or iterable of (cell, ids) covering every grid cell

    Raises:
        ValueError: if a cell is out of range, duplicated or missing, or an
            entry is not strictly ascending non-negative ints
    """

    __slots__ = ("_entries",)

    def __init__(self, entries):
        if isinstance(entries, Mapping):
            entries = entries.items()

        staged: Dict[GridCell, Tuple[int, ...]] = {}
        for cell, ids in entries:
            if not is_valid_cell(cell):
                raise ValueError(f"Invalid grid cell: {cell!r}")
            if cell in staged:
                raise ValueError(f"Duplicate grid cell: {cell!r}")
            staged[cell] = _validate_entry(cell, ids)

        if len(staged) != GRID_CELL_COUNT:
            missing = GRID_CELL_COUNT - len(staged)
            raise ValueError(
                f"SpatialCache must cover all {GRID_CELL_COUNT} cells, "
                f"{missing} missing"
            )

        # Re-key in canonical order so iteration (and encoding) is deterministic
        self._entries: Dict[GridCell, Tuple[int, ...]] = {
            cell: staged[cell] for cell in iter_grid_cells()
        }

    def __getitem__(self, cell: GridCell) -> Tuple[int, ...]:
        return self._entries[cell]

    def __iter__(self) -> Iterator[GridCell]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        filled = sum(1 for ids in self._entries.values() if ids)
        return f"SpatialCache({len(self._entries)} cells, {filled} non-empty)"

    # ═══════════════════════════════════════════════════════════════════════
    # 🔢 FIXED-WIDTH ENCODING
    # ═══════════════════════════════════════════════════════════════════════

    def candidate_ids(self, cell: GridCell) -> np.ndarray:
        """CandidateIdArray for one cell (see grid_types.to_candidate_ids)."""
        return to_candidate_ids(self._entries[cell])

    def to_candidate_table(self) -> np.ndarray:
        """
        Encode the whole cache as one contiguous int16 table.

        Returns:
            Array of shape (360, 180, TIMEZONE_LIST_LENGTH); table[col, row]
            is the candidate array of cell (col - 180, row - 90).

        Raises:
            CapacityExceededError: if any cell overflows the fixed width
        """
        table = np.full(
            (GRID_WIDTH, GRID_HEIGHT, TIMEZONE_LIST_LENGTH),
            INVALID_TIMEZONE_ID,
            dtype=np.int16,
        )
        for cell, ids in self._entries.items():
            col, row = cell_index(cell)
            table[col, row] = to_candidate_ids(ids)
        return table

    # ═══════════════════════════════════════════════════════════════════════
    # 📊 STATISTICS
    # ═══════════════════════════════════════════════════════════════════════

    def max_entry_length(self) -> int:
        return max(len(ids) for ids in self._entries.values())

    def entry_length_histogram(self) -> List[int]:
        """
        Number of cells per candidate count.

        Returns:
            List where item n is the number of cells holding n candidates
            (index 0 = empty cells).
        """
        lengths = np.fromiter(
            (len(ids) for ids in self._entries.values()),
            dtype=np.int64,
            count=len(self._entries),
        )
        return np.bincount(lengths).tolist()


def _validate_entry(cell: GridCell, ids: Sequence[int]) -> Tuple[int, ...]:
    entry = tuple(ids)
    previous = -1
    for tz_id in entry:
        if type(tz_id) is not int or tz_id < 0:
            raise ValueError(f"Cell {cell}: invalid timezone id {tz_id!r}")
        if tz_id <= previous:
            raise ValueError(f"Cell {cell}: ids must be strictly ascending: {entry}")
        previous = tz_id
    return entry


def empty_entries() -> Iterable[Tuple[GridCell, Tuple[int, ...]]]:
    """(cell, ()) for every cell; handy for building caches by hand."""
    return ((cell, ()) for cell in iter_grid_cells())


__all__ = ["SpatialCache", "empty_entries"]
