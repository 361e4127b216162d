"""
Unit tests for the SpatialCache mapping.

Run with: python -m pytest ned_tz/_tests/test_spatial_cache.py -v
"""

import pytest


def _entries_with(overrides):
    from ned_tz.models.spatial_cache import empty_entries

    return [(cell, overrides.get(cell, ids)) for cell, ids in empty_entries()]


class TestSpatialCacheValidation:
    """Test that only complete, well-formed caches can be built."""

    def test_empty_cache_covers_every_cell(self):
        """A cache of empty entries still has all 64,800 keys."""
        from ned_tz.models.spatial_cache import SpatialCache, empty_entries

        cache = SpatialCache(empty_entries())
        assert len(cache) == 64800
        assert cache[(0, 0)] == ()
        assert cache.max_entry_length() == 0

    def test_iteration_is_canonical(self):
        """Iteration order does not depend on input order."""
        from ned_tz.models.grid_types import iter_grid_cells
        from ned_tz.models.spatial_cache import SpatialCache, empty_entries

        cache = SpatialCache(list(reversed(list(empty_entries()))))
        assert list(cache) == list(iter_grid_cells())

    def test_missing_cell_rejected(self):
        """Every cell must be present."""
        from ned_tz.models.spatial_cache import SpatialCache, empty_entries

        entries = list(empty_entries())[1:]
        with pytest.raises(ValueError, match="missing"):
            SpatialCache(entries)

    def test_duplicate_cell_rejected(self):
        """A cell can only be given once."""
        from ned_tz.models.spatial_cache import SpatialCache, empty_entries

        entries = list(empty_entries())
        entries.append(((0, 0), (1,)))
        with pytest.raises(ValueError, match="Duplicate"):
            SpatialCache(entries)

    def test_invalid_cell_rejected(self):
        """Cells outside the grid are rejected."""
        from ned_tz.models.spatial_cache import SpatialCache, empty_entries

        entries = list(empty_entries())
        entries[0] = ((180, 0), ())
        with pytest.raises(ValueError, match="Invalid grid cell"):
            SpatialCache(entries)

    @pytest.mark.parametrize("ids", [(2, 1), (1, 1), (-1,), (1.0,)])
    def test_bad_entry_rejected(self, ids):
        """Entries must be strictly ascending non-negative ints."""
        from ned_tz.models.spatial_cache import SpatialCache

        with pytest.raises(ValueError):
            SpatialCache(_entries_with({(5, 5): ids}))

    def test_mapping_input(self):
        """A dict input works the same as an iterable of pairs."""
        from ned_tz.models.spatial_cache import SpatialCache

        cache = SpatialCache(dict(_entries_with({(5, 5): (0, 3)})))
        assert cache[(5, 5)] == (0, 3)


class TestSpatialCacheEncoding:
    """Test fixed-width views and statistics."""

    def test_candidate_ids(self):
        """Per-cell candidate arrays are sentinel padded."""
        from ned_tz.models.spatial_cache import SpatialCache

        cache = SpatialCache(_entries_with({(5, 5): (0, 3)}))
        assert cache.candidate_ids((5, 5)).tolist() == [0, 3, -1, -1, -1]
        assert cache.candidate_ids((6, 5)).tolist() == [-1] * 5

    def test_candidate_table(self):
        """The table is indexed by (lng + 180, lat + 90)."""
        from ned_tz.models.spatial_cache import SpatialCache

        cache = SpatialCache(_entries_with({(-180, 89): (2,), (179, -90): (0, 1)}))
        table = cache.to_candidate_table()
        assert table.shape == (360, 180, 5)
        assert table[0, 179].tolist() == [2, -1, -1, -1, -1]
        assert table[359, 0].tolist() == [0, 1, -1, -1, -1]
        assert (table[100, 100] == -1).all()

    def test_candidate_table_overflow(self):
        """A cell with more ids than slots makes encoding fail."""
        from ned_tz.errors import CapacityExceededError
        from ned_tz.models.spatial_cache import SpatialCache

        cache = SpatialCache(_entries_with({(0, 0): tuple(range(6))}))
        assert cache.max_entry_length() == 6
        with pytest.raises(CapacityExceededError):
            cache.to_candidate_table()

    def test_histogram(self):
        """Histogram counts cells per entry length."""
        from ned_tz.models.spatial_cache import SpatialCache

        cache = SpatialCache(
            _entries_with({(0, 0): (1,), (1, 0): (1,), (2, 0): (0, 1, 2)})
        )
        assert cache.entry_length_histogram() == [64797, 2, 0, 1]
