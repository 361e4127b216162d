"""
Tests for the spatial-join cross-check of built caches.

Run with: python -m pytest ned_tz/_tests/test_verification.py -v
"""


class TestCrossCheck:
    """Test cross_check_cache against sweep results."""

    def test_grid_geodataframe(self):
        """The grid frame has one unit box per cell."""
        from ned_tz.verification import build_grid_geodataframe

        grid = build_grid_geodataframe()
        assert len(grid) == 64800
        assert grid.geometry.iloc[0].bounds == (-180.0, -90.0, -179.0, -89.0)
        assert (grid["lng"].iloc[180], grid["lat"].iloc[180]) == (-179, -90)

    def test_sweep_matches_spatial_join(self, small_collection):
        """The parallel sweep agrees with geopandas sjoin in every cell."""
        from ned_tz.models.timezone_models import TimezoneDataset
        from ned_tz.parallel.cache_orchestrator import build_spatial_cache
        from ned_tz.verification import cross_check_cache

        dataset = TimezoneDataset.from_features(small_collection)
        cache = build_spatial_cache(dataset, n_jobs=1)
        assert cross_check_cache(dataset, cache) == []

    def test_scenario_expected_entries(self, scenario_a_collection):
        """The join also counts edge-touching cells."""
        from ned_tz.models.timezone_models import TimezoneDataset
        from ned_tz.verification import expected_entries

        expected = expected_entries(TimezoneDataset.from_features(scenario_a_collection))
        assert expected[(-11, 0)] == (0,)
        assert expected[(10, 10)] == (0,)
        assert expected[(11, 0)] == ()
        assert sum(1 for ids in expected.values() if ids) == 484

    def test_tampered_cache_reported(self, scenario_a_collection):
        """Cells that differ from the join are listed."""
        from ned_tz.models.spatial_cache import SpatialCache
        from ned_tz.models.timezone_models import TimezoneDataset
        from ned_tz.parallel.cache_orchestrator import build_spatial_cache
        from ned_tz.verification import cross_check_cache

        dataset = TimezoneDataset.from_features(scenario_a_collection)
        built = build_spatial_cache(dataset, n_jobs=1)
        tampered = SpatialCache(
            (cell, () if cell == (0, 0) else ids) for cell, ids in built.items()
        )

        mismatches = cross_check_cache(dataset, tampered)
        assert mismatches == [{"cell": (0, 0), "expected": (0,), "actual": ()}]

    def test_empty_dataset(self):
        """No timezones means every expected entry is empty."""
        from ned_tz.models.timezone_models import TimezoneDataset
        from ned_tz.verification import expected_entries

        expected = expected_entries(TimezoneDataset([]))
        assert len(expected) == 64800
        assert all(ids == () for ids in expected.values())
