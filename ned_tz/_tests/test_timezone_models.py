"""
Unit tests for TimezoneRecord / TimezoneDataset construction.

Tests:
1. Field mapping from Natural Earth properties
2. raw_offset rounding
3. Id assignment and record equality
4. Malformed features (missing/invalid fields) fail the whole build
5. GeoDataFrame view

Run with: python -m pytest ned_tz/_tests/test_timezone_models.py -v
"""

import copy

import pytest


class TestDatasetConstruction:
    """Test building datasets from feature collections."""

    def test_field_mapping(self, small_collection):
        """Properties map onto record fields."""
        from ned_tz.models.timezone_models import TimezoneDataset

        dataset = TimezoneDataset.from_features(small_collection)
        record = dataset[0]

        assert record.id == 0
        assert record.identifier == "America/Los_Angeles"
        assert record.description == "Pacific coast"
        assert record.dst_description == "Most of the zone"
        assert record.offset == "UTC-08:00"
        assert record.zone == -8.0
        assert record.raw_offset == -28800
        assert record.bbox.as_tuple() == (-125.0, 30.0, -114.0, 49.0)
        assert record.geometry.geom_type == "Polygon"
        assert record.geometry.bounds == (-125.0, 30.0, -114.0, 49.0)

    def test_ids_follow_feature_order(self, small_collection):
        """Feature i becomes record id i."""
        from ned_tz.models.timezone_models import TimezoneDataset

        dataset = TimezoneDataset.from_features(small_collection)
        assert len(dataset) == 3
        assert [record.id for record in dataset] == [0, 1, 2]
        assert dataset.identifiers() == [
            "America/Los_Angeles",
            "America/Denver",
            "Asia/Kolkata",
        ]

    def test_plain_feature_list_accepted(self, small_collection):
        """A bare list of features works like a FeatureCollection."""
        from ned_tz.models.timezone_models import TimezoneDataset

        dataset = TimezoneDataset.from_features(small_collection["features"])
        assert len(dataset) == 3

    def test_empty_collection(self):
        """Zero features give an empty dataset."""
        from ned_tz.models.timezone_models import TimezoneDataset

        dataset = TimezoneDataset.from_features({"type": "FeatureCollection", "features": []})
        assert len(dataset) == 0

    def test_optional_properties_may_be_absent(self, square_feature):
        """tz_name1st and dst_places default to None."""
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        del feature["properties"]["tz_name1st"]
        del feature["properties"]["dst_places"]

        record = TimezoneDataset.from_features([feature])[0]
        assert record.identifier is None
        assert record.dst_description is None

    def test_multipolygon_geometry(self, square_feature):
        """MultiPolygon geometries are kept as MultiPolygon."""
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        ring_a = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
        ring_b = [[5, 5], [6, 5], [6, 6], [5, 6], [5, 5]]
        feature["geometry"] = {
            "type": "MultiPolygon",
            "coordinates": [[ring_a], [ring_b]],
        }
        feature["bbox"] = [0, 0, 6, 6]

        record = TimezoneDataset.from_features([feature])[0]
        assert record.geometry.geom_type == "MultiPolygon"

    def test_record_equality_by_id(self, small_collection):
        """Records compare and hash by id."""
        from ned_tz.models.timezone_models import TimezoneDataset

        first = TimezoneDataset.from_features(small_collection)
        second = TimezoneDataset.from_features(small_collection)
        assert first[1] == second[1]
        assert first[0] != first[1]
        assert len({first[0], second[0], first[2]}) == 2

    def test_dataset_rejects_out_of_order_ids(self, small_collection):
        """Direct construction requires id == position."""
        from ned_tz.models.timezone_models import TimezoneDataset

        dataset = TimezoneDataset.from_features(small_collection)
        with pytest.raises(ValueError):
            TimezoneDataset([dataset[1], dataset[0]])


class TestRawOffset:
    """Test seconds offset derived from the hours offset."""

    @pytest.mark.parametrize(
        "zone,expected",
        [
            (0.0, 0),
            (-8.0, -28800),
            (5.5, 19800),
            (5.75, 20700),
            (-9.5, -34200),
            (12.75, 45900),
            (-3.5, -12600),
        ],
    )
    def test_raw_offset(self, zone, expected):
        """round(zone * 3600), halves away from zero."""
        from ned_tz.models.timezone_models import raw_offset_from_zone

        assert raw_offset_from_zone(zone) == expected

    def test_integer_zone_accepted(self, square_feature):
        """JSON integers are valid zone values."""
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1, zone=3)
        record = TimezoneDataset.from_features([feature])[0]
        assert record.zone == 3.0
        assert isinstance(record.zone, float)
        assert record.raw_offset == 10800


class TestMalformedInput:
    """Test that invalid features fail the build with field details."""

    def test_missing_time_zone(self, small_collection):
        """Missing time_zone aborts the build and names the field."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        collection = copy.deepcopy(small_collection)
        del collection["features"][1]["properties"]["time_zone"]

        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features(collection)
        assert exc_info.value.field == "time_zone"
        assert exc_info.value.feature_index == 1
        assert "feature 1" in str(exc_info.value)

    @pytest.mark.parametrize("field", ["places", "time_zone", "zone"])
    def test_missing_required_property(self, square_feature, field):
        """Each required property is enforced."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        del feature["properties"][field]
        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features([feature])
        assert exc_info.value.field == field

    @pytest.mark.parametrize(
        "field,value",
        [
            ("places", 7),
            ("time_zone", None),
            ("zone", "UTC"),
            ("zone", True),
            ("zone", float("nan")),
            ("tz_name1st", 12),
            ("dst_places", ["x"]),
        ],
    )
    def test_wrongly_typed_property(self, square_feature, field, value):
        """Wrong types are malformed input, not silently coerced."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        feature["properties"][field] = value
        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features([feature])
        assert exc_info.value.field == field

    def test_missing_properties_object(self, square_feature):
        """A feature without properties is malformed."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        del feature["properties"]
        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features([feature])
        assert exc_info.value.field == "properties"

    @pytest.mark.parametrize("bbox", [None, [0, 0, 1], ["a", 0, 1, 1], "0,0,1,1"])
    def test_bad_bbox(self, square_feature, bbox):
        """bbox must be four numbers."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        feature["bbox"] = bbox
        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features([feature])
        assert exc_info.value.field == "bbox"

    @pytest.mark.parametrize(
        "geometry",
        [
            None,
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "Polygon", "coordinates": []},
            {"type": "Polygon"},
            {"type": "Hexagon", "coordinates": []},
        ],
    )
    def test_bad_geometry(self, square_feature, geometry):
        """Only non-empty Polygon / MultiPolygon geometries are accepted."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        feature = square_feature(0, 0, 1, 1)
        feature["geometry"] = geometry
        with pytest.raises(MalformedInputError) as exc_info:
            TimezoneDataset.from_features([feature])
        assert exc_info.value.field == "geometry"

    def test_not_a_collection(self):
        """Containers other than a FeatureCollection or list are rejected."""
        from ned_tz.errors import MalformedInputError
        from ned_tz.models.timezone_models import TimezoneDataset

        with pytest.raises(MalformedInputError):
            TimezoneDataset.from_features("features")
        with pytest.raises(MalformedInputError):
            TimezoneDataset.from_features({"type": "FeatureCollection"})

    def test_malformed_input_is_value_error(self):
        """Callers catching ValueError also catch malformed input."""
        from ned_tz.errors import MalformedInputError

        assert issubclass(MalformedInputError, ValueError)


class TestGeoDataFrameView:
    """Test the tabular dataset view."""

    def test_columns_and_crs(self, small_collection):
        """One row per record, id column equals position, WGS84."""
        from ned_tz.models.timezone_models import TimezoneDataset

        gdf = TimezoneDataset.from_features(small_collection).to_geodataframe()
        assert len(gdf) == 3
        assert gdf["id"].tolist() == [0, 1, 2]
        assert gdf["raw_offset"].tolist() == [-28800, -25200, 19800]
        assert gdf.crs.to_epsg() == 4326
        assert gdf.geometry.iloc[2].bounds == (75.0, 8.0, 90.0, 30.0)
