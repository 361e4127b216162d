"""
Typed timezone records built from Natural Earth boundary features.

Architectural Overview:
=======================
This module turns a parsed GeoJSON FeatureCollection into a TimezoneDataset:
an immutable, ordered sequence of TimezoneRecord. Every feature passes one
typed validation step (_validate_feature) before a record is created, so a
record either has every field the point resolver needs or is never created.

Key Interactions:
-----------------
- Input: FeatureCollection dict (see geojson_loader.load_features_from_file)
- Output: TimezoneDataset consumed by parallel.cache_orchestrator and
  artifacts.encode_timezones
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Id Assignment:
--------------
Feature i (0-based, input order) becomes the record with id i. Ids are
unique within one build only; they are NOT stable across datasets.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import geopandas as gpd
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, Polygon, box, shape
from shapely.geometry.base import BaseGeometry

from ned_tz.errors import MalformedInputError

logger = logging.getLogger("NedTz.Dataset")

CRS_WGS84 = "EPSG:4326"

REQUIRED_STRING_PROPERTIES = ("places", "time_zone")
OPTIONAL_STRING_PROPERTIES = ("dst_places", "tz_name1st")


# ═══════════════════════════════════════════════════════════════════════════
# 📦 BOUNDING BOX
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned lng/lat rectangle taken from a feature's `bbox` member."""

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def as_tuple(self):
        return (self.min_lng, self.min_lat, self.max_lng, self.max_lat)

    def to_polygon(self) -> Polygon:
        return box(self.min_lng, self.min_lat, self.max_lng, self.max_lat)


# ═══════════════════════════════════════════════════════════════════════════
# 🕒 TIMEZONE RECORD
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, eq=False)
class TimezoneRecord:
    """One Natural Earth timezone polygon plus its metadata.

    Attributes:
        id: Position of the record in its dataset (unique per build only)
        identifier: IANA identifier, e.g. "America/Los_Angeles" (tz_name1st)
        description: Places covered by the zone (places)
        dst_description: Daylight saving notes (dst_places)
        offset: Display offset, e.g. "UTC-08:00" (time_zone)
        zone: Offset in hours, e.g. -8.0 (zone)
        raw_offset: Offset in seconds, round(zone * 3600)
        bbox: Bounding rectangle of the geometry
        geometry: Polygon or MultiPolygon in lng/lat degrees

    Two records are equal when their ids are equal.
    """

    id: int
    identifier: Optional[str]
    description: str
    dst_description: Optional[str]
    offset: str
    zone: float
    raw_offset: int
    bbox: BoundingBox
    geometry: BaseGeometry

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimezoneRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def from_feature(cls, index: int, feature: Mapping[str, Any]) -> "TimezoneRecord":
        """Create the record for the feature at position `index`.

        Raises:
            MalformedInputError: if any required field is missing or invalid
        """
        fields = _validate_feature(index, feature)
        return cls(id=index, **fields)


def raw_offset_from_zone(zone: float) -> int:
    """Seconds offset for an hours offset, rounding halves away from zero."""
    seconds = zone * 3600.0
    return int(math.copysign(math.floor(abs(seconds) + 0.5), seconds))


# ═══════════════════════════════════════════════════════════════════════════
# ✅ FEATURE VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _validate_feature(index: int, feature: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check every field of one feature and convert it to record fields.

    All checks run before anything is built; the first failure raises a
    single MalformedInputError naming the feature index and the field.

    Args:
        index: Position of the feature in the collection
        feature: GeoJSON Feature dict

    Returns:
        Dict of TimezoneRecord keyword arguments (everything except id)
    """
    if not isinstance(feature, Mapping):
        raise MalformedInputError("feature is not an object", index)

    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        raise MalformedInputError("missing properties", index, "properties")

    for name in REQUIRED_STRING_PROPERTIES:
        if name not in properties or properties[name] is None:
            raise MalformedInputError(
                f"missing required property '{name}'", index, name
            )
        if not isinstance(properties[name], str):
            raise MalformedInputError(
                f"property '{name}' must be a string, "
                f"got {type(properties[name]).__name__}",
                index,
                name,
            )

    if "zone" not in properties or properties["zone"] is None:
        raise MalformedInputError("missing required property 'zone'", index, "zone")
    if not _is_number(properties["zone"]):
        raise MalformedInputError(
            f"property 'zone' must be a finite number, got {properties['zone']!r}",
            index,
            "zone",
        )

    for name in OPTIONAL_STRING_PROPERTIES:
        value = properties.get(name)
        if value is not None and not isinstance(value, str):
            raise MalformedInputError(
                f"property '{name}' must be a string or null, "
                f"got {type(value).__name__}",
                index,
                name,
            )

    bbox = _convert_bbox(index, feature.get("bbox"))
    geometry = _convert_geometry(index, feature.get("geometry"))

    zone = float(properties["zone"])
    return {
        "identifier": properties.get("tz_name1st"),
        "description": properties["places"],
        "dst_description": properties.get("dst_places"),
        "offset": properties["time_zone"],
        "zone": zone,
        "raw_offset": raw_offset_from_zone(zone),
        "bbox": bbox,
        "geometry": geometry,
    }


def _convert_bbox(index: int, bbox: Any) -> BoundingBox:
    if bbox is None:
        raise MalformedInputError("missing bbox", index, "bbox")
    if not isinstance(bbox, (list, tuple)) or len(bbox) != 4:
        raise MalformedInputError(
            f"bbox must have 4 numbers [minLng, minLat, maxLng, maxLat], got {bbox!r}",
            index,
            "bbox",
        )
    if not all(_is_number(v) for v in bbox):
        raise MalformedInputError(f"bbox must be numeric, got {bbox!r}", index, "bbox")
    return BoundingBox(*(float(v) for v in bbox))


def _convert_geometry(index: int, geometry: Any) -> BaseGeometry:
    if geometry is None:
        raise MalformedInputError("missing geometry", index, "geometry")
    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
        raise MalformedInputError(
            f"geometry cannot be converted: {e}", index, "geometry"
        ) from e

    if not isinstance(geom, (Polygon, MultiPolygon)):
        raise MalformedInputError(
            f"geometry must be Polygon or MultiPolygon, got {geom.geom_type}",
            index,
            "geometry",
        )
    if geom.is_empty:
        raise MalformedInputError("geometry is empty", index, "geometry")
    return geom


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ TIMEZONE DATASET
# ═══════════════════════════════════════════════════════════════════════════


class TimezoneDataset(Sequence):
    """
    Immutable, ordered collection of TimezoneRecord for one build.

    Order is the input feature order and dataset[i].id == i for every i.
    Records are read through indexing and iteration only; there is no
    mutation API.

    Example:
        dataset = TimezoneDataset.from_features(feature_collection)
        for record in dataset:
            print(record.id, record.identifier)
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[TimezoneRecord]):
        records = tuple(records)
        for position, record in enumerate(records):
            if record.id != position:
                raise ValueError(
                    f"TimezoneDataset ids must equal positions: "
                    f"record at {position} has id {record.id}"
                )
        self._records = records

    @classmethod
    def from_features(
        cls,
        feature_collection: Union[Mapping[str, Any], List[Mapping[str, Any]]],
    ) -> "TimezoneDataset":
        """
        Build a dataset from a parsed GeoJSON FeatureCollection.

        Args:
            feature_collection: FeatureCollection dict, or a plain list of
                Feature dicts

        Returns:
            TimezoneDataset with ids 0..n-1 in feature order

        Raises:
            MalformedInputError: on the first invalid feature; nothing is
                returned for the other features
        """
        if isinstance(feature_collection, Mapping):
            features = feature_collection.get("features")
            if not isinstance(features, list):
                raise MalformedInputError("FeatureCollection has no 'features' list")
        elif isinstance(feature_collection, list):
            features = feature_collection
        else:
            raise MalformedInputError(
                f"expected a FeatureCollection, got {type(feature_collection).__name__}"
            )

        records = [
            TimezoneRecord.from_feature(index, feature)
            for index, feature in enumerate(features)
        ]
        logger.info(f"🗂️ Built timezone dataset: {len(records)} records")
        return cls(records)

    def __getitem__(self, index):
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TimezoneRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"TimezoneDataset({len(self._records)} records)"

    def identifiers(self) -> List[Optional[str]]:
        """IANA identifiers in id order (None where the source has none)."""
        return [record.identifier for record in self._records]

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        """
        Tabular view of the dataset for inspection and spatial joins.

        Returns:
            GeoDataFrame (EPSG:4326), one row per record; the positional
            index equals the record id
        """
        rows = [
            {
                "id": record.id,
                "identifier": record.identifier,
                "description": record.description,
                "dst_description": record.dst_description,
                "offset": record.offset,
                "zone": record.zone,
                "raw_offset": record.raw_offset,
            }
            for record in self._records
        ]
        geometries = [record.geometry for record in self._records]
        columns = [
            "id",
            "identifier",
            "description",
            "dst_description",
            "offset",
            "zone",
            "raw_offset",
        ]
        return gpd.GeoDataFrame(
            rows, columns=columns, geometry=geometries, crs=CRS_WGS84
        )


__all__ = [
    "BoundingBox",
    "TimezoneRecord",
    "TimezoneDataset",
    "raw_offset_from_zone",
]
