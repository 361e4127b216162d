"""
Artifact Encoding and Persistence Module

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn a TimezoneDataset or SpatialCache into a deterministic
byte sequence and back, and move those bytes to and from disk.

Key Functions:
- encode_timezones() / decode_timezones(): TimezoneDataset <-> bytes
- encode_cache() / decode_cache(): SpatialCache <-> bytes
- write_artifact() / read_artifact(): locked, atomic file I/O
- save_*/load_*: the two composed (load_* is what ordinary library use calls)

Artifact Format:
- Pickle (fixed protocol) of a plain payload dict:
  {"format": "ned_tz", "kind": "timezones" | "cache", "version": 1, "data": ...}
- Only builtin types inside the payload; geometry is stored as WKB bytes
- timezones data: one tuple per record in data-model field order
  (id, identifier, description, dst_description, offset, zone, raw_offset,
  (min_lng, min_lat, max_lng, max_lat), geometry_wkb)
- cache data: one (lng, lat, ids) tuple per cell in canonical grid order
- No timestamps and no pickle memo: equal structures always encode to the
  same bytes, whatever objects they share internally

Decoding never returns a partial structure. Truncated or corrupted bytes,
non-builtin pickle content, a wrong kind/version, or rows that fail the data
model's own validation all raise ArtifactDecodeError.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
import pickle
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Union

import filelock
import shapely

from ned_tz.errors import ArtifactDecodeError, ArtifactIOError
from ned_tz.models.spatial_cache import SpatialCache
from ned_tz.models.timezone_models import BoundingBox, TimezoneDataset, TimezoneRecord

logger = logging.getLogger("NedTz.Artifacts")

PathLike = Union[str, os.PathLike]

ARTIFACT_FORMAT = "ned_tz"
ARTIFACT_VERSION = 1
TIMEZONES_KIND = "timezones"
CACHE_KIND = "cache"

# Fixed so bytes do not change with the interpreter's default protocol
PICKLE_PROTOCOL = 4

DEFAULT_LOCK_TIMEOUT_S = 60.0

TIMEZONE_ROW_LENGTH = 9


# ═══════════════════════════════════════════════════════════════════════════
# 🔒 RESTRICTED UNPICKLING
# ═══════════════════════════════════════════════════════════════════════════


class _BuiltinsOnlyUnpickler(pickle.Unpickler):
    """Refuses every global: artifacts contain builtin containers only."""

    def find_class(self, module: str, name: str) -> Any:
        raise pickle.UnpicklingError(
            f"artifact references forbidden global {module}.{name}"
        )


def _dumps(kind: str, data: Any) -> bytes:
    """
    Pickle the envelope with memoization off.

    With the memo, shared objects are written once and referenced, so equal
    values with different object sharing would give different bytes. Fast
    mode writes every value in full; payloads are acyclic builtins.
    """
    payload = {
        "format": ARTIFACT_FORMAT,
        "kind": kind,
        "version": ARTIFACT_VERSION,
        "data": data,
    }
    buffer = BytesIO()
    pickler = pickle.Pickler(buffer, protocol=PICKLE_PROTOCOL)
    pickler.fast = True
    pickler.dump(payload)
    return buffer.getvalue()


def _loads(kind: str, data: bytes) -> Any:
    """Unpickle and check the envelope; return the payload's data member."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ArtifactDecodeError(f"expected bytes, got {type(data).__name__}")
    try:
        payload = _BuiltinsOnlyUnpickler(BytesIO(bytes(data))).load()
    except Exception as e:
        raise ArtifactDecodeError(f"cannot decode {kind} artifact: {e}") from e

    if not isinstance(payload, dict):
        raise ArtifactDecodeError("invalid artifact: payload is not a dict")
    if payload.get("format") != ARTIFACT_FORMAT:
        raise ArtifactDecodeError(
            f"invalid artifact: format {payload.get('format')!r} != {ARTIFACT_FORMAT!r}"
        )
    if payload.get("kind") != kind:
        raise ArtifactDecodeError(
            f"invalid artifact: expected kind {kind!r}, got {payload.get('kind')!r}"
        )
    if payload.get("version") != ARTIFACT_VERSION:
        raise ArtifactDecodeError(
            f"unsupported artifact version {payload.get('version')!r} "
            f"(expected {ARTIFACT_VERSION})"
        )
    if "data" not in payload:
        raise ArtifactDecodeError("invalid artifact: missing 'data'")
    return payload["data"]


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ TIMEZONE DATASET CODEC
# ═══════════════════════════════════════════════════════════════════════════


def encode_timezones(dataset: TimezoneDataset) -> bytes:
    """Encode a dataset; equal datasets give identical bytes."""
    rows = [
        (
            record.id,
            record.identifier,
            record.description,
            record.dst_description,
            record.offset,
            record.zone,
            record.raw_offset,
            record.bbox.as_tuple(),
            shapely.to_wkb(record.geometry),
        )
        for record in dataset
    ]
    return _dumps(TIMEZONES_KIND, rows)


def decode_timezones(data: bytes) -> TimezoneDataset:
    """
    Rebuild a TimezoneDataset from encode_timezones() output.

    Raises:
        ArtifactDecodeError: truncated, corrupted or schema-mismatched input
    """
    rows = _loads(TIMEZONES_KIND, data)
    if not isinstance(rows, list):
        raise ArtifactDecodeError("invalid timezones artifact: data is not a list")

    records = [_decode_timezone_row(position, row) for position, row in enumerate(rows)]
    try:
        return TimezoneDataset(records)
    except ValueError as e:
        raise ArtifactDecodeError(f"invalid timezones artifact: {e}") from e


def _decode_timezone_row(position: int, row: Any) -> TimezoneRecord:
    if not isinstance(row, tuple) or len(row) != TIMEZONE_ROW_LENGTH:
        raise ArtifactDecodeError(
            f"invalid timezones artifact: row {position} is not a "
            f"{TIMEZONE_ROW_LENGTH}-tuple"
        )

    (
        tz_id,
        identifier,
        description,
        dst_description,
        offset,
        zone,
        raw_offset,
        bbox,
        geometry_wkb,
    ) = row

    checks = [
        ("id", type(tz_id) is int),
        ("identifier", identifier is None or isinstance(identifier, str)),
        ("description", isinstance(description, str)),
        ("dst_description", dst_description is None or isinstance(dst_description, str)),
        ("offset", isinstance(offset, str)),
        ("zone", type(zone) is float),
        ("raw_offset", type(raw_offset) is int),
        (
            "bbox",
            isinstance(bbox, tuple)
            and len(bbox) == 4
            and all(type(v) is float for v in bbox),
        ),
        ("geometry", isinstance(geometry_wkb, bytes)),
    ]
    for field_name, ok in checks:
        if not ok:
            raise ArtifactDecodeError(
                f"invalid timezones artifact: row {position} has a bad '{field_name}'"
            )

    try:
        geometry = shapely.from_wkb(geometry_wkb)
    except Exception as e:
        raise ArtifactDecodeError(
            f"invalid timezones artifact: row {position} geometry: {e}"
        ) from e
    if geometry is None or geometry.geom_type not in ("Polygon", "MultiPolygon"):
        raise ArtifactDecodeError(
            f"invalid timezones artifact: row {position} geometry is not a polygon"
        )

    return TimezoneRecord(
        id=tz_id,
        identifier=identifier,
        description=description,
        dst_description=dst_description,
        offset=offset,
        zone=zone,
        raw_offset=raw_offset,
        bbox=BoundingBox(*bbox),
        geometry=geometry,
    )


# ═══════════════════════════════════════════════════════════════════════════
# 🧮 SPATIAL CACHE CODEC
# ═══════════════════════════════════════════════════════════════════════════


def encode_cache(cache: SpatialCache) -> bytes:
    """Encode a cache in canonical cell order; equal caches give identical bytes."""
    rows = [(lng, lat, tuple(ids)) for (lng, lat), ids in cache.items()]
    return _dumps(CACHE_KIND, rows)


def decode_cache(data: bytes) -> SpatialCache:
    """
    Rebuild a SpatialCache from encode_cache() output.

    Raises:
        ArtifactDecodeError: truncated, corrupted or schema-mismatched input
    """
    rows = _loads(CACHE_KIND, data)
    if not isinstance(rows, list):
        raise ArtifactDecodeError("invalid cache artifact: data is not a list")

    entries = []
    for position, row in enumerate(rows):
        if not isinstance(row, tuple) or len(row) != 3 or not isinstance(row[2], tuple):
            raise ArtifactDecodeError(
                f"invalid cache artifact: row {position} is not (lng, lat, ids)"
            )
        lng, lat, ids = row
        entries.append(((lng, lat), ids))

    try:
        return SpatialCache(entries)
    except ValueError as e:
        raise ArtifactDecodeError(f"invalid cache artifact: {e}") from e


# ═══════════════════════════════════════════════════════════════════════════
# 💾 ARTIFACT FILE I/O
# ═══════════════════════════════════════════════════════════════════════════


def write_artifact(
    path: PathLike,
    data: bytes,
    lock_timeout_s: float = DEFAULT_LOCK_TIMEOUT_S,
) -> Path:
    """
    Write artifact bytes atomically.

    The bytes go to a temporary sibling first and replace the destination in
    one os.replace(), under a per-artifact file lock, so readers never see a
    half-written artifact.

    Args:
        path: Destination file
        data: Encoded artifact
        lock_timeout_s: Seconds to wait for the lock

    Returns:
        Destination path

    Raises:
        ArtifactIOError: if the directory, lock or file cannot be written
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock = filelock.FileLock(str(path) + ".lock", timeout=lock_timeout_s)
        with lock:
            try:
                with open(tmp_path, "wb") as f:
                    f.write(data)
                os.replace(tmp_path, path)
            finally:
                tmp_path.unlink(missing_ok=True)
    except filelock.Timeout as e:
        raise ArtifactIOError(f"Timed out locking artifact {path}") from e
    except OSError as e:
        raise ArtifactIOError(f"Failed to write artifact {path}: {e}") from e

    size_mb = len(data) / (1024 * 1024)
    logger.info(f"   💾 Artifact saved: {path} ({size_mb:.2f} MB)")
    return path


def read_artifact(path: PathLike) -> bytes:
    """
    Read artifact bytes.

    Raises:
        ArtifactIOError: if the file cannot be read
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ArtifactIOError(f"Failed to read artifact {path}: {e}") from e
    logger.debug(f"Read artifact {path} ({len(data)} bytes)")
    return data


def discard_artifact(
    path: PathLike,
    lock_timeout_s: float = DEFAULT_LOCK_TIMEOUT_S,
) -> bool:
    """
    Remove an artifact under its lock.

    Returns:
        True if a file was removed, False if there was none

    Raises:
        ArtifactIOError: if the lock or the removal fails
    """
    path = Path(path)
    if not path.exists():
        return False
    try:
        with filelock.FileLock(str(path) + ".lock", timeout=lock_timeout_s):
            path.unlink(missing_ok=True)
    except filelock.Timeout as e:
        raise ArtifactIOError(f"Timed out locking artifact {path}") from e
    except OSError as e:
        raise ArtifactIOError(f"Failed to remove artifact {path}: {e}") from e
    return True


def save_timezones(dataset: TimezoneDataset, path: PathLike) -> Path:
    return write_artifact(path, encode_timezones(dataset))


def load_timezones(path: PathLike) -> TimezoneDataset:
    """Load a prebuilt timezone artifact (ordinary library use)."""
    return decode_timezones(read_artifact(path))


def save_cache(cache: SpatialCache, path: PathLike) -> Path:
    return write_artifact(path, encode_cache(cache))


def load_cache(path: PathLike) -> SpatialCache:
    """Load a prebuilt cache artifact (ordinary library use)."""
    return decode_cache(read_artifact(path))


def describe_artifact(data: bytes) -> Dict[str, Any]:
    """
    Envelope summary for logging: kind, version and row count.

    Raises:
        ArtifactDecodeError: if the bytes are not an artifact
    """
    try:
        payload = _BuiltinsOnlyUnpickler(BytesIO(bytes(data))).load()
    except Exception as e:
        raise ArtifactDecodeError(f"cannot decode artifact: {e}") from e
    if not isinstance(payload, dict) or payload.get("format") != ARTIFACT_FORMAT:
        raise ArtifactDecodeError("not a ned_tz artifact")
    rows: List[Any] = payload.get("data") or []
    return {
        "kind": payload.get("kind"),
        "version": payload.get("version"),
        "rows": len(rows),
        "size_bytes": len(data),
    }


__all__ = [
    "ARTIFACT_FORMAT",
    "ARTIFACT_VERSION",
    "encode_timezones",
    "decode_timezones",
    "encode_cache",
    "decode_cache",
    "write_artifact",
    "read_artifact",
    "discard_artifact",
    "save_timezones",
    "load_timezones",
    "save_cache",
    "load_cache",
    "describe_artifact",
]
