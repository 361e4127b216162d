"""
Natural Earth Timezone Cache

Offline builder for the Natural Earth 10m time zone dataset and its
1-degree spatial lookup cache. Run a full generation with:

    python -m ned_tz.main
"""

from ned_tz.artifacts import load_cache, load_timezones
from ned_tz.config import CONFIG
from ned_tz.errors import (
    ArtifactDecodeError,
    ArtifactIOError,
    CapacityExceededError,
    MalformedInputError,
    NedTimezoneError,
    SpatialCacheBuildError,
)
from ned_tz.generation import (
    generate_artifacts,
    generate_cache_artifact,
    generate_timezone_artifact,
)
from ned_tz.models import SpatialCache, TimezoneDataset, TimezoneRecord

__all__ = [
    "CONFIG",
    "generate_timezone_artifact",
    "generate_cache_artifact",
    "generate_artifacts",
    "load_timezones",
    "load_cache",
    "TimezoneDataset",
    "TimezoneRecord",
    "SpatialCache",
    "NedTimezoneError",
    "MalformedInputError",
    "CapacityExceededError",
    "ArtifactIOError",
    "ArtifactDecodeError",
    "SpatialCacheBuildError",
]
