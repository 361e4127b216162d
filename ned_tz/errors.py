"""
Error taxonomy for timezone dataset and spatial cache generation.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: One exception type per failure class of the build pipeline.
Every error is fatal for the operation that raised it; nothing here is
retried or downgraded to a warning, and no partial artifact is written.

Failure classes:
- MalformedInputError: feature missing a required property, or bad geometry
- CapacityExceededError: a cell has more candidates than the fixed array holds
- ArtifactIOError: reading or writing an artifact file failed
- ArtifactDecodeError: an artifact is truncated, corrupted or of the wrong schema
- SpatialCacheBuildError: a grid sweep task failed (whole build is aborted)

Each class also derives from the closest builtin so callers that only know
about ValueError / OSError / RuntimeError still catch them.
"""

from typing import Optional


class NedTimezoneError(Exception):
    """Base class for all errors raised by ned_tz."""


class MalformedInputError(NedTimezoneError, ValueError):
    """A source feature cannot be turned into a complete TimezoneRecord.

    Attributes:
        feature_index: Position of the offending feature (None if unknown)
        field: Name of the first missing/invalid field (None if not field-specific)
    """

    def __init__(
        self,
        message: str,
        feature_index: Optional[int] = None,
        field: Optional[str] = None,
    ):
        self.feature_index = feature_index
        self.field = field
        if feature_index is not None:
            message = f"feature {feature_index}: {message}"
        super().__init__(message)


class CapacityExceededError(NedTimezoneError, ValueError):
    """A cache entry does not fit the fixed-width candidate id array.

    Raising TIMEZONE_LIST_LENGTH is the fix; entries are never truncated.
    """


class ArtifactIOError(NedTimezoneError, OSError):
    """Reading or writing a generated artifact failed."""


class ArtifactDecodeError(NedTimezoneError, ValueError):
    """A persisted artifact could not be decoded into its structure."""


class SpatialCacheBuildError(NedTimezoneError, RuntimeError):
    """The grid sweep failed; no cache was produced."""


__all__ = [
    "NedTimezoneError",
    "MalformedInputError",
    "CapacityExceededError",
    "ArtifactIOError",
    "ArtifactDecodeError",
    "SpatialCacheBuildError",
]
