"""
GeoJSON source loading for self-contained generation.

Reads the Natural Earth time zone GeoJSON (already downloaded by the calling
tool from config.GEOJSON_ADDRESS) and returns the FeatureCollection dict
that TimezoneDataset.from_features consumes. Feature-level validation is
left to the dataset model; this module only checks the document shape.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

from ned_tz.errors import ArtifactIOError, MalformedInputError

logger = logging.getLogger("NedTz.Loader")


def load_features_from_string(geojson_input: str) -> Dict[str, Any]:
    """
    Parse GeoJSON text into a FeatureCollection dict.

    Raises:
        MalformedInputError: invalid JSON, or not a FeatureCollection
    """
    try:
        document = json.loads(geojson_input)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"GeoJSON is not valid JSON: {e}") from e

    if not isinstance(document, dict) or document.get("type") != "FeatureCollection":
        found = document.get("type") if isinstance(document, dict) else type(document).__name__
        raise MalformedInputError(f"expected a GeoJSON FeatureCollection, got {found!r}")
    if not isinstance(document.get("features"), list):
        raise MalformedInputError("FeatureCollection has no 'features' list")

    return document


def load_features_from_file(geojson_input: Union[str, os.PathLike]) -> Dict[str, Any]:
    """
    Read and parse a GeoJSON FeatureCollection file.

    Raises:
        ArtifactIOError: the file cannot be read
        MalformedInputError: the content is not UTF-8 or not a FeatureCollection
    """
    path = Path(geojson_input)
    logger.info(f"📂 Loading GeoJSON: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"GeoJSON {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ArtifactIOError(f"Failed to read GeoJSON {path}: {e}") from e

    features = load_features_from_string(text)
    logger.info(f"   ✅ Loaded {len(features['features'])} features")
    return features


__all__ = ["load_features_from_string", "load_features_from_file"]
