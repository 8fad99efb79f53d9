"""Aspect-ratio classification."""
from __future__ import annotations

from .value_objects import AspectBucket, Geometry

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.01


def classify_aspect_ratio(width: int, height: int) -> AspectBucket:
    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < RATIO_TOLERANCE:
        return AspectBucket.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < RATIO_TOLERANCE:
        return AspectBucket.PORTRAIT
    return AspectBucket.OTHER


def classify_geometry(geometry: Geometry) -> AspectBucket:
    return classify_aspect_ratio(geometry.width, geometry.height)
