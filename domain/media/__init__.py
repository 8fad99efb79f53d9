"""Media domain exports."""
from .value_objects import (
    AspectBucket,
    AssetIdentity,
    AssetReference,
    Geometry,
    ReferenceKind,
    StorageKey,
    UploadKind,
)
from .policy import TypePolicy, parse_declared_type
from .naming import AssetNamer, NamingStrategy, media_type_to_ext
from .geometry import classify_aspect_ratio
from .keys import aspect_prefix, build_storage_key

__all__ = [
    "AspectBucket",
    "AssetIdentity",
    "AssetReference",
    "Geometry",
    "ReferenceKind",
    "StorageKey",
    "UploadKind",
    "TypePolicy",
    "parse_declared_type",
    "AssetNamer",
    "NamingStrategy",
    "media_type_to_ext",
    "classify_aspect_ratio",
    "aspect_prefix",
    "build_storage_key",
]
