"""Object-storage key composition."""
from __future__ import annotations

from .value_objects import AspectBucket, AssetIdentity, StorageKey

_PREFIXES = {
    AspectBucket.LANDSCAPE: "landscape",
    AspectBucket.PORTRAIT: "portrait",
}


def aspect_prefix(bucket) -> str:
    try:
        return _PREFIXES.get(AspectBucket(bucket), "other")
    except ValueError:
        return "other"


def build_storage_key(bucket: AspectBucket, identity: AssetIdentity) -> StorageKey:
    if not isinstance(identity, AssetIdentity) or not identity.id or not identity.extension:
        raise ValueError("identity must carry an id and an extension")
    return StorageKey(prefix=aspect_prefix(bucket), name=identity)
