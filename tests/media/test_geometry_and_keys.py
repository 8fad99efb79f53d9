import pytest

from domain.media import (
    AspectBucket,
    AssetIdentity,
    AssetReference,
    Geometry,
    ReferenceKind,
    aspect_prefix,
    build_storage_key,
    classify_aspect_ratio,
)
from domain.media.geometry import classify_geometry
from domain.common.exceptions import InvalidInputException


@pytest.mark.parametrize(
    "width, height, bucket",
    [
        (1920, 1080, AspectBucket.LANDSCAPE),
        (1280, 720, AspectBucket.LANDSCAPE),
        (1080, 1920, AspectBucket.PORTRAIT),
        (720, 1280, AspectBucket.PORTRAIT),
        (1000, 1000, AspectBucket.OTHER),
        (640, 480, AspectBucket.OTHER),
    ],
)
def test_classify_aspect_ratio(width, height, bucket):
    assert classify_aspect_ratio(width, height) == bucket


def test_classification_tolerates_encoder_rounding():
    # 854x480 is the common "480p" 16:9 frame, ratio 1.7792
    assert classify_aspect_ratio(854, 480) == AspectBucket.LANDSCAPE
    assert classify_aspect_ratio(480, 854) == AspectBucket.PORTRAIT


def test_classify_geometry_delegates_to_ratio():
    assert classify_geometry(Geometry(width=3840, height=2160)) == AspectBucket.LANDSCAPE


@pytest.mark.parametrize("width, height", [(0, 1080), (1920, 0), (-1, 5)])
def test_geometry_rejects_non_positive_dimensions(width, height):
    with pytest.raises(ValueError):
        Geometry(width=width, height=height)


def test_storage_key_joins_prefix_and_name():
    key = build_storage_key(AspectBucket.LANDSCAPE, AssetIdentity(id="abc", extension=".mp4"))
    assert key.path == "landscape/abc.mp4"
    assert str(key) == "landscape/abc.mp4"


def test_unknown_bucket_maps_to_other_prefix():
    assert aspect_prefix("square") == "other"
    assert aspect_prefix(AspectBucket.OTHER) == "other"
    assert aspect_prefix(AspectBucket.PORTRAIT) == "portrait"


def test_storage_key_requires_complete_identity():
    with pytest.raises(ValueError):
        build_storage_key(AspectBucket.PORTRAIT, AssetIdentity(id="", extension=".mp4"))


def test_reference_round_trips_through_json_shape():
    ref = AssetReference.object("tubely-videos", "portrait/abc.mp4")
    assert ref.to_dict() == {"kind": "object", "bucket": "tubely-videos", "key": "portrait/abc.mp4"}
    assert AssetReference.from_dict(ref.to_dict()) == ref
    assert AssetReference.from_dict({"kind": "local", "path": "abc.png"}).kind == ReferenceKind.LOCAL
    assert AssetReference.from_dict(None) is None


def test_malformed_reference_is_rejected():
    with pytest.raises(InvalidInputException):
        AssetReference.from_dict({"kind": "ftp", "path": "x"})
