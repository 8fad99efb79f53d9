import base64
import secrets

import pytest

from domain.common.exceptions import InvalidInputException, UnsupportedMediaTypeException
from domain.media import AssetNamer, NamingStrategy, media_type_to_ext


@pytest.mark.parametrize(
    "media_type, extension",
    [
        ("video/mp4", ".mp4"),
        ("image/jpeg", ".jpg"),
        ("image/png", ".png"),
        ("image/gif", ".gif"),
        ("image/webp", ".webp"),
    ],
)
def test_media_type_to_ext(media_type, extension):
    assert media_type_to_ext(media_type) == extension


def test_unknown_media_type_is_unsupported():
    with pytest.raises(UnsupportedMediaTypeException):
        media_type_to_ext("application/x-unknown-thing")


def test_random_names_are_url_safe_and_unpadded():
    namer = AssetNamer(NamingStrategy.RANDOM)
    identity = namer.name("video/mp4")
    # 32 random bytes -> 43 characters of unpadded URL-safe base64
    assert len(identity.id) == 43
    assert "=" not in identity.id and "/" not in identity.id and "+" not in identity.id
    assert len(base64.urlsafe_b64decode(identity.id + "=")) == 32
    assert identity.extension == ".mp4"


def test_random_names_never_shrink_below_minimum():
    namer = AssetNamer(NamingStrategy.RANDOM, random_bytes=8)
    assert len(namer.name("image/png").id) == 43


def test_random_naming_is_pure_apart_from_randomness_source(monkeypatch):
    monkeypatch.setattr(secrets, "token_urlsafe", lambda n: "A" * n)
    namer = AssetNamer(NamingStrategy.RANDOM)
    assert namer.name("image/png") == namer.name("image/png")


def test_two_random_names_differ():
    namer = AssetNamer()
    assert namer.name("image/png").id != namer.name("image/png").id


def test_identity_naming_uses_record_id():
    namer = AssetNamer(NamingStrategy.IDENTITY)
    identity = namer.name("image/jpeg", record_id="abc")
    assert identity.id == "abc"
    assert identity.filename == "abc.jpg"


def test_identity_naming_requires_record_id():
    with pytest.raises(InvalidInputException):
        AssetNamer(NamingStrategy.IDENTITY).name("image/jpeg")
