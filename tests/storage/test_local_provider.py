import pytest

from application.ports.storage import StorageKeyConflict, StoragePortError
from infrastructure.adapters.storage_port import StorageProviderPortAdapter
from infrastructure.external.storage import ObjectExistsError, StorageConfig, StorageType, ValidationError
from infrastructure.external.storage.providers.local import LocalProvider, build_local_provider
from infrastructure.external.storage.utils import LoggingMiddleware, apply_middleware


@pytest.fixture
def provider(tmp_path):
    config = StorageConfig(
        type=StorageType.LOCAL,
        local_base_path=str(tmp_path / "assets"),
        public_base_url="http://localhost:8091/assets/",
        upload_chunk_size=4,
    )
    return LocalProvider(config)


@pytest.mark.asyncio
async def test_upload_file_copies_in_chunks(provider, tmp_path):
    src = tmp_path / "scratch.bin"
    src.write_bytes(b"0123456789")

    result = await provider.upload_file(src, "landscape/abc.mp4", content_type="video/mp4")

    assert (provider.base_path / "landscape" / "abc.mp4").read_bytes() == b"0123456789"
    assert result.size == 10
    assert result.content_type == "video/mp4"
    assert result.url == "http://localhost:8091/assets/landscape/abc.mp4"
    # no sidecar without metadata
    assert not (provider.base_path / "landscape" / "abc.mp4.meta").exists()


@pytest.mark.asyncio
async def test_exists_and_delete(provider):
    await provider.upload(b"png", "abc.png", metadata={"video_id": "v1"}, content_type="image/png")
    assert await provider.exists("abc.png")
    assert (provider.base_path / "abc.png.meta").exists()

    assert await provider.delete("abc.png") is True
    assert not await provider.exists("abc.png")
    assert not (provider.base_path / "abc.png.meta").exists()
    assert await provider.delete("abc.png") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["../escape.png", "a/../../escape.png", ""])
async def test_keys_cannot_escape_base_path(provider, key):
    with pytest.raises(ValidationError):
        await provider.upload(b"x", key)


@pytest.mark.asyncio
async def test_presign_returns_static_url(provider):
    presigned = await provider.generate_presigned_url("abc.png", expires_in=60)
    assert presigned.url == "http://localhost:8091/assets/abc.png"
    assert presigned.expires_in == 60


@pytest.mark.asyncio
async def test_build_local_provider_checks_health(tmp_path):
    provider = await build_local_provider(StorageConfig(local_base_path=str(tmp_path / "store")))
    assert await provider.health_check()


@pytest.mark.asyncio
async def test_port_adapter_translates_errors(provider):
    port = StorageProviderPortAdapter(apply_middleware(provider, [LoggingMiddleware("assets")]))
    assert port.info().type == "local"

    outcome = await port.upload(b"jpeg", "abc.jpg", content_type="image/jpeg")
    assert outcome.key == "abc.jpg" and outcome.size == 4
    assert await port.exists("abc.jpg")

    with pytest.raises(StoragePortError):
        await port.upload(b"x", "../../etc/passwd")


@pytest.mark.asyncio
async def test_conditional_upload_never_replaces_existing_object(provider, tmp_path):
    first = tmp_path / "first.jpg"
    first.write_bytes(b"first")
    second = tmp_path / "second.jpg"
    second.write_bytes(b"second")

    await provider.upload_file(first, "abc.jpg", if_absent=True)
    with pytest.raises(ObjectExistsError):
        await provider.upload_file(second, "abc.jpg", if_absent=True)

    assert (provider.base_path / "abc.jpg").read_bytes() == b"first"
    # staging copies are always cleaned up
    assert sorted(p.name for p in provider.base_path.iterdir()) == ["abc.jpg"]


@pytest.mark.asyncio
async def test_port_adapter_reports_key_conflicts(provider, tmp_path):
    port = StorageProviderPortAdapter(apply_middleware(provider, [LoggingMiddleware("assets")]))
    src = tmp_path / "thumb.png"
    src.write_bytes(b"png")

    await port.upload_file(src, "abc.png", if_absent=True)
    with pytest.raises(StorageKeyConflict):
        await port.upload_file(src, "abc.png", if_absent=True)

    # unconditional writes still replace
    src.write_bytes(b"png2")
    await port.upload_file(src, "abc.png")
    assert (provider.base_path / "abc.png").read_bytes() == b"png2"
