import pytest
from botocore.exceptions import ClientError

from infrastructure.external.storage import ObjectExistsError, StorageConfig, StorageType
from infrastructure.external.storage.providers.s3 import S3Provider


class _RecordingS3Client:
    def __init__(self, error_code=None):
        self.error_code = error_code
        self.puts = []
        self.transfers = []

    def put_object(self, **kwargs):
        if self.error_code:
            raise ClientError({"Error": {"Code": self.error_code, "Message": "refused"}}, "PutObject")
        kwargs["Body"] = kwargs["Body"].read()
        self.puts.append(kwargs)
        return {"ETag": '"abc"'}

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        self.transfers.append((filename, bucket, key, ExtraArgs))


def _provider(client):
    config = StorageConfig(type=StorageType.S3, bucket="tubely-videos", region="us-east-1")
    return S3Provider(client, config)


@pytest.fixture
def processed(tmp_path):
    path = tmp_path / "upload.mp4.processing"
    path.write_bytes(b"remuxed")
    return path


@pytest.mark.asyncio
async def test_conditional_upload_sends_if_none_match(processed):
    client = _RecordingS3Client()

    result = await _provider(client).upload_file(
        processed, "landscape/abc.mp4", content_type="video/mp4", if_absent=True
    )

    assert result.size == 7 and result.bucket == "tubely-videos"
    assert client.transfers == []
    (put,) = client.puts
    assert put["IfNoneMatch"] == "*"
    assert put["Key"] == "landscape/abc.mp4"
    assert put["ContentType"] == "video/mp4"
    assert put["Body"] == b"remuxed"


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["PreconditionFailed", "ConditionalRequestConflict"])
async def test_conditional_upload_on_taken_key_is_conflict(processed, code):
    with pytest.raises(ObjectExistsError):
        await _provider(_RecordingS3Client(error_code=code)).upload_file(
            processed, "landscape/abc.mp4", if_absent=True
        )


@pytest.mark.asyncio
async def test_unconditional_upload_uses_managed_transfer(processed):
    client = _RecordingS3Client()

    await _provider(client).upload_file(processed, "landscape/abc.mp4", content_type="video/mp4")

    assert client.puts == []
    assert client.transfers == [
        (str(processed), "tubely-videos", "landscape/abc.mp4", {"ContentType": "video/mp4", "ACL": "private"})
    ]
