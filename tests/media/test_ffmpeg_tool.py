import json
import subprocess

import anyio
import pytest

from domain.common.exceptions import MediaProbeException, MediaProcessingException
from domain.media import Geometry
from infrastructure.external.media import FFmpegMediaTool, fast_start_path, parse_probe_output


class _ProcessRecorder:
    def __init__(self, returncode=0, stdout=b"", stderr=b"", on_call=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.on_call = on_call
        self.commands = []

    async def __call__(self, command, check=True, **kwargs):
        self.commands.append(list(command))
        assert check is False
        if self.on_call:
            self.on_call(command)
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)


def _probe_payload(*streams):
    return json.dumps({"streams": list(streams)}).encode()


def test_remux_command_relocates_metadata_with_stream_copy(tmp_path):
    tool = FFmpegMediaTool("ffmpeg", "ffprobe")
    src = tmp_path / "upload.mp4"
    command = tool.remux_command(src, fast_start_path(src))
    assert command[0] == "ffmpeg"
    assert ["-c", "copy"] == command[command.index("-c"):command.index("-c") + 2]
    assert "faststart" in command
    assert command[-1].endswith("upload.mp4.processing")


@pytest.mark.asyncio
async def test_remux_returns_sibling_output(tmp_path, monkeypatch):
    src = tmp_path / "upload.mp4"
    src.write_bytes(b"movie")

    def produce_output(command):
        (tmp_path / "upload.mp4.processing").write_bytes(b"fast movie")

    recorder = _ProcessRecorder(on_call=produce_output)
    monkeypatch.setattr(anyio, "run_process", recorder)

    output = await FFmpegMediaTool().remux(src)
    assert output == tmp_path / "upload.mp4.processing"
    assert src.read_bytes() == b"movie"
    assert recorder.commands[0][0] == "ffmpeg"


@pytest.mark.asyncio
async def test_remux_non_zero_exit_removes_partial_output(tmp_path, monkeypatch):
    src = tmp_path / "upload.mp4"
    src.write_bytes(b"not really a movie")

    def produce_partial(command):
        (tmp_path / "upload.mp4.processing").write_bytes(b"half")

    monkeypatch.setattr(
        anyio, "run_process", _ProcessRecorder(returncode=1, stderr=b"moov atom not found", on_call=produce_partial)
    )

    with pytest.raises(MediaProcessingException) as exc_info:
        await FFmpegMediaTool().remux(src)
    assert exc_info.value.details == {"returncode": 1}
    assert not (tmp_path / "upload.mp4.processing").exists()
    # stderr stays in the logs, never in the client-facing error
    assert "moov" not in exc_info.value.message


@pytest.mark.asyncio
async def test_remux_missing_binary_is_processing_error(tmp_path, monkeypatch):
    async def missing_binary(command, check=True, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(anyio, "run_process", missing_binary)
    with pytest.raises(MediaProcessingException):
        await FFmpegMediaTool(ffmpeg_binary="/nope/ffmpeg").remux(tmp_path / "a.mp4")


@pytest.mark.asyncio
async def test_probe_reads_first_video_stream(tmp_path, monkeypatch):
    payload = _probe_payload(
        {"codec_type": "audio", "sample_rate": "48000"},
        {"codec_type": "video", "width": 1080, "height": 1920},
    )
    recorder = _ProcessRecorder(stdout=payload)
    monkeypatch.setattr(anyio, "run_process", recorder)

    geometry = await FFmpegMediaTool().probe(tmp_path / "a.mp4")
    assert geometry == Geometry(width=1080, height=1920)
    assert recorder.commands[0][:1] == ["ffprobe"]
    assert "-show_streams" in recorder.commands[0]


@pytest.mark.asyncio
async def test_probe_with_zero_streams_is_probe_error(tmp_path, monkeypatch):
    monkeypatch.setattr(anyio, "run_process", _ProcessRecorder(stdout=_probe_payload()))
    with pytest.raises(MediaProbeException):
        await FFmpegMediaTool().probe(tmp_path / "a.mp4")


@pytest.mark.asyncio
async def test_probe_non_zero_exit_is_probe_error(tmp_path, monkeypatch):
    monkeypatch.setattr(anyio, "run_process", _ProcessRecorder(returncode=1, stderr=b"Invalid data"))
    with pytest.raises(MediaProbeException):
        await FFmpegMediaTool().probe(tmp_path / "a.mp4")


@pytest.mark.parametrize(
    "stdout",
    [
        b"",
        b"not json",
        b"[]",
        _probe_payload({"codec_type": "audio"}),
        _probe_payload({"codec_type": "video", "width": 0, "height": 720}),
        _probe_payload({"codec_type": "video", "width": "1280", "height": "720"}),
    ],
)
def test_parse_probe_output_rejects_unusable_payloads(stdout):
    with pytest.raises(MediaProbeException):
        parse_probe_output(stdout)
