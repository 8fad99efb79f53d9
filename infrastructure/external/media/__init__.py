"""External media toolchain adapters."""
from .ffmpeg import FFmpegMediaTool, fast_start_path, parse_probe_output

__all__ = ["FFmpegMediaTool", "fast_start_path", "parse_probe_output"]
