import asyncio
import sys
from pathlib import Path

import pytest

from ffhls.config.settings import Settings
from ffhls.conversion.command_builder import HLSCommandBuilder
from ffhls.conversion.encoder import FFmpegEncoder
from ffhls.conversion.probe import MediaProbe
from ffhls.quality.catalog import DEFAULT_CATALOG
from ffhls.utils.exceptions import AnalysisError, ConversionError

PROFILE_480 = next(q for q in DEFAULT_CATALOG if q.name == "480")

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="tools are shell scripts")


def _option(cmd, flag):
    return cmd[cmd.index(flag) + 1]


def test_command_carries_fixed_hls_policy(tmp_path):
    builder = HLSCommandBuilder(Settings(ffmpeg_path="/opt/ffmpeg"))
    cmd = builder.build_command(Path("video/sample.mp4"), PROFILE_480, tmp_path)

    assert cmd[0] == "/opt/ffmpeg"
    assert _option(cmd, "-i") == str(Path("video/sample.mp4"))
    assert _option(cmd, "-b:v") == "1400k"
    assert _option(cmd, "-b:a") == "96k"
    assert _option(cmd, "-s") == "854x480"
    assert _option(cmd, "-maxrate") == "1498k"
    assert _option(cmd, "-bufsize") == "2100k"
    assert _option(cmd, "-hls_time") == "10"
    assert _option(cmd, "-hls_list_size") == "0"
    assert _option(cmd, "-hls_flags") == "independent_segments"
    assert _option(cmd, "-hls_playlist_type") == "vod"
    assert _option(cmd, "-threads") == "1"
    assert _option(cmd, "-preset") == "veryfast"
    assert _option(cmd, "-hls_segment_filename") == str(tmp_path / "480p_%03d.ts")
    assert cmd[-1] == str(tmp_path / "480p.m3u8")


@pytest.mark.parametrize("line, duration, expected", [
    ("frame=  100 fps=50 size=N/A time=00:00:30.00 bitrate=N/A speed=2x", 60.0, 50.0),
    ("time=00:01:00.00", 60.0, 100.0),
    ("time=00:02:00.00", 60.0, 100.0),
    ("time=01:00:00.00", 7200.0, 50.0),
    ("time=00:00:30.00", None, None),
    ("Stream mapping:", 60.0, None),
])
def test_parse_progress(line, duration, expected):
    assert FFmpegEncoder._parse_progress(line, duration) == expected


class _FakeStream:
    def __init__(self, chunks):
        self.chunks = list(chunks)

    async def read(self, size):
        return self.chunks.pop(0) if self.chunks else b""


def test_read_lines_splits_carriage_returns():
    async def collect():
        stream = _FakeStream([b"time=00:00:01.00\rtime=00:00:0", b"2.00\r\nlast line"])
        return [line async for line in FFmpegEncoder._read_lines(stream)]

    assert asyncio.run(collect()) == ["time=00:00:01.00", "time=00:00:02.00", "last line"]


def test_missing_ffmpeg_raises_conversion_error(tmp_path):
    encoder = FFmpegEncoder(Settings(ffmpeg_path=str(tmp_path / "no-such-ffmpeg")))

    with pytest.raises(ConversionError):
        asyncio.run(encoder.encode(tmp_path / "in.mp4", PROFILE_480, tmp_path))


@posix_only
def test_memory_is_sampled_without_known_duration(tmp_path, make_tool):
    ffmpeg = make_tool("ffmpeg", (
        'echo "Input #0, mov,mp4,m4a from source" >&2\n'
        "sleep 0.3\n"
        "for last; do :; done\n"
        ': > "$last"\n'
    ))
    encoder = FFmpegEncoder(Settings(ffmpeg_path=str(ffmpeg)))
    progress = []

    stats = asyncio.run(encoder.encode(
        tmp_path / "in.mp4", PROFILE_480, tmp_path, on_progress=progress.append
    ))

    assert stats.manifest_path == tmp_path / "480p.m3u8"
    assert stats.manifest_path.exists()
    assert stats.peak_memory_mb > 0
    assert progress == []


@posix_only
def test_nonzero_exit_reports_stderr(tmp_path, make_tool):
    ffmpeg = make_tool("ffmpeg", 'echo "in.mp4: No such file or directory" >&2\nexit 1\n')
    encoder = FFmpegEncoder(Settings(ffmpeg_path=str(ffmpeg)))

    with pytest.raises(ConversionError, match="code 1.*No such file"):
        asyncio.run(encoder.encode(tmp_path / "in.mp4", PROFILE_480, tmp_path))


@posix_only
def test_probe_reads_format_duration(tmp_path, make_tool):
    ffprobe = make_tool("ffprobe", (
        "cat <<'JSON'\n"
        '{"streams": [{"codec_type": "video", "width": 1280, "height": 720}],'
        ' "format": {"duration": "12.5"}}\n'
        "JSON\n"
    ))
    probe = MediaProbe(Settings(ffprobe_path=str(ffprobe)))

    assert asyncio.run(probe.probe_duration(tmp_path / "in.mp4")) == 12.5


@posix_only
def test_probe_without_video_stream(tmp_path, make_tool):
    ffprobe = make_tool("ffprobe", (
        "cat <<'JSON'\n"
        '{"streams": [{"codec_type": "audio"}], "format": {"duration": "3"}}\n'
        "JSON\n"
    ))
    probe = MediaProbe(Settings(ffprobe_path=str(ffprobe)))

    with pytest.raises(AnalysisError, match="No video stream"):
        asyncio.run(probe.probe_duration(tmp_path / "in.mp4"))
