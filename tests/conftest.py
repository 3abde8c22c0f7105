import asyncio
from pathlib import Path

import pytest

from ffhls.config.settings import Settings
from ffhls.conversion.encoder import EncodeStats
from ffhls.utils.exceptions import ConversionError


class FakeEncoder:
    """
    Scripted stand-in for FFmpegEncoder

    Writes a playlist and one segment per quality so tests can check what
    stays on disk. `steps` maps quality name to progress values to emit;
    `failures` maps quality name to an error message; `delays` to seconds.
    """

    def __init__(self, steps=None, failures=None, delays=None):
        self.steps = steps or {}
        self.failures = failures or {}
        self.delays = delays or {}
        self.calls = []

    async def encode(self, source_path, profile, run_dir, duration=None,
                     on_start=None, on_progress=None):
        self.calls.append(profile.name)
        if on_start:
            on_start(f"ffmpeg -i {source_path} {profile.file}")

        await asyncio.sleep(self.delays.get(profile.name, 0))

        segment = Path(run_dir) / (profile.segments % 0)
        segment.write_bytes(b"ts")

        for value in self.steps.get(profile.name, [0, 50, 100]):
            if on_progress:
                on_progress(value)
            await asyncio.sleep(0)

        if profile.name in self.failures:
            raise ConversionError(self.failures[profile.name])

        manifest = Path(run_dir) / profile.file
        manifest.write_text("#EXTM3U\n")
        return EncodeStats(manifest_path=manifest, duration=0.01, peak_memory_mb=12.5)


class FakeProbe:
    def __init__(self, duration=60.0):
        self.duration = duration
        self.calls = 0

    async def probe_duration(self, path):
        self.calls += 1
        return self.duration


@pytest.fixture()
def input_dir(tmp_path):
    folder = tmp_path / "video"
    folder.mkdir()
    return folder


@pytest.fixture()
def output_dir(tmp_path):
    return tmp_path / "output"


@pytest.fixture()
def sample_video(input_dir):
    path = input_dir / "sample.mp4"
    path.write_bytes(b"not really a video")
    return path


@pytest.fixture()
def settings(input_dir, output_dir, tmp_path):
    return Settings(
        input_folder=input_dir,
        output_path=output_dir,
        log_dir=tmp_path / "logs"
    )


@pytest.fixture()
def fake_encoder():
    return FakeEncoder()


@pytest.fixture()
def fake_probe():
    return FakeProbe()


@pytest.fixture()
def encoder_factory():
    return FakeEncoder


@pytest.fixture()
def make_tool(tmp_path):
    """Write an executable shell script that stands in for ffmpeg or ffprobe"""
    def make(name, body):
        folder = tmp_path / "bin"
        folder.mkdir(exist_ok=True)
        path = folder / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(0o755)
        return path
    return make
