# ffhls/conversion/encoder.py
"""
HLS encoder - FFmpeg wrapper
"""

import asyncio
import re
from pathlib import Path
from typing import Optional, Callable
from dataclasses import dataclass
from datetime import datetime

import psutil

from ffhls.config.settings import Settings
from ffhls.conversion.command_builder import HLSCommandBuilder
from ffhls.quality.catalog import QualityProfile
from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import ConversionError

logger = get_logger('encoder')

_TIME_RE = re.compile(r'time=(\d+):(\d+):(\d+(?:\.\d+)?)')

# Keep this much stderr for error reports
STDERR_TAIL = 20


@dataclass
class EncodeStats:
    """What one ffmpeg run produced"""
    manifest_path: Path
    duration: float
    peak_memory_mb: float = 0.0


class FFmpegEncoder:
    """
    Runs ffmpeg for one quality and reports its lifecycle

    Events:
    - on_start(command_line): the spawned command, for diagnostics
    - on_progress(percent): float percent, whenever a stats line is parsed
    - terminal: encode() returns EncodeStats or raises ConversionError
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.command_builder = HLSCommandBuilder(settings)

    async def encode(
        self,
        source_path: Path,
        profile: QualityProfile,
        run_dir: Path,
        duration: Optional[float] = None,
        on_start: Optional[Callable[[str], None]] = None,
        on_progress: Optional[Callable[[float], None]] = None
    ) -> EncodeStats:
        """
        Encode one rendition into run_dir

        Args:
            source_path: Input video path
            profile: Quality to produce
            run_dir: Output directory for segments and playlist
            duration: Source duration in seconds, needed for percentages
            on_start: Called with the command line once ffmpeg is spawned
            on_progress: Called with percent complete

        Raises:
            ConversionError: If ffmpeg fails or produces no playlist
        """
        start_time = datetime.now()
        manifest_path = self.command_builder.manifest_path(profile, run_dir)
        cmd = self.command_builder.build_command(source_path, profile, run_dir)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise ConversionError(f"Cannot start ffmpeg: {e}")

        command_line = ' '.join(cmd)
        logger.debug(f"Spawned ffmpeg with command: {command_line}")
        if on_start:
            on_start(command_line)

        monitor = _ProcessMonitor(process.pid)
        stderr_tail = []

        try:
            async for line in self._read_lines(process.stderr):
                monitor.sample()
                stderr_tail.append(line)
                del stderr_tail[:-STDERR_TAIL]

                if 'error' in line.lower():
                    logger.error(f"ffmpeg stderr [{profile.name}]: {line}")

                progress = self._parse_progress(line, duration)
                if progress is not None and on_progress:
                    on_progress(progress)

            await process.wait()
        except asyncio.CancelledError:
            # Never leave ffmpeg running behind a cancelled caller
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        if process.returncode != 0:
            details = ' | '.join(stderr_tail[-5:])
            raise ConversionError(
                f"FFmpeg error (code {process.returncode}): {details}"
            )

        if not manifest_path.exists():
            raise ConversionError(f"Playlist not created: {manifest_path.name}")

        return EncodeStats(
            manifest_path=manifest_path,
            duration=(datetime.now() - start_time).total_seconds(),
            peak_memory_mb=monitor.peak_memory_mb
        )

    @staticmethod
    async def _read_lines(stream):
        """
        Yield stderr lines split on both \\n and \\r

        ffmpeg rewrites its stats line in place with carriage returns.
        """
        buffer = b''
        while True:
            chunk = await stream.read(4096)
            if not chunk:
                break
            buffer += chunk
            parts = re.split(rb'[\r\n]', buffer)
            buffer = parts.pop()
            for part in parts:
                if part.strip():
                    yield part.decode('utf-8', errors='ignore').strip()
        if buffer.strip():
            yield buffer.decode('utf-8', errors='ignore').strip()

    @staticmethod
    def _parse_progress(line: str, duration: Optional[float]) -> Optional[float]:
        """
        Parse FFmpeg progress from a stderr stats line

        Returns:
            Progress percentage (0-100) or None
        """
        time_match = _TIME_RE.search(line)
        if time_match and duration:
            hours = int(time_match.group(1))
            minutes = int(time_match.group(2))
            seconds = float(time_match.group(3))

            current_time = hours * 3600 + minutes * 60 + seconds
            return min(100.0, (current_time / duration) * 100)

        return None


class _ProcessMonitor:
    """Tracks peak resident memory of an encoder process"""

    def __init__(self, pid: int):
        self.peak_memory_mb = 0.0
        try:
            self._process = psutil.Process(pid)
        except psutil.Error:
            self._process = None

    def sample(self):
        if self._process is None:
            return
        try:
            rss = self._process.memory_info().rss / (1024 * 1024)
        except psutil.Error:
            self._process = None
            return
        self.peak_memory_mb = max(self.peak_memory_mb, rss)
