# ffhls/conversion/probe.py
"""
Source media probing
"""

import asyncio
import json
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from ffhls.config.settings import Settings
from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import AnalysisError

logger = get_logger('probe')


@dataclass
class SourceInfo:
    """What the encoder needs to know about the source"""
    file_path: Path
    duration: float


class MediaProbe:
    """
    Reads source metadata with ffprobe

    Duration is what turns ffmpeg's time= stats into a percentage.
    """

    def __init__(self, settings: Settings):
        self.ffprobe_path = settings.ffprobe_path

    async def probe(self, video_path: Path) -> SourceInfo:
        """
        Probe a video file

        Raises:
            AnalysisError: If ffprobe fails or the file has no video stream
        """
        logger.debug(f"Probing: {video_path.name}")
        probe_data = await self._run_ffprobe(video_path)

        video_stream = self._find_stream(probe_data, 'video')
        if not video_stream:
            raise AnalysisError(f"No video stream found in {video_path.name}")

        format_info = probe_data.get('format', {})
        try:
            duration = float(format_info.get('duration') or video_stream.get('duration') or 0)
        except (TypeError, ValueError):
            duration = 0.0

        return SourceInfo(
            file_path=video_path,
            duration=duration
        )

    async def probe_duration(self, video_path: Path) -> Optional[float]:
        """Duration in seconds, or None when unknown"""
        info = await self.probe(video_path)
        return info.duration if info.duration > 0 else None

    async def _run_ffprobe(self, video_path: Path) -> dict:
        """Run ffprobe and return JSON output"""
        cmd = [
            self.ffprobe_path,
            '-v', 'quiet',
            '-print_format', 'json',
            '-show_format',
            '-show_streams',
            '-show_error',
            str(video_path)
        ]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise AnalysisError(f"ffprobe execution failed: {e}")

        if process.returncode != 0:
            error_msg = stderr.decode('utf-8', errors='ignore')
            raise AnalysisError(
                f"ffprobe failed with code {process.returncode}: {error_msg}"
            )

        try:
            return json.loads(stdout.decode('utf-8'))
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Failed to parse ffprobe output: {e}")

    @staticmethod
    def _find_stream(probe_data: dict, codec_type: str) -> Optional[dict]:
        for stream in probe_data.get('streams', []):
            if stream.get('codec_type') != codec_type:
                continue
            # Skip cover art
            if stream.get('disposition', {}).get('attached_pic', 0):
                continue
            return stream
        return None
