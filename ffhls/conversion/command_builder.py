# ffhls/conversion/command_builder.py
"""
FFmpeg command builder for HLS renditions
Every rendition is encoded with the same fixed policy so output is
comparable across qualities; only the profile values vary.
"""

from pathlib import Path
from typing import Any, Dict, List

from ffhls.config.settings import Settings
from ffhls.quality.catalog import QualityProfile
from ffhls.monitoring.logger import get_logger

logger = get_logger('command_builder')

AUDIO_BITRATE = "96k"
SEGMENT_DURATION = 10
PLAYLIST_SIZE = 0
HLS_FLAGS = "independent_segments"
PLAYLIST_TYPE = "vod"
THREADS = 1
PRESET = "veryfast"
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"


class HLSCommandBuilder:
    """
    Builds the ffmpeg invocation for one quality

    The command writes numbered segments and a quality playlist into the
    run directory and prints "time=" stats lines on stderr for progress.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_command(
        self,
        input_path: Path,
        profile: QualityProfile,
        run_dir: Path
    ) -> List[str]:
        """
        Build complete FFmpeg command

        Args:
            input_path: Source video file
            profile: Quality to encode
            run_dir: Directory receiving segments and playlist

        Returns:
            List of command arguments
        """
        cmd = [self.settings.ffmpeg_path]

        cmd.extend(self._build_global_options())
        cmd.extend(['-i', str(input_path)])
        cmd.extend(self._build_video_options(profile))
        cmd.extend(self._build_audio_options())
        cmd.extend(self._build_hls_options(profile, run_dir))
        cmd.append(str(self.manifest_path(profile, run_dir)))

        logger.debug(f"Built command: {' '.join(cmd)}")
        return cmd

    @staticmethod
    def manifest_path(profile: QualityProfile, run_dir: Path) -> Path:
        return Path(run_dir) / profile.file

    @staticmethod
    def segment_pattern(profile: QualityProfile, run_dir: Path) -> Path:
        return Path(run_dir) / profile.segments

    @staticmethod
    def _build_global_options() -> List[str]:
        # -stats keeps the time= lines even at warning log level
        return ['-hide_banner', '-loglevel', 'warning', '-stats', '-y']

    @staticmethod
    def _build_video_options(profile: QualityProfile) -> List[str]:
        return [
            '-c:v', VIDEO_CODEC,
            '-b:v', profile.bitrate,
            '-s', profile.resolution,
            '-maxrate', profile.maxrate,
            '-bufsize', profile.bufsize,
            '-threads', str(THREADS),
            '-preset', PRESET,
        ]

    @staticmethod
    def _build_audio_options() -> List[str]:
        return ['-c:a', AUDIO_CODEC, '-b:a', AUDIO_BITRATE]

    def _build_hls_options(self, profile: QualityProfile, run_dir: Path) -> List[str]:
        return [
            '-hls_time', str(SEGMENT_DURATION),
            '-hls_list_size', str(PLAYLIST_SIZE),
            '-hls_segment_filename', str(self.segment_pattern(profile, run_dir)),
            '-hls_flags', HLS_FLAGS,
            '-hls_playlist_type', PLAYLIST_TYPE,
            '-f', 'hls',
        ]

    def get_encoder_info(self) -> Dict[str, Any]:
        """Describe the fixed encoding policy"""
        return {
            'video_codec': VIDEO_CODEC,
            'audio_codec': AUDIO_CODEC,
            'audio_bitrate': AUDIO_BITRATE,
            'segment_duration': SEGMENT_DURATION,
            'playlist_type': PLAYLIST_TYPE,
            'threads': THREADS,
            'preset': PRESET,
        }
