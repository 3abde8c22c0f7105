# ffhls/manifest/master_playlist.py
"""
Master playlist generation
"""

from pathlib import Path
from typing import Sequence

from ffhls.quality.catalog import QualityProfile
from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import FileSystemError

logger = get_logger('master_playlist')

MASTER_PLAYLIST_NAME = "master.m3u8"
MASTER_PLAYLIST_HEADER = "#EXTM3U\n"


def render_master_manifest(qualities: Sequence[QualityProfile]) -> str:
    """Render master playlist text, one variant per quality in the given order"""
    variants = "\n".join(
        f"#EXT-X-STREAM-INF:BANDWIDTH={q.bandwidth},RESOLUTION={q.resolution}\n{q.file}"
        for q in qualities
    )
    return MASTER_PLAYLIST_HEADER + variants


def write_master_manifest(run_dir: Path, qualities: Sequence[QualityProfile]) -> Path:
    """
    Write master.m3u8 into the run directory, replacing any previous one

    Raises:
        FileSystemError: If the file cannot be written
    """
    path = Path(run_dir) / MASTER_PLAYLIST_NAME
    content = render_master_manifest(qualities)

    try:
        path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise FileSystemError(f"Cannot write master playlist {path}: {e}")

    logger.info(f"Master playlist generated at {path}")
    return path
