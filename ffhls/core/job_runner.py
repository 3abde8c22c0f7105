# ffhls/core/job_runner.py
"""
Per-quality encode job
Wraps one encoder invocation with lifecycle state and normalized progress
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from dataclasses import dataclass
from datetime import datetime

from ffhls.quality.catalog import QualityProfile
from ffhls.io.source_cleanup import SourceCleanup
from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import EncodeError

logger = get_logger('job_runner')

ProgressCallback = Callable[[str, int], None]


class JobStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class JobState:
    """Live state of one quality's job"""
    quality: str
    status: JobStatus = JobStatus.PENDING
    percent: int = 0
    error: Optional[BaseException] = None


@dataclass
class JobResult:
    """Result of a finished job"""
    quality: str
    manifest_path: Path
    duration: float
    peak_memory_mb: float = 0.0


class JobRunner:
    """
    Runs one encode job for one quality

    Progress reported to the callback is an integer in 0-100 that never
    decreases for a given quality, ends at 100 on success, and is keyed
    by quality name.
    """

    def __init__(
        self,
        encoder,
        progress_callback: Optional[ProgressCallback] = None,
        cleanup: Optional[SourceCleanup] = None
    ):
        self.encoder = encoder
        self.progress_callback = progress_callback
        self.cleanup = cleanup

    async def run(
        self,
        source_path: Path,
        profile: QualityProfile,
        run_dir: Path,
        duration: Optional[float] = None,
        state: Optional[JobState] = None
    ) -> JobResult:
        """
        Encode profile from source_path into run_dir

        Raises:
            EncodeError: If the encoder fails; written segments are kept
        """
        state = state or JobState(quality=profile.name)
        state.status = JobStatus.RUNNING
        start_time = datetime.now()

        logger.info(f"Processing quality: {profile.name} ({profile.resolution})")
        self._report(state, 0, force=True)

        def on_start(command_line: str):
            logger.debug(f"[{profile.name}] started: {command_line}")

        def on_progress(percent: float):
            self._report(state, percent)

        try:
            stats = await self.encoder.encode(
                source_path,
                profile,
                run_dir,
                duration=duration,
                on_start=on_start,
                on_progress=on_progress
            )
        except Exception as e:
            state.status = JobStatus.FAILED
            state.error = e
            logger.error(f"Error during HLS conversion for {profile.name}: {e}")
            raise EncodeError(profile.name, e) from e

        if state.percent < 100:
            self._report(state, 100)
        state.status = JobStatus.DONE

        if self.cleanup is not None:
            self.cleanup.schedule(profile.name)

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"HLS conversion for {profile.name} completed in {elapsed:.1f}s.")

        return JobResult(
            quality=profile.name,
            manifest_path=Path(run_dir) / profile.file,
            duration=elapsed,
            peak_memory_mb=getattr(stats, 'peak_memory_mb', 0.0)
        )

    def _report(self, state: JobState, percent: float, force: bool = False):
        """Emit percent if it moves forward"""
        value = max(0, min(100, int(percent)))
        if value <= state.percent and not force:
            return

        state.percent = max(state.percent, value)
        if self.progress_callback:
            self.progress_callback(state.quality, state.percent)
