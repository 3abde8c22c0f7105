# ffhls/core/orchestrator.py
"""
Main conversion orchestrator
Turns one source video into a multi-quality HLS asset
"""

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from datetime import datetime

from ffhls.config.settings import Settings
from ffhls.quality.catalog import QualityProfile, QualityCatalog, build_catalog
from ffhls.quality.resolver import resolve_qualities
from ffhls.io.output_layout import generate_run_id, prepare_output_dir
from ffhls.io.source_cleanup import SourceCleanup
from ffhls.conversion.encoder import FFmpegEncoder
from ffhls.conversion.command_builder import HLSCommandBuilder
from ffhls.conversion.probe import MediaProbe
from ffhls.core.job_runner import JobResult, JobRunner, JobState, ProgressCallback
from ffhls.manifest.master_playlist import write_master_manifest
from ffhls.monitoring.logger import get_logger
from ffhls.monitoring.notifier import Notifier
from ffhls.utils.exceptions import (
    AnalysisError,
    EncodeError,
    InvalidProfileError,
    InvalidRequestError,
    SourceNotFoundError,
)

logger = get_logger('orchestrator')
perf_logger = get_logger('performance')


@dataclass
class ConversionRequest:
    """One call's worth of input"""
    source_file_name: str
    progress_callback: Optional[ProgressCallback] = None
    qualities: Optional[Sequence[str]] = None
    run_id: Optional[str] = None
    catalog: Optional[Sequence] = None


@dataclass
class ConversionRun:
    """State of a conversion in flight"""
    run_id: str
    source_path: Path
    output_dir: Path
    qualities: Tuple[QualityProfile, ...]
    job_states: Dict[str, JobState] = field(default_factory=dict)

    def __post_init__(self):
        for q in self.qualities:
            self.job_states.setdefault(q.name, JobState(quality=q.name))


@dataclass
class ConversionResult:
    """Outcome of a successful conversion"""
    run_id: str
    output_dir: Path
    master_manifest: Path
    qualities: List[str]
    jobs: Dict[str, JobResult]
    duration: float
    source_removed: bool = False


class ConversionOrchestrator:
    """
    Coordinates one source-to-HLS conversion

    Responsibilities:
    - Validate the catalog and request before touching the filesystem
    - Lay out the run directory
    - Run one encode job per quality, all at once
    - Wait for every job, then write the master playlist
    - Remove the source once, if configured
    """

    def __init__(
        self,
        settings: Settings,
        encoder=None,
        probe=None,
        notifier: Optional[Notifier] = None,
        id_factory: Callable[[], str] = generate_run_id
    ):
        self.settings = settings
        self.encoder = encoder or FFmpegEncoder(settings)
        self.probe = probe or MediaProbe(settings)
        self.notifier = notifier
        if self.notifier is None and settings.webhook_url:
            self.notifier = Notifier(settings.webhook_url)
        self.id_factory = id_factory

    async def hls_convert(
        self,
        source_file_name: str,
        progress_callback: Optional[ProgressCallback] = None,
        qualities: Optional[Sequence[str]] = None,
        run_id: Optional[str] = None,
        catalog: Optional[Sequence] = None
    ) -> ConversionResult:
        """Convert source_file_name from the input folder into HLS"""
        return await self.convert(ConversionRequest(
            source_file_name=source_file_name,
            progress_callback=progress_callback,
            qualities=qualities,
            run_id=run_id,
            catalog=catalog
        ))

    async def convert(self, request: ConversionRequest) -> ConversionResult:
        """
        Run a conversion

        Returns:
            ConversionResult describing the produced asset

        Raises:
            InvalidProfileError, InvalidRequestError, EmptySelectionError,
            SourceNotFoundError, FileSystemError: Before any job starts
            EncodeError: If any quality failed; finished siblings stay on disk
        """
        start_time = datetime.now()
        run = self._prepare_run(request)

        logger.info(
            f"Converting video from {run.source_path} to HLS format at {run.output_dir}"
        )
        logger.debug(f"Encoder policy: {HLSCommandBuilder(self.settings).get_encoder_info()}")

        duration = await self._probe_duration(run.source_path)
        cleanup = SourceCleanup(run.source_path, enabled=self.settings.input_cleanup)

        try:
            jobs = await self._execute_jobs(run, request.progress_callback, cleanup, duration)
        except EncodeError as e:
            if self.notifier:
                await self.notifier.notify_failure(
                    run.source_path.name, e.quality, str(e.cause)
                )
            raise

        master_path = write_master_manifest(run.output_dir, run.qualities)
        source_removed = cleanup.execute()

        elapsed = (datetime.now() - start_time).total_seconds()
        names = [q.name for q in run.qualities]
        logger.info("All HLS conversions completed successfully.")

        perf_logger.info("Conversion run completed", extra={
            'run_id': run.run_id,
            'source': run.source_path.name,
            'qualities': names,
            'duration': elapsed,
            'peak_memory_mb': max((j.peak_memory_mb for j in jobs.values()), default=0.0),
            'output_dir': str(run.output_dir)
        })

        if self.notifier:
            await self.notifier.notify_completion(
                run.source_path.name, run.run_id, names, elapsed
            )

        return ConversionResult(
            run_id=run.run_id,
            output_dir=run.output_dir,
            master_manifest=master_path,
            qualities=names,
            jobs=jobs,
            duration=elapsed,
            source_removed=source_removed
        )

    def _prepare_run(self, request: ConversionRequest) -> ConversionRun:
        """Validate everything, in order, then create the run directory"""
        catalog = self._resolve_catalog(request.catalog)

        if not request.source_file_name:
            raise InvalidRequestError("Input file name is required.")

        qualities = resolve_qualities(
            catalog,
            request.qualities if request.qualities else self.settings.default_qualities
        )

        source_path = Path(self.settings.input_folder) / request.source_file_name
        if not source_path.is_file():
            raise SourceNotFoundError(f"Input file does not exist: {source_path}")

        run_id = request.run_id or self.id_factory()
        output_dir = prepare_output_dir(self.settings.output_path, run_id)

        return ConversionRun(
            run_id=run_id,
            source_path=source_path,
            output_dir=output_dir,
            qualities=qualities
        )

    def _resolve_catalog(self, catalog: Optional[Sequence]) -> QualityCatalog:
        if catalog is None:
            return self.settings.catalog()

        if isinstance(catalog, (str, bytes)) or not isinstance(catalog, (list, tuple)):
            raise InvalidProfileError(
                f"Catalog must be a list of qualities, got {type(catalog).__name__}"
            )
        return build_catalog(catalog)

    async def _probe_duration(self, source_path: Path) -> Optional[float]:
        try:
            return await self.probe.probe_duration(source_path)
        except AnalysisError as e:
            logger.warning(
                f"Cannot read duration of {source_path.name}, "
                f"progress will only report start and end: {e}"
            )
            return None

    async def _execute_jobs(
        self,
        run: ConversionRun,
        progress_callback: Optional[ProgressCallback],
        cleanup: SourceCleanup,
        duration: Optional[float]
    ) -> Dict[str, JobResult]:
        """Start all jobs and wait until each one has finished or failed"""
        runner = JobRunner(
            self.encoder,
            progress_callback=self._safe_callback(progress_callback),
            cleanup=cleanup
        )

        tasks = [
            asyncio.create_task(
                runner.run(
                    run.source_path,
                    profile,
                    run.output_dir,
                    duration=duration,
                    state=run.job_states[profile.name]
                ),
                name=f"hls-{profile.name}"
            )
            for profile in run.qualities
        ]

        results: Dict[str, JobResult] = {}
        failures: List[EncodeError] = []

        try:
            for finished in asyncio.as_completed(tasks):
                try:
                    result = await finished
                except EncodeError as e:
                    failures.append(e)
                else:
                    results[result.quality] = result
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if failures:
            first = failures[0]
            first.sibling_errors = failures[1:]
            for other in first.sibling_errors:
                logger.error(f"Quality {other.quality} also failed: {other.cause}")
            raise first

        return {q.name: results[q.name] for q in run.qualities}

    @staticmethod
    def _safe_callback(callback: Optional[ProgressCallback]) -> Optional[ProgressCallback]:
        """Keep a faulty progress sink from failing the encode"""
        if callback is None:
            return None

        def report(quality: str, percent: int):
            try:
                callback(quality, percent)
            except Exception as e:
                logger.warning(f"Progress callback failed for {quality}: {e}")

        return report
