# ffhls/io/source_cleanup.py
"""
Single-shot removal of the source video after a successful run
"""

from pathlib import Path

from ffhls.monitoring.logger import get_logger

logger = get_logger('source_cleanup')


class SourceCleanup:
    """
    Deletes the source file at most once

    Jobs call schedule() when they succeed; the orchestrator calls
    execute() after every job has finished. Only the first execute()
    after a schedule() touches the filesystem.
    """

    def __init__(self, source_path: Path, enabled: bool = True):
        self.source_path = Path(source_path)
        self.enabled = enabled
        self.requested_by: list = []
        self.attempts = 0
        self._done = False

    @property
    def scheduled(self) -> bool:
        return bool(self.requested_by)

    def schedule(self, quality: str):
        if self.enabled:
            self.requested_by.append(quality)

    def execute(self) -> bool:
        """
        Remove the source if scheduled and not yet removed

        Returns:
            True if the file was removed by this call
        """
        if not self.enabled or not self.scheduled or self._done:
            return False

        self._done = True
        self.attempts += 1

        try:
            self.source_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete input video {self.source_path}: {e}")
            return False

        logger.info(f"Input video {self.source_path.name} deleted after conversion.")
        return True
