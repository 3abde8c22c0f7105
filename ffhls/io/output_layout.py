# ffhls/io/output_layout.py
"""
Output directory layout for conversion runs

<output_path>/<run_id>/
    master.m3u8
    <quality>.m3u8
    <quality>_<NNN>.ts
"""

import uuid
from pathlib import Path
from typing import Callable, Optional, Union

from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import FileSystemError, InvalidRequestError

logger = get_logger('output_layout')


def generate_run_id() -> str:
    """Collision-resistant directory name for a run"""
    return str(uuid.uuid4())


def _check_run_id(run_id: str):
    if not isinstance(run_id, str) or not run_id.strip():
        raise InvalidRequestError("Run identifier must be a non-empty string")

    if run_id in ('.', '..') or '/' in run_id or '\\' in run_id:
        raise InvalidRequestError(
            f"Run identifier must be a single directory name, got {run_id!r}"
        )


def prepare_output_dir(
    base_path: Union[str, Path],
    run_id: Optional[str] = None,
    id_factory: Callable[[], str] = generate_run_id
) -> Path:
    """
    Create the run directory for one conversion

    Both the base path and the run directory are created if missing;
    existing directories are reused. Reusing a run_id reuses its directory.

    Args:
        base_path: Root output directory
        run_id: Explicit run directory name (generated when omitted or empty)
        id_factory: Unique id generator

    Returns:
        Absolute path of the run directory

    Raises:
        InvalidRequestError: If run_id is not a plain directory name
        FileSystemError: On permission or disk errors
    """
    if run_id:
        _check_run_id(run_id)
    else:
        run_id = id_factory()

    base = Path(base_path)
    run_dir = base / run_id

    try:
        base.mkdir(parents=True, exist_ok=True)
        run_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"Cannot create output directory {run_dir}: {e}")

    run_dir = run_dir.resolve()
    logger.debug(f"Output directory ready: {run_dir}")
    return run_dir
