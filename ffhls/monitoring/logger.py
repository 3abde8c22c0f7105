# ffhls/monitoring/logger.py
"""
Logging configuration for FFHLS
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from datetime import datetime

PERFORMANCE_LOGGER = 'ffhls.performance'

# Attributes passed through `extra=` that the structured log keeps
STRUCTURED_FIELDS = (
    'run_id', 'quality', 'qualities', 'source', 'duration',
    'failed', 'peak_memory_mb', 'output_dir'
)


class ColoredFormatter(logging.Formatter):
    """Colored level names on an interactive terminal"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, *args, stream=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.stream = stream or sys.stderr

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname)
        if color and getattr(self.stream, 'isatty', lambda: False)():
            message = message.replace(
                record.levelname, f"{color}{record.levelname}{self.RESET}", 1
            )
        return message


class StructuredFormatter(logging.Formatter):
    """One dict per line, for run summaries"""

    def format(self, record):
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return str(log_data)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    log_dir: Path = Path("logs"),
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Setup logging for the CLI

    Creates three log files in log_dir:
    - ffhls.log: All logs
    - errors.log: Errors only
    - performance.log: One structured line per conversion run
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    # Console goes to stderr so progress bars own stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr
    ))
    root_logger.addHandler(console_handler)

    if log_file is None:
        log_file = log_dir / "ffhls.log"

    main_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    main_handler.setLevel(logging.DEBUG)
    main_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s [%(levelname)8s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(main_handler)

    error_handler = TimedRotatingFileHandler(
        log_dir / "errors.log",
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s.%(funcName)s:%(lineno)d\n'
            '%(message)s\n',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(error_handler)

    perf_handler = RotatingFileHandler(
        log_dir / "performance.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    perf_handler.setLevel(logging.INFO)
    perf_handler.setFormatter(StructuredFormatter())

    perf_logger = logging.getLogger(PERFORMANCE_LOGGER)
    perf_logger.handlers.clear()
    perf_logger.addHandler(perf_handler)
    perf_logger.propagate = False

    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)

    logger = logging.getLogger('ffhls')
    logger.info(f"Logging initialized at {level} level")
    logger.debug(f"Log files: {log_dir.absolute()}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance"""
    return logging.getLogger(f'ffhls.{name}')
