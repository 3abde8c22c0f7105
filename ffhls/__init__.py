"""
FFHLS - FFmpeg HLS ladder conversion
Turns one video into an adaptive-bitrate HLS stream
"""

__version__ = "1.0.0"
__author__ = "FFHLS Contributors"
__license__ = "MIT"

from ffhls.core.orchestrator import (
    ConversionOrchestrator,
    ConversionRequest,
    ConversionResult,
)
from ffhls.config.settings import Settings
from ffhls.quality.catalog import DEFAULT_CATALOG, QualityProfile
from ffhls.utils.exceptions import FFHLSError

__all__ = [
    "ConversionOrchestrator",
    "ConversionRequest",
    "ConversionResult",
    "Settings",
    "DEFAULT_CATALOG",
    "QualityProfile",
    "FFHLSError",
]
