"""
Custom exceptions for FFHLS
"""

from typing import Optional, Sequence


class FFHLSError(Exception):
    """Base exception for all FFHLS errors"""
    pass


class ConfigurationError(FFHLSError):
    """Configuration-related errors"""
    pass


class AnalysisError(FFHLSError):
    """Source probing errors"""
    pass


class InvalidProfileError(FFHLSError):
    """Malformed quality catalog or profile"""
    pass


class InvalidRequestError(FFHLSError):
    """Bad conversion request input (quality names, file name, run id)"""

    def __init__(self, message: str, valid_names: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.valid_names = list(valid_names) if valid_names is not None else []


class EmptySelectionError(FFHLSError):
    """No qualities left to encode after resolution"""
    pass


class SourceNotFoundError(FFHLSError):
    """Input video file does not exist"""
    pass


class FileSystemError(FFHLSError):
    """File system operation errors"""
    pass


class ConversionError(FFHLSError):
    """Conversion process errors"""
    pass


class EncodeError(ConversionError):
    """A single quality's encoder invocation failed"""

    def __init__(self, quality: str, cause: BaseException):
        super().__init__(f"Encoding failed for quality {quality}: {cause}")
        self.quality = quality
        self.cause = cause
        self.sibling_errors: list = []
