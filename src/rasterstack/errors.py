"""Custom exception hierarchy for rasterstack."""

from typing import Optional


class RasterStackError(Exception):
    """Base exception for rasterstack library."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(RasterStackError):
    """Missing files, missing bounds variables and unwritable data types."""
    pass


class ModeConversionError(RasterStackError):
    """Index mode cannot be converted or interpreted as requested."""
    pass


class MergeConflictError(RasterStackError):
    """Layers share a dimension label with a different length, index or mode."""
    pass


class ValidationError(RasterStackError):
    """Data validation errors."""
    pass
