"""File format sources for reading and writing arrays and stacks."""

from .base import BaseSource, detect_source_type, get_source, register_source
from .netcdf import NCD_DIMMAP, STACK_METADATA_KEY, UNNAMED_KEY, NetCDFSource, label_for

__all__ = [
    "BaseSource",
    "detect_source_type",
    "get_source",
    "register_source",
    "NCD_DIMMAP",
    "STACK_METADATA_KEY",
    "UNNAMED_KEY",
    "NetCDFSource",
    "label_for",
]
