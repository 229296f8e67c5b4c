"""rasterstack - labeled, georeferenced raster arrays and stacks with NetCDF I/O."""

__version__ = "0.1.0"

from .api import open_array, open_stack, write_array, write_stack
from .array import DiskData, RasterArray
from .config import OpenOptions
from .dimension import Dimension, shift_locus
from .errors import (
    ConfigurationError,
    MergeConflictError,
    ModeConversionError,
    RasterStackError,
    ValidationError,
)
from .inference import infer_mode, infer_order, infer_span, parse_period
from .labels import BAND, TIME, X, Y, Z, AxisKind, DimLabel, named
from .mode import Categorical, Mapped, NoIndex, Projected, Sampled
from .reproject import PyprojReprojector, convert_mode
from .sources import NetCDFSource, get_source, register_source
from .stack import RasterStack, combine_dims
from .types import (
    ArrayOrder,
    Explicit,
    IndexOrder,
    Intervals,
    Irregular,
    Locus,
    Ordered,
    Points,
    Regular,
    Relation,
)

__all__ = [
    "__version__",
    "open_array",
    "open_stack",
    "write_array",
    "write_stack",
    "convert_mode",
    "DiskData",
    "RasterArray",
    "RasterStack",
    "combine_dims",
    "Dimension",
    "shift_locus",
    "OpenOptions",
    "ConfigurationError",
    "MergeConflictError",
    "ModeConversionError",
    "RasterStackError",
    "ValidationError",
    "infer_mode",
    "infer_order",
    "infer_span",
    "parse_period",
    "AxisKind",
    "DimLabel",
    "named",
    "X",
    "Y",
    "Z",
    "TIME",
    "BAND",
    "Sampled",
    "Categorical",
    "NoIndex",
    "Projected",
    "Mapped",
    "PyprojReprojector",
    "NetCDFSource",
    "get_source",
    "register_source",
    "ArrayOrder",
    "IndexOrder",
    "Relation",
    "Ordered",
    "Regular",
    "Irregular",
    "Explicit",
    "Points",
    "Intervals",
    "Locus",
]
