"""
Conversion of spatial dimensions between ``Projected`` and ``Mapped`` modes.

Converting between the two needs the index transformed from one projection
to the other. That transform is delegated to a ``Reprojector``; pyproj
provides the default implementation.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Type, Union

import numpy as np
from pyproj import CRS, Transformer

from .array import RasterArray
from .dimension import Dimension
from .errors import ModeConversionError
from .inference import infer_order, infer_span
from .labels import AxisKind
from .mode import Mapped, Projected, is_projected
from .stack import RasterStack
from .types import Explicit, Irregular, Regular
from .typing import Reprojector

logger = logging.getLogger(__name__)

ProjectionModeType = Union[Type[Projected], Type[Mapped]]


class PyprojReprojector:
    """Reproject one axis of coordinates with ``pyproj``.

    Coordinates of the other axis are held at zero, so X values are
    transformed along the equator and Y values along the prime meridian.
    """

    def transform(
        self,
        values: np.ndarray,
        axis: AxisKind,
        source_crs: CRS,
        target_crs: CRS,
    ) -> np.ndarray:
        transformer = Transformer.from_crs(source_crs, target_crs, always_xy=True)
        values = np.asarray(values, dtype=float)
        zeros = np.zeros_like(values)
        if axis == AxisKind.X:
            xs, _ = transformer.transform(values, zeros)
            return np.asarray(xs)
        if axis == AxisKind.Y:
            _, ys = transformer.transform(zeros, values)
            return np.asarray(ys)
        raise ModeConversionError(f"Only X and Y axes can be reprojected, not {axis.value}")


def _transform_dimension(
    dim: Dimension,
    target: ProjectionModeType,
    reprojector: Reprojector,
) -> Dimension:
    mode = dim.mode
    if target is Mapped:
        source_crs, target_crs = mode.crs, mode.mappedcrs
    else:
        source_crs, target_crs = mode.mappedcrs, mode.crs
    if source_crs is None or target_crs is None:
        raise ModeConversionError(
            f"Converting {dim.label} to {target.__name__} needs both crs and mappedcrs"
        )

    def transform(values: np.ndarray) -> np.ndarray:
        return reprojector.transform(values, dim.label.kind, source_crs, target_crs)

    index = transform(np.asarray(dim.index))
    order = infer_order(index)
    span = mode.span
    if isinstance(span, Explicit):
        span = Explicit(transform(span.bounds.ravel()).reshape(span.bounds.shape))
    elif isinstance(span, Irregular) and span.bounds is not None:
        lo, hi = transform(np.asarray(span.bounds))
        span = Irregular((float(min(lo, hi)), float(max(lo, hi))))
    elif isinstance(span, Regular) and len(index) > 0:
        span = infer_span(index, order)
    logger.debug("Reprojected %s from %s to %s", dim.label, source_crs, target_crs)
    new_mode = target(order, span, mode.sampling, mode.crs, mode.mappedcrs)
    return dim.rebuild(index=index, mode=new_mode)


def convert_dimension(
    target: ProjectionModeType,
    dim: Dimension,
    reprojector: Optional[Reprojector] = None,
) -> Dimension:
    """
    Convert one dimension to the ``target`` projection mode.

    Non-projected modes and modes already of the target class pass through.
    When ``crs`` and ``mappedcrs`` are the same projection only the mode
    class changes. Otherwise the index is reprojected with ``reprojector``.

    Raises:
        ModeConversionError: if reprojection is needed and no reprojector
            was supplied, or a crs is missing
    """
    mode = dim.mode
    if not is_projected(mode) or type(mode) is target:
        return dim
    if mode.crs is not None and mode.mappedcrs is not None and CRS(mode.crs) == CRS(mode.mappedcrs):
        return dim.rebuild(mode=target(mode.order, mode.span, mode.sampling, mode.crs, mode.mappedcrs))
    if reprojector is None:
        raise ModeConversionError(
            f"Cannot convert {dim.label} from {type(mode).__name__} to {target.__name__}: "
            "reprojection support unavailable, pass a reprojector"
        )
    return _transform_dimension(dim, target, reprojector)


Convertible = Union[Dimension, Sequence[Dimension], RasterArray, RasterStack]


def convert_mode(
    target: ProjectionModeType,
    obj: Convertible,
    reprojector: Optional[Reprojector] = None,
) -> Union[Dimension, Tuple[Dimension, ...], RasterArray, RasterStack]:
    """
    Convert the dimension mode of ``obj`` between ``Projected`` and ``Mapped``.

    ``obj`` may be a ``Dimension``, a sequence of dimensions, a
    ``RasterArray`` or a ``RasterStack``. Other dimension modes pass through
    unchanged. This is used e.g. before writing a NetCDF file, whose spatial
    coordinates are stored mapped.
    """
    if target not in (Projected, Mapped):
        raise ModeConversionError(f"Can only convert to Projected or Mapped, not {target!r}")
    if isinstance(obj, Dimension):
        return convert_dimension(target, obj, reprojector)
    if isinstance(obj, RasterArray):
        return obj.rebuild(dims=convert_mode(target, obj.dims, reprojector))
    if isinstance(obj, RasterStack):
        return obj.rebuild(dims=convert_mode(target, obj.dims, reprojector))
    return tuple(convert_dimension(target, dim, reprojector) for dim in obj)
