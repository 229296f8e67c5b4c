"""
Inference of order, span, sampling and index mode from raw coordinate arrays.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import cftime
import numpy as np
import pandas as pd
from pyproj import CRS

from .labels import DimLabel
from .mode import Categorical, IndexMode, Mapped, Projected, Sampled
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
    Sampling,
    Span,
)

logger = logging.getLogger(__name__)

Period = Union[np.timedelta64, pd.DateOffset]

PERIOD_PATTERN = re.compile(r"(\d\d\d\d)-(\d\d)-(\d\d) (\d\d):(\d\d):(\d\d)")

# numpy units and DateOffset keywords, matching the pattern groups
_PERIOD_UNITS = ("Y", "M", "D", "h", "m", "s")
_OFFSET_KEYWORDS = ("years", "months", "days", "hours", "minutes", "seconds")


def is_time_index(index: Any) -> bool:
    """Whether ``index`` holds dates, datetimes or durations."""
    values = np.asarray(index)
    if values.dtype.kind in "Mm":
        return True
    if values.dtype.kind == "O" and values.size > 0:
        return all(
            isinstance(v, (dt.date, dt.timedelta, cftime.datetime)) for v in values.flat
        )
    return False


def is_numeric_index(index: Any) -> bool:
    return np.asarray(index).dtype.kind in "iuf"


def infer_order(index: Sequence[Any]) -> Ordered:
    """
    Infer index and array order by comparing the first and last values.

    Array order always follows index order here, so the relation is forward.
    """
    if len(index) > 0 and index[-1] > index[0]:
        return Ordered(IndexOrder.FORWARD, ArrayOrder.FORWARD, Relation.FORWARD)
    return Ordered(IndexOrder.REVERSE, ArrayOrder.REVERSE, Relation.FORWARD)


def _steps_match(steps: np.ndarray, step: Any) -> np.ndarray:
    if steps.dtype.kind == "f":
        rtol = float(np.sqrt(np.finfo(steps.dtype).eps))
        return np.isclose(steps, step, rtol=rtol, atol=0.0)
    return steps == step


def _signed(values: np.ndarray) -> np.ndarray:
    # Differences of unsigned values wrap around
    return values.astype(np.int64) if values.dtype.kind == "u" else values


def irregular_bounds(index: np.ndarray, order: Ordered) -> Tuple[Any, Any]:
    """Outer bounds extending half a cell beyond the first and last values."""
    if len(index) < 2:
        return index[0].item(), index[0].item()
    index = _signed(np.asarray(index))
    begin_halfcell = abs((index[1] - index[0]) * 0.5)
    end_halfcell = abs((index[-1] - index[-2]) * 0.5)
    if order.is_reversed:
        bounds = index[-1] - end_halfcell, index[0] + begin_halfcell
    else:
        bounds = index[0] - begin_halfcell, index[-1] + end_halfcell
    return bounds[0].item(), bounds[1].item()


def infer_span(index: Sequence[Any], order: Ordered) -> Span:
    """Detect a regular step, or irregular spacing with outer bounds."""
    values = np.asarray(index)
    if len(values) == 1:
        return Regular(values.dtype.type(0).item())
    steps = np.diff(_signed(values))
    step = steps[0]
    mismatched = ~_steps_match(steps[1:], step)
    if mismatched.any():
        logger.debug("Step mismatch at position %d, index is irregular", int(np.argmax(mismatched)) + 1)
        return Irregular(irregular_bounds(values, order))
    return Regular(step.item())


def parse_period(period_str: str) -> Optional[Period]:
    """
    Parse a ``YYYY-MM-DD HH:MM:SS`` duration string.

    Args:
        period_str: duration such as ``"0000-00-01 00:00:00"`` (one day)

    Returns:
        ``numpy.timedelta64`` when a single component is non-zero, a
        ``pandas.DateOffset`` for compound durations, or ``None`` when the
        string does not match or describes a zero duration.
    """
    match = PERIOD_PATTERN.search(str(period_str))
    if match is None:
        return None
    values = [int(v) for v in match.groups()]
    components = [(i, v) for i, v in enumerate(values) if v != 0]
    if not components:
        return None
    if len(components) == 1:
        i, value = components[0]
        return np.timedelta64(value, _PERIOD_UNITS[i])
    return pd.DateOffset(**{_OFFSET_KEYWORDS[i]: v for i, v in components})


def infer_period(metadata: Optional[Mapping[str, Any]]) -> Tuple[Span, Sampling]:
    """Span and sampling of a time index from ``delta_t``/``avg_period`` attributes."""
    metadata = metadata or {}
    # delta_t and avg_period are CDC conventions, not CF
    if "delta_t" in metadata:
        period = parse_period(metadata["delta_t"])
        if period is not None:
            return Regular(period), Points()
    elif "avg_period" in metadata:
        period = parse_period(metadata["avg_period"])
        if period is not None:
            return Regular(period), Intervals(Locus.CENTER)
    return Irregular(), Points()


def infer_mode(
    index: Sequence[Any],
    label: DimLabel,
    *,
    crs: Optional[CRS] = None,
    mappedcrs: Optional[CRS] = None,
    metadata: Optional[Mapping[str, Any]] = None,
    bounds: Optional[np.ndarray] = None,
) -> IndexMode:
    """
    Build the index mode for a coordinate array.

    Args:
        index: coordinate values
        label: ``DimLabel`` of the dimension; X and Y produce projected modes
        crs: native projection of spatial dims
        mappedcrs: projection the spatial index is stored in
        metadata: coordinate variable attributes, used for time periods
        bounds: ``(n, 2)`` cell bounds read from a bounds variable

    Returns:
        The inferred ``IndexMode``
    """
    values = np.asarray(index)
    time_index = is_time_index(values)
    if not (time_index or is_numeric_index(values)) or len(values) == 0:
        return Categorical()

    # Without bounds the locus is assumed to be the cell center
    order = infer_order(values)
    if bounds is not None:
        span, sampling = Explicit(bounds), Intervals(Locus.CENTER)
    elif time_index:
        span, sampling = infer_period(metadata)
    else:
        span, sampling = infer_span(values, order), Points()

    if label.is_spatial:
        if mappedcrs is not None:
            return Mapped(order, span, sampling, crs, mappedcrs)
        return Projected(order, span, sampling, crs, mappedcrs)
    return Sampled(order, span, sampling)
