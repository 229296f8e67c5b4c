"""
Dimensions: a semantic label bound to an index, an index mode and metadata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import ModeConversionError
from .inference import infer_order, infer_span, irregular_bounds, is_numeric_index, is_time_index
from .labels import DimLabel, LabelLike, as_label
from .mode import (
    IndexMode,
    NoIndex,
    crs_of,
    is_sampled,
    locus_of,
    mappedcrs_of,
    order_of,
    rebuild_mode,
    sampling_of,
    span_of,
)
from .types import Explicit, Intervals, Irregular, Locus, Ordered, Regular, locus_offset

logger = logging.getLogger(__name__)

Index = Union[np.ndarray, range]


@dataclass(frozen=True, eq=False)
class Dimension:
    """
    A labeled axis of an array.

    Attributes:
        label: semantic label (X, Y, Z, Time, Band or a named dimension)
        index: coordinate values, or a ``range`` for positional axes
        mode: how the index values are interpreted
        metadata: read-only attributes of the coordinate variable
    """

    label: DimLabel
    index: Index
    mode: IndexMode = field(default_factory=NoIndex)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "label", as_label(self.label))
        if not isinstance(self.index, range):
            object.__setattr__(self, "index", np.asarray(self.index))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @classmethod
    def positional(cls, label: LabelLike, length: int) -> "Dimension":
        """Dimension without coordinates, indexed by position."""
        return cls(as_label(label), range(length), NoIndex())

    def __len__(self) -> int:
        return len(self.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dimension):
            return NotImplemented
        return (
            self.label == other.label
            and len(self) == len(other)
            and np.array_equal(np.asarray(self.index), np.asarray(other.index))
            and self.mode == other.mode
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Dimension({self.label}, len={len(self)}, mode={type(self.mode).__name__})"

    @property
    def name(self) -> str:
        return self.label.key

    @property
    def order(self) -> Ordered:
        return order_of(self.mode)

    @property
    def span(self):
        return span_of(self.mode)

    @property
    def sampling(self):
        return sampling_of(self.mode)

    @property
    def locus(self) -> Optional[Locus]:
        return locus_of(self.mode)

    @property
    def crs(self):
        return crs_of(self.mode)

    @property
    def mappedcrs(self):
        return mappedcrs_of(self.mode)

    @property
    def is_time(self) -> bool:
        return not isinstance(self.index, range) and is_time_index(self.index)

    def rebuild(self, **changes: Any) -> "Dimension":
        """Return a new dimension with ``changes`` applied."""
        return replace(self, **changes)

    def isel(self, indexer: Union[int, slice, Sequence[int]]) -> "Dimension":
        """
        Select positions along this dimension.

        Integer indexers keep a length-1 dimension, so the result can be
        stored in ``refdims``.
        """
        if isinstance(indexer, (int, np.integer)):
            indexer = slice(int(indexer), int(indexer) + 1 if int(indexer) != -1 else None)
        if isinstance(self.index, range):
            return self.rebuild(index=self.index[indexer])
        index = self.index[indexer]
        if not is_sampled(self.mode):
            return self.rebuild(index=index)
        return self.rebuild(index=index, mode=_slice_mode(self.mode, index, indexer))

    def reversed(self) -> "Dimension":
        """Reverse the index, as when the data along this axis is flipped."""
        index = self.index[::-1]
        if not is_sampled(self.mode):
            return self.rebuild(index=index)
        span = self.mode.span
        if isinstance(span, Explicit):
            span = Explicit(span.bounds[::-1])
        elif isinstance(span, Regular):
            span = Regular(-span.step)
        mode = rebuild_mode(self.mode, order=self.mode.order.flipped_index(), span=span)
        return self.rebuild(index=index, mode=mode)


def _slice_mode(mode: IndexMode, index: np.ndarray, indexer: Any) -> IndexMode:
    span = mode.span
    if isinstance(span, Explicit):
        return rebuild_mode(mode, span=Explicit(span.bounds[indexer]))

    if isinstance(indexer, slice):
        step_by = indexer.step or 1
        order = mode.order.flipped_index() if step_by < 0 else mode.order
        if isinstance(span, Regular):
            span = Regular(span.step * step_by)
    else:
        order = infer_order(index) if len(index) > 1 else mode.order
        if isinstance(span, Regular) and len(index) > 1 and is_numeric_index(index):
            span = infer_span(index, order)

    if isinstance(span, Irregular) and span.bounds is not None and len(index) > 0:
        span = Irregular(irregular_bounds(index, order))
    return rebuild_mode(mode, order=order, span=span)


def shift_locus(dim: Dimension, locus: Locus = Locus.CENTER) -> Dimension:
    """
    Move the coordinates of a regular interval dimension to ``locus``.

    Each value is shifted by the matching fraction of the absolute step.
    Dimensions already at ``locus`` are returned unchanged.
    """
    if not is_sampled(dim.mode):
        raise ModeConversionError(f"Cannot shift the locus of a {type(dim.mode).__name__} dimension")
    span, sampling = dim.mode.span, dim.mode.sampling
    if not (isinstance(span, Regular) and isinstance(sampling, Intervals)):
        raise ModeConversionError("Only Regular Intervals dimensions can shift their locus")
    offset = locus_offset(sampling.locus, locus)
    if offset == 0:
        return dim
    index = dim.index + abs(span.step) * offset
    mode = rebuild_mode(dim.mode, sampling=Intervals(locus))
    return dim.rebuild(index=index, mode=mode)


def shift_locus_for_write(dim: Dimension) -> Dimension:
    """
    Center regular interval coordinates before writing them to disk.

    Time coordinates are never shifted; a warning is logged when they are
    not already centered.
    """
    if not is_sampled(dim.mode):
        return dim
    if not (isinstance(dim.mode.span, Regular) and isinstance(dim.mode.sampling, Intervals)):
        return dim
    if dim.is_time:
        if dim.locus != Locus.CENTER:
            logger.warning(
                "To save to netcdf, time values should be the interval center, rather than the %s",
                dim.locus.value,
            )
        return dim
    return shift_locus(dim, Locus.CENTER)
