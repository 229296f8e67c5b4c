"""
Index modes: how the values of a dimension index should be interpreted.

A mode is one of five variants. ``Sampled`` covers plain numeric and time
axes. ``Projected`` and ``Mapped`` add coordinate reference systems:

- ``Projected``: the index is stored in ``crs``. ``mappedcrs``, when set, is
  the projection the index would be shown or selected in.
- ``Mapped``: the index has been mapped to ``mappedcrs`` (usually lat/lon),
  while ``crs`` keeps the native projection so the data can be written back
  to formats that need it.

``Categorical`` indexes are unordered labels and ``NoIndex`` axes are
positional only.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from pyproj import CRS

from .errors import ModeConversionError
from .types import Intervals, Locus, Ordered, Points, Regular, Sampling, Span


def default_crs(span: Span, crs: Optional[CRS], mappedcrs: Optional[CRS]) -> Optional[CRS]:
    """
    Resolve the native crs of a projected index.

    A regularly spaced index without a known crs is assumed to have a single
    projection: the one it is mapped to.
    """
    if crs is None and isinstance(span, Regular):
        return mappedcrs
    return crs


@dataclass(frozen=True)
class Sampled:
    """Ordered numeric or time index without projection."""

    order: Ordered = field(default_factory=Ordered)
    span: Span = field(default_factory=Regular)
    sampling: Sampling = field(default_factory=Points)


@dataclass(frozen=True)
class Categorical:
    """Unordered discrete labels."""


@dataclass(frozen=True)
class NoIndex:
    """Positional axis without meaningful coordinates."""


@dataclass(frozen=True)
class _ProjectionMode:
    order: Ordered = field(default_factory=Ordered)
    span: Span = field(default_factory=Regular)
    sampling: Sampling = field(default_factory=Points)
    crs: Optional[CRS] = None
    mappedcrs: Optional[CRS] = None

    def __post_init__(self):
        object.__setattr__(self, "crs", default_crs(self.span, self.crs, self.mappedcrs))


@dataclass(frozen=True)
class Projected(_ProjectionMode):
    """Sampled index stored in ``crs``, optionally displayed in ``mappedcrs``."""


@dataclass(frozen=True)
class Mapped(_ProjectionMode):
    """Sampled index mapped to ``mappedcrs``, with native ``crs`` kept for writing."""


IndexMode = Union[Sampled, Categorical, NoIndex, Projected, Mapped]

SAMPLED_MODES = (Sampled, Projected, Mapped)
PROJECTION_MODES = (Projected, Mapped)


def is_sampled(mode: IndexMode) -> bool:
    return isinstance(mode, SAMPLED_MODES)


def is_projected(mode: IndexMode) -> bool:
    return isinstance(mode, PROJECTION_MODES)


def _require_sampled(mode: IndexMode, what: str) -> None:
    if not is_sampled(mode):
        raise ModeConversionError(
            f"{type(mode).__name__} mode has no {what}; only sampled modes do"
        )


def order_of(mode: IndexMode) -> Ordered:
    _require_sampled(mode, "order")
    return mode.order


def span_of(mode: IndexMode) -> Span:
    _require_sampled(mode, "span")
    return mode.span


def sampling_of(mode: IndexMode) -> Sampling:
    _require_sampled(mode, "sampling")
    return mode.sampling


def locus_of(mode: IndexMode) -> Optional[Locus]:
    """Locus of an interval-sampled mode, ``None`` for points."""
    sampling = sampling_of(mode)
    return sampling.locus if isinstance(sampling, Intervals) else None


def crs_of(mode: IndexMode) -> Optional[CRS]:
    return mode.crs if is_projected(mode) else None


def mappedcrs_of(mode: IndexMode) -> Optional[CRS]:
    return mode.mappedcrs if is_projected(mode) else None


def rebuild_mode(mode: IndexMode, **changes: Any) -> IndexMode:
    """Return a copy of ``mode`` with ``changes`` applied."""
    if not changes:
        return mode
    return replace(mode, **changes)
