"""
Value types describing the direction and cell geometry of a dimension index.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union

import numpy as np


class IndexOrder(str, Enum):
    """Direction of the index values."""
    FORWARD = "forward"
    REVERSE = "reverse"


class ArrayOrder(str, Enum):
    """Direction of the underlying array storage."""
    FORWARD = "forward"
    REVERSE = "reverse"


class Relation(str, Enum):
    """Relation between index order and array order."""
    FORWARD = "forward"
    REVERSE = "reverse"


def _flip(order):
    return type(order)("reverse" if order.value == "forward" else "forward")


@dataclass(frozen=True)
class Ordered:
    """Traversal of an ordered index.

    The index order and the array order combine through ``relation``: with a
    forward relation, stepping forward through the array steps through the
    index in ``index`` direction.
    """

    index: IndexOrder = IndexOrder.FORWARD
    array: ArrayOrder = ArrayOrder.FORWARD
    relation: Relation = Relation.FORWARD

    @property
    def is_reversed(self) -> bool:
        return self.index == IndexOrder.REVERSE

    def flipped_index(self) -> "Ordered":
        """Order after reversing both the index and the stored data."""
        return Ordered(_flip(self.index), _flip(self.array), self.relation)

    def flipped_relation(self) -> "Ordered":
        """Order after reversing the stored data only."""
        return Ordered(self.index, _flip(self.array), _flip(self.relation))


# Spans ---------------------------------------------------------------------


@dataclass(frozen=True)
class Regular:
    """Constant spacing between index values.

    ``step`` is a number, a ``numpy.timedelta64`` or a ``pandas.DateOffset``.
    """

    step: Any = 0


@dataclass(frozen=True)
class Irregular:
    """Variable spacing, with optional outer ``(min, max)`` bounds."""

    bounds: Optional[Tuple[Any, Any]] = None


@dataclass(frozen=True, eq=False)
class Explicit:
    """Per-cell bounds, an ``(n, 2)`` matrix of ``(min, max)`` pairs."""

    bounds: np.ndarray = field(default_factory=lambda: np.empty((0, 2)))

    def __post_init__(self):
        object.__setattr__(self, "bounds", np.asarray(self.bounds))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Explicit):
            return NotImplemented
        return np.array_equal(self.bounds, other.bounds)

    def __repr__(self) -> str:
        return f"Explicit(bounds=<{self.bounds.shape[0]} cells>)"


Span = Union[Regular, Irregular, Explicit]


# Sampling ------------------------------------------------------------------


class Locus(str, Enum):
    """Position of the stored coordinate within its cell."""
    START = "start"
    CENTER = "center"
    END = "end"


@dataclass(frozen=True)
class Points:
    """Index values sample discrete points."""


@dataclass(frozen=True)
class Intervals:
    """Index values represent cell intervals."""

    locus: Locus = Locus.CENTER


Sampling = Union[Points, Intervals]


_LOCUS_FRACTION = {Locus.START: 0.0, Locus.CENTER: 0.5, Locus.END: 1.0}


def locus_offset(current: Locus, target: Locus) -> float:
    """Fraction of a cell width separating two loci."""
    return _LOCUS_FRACTION[target] - _LOCUS_FRACTION[current]
