"""Semantic labels for dimensions."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class AxisKind(str, Enum):
    """Kinds of axis a dimension can represent."""
    X = "X"
    Y = "Y"
    Z = "Z"
    TIME = "Time"
    BAND = "Band"
    NAMED = "Dim"


@dataclass(frozen=True)
class DimLabel:
    """Label of a dimension: its axis kind and display name."""

    kind: AxisKind
    name: str

    @property
    def key(self) -> str:
        """Name used for the dimension and coordinate variable on disk."""
        return self.name.lower()

    @property
    def is_spatial(self) -> bool:
        return self.kind in (AxisKind.X, AxisKind.Y)

    def __str__(self) -> str:
        return self.name


X = DimLabel(AxisKind.X, "X")
Y = DimLabel(AxisKind.Y, "Y")
Z = DimLabel(AxisKind.Z, "Z")
TIME = DimLabel(AxisKind.TIME, "Time")
BAND = DimLabel(AxisKind.BAND, "Band")

_STANDARD_LABELS = {label.key: label for label in (X, Y, Z, TIME, BAND)}

LabelLike = Union[DimLabel, AxisKind, str]


def named(name: str) -> DimLabel:
    """Label for a generic dimension called ``name``."""
    return DimLabel(AxisKind.NAMED, name)


def as_label(value: LabelLike) -> DimLabel:
    """
    Coerce a label, axis kind or name into a ``DimLabel``.

    Names matching a standard axis (``"x"``, ``"Time"``, ...) resolve to that
    axis; anything else becomes a generic named dimension.
    """
    if isinstance(value, DimLabel):
        return value
    if isinstance(value, AxisKind):
        if value == AxisKind.NAMED:
            raise ValueError("A generic dimension needs a name")
        return _STANDARD_LABELS[value.value.lower()]
    if isinstance(value, str):
        return _STANDARD_LABELS.get(value.lower(), named(value))
    raise TypeError(f"Cannot use {value!r} as a dimension label")
