"""Configuration helpers for opening arrays and stacks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pyproj import CRS
from pyproj.exceptions import CRSError

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .sources.base import BaseSource


def coerce_crs(crs: Any) -> Optional[CRS]:
    """Build a ``pyproj.CRS`` from a CRS, ``"EPSG:4326"``-style string or EPSG code."""
    if crs is None or isinstance(crs, CRS):
        return crs
    try:
        return CRS.from_user_input(crs)
    except CRSError as exc:
        raise ConfigurationError(f"Invalid CRS: {crs!r}", cause=exc) from exc


class OpenOptions(BaseModel):
    """Options controlling how a file is opened as an array or stack."""

    crs: Optional[CRS] = Field(
        None, description="Native projection of the spatial dims"
    )
    mappedcrs: Optional[CRS] = Field(
        None, description="Projection the spatial index is stored in"
    )
    name: Optional[str] = Field(None, description="Name given to the array")
    key: Optional[str] = Field(
        None, description="Variable to load; the first data variable when unset"
    )
    missingval: Any = Field(
        None, description="Missing-value sentinel; masked arrays are returned when unset"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("crs", "mappedcrs", mode="before")
    @classmethod
    def validate_crs(cls, value: Any) -> Optional[CRS]:
        return coerce_crs(value)

    def with_defaults(self, source: Type["BaseSource"]) -> "OpenOptions":
        """Fill unset projections with the defaults of ``source``."""

        updates: Dict[str, Any] = {}
        if self.crs is None and source.default_crs is not None:
            updates["crs"] = coerce_crs(source.default_crs)
        if self.mappedcrs is None and source.default_mappedcrs is not None:
            updates["mappedcrs"] = coerce_crs(source.default_mappedcrs)
        return self.model_copy(update=updates) if updates else self
