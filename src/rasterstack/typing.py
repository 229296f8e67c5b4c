"""Type aliases and protocols for rasterstack."""

from typing import TypeAlias, Protocol, Tuple, Dict, Any, Union, Optional

import numpy as np
from pyproj import CRS

from .labels import AxisKind

# Type aliases for better user experience
CRSLike: TypeAlias = Union[CRS, str, int]
Metadata: TypeAlias = Dict[str, Any]
Window: TypeAlias = Tuple[Union[int, slice], ...]


class Reprojector(Protocol):
    """Protocol for coordinate transforms between projections."""

    def transform(
        self,
        values: np.ndarray,
        axis: AxisKind,
        source_crs: CRS,
        target_crs: CRS,
    ) -> np.ndarray:
        """Transform the coordinates of one spatial axis from ``source_crs`` to ``target_crs``."""
        ...


class DataSource(Protocol):
    """Protocol for lazily reading variables from files."""

    def read_data(
        self,
        path: str,
        key: str,
        window: Optional[Window] = None,
        masked: bool = True,
    ) -> np.ndarray:
        """Read ``key`` from the file at ``path``, restricted to ``window``."""
        ...
