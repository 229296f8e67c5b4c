"""Source registry and base abstraction for file formats."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Sequence, Type, Union

import numpy as np

from ..errors import ConfigurationError
from ..typing import Metadata, Reprojector, Window

if TYPE_CHECKING:
    from ..array import RasterArray
    from ..config import OpenOptions
    from ..stack import RasterStack

__all__ = [
    "BaseSource",
    "register_source",
    "detect_source_type",
    "get_source",
]

PathLike = Union[str, Path]


class BaseSource(ABC):
    """
    Narrow interface to a file format library.

    Every operation acts on a handle obtained from ``open_dataset``, which
    must be used as a context manager so the handle is released on all exit
    paths.
    """

    source_type: str
    extensions: Sequence[str] = ()
    default_crs: Optional[Any] = None
    default_mappedcrs: Optional[Any] = None

    # ------------------------------------------------------------------
    # Scoped handle acquisition
    # ------------------------------------------------------------------
    @contextmanager
    def open_dataset(self, path: PathLike, mode: str = "r") -> Iterator[Any]:
        """Open ``path``, yield the handle and close it again."""

        if mode == "r" and not Path(path).is_file():
            raise ConfigurationError(f"File not found: {path}")
        handle = self._open(str(path), mode)
        try:
            yield handle
        finally:
            self._close(handle)

    @abstractmethod
    def _open(self, path: str, mode: str) -> Any:
        """Open a dataset handle."""

    @abstractmethod
    def _close(self, handle: Any) -> None:
        """Close a dataset handle."""

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    @abstractmethod
    def list_variables(self, handle: Any) -> Sequence[str]:
        """Names of all variables."""

    @abstractmethod
    def list_dimension_names(self, handle: Any, variable: Optional[str] = None) -> Sequence[str]:
        """Names of the dataset dimensions, or of one variable's dimensions."""

    @abstractmethod
    def read_attributes(self, handle: Any, variable: Optional[str] = None) -> Metadata:
        """Attributes of a variable, or of the dataset when ``variable`` is None."""

    @abstractmethod
    def read_coordinate_array(self, handle: Any, name: str) -> np.ndarray:
        """Values of the coordinate variable ``name``."""

    def read_data(
        self,
        path: PathLike,
        key: str,
        window: Optional[Window] = None,
        masked: bool = True,
    ) -> np.ndarray:
        """Read variable ``key`` from ``path`` in a self-contained call."""

        with self.open_dataset(path) as handle:
            return self.read_variable(handle, key, window, masked)

    @abstractmethod
    def read_variable(
        self,
        handle: Any,
        key: str,
        window: Optional[Window] = None,
        masked: bool = True,
    ) -> np.ndarray:
        """Read ``key`` (or a window of it) from an open handle."""

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    @abstractmethod
    def define_dimension(self, handle: Any, name: str, length: int) -> None:
        """Create a dimension."""

    @abstractmethod
    def define_variable(
        self,
        handle: Any,
        name: str,
        dtype: np.dtype[Any],
        dim_names: Sequence[str],
        attributes: Mapping[str, Any],
        fill_value: Optional[Any] = None,
    ) -> Any:
        """Create a variable with attributes."""

    @abstractmethod
    def write_data(self, handle: Any, name: str, data: np.ndarray) -> None:
        """Write the values of variable ``name``."""

    # ------------------------------------------------------------------
    # Arrays and stacks
    # ------------------------------------------------------------------
    @abstractmethod
    def first_key(self, path: PathLike) -> str:
        """Key of the first data variable in ``path``."""

    @abstractmethod
    def open_array(self, path: PathLike, options: Optional["OpenOptions"] = None) -> "RasterArray":
        """Open one variable as a disk-backed array."""

    @abstractmethod
    def open_stack(
        self,
        path: PathLike,
        options: Optional["OpenOptions"] = None,
        keys: Optional[Sequence[str]] = None,
    ) -> "RasterStack":
        """Open the data variables of one file as a stack."""

    @abstractmethod
    def write_array(
        self, path: PathLike, array: "RasterArray", reprojector: Optional["Reprojector"] = None
    ) -> str:
        """Write an array to a new file."""

    @abstractmethod
    def write_stack(
        self, path: PathLike, stack: "RasterStack", reprojector: Optional["Reprojector"] = None
    ) -> str:
        """Write all layers of a stack to a new file."""


# ----------------------------------------------------------------------
# Source registry utilities
# ----------------------------------------------------------------------

_SOURCE_REGISTRY: Dict[str, Type[BaseSource]] = {}


def register_source(source_type: str, *extensions: str):
    """Decorator for registering source implementations by file extension."""

    def decorator(cls: Type[BaseSource]) -> Type[BaseSource]:
        cls.source_type = source_type
        cls.extensions = tuple(ext.lower() for ext in extensions)
        for ext in cls.extensions:
            _SOURCE_REGISTRY[ext] = cls
        return cls

    return decorator


def detect_source_type(path: PathLike) -> Type[BaseSource]:
    """Infer the source implementation from the file extension of ``path``."""

    suffix = Path(path).suffix.lower()
    try:
        return _SOURCE_REGISTRY[suffix]
    except KeyError as exc:
        raise ConfigurationError(
            f"No source registered for extension {suffix!r} of {path}", cause=exc
        ) from exc


def get_source(path: PathLike, source: Optional[Type[BaseSource]] = None) -> BaseSource:
    """Instantiate the appropriate source implementation for ``path``."""

    source_cls = source or detect_source_type(path)
    return source_cls()
