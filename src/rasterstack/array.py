# pyright: reportMissingImports=false, reportUnknownMemberType=false, reportUnknownArgumentType=false, reportUnknownVariableType=false

"""Raster arrays: data bound to labeled dimensions, in memory or on disk."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union, cast

import numpy as np
import xarray as xr
from dask.array import from_delayed as da_from_delayed  # type: ignore[attr-defined]
from dask.delayed import Delayed, delayed  # type: ignore[assignment]

from .dimension import Dimension
from .errors import ValidationError
from .labels import LabelLike, as_label
from .mode import NoIndex, is_sampled, rebuild_mode
from .types import IndexOrder, Relation
from .typing import DataSource, Window

if TYPE_CHECKING:
    from dask.array.core import Array as DaskArray
else:  # pragma: no cover - typing aid
    DaskArray = Any

logger = logging.getLogger(__name__)

Indexer = Union[int, slice, Sequence[int]]


def _delayed_call(func: Callable[..., Any], *args: Any) -> Delayed:
    """Typed helper around ``dask.delayed`` to satisfy static analysis."""

    return cast(Delayed, delayed(func)(*args))


class DiskData:
    """
    Lazy reference to a variable in a file.

    Nothing is held open: every read opens the file, reads the requested
    window and closes it again.
    """

    def __init__(
        self,
        source: DataSource,
        path: str,
        key: str,
        shape: Tuple[int, ...],
        dtype: Union[str, np.dtype[Any]],
        masked: bool = True,
    ) -> None:
        self.source = source
        self.path = str(path)
        self.key = key
        self.shape = tuple(shape)
        self.dtype = np.dtype(dtype)
        self.masked = masked

    @property
    def ndim(self) -> int:
        return len(self.shape)

    def read(self, window: Optional[Window] = None) -> np.ndarray:
        """Read the whole variable, or only ``window``."""
        logger.debug("Reading %s from %s (window=%s)", self.key, self.path, window)
        return self.source.read_data(self.path, self.key, window, self.masked)

    def to_dask(self) -> DaskArray:
        """Single-chunk dask array deferring the read until compute time."""
        return da_from_delayed(_delayed_call(self.read), shape=self.shape, dtype=self.dtype)

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        data = np.asarray(self.read())
        return data if dtype is None else data.astype(dtype)

    def __repr__(self) -> str:
        return f"DiskData({self.path!r}, key={self.key!r}, shape={self.shape}, dtype={self.dtype})"


ArrayData = Union[np.ndarray, DiskData]


def _orthogonal_index(data: np.ndarray, window: Sequence[Indexer]) -> np.ndarray:
    """Index each axis independently, dropping integer-indexed axes."""
    dropped: List[int] = []
    for axis, indexer in enumerate(window):
        if isinstance(indexer, (int, np.integer)):
            dropped.append(axis)
            i = int(indexer)
            indexer = slice(i, i + 1 if i != -1 else None)
        if isinstance(indexer, slice) and indexer == slice(None):
            continue
        data = data[(slice(None),) * axis + (indexer,)]
    return data.reshape([n for axis, n in enumerate(data.shape) if axis not in dropped]) if dropped else data


class RasterArray:
    """
    An array with labeled, georeferenced dimensions.

    Attributes:
        data: numpy array (possibly masked) or ``DiskData``
        dims: dimensions matching the data axes
        refdims: dimensions the array was sliced from, kept for provenance
        name: array name
        metadata: read-only attributes
        missingval: sentinel for missing cells; ``None`` when they are masked
    """

    def __init__(
        self,
        data: ArrayData,
        dims: Sequence[Dimension],
        refdims: Sequence[Dimension] = (),
        name: str = "",
        metadata: Optional[Mapping[str, Any]] = None,
        missingval: Any = None,
    ) -> None:
        if not isinstance(data, DiskData):
            data = data if isinstance(data, np.ndarray) else np.asarray(data)
        dims = tuple(dims)
        if len(dims) != data.ndim:
            raise ValidationError(f"Got {len(dims)} dims for {data.ndim}-dimensional data")
        for dim, size in zip(dims, data.shape):
            if len(dim) != size:
                raise ValidationError(
                    f"Dimension {dim.label} has length {len(dim)} but data axis has size {size}"
                )
        self._data = data
        self._dims = dims
        self._refdims = tuple(refdims)
        self._name = name or ""
        self._metadata = MappingProxyType(dict(metadata or {}))
        self._missingval = missingval

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def data(self) -> ArrayData:
        return self._data

    @property
    def dims(self) -> Tuple[Dimension, ...]:
        return self._dims

    @property
    def refdims(self) -> Tuple[Dimension, ...]:
        return self._refdims

    @property
    def name(self) -> str:
        return self._name

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def missingval(self) -> Any:
        return self._missingval

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self._data.shape)

    @property
    def ndim(self) -> int:
        return len(self._dims)

    @property
    def dtype(self) -> np.dtype[Any]:
        return self._data.dtype

    @property
    def is_disk(self) -> bool:
        return isinstance(self._data, DiskData)

    @property
    def filename(self) -> Optional[str]:
        return self._data.path if isinstance(self._data, DiskData) else None

    @property
    def values(self) -> np.ndarray:
        """The data as an in-memory array, read from disk if needed."""
        return self._data.read() if isinstance(self._data, DiskData) else self._data

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        data = np.asarray(self.values)
        return data if dtype is None else data.astype(dtype)

    def __repr__(self) -> str:
        dims = ", ".join(f"{d.label}={len(d)}" for d in self._dims)
        where = "disk" if self.is_disk else "memory"
        return f"RasterArray({self._name!r}, dims=({dims}), dtype={self.dtype}, {where})"

    def rebuild(self, **changes: Any) -> "RasterArray":
        """Return a new array with ``changes`` applied to its fields."""
        fields: Dict[str, Any] = {
            "data": self._data,
            "dims": self._dims,
            "refdims": self._refdims,
            "name": self._name,
            "metadata": self._metadata,
            "missingval": self._missingval,
        }
        unknown = set(changes) - set(fields)
        if unknown:
            raise TypeError(f"Unknown RasterArray fields: {sorted(unknown)}")
        fields.update(changes)
        return RasterArray(**fields)

    def dim_index(self, label: LabelLike) -> int:
        """Axis position of the dimension with ``label``."""
        target = as_label(label)
        for i, dim in enumerate(self._dims):
            if dim.label == target:
                return i
        raise KeyError(f"No dimension {target} in {[str(d.label) for d in self._dims]}")

    def dim(self, label: LabelLike) -> Dimension:
        return self._dims[self.dim_index(label)]

    def has_dim(self, label: LabelLike) -> bool:
        target = as_label(label)
        return any(d.label == target for d in self._dims)

    # ------------------------------------------------------------------
    # Loading and indexing
    # ------------------------------------------------------------------
    def read(self) -> "RasterArray":
        """Load disk-backed data into memory."""
        if not self.is_disk:
            return self
        return self.rebuild(data=self.values)

    def __getitem__(self, key: Union[Indexer, Tuple[Indexer, ...]]) -> "RasterArray":
        window = key if isinstance(key, tuple) else (key,)
        if len(window) > self.ndim:
            raise IndexError(f"Too many indices for a {self.ndim}-dimensional array")
        window = tuple(window) + (slice(None),) * (self.ndim - len(window))
        return self._select(window)

    def isel(self, indexers: Optional[Mapping[str, Indexer]] = None, **kwargs: Indexer) -> "RasterArray":
        """Positional selection by dimension label, e.g. ``A.isel(x=slice(0, 10))``."""
        selection = dict(indexers or {}, **kwargs)
        window: List[Indexer] = [slice(None)] * self.ndim
        for label, indexer in selection.items():
            window[self.dim_index(label)] = indexer
        return self._select(tuple(window))

    def _select(self, window: Tuple[Indexer, ...]) -> "RasterArray":
        if isinstance(self._data, DiskData):
            data = self._data.read(window)
        else:
            data = _orthogonal_index(self._data, window)

        dims: List[Dimension] = []
        refdims = list(self._refdims)
        for dim, indexer in zip(self._dims, window):
            if isinstance(indexer, (int, np.integer)):
                refdims.append(dim.isel(indexer))
            elif isinstance(indexer, slice) and indexer == slice(None):
                dims.append(dim)
            else:
                dims.append(dim.isel(indexer))
        return self.rebuild(data=data, dims=dims, refdims=refdims)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------
    def replace_missing(self, value: Any) -> "RasterArray":
        """Replace masked (and NaN) cells with ``value`` and use it as ``missingval``."""
        data = self.values
        if np.ma.isMaskedArray(data):
            data = np.ma.filled(data, value)
        data = np.array(data, copy=True)
        if data.dtype.kind == "f":
            data[np.isnan(data)] = value
        elif self._missingval is not None:
            data[data == self._missingval] = value
        return self.rebuild(data=data, missingval=value)

    def reorder(
        self,
        index: IndexOrder = IndexOrder.FORWARD,
        relation: Relation = Relation.FORWARD,
    ) -> "RasterArray":
        """Flip dimensions (and data) so every sampled dim has the given orders."""
        data = self.values
        dims = list(self._dims)
        changed = False
        for axis, dim in enumerate(dims):
            if not is_sampled(dim.mode):
                continue
            if dim.mode.order.index != index:
                data = np.flip(data, axis=axis)
                dim = dim.reversed()
                changed = True
            if dim.mode.order.relation != relation:
                data = np.flip(data, axis=axis)
                dim = dim.rebuild(mode=rebuild_mode(dim.mode, order=dim.mode.order.flipped_relation()))
                changed = True
            dims[axis] = dim
        if not changed:
            return self
        return self.rebuild(data=data, dims=dims)

    def to_xarray(self) -> xr.DataArray:
        """Convert to an ``xarray.DataArray``, dask-backed when the data is on disk."""
        data: Any = self._data.to_dask() if isinstance(self._data, DiskData) else self._data
        coords = {
            dim.name: (dim.name, np.asarray(dim.index), dict(dim.metadata))
            for dim in self._dims
            if not isinstance(dim.mode, NoIndex)
        }
        attrs = {k: v for k, v in self._metadata.items() if not isinstance(v, Mapping)}
        return xr.DataArray(
            data,
            coords=coords,
            dims=[dim.name for dim in self._dims],
            name=self._name or None,
            attrs=attrs,
        )
