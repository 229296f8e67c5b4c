"""
Stacks: named layers sharing some or all of their dimensions.

Layers can differ in dimensionality (a 2-D layer next to a 3-D layer sharing
X and Y), but a dimension label that appears in several layers must describe
the same axis: same length, and the same index and mode.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import xarray as xr

from .array import ArrayData, DiskData, RasterArray
from .dimension import Dimension
from .errors import ConfigurationError, MergeConflictError
from .labels import BAND, DimLabel, LabelLike, as_label
from .mode import Categorical, NoIndex

logger = logging.getLogger(__name__)

Key = Union[str, int]


def _same_axis(a: Dimension, b: Dimension) -> bool:
    if len(a) != len(b):
        return False
    if isinstance(a.mode, NoIndex) and isinstance(b.mode, NoIndex):
        return True
    return a == b


def combine_dims(*dim_tuples: Sequence[Dimension]) -> Tuple[Dimension, ...]:
    """
    Union of the dimensions of several layers, in first-seen order.

    Raises:
        MergeConflictError: if a label is shared with a different length,
            index or mode
    """
    combined: Dict[DimLabel, Dimension] = {}
    for dims in dim_tuples:
        for dim in dims:
            existing = combined.get(dim.label)
            if existing is None:
                combined[dim.label] = dim
            elif not _same_axis(existing, dim):
                raise MergeConflictError(
                    f"Layers disagree on dimension {dim.label}: "
                    f"{existing!r} vs {dim!r}"
                )
    return tuple(combined.values())


def layer_dims(dims: Sequence[Dimension]) -> Tuple[DimLabel, ...]:
    """Labels of a layer's dimensions, in the layer's own order."""
    return tuple(dim.label for dim in dims)


class RasterStack:
    """
    A collection of named raster layers with combined dimensions.

    Indexing with a key returns a ``RasterArray``; indexing with a list of
    keys (names or positions) returns a new stack holding only those layers.
    """

    def __init__(
        self,
        data: Mapping[str, ArrayData],
        dims: Sequence[Dimension],
        refdims: Sequence[Dimension] = (),
        layerdims: Optional[Mapping[str, Sequence[LabelLike]]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        layermetadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
        layermissingval: Optional[Mapping[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> None:
        self._data = MappingProxyType(dict(data))
        self._dims = tuple(dims)
        self._refdims = tuple(refdims)
        all_labels = tuple(d.label for d in self._dims)
        layerdims = layerdims or {key: all_labels for key in self._data}
        self._layerdims = MappingProxyType(
            {key: tuple(as_label(label) for label in layerdims[key]) for key in self._data}
        )
        self._metadata = MappingProxyType(dict(metadata or {}))
        layermetadata = layermetadata or {}
        self._layermetadata = MappingProxyType(
            {key: MappingProxyType(dict(layermetadata.get(key, {}))) for key in self._data}
        )
        layermissingval = layermissingval or {}
        self._layermissingval = MappingProxyType(
            {key: layermissingval.get(key) for key in self._data}
        )
        self._filename = filename

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_arrays(
        cls,
        layers: Union[Mapping[str, RasterArray], Sequence[RasterArray]],
        *,
        keys: Optional[Sequence[str]] = None,
        refdims: Sequence[Dimension] = (),
        metadata: Optional[Mapping[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> "RasterStack":
        """Build a stack from arrays, keyed by mapping key, ``keys`` or array names."""
        if isinstance(layers, Mapping):
            named = dict(layers)
        else:
            layers = list(layers)
            names = list(keys) if keys is not None else [a.name for a in layers]
            if len(names) != len(layers) or not all(names):
                raise ConfigurationError("Every layer needs a key; pass keys= or name the arrays")
            if len(set(names)) != len(names):
                raise ConfigurationError(f"Duplicate layer keys: {names}")
            named = dict(zip(names, layers))

        dims = combine_dims(*(a.dims for a in named.values()))
        return cls(
            data={k: a.data for k, a in named.items()},
            dims=dims,
            refdims=refdims,
            layerdims={k: layer_dims(a.dims) for k, a in named.items()},
            metadata=metadata,
            layermetadata={k: a.metadata for k, a in named.items()},
            layermissingval={k: a.missingval for k, a in named.items()},
            filename=filename,
        )

    @classmethod
    def from_array(
        cls,
        array: RasterArray,
        layersfrom: LabelLike = BAND,
        keys: Optional[Sequence[str]] = None,
    ) -> "RasterStack":
        """
        Split ``array`` into layers along the ``layersfrom`` dimension.

        Layer keys default to ``<dim>_<value>`` for numeric index values and
        the value itself otherwise.
        """
        axis = array.dim_index(layersfrom)
        dim = array.dims[axis]
        if keys is None:
            keys = [_layer_key(dim, value) for value in dim.index]
        if len(keys) != len(dim):
            raise ConfigurationError(f"Expected {len(dim)} keys, got {len(keys)}")
        layers = {}
        for i, key in enumerate(keys):
            window = [slice(None)] * array.ndim
            window[axis] = i
            layers[key] = array[tuple(window)].rebuild(name=key)
        return cls.from_arrays(layers, refdims=array.refdims, metadata=array.metadata)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def data(self) -> Mapping[str, ArrayData]:
        return self._data

    @property
    def dims(self) -> Tuple[Dimension, ...]:
        return self._dims

    @property
    def refdims(self) -> Tuple[Dimension, ...]:
        return self._refdims

    @property
    def layerdims(self) -> Mapping[str, Tuple[DimLabel, ...]]:
        return self._layerdims

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def layermetadata(self) -> Mapping[str, Mapping[str, Any]]:
        return self._layermetadata

    @property
    def layermissingval(self) -> Mapping[str, Any]:
        return self._layermissingval

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def is_disk(self) -> bool:
        return any(isinstance(d, DiskData) for d in self._data.values())

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._data)

    names = keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        dims = ", ".join(f"{d.label}={len(d)}" for d in self._dims)
        return f"RasterStack(layers={list(self._data)}, dims=({dims}))"

    def dim(self, label: LabelLike) -> Dimension:
        target = as_label(label)
        for dim in self._dims:
            if dim.label == target:
                return dim
        raise KeyError(f"No dimension {target} in stack")

    def missingval(self, key: str) -> Any:
        return self._layermissingval[self._resolve_key(key)]

    def layers(self) -> Dict[str, RasterArray]:
        return {key: self[key] for key in self._data}

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------
    def _resolve_key(self, key: Key) -> str:
        if isinstance(key, (int, np.integer)):
            return self.keys()[int(key)]
        if key not in self._data:
            raise KeyError(f"No layer {key!r} in stack with layers {list(self._data)}")
        return key

    def __getitem__(self, key: Union[Key, Sequence[Key]]) -> Union[RasterArray, "RasterStack"]:
        if isinstance(key, (list, tuple)):
            return self.subset(key)
        key = self._resolve_key(key)
        by_label = {d.label: d for d in self._dims}
        dims = [by_label[label] for label in self._layerdims[key]]
        return RasterArray(
            self._data[key],
            dims,
            refdims=self._refdims,
            name=key,
            metadata=self._layermetadata[key],
            missingval=self._layermissingval[key],
        )

    def subset(self, keys: Sequence[Key]) -> "RasterStack":
        """New stack holding only ``keys``, with dims unused by them dropped."""
        resolved = [self._resolve_key(k) for k in keys]
        layers = {key: self[key] for key in resolved}
        return RasterStack.from_arrays(
            layers, refdims=self._refdims, metadata=self._metadata, filename=self._filename
        )

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------
    def rebuild(self, **changes: Any) -> "RasterStack":
        fields: Dict[str, Any] = {
            "data": self._data,
            "dims": self._dims,
            "refdims": self._refdims,
            "layerdims": self._layerdims,
            "metadata": self._metadata,
            "layermetadata": self._layermetadata,
            "layermissingval": self._layermissingval,
            "filename": self._filename,
        }
        fields.update(changes)
        return RasterStack(**fields)

    def map(self, func: Callable[[RasterArray], RasterArray]) -> "RasterStack":
        """Apply ``func`` to every layer and combine the results into a new stack."""
        layers = {key: func(self[key]) for key in self._data}
        return RasterStack.from_arrays(layers, refdims=self._refdims, metadata=self._metadata)

    def read(self) -> "RasterStack":
        """Load every disk-backed layer into memory."""
        if not self.is_disk:
            return self
        data = {
            key: value.read() if isinstance(value, DiskData) else value
            for key, value in self._data.items()
        }
        return self.rebuild(data=data)

    def to_array(self, name: str = "") -> RasterArray:
        """Concatenate layers with identical dims along a new categorical Band dimension."""
        keys = self.keys()
        first = self._layerdims[keys[0]]
        if any(self._layerdims[k] != first for k in keys):
            raise MergeConflictError("Only layers with identical dimensions can be concatenated")
        layers = [self[k] for k in keys]
        data = np.ma.stack([np.ma.asarray(a.values) for a in layers], axis=-1)
        band = Dimension(BAND, np.array(keys), Categorical())
        if not np.ma.is_masked(data):
            data = np.ma.getdata(data)
        return RasterArray(
            data, layers[0].dims + (band,), refdims=self._refdims, name=name, metadata=self._metadata
        )

    def to_xarray(self) -> xr.Dataset:
        """Convert to an ``xarray.Dataset``, one variable per layer."""
        dataset = xr.Dataset({key: self[key].to_xarray() for key in self._data})
        dataset.attrs.update({k: v for k, v in self._metadata.items() if not isinstance(v, Mapping)})
        return dataset


def _layer_key(dim: Dimension, value: Any) -> str:
    if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        return f"{dim.name}_{value}"
    return str(value)
