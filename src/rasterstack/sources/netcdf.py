"""
NetCDF source built on the ``netCDF4`` library.

This is an incomplete implementation of the NetCDF/CF conventions. It handles
simple files in lat/lon projections, or projected files when ``crs`` and
``mappedcrs`` are given explicitly.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import netCDF4
import numpy as np
from pyproj import CRS

from ..array import DiskData, RasterArray
from ..config import OpenOptions
from ..dimension import Dimension, shift_locus_for_write
from ..errors import ConfigurationError
from ..inference import infer_mode, is_time_index
from ..labels import BAND, TIME, X, Y, Z, DimLabel, named
from ..mode import Mapped, NoIndex, is_sampled
from ..reproject import convert_mode
from ..stack import RasterStack
from ..types import Explicit, IndexOrder, Relation
from ..typing import Metadata, Reprojector, Window
from .base import BaseSource, PathLike, register_source

logger = logging.getLogger(__name__)

UNNAMED_KEY = "unnamed"
STACK_METADATA_KEY = "_stack_metadata_"
BOUNDS_DIM = "bnds"
DEFAULT_TIME_UNITS = "seconds since 1970-01-01 00:00:00"
DEFAULT_CALENDAR = "standard"

# CF conventions don't enforce dimension names, but these are common
NCD_DIMMAP: Mapping[str, DimLabel] = MappingProxyType({
    "lat": Y,
    "latitude": Y,
    "lon": X,
    "long": X,
    "longitude": X,
    "time": TIME,
    "lev": Z,
    "mlev": Z,
    "level": Z,
    "vertical": Z,
    "band": BAND,
    "x": X,
    "y": Y,
    "z": Z,
})


def label_for(dimname: str) -> DimLabel:
    """Semantic label for a NetCDF dimension name, or a generic named label."""
    return NCD_DIMMAP.get(dimname.lower(), named(dimname))


def fill_value_for(dtype: np.dtype[Any]) -> Any:
    """Default netCDF fill value for ``dtype``."""
    dtype = np.dtype(dtype)
    code = f"{dtype.kind}{dtype.itemsize}" if dtype.kind in "iuf" else dtype.str[1:]
    try:
        return netCDF4.default_fillvals[code]
    except KeyError as exc:
        raise ConfigurationError(
            f"Your data type {dtype} is not a type that netcdf can store with a fill value",
            cause=exc,
        ) from exc


def _decode_time(values: np.ndarray, attributes: Mapping[str, Any]) -> np.ndarray:
    units = str(attributes["units"])
    calendar = str(attributes.get("calendar", DEFAULT_CALENDAR))
    try:
        dates = netCDF4.num2date(
            values, units, calendar=calendar,
            only_use_cftime_datetimes=False, only_use_python_datetimes=True,
        )
    except ValueError:
        # Non-real-world calendars keep their cftime objects
        return np.asarray(netCDF4.num2date(values, units, calendar=calendar))
    return np.asarray(dates).astype("datetime64[ns]")


def _encode_time(values: np.ndarray, units: str, calendar: str) -> np.ndarray:
    if values.dtype.kind == "M":
        values = values.astype("datetime64[us]").astype(object)
    return np.asarray(netCDF4.date2num(values, units, calendar=calendar))


def _is_time_units(units: Any) -> bool:
    return isinstance(units, str) and " since " in units


def _attribute_value(value: Any) -> Any:
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, (str, bytes, int, float, np.number, np.ndarray)):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, (int, float, np.number)) for v in value):
        return np.asarray(value)
    if isinstance(value, CRS):
        return value.to_wkt()
    return str(value)


def _writable_attributes(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        str(k): _attribute_value(v)
        for k, v in attributes.items()
        if not isinstance(v, Mapping) and v is not None
    }


def _same_kind(value: Any, dtype: np.dtype[Any]) -> bool:
    return bool(np.can_cast(np.asarray(value).dtype, dtype, casting="same_kind"))


@register_source("netcdf", ".nc", ".nc4", ".cdf", ".netcdf")
class NetCDFSource(BaseSource):
    """Read and write NetCDF files with ``netCDF4``."""

    default_crs = "EPSG:4326"
    default_mappedcrs = "EPSG:4326"

    # ------------------------------------------------------------------
    # Dataset primitives
    # ------------------------------------------------------------------
    def _open(self, path: str, mode: str) -> netCDF4.Dataset:
        if mode == "r":
            return netCDF4.Dataset(path, mode)
        return netCDF4.Dataset(path, mode, format="NETCDF4")

    def _close(self, handle: netCDF4.Dataset) -> None:
        handle.close()

    def list_variables(self, handle: netCDF4.Dataset) -> List[str]:
        return list(handle.variables)

    def list_dimension_names(self, handle: netCDF4.Dataset, variable: Optional[str] = None) -> List[str]:
        if variable is None:
            return list(handle.dimensions)
        return list(handle.variables[variable].dimensions)

    def read_attributes(self, handle: netCDF4.Dataset, variable: Optional[str] = None) -> Metadata:
        obj = handle if variable is None else handle.variables[variable]
        return {name: obj.getncattr(name) for name in obj.ncattrs()}

    def read_coordinate_array(self, handle: netCDF4.Dataset, name: str) -> np.ndarray:
        values = np.ma.getdata(handle.variables[name][:])
        attributes = self.read_attributes(handle, name)
        if _is_time_units(attributes.get("units")):
            return _decode_time(values, attributes)
        return np.asarray(values)

    def read_variable(
        self,
        handle: netCDF4.Dataset,
        key: str,
        window: Optional[Window] = None,
        masked: bool = True,
    ) -> np.ndarray:
        if key not in handle.variables:
            raise ConfigurationError(f"Variable {key!r} not found in {handle.filepath()}")
        var = handle.variables[key]
        var.set_auto_mask(masked)
        data = var[window] if window is not None else var[...]
        return data if masked else np.asarray(data)

    def define_dimension(self, handle: netCDF4.Dataset, name: str, length: int) -> None:
        handle.createDimension(name, length)

    def define_variable(
        self,
        handle: netCDF4.Dataset,
        name: str,
        dtype: np.dtype[Any],
        dim_names: Sequence[str],
        attributes: Mapping[str, Any],
        fill_value: Optional[Any] = None,
    ) -> netCDF4.Variable:
        attributes = dict(attributes)
        fill_value = attributes.pop("_FillValue", fill_value)
        datatype: Any = str if np.dtype(dtype).kind in "UO" else np.dtype(dtype)
        logger.debug('    key: "%s" of type: %s', name, datatype)
        var = handle.createVariable(name, datatype, tuple(dim_names), fill_value=fill_value)
        var.setncatts(_writable_attributes(attributes))
        return var

    def write_data(self, handle: netCDF4.Dataset, name: str, data: np.ndarray) -> None:
        data = np.asarray(data)
        if data.dtype.kind == "U":
            data = data.astype(object)
        handle.variables[name][...] = data

    # ------------------------------------------------------------------
    # Dimensions and keys
    # ------------------------------------------------------------------
    def data_keys(self, handle: netCDF4.Dataset) -> List[str]:
        """Variables that are neither coordinate nor bounds variables."""
        variables = self.list_variables(handle)
        dimnames = set(self.list_dimension_names(handle))
        boundskeys = set()
        for name in dimnames.intersection(variables):
            bounds = self.read_attributes(handle, name).get("bounds")
            if bounds is not None:
                boundskeys.add(str(bounds))
        return [v for v in variables if v not in dimnames and v not in boundskeys]

    def read_dimension(
        self,
        handle: netCDF4.Dataset,
        dimname: str,
        crs: Optional[CRS] = None,
        mappedcrs: Optional[CRS] = None,
    ) -> Dimension:
        """Build the dimension for coordinate variable ``dimname``."""
        attributes = self.read_attributes(handle, dimname)
        index = self.read_coordinate_array(handle, dimname)
        label = label_for(dimname)
        bounds = None
        if "bounds" in attributes:
            boundskey = str(attributes["bounds"])
            if boundskey not in handle.variables:
                raise ConfigurationError(
                    f"Bounds variable {boundskey!r} referenced by {dimname!r} is missing"
                )
            bvar = handle.variables[boundskey]
            bounds = np.ma.getdata(bvar[:])
            if bvar.dimensions and bvar.dimensions[0] != dimname:
                bounds = bounds.T
            if is_time_index(index) and _is_time_units(attributes.get("units")):
                bounds = _decode_time(bounds, attributes)
        mode = infer_mode(
            index, label, crs=crs, mappedcrs=mappedcrs, metadata=attributes, bounds=bounds
        )
        logger.debug("Dimension %s (%s) inferred as %s", dimname, label, type(mode).__name__)
        return Dimension(label, index, mode, attributes)

    def read_dims(
        self,
        handle: netCDF4.Dataset,
        key: str,
        crs: Optional[CRS] = None,
        mappedcrs: Optional[CRS] = None,
    ) -> Tuple[Dimension, ...]:
        var = handle.variables[key]
        dims = []
        for dimname, size in zip(var.dimensions, var.shape):
            if dimname in handle.variables:
                dims.append(self.read_dimension(handle, dimname, crs, mappedcrs))
            else:
                # No coordinate variable, so the axis is positional
                dims.append(Dimension.positional(label_for(dimname), size))
        return tuple(dims)

    # ------------------------------------------------------------------
    # Arrays and stacks
    # ------------------------------------------------------------------
    def _layer(
        self,
        handle: netCDF4.Dataset,
        path: PathLike,
        key: str,
        options: OpenOptions,
        name: Optional[str] = None,
        stack_metadata: Optional[Mapping[str, Any]] = None,
    ) -> RasterArray:
        if key not in handle.variables:
            raise ConfigurationError(f"Variable {key!r} not found in {path}")
        var = handle.variables[key]
        dims = self.read_dims(handle, key, options.crs, options.mappedcrs)
        metadata = self.read_attributes(handle, key)
        if stack_metadata is not None:
            metadata[STACK_METADATA_KEY] = dict(stack_metadata)
        data = DiskData(self, str(path), key, var.shape, var.dtype, masked=options.missingval is None)
        return RasterArray(
            data, dims, name=name or key, metadata=metadata, missingval=options.missingval
        )

    def first_key(self, path: PathLike) -> str:
        """The first data variable of the file at ``path``."""
        with self.open_dataset(path) as handle:
            keys = self.data_keys(handle)
        if not keys:
            raise ConfigurationError(f"No data variables in {path}")
        return keys[0]

    def open_array(self, path: PathLike, options: Optional[OpenOptions] = None) -> RasterArray:
        """Open one variable of ``path`` lazily; the first data variable by default."""
        options = (options or OpenOptions()).with_defaults(type(self))
        with self.open_dataset(path) as handle:
            keys = self.data_keys(handle)
            if not keys:
                raise ConfigurationError(f"No data variables in {path}")
            key = options.key or keys[0]
            return self._layer(
                handle, path, key, options,
                name=options.name, stack_metadata=self.read_attributes(handle),
            )

    def open_stack(
        self,
        path: PathLike,
        options: Optional[OpenOptions] = None,
        keys: Optional[Sequence[str]] = None,
    ) -> RasterStack:
        """Open every data variable of ``path`` (or only ``keys``) as a lazy stack."""
        options = (options or OpenOptions()).with_defaults(type(self))
        with self.open_dataset(path) as handle:
            keys = list(keys) if keys is not None else self.data_keys(handle)
            layers = {key: self._layer(handle, path, key, options) for key in keys}
            metadata = self.read_attributes(handle)
        return RasterStack.from_arrays(layers, metadata=metadata, filename=str(path))

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    def write_array(
        self,
        path: PathLike,
        array: RasterArray,
        reprojector: Optional[Reprojector] = None,
    ) -> str:
        """Write ``array`` to a new NetCDF file at ``path``. Returns the path."""
        stack_metadata = array.metadata.get(STACK_METADATA_KEY)
        with self.open_dataset(path, "w") as handle:
            logger.info("Writing netcdf %s", path)
            if isinstance(stack_metadata, Mapping):
                handle.setncatts(_writable_attributes(stack_metadata))
            self._write_variable(handle, array, reprojector)
        return str(path)

    def write_stack(
        self,
        path: PathLike,
        stack: RasterStack,
        reprojector: Optional[Reprojector] = None,
    ) -> str:
        """Write every layer of ``stack`` to one NetCDF file at ``path``."""
        with self.open_dataset(path, "w") as handle:
            logger.info("Writing netcdf stack %s with layers %s", path, list(stack.keys()))
            handle.setncatts(_writable_attributes(stack.metadata))
            for key in stack.keys():
                self._write_variable(handle, stack[key], reprojector)
        return str(path)

    def _write_dimension(
        self,
        handle: netCDF4.Dataset,
        dim: Dimension,
        reprojector: Optional[Reprojector],
    ) -> None:
        key = dim.name
        self.define_dimension(handle, key, len(dim))
        if isinstance(dim.mode, NoIndex):
            return

        # Shift the index before conversion to Mapped
        dim = shift_locus_for_write(dim)
        if dim.label.is_spatial:
            dim = convert_mode(Mapped, dim, reprojector)

        attributes = dict(dim.metadata)
        attributes.pop("bounds", None)
        values = np.asarray(dim.index)
        encode = None
        if dim.is_time:
            units = attributes.get("units")
            units = units if _is_time_units(units) else DEFAULT_TIME_UNITS
            calendar = str(attributes.get("calendar", DEFAULT_CALENDAR))
            attributes.update(units=units, calendar=calendar)
            values = _encode_time(values, units, calendar)

            def encode(v):
                return _encode_time(v, units, calendar)

        if is_sampled(dim.mode) and isinstance(dim.mode.span, Explicit):
            boundskey = f"{key}_bnds"
            attributes["bounds"] = boundskey
            if BOUNDS_DIM not in handle.dimensions:
                self.define_dimension(handle, BOUNDS_DIM, 2)
            bounds = dim.mode.span.bounds
            if encode is not None:
                bounds = encode(bounds.ravel()).reshape(bounds.shape)
            self.define_variable(handle, boundskey, bounds.dtype, (key, BOUNDS_DIM), {})
            self.write_data(handle, boundskey, bounds)

        self.define_variable(handle, key, values.dtype, (key,), attributes)
        self.write_data(handle, key, values)

    def _write_variable(
        self,
        handle: netCDF4.Dataset,
        array: RasterArray,
        reprojector: Optional[Reprojector] = None,
    ) -> None:
        array = array.read().reorder(IndexOrder.FORWARD, Relation.FORWARD)
        for dim in array.dims:
            if dim.name not in handle.dimensions:
                self._write_dimension(handle, dim, reprojector)

        attributes = {k: v for k, v in array.metadata.items() if k != STACK_METADATA_KEY}
        attributes.pop("_FillValue", None)
        fill_value = None
        if array.missingval is None:
            fill_value = fill_value_for(array.dtype)
            array = array.replace_missing(fill_value)
        elif _same_kind(array.missingval, array.dtype):
            fill_value = array.missingval
            array = array.replace_missing(fill_value)
        else:
            logger.warning(
                "missingval %r is not the same type as your data %s", array.missingval, array.dtype
            )

        name = array.name or UNNAMED_KEY
        self.define_variable(
            handle, name, array.dtype, [d.name for d in array.dims], attributes, fill_value=fill_value
        )
        self.write_data(handle, name, array.values)
