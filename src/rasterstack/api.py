"""
High-level API for rasterstack.

These functions pick the source for a file from its extension and hide the
``OpenOptions`` model behind plain keyword arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Type, Union

from .array import RasterArray
from .config import OpenOptions
from .errors import ConfigurationError
from .reproject import convert_mode
from .sources.base import BaseSource, PathLike, get_source
from .stack import RasterStack
from .typing import CRSLike, Reprojector

logger = logging.getLogger(__name__)

StackSource = Union[PathLike, Sequence[PathLike], Mapping[str, PathLike]]

__all__ = ["open_array", "open_stack", "write_array", "write_stack", "convert_mode"]


def open_array(
    path: PathLike,
    key: Optional[str] = None,
    *,
    crs: Optional[CRSLike] = None,
    mappedcrs: Optional[CRSLike] = None,
    name: Optional[str] = None,
    missingval: Any = None,
    source: Optional[Type[BaseSource]] = None,
) -> RasterArray:
    """
    Open one variable of a file as a lazy ``RasterArray``.

    Args:
        path: File to open
        key: Variable to load; the first data variable when omitted
        crs: Native projection of the X/Y dims (source default when omitted)
        mappedcrs: Projection the X/Y index is stored in
        name: Name for the array; the variable name when omitted
        missingval: Sentinel for missing cells. When omitted the data is read
            as masked arrays.
        source: Source class overriding detection from the file extension

    Returns:
        RasterArray backed by ``DiskData``; call ``.read()`` to load it

    Examples:
        >>> A = open_array("tas.nc")
        >>> A.dim("x").mode
    """
    options = OpenOptions(crs=crs, mappedcrs=mappedcrs, name=name, key=key, missingval=missingval)
    return get_source(path, source).open_array(path, options)


def open_stack(
    paths: StackSource,
    *,
    keys: Optional[Sequence[str]] = None,
    crs: Optional[CRSLike] = None,
    mappedcrs: Optional[CRSLike] = None,
    missingval: Any = None,
    source: Optional[Type[BaseSource]] = None,
) -> RasterStack:
    """
    Open a ``RasterStack`` from one multi-variable file or from several files.

    Args:
        paths: One path (every data variable becomes a layer), a sequence of
            paths (the first data variable of each file is a layer) or a
            mapping of layer key to path
        keys: For a single file, the variables to load. For a sequence of
            paths, the layer keys to use instead of the variable names.
        crs: Native projection of the X/Y dims
        mappedcrs: Projection the X/Y index is stored in
        missingval: Sentinel for missing cells; masked arrays when omitted
        source: Source class overriding detection from the file extension

    Raises:
        MergeConflictError: if files disagree on a shared dimension
    """
    options = OpenOptions(crs=crs, mappedcrs=mappedcrs, missingval=missingval)
    if isinstance(paths, (str, Path)):
        return get_source(paths, source).open_stack(paths, options, keys=keys)

    if isinstance(paths, Mapping):
        named: Dict[str, PathLike] = dict(paths)
    else:
        paths = list(paths)
        if keys is None:
            keys = [get_source(p, source).first_key(p) for p in paths]
        if len(keys) != len(paths):
            raise ConfigurationError(f"Got {len(keys)} keys for {len(paths)} files")
        named = dict(zip(keys, paths))

    logger.debug("Opening stack from files %s", named)
    layers = {
        key: get_source(path, source).open_array(path, options.model_copy(update={"name": key}))
        for key, path in named.items()
    }
    return RasterStack.from_arrays(layers)


def write_array(
    path: PathLike,
    array: RasterArray,
    reprojector: Optional[Reprojector] = None,
    source: Optional[Type[BaseSource]] = None,
) -> str:
    """
    Write ``array`` to ``path``, choosing the format from the extension.

    ``reprojector`` is needed only when X/Y dims are ``Projected`` in a crs
    different from their ``mappedcrs``.
    """
    return get_source(path, source).write_array(path, array, reprojector)


def write_stack(
    path: PathLike,
    stack: RasterStack,
    reprojector: Optional[Reprojector] = None,
    source: Optional[Type[BaseSource]] = None,
) -> str:
    """Write every layer of ``stack`` into the single file ``path``."""
    return get_source(path, source).write_stack(path, stack, reprojector)

