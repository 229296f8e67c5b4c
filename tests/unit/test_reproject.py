import numpy as np
import pytest
from pyproj import CRS

from rasterstack.array import RasterArray
from rasterstack.dimension import Dimension
from rasterstack.errors import ModeConversionError
from rasterstack.labels import X, Y, Z
from rasterstack.mode import Categorical, Mapped, Projected, Sampled
from rasterstack.reproject import PyprojReprojector, convert_mode
from rasterstack.stack import RasterStack
from rasterstack.types import Ordered, Points, Regular

pytestmark = pytest.mark.unit

WGS84 = CRS.from_epsg(4326)
MERCATOR = CRS.from_epsg(3857)
METRES_PER_DEGREE = 111319.49079327357


def spatial_dim(mode_cls, label=X, crs=WGS84, mappedcrs=WGS84, index=(0.0, 1.0, 2.0)) -> Dimension:
    index = np.asarray(index)
    mode = mode_cls(Ordered(), Regular(index[1] - index[0]), Points(), crs, mappedcrs)
    return Dimension(label, index, mode)


def test_non_projected_modes_pass_through() -> None:
    z = Dimension(Z, [1.0, 2.0], Sampled())
    band = Dimension("band", np.array(["a", "b"]), Categorical())
    assert convert_mode(Mapped, z) is z
    assert convert_mode(Projected, band) is band


def test_same_mode_passes_through() -> None:
    dim = spatial_dim(Mapped)
    assert convert_mode(Mapped, dim) is dim


@pytest.mark.parametrize("label", [X, Y])
def test_identity_round_trip_when_crs_matches(label) -> None:
    dim = spatial_dim(Mapped, label=label)
    projected = convert_mode(Projected, dim)
    assert isinstance(projected.mode, Projected)
    np.testing.assert_array_equal(projected.index, dim.index)
    assert convert_mode(Mapped, projected) == dim


def test_distinct_crs_needs_a_reprojector() -> None:
    dim = spatial_dim(Projected, crs=WGS84, mappedcrs=MERCATOR)
    with pytest.raises(ModeConversionError, match="reprojection support unavailable"):
        convert_mode(Mapped, dim)


def test_missing_mappedcrs_needs_a_reprojector() -> None:
    dim = spatial_dim(Projected, crs=MERCATOR, mappedcrs=None)
    with pytest.raises(ModeConversionError):
        convert_mode(Mapped, dim, PyprojReprojector())


def test_only_projection_targets_are_allowed() -> None:
    with pytest.raises(ModeConversionError):
        convert_mode(Sampled, spatial_dim(Mapped))


def test_pyproj_reprojects_x_to_mercator() -> None:
    dim = spatial_dim(Projected, crs=WGS84, mappedcrs=MERCATOR)
    mapped = convert_mode(Mapped, dim, PyprojReprojector())
    assert isinstance(mapped.mode, Mapped)
    np.testing.assert_allclose(mapped.index, [0.0, METRES_PER_DEGREE, 2 * METRES_PER_DEGREE])
    assert mapped.span.step == pytest.approx(METRES_PER_DEGREE)
    assert mapped.crs == WGS84
    assert mapped.mappedcrs == MERCATOR

    back = convert_mode(Projected, mapped, PyprojReprojector())
    np.testing.assert_allclose(back.index, dim.index, atol=1e-9)


def test_array_and_stack_dims_are_converted() -> None:
    x = spatial_dim(Mapped, label=X)
    y = spatial_dim(Mapped, label=Y, index=(10.0, 11.0))
    array = RasterArray(np.zeros((3, 2)), (x, y), name="a")

    converted = convert_mode(Projected, array)
    assert all(isinstance(d.mode, Projected) for d in converted.dims)
    np.testing.assert_array_equal(converted.values, array.values)

    stack = RasterStack.from_arrays([array])
    assert all(isinstance(d.mode, Projected) for d in convert_mode(Projected, stack).dims)
    assert isinstance(convert_mode(Projected, stack)["a"].dim(X).mode, Projected)
