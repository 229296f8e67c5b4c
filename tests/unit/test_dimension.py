import logging

import numpy as np
import pytest

from rasterstack.dimension import Dimension, shift_locus, shift_locus_for_write
from rasterstack.errors import ModeConversionError
from rasterstack.labels import BAND, TIME, X, Y, AxisKind, DimLabel, as_label, named
from rasterstack.mode import Categorical, NoIndex, Sampled
from rasterstack.types import (
    ArrayOrder,
    Explicit,
    IndexOrder,
    Intervals,
    Irregular,
    Locus,
    Ordered,
    Points,
    Regular,
    Relation,
)

pytestmark = pytest.mark.unit


def regular_dim(label=X, start=0.0, step=1.0, n=4, sampling=None) -> Dimension:
    index = start + step * np.arange(n)
    order = Ordered() if step > 0 else Ordered(IndexOrder.REVERSE, ArrayOrder.REVERSE, Relation.FORWARD)
    return Dimension(label, index, Sampled(order, Regular(step), sampling or Points()))


class TestLabels:
    def test_standard_names_resolve_case_insensitively(self) -> None:
        assert as_label("x") == X
        assert as_label("TIME") == TIME
        assert as_label(AxisKind.BAND) == BAND

    def test_other_names_are_generic(self) -> None:
        label = as_label("Site")
        assert label == DimLabel(AxisKind.NAMED, "Site")
        assert label.key == "site"
        assert not label.is_spatial

    def test_named_axis_kind_needs_a_name(self) -> None:
        with pytest.raises(ValueError):
            as_label(AxisKind.NAMED)


class TestDimension:
    def test_label_is_coerced(self) -> None:
        dim = Dimension("y", [1, 2, 3])
        assert dim.label == Y
        assert dim.name == "y"
        assert isinstance(dim.index, np.ndarray)

    def test_positional_keeps_range(self) -> None:
        dim = Dimension.positional(named("cell"), 5)
        assert dim.index == range(5)
        assert dim.mode == NoIndex()
        assert len(dim) == 5

    def test_metadata_is_read_only(self) -> None:
        dim = Dimension(X, [1.0], metadata={"units": "m"})
        with pytest.raises(TypeError):
            dim.metadata["units"] = "km"

    def test_equality_compares_index_values(self) -> None:
        assert regular_dim() == regular_dim()
        assert regular_dim() != regular_dim(start=1.0)

    def test_unsampled_accessors_raise(self) -> None:
        dim = Dimension(BAND, np.array(["a", "b"]), Categorical())
        with pytest.raises(ModeConversionError):
            dim.span

    def test_isel_slice_scales_regular_step(self) -> None:
        dim = regular_dim(n=6).isel(slice(0, 6, 2))
        np.testing.assert_array_equal(dim.index, [0.0, 2.0, 4.0])
        assert dim.span == Regular(2.0)

    def test_isel_negative_step_flips_order(self) -> None:
        dim = regular_dim().isel(slice(None, None, -1))
        assert dim.order.index == IndexOrder.REVERSE
        assert dim.span == Regular(-1.0)

    def test_isel_int_keeps_length_one(self) -> None:
        dim = regular_dim().isel(2)
        np.testing.assert_array_equal(dim.index, [2.0])

    def test_isel_list_reinfers_span(self) -> None:
        dim = regular_dim(n=6).isel([0, 1, 3])
        assert dim.span == Irregular((-0.5, 3.5))

    def test_isel_slices_explicit_bounds(self) -> None:
        bounds = np.array([[0.0, 1.0], [1.0, 2.0], [2.0, 3.0]])
        dim = Dimension(X, [0.5, 1.5, 2.5], Sampled(Ordered(), Explicit(bounds), Intervals()))
        assert dim.isel(slice(1, 3)).span == Explicit(bounds[1:])

    def test_reversed(self) -> None:
        dim = regular_dim().reversed()
        np.testing.assert_array_equal(dim.index, [3.0, 2.0, 1.0, 0.0])
        assert dim.order == Ordered(IndexOrder.REVERSE, ArrayOrder.REVERSE, Relation.FORWARD)
        assert dim.span == Regular(-1.0)
        assert dim.reversed() == regular_dim()


class TestShiftLocus:
    def test_start_to_center(self) -> None:
        dim = regular_dim(sampling=Intervals(Locus.START))
        shifted = shift_locus(dim, Locus.CENTER)
        np.testing.assert_allclose(shifted.index, [0.5, 1.5, 2.5, 3.5])
        assert shifted.locus == Locus.CENTER

    def test_reverse_step_uses_absolute_width(self) -> None:
        dim = regular_dim(start=3.0, step=-1.0, sampling=Intervals(Locus.END))
        shifted = shift_locus(dim, Locus.CENTER)
        np.testing.assert_allclose(shifted.index, [2.5, 1.5, 0.5, -0.5])

    def test_center_is_identity(self) -> None:
        dim = regular_dim(sampling=Intervals(Locus.CENTER))
        assert shift_locus(dim, Locus.CENTER) is dim

    def test_points_cannot_shift(self) -> None:
        with pytest.raises(ModeConversionError):
            shift_locus(regular_dim())

    def test_write_shift_skips_time_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        index = np.array(["2000-01-01", "2000-01-02"], dtype="datetime64[ns]")
        mode = Sampled(Ordered(), Regular(np.timedelta64(1, "D")), Intervals(Locus.START))
        dim = Dimension(TIME, index, mode)
        with caplog.at_level(logging.WARNING, logger="rasterstack.dimension"):
            assert shift_locus_for_write(dim) is dim
        assert "interval center" in caplog.text

    def test_write_shift_centers_spatial_intervals(self) -> None:
        dim = regular_dim(sampling=Intervals(Locus.START))
        assert shift_locus_for_write(dim).locus == Locus.CENTER
        assert shift_locus_for_write(regular_dim()) == regular_dim()
