import numpy as np
import pandas as pd
import pytest
from hypothesis import given
from hypothesis import strategies as st
from pyproj import CRS

from rasterstack.inference import (
    infer_mode,
    infer_order,
    infer_period,
    infer_span,
    is_time_index,
    parse_period,
)
from rasterstack.labels import TIME, X, Y, Z, named
from rasterstack.mode import Categorical, Mapped, Projected, Sampled
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

FORWARD = Ordered(IndexOrder.FORWARD, ArrayOrder.FORWARD, Relation.FORWARD)
REVERSE = Ordered(IndexOrder.REVERSE, ArrayOrder.REVERSE, Relation.FORWARD)


@pytest.mark.unit
class TestInferOrder:
    def test_increasing_is_forward(self) -> None:
        assert infer_order([1, 2, 3]) == FORWARD

    def test_decreasing_is_reverse(self) -> None:
        assert infer_order([3, 2, 1]) == REVERSE

    def test_only_endpoints_are_compared(self) -> None:
        assert infer_order(np.array([1.0, 5.0, 0.0, 2.0])) == FORWARD


@pytest.mark.unit
class TestInferSpan:
    def test_irregular_bounds_from_first_and_last_steps(self) -> None:
        index = np.array([0, 1, 3, 4])
        assert infer_span(index, infer_order(index)) == Irregular((-0.5, 4.5))

    def test_reversed_irregular_bounds(self) -> None:
        index = np.array([4.0, 3.0, 1.0, 0.0])
        assert infer_span(index, infer_order(index)) == Irregular((-0.5, 4.5))

    def test_asymmetric_end_steps_swap_for_reversed_index(self) -> None:
        forward = np.array([0, 2, 3, 4])
        reverse = forward[::-1]
        assert infer_span(forward, infer_order(forward)) == Irregular((-1.0, 4.5))
        assert infer_span(reverse, infer_order(reverse)) == Irregular((-1.0, 4.5))

    def test_unsigned_descending_step_is_negative(self) -> None:
        index = np.array([3, 2, 1], dtype="u1")
        assert infer_span(index, infer_order(index)) == Regular(-1)

    def test_unsigned_irregular_bounds_do_not_wrap(self) -> None:
        index = np.array([4, 3, 1, 0], dtype="u1")
        assert infer_span(index, infer_order(index)) == Irregular((-0.5, 4.5))

    def test_float_steps_compare_approximately(self) -> None:
        index = np.array([0.1, 0.2, 0.3, 0.4])
        span = infer_span(index, infer_order(index))
        assert isinstance(span, Regular)
        assert span.step == pytest.approx(0.1)

    def test_length_one_is_regular_zero(self) -> None:
        assert infer_span(np.array([7.5]), FORWARD) == Regular(0)


@pytest.mark.property
@given(
    start=st.integers(min_value=-1000, max_value=1000),
    step=st.integers(min_value=-100, max_value=100).filter(lambda s: s != 0),
    n=st.integers(min_value=2, max_value=50),
)
def test_constant_integer_step_is_regular(start: int, step: int, n: int) -> None:
    index = start + step * np.arange(n)
    assert infer_span(index, infer_order(index)) == Regular(step)


@pytest.mark.property
@given(
    start=st.integers(min_value=-1000, max_value=1000),
    step=st.sampled_from([0.1, 0.25, 0.5, 1.5, -0.5, -2.0]),
    n=st.integers(min_value=2, max_value=100),
)
def test_constant_float_step_is_regular(start: int, step: float, n: int) -> None:
    index = start + step * np.arange(n)
    span = infer_span(index, infer_order(index))
    assert isinstance(span, Regular)
    assert span.step == pytest.approx(step)


@pytest.mark.property
@given(value=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
def test_length_one_index_is_regular_zero(value: float) -> None:
    index = np.array([value])
    assert infer_span(index, infer_order(index)) == Regular(0)


@pytest.mark.unit
class TestParsePeriod:
    def test_single_component_is_timedelta(self) -> None:
        assert parse_period("0000-00-00 00:01:00") == np.timedelta64(1, "m")
        assert parse_period("0000-00-01 00:00:00") == np.timedelta64(1, "D")

    def test_compound_duration_is_date_offset(self) -> None:
        assert parse_period("0000-01-01 00:00:00") == pd.DateOffset(months=1, days=1)

    def test_unparsable_is_none(self) -> None:
        assert parse_period("monthly") is None

    def test_zero_duration_is_none(self) -> None:
        assert parse_period("0000-00-00 00:00:00") is None


@pytest.mark.unit
class TestInferPeriod:
    def test_delta_t_is_regular_points(self) -> None:
        span, sampling = infer_period({"delta_t": "0000-00-01 00:00:00"})
        assert span == Regular(np.timedelta64(1, "D"))
        assert sampling == Points()

    def test_avg_period_is_regular_centered_intervals(self) -> None:
        span, sampling = infer_period({"avg_period": "0000-01-00 00:00:00"})
        assert span == Regular(np.timedelta64(1, "M"))
        assert sampling == Intervals(Locus.CENTER)

    def test_unparsable_is_irregular_points(self) -> None:
        assert infer_period({"delta_t": "garbage"}) == (Irregular(), Points())
        assert infer_period(None) == (Irregular(), Points())


@pytest.mark.unit
class TestInferMode:
    def test_spatial_dims_are_mapped_with_mappedcrs(self) -> None:
        wgs84 = CRS.from_epsg(4326)
        mode = infer_mode(np.arange(3.0), X, crs=wgs84, mappedcrs=wgs84)
        assert isinstance(mode, Mapped)
        assert mode.crs == wgs84
        assert mode.span == Regular(1.0)

    def test_spatial_dims_are_projected_without_mappedcrs(self) -> None:
        mode = infer_mode(np.arange(3.0), Y, crs=CRS.from_epsg(3857))
        assert isinstance(mode, Projected)

    def test_other_numeric_dims_are_sampled(self) -> None:
        mode = infer_mode(np.array([10.0, 20.0, 30.0]), Z)
        assert mode == Sampled(FORWARD, Regular(10.0), Points())

    def test_bounds_give_explicit_centered_intervals(self) -> None:
        bounds = np.array([[0.0, 10.0], [10.0, 20.0]])
        mode = infer_mode(np.array([5.0, 15.0]), Z, bounds=bounds)
        assert mode.span == Explicit(bounds)
        assert mode.sampling == Intervals(Locus.CENTER)

    def test_time_dims_use_period_metadata(self) -> None:
        index = np.array(["2000-01-01", "2000-01-02"], dtype="datetime64[ns]")
        assert is_time_index(index)
        mode = infer_mode(index, TIME, metadata={"delta_t": "0000-00-01 00:00:00"})
        assert mode == Sampled(FORWARD, Regular(np.timedelta64(1, "D")), Points())

    def test_strings_are_categorical(self) -> None:
        assert infer_mode(np.array(["a", "b"]), named("site")) == Categorical()

    def test_empty_index_is_categorical(self) -> None:
        assert infer_mode(np.array([], dtype=float), named("empty")) == Categorical()
