"""
Tests for wiggle bin evaluation.

Tests:
- Bin boundaries at region edges
- Out-of-region and zero-bin positions
- Invalid regions and malformed positions
- Vectorised evaluation
- Bin spans agree with bin lookup
"""

import numpy as np
import pytest

from src.sequence_annotations.core.coordinates import Path
from src.sequence_annotations.core.errors import InvalidRegionError
from src.sequence_annotations.core.wiggle import (
    Wiggle,
    bin_bounds,
    bin_edges,
    bin_index,
    value_at,
    values_at,
)


@pytest.fixture
def two_bins():
    """Region [100, 110) in two bins of width 5."""
    return Wiggle(Path("chr1", 100, 10), [1.0, 2.0])


# ============================================================================
# Tests: value_at
# ============================================================================

class TestValueAt:
    """Tests for scalar evaluation."""

    def test_first_position_of_second_bin(self, two_bins):
        assert value_at(two_bins, 105) == 2.0

    def test_last_position_maps_to_last_bin(self, two_bins):
        assert value_at(two_bins, 109) == 2.0

    def test_first_bin(self, two_bins):
        assert value_at(two_bins, 100) == 1.0
        assert value_at(two_bins, 104) == 1.0

    def test_outside_region_has_no_value(self, two_bins):
        assert value_at(two_bins, 99) is None
        assert value_at(two_bins, 110) is None
        assert value_at(two_bins, 0) is None

    def test_zero_bins_has_no_value(self):
        wiggle = Wiggle(Path("chr1", 100, 10), [])
        for position in range(100, 110):
            assert value_at(wiggle, position) is None

    def test_uneven_bins(self):
        wiggle = Wiggle(Path("chr1", 0, 10), [1.0, 2.0, 3.0])
        assert [value_at(wiggle, p) for p in range(10)] == [
            1.0, 1.0, 1.0, 1.0, 2.0, 2.0, 2.0, 3.0, 3.0, 3.0,
        ]

    def test_more_bins_than_positions(self):
        wiggle = Wiggle(Path("chr1", 0, 2), [1.0, 2.0, 3.0, 4.0])
        assert value_at(wiggle, 0) == 1.0
        assert value_at(wiggle, 1) == 3.0

    def test_large_coordinates_are_exact(self):
        wiggle = Wiggle(Path("chr1", 2_000_000_000, 3_000_000), [0.0] * 2999 + [9.0])
        assert value_at(wiggle, 2_000_000_000 + 2_999_000) == 9.0
        assert value_at(wiggle, 2_000_000_000 + 2_998_999) == 0.0

    def test_method_delegates(self, two_bins):
        assert two_bins.value_at(105) == 2.0


class TestInvalidRegion:
    """Tests for undefined bin math and malformed positions."""

    def test_zero_length_with_bins(self):
        wiggle = Wiggle(Path("chr1", 100, 0), [1.0])
        with pytest.raises(InvalidRegionError):
            value_at(wiggle, 100)

    def test_zero_length_without_bins(self):
        wiggle = Wiggle(Path("chr1", 100, 0), [])
        assert value_at(wiggle, 100) is None

    @pytest.mark.parametrize("position", [105.0, "105", None, True])
    def test_malformed_position(self, two_bins, position):
        with pytest.raises(InvalidRegionError):
            value_at(two_bins, position)

    def test_numpy_integer_position(self, two_bins):
        assert value_at(two_bins, np.int64(105)) == 2.0


# ============================================================================
# Tests: values_at
# ============================================================================

class TestValuesAt:
    """Tests for vectorised evaluation."""

    def test_matches_scalar(self, two_bins):
        positions = list(range(95, 115))
        expected = [
            np.nan if value_at(two_bins, p) is None else value_at(two_bins, p)
            for p in positions
        ]
        np.testing.assert_array_equal(values_at(two_bins, positions), expected)

    def test_numpy_input(self, two_bins):
        result = values_at(two_bins, np.array([99, 100, 105, 110]))
        np.testing.assert_array_equal(result, [np.nan, 1.0, 2.0, np.nan])
        assert result.dtype == np.float64

    def test_zero_bins(self):
        wiggle = Wiggle(Path("chr1", 100, 10), [])
        assert np.isnan(values_at(wiggle, range(100, 110))).all()

    def test_empty_input(self, two_bins):
        assert values_at(two_bins, []).size == 0

    def test_float_positions_rejected(self, two_bins):
        with pytest.raises(InvalidRegionError):
            values_at(two_bins, np.array([100.5]))

    def test_zero_length_with_bins(self):
        wiggle = Wiggle(Path("chr1", 100, 0), [1.0])
        with pytest.raises(InvalidRegionError):
            values_at(wiggle, [100])


# ============================================================================
# Tests: Bin spans
# ============================================================================

class TestBinBounds:
    """Tests for bin spans."""

    def test_even_bins(self, two_bins):
        assert bin_bounds(two_bins, 0) == (100, 105)
        assert bin_bounds(two_bins, 1) == (105, 110)

    def test_uneven_bins(self):
        wiggle = Wiggle(Path("chr1", 100, 10), [1.0, 2.0, 3.0])
        assert bin_edges(wiggle) == [100, 104, 107, 110]

    def test_bounds_agree_with_lookup(self):
        wiggle = Wiggle(Path("chr1", 50, 23), [float(i) for i in range(7)])
        for position in range(50, 73):
            start, end = bin_bounds(wiggle, bin_index(wiggle, position))
            assert start <= position < end

    def test_empty_bin(self):
        wiggle = Wiggle(Path("chr1", 0, 2), [1.0, 2.0, 3.0, 4.0])
        start, end = bin_bounds(wiggle, 1)
        assert start == end

    def test_index_out_of_range(self, two_bins):
        with pytest.raises(InvalidRegionError):
            bin_bounds(two_bins, 2)
        with pytest.raises(InvalidRegionError):
            bin_bounds(two_bins, -1)

    def test_edges_without_bins(self):
        assert bin_edges(Wiggle(Path("chr1", 100, 10), [])) == [100]


class TestWiggleRecord:
    """Tests for the record itself."""

    def test_values_stored_as_float_tuple(self):
        wiggle = Wiggle(Path("chr1", 0, 10), [1, 2])
        assert wiggle.values == (1.0, 2.0)
        assert all(isinstance(v, float) for v in wiggle.values)
        assert wiggle.count == 2

    def test_equality(self):
        assert Wiggle(Path("chr1", 0, 10), [1.0]) == Wiggle(Path("chr1", 0, 10), (1,))

    def test_nan_bins_compare_equal(self):
        wiggle = Wiggle(Path("chr1", 0, 10), [1.0, float("nan")])
        assert wiggle == Wiggle(Path("chr1", 0, 10), [1.0, float("nan")])
        assert wiggle != Wiggle(Path("chr1", 0, 10), [1.0, 2.0])
        assert wiggle != Wiggle(Path("chr1", 0, 10), [1.0])
