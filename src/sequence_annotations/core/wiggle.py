"""
Continuous signal over a genomic region sampled into equal-width bins.

A Wiggle with `count = len(values)` bins covers [path.start, path.end). The
bin holding position p is

    floor((p - path.start) * count / path.length)

computed in integer arithmetic and clamped to [0, count - 1], so the last
position of the region always maps to the last bin.

Positions outside the region have no value (None, or NaN for the vectorised
form); they are never treated as zero. Gaps between disjoint regions need
separate Wiggle records and are never interpolated; overlapping Wiggles over
the same path are not merged here.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from .coordinates import Path
from .errors import InvalidRegionError


@dataclass
class Wiggle:
    """Binned numeric signal over one genomic region."""
    path: Path
    values: Tuple[float, ...] = ()
    extensions: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.values = tuple(float(v) for v in self.values)

    def __eq__(self, other: object) -> bool:
        # NaN bins compare equal so a decoded wiggle equals its source
        if not isinstance(other, Wiggle):
            return NotImplemented
        return (
            self.path == other.path
            and self.count == other.count
            and bool(np.array_equal(self.values, other.values, equal_nan=True))
            and self.extensions == other.extensions
        )

    @property
    def count(self) -> int:
        """Number of bins."""
        return len(self.values)

    def value_at(self, position: int) -> Optional[float]:
        return value_at(self, position)

    def values_at(self, positions: Iterable[int]) -> np.ndarray:
        return values_at(self, positions)


def _check_position(position: Any) -> None:
    if isinstance(position, bool) or not isinstance(position, numbers.Integral):
        raise InvalidRegionError(
            f"Position must be an integer, got {type(position).__name__}"
        )


def _check_region(wiggle: Wiggle) -> None:
    if wiggle.count > 0 and wiggle.path.length == 0:
        raise InvalidRegionError(
            f"Wiggle over zero-length path {wiggle.path} cannot hold "
            f"{wiggle.count} bins"
        )


def bin_index(wiggle: Wiggle, position: int) -> Optional[int]:
    """
    Get the bin holding a position.

    Args:
        wiggle: Wiggle to evaluate
        position: 0-based genomic position

    Returns:
        Bin index, or None when the position is outside the region or the
        wiggle has no bins

    Raises:
        InvalidRegionError: If position is not an integer, or the path has
            zero length while bins are present
    """
    _check_position(position)
    _check_region(wiggle)

    path = wiggle.path
    count = wiggle.count
    if count == 0 or not path.contains(position):
        return None

    index = (int(position) - path.start) * count // path.length
    return min(max(index, 0), count - 1)


def value_at(wiggle: Wiggle, position: int) -> Optional[float]:
    """
    Evaluate the signal at a position.

    Returns:
        The value of the bin holding position, or None outside the region
        or when there are no bins

    Raises:
        InvalidRegionError: See bin_index
    """
    index = bin_index(wiggle, position)
    if index is None:
        return None
    return wiggle.values[index]


def values_at(wiggle: Wiggle, positions: Iterable[int]) -> np.ndarray:
    """
    Vectorised value_at.

    Args:
        wiggle: Wiggle to evaluate
        positions: Integer positions (list, range or integer numpy array)

    Returns:
        float64 array shaped like positions, NaN where value_at gives None

    Raises:
        InvalidRegionError: If positions are not integers, or the path has
            zero length while bins are present
    """
    if not isinstance(positions, np.ndarray):
        positions = np.asarray(list(positions))
    if positions.size == 0:
        return np.full(positions.shape, np.nan, dtype=np.float64)
    if not np.issubdtype(positions.dtype, np.integer):
        raise InvalidRegionError(
            f"Positions must be integers, got dtype {positions.dtype}"
        )
    _check_region(wiggle)

    result = np.full(positions.shape, np.nan, dtype=np.float64)
    count = wiggle.count
    if count == 0:
        return result

    path = wiggle.path
    positions = positions.astype(np.int64)
    inside = (positions >= path.start) & (positions < path.end)
    index = (positions[inside] - path.start) * count // path.length
    index = np.clip(index, 0, count - 1)
    result[inside] = np.asarray(wiggle.values, dtype=np.float64)[index]
    return result


def bin_bounds(wiggle: Wiggle, index: int) -> Tuple[int, int]:
    """
    Get the half-open genomic span [start, end) covered by a bin.

    A bin covers no positions (start == end) when there are more bins than
    positions in the region.

    Raises:
        InvalidRegionError: If index is out of range or the region is invalid
    """
    _check_region(wiggle)
    count = wiggle.count
    if isinstance(index, bool) or not isinstance(index, numbers.Integral) or not 0 <= index < count:
        raise InvalidRegionError(f"Bin index {index} out of range for {count} bins")

    path = wiggle.path
    # first position p with floor((p - start) * count / length) >= i
    lower = -(-index * path.length // count)
    upper = -(-(index + 1) * path.length // count)
    return path.start + lower, path.start + upper


def bin_edges(wiggle: Wiggle) -> Sequence[int]:
    """Boundaries of all bins: count + 1 positions from path.start to path.end."""
    _check_region(wiggle)
    path = wiggle.path
    count = wiggle.count
    if count == 0:
        return [path.start]
    return [path.start + -(-i * path.length // count) for i in range(count + 1)]
