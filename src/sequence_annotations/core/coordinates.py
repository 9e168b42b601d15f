"""
Genomic coordinate value types.

A Path is a half-open region [start, start + length) on a named reference
sequence. Coordinates are 0-based.
"""

from dataclasses import dataclass
from enum import Enum


class Strand(str, Enum):
    """Strandedness of a genomic region."""
    POSITIVE = "+"
    NEGATIVE = "-"
    UNSTRANDED = "."


@dataclass(frozen=True)
class Path:
    """Immutable genomic region on a single reference sequence."""
    reference_name: str
    start: int
    length: int
    strand: Strand = Strand.UNSTRANDED

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Path start must be non-negative, got {self.start}")
        if self.length < 0:
            raise ValueError(f"Path length must be non-negative, got {self.length}")
        # Accept the GFF3 symbol as well as the enum member
        object.__setattr__(self, "strand", Strand(self.strand))

    @property
    def end(self) -> int:
        """Exclusive end coordinate."""
        return self.start + self.length

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end

    def overlaps(self, reference_name: str, start: int, end: int) -> bool:
        """Check overlap with the half-open region [start, end)."""
        return (
            self.reference_name == reference_name
            and self.start < end
            and start < self.end
        )

    def __str__(self) -> str:
        return f"{self.reference_name}:{self.start}-{self.end}({self.strand.value})"
