"""
Genomic sequence annotation model.

Features located on reference sequences, linked into parent/child
hierarchies, carrying typed attributes; binned signal tracks (wiggles);
and a schema-evolution-aware binary codec for all of them.

Example:
    >>> from src.sequence_annotations import (
    ...     AnnotationSet, Feature, FeatureSet, OntologyTerm, Path,
    ... )
    >>> aset = AnnotationSet(FeatureSet(id="fs1"))
    >>> aset.add(Feature(
    ...     id="gene1", feature_set_id="fs1",
    ...     path=Path("chr13", 32315473, 84193),
    ...     feature_type=OntologyTerm("SO:0000704", "gene"),
    ... ))
    >>> aset.validate().passed
    True
"""

# Data model
from .core import (
    AnnotationSet,
    AttributeKind,
    AttributeStore,
    AttributeValue,
    ExternalIdentifier,
    Feature,
    FeatureGraph,
    FeatureSet,
    GraphState,
    GraphValidationResult,
    GraphViolation,
    OntologyTerm,
    OpaqueValue,
    Path,
    Strand,
    ViolationType,
    Wiggle,
    WiggleSet,
    bin_bounds,
    value_at,
    values_at,
)

# Errors
from .core.errors import (
    AnnotationError,
    AttributeNotFoundError,
    CycleDetectedError,
    DanglingReferenceError,
    DuplicateIdError,
    FeatureNotFoundError,
    FeatureSetMismatchError,
    InvalidAttributeError,
    InvalidRegionError,
    ReferenceSpaceError,
)

# Codec
from .codec import (
    AnnotationCodec,
    CodecError,
    DecodeError,
    DecodeErrorReason,
    DecodeWarning,
    EncodeError,
    RecordType,
)

# Configuration
from .config import AnnotationConfig, CodecConfig, GraphConfig, UnknownFieldPolicy

# Logging
from .utils.logging import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Data model
    "Path",
    "Strand",
    "OntologyTerm",
    "ExternalIdentifier",
    "OpaqueValue",
    "AttributeKind",
    "AttributeValue",
    "AttributeStore",
    "Feature",
    "FeatureSet",
    "WiggleSet",
    "Wiggle",
    "value_at",
    "values_at",
    "bin_bounds",
    "FeatureGraph",
    "GraphState",
    "GraphValidationResult",
    "GraphViolation",
    "ViolationType",
    "AnnotationSet",
    # Errors
    "AnnotationError",
    "InvalidAttributeError",
    "AttributeNotFoundError",
    "FeatureNotFoundError",
    "DuplicateIdError",
    "DanglingReferenceError",
    "FeatureSetMismatchError",
    "ReferenceSpaceError",
    "CycleDetectedError",
    "InvalidRegionError",
    # Codec
    "AnnotationCodec",
    "RecordType",
    "DecodeWarning",
    "CodecError",
    "DecodeError",
    "DecodeErrorReason",
    "EncodeError",
    # Configuration
    "AnnotationConfig",
    "GraphConfig",
    "CodecConfig",
    "UnknownFieldPolicy",
    # Logging
    "setup_logging",
    "get_logger",
]
