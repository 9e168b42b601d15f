"""
Annotation data model.

Exports:
- Path, Strand: Genomic coordinates
- OntologyTerm, ExternalIdentifier: Typed attribute payloads
- AttributeValue, AttributeStore: Tagged attribute values by name
- Feature, FeatureSet, WiggleSet: Annotation records
- Wiggle, value_at: Binned signal and its evaluation
- FeatureGraph: Parent/child structure over features
- AnnotationSet: A feature set owning its features
"""

from .attributes import (
    AttributeKind,
    AttributeStore,
    AttributeValue,
    ExternalIdentifier,
    OpaqueValue,
)
from .containers import AnnotationSet
from .coordinates import Path, Strand
from .errors import (
    AnnotationError,
    AttributeNotFoundError,
    CycleDetectedError,
    DanglingReferenceError,
    DuplicateIdError,
    FeatureNotFoundError,
    FeatureSetMismatchError,
    InvalidAttributeError,
    InvalidRegionError,
    NotFoundError,
    ReferenceSpaceError,
)
from .graph import (
    FeatureGraph,
    GraphState,
    GraphValidationResult,
    GraphViolation,
    ReferenceResolver,
    ViolationType,
)
from .ontology import OntologyTerm
from .records import Feature, FeatureSet, WiggleSet
from .wiggle import Wiggle, bin_bounds, bin_edges, bin_index, value_at, values_at

__all__ = [
    # Coordinates and payloads
    "Path",
    "Strand",
    "OntologyTerm",
    "ExternalIdentifier",
    "OpaqueValue",
    # Attributes
    "AttributeKind",
    "AttributeValue",
    "AttributeStore",
    # Records
    "Feature",
    "FeatureSet",
    "WiggleSet",
    # Wiggle evaluation
    "Wiggle",
    "value_at",
    "values_at",
    "bin_index",
    "bin_bounds",
    "bin_edges",
    # Graph
    "FeatureGraph",
    "GraphState",
    "GraphValidationResult",
    "GraphViolation",
    "ReferenceResolver",
    "ViolationType",
    "AnnotationSet",
    # Errors
    "AnnotationError",
    "InvalidAttributeError",
    "NotFoundError",
    "AttributeNotFoundError",
    "FeatureNotFoundError",
    "DuplicateIdError",
    "DanglingReferenceError",
    "FeatureSetMismatchError",
    "ReferenceSpaceError",
    "CycleDetectedError",
    "InvalidRegionError",
]
