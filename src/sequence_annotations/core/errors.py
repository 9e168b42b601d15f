"""
Sequence annotation model exceptions.

Provides custom exception classes for attribute storage, feature graph
construction and validation, and wiggle evaluation errors.
"""

from typing import List, Optional


class AnnotationError(Exception):
    """Base exception for the annotation data model."""
    pass


class InvalidAttributeError(AnnotationError):
    """Raised when an attribute would be stored without any values."""
    def __init__(self, name: str, message: str = "attribute requires at least one value"):
        self.name = name
        super().__init__(f"Invalid attribute '{name}': {message}")


class NotFoundError(AnnotationError, KeyError):
    """Raised when a lookup by name or id finds nothing."""

    def __str__(self) -> str:
        # KeyError quotes its argument
        return Exception.__str__(self)


class AttributeNotFoundError(NotFoundError):
    """Raised when an attribute name is absent from a store."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Attribute not found: {name}")


class FeatureNotFoundError(NotFoundError):
    """Raised when a feature id is absent from a graph."""
    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(f"Feature not found: {feature_id}")


class DuplicateIdError(AnnotationError):
    """Raised when inserting a feature whose id is already present."""
    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(f"Duplicate feature id: {feature_id}")


class DanglingReferenceError(AnnotationError):
    """Raised when a parent id or set linkage cannot be resolved."""
    def __init__(self, feature_id: str, missing_id: str, message: Optional[str] = None):
        self.feature_id = feature_id
        self.missing_id = missing_id
        super().__init__(
            message or f"Feature '{feature_id}' references missing parent '{missing_id}'"
        )


class FeatureSetMismatchError(DanglingReferenceError):
    """Raised when a feature does not belong to the owning feature set."""
    def __init__(self, feature_id: str, feature_set_id: str, expected_set_id: str):
        self.feature_set_id = feature_set_id
        self.expected_set_id = expected_set_id
        super().__init__(
            feature_id,
            feature_set_id,
            f"Feature '{feature_id}' belongs to feature set '{feature_set_id}', "
            f"expected '{expected_set_id}'",
        )


class ReferenceSpaceError(DanglingReferenceError):
    """Raised when a feature path lies outside the set's reference space."""
    def __init__(self, feature_id: str, reference_set_id: str, expected_reference_set_id: str):
        self.reference_set_id = reference_set_id
        self.expected_reference_set_id = expected_reference_set_id
        super().__init__(
            feature_id,
            reference_set_id,
            f"Feature '{feature_id}' path is in reference set '{reference_set_id}', "
            f"expected '{expected_reference_set_id}'",
        )


class CycleDetectedError(AnnotationError):
    """Raised when a feature is its own ancestor."""
    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        cycle_str = " -> ".join(cycle + [cycle[0]])
        super().__init__(f"Cycle detected in feature graph: {cycle_str}")


class InvalidRegionError(AnnotationError):
    """Raised when wiggle bin math is undefined or a position is malformed."""
    pass
