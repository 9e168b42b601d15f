"""
Annotation set container.

An AnnotationSet pairs a FeatureSet record with the FeatureGraph holding its
features. The set owns its features: dropping the AnnotationSet drops them.
"""

import logging
from typing import Iterable, List, Optional

from ..config import GraphConfig
from .graph import FeatureGraph, GraphValidationResult, ReferenceResolver
from .records import Feature, FeatureSet

logger = logging.getLogger(__name__)


class AnnotationSet:
    """
    Feature set together with its features.

    Example:
        >>> aset = AnnotationSet(FeatureSet(id="fs1", reference_set_id="GRCh38"))
        >>> aset.add(gene)
        >>> aset.add(transcript)
        >>> aset.validate().passed
        True
    """

    def __init__(
        self,
        feature_set: FeatureSet,
        features: Optional[Iterable[Feature]] = None,
        partial: Optional[bool] = None,
        exhaustive: Optional[bool] = None,
        thread_safe: Optional[bool] = None,
        config: Optional[GraphConfig] = None,
    ):
        """
        Initialize an annotation set.

        Args:
            feature_set: The set record
            features: Optional features to insert
            partial, exhaustive, thread_safe, config: Passed to FeatureGraph

        Raises:
            DuplicateIdError: If features repeat an id
        """
        self.feature_set = feature_set
        self.graph = FeatureGraph(
            feature_set_id=feature_set.id,
            reference_set_id=feature_set.reference_set_id,
            partial=partial,
            exhaustive=exhaustive,
            thread_safe=thread_safe,
            config=config,
        )
        for feature in features or []:
            self.graph.insert(feature)

    @property
    def id(self) -> str:
        return self.feature_set.id

    @property
    def features(self) -> List[Feature]:
        return self.graph.features()

    def add(self, feature: Feature) -> None:
        """
        Add a feature to the set.

        Membership (feature.feature_set_id) is checked by validate(), so
        features can be staged before their set id is fixed up.

        Raises:
            DuplicateIdError: If the id is already present
        """
        self.graph.insert(feature)

    def validate(
        self,
        reference_resolver: Optional[ReferenceResolver] = None,
        exhaustive: Optional[bool] = None,
    ) -> GraphValidationResult:
        """Validate the feature graph against this set."""
        result = self.graph.validate(reference_resolver, exhaustive=exhaustive)
        if not result.passed:
            logger.warning(f"Annotation set {self.id}: {result}")
        return result

    def __len__(self) -> int:
        return len(self.graph)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotationSet):
            return NotImplemented
        return (
            self.feature_set == other.feature_set
            and self.graph.features() == other.graph.features()
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"AnnotationSet(id='{self.id}', features={len(self.graph)})"
