"""
Annotation records: features and the sets that group them.

Optional fields use None as the absent marker. An empty string is a set value
and stays distinct from absent. `extensions` holds top-level fields from a
newer schema version that were preserved while decoding.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .attributes import AttributeStore
from .coordinates import Path
from .ontology import OntologyTerm


@dataclass
class Feature:
    """
    Discrete annotation node over a genomic region.

    Parents are referenced by id only. A referenced parent may not be loaded
    yet; resolution happens in FeatureGraph.
    """
    id: str
    feature_set_id: str
    path: Path
    feature_type: OntologyTerm
    parent_ids: List[str] = field(default_factory=list)
    attributes: AttributeStore = field(default_factory=AttributeStore)
    extensions: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.parent_ids = list(self.parent_ids)

    @property
    def is_root(self) -> bool:
        return not self.parent_ids

    def __repr__(self) -> str:
        parents = ", ".join(self.parent_ids) if self.parent_ids else "none"
        return (
            f"Feature(id='{self.id}', type='{self.feature_type}', "
            f"path={self.path}, parents=[{parents}])"
        )


@dataclass
class FeatureSet:
    """Named collection of features sharing one reference coordinate space."""
    id: str
    dataset_id: Optional[str] = None
    reference_set_id: Optional[str] = None
    name: Optional[str] = None
    source_uri: Optional[str] = None
    attributes: AttributeStore = field(default_factory=AttributeStore)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WiggleSet:
    """Attributed group of wiggle tracks."""
    id: str
    attributes: AttributeStore = field(default_factory=AttributeStore)
    extensions: Dict[str, Any] = field(default_factory=dict)
