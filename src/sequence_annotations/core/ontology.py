"""
Ontology term value type (e.g. Sequence Ontology feature types).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OntologyTerm:
    """
    Reference to a controlled-vocabulary term.

    Attributes:
        id: CURIE of the term (e.g. "SO:0000704")
        term: Human-readable label (e.g. "gene")
        source_name: Ontology the term comes from (e.g. "sequence_ontology")
        source_version: Release of that ontology
    """
    id: str
    term: Optional[str] = None
    source_name: Optional[str] = None
    source_version: Optional[str] = None

    def __str__(self) -> str:
        if self.term:
            return f"{self.id} ({self.term})"
        return self.id
