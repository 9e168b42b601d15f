"""
Shared fixtures for annotation model tests.

Provides a small BRCA2-like gene model:

    gene1
      └── mrna1
            ├── exon1
            └── exon2
"""

import pytest

from src.sequence_annotations.core.attributes import AttributeStore, AttributeValue
from src.sequence_annotations.core.coordinates import Path, Strand
from src.sequence_annotations.core.ontology import OntologyTerm
from src.sequence_annotations.core.records import Feature, FeatureSet

GENE = OntologyTerm("SO:0000704", "gene", "sequence_ontology", "2.6")
MRNA = OntologyTerm("SO:0000234", "mRNA")
EXON = OntologyTerm("SO:0000147", "exon")


@pytest.fixture
def make_feature():
    """Factory for features in feature set 'fs1' on chr13."""
    def _make(feature_id, parent_ids=(), start=0, length=100,
              feature_set_id="fs1", feature_type=GENE, reference_name="chr13"):
        return Feature(
            id=feature_id,
            feature_set_id=feature_set_id,
            path=Path(reference_name, start, length, Strand.POSITIVE),
            feature_type=feature_type,
            parent_ids=list(parent_ids),
        )
    return _make


@pytest.fixture
def feature_set():
    attributes = AttributeStore()
    attributes.add_text("source", "RefSeq")
    return FeatureSet(
        id="fs1",
        dataset_id="ds1",
        reference_set_id="GRCh38",
        name="BRCA2 models",
        attributes=attributes,
    )


@pytest.fixture
def gene_model(make_feature):
    """Gene with one transcript and two exons, parents before children."""
    gene = make_feature("gene1", start=32315473, length=84193)
    gene.attributes.add_text("Name", "BRCA2")
    gene.attributes.add_external("Dbxref", "HGNC", "1101")
    gene.attributes.add_external("Dbxref", "GeneID", "675")

    mrna = make_feature("mrna1", ["gene1"], start=32315473, length=84193, feature_type=MRNA)
    mrna.attributes.append("Ontology_term", AttributeValue.term(OntologyTerm("GO:0006281")))

    exon1 = make_feature("exon1", ["mrna1"], start=32315473, length=135, feature_type=EXON)
    exon2 = make_feature("exon2", ["mrna1"], start=32316421, length=49, feature_type=EXON)
    return [gene, mrna, exon1, exon2]
