"""
Tests for the annotation set container.
"""

import logging

import pytest

from src.sequence_annotations.core.containers import AnnotationSet
from src.sequence_annotations.core.errors import DuplicateIdError
from src.sequence_annotations.core.graph import ViolationType
from src.sequence_annotations.core.records import FeatureSet


class TestAnnotationSet:
    """Tests for AnnotationSet."""

    def test_owns_features(self, feature_set, gene_model):
        aset = AnnotationSet(feature_set, gene_model)
        assert aset.id == "fs1"
        assert len(aset) == 4
        assert [f.id for f in aset.features] == ["gene1", "mrna1", "exon1", "exon2"]

    def test_graph_bound_to_set(self, feature_set):
        aset = AnnotationSet(feature_set)
        assert aset.graph.feature_set_id == "fs1"
        assert aset.graph.reference_set_id == "GRCh38"

    def test_add(self, feature_set, make_feature):
        aset = AnnotationSet(feature_set)
        aset.add(make_feature("gene1"))
        with pytest.raises(DuplicateIdError):
            aset.add(make_feature("gene1"))
        assert len(aset) == 1

    def test_duplicate_in_constructor(self, feature_set, make_feature):
        with pytest.raises(DuplicateIdError):
            AnnotationSet(feature_set, [make_feature("f1"), make_feature("f1")])

    def test_validate_passes(self, feature_set, gene_model):
        assert AnnotationSet(feature_set, gene_model).validate().passed

    def test_validate_membership(self, feature_set, make_feature, caplog):
        aset = AnnotationSet(feature_set, [make_feature("f1", feature_set_id="other")])
        with caplog.at_level(logging.WARNING):
            result = aset.validate()
        assert result.violations[0].violation_type is ViolationType.FEATURE_SET_MISMATCH
        assert "Annotation set fs1" in caplog.text

    def test_partial_option(self, feature_set, make_feature):
        aset = AnnotationSet(feature_set, [make_feature("f1", ["ghost"])], partial=True)
        assert aset.validate().passed
        assert aset.graph.parents_of("f1") == []

    def test_equality(self, feature_set, gene_model):
        a = AnnotationSet(feature_set, gene_model)
        b = AnnotationSet(feature_set, list(gene_model))
        assert a == b
        assert a != AnnotationSet(feature_set, gene_model[:2])
        assert a != AnnotationSet(FeatureSet(id="fs1"), gene_model)

    def test_repr(self, feature_set, gene_model):
        assert repr(AnnotationSet(feature_set, gene_model)) == "AnnotationSet(id='fs1', features=4)"
