"""
Tests for the structured (dict) record encoding.

Tests:
- Round-trips for every record type
- Absent vs empty optional fields
- Explicit union tags
- Unknown field and variant policies
- Decode error reasons
"""

import pytest

from src.sequence_annotations.config import UnknownFieldPolicy
from src.sequence_annotations.codec.errors import DecodeError, DecodeErrorReason, EncodeError
from src.sequence_annotations.codec.records import (
    RecordType,
    annotation_set_from_dict,
    annotation_set_to_dict,
    record_from_dict,
    record_to_dict,
    record_type_of,
)
from src.sequence_annotations.core.attributes import AttributeKind, AttributeStore, AttributeValue
from src.sequence_annotations.core.containers import AnnotationSet
from src.sequence_annotations.core.coordinates import Path, Strand
from src.sequence_annotations.core.ontology import OntologyTerm
from src.sequence_annotations.core.records import Feature, FeatureSet, WiggleSet
from src.sequence_annotations.core.wiggle import Wiggle


def round_trip(record, policy=UnknownFieldPolicy.PRESERVE):
    return record_from_dict(record_type_of(record), record_to_dict(record), policy)


@pytest.fixture
def feature_dict():
    return {
        "id": "gene1",
        "feature_set_id": "fs1",
        "parent_ids": [],
        "path": {"reference_name": "chr13", "start": 100, "length": 50, "strand": "+"},
        "feature_type": {"term_id": "SO:0000704", "term": "gene"},
        "attributes": [
            {"name": "Name", "values": [{"kind": "text", "text": "BRCA2"}]},
        ],
    }


# ============================================================================
# Tests: Round-trip
# ============================================================================

class TestRoundTrip:
    """decode(encode(x)) == x for every record type."""

    def test_features(self, gene_model):
        for feature in gene_model:
            assert round_trip(feature) == feature

    def test_feature_set(self, feature_set):
        assert round_trip(feature_set) == feature_set

    def test_feature_set_all_optionals_absent(self):
        record = FeatureSet(id="fs1")
        data = record_to_dict(record)
        assert data == {"id": "fs1", "attributes": []}
        decoded = round_trip(record)
        assert decoded == record
        assert decoded.dataset_id is None
        assert decoded.source_uri is None

    def test_empty_string_is_not_absent(self):
        record = FeatureSet(id="fs1", name="", source_uri="")
        data = record_to_dict(record)
        assert data["name"] == ""
        assert "dataset_id" not in data
        decoded = round_trip(record)
        assert decoded.name == ""
        assert decoded.dataset_id is None

    def test_wiggle(self):
        record = Wiggle(Path("chr1", 100, 10, Strand.NEGATIVE), [1.0, 2.5])
        assert round_trip(record) == record

    def test_wiggle_without_bins(self):
        record = Wiggle(Path("chr1", 100, 10), [])
        assert round_trip(record) == record

    def test_wiggle_set(self):
        attributes = AttributeStore()
        attributes.add_text("track", "coverage")
        record = WiggleSet(id="ws1", attributes=attributes)
        assert round_trip(record) == record

    def test_annotation_set(self, feature_set, gene_model):
        aset = AnnotationSet(feature_set, gene_model)
        decoded = annotation_set_from_dict(annotation_set_to_dict(aset))
        assert decoded == aset
        assert decoded.graph.feature_set_id == "fs1"

    def test_term_optional_fields(self, make_feature):
        feature = make_feature("f1", feature_type=OntologyTerm("SO:0000704"))
        data = record_to_dict(feature)
        assert data["feature_type"] == {"term_id": "SO:0000704"}
        assert round_trip(feature).feature_type.term is None


class TestEncoding:
    """Tests for the encoded layout."""

    def test_union_tag_is_explicit(self):
        attributes = AttributeStore()
        attributes.add_text("x", "HGNC:1101")
        attributes.add_external("x", "HGNC", "1101")
        attributes.add_term("x", OntologyTerm("HGNC:1101"))
        values = record_to_dict(WiggleSet(id="ws", attributes=attributes))["attributes"][0]["values"]
        assert [v["kind"] for v in values] == ["text", "external_identifier", "ontology_term"]

    def test_unsupported_record(self):
        with pytest.raises(EncodeError):
            record_to_dict({"id": "not a record"})

    def test_extension_clashing_with_known_field(self):
        record = WiggleSet(id="ws", extensions={"id": "other"})
        with pytest.raises(EncodeError):
            record_to_dict(record)


# ============================================================================
# Tests: Unknown Content
# ============================================================================

class TestUnknownFields:
    """Tests for fields and variants from a newer schema."""

    def test_unknown_field_preserved(self, feature_dict):
        feature_dict["confidence"] = 0.93
        feature = record_from_dict(RecordType.FEATURE, feature_dict)
        assert feature.extensions == {"confidence": 0.93}
        assert record_to_dict(feature)["confidence"] == 0.93

    def test_unknown_field_dropped_with_warning(self, feature_dict):
        feature_dict["confidence"] = 0.93
        warnings = []
        feature = record_from_dict(
            RecordType.FEATURE, feature_dict, UnknownFieldPolicy.DROP, warnings
        )
        assert feature.extensions == {}
        assert feature.id == "gene1"
        assert [w.field for w in warnings] == ["confidence"]
        assert warnings[0].record_type == "Feature"

    def test_unknown_field_rejected(self, feature_dict):
        feature_dict["confidence"] = 0.93
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict, UnknownFieldPolicy.REJECT)
        assert exc_info.value.reason is DecodeErrorReason.UNKNOWN_FIELD
        assert exc_info.value.field == "confidence"

    def test_unknown_variant_preserved(self, feature_dict):
        feature_dict["attributes"][0]["values"].append(
            {"kind": "measurement", "amount": 3.5, "unit": "kb"}
        )
        feature = record_from_dict(RecordType.FEATURE, feature_dict)
        values = feature.attributes.get("Name")
        assert values[0] == AttributeValue.text("BRCA2")
        assert values[1].kind is AttributeKind.OPAQUE
        assert values[1].value.tag == "measurement"

        reencoded = record_to_dict(feature)["attributes"][0]["values"][1]
        assert reencoded == {"kind": "measurement", "amount": 3.5, "unit": "kb"}

    def test_unknown_variant_dropped_keeps_siblings(self, feature_dict):
        feature_dict["attributes"][0]["values"].append({"kind": "measurement", "amount": 3.5})
        warnings = []
        feature = record_from_dict(
            RecordType.FEATURE, feature_dict, UnknownFieldPolicy.DROP, warnings
        )
        assert feature.attributes.get("Name") == (AttributeValue.text("BRCA2"),)
        assert len(warnings) == 1

    def test_attribute_with_only_unknown_variants_dropped(self, feature_dict):
        feature_dict["attributes"].append(
            {"name": "Size", "values": [{"kind": "measurement", "amount": 3.5}]}
        )
        warnings = []
        feature = record_from_dict(
            RecordType.FEATURE, feature_dict, UnknownFieldPolicy.DROP, warnings
        )
        assert "Size" not in feature.attributes
        assert "Name" in feature.attributes
        assert len(warnings) == 2

    def test_unknown_variant_rejected(self, feature_dict):
        feature_dict["attributes"][0]["values"].append({"kind": "measurement"})
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict, UnknownFieldPolicy.REJECT)
        assert exc_info.value.reason is DecodeErrorReason.UNKNOWN_TAG

    def test_unknown_nested_field_dropped_even_when_preserving(self, feature_dict):
        feature_dict["path"]["assembly"] = "GRCh38"
        warnings = []
        feature = record_from_dict(
            RecordType.FEATURE, feature_dict, UnknownFieldPolicy.PRESERVE, warnings
        )
        assert feature.path == Path("chr13", 100, 50, Strand.POSITIVE)
        assert [w.field for w in warnings] == ["path.assembly"]


# ============================================================================
# Tests: Decode Errors
# ============================================================================

class TestDecodeErrors:
    """Tests for malformed input."""

    def test_missing_required_field(self, feature_dict):
        del feature_dict["feature_set_id"]
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.MISSING_REQUIRED_FIELD
        assert exc_info.value.field == "feature_set_id"

    def test_null_required_field(self, feature_dict):
        feature_dict["id"] = None
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.MISSING_REQUIRED_FIELD

    def test_missing_tag(self, feature_dict):
        del feature_dict["attributes"][0]["values"][0]["kind"]
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_TAG

    def test_non_string_tag(self, feature_dict):
        feature_dict["attributes"][0]["values"][0]["kind"] = 2
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_TAG

    def test_wrong_type(self, feature_dict):
        feature_dict["path"]["start"] = "100"
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_VALUE
        assert exc_info.value.field == "path.start"

    def test_bool_is_not_a_coordinate(self, feature_dict):
        feature_dict["path"]["length"] = True
        with pytest.raises(DecodeError):
            record_from_dict(RecordType.FEATURE, feature_dict)

    def test_negative_coordinate(self, feature_dict):
        feature_dict["path"]["start"] = -1
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_VALUE

    def test_empty_attribute_values(self, feature_dict):
        feature_dict["attributes"][0]["values"] = []
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.FEATURE, feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_VALUE

    def test_unknown_record_type(self, feature_dict):
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict("Variant", feature_dict)
        assert exc_info.value.reason is DecodeErrorReason.UNKNOWN_RECORD_TYPE

    def test_not_a_mapping(self):
        with pytest.raises(DecodeError) as exc_info:
            record_from_dict(RecordType.WIGGLE_SET, ["ws1"])
        assert exc_info.value.reason is DecodeErrorReason.INVALID_VALUE

    def test_strand_defaults_to_unstranded(self, feature_dict):
        del feature_dict["path"]["strand"]
        feature = record_from_dict(RecordType.FEATURE, feature_dict)
        assert feature.path.strand is Strand.UNSTRANDED

    def test_error_message_names_reason(self, feature_dict):
        del feature_dict["id"]
        with pytest.raises(DecodeError, match="missing_required_field"):
            record_from_dict(RecordType.FEATURE, feature_dict)

    def test_annotation_set_duplicate_ids(self, feature_set, gene_model):
        data = annotation_set_to_dict(AnnotationSet(feature_set, gene_model))
        data["features"].append(data["features"][0])
        with pytest.raises(DecodeError) as exc_info:
            annotation_set_from_dict(data)
        assert exc_info.value.reason is DecodeErrorReason.INVALID_VALUE

    def test_annotation_set_missing_feature_set(self):
        with pytest.raises(DecodeError) as exc_info:
            annotation_set_from_dict({"features": []})
        assert exc_info.value.reason is DecodeErrorReason.MISSING_REQUIRED_FIELD
