"""
Structured (dict) encoding of annotation records.

Layout:
- Absent optional fields are omitted. On decode, a missing key and a None
  value both mean absent; an empty string stays an empty string.
- Attribute values carry an explicit "kind" tag next to their fields:

      {"kind": "text", "text": "BRCA2"}
      {"kind": "external_identifier", "database": "HGNC",
       "identifier": "1101", "version": ""}
      {"kind": "ontology_term", "term_id": "SO:0000704", "term": "gene"}

- Attributes encode as a list of {"name": ..., "values": [...]} entries.
- Unknown top-level fields and unknown value kinds follow an
  UnknownFieldPolicy: preserved (record.extensions / OpaqueValue), dropped
  with a DecodeWarning, or rejected with a DecodeError.

Decoding builds the record only after every field decoded; a failure never
yields a partially populated record.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from ..config import UnknownFieldPolicy
from ..core.attributes import (
    AttributeKind,
    AttributeStore,
    AttributeValue,
    ExternalIdentifier,
)
from ..core.containers import AnnotationSet
from ..core.coordinates import Path, Strand
from ..core.errors import DuplicateIdError
from ..core.ontology import OntologyTerm
from ..core.records import Feature, FeatureSet, WiggleSet
from ..core.wiggle import Wiggle
from .errors import DecodeError, DecodeErrorReason, EncodeError

logger = logging.getLogger(__name__)

Record = Union[Feature, FeatureSet, Wiggle, WiggleSet]


class RecordType(str, Enum):
    """Record types the codec knows."""
    FEATURE = "Feature"
    FEATURE_SET = "FeatureSet"
    WIGGLE = "Wiggle"
    WIGGLE_SET = "WiggleSet"


RECORD_CLASSES = {
    RecordType.FEATURE: Feature,
    RecordType.FEATURE_SET: FeatureSet,
    RecordType.WIGGLE: Wiggle,
    RecordType.WIGGLE_SET: WiggleSet,
}

KNOWN_FIELDS = {
    RecordType.FEATURE: {
        "id", "feature_set_id", "parent_ids", "path", "feature_type", "attributes",
    },
    RecordType.FEATURE_SET: {
        "id", "dataset_id", "reference_set_id", "name", "source_uri", "attributes",
    },
    RecordType.WIGGLE: {"path", "values"},
    RecordType.WIGGLE_SET: {"id", "attributes"},
}

FEATURE_SET_OPTIONAL_FIELDS = ("dataset_id", "reference_set_id", "name", "source_uri")

PATH_FIELDS = {"reference_name", "start", "length", "strand"}
TERM_FIELDS = {"term_id", "term", "source_name", "source_version"}
VALUE_FIELDS = {
    AttributeKind.TEXT: {"text"},
    AttributeKind.EXTERNAL_IDENTIFIER: {"database", "identifier", "version"},
    AttributeKind.ONTOLOGY_TERM: TERM_FIELDS,
}
TAG_FIELD = "kind"


@dataclass
class DecodeWarning:
    """Something unknown was dropped while decoding."""
    record_type: str
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "record_type": self.record_type,
            "field": self.field,
            "message": self.message,
        }


def record_type_of(record: Any) -> RecordType:
    """
    Raises:
        EncodeError: If record is not a known record type
    """
    for record_type, cls in RECORD_CLASSES.items():
        if type(record) is cls:
            return record_type
    raise EncodeError(f"Unsupported record type: {type(record).__name__}")


def _strip_nulls(value: Any) -> Any:
    """Drop None entries from nested dicts (null and missing mean absent)."""
    if isinstance(value, dict):
        return {k: _strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_strip_nulls(v) for v in value]
    return value


# ============================================================================
# Encoding
# ============================================================================

def _path_to_dict(path: Path) -> Dict[str, Any]:
    return {
        "reference_name": path.reference_name,
        "start": path.start,
        "length": path.length,
        "strand": path.strand.value,
    }


def _term_to_dict(term: OntologyTerm) -> Dict[str, Any]:
    data = {"term_id": term.id}
    if term.term is not None:
        data["term"] = term.term
    if term.source_name is not None:
        data["source_name"] = term.source_name
    if term.source_version is not None:
        data["source_version"] = term.source_version
    return data


def _value_to_dict(value: AttributeValue) -> Dict[str, Any]:
    if value.kind is AttributeKind.TEXT:
        return {TAG_FIELD: value.kind.value, "text": value.value}
    if value.kind is AttributeKind.EXTERNAL_IDENTIFIER:
        ident = value.value
        return {
            TAG_FIELD: value.kind.value,
            "database": ident.database,
            "identifier": ident.identifier,
            "version": ident.version,
        }
    if value.kind is AttributeKind.ONTOLOGY_TERM:
        return {TAG_FIELD: value.kind.value, **_term_to_dict(value.value)}
    # Opaque: re-emit the variant exactly as it was read
    return {TAG_FIELD: value.value.tag, **value.value.payload_dict()}


def attributes_to_list(store: AttributeStore) -> List[Dict[str, Any]]:
    return [
        {"name": name, "values": [_value_to_dict(v) for v in values]}
        for name, values in store.items()
    ]


def _with_extensions(data: Dict[str, Any], record: Record, record_type: RecordType) -> Dict[str, Any]:
    clashes = set(record.extensions) & KNOWN_FIELDS[record_type]
    if clashes:
        raise EncodeError(
            f"{record_type.value} extensions shadow known fields: {sorted(clashes)}"
        )
    data.update(record.extensions)
    return data


def record_to_dict(record: Record) -> Dict[str, Any]:
    """
    Encode a record to its structured form.

    Raises:
        EncodeError: If the record type is unsupported or extensions clash
            with known field names
    """
    record_type = record_type_of(record)

    if record_type is RecordType.FEATURE:
        data = {
            "id": record.id,
            "feature_set_id": record.feature_set_id,
            "parent_ids": list(record.parent_ids),
            "path": _path_to_dict(record.path),
            "feature_type": _term_to_dict(record.feature_type),
            "attributes": attributes_to_list(record.attributes),
        }
    elif record_type is RecordType.FEATURE_SET:
        data = {"id": record.id}
        for name in FEATURE_SET_OPTIONAL_FIELDS:
            value = getattr(record, name)
            if value is not None:
                data[name] = value
        data["attributes"] = attributes_to_list(record.attributes)
    elif record_type is RecordType.WIGGLE:
        data = {
            "path": _path_to_dict(record.path),
            "values": list(record.values),
        }
    else:
        data = {
            "id": record.id,
            "attributes": attributes_to_list(record.attributes),
        }

    return _with_extensions(data, record, record_type)


def annotation_set_to_dict(aset: AnnotationSet) -> Dict[str, Any]:
    return {
        "feature_set": record_to_dict(aset.feature_set),
        "features": [record_to_dict(f) for f in aset.features],
    }


# ============================================================================
# Decoding
# ============================================================================

class _DecodeContext:
    """Carries policy and collected warnings through one decode."""

    def __init__(self, record_type: str, policy: UnknownFieldPolicy, warnings: List[DecodeWarning]):
        self.record_type = record_type
        self.policy = UnknownFieldPolicy(policy)
        self.warnings = warnings

    def error(self, reason: DecodeErrorReason, message: str, field: str) -> DecodeError:
        return DecodeError(reason, message, field=field, record_type=self.record_type)

    def unknown(self, field: str, message: str, reason: DecodeErrorReason,
                can_preserve: bool = True) -> bool:
        """
        Apply the policy to something unknown.

        Returns:
            True if the caller should preserve it, False if it was dropped

        Raises:
            DecodeError: Under the REJECT policy
        """
        if self.policy is UnknownFieldPolicy.REJECT:
            raise self.error(reason, message, field)
        if self.policy is UnknownFieldPolicy.PRESERVE and can_preserve:
            return True
        self.warnings.append(DecodeWarning(self.record_type, field, message))
        logger.warning(f"Dropped while decoding {self.record_type}: {field}: {message}")
        return False

    def mapping(self, data: Any, field: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise self.error(
                DecodeErrorReason.INVALID_VALUE,
                f"expected object, got {type(data).__name__}",
                field,
            )
        return {k: v for k, v in data.items() if v is not None}

    def required(self, data: Dict[str, Any], key: str, expected: type, field: str) -> Any:
        if key not in data:
            raise self.error(
                DecodeErrorReason.MISSING_REQUIRED_FIELD, f"'{key}' is required", field
            )
        return self.typed(data[key], expected, field)

    def optional(self, data: Dict[str, Any], key: str, expected: type, field: str) -> Any:
        if key not in data:
            return None
        return self.typed(data[key], expected, field)

    def typed(self, value: Any, expected: type, field: str) -> Any:
        # bool is an int subclass but never a valid coordinate
        if isinstance(value, bool) and expected is not bool:
            ok = False
        else:
            ok = isinstance(value, expected)
        if not ok:
            names = getattr(expected, "__name__", None) or "/".join(t.__name__ for t in expected)
            raise self.error(
                DecodeErrorReason.INVALID_VALUE,
                f"expected {names}, got {type(value).__name__}",
                field,
            )
        return value

    def extensions(self, data: Dict[str, Any], known: Set[str], field: str = "") -> Dict[str, Any]:
        preserved = {}
        for key in data:
            if key in known:
                continue
            name = f"{field}.{key}" if field else key
            if self.unknown(name, "unknown field", DecodeErrorReason.UNKNOWN_FIELD):
                preserved[key] = _strip_nulls(data[key])
        return preserved


def _decode_path(ctx: _DecodeContext, data: Any, field: str) -> Path:
    data = ctx.mapping(data, field)
    reference_name = ctx.required(data, "reference_name", str, f"{field}.reference_name")
    start = ctx.required(data, "start", int, f"{field}.start")
    length = ctx.required(data, "length", int, f"{field}.length")
    strand = ctx.optional(data, "strand", str, f"{field}.strand") or Strand.UNSTRANDED.value
    for key in data:
        if key not in PATH_FIELDS:
            ctx.unknown(f"{field}.{key}", "unknown field", DecodeErrorReason.UNKNOWN_FIELD,
                        can_preserve=False)
    try:
        return Path(reference_name, start, length, Strand(strand))
    except ValueError as e:
        raise ctx.error(DecodeErrorReason.INVALID_VALUE, str(e), field) from e


def _decode_term_fields(ctx: _DecodeContext, data: Dict[str, Any], field: str) -> OntologyTerm:
    return OntologyTerm(
        id=ctx.required(data, "term_id", str, f"{field}.term_id"),
        term=ctx.optional(data, "term", str, f"{field}.term"),
        source_name=ctx.optional(data, "source_name", str, f"{field}.source_name"),
        source_version=ctx.optional(data, "source_version", str, f"{field}.source_version"),
    )


def _decode_term(ctx: _DecodeContext, data: Any, field: str) -> OntologyTerm:
    data = ctx.mapping(data, field)
    for key in data:
        if key not in TERM_FIELDS:
            ctx.unknown(f"{field}.{key}", "unknown field", DecodeErrorReason.UNKNOWN_FIELD,
                        can_preserve=False)
    return _decode_term_fields(ctx, data, field)


def _decode_value(ctx: _DecodeContext, data: Any, field: str) -> Optional[AttributeValue]:
    data = ctx.mapping(data, field)
    tag = data.get(TAG_FIELD)
    if not isinstance(tag, str) or not tag:
        raise ctx.error(
            DecodeErrorReason.INVALID_TAG,
            f"attribute value needs a string '{TAG_FIELD}' tag, got {tag!r}",
            f"{field}.{TAG_FIELD}",
        )

    known_kinds = {k.value for k in VALUE_FIELDS}
    if tag not in known_kinds:
        payload = {k: _strip_nulls(v) for k, v in data.items() if k != TAG_FIELD}
        if ctx.unknown(field, f"unknown attribute value kind '{tag}'", DecodeErrorReason.UNKNOWN_TAG):
            return AttributeValue.opaque(tag, payload)
        return None

    kind = AttributeKind(tag)
    for key in data:
        if key != TAG_FIELD and key not in VALUE_FIELDS[kind]:
            ctx.unknown(f"{field}.{key}", f"unknown field on {tag} value",
                        DecodeErrorReason.UNKNOWN_FIELD, can_preserve=False)

    if kind is AttributeKind.TEXT:
        return AttributeValue.text(ctx.required(data, "text", str, f"{field}.text"))
    if kind is AttributeKind.EXTERNAL_IDENTIFIER:
        return AttributeValue(kind, ExternalIdentifier(
            database=ctx.required(data, "database", str, f"{field}.database"),
            identifier=ctx.required(data, "identifier", str, f"{field}.identifier"),
            version=ctx.required(data, "version", str, f"{field}.version"),
        ))
    return AttributeValue.term(_decode_term_fields(ctx, data, field))


def _decode_attributes(ctx: _DecodeContext, data: Any, field: str = "attributes") -> AttributeStore:
    store = AttributeStore()
    if data is None:
        return store
    entries = ctx.typed(data, list, field)

    for i, entry in enumerate(entries):
        entry_field = f"{field}[{i}]"
        entry = ctx.mapping(entry, entry_field)
        name = ctx.required(entry, "name", str, f"{entry_field}.name")
        raw_values = ctx.required(entry, "values", list, f"{entry_field}.values")
        if not raw_values:
            raise ctx.error(
                DecodeErrorReason.INVALID_VALUE,
                f"attribute '{name}' has no values",
                f"{entry_field}.values",
            )
        for key in entry:
            if key not in ("name", "values"):
                ctx.unknown(f"{entry_field}.{key}", "unknown field",
                            DecodeErrorReason.UNKNOWN_FIELD, can_preserve=False)

        for j, raw in enumerate(raw_values):
            value = _decode_value(ctx, raw, f"{entry_field}.values[{j}]")
            if value is not None:
                store.append(name, value)

        if name not in store:
            ctx.warnings.append(DecodeWarning(
                ctx.record_type, entry_field, f"attribute '{name}' dropped: no known values"
            ))

    return store


def _decode_feature(ctx: _DecodeContext, data: Dict[str, Any]) -> Feature:
    parent_ids = ctx.typed(data.get("parent_ids", []), list, "parent_ids")
    for i, parent_id in enumerate(parent_ids):
        ctx.typed(parent_id, str, f"parent_ids[{i}]")

    return Feature(
        id=ctx.required(data, "id", str, "id"),
        feature_set_id=ctx.required(data, "feature_set_id", str, "feature_set_id"),
        path=_decode_path(ctx, ctx.required(data, "path", dict, "path"), "path"),
        feature_type=_decode_term(
            ctx, ctx.required(data, "feature_type", dict, "feature_type"), "feature_type"
        ),
        parent_ids=list(parent_ids),
        attributes=_decode_attributes(ctx, data.get("attributes")),
        extensions=ctx.extensions(data, KNOWN_FIELDS[RecordType.FEATURE]),
    )


def _decode_feature_set(ctx: _DecodeContext, data: Dict[str, Any]) -> FeatureSet:
    optional = {
        name: ctx.optional(data, name, str, name)
        for name in FEATURE_SET_OPTIONAL_FIELDS
    }
    return FeatureSet(
        id=ctx.required(data, "id", str, "id"),
        attributes=_decode_attributes(ctx, data.get("attributes")),
        extensions=ctx.extensions(data, KNOWN_FIELDS[RecordType.FEATURE_SET]),
        **optional,
    )


def _decode_wiggle(ctx: _DecodeContext, data: Dict[str, Any]) -> Wiggle:
    raw_values = ctx.typed(data.get("values", []), list, "values")
    values = []
    for i, value in enumerate(raw_values):
        value = ctx.typed(value, (int, float), f"values[{i}]")
        values.append(float(value))
    return Wiggle(
        path=_decode_path(ctx, ctx.required(data, "path", dict, "path"), "path"),
        values=tuple(values),
        extensions=ctx.extensions(data, KNOWN_FIELDS[RecordType.WIGGLE]),
    )


def _decode_wiggle_set(ctx: _DecodeContext, data: Dict[str, Any]) -> WiggleSet:
    return WiggleSet(
        id=ctx.required(data, "id", str, "id"),
        attributes=_decode_attributes(ctx, data.get("attributes")),
        extensions=ctx.extensions(data, KNOWN_FIELDS[RecordType.WIGGLE_SET]),
    )


_DECODERS = {
    RecordType.FEATURE: _decode_feature,
    RecordType.FEATURE_SET: _decode_feature_set,
    RecordType.WIGGLE: _decode_wiggle,
    RecordType.WIGGLE_SET: _decode_wiggle_set,
}


def parse_record_type(value: Any) -> RecordType:
    """
    Raises:
        DecodeError: If value names no known record type
    """
    if isinstance(value, RecordType):
        return value
    try:
        return RecordType(value)
    except ValueError:
        raise DecodeError(
            DecodeErrorReason.UNKNOWN_RECORD_TYPE,
            f"unknown record type {value!r}",
        ) from None


def record_from_dict(
    record_type: Union[RecordType, str],
    data: Any,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.PRESERVE,
    warnings: Optional[List[DecodeWarning]] = None,
) -> Record:
    """
    Decode a record from its structured form.

    Args:
        record_type: Type of the encoded record
        data: Structured form as produced by record_to_dict
        policy: Treatment of unknown fields and value kinds
        warnings: Optional list that collects DecodeWarning entries

    Returns:
        The decoded record

    Raises:
        DecodeError: If data is malformed, or something unknown is found
            under the REJECT policy
    """
    record_type = parse_record_type(record_type)
    ctx = _DecodeContext(record_type.value, policy, warnings if warnings is not None else [])
    return _DECODERS[record_type](ctx, ctx.mapping(data, ""))


def annotation_set_from_dict(
    data: Any,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.PRESERVE,
    warnings: Optional[List[DecodeWarning]] = None,
    **graph_options: Any,
) -> AnnotationSet:
    """
    Decode an AnnotationSet from annotation_set_to_dict output.

    Raises:
        DecodeError: If data is malformed or feature ids repeat
    """
    if not isinstance(data, dict):
        raise DecodeError(DecodeErrorReason.INVALID_VALUE, "expected object")
    if data.get("feature_set") is None:
        raise DecodeError(
            DecodeErrorReason.MISSING_REQUIRED_FIELD, "'feature_set' is required",
            field="feature_set",
        )
    feature_set = record_from_dict(RecordType.FEATURE_SET, data["feature_set"], policy, warnings)
    raw_features = data.get("features") or []
    if not isinstance(raw_features, list):
        raise DecodeError(DecodeErrorReason.INVALID_VALUE, "expected list", field="features")
    features = [
        record_from_dict(RecordType.FEATURE, raw, policy, warnings)
        for raw in raw_features
    ]
    return build_annotation_set(feature_set, features, **graph_options)


def build_annotation_set(feature_set: FeatureSet, features: List[Feature],
                         **graph_options: Any) -> AnnotationSet:
    """
    Raises:
        DecodeError: If feature ids repeat
    """
    try:
        return AnnotationSet(feature_set, features, **graph_options)
    except DuplicateIdError as e:
        raise DecodeError(
            DecodeErrorReason.INVALID_VALUE, str(e), field="id",
            record_type=RecordType.FEATURE.value,
        ) from e
