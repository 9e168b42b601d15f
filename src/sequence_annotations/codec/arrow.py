"""
Binary encoding of annotation records as Arrow IPC streams.

Each stream holds one table, one row per record, built from the structured
form of codec.records. The Arrow schema travels with the data, so a stream
is self-describing:

- field presence is explicit: absent optional fields are nulls in the
  validity bitmap, never sentinel values;
- attribute value structs carry their "kind" tag column, so variants are
  told apart without looking at the payload;
- columns added by a newer schema are extra columns; they never prevent
  decoding of the known ones.

Schema metadata (see CodecMetadata) names the record type, row count and
schema version, and for annotation sets embeds the owning FeatureSet.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pyarrow as pa

from ..config import CodecConfig, GraphConfig, UnknownFieldPolicy
from ..core.containers import AnnotationSet
from .errors import DecodeError, DecodeErrorReason, EncodeError
from .metadata import CodecMetadata
from .records import (
    DecodeWarning,
    Record,
    RecordType,
    annotation_set_from_dict,
    annotation_set_to_dict,
    build_annotation_set,
    parse_record_type,
    record_from_dict,
    record_to_dict,
    record_type_of,
)

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def _rows_to_table(rows: List[Dict[str, Any]]) -> pa.Table:
    """Build a table whose columns are the union of keys over all rows."""
    columns = list(dict.fromkeys(key for row in rows for key in row))
    arrays = {}
    for column in columns:
        try:
            arrays[column] = pa.array([row.get(column) for row in rows])
        except (pa.ArrowInvalid, pa.ArrowTypeError) as e:
            raise EncodeError(f"Cannot encode column '{column}'", e) from e
    return pa.table(arrays)


def _write_stream(table: pa.Table) -> bytes:
    sink = pa.BufferOutputStream()
    with pa.ipc.new_stream(sink, table.schema) as writer:
        writer.write_table(table)
    return sink.getvalue().to_pybytes()


def _read_stream(data: BytesLike) -> pa.Table:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes-like input, got {type(data).__name__}")
    try:
        reader = pa.ipc.open_stream(pa.py_buffer(data))
        return reader.read_all()
    except (pa.ArrowException, OSError, EOFError) as e:
        raise DecodeError(
            DecodeErrorReason.TRUNCATED_STREAM,
            f"cannot read encoded stream: {e}",
        ) from e


class AnnotationCodec:
    """
    Encodes and decodes Feature, FeatureSet, Wiggle and WiggleSet records.

    Warnings about dropped unknown content from the most recent decode call
    are available in `warnings`.

    Example:
        >>> codec = AnnotationCodec()
        >>> data = codec.encode(feature)
        >>> codec.decode(data) == feature
        True
    """

    def __init__(
        self,
        unknown_field_policy: Optional[UnknownFieldPolicy] = None,
        config: Optional[CodecConfig] = None,
    ):
        """
        Initialize the codec.

        Args:
            unknown_field_policy: Override of config.unknown_field_policy
            config: Codec options (defaults if not provided)
        """
        self.config = config or CodecConfig()
        self.unknown_field_policy = UnknownFieldPolicy(
            unknown_field_policy or self.config.unknown_field_policy
        )
        self.schema_version = self.config.schema_version
        self.warnings: List[DecodeWarning] = []

    # ------------------------------------------------------------------
    # Structured form
    # ------------------------------------------------------------------

    def to_dict(self, record: Record) -> Dict[str, Any]:
        """Encode a record to its structured form."""
        return record_to_dict(record)

    def from_dict(self, record_type: Union[RecordType, str], data: Dict[str, Any]) -> Record:
        """
        Decode a record from its structured form.

        Raises:
            DecodeError: If data is malformed or rejected by policy
        """
        self.warnings = []
        return record_from_dict(record_type, data, self.unknown_field_policy, self.warnings)

    def annotation_set_to_dict(self, aset: AnnotationSet) -> Dict[str, Any]:
        return annotation_set_to_dict(aset)

    def annotation_set_from_dict(self, data: Dict[str, Any], **graph_options: Any) -> AnnotationSet:
        self.warnings = []
        return annotation_set_from_dict(data, self.unknown_field_policy, self.warnings, **graph_options)

    # ------------------------------------------------------------------
    # Binary form
    # ------------------------------------------------------------------

    def encode(self, record: Record) -> bytes:
        """
        Encode a single record.

        Raises:
            EncodeError: If the record cannot be encoded
        """
        return self.encode_many([record])

    def encode_many(
        self,
        records: Iterable[Record],
        record_type: Optional[Union[RecordType, str]] = None,
        feature_set: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """
        Encode records of one type into a single stream.

        Args:
            records: Records to encode; all of the same type
            record_type: Required when records is empty
            feature_set: Encoded owning feature set to embed in the metadata

        Returns:
            Arrow IPC stream bytes

        Raises:
            EncodeError: If types are mixed, unknown, or cannot be encoded
        """
        records = list(records)
        types = {record_type_of(r) for r in records}
        if len(types) > 1:
            raise EncodeError(
                f"Cannot encode mixed record types: {sorted(t.value for t in types)}"
            )
        if types:
            resolved_type = types.pop()
            if record_type is not None and RecordType(record_type) is not resolved_type:
                raise EncodeError(
                    f"Records are {resolved_type.value}, not {RecordType(record_type).value}"
                )
        elif record_type is not None:
            resolved_type = RecordType(record_type)
        else:
            raise EncodeError("record_type is required to encode an empty batch")

        table = _rows_to_table([record_to_dict(r) for r in records])
        try:
            metadata = CodecMetadata.create_metadata(
                record_type=resolved_type.value,
                record_count=len(records),
                schema_version=self.schema_version,
                feature_set=feature_set,
            )
        except (TypeError, ValueError) as e:
            raise EncodeError("Cannot encode feature set metadata", e) from e
        table = table.replace_schema_metadata(metadata)

        logger.debug(f"Encoding {len(records)} {resolved_type.value} record(s)")
        try:
            return _write_stream(table)
        except pa.ArrowException as e:
            raise EncodeError(f"Failed to write {resolved_type.value} stream", e) from e

    def _read(
        self,
        data: BytesLike,
        warnings: List[DecodeWarning],
    ) -> Tuple[RecordType, Dict[str, Any], List[Dict[str, Any]]]:
        """Read a stream and check its metadata; returns (type, metadata, rows)."""
        table = _read_stream(data)
        metadata = CodecMetadata.extract_metadata(table.schema.metadata)

        is_valid, message = CodecMetadata.validate_metadata(metadata)
        if not is_valid:
            reason = (
                DecodeErrorReason.MISSING_REQUIRED_FIELD
                if CodecMetadata.RECORD_TYPE not in metadata
                else DecodeErrorReason.INVALID_VALUE
            )
            raise DecodeError(reason, message, field="schema.metadata")

        record_type = parse_record_type(metadata[CodecMetadata.RECORD_TYPE])

        expected_count = metadata.get(CodecMetadata.RECORD_COUNT)
        if expected_count is not None and int(expected_count) != table.num_rows:
            raise DecodeError(
                DecodeErrorReason.TRUNCATED_STREAM,
                f"expected {expected_count} rows, found {table.num_rows}",
                record_type=record_type.value,
            )

        version = metadata.get(CodecMetadata.SCHEMA_VERSION)
        written_major = CodecMetadata.schema_major(version) if version else None
        own_major = CodecMetadata.schema_major(self.schema_version)
        if written_major is not None and own_major is not None and written_major > own_major:
            message = (
                f"written by schema {version}, read with schema {self.schema_version}; "
                f"unknown fields follow the '{self.unknown_field_policy.value}' policy"
            )
            warnings.append(DecodeWarning(record_type.value, CodecMetadata.SCHEMA_VERSION, message))
            logger.warning(f"Decoding {record_type.value} data {message}")

        return record_type, metadata, table.to_pylist()

    def decode(self, data: BytesLike) -> Record:
        """
        Decode a stream holding exactly one record.

        Raises:
            DecodeError: If the stream is malformed, truncated, holds a
                different number of records, or is rejected by policy
        """
        records = self.decode_many(data)
        if len(records) != 1:
            raise DecodeError(
                DecodeErrorReason.INVALID_VALUE,
                f"expected exactly one record, found {len(records)}",
            )
        return records[0]

    def decode_many(
        self,
        data: BytesLike,
        record_type: Optional[Union[RecordType, str]] = None,
    ) -> List[Record]:
        """
        Decode every record of a stream.

        Args:
            data: Stream produced by encode/encode_many
            record_type: Optional expected type; a mismatch is an error

        Raises:
            DecodeError: If the stream is malformed, truncated, of another
                type, or rejected by policy
        """
        self.warnings = []
        warnings: List[DecodeWarning] = []
        found_type, _, rows = self._read(data, warnings)
        if record_type is not None and parse_record_type(record_type) is not found_type:
            raise DecodeError(
                DecodeErrorReason.UNKNOWN_RECORD_TYPE,
                f"expected {parse_record_type(record_type).value} records, "
                f"found {found_type.value}",
            )

        records = [
            record_from_dict(found_type, row, self.unknown_field_policy, warnings)
            for row in rows
        ]
        self.warnings = warnings
        return records

    def encode_annotation_set(self, aset: AnnotationSet) -> bytes:
        """
        Encode an annotation set: its features as rows, the FeatureSet in
        the stream metadata.

        Raises:
            EncodeError: If any record cannot be encoded
        """
        return self.encode_many(
            aset.features,
            record_type=RecordType.FEATURE,
            feature_set=record_to_dict(aset.feature_set),
        )

    def decode_annotation_set(
        self,
        data: BytesLike,
        partial: Optional[bool] = None,
        config: Optional[GraphConfig] = None,
    ) -> AnnotationSet:
        """
        Decode a stream written by encode_annotation_set.

        Args:
            data: Encoded stream
            partial, config: Options for the rebuilt FeatureGraph

        Raises:
            DecodeError: If the stream is malformed, lacks the feature set,
                repeats feature ids, or is rejected by policy
        """
        self.warnings = []
        warnings: List[DecodeWarning] = []
        record_type, metadata, rows = self._read(data, warnings)
        if record_type is not RecordType.FEATURE:
            raise DecodeError(
                DecodeErrorReason.UNKNOWN_RECORD_TYPE,
                f"annotation set streams hold Feature rows, found {record_type.value}",
            )
        if CodecMetadata.FEATURE_SET not in metadata:
            raise DecodeError(
                DecodeErrorReason.MISSING_REQUIRED_FIELD,
                "stream carries no feature set",
                field=f"schema.metadata.{CodecMetadata.FEATURE_SET}",
            )

        feature_set = record_from_dict(
            RecordType.FEATURE_SET,
            metadata[CodecMetadata.FEATURE_SET],
            self.unknown_field_policy,
            warnings,
        )
        features = [
            record_from_dict(RecordType.FEATURE, row, self.unknown_field_policy, warnings)
            for row in rows
        ]
        aset = build_annotation_set(feature_set, features, partial=partial, config=config)
        self.warnings = warnings
        return aset
