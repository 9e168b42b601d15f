"""
Encoding and decoding of annotation records.

Two layers:
- records: structured (dict) form with explicit presence and union tags
- arrow: self-describing binary form (Arrow IPC stream) built on it
"""

from .arrow import AnnotationCodec
from .errors import CodecError, DecodeError, DecodeErrorReason, EncodeError
from .metadata import CodecMetadata
from .records import (
    DecodeWarning,
    RecordType,
    annotation_set_from_dict,
    annotation_set_to_dict,
    record_from_dict,
    record_to_dict,
)

__all__ = [
    "AnnotationCodec",
    "CodecMetadata",
    "RecordType",
    "DecodeWarning",
    "record_to_dict",
    "record_from_dict",
    "annotation_set_to_dict",
    "annotation_set_from_dict",
    # Errors
    "CodecError",
    "DecodeError",
    "DecodeErrorReason",
    "EncodeError",
]
