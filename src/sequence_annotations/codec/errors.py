"""
Custom exception classes for encoding and decoding annotation records.
"""

from enum import Enum
from typing import Optional


class CodecError(Exception):
    """Base exception for all codec operations."""
    pass


class DecodeErrorReason(str, Enum):
    """Why decoding failed."""
    MISSING_REQUIRED_FIELD = "missing_required_field"
    TRUNCATED_STREAM = "truncated_stream"
    INVALID_TAG = "invalid_tag"            # union tag missing or not a string
    UNKNOWN_TAG = "unknown_tag"            # unknown variant under REJECT policy
    UNKNOWN_FIELD = "unknown_field"        # unknown field under REJECT policy
    INVALID_VALUE = "invalid_value"
    UNKNOWN_RECORD_TYPE = "unknown_record_type"


class DecodeError(CodecError):
    """
    Raised when encoded input is malformed, truncated or rejected.

    Attributes:
        reason: DecodeErrorReason sub-reason
        field: Dotted path of the offending field, if known
        record_type: Record type being decoded, if known
    """

    def __init__(
        self,
        reason: DecodeErrorReason,
        message: str,
        field: Optional[str] = None,
        record_type: Optional[str] = None,
    ):
        self.reason = DecodeErrorReason(reason)
        self.field = field
        self.record_type = record_type

        full_message = f"Decode failed ({self.reason.value}): {message}"
        if record_type:
            full_message += f"\n  Record type: {record_type}"
        if field:
            full_message += f"\n  Field: {field}"

        super().__init__(full_message)


class EncodeError(CodecError):
    """Raised when a record cannot be encoded."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error

        full_message = message
        if original_error:
            full_message += f"\n  Reason: {original_error}"

        super().__init__(full_message)
