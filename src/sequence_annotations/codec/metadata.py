"""
Schema metadata for encoded annotation streams.

Every encoded stream carries key-value metadata on its Arrow schema that
makes it self-describing: the record type of its rows, the schema version
that wrote it, and optional context such as the owning feature set.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CodecMetadata:
    """
    Builds and reads the schema metadata of encoded streams.

    Arrow schema metadata is a bytes-to-bytes mapping; values that are not
    plain strings are stored as JSON.
    """

    # Standard metadata keys
    RECORD_TYPE = "record_type"
    SCHEMA_VERSION = "schema_version"
    RECORD_COUNT = "record_count"
    CREATION_TIMESTAMP = "creation_timestamp"
    FEATURE_SET = "feature_set"

    STANDARD_KEYS = {
        RECORD_TYPE,
        SCHEMA_VERSION,
        RECORD_COUNT,
        CREATION_TIMESTAMP,
        FEATURE_SET,
    }

    JSON_KEYS = {FEATURE_SET}

    @staticmethod
    def create_metadata(
        record_type: str,
        record_count: int,
        schema_version: str,
        feature_set: Optional[Dict[str, Any]] = None,
        creation_timestamp: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Create a metadata dictionary for an encoded stream.

        Args:
            record_type: Type of every row in the stream
            record_count: Number of rows written
            schema_version: Version of the encoding schema
            feature_set: Encoded owning feature set, if any
            creation_timestamp: ISO timestamp (auto-generated if not provided)

        Returns:
            Dictionary of string metadata suitable for an Arrow schema
        """
        if creation_timestamp is None:
            creation_timestamp = datetime.now(timezone.utc).isoformat()

        metadata = {
            CodecMetadata.RECORD_TYPE: record_type,
            CodecMetadata.RECORD_COUNT: str(record_count),
            CodecMetadata.SCHEMA_VERSION: schema_version,
            CodecMetadata.CREATION_TIMESTAMP: creation_timestamp,
        }
        if feature_set is not None:
            metadata[CodecMetadata.FEATURE_SET] = json.dumps(feature_set, sort_keys=True)

        return metadata

    @staticmethod
    def extract_metadata(schema_metadata: Optional[Dict[bytes, bytes]]) -> Dict[str, Any]:
        """
        Decode raw Arrow schema metadata.

        Keys that cannot be decoded are skipped with a warning; JSON values
        that fail to parse are kept as strings so validation can report them.

        Args:
            schema_metadata: Raw metadata as returned by schema.metadata

        Returns:
            Dictionary with decoded metadata
        """
        if not schema_metadata:
            return {}

        decoded: Dict[str, Any] = {}
        for key, value in schema_metadata.items():
            try:
                k = key.decode("utf-8") if isinstance(key, bytes) else key
                v = value.decode("utf-8") if isinstance(value, bytes) else value
            except UnicodeDecodeError as e:
                logger.warning(f"Failed to decode metadata key/value: {e}")
                continue

            if k in CodecMetadata.JSON_KEYS:
                try:
                    decoded[k] = json.loads(v)
                except json.JSONDecodeError:
                    decoded[k] = v
            else:
                decoded[k] = v

        return decoded

    @staticmethod
    def validate_metadata(
        metadata: Dict[str, Any],
        required_keys: Optional[list] = None,
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate a decoded metadata dictionary.

        Returns:
            Tuple of (is_valid, error_message)
        """
        required = required_keys or [CodecMetadata.RECORD_TYPE]
        missing = set(required) - set(metadata.keys())
        if missing:
            return False, f"Missing required metadata keys: {sorted(missing)}"

        if CodecMetadata.RECORD_COUNT in metadata:
            try:
                int(metadata[CodecMetadata.RECORD_COUNT])
            except (ValueError, TypeError):
                return False, f"Invalid {CodecMetadata.RECORD_COUNT}. Expected integer value"

        if CodecMetadata.FEATURE_SET in metadata and not isinstance(
            metadata[CodecMetadata.FEATURE_SET], dict
        ):
            return False, f"Invalid {CodecMetadata.FEATURE_SET}. Expected JSON object"

        return True, None

    @staticmethod
    def schema_major(version: str) -> Optional[int]:
        """Major component of a "major.minor" schema version, None if unparsable."""
        try:
            return int(str(version).split(".")[0])
        except ValueError:
            return None
