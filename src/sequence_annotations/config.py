"""
Configuration Management

Provides configuration for the annotation library with defaults for:
- Feature graph behaviour (strict vs partial resolution, exhaustive
  validation, internal locking)
- Codec behaviour (handling of unknown fields and union variants, schema
  version written to encoded data)

Supports loading from YAML, JSON, or Python dictionaries. No environment
variables are consulted.
"""

import json
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict


class UnknownFieldPolicy(str, Enum):
    """How the codec treats fields and union variants it does not know."""
    PRESERVE = "preserve"  # keep opaquely, re-encode unchanged
    DROP = "drop"          # discard and record a warning
    REJECT = "reject"      # fail decoding with DecodeError


SCHEMA_VERSION = "1.0"

_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def _parse_bool(value: Any, key: str) -> bool:
    """Accept a real bool or a common string spelling of one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean for '{key}': {value!r}")


@dataclass
class GraphConfig:
    """Feature graph options."""

    DEFAULTS = {
        'partial': False,      # tolerate unresolved parent ids
        'exhaustive': False,   # collect every violation instead of the first
        'thread_safe': False,  # guard the graph with a read-write lock
    }

    partial: bool = DEFAULTS['partial']
    exhaustive: bool = DEFAULTS['exhaustive']
    thread_safe: bool = DEFAULTS['thread_safe']

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GraphConfig':
        """Create from dictionary."""
        return cls(
            **{
                key: _parse_bool(data.get(key, default), key)
                for key, default in cls.DEFAULTS.items()
            }
        )


@dataclass
class CodecConfig:
    """Codec options."""

    DEFAULTS = {
        'unknown_field_policy': UnknownFieldPolicy.PRESERVE,
        'schema_version': SCHEMA_VERSION,
    }

    unknown_field_policy: UnknownFieldPolicy = DEFAULTS['unknown_field_policy']
    schema_version: str = DEFAULTS['schema_version']

    def __post_init__(self):
        self.unknown_field_policy = UnknownFieldPolicy(self.unknown_field_policy)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'unknown_field_policy': self.unknown_field_policy.value,
            'schema_version': self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CodecConfig':
        """Create from dictionary."""
        return cls(
            unknown_field_policy=data.get(
                'unknown_field_policy', cls.DEFAULTS['unknown_field_policy']
            ),
            schema_version=data.get('schema_version', cls.DEFAULTS['schema_version']),
        )


@dataclass
class AnnotationConfig:
    """
    Top-level configuration grouping graph and codec options.

    Attributes:
        graph (GraphConfig): Feature graph options
        codec (CodecConfig): Codec options
    """

    graph: GraphConfig = field(default_factory=GraphConfig)
    codec: CodecConfig = field(default_factory=CodecConfig)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration
        """
        return {
            'graph': self.graph.to_dict(),
            'codec': self.codec.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnnotationConfig':
        """
        Create configuration from dictionary.

        Missing sections fall back to defaults.
        """
        return cls(
            graph=GraphConfig.from_dict(data.get('graph', {})),
            codec=CodecConfig.from_dict(data.get('codec', {})),
        )

    @classmethod
    def from_yaml(cls, file_path: str) -> 'AnnotationConfig':
        """
        Load configuration from YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            AnnotationConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
            ImportError: If PyYAML is not installed
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required to load YAML configuration. "
                "Install with: pip install pyyaml"
            )

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, file_path: str) -> 'AnnotationConfig':
        """
        Load configuration from JSON file.

        Args:
            file_path: Path to JSON configuration file

        Returns:
            AnnotationConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, 'r') as f:
            data = json.load(f)

        return cls.from_dict(data)

    def __repr__(self) -> str:
        return (
            f"AnnotationConfig(partial={self.graph.partial}, "
            f"exhaustive={self.graph.exhaustive}, "
            f"thread_safe={self.graph.thread_safe}, "
            f"unknown_field_policy='{self.codec.unknown_field_policy.value}')"
        )
