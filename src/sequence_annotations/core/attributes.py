"""
Multi-valued, polymorphic attribute storage.

Attribute values form a closed tagged union: every AttributeValue carries an
explicit AttributeKind and the payload is never used to infer the variant.

Features:
- Text, external database identifier and ontology term values
- Opaque values preserving unknown variants decoded from newer schemas
- Ordered value sequences per attribute name (GFF3 attributes may repeat)
- No empty entries: a present name always has at least one value

AttributeStore is not internally synchronized. Callers must hold exclusive
access while calling set/append/remove; concurrent readers are safe when no
writer is active.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import AttributeNotFoundError, InvalidAttributeError
from .ontology import OntologyTerm


@dataclass(frozen=True)
class ExternalIdentifier:
    """Reference into a third-party database."""
    database: str
    identifier: str
    version: str


@dataclass(frozen=True)
class OpaqueValue:
    """
    Attribute value of a variant this schema version does not know.

    Attributes:
        tag: The variant tag as found in the encoded data
        payload: Remaining encoded fields as sorted (name, value) pairs
    """
    tag: str
    payload: Tuple[Tuple[str, Any], ...] = ()

    def payload_dict(self) -> Dict[str, Any]:
        return dict(self.payload)


class AttributeKind(str, Enum):
    """Discriminant of an AttributeValue."""
    TEXT = "text"
    EXTERNAL_IDENTIFIER = "external_identifier"
    ONTOLOGY_TERM = "ontology_term"
    OPAQUE = "opaque"


_PAYLOAD_TYPES = {
    AttributeKind.TEXT: str,
    AttributeKind.EXTERNAL_IDENTIFIER: ExternalIdentifier,
    AttributeKind.ONTOLOGY_TERM: OntologyTerm,
    AttributeKind.OPAQUE: OpaqueValue,
}

Payload = Union[str, ExternalIdentifier, OntologyTerm, OpaqueValue]


@dataclass(frozen=True)
class AttributeValue:
    """Single tagged attribute value."""
    kind: AttributeKind
    value: Payload

    def __post_init__(self):
        kind = AttributeKind(self.kind)
        object.__setattr__(self, "kind", kind)
        expected = _PAYLOAD_TYPES[kind]
        if not isinstance(self.value, expected):
            raise TypeError(
                f"{kind.value} attribute value must be {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )

    @classmethod
    def text(cls, value: str) -> "AttributeValue":
        return cls(AttributeKind.TEXT, value)

    @classmethod
    def external(cls, database: str, identifier: str, version: str = "") -> "AttributeValue":
        return cls(AttributeKind.EXTERNAL_IDENTIFIER, ExternalIdentifier(database, identifier, version))

    @classmethod
    def term(cls, term: OntologyTerm) -> "AttributeValue":
        return cls(AttributeKind.ONTOLOGY_TERM, term)

    @classmethod
    def opaque(cls, tag: str, payload: Optional[Dict[str, Any]] = None) -> "AttributeValue":
        items = tuple(sorted((payload or {}).items()))
        return cls(AttributeKind.OPAQUE, OpaqueValue(tag, items))

    def __str__(self) -> str:
        if self.kind is AttributeKind.EXTERNAL_IDENTIFIER:
            ident = self.value
            suffix = f".{ident.version}" if ident.version else ""
            return f"{ident.database}:{ident.identifier}{suffix}"
        if self.kind is AttributeKind.OPAQUE:
            return f"<{self.value.tag}>"
        return str(self.value)


class AttributeStore:
    """
    Mapping from attribute name to a non-empty ordered list of values.

    `get` raises AttributeNotFoundError for absent names rather than returning
    an empty sequence; use `get_first` or `in` for optional lookups.
    """

    def __init__(self, values: Optional[Dict[str, Sequence[AttributeValue]]] = None):
        """
        Initialize an attribute store.

        Args:
            values: Optional initial mapping of name to values. Each sequence
                must be non-empty.

        Raises:
            InvalidAttributeError: If an initial sequence is empty
        """
        self._values: Dict[str, List[AttributeValue]] = {}
        for name, seq in (values or {}).items():
            self.set(name, seq)

    @staticmethod
    def _check_value(name: str, value: Any) -> None:
        if not isinstance(value, AttributeValue):
            raise InvalidAttributeError(
                name, f"expected AttributeValue, got {type(value).__name__}"
            )

    def set(self, name: str, values: Iterable[AttributeValue]) -> None:
        """
        Replace all values stored under a name.

        Raises:
            InvalidAttributeError: If values is empty or holds a non-AttributeValue
        """
        new_values = list(values)
        if not new_values:
            raise InvalidAttributeError(name)
        for value in new_values:
            self._check_value(name, value)
        self._values[name] = new_values

    def append(self, name: str, value: AttributeValue) -> None:
        """Append a value to a name, creating the entry if absent."""
        self._check_value(name, value)
        self._values.setdefault(name, []).append(value)

    def get(self, name: str) -> Tuple[AttributeValue, ...]:
        """
        Get the values stored under a name, in insertion order.

        Raises:
            AttributeNotFoundError: If the name is absent
        """
        try:
            return tuple(self._values[name])
        except KeyError:
            raise AttributeNotFoundError(name) from None

    def get_first(self, name: str, default: Optional[AttributeValue] = None) -> Optional[AttributeValue]:
        values = self._values.get(name)
        return values[0] if values else default

    def remove(self, name: str) -> None:
        """Delete a name and all its values. Missing names are ignored."""
        self._values.pop(name, None)

    # Convenience appends for the three known variants

    def add_text(self, name: str, text: str) -> None:
        self.append(name, AttributeValue.text(text))

    def add_external(self, name: str, database: str, identifier: str, version: str = "") -> None:
        self.append(name, AttributeValue.external(database, identifier, version))

    def add_term(self, name: str, term: OntologyTerm) -> None:
        self.append(name, AttributeValue.term(term))

    def names(self) -> List[str]:
        return list(self._values)

    def items(self) -> Iterator[Tuple[str, Tuple[AttributeValue, ...]]]:
        for name, values in self._values.items():
            yield name, tuple(values)

    def to_pairs(self) -> List[Tuple[str, List[AttributeValue]]]:
        return [(name, list(values)) for name, values in self._values.items()]

    def copy(self) -> "AttributeStore":
        clone = AttributeStore()
        clone._values = {name: list(values) for name, values in self._values.items()}
        return clone

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __bool__(self) -> bool:
        return bool(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeStore):
            return NotImplemented
        # Name order is not significant, value order is
        return self._values == other._values

    __hash__ = None

    def __repr__(self) -> str:
        body = ", ".join(
            f"{name}=[{', '.join(str(v) for v in values)}]"
            for name, values in self._values.items()
        )
        return f"AttributeStore({body})"
