"""
Term codec: RDF terms <-> document fields.

Every statement slot is stored as up to three sparse fields:

    <slot>          lexical value, blank node label, or False for the default graph
    <x>_type        one of the TermType tags
    <x>_literal     language tag or datatype IRI (language/typed literals only)

Fields without a value are left out of the document entirely. MongoDB
filters treat a missing field as unconstrained, so "omitted" and "null"
must never be confused.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from rdf_mongostore.terms import (
    ANY,
    DEFAULT_GRAPH,
    BlankNode,
    DefaultGraph,
    Literal,
    PatternSlot,
    Term,
    TermType,
    URI,
    Variable,
    Wildcard,
)
from rdf_mongostore.storage import schema


class MalformedDocument(ValueError):
    """Raised when a stored document cannot be decoded into terms."""
    pass


class Slot(Enum):
    """
    Statement position with its wire field names.

    Each member's value is a (value field, type field, literal field) triple.
    """
    SUBJECT = (schema.SUBJECT, schema.SUBJECT_TYPE, schema.SUBJECT_LITERAL)
    PREDICATE = (schema.PREDICATE, schema.PREDICATE_TYPE, schema.PREDICATE_LITERAL)
    OBJECT = (schema.OBJECT, schema.OBJECT_TYPE, schema.OBJECT_LITERAL)
    GRAPH = (schema.GRAPH, schema.GRAPH_TYPE, schema.GRAPH_LITERAL)

    @property
    def value_field(self) -> str:
        return self.value[0]

    @property
    def type_field(self) -> str:
        return self.value[1]

    @property
    def literal_field(self) -> str:
        return self.value[2]


# =============================================================================
# Encoded form
# =============================================================================

FieldValue = Union[str, bool, dict]


@dataclass(frozen=True, slots=True)
class EncodedTerm:
    """
    A term's three wire fields, each optional.

    to_fields() applies the drop-if-absent rule.
    """
    value: Optional[Union[str, bool]] = None
    type: Optional[Union[str, dict]] = None
    literal: Optional[str] = None

    def to_fields(self, slot: Slot) -> dict[str, FieldValue]:
        fields: dict[str, FieldValue] = {}
        if self.value is not None:
            fields[slot.value_field] = self.value
        if self.type is not None:
            fields[slot.type_field] = self.type
        if self.literal is not None:
            fields[slot.literal_field] = self.literal
        return fields


_DEFAULT_GRAPH_ENCODING = EncodedTerm(value=False, type=TermType.DEFAULT.value)
_NAMED_GRAPH_ENCODING = EncodedTerm(type={"$ne": TermType.DEFAULT.value})
_UNCONSTRAINED = EncodedTerm()


def encode_term(term: Union[Term, DefaultGraph, None], slot: Slot) -> EncodedTerm:
    """Encode a bound term (or the default graph) for the given slot."""
    if isinstance(term, URI):
        return EncodedTerm(value=term.value, type=TermType.URI.value)
    if isinstance(term, BlankNode):
        return EncodedTerm(value=term.id, type=TermType.NODE.value)
    if isinstance(term, Literal):
        if term.language is not None:
            return EncodedTerm(
                value=term.value,
                type=TermType.LITERAL_LANG.value,
                literal=term.language,
            )
        if term.datatype is not None:
            return EncodedTerm(
                value=term.value,
                type=TermType.LITERAL_TYPE.value,
                literal=term.datatype.value,
            )
        return EncodedTerm(value=term.value, type=TermType.LITERAL.value)
    if slot is Slot.GRAPH and (term is None or term is DEFAULT_GRAPH):
        return _DEFAULT_GRAPH_ENCODING
    raise TypeError(f"Cannot encode {term!r} in the {slot.name.lower()} position")


def encode(term: Union[Term, DefaultGraph, None], slot: Slot) -> dict[str, FieldValue]:
    """Encode a bound term as document fields."""
    return encode_term(term, slot).to_fields(slot)


def encode_pattern(value: PatternSlot, slot: Slot) -> dict[str, FieldValue]:
    """
    Encode one pattern slot as filter fields.

    - ANY: no fields, the slot is unconstrained
    - Variable on the graph slot: any named graph ({c_type: {"$ne": "default"}})
    - Variable elsewhere: unconstrained
    - DEFAULT_GRAPH: same fields as storing a default-graph statement
    - bound term: equality on the encoded fields
    """
    if value is ANY or isinstance(value, Wildcard):
        return _UNCONSTRAINED.to_fields(slot)
    if isinstance(value, Variable):
        if slot is Slot.GRAPH:
            return _NAMED_GRAPH_ENCODING.to_fields(slot)
        return _UNCONSTRAINED.to_fields(slot)
    return encode(value, slot)


# =============================================================================
# Decoding
# =============================================================================

class NodeCache:
    """
    Blank node identity map for a single enumeration.

    Decoding the same label twice through one cache yields the same
    BlankNode object. Create a new cache for every read operation; caches
    must not be shared between concurrent enumerations.
    """

    __slots__ = ("_nodes",)

    def __init__(self):
        self._nodes: dict[str, BlankNode] = {}

    def node(self, label: str) -> BlankNode:
        node = self._nodes.get(label)
        if node is None:
            node = BlankNode(label)
            self._nodes[label] = node
        return node

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, label: str) -> bool:
        return label in self._nodes


def _require(document: dict[str, Any], field: str, tag: str) -> Any:
    if field not in document:
        raise MalformedDocument(f"Field {field!r} is required for type {tag!r}")
    return document[field]


def decode(
    document: dict[str, Any],
    slot: Slot,
    nodes: Optional[NodeCache] = None,
) -> Optional[Term]:
    """
    Decode one slot of a stored document.

    The default graph decodes to None, never to DEFAULT_GRAPH.

    Raises:
        MalformedDocument: missing or unknown type tag, missing value, or a
            language/typed literal without its literal field
    """
    raw_tag = document.get(slot.type_field)
    if raw_tag is None:
        # Every slot is tagged, including the graph; the default graph is "default"
        raise MalformedDocument(f"Missing {slot.type_field!r} in document")

    try:
        tag = TermType(raw_tag)
    except ValueError:
        raise MalformedDocument(
            f"Unknown type tag {raw_tag!r} in {slot.type_field!r}"
        ) from None

    if tag is TermType.DEFAULT:
        if slot is not Slot.GRAPH:
            raise MalformedDocument(
                f"Type 'default' is only valid for the graph, not {slot.type_field!r}"
            )
        return None

    value = _require(document, slot.value_field, tag.value)
    if not isinstance(value, str):
        raise MalformedDocument(
            f"Field {slot.value_field!r} must be a string for type {tag.value!r}"
        )

    if tag is TermType.URI:
        return URI(value)
    if tag is TermType.NODE:
        if nodes is None:
            return BlankNode(value)
        return nodes.node(value)
    if tag is TermType.LITERAL:
        return Literal(value)
    if tag is TermType.LITERAL_LANG:
        return Literal(value, language=_require(document, slot.literal_field, tag.value))
    if tag is TermType.LITERAL_TYPE:
        return Literal(
            value, datatype=URI(_require(document, slot.literal_field, tag.value))
        )
    raise MalformedDocument(f"Unhandled type tag {tag.value!r}")
