"""
RDF term model.

Terms are immutable value objects. Two blank nodes are the same node only
when their identifiers match; there is no global interning.

Besides the bound terms (URI, BlankNode, Literal) the module defines the
markers used when storing and querying quads:

- DEFAULT_GRAPH: the unnamed graph, distinct from "no graph given"
- ANY: wildcard for pattern slots
- Variable: named placeholder, on the graph slot it means "any named graph"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# =============================================================================
# Wire type tags
# =============================================================================

class TermType(str, Enum):
    """Type tag stored next to every encoded term."""
    URI = "uri"
    NODE = "node"
    LITERAL = "literal"
    LITERAL_LANG = "literal_lang"
    LITERAL_TYPE = "literal_type"
    DEFAULT = "default"


# =============================================================================
# N-Triples escaping
# =============================================================================

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def escape_literal(value: str) -> str:
    """Escape a literal lexical form for N-Triples output."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


# =============================================================================
# Bound terms
# =============================================================================

@dataclass(frozen=True, slots=True)
class URI:
    """An IRI reference."""
    value: str

    def n3(self) -> str:
        return f"<{self.value}>"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BlankNode:
    """A blank node, identified only by its label."""
    id: str

    def n3(self) -> str:
        return f"_:{self.id}"

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class Literal:
    """
    An RDF literal.

    Attributes:
        value: Lexical form
        language: Language tag (language-tagged literals only)
        datatype: Datatype IRI (typed literals only)
    """
    value: str
    language: Optional[str] = None
    datatype: Optional[URI] = None

    def __post_init__(self):
        if self.language is not None and self.datatype is not None:
            raise ValueError(
                f"Literal {self.value!r} cannot have both a language and a datatype"
            )
        if self.datatype is not None and not isinstance(self.datatype, URI):
            raise TypeError(f"Literal datatype must be a URI, got {self.datatype!r}")

    @property
    def has_language(self) -> bool:
        return self.language is not None

    @property
    def has_datatype(self) -> bool:
        return self.datatype is not None

    @property
    def is_plain(self) -> bool:
        return self.language is None and self.datatype is None

    def n3(self) -> str:
        lexical = f'"{escape_literal(self.value)}"'
        if self.language is not None:
            return f"{lexical}@{self.language}"
        if self.datatype is not None:
            return f"{lexical}^^{self.datatype.n3()}"
        return lexical

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Markers
# =============================================================================

class DefaultGraph:
    """Sentinel for the unnamed graph. Use the DEFAULT_GRAPH instance."""
    _instance: Optional["DefaultGraph"] = None

    def __new__(cls) -> "DefaultGraph":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFAULT_GRAPH"

    def __reduce__(self):
        return (DefaultGraph, ())


class Wildcard:
    """Pattern marker matching any term. Use the ANY instance."""
    _instance: Optional["Wildcard"] = None

    def __new__(cls) -> "Wildcard":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"

    def __reduce__(self):
        return (Wildcard, ())


DEFAULT_GRAPH = DefaultGraph()
ANY = Wildcard()


@dataclass(frozen=True, slots=True)
class Variable:
    """
    A named pattern variable.

    On the graph slot a variable only binds to named graphs; on any other
    slot it behaves like ANY.
    """
    name: str = ""

    def n3(self) -> str:
        return f"?{self.name}"


# Type aliases
Term = Union[URI, BlankNode, Literal]
GraphTerm = Union[URI, BlankNode, DefaultGraph]
PatternSlot = Union[URI, BlankNode, Literal, DefaultGraph, Wildcard, Variable]


def is_term(value: object) -> bool:
    """Check whether a value is a bound RDF term."""
    return isinstance(value, (URI, BlankNode, Literal))
