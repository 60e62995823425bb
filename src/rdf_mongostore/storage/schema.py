"""
Wire schema for quad documents.

One document per quad, flat fields, graph stored under "context":

    {
        "subject": "http://example.org/s",   "s_type": "uri",
        "predicate": "http://example.org/p", "p_type": "uri",
        "object": "hello", "o_type": "literal_lang", "o_literal": "en",
        "context": False, "c_type": "default",
    }

The field names match documents written by earlier versions of the store
and must not change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

SCHEMA_VERSION = "1.0.0"

SUBJECT = "subject"
SUBJECT_TYPE = "s_type"
SUBJECT_LITERAL = "s_literal"

PREDICATE = "predicate"
PREDICATE_TYPE = "p_type"
PREDICATE_LITERAL = "p_literal"

OBJECT = "object"
OBJECT_TYPE = "o_type"
OBJECT_LITERAL = "o_literal"

GRAPH = "context"
GRAPH_TYPE = "c_type"
GRAPH_LITERAL = "c_literal"

VALUE_FIELDS = (SUBJECT, PREDICATE, OBJECT, GRAPH)
TYPE_FIELDS = (SUBJECT_TYPE, PREDICATE_TYPE, OBJECT_TYPE, GRAPH_TYPE)
LITERAL_FIELDS = (SUBJECT_LITERAL, PREDICATE_LITERAL, OBJECT_LITERAL, GRAPH_LITERAL)
ALL_FIELDS = VALUE_FIELDS + TYPE_FIELDS + LITERAL_FIELDS

ASCENDING = 1
HASHED = "hashed"

IndexDirection = Union[int, str]


@dataclass(frozen=True)
class IndexSpec:
    """
    A collection index declaration.

    Attributes:
        name: Index name (stable, so re-declaring is a no-op)
        keys: Ordered (field, direction) pairs
    """
    name: str
    keys: tuple[tuple[str, IndexDirection], ...]

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(field for field, _ in self.keys)

    @property
    def is_hashed(self) -> bool:
        return any(direction == HASHED for _, direction in self.keys)

    def to_dict(self) -> dict:
        return {"name": self.name, "key": dict(self.keys)}


def _hashed(field: str) -> IndexSpec:
    return IndexSpec(name=f"{field}_hashed", keys=((field, HASHED),))


def _compound(name: str, fields: tuple[str, ...]) -> IndexSpec:
    return IndexSpec(name=name, keys=tuple((field, ASCENDING) for field in fields))


# Hashed single-field indexes serve any pattern with one bound slot; the
# compound indexes serve mostly bound patterns and scans over the type or
# literal-companion fields.
QUAD_INDEXES: tuple[IndexSpec, ...] = (
    _hashed(SUBJECT),
    _hashed(PREDICATE),
    _hashed(OBJECT),
    _hashed(GRAPH),
    _compound("spoc", VALUE_FIELDS),
    _compound("spoc_types", TYPE_FIELDS),
    _compound("spoc_literals", LITERAL_FIELDS),
)
