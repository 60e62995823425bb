"""
Statement and pattern translation to documents and filters.
"""

from __future__ import annotations

from typing import Any, Optional

from rdf_mongostore.models import IncompleteStatement, Pattern, Statement
from rdf_mongostore.storage.codec import (
    MalformedDocument,
    NodeCache,
    Slot,
    decode,
    encode,
    encode_pattern,
)
from rdf_mongostore.terms import DEFAULT_GRAPH

Document = dict[str, Any]
Filter = dict[str, Any]


def statement_to_document(statement: Statement) -> Document:
    """
    Encode a complete statement as a document.

    A statement without a graph is stored in the default graph, so every
    document carries a graph type tag.

    Raises:
        IncompleteStatement: subject, predicate or object is unbound
    """
    if not statement.is_complete:
        raise IncompleteStatement(f"Statement {statement!r} is incomplete")

    graph = DEFAULT_GRAPH if statement.graph is None else statement.graph

    document: Document = {}
    document.update(encode(statement.subject, Slot.SUBJECT))
    document.update(encode(statement.predicate, Slot.PREDICATE))
    document.update(encode(statement.object, Slot.OBJECT))
    document.update(encode(graph, Slot.GRAPH))
    return document


def pattern_to_filter(pattern: Pattern) -> Filter:
    """Encode a pattern as a collection filter."""
    query: Filter = {}
    query.update(encode_pattern(pattern.subject, Slot.SUBJECT))
    query.update(encode_pattern(pattern.predicate, Slot.PREDICATE))
    query.update(encode_pattern(pattern.object, Slot.OBJECT))
    if pattern.graph is DEFAULT_GRAPH:
        query.update(encode(DEFAULT_GRAPH, Slot.GRAPH))
    else:
        query.update(encode_pattern(pattern.graph, Slot.GRAPH))
    return query


def document_to_statement(
    document: Document,
    nodes: Optional[NodeCache] = None,
) -> Statement:
    """
    Decode a stored document.

    The returned statement's graph is None for the default graph. Fields
    outside the quad schema (such as "_id") are ignored.

    Raises:
        MalformedDocument: a slot cannot be decoded, or decodes to a term
            kind that is not allowed in its position
    """
    subject = decode(document, Slot.SUBJECT, nodes)
    predicate = decode(document, Slot.PREDICATE, nodes)
    obj = decode(document, Slot.OBJECT, nodes)
    graph = decode(document, Slot.GRAPH, nodes)
    try:
        return Statement(subject, predicate, obj, graph)
    except TypeError as e:
        raise MalformedDocument(str(e)) from e
