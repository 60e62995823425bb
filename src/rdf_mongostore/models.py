"""
Statement, pattern and changeset models.

A Statement is a quad. Its graph is None for the default graph;
DEFAULT_GRAPH is accepted as an explicit spelling of the same thing.
A Pattern is a statement template whose slots may be ANY, a Variable or,
on the graph slot, DEFAULT_GRAPH.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Union

from rdf_mongostore.terms import (
    ANY,
    DEFAULT_GRAPH,
    BlankNode,
    DefaultGraph,
    GraphTerm,
    Literal,
    PatternSlot,
    Term,
    URI,
    Variable,
    Wildcard,
)


class IncompleteStatement(ValueError):
    """Raised when a statement is missing its subject, predicate or object."""
    pass


_SUBJECT_TYPES = (URI, BlankNode)
_PREDICATE_TYPES = (URI,)
_OBJECT_TYPES = (URI, BlankNode, Literal)
_GRAPH_TYPES = (URI, BlankNode, DefaultGraph)


def _check_slot(name: str, value, allowed: tuple) -> None:
    if value is not None and not isinstance(value, allowed):
        kinds = ", ".join(t.__name__ for t in allowed)
        raise TypeError(f"{name} must be one of {kinds} (got {value!r})")


@dataclass(frozen=True, slots=True)
class Statement:
    """
    An RDF quad.

    Subject, predicate and object may be None only for statements that are
    never stored; storage rejects them with IncompleteStatement.
    """
    subject: Optional[Union[URI, BlankNode]]
    predicate: Optional[URI]
    object: Optional[Term]
    graph: Optional[GraphTerm] = None

    def __post_init__(self):
        _check_slot("subject", self.subject, _SUBJECT_TYPES)
        _check_slot("predicate", self.predicate, _PREDICATE_TYPES)
        _check_slot("object", self.object, _OBJECT_TYPES)
        _check_slot("graph", self.graph, _GRAPH_TYPES)
        # One spelling for the default graph keeps equality and hashing sane
        if self.graph is DEFAULT_GRAPH:
            object.__setattr__(self, "graph", None)

    @property
    def is_complete(self) -> bool:
        return (
            self.subject is not None
            and self.predicate is not None
            and self.object is not None
        )

    @property
    def in_default_graph(self) -> bool:
        return self.graph is None

    def n3(self) -> str:
        parts = [
            term.n3() if term is not None else "?"
            for term in (self.subject, self.predicate, self.object)
        ]
        if self.graph is not None:
            parts.append(self.graph.n3())
        return " ".join(parts) + " ."

    def __iter__(self) -> Iterator:
        return iter((self.subject, self.predicate, self.object, self.graph))

    def __repr__(self) -> str:
        return f"Statement({self.n3()})"


def _slot_matches(slot: PatternSlot, value) -> bool:
    if slot is ANY:
        return True
    if isinstance(slot, Variable):
        return True
    return slot == value


@dataclass(frozen=True, slots=True)
class Pattern:
    """
    A quad pattern for single-pattern queries.

    Unspecified slots (or slots given as None) match anything. On the graph
    slot, DEFAULT_GRAPH restricts matches to the unnamed graph and a
    Variable restricts them to named graphs.
    """
    subject: PatternSlot = ANY
    predicate: PatternSlot = ANY
    object: PatternSlot = ANY
    graph: PatternSlot = ANY

    def __post_init__(self):
        for name in ("subject", "predicate", "object", "graph"):
            value = getattr(self, name)
            if value is None:
                object.__setattr__(self, name, ANY)
            elif not isinstance(
                value, (URI, BlankNode, Literal, DefaultGraph, Wildcard, Variable)
            ):
                raise TypeError(f"Invalid pattern {name}: {value!r}")
            elif value is DEFAULT_GRAPH and name != "graph":
                raise TypeError(f"DEFAULT_GRAPH is only valid as a pattern graph, not {name}")
        if isinstance(self.graph, Literal):
            raise TypeError(f"A literal cannot name a graph: {self.graph!r}")

    @classmethod
    def for_statement(cls, statement: Statement) -> "Pattern":
        """Exact pattern for a (complete) statement."""
        return cls(
            statement.subject,
            statement.predicate,
            statement.object,
            DEFAULT_GRAPH if statement.graph is None else statement.graph,
        )

    def matches(self, statement: Statement) -> bool:
        """Evaluate the pattern against a statement in memory."""
        if not (
            _slot_matches(self.subject, statement.subject)
            and _slot_matches(self.predicate, statement.predicate)
            and _slot_matches(self.object, statement.object)
        ):
            return False

        graph = self.graph
        if graph is ANY:
            return True
        if isinstance(graph, Variable):
            return statement.graph is not None
        if graph is DEFAULT_GRAPH:
            return statement.graph is None
        return graph == statement.graph


@dataclass(frozen=True)
class Changeset:
    """
    A batch of deletes and inserts applied as one logical update.

    Deletes are applied before inserts.
    """
    inserts: tuple[Statement, ...] = field(default_factory=tuple)
    deletes: tuple[Statement, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "inserts", tuple(self.inserts))
        object.__setattr__(self, "deletes", tuple(self.deletes))

    @classmethod
    def build(
        cls,
        inserts: Iterable[Statement] = (),
        deletes: Iterable[Statement] = (),
    ) -> "Changeset":
        return cls(inserts=tuple(inserts), deletes=tuple(deletes))

    @property
    def is_empty(self) -> bool:
        return not self.inserts and not self.deletes

    @property
    def is_mixed(self) -> bool:
        """True when the changeset carries both inserts and deletes."""
        return bool(self.inserts) and bool(self.deletes)

    def __len__(self) -> int:
        return len(self.inserts) + len(self.deletes)
