"""
Quad repository over a document collection.

QuadRepository stores RDF quads as one document per statement and answers
single-pattern queries by translating them into collection filters.

Usage:
    repo = QuadRepository.from_uri("mongodb://localhost:27017/quadb/quads")

    repo.insert(Statement(URI("http://ex/s"), URI("http://ex/p"), Literal("hi")))
    for st in repo.query(Pattern(predicate=URI("http://ex/p"))):
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import polars as pl

from rdf_mongostore.formats.nquads import NQuadsParser, NQuadsSerializer
from rdf_mongostore.models import Changeset, Pattern, Statement
from rdf_mongostore.storage.changeset import apply_changeset
from rdf_mongostore.storage.codec import NodeCache, Slot, encode_pattern
from rdf_mongostore.storage.collections import BulkWriteResult, DocumentCollection
from rdf_mongostore.storage.repo_config import RepositoryConfig
from rdf_mongostore.storage.schema import QUAD_INDEXES
from rdf_mongostore.storage.translator import (
    document_to_statement,
    pattern_to_filter,
    statement_to_document,
)
from rdf_mongostore.terms import BlankNode, DefaultGraph, URI, Variable

logger = logging.getLogger(__name__)


class QuadRepository:
    """
    A mutable, enumerable quad store backed by a DocumentCollection.

    Each read (statements, query, graph_names) decodes with its own
    NodeCache, so one pass returns a single BlankNode object per label and
    separate passes share nothing.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        config: Optional[RepositoryConfig] = None,
    ):
        """
        Initialize a repository.

        Args:
            collection: Storage capability holding the quad documents
            config: Repository settings; defaults apply when omitted
        """
        self._collection = collection
        self._config = config or RepositoryConfig()

        if self._config.create_indexes:
            collection.ensure_indexes(QUAD_INDEXES)

    @classmethod
    def from_config(cls, config: RepositoryConfig) -> "QuadRepository":
        """Connect to MongoDB as described by the configuration."""
        from rdf_mongostore.storage.mongo import connect

        return cls(connect(config), config)

    @classmethod
    def from_uri(cls, uri: str, **options) -> "QuadRepository":
        """Connect using a mongodb://host:port/db/collection URI."""
        return cls.from_config(RepositoryConfig.from_uri(uri, **options))

    @property
    def collection(self) -> DocumentCollection:
        return self._collection

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def durable(self) -> bool:
        return bool(getattr(self._collection, "durable", False))

    def supports(self, feature: str) -> bool:
        """Report whether an optional repository feature is available."""
        if feature == "graph_name":
            return True
        if feature == "atomic_write":
            return True
        if feature == "validity":
            return self._config.with_validity
        return False

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert_statement(self, statement: Statement) -> None:
        """Insert one statement; inserting a stored statement is a no-op."""
        document = statement_to_document(statement)
        self._collection.upsert(document, dict(document))

    def delete_statement(self, statement: Statement) -> int:
        """Delete one statement. Returns the number of documents removed."""
        return self._collection.delete_one(statement_to_document(statement))

    def insert(self, *statements: Statement) -> BulkWriteResult:
        """Insert statements in one unordered batch."""
        return self.apply_changeset(Changeset(inserts=statements))

    def delete(self, *statements: Statement) -> BulkWriteResult:
        """Delete statements in one unordered batch."""
        return self.apply_changeset(Changeset(deletes=statements))

    def apply_changeset(self, changeset: Changeset) -> BulkWriteResult:
        """
        Apply deletes then inserts as one bulk write.

        Raises:
            IncompleteStatement: before anything is written
            BatchApplyFailure: storage rejected part of the batch
        """
        return apply_changeset(self._collection, changeset)

    def delete_matching(self, pattern: Pattern) -> int:
        """Delete every statement matching a pattern. Returns the count."""
        removed = self._collection.delete_many(pattern_to_filter(pattern))
        logger.debug(f"Deleted {removed} statements matching {pattern!r}")
        return removed

    def clear(self) -> int:
        """Delete all statements."""
        return self._collection.delete_many()

    # =========================================================================
    # Counting and lookup
    # =========================================================================

    def count(self, pattern: Optional[Pattern] = None) -> int:
        if pattern is None:
            return self._collection.count()
        return self._collection.count(pattern_to_filter(pattern))

    def __len__(self) -> int:
        return self.count()

    @property
    def is_empty(self) -> bool:
        return self.count() == 0

    def has_statement(self, statement: Statement) -> bool:
        return self._collection.count(statement_to_document(statement)) > 0

    def __contains__(self, statement: Statement) -> bool:
        return self.has_statement(statement)

    def has_graph(self, graph: Union[URI, BlankNode, DefaultGraph]) -> bool:
        """Check whether any statement is stored in the given graph."""
        return self._collection.count(encode_pattern(graph, Slot.GRAPH)) > 0

    # =========================================================================
    # Enumeration
    # =========================================================================

    def statements(self) -> Iterator[Statement]:
        """Enumerate every stored statement."""
        nodes = NodeCache()
        for document in self._collection.find():
            yield document_to_statement(document, nodes)

    def __iter__(self) -> Iterator[Statement]:
        return self.statements()

    def query(self, pattern: Pattern) -> Iterator[Statement]:
        """Enumerate the statements matching a single pattern."""
        nodes = NodeCache()
        for document in self._collection.find(pattern_to_filter(pattern)):
            yield document_to_statement(document, nodes)

    def graph_names(self) -> list[Union[URI, BlankNode]]:
        """Distinct named graphs, in first-seen order."""
        seen: dict[Union[URI, BlankNode], None] = {}
        for statement in self.query(Pattern(graph=Variable("g"))):
            if statement.graph is not None:
                seen.setdefault(statement.graph, None)
        return list(seen)

    # =========================================================================
    # Import / export
    # =========================================================================

    def to_polars(self, pattern: Pattern = Pattern()) -> pl.DataFrame:
        """
        Matching statements as a DataFrame.

        Columns hold N-Triples text; graph is null for the default graph.
        """
        rows = {"subject": [], "predicate": [], "object": [], "graph": []}
        for st in self.query(pattern):
            rows["subject"].append(st.subject.n3())
            rows["predicate"].append(st.predicate.n3())
            rows["object"].append(st.object.n3())
            rows["graph"].append(st.graph.n3() if st.graph is not None else None)
        return pl.DataFrame(
            rows,
            schema={
                "subject": pl.Utf8,
                "predicate": pl.Utf8,
                "object": pl.Utf8,
                "graph": pl.Utf8,
            },
        )

    def load_nquads(self, source: Union[str, Path]) -> int:
        """
        Load N-Quads (or N-Triples) content in one insert batch.

        Returns:
            Number of statements parsed
        """
        statements = list(NQuadsParser().parse(source))
        self.insert(*statements)
        logger.info(f"Loaded {len(statements)} statements")
        return len(statements)

    def dump_nquads(self, pattern: Pattern = Pattern()) -> str:
        return NQuadsSerializer().serialize(self.query(pattern))

    def __repr__(self) -> str:
        return (
            f"QuadRepository({self._config.database}.{self._config.collection}, "
            f"durable={self.durable})"
        )
