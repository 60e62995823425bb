"""
RDF-MongoStore: an RDF quad store on top of a MongoDB collection.

Stores (subject, predicate, object, graph) quads as flat documents and
answers single-pattern queries with wildcards on any position.
"""

__version__ = "0.3.0"

from rdf_mongostore.terms import (
    ANY,
    DEFAULT_GRAPH,
    BlankNode,
    Literal,
    TermType,
    URI,
    Variable,
)
from rdf_mongostore.models import Changeset, IncompleteStatement, Pattern, Statement
from rdf_mongostore.storage import (
    BatchApplyFailure,
    MalformedDocument,
    MemoryCollection,
    RepositoryConfig,
)
from rdf_mongostore.repository import QuadRepository

__all__ = [
    "ANY",
    "DEFAULT_GRAPH",
    "BlankNode",
    "Literal",
    "TermType",
    "URI",
    "Variable",
    "Changeset",
    "IncompleteStatement",
    "Pattern",
    "Statement",
    "BatchApplyFailure",
    "MalformedDocument",
    "MemoryCollection",
    "RepositoryConfig",
    "QuadRepository",
    # MongoDB binding (imported on first use)
    "MongoCollection",
    "connect",
]

# Lazy import for the pymongo binding
def __getattr__(name):
    if name in ("MongoCollection", "connect"):
        from rdf_mongostore.storage.mongo import MongoCollection, connect
        return {
            "MongoCollection": MongoCollection,
            "connect": connect,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
