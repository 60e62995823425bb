"""
MongoDB binding for the document collection capability.

Wraps a pymongo Collection so the repository can stage its operations as
UpsertOne/DeleteOne without knowing about driver types.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Sequence

from pymongo import DeleteOne as MongoDeleteOne
from pymongo import IndexModel, MongoClient, ReplaceOne
from pymongo.errors import BulkWriteError

from rdf_mongostore.storage.collections import (
    BulkOperation,
    BulkWriteFailure,
    BulkWriteResult,
    DeleteOne,
    Document,
    Filter,
    UpsertOne,
    WriteErrorDetail,
    WriteFailure,
)
from rdf_mongostore.storage.schema import IndexSpec

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from rdf_mongostore.storage.repo_config import RepositoryConfig

logger = logging.getLogger(__name__)

_NO_ID = {"_id": False}


def to_driver_operation(operation: BulkOperation):
    """Translate a staged operation into its pymongo request."""
    if isinstance(operation, UpsertOne):
        return ReplaceOne(operation.filter, operation.replacement, upsert=True)
    if isinstance(operation, DeleteOne):
        return MongoDeleteOne(operation.filter)
    raise TypeError(f"Unsupported bulk operation {operation!r}")


def failure_from_details(
    details: dict, attempted: int, ordered: bool
) -> BulkWriteFailure:
    """Build a BulkWriteFailure from pymongo's BulkWriteError.details."""
    errors = [
        WriteErrorDetail(
            index=err.get("index", 0),
            message=err.get("errmsg", "unknown write error"),
            code=err.get("code"),
        )
        for err in details.get("writeErrors", [])
    ]
    concern_errors = [
        WriteFailure(err.get("errmsg", "write concern error"), err.get("code"))
        for err in details.get("writeConcernErrors", [])
    ]
    if ordered and errors:
        attempted = errors[0].index + 1
    result = BulkWriteResult(
        attempted=attempted,
        upserted=details.get("nUpserted", 0),
        matched=details.get("nMatched", 0),
        deleted=details.get("nRemoved", 0),
    )
    return BulkWriteFailure(result, errors, ordered, concern_errors)


class MongoCollection:
    """
    DocumentCollection backed by a pymongo collection.

    Example:
        client = MongoClient("mongodb://localhost:27017")
        repo = QuadRepository(MongoCollection(client["quadb"]["quads"]))
    """

    durable = True

    def __init__(self, collection: "Collection"):
        self._collection = collection

    @property
    def collection(self) -> "Collection":
        return self._collection

    @property
    def name(self) -> str:
        return self._collection.full_name

    def find(self, filter: Optional[Filter] = None) -> Iterator[Document]:
        return iter(self._collection.find(filter or {}, _NO_ID))

    def count(self, filter: Optional[Filter] = None) -> int:
        return self._collection.count_documents(filter or {})

    def upsert(self, filter: Filter, replacement: Document) -> None:
        self._collection.replace_one(filter, replacement, upsert=True)

    def delete_one(self, filter: Filter) -> int:
        return self._collection.delete_one(filter).deleted_count

    def delete_many(self, filter: Optional[Filter] = None) -> int:
        return self._collection.delete_many(filter or {}).deleted_count

    def bulk_write(
        self, operations: Sequence[BulkOperation], ordered: bool = True
    ) -> BulkWriteResult:
        """
        Submit operations as one pymongo bulk write.

        Raises:
            BulkWriteFailure: translated from pymongo's BulkWriteError
        """
        requests = [to_driver_operation(op) for op in operations]
        try:
            outcome = self._collection.bulk_write(requests, ordered=ordered)
        except BulkWriteError as e:
            raise failure_from_details(e.details, len(requests), ordered) from e
        return BulkWriteResult(
            attempted=len(requests),
            upserted=outcome.upserted_count,
            matched=outcome.matched_count,
            deleted=outcome.deleted_count,
        )

    def ensure_indexes(self, specs: Iterable[IndexSpec]) -> list[str]:
        models = [IndexModel(list(spec.keys), name=spec.name) for spec in specs]
        if not models:
            return []
        names = self._collection.create_indexes(models)
        logger.info(f"Ensured {len(names)} indexes on {self.name}")
        return names


def connect(config: "RepositoryConfig") -> MongoCollection:
    """Open a client for the configuration and return its quad collection."""
    config.validate()
    client = MongoClient(config.uri, **config.client_options)
    logger.info(
        f"Connected to {config.database}.{config.collection} at {config.redacted_uri}"
    )
    return MongoCollection(client[config.database][config.collection])
