"""
Document collection capability.

The repository talks to storage only through DocumentCollection. Two
implementations ship with the package:

- MemoryCollection: in-process, thread-safe, not durable
- MongoCollection (rdf_mongostore.storage.mongo): a pymongo collection
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import (
    Any,
    Iterable,
    Iterator,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

from rdf_mongostore.storage.schema import IndexSpec

Document = dict[str, Any]
Filter = dict[str, Any]


# =============================================================================
# Staged operations and results
# =============================================================================

@dataclass(frozen=True)
class UpsertOne:
    """Replace the document matching filter, inserting it if none matches."""
    filter: Filter
    replacement: Document


@dataclass(frozen=True)
class DeleteOne:
    """Remove one document matching filter, if any."""
    filter: Filter


BulkOperation = Union[UpsertOne, DeleteOne]


@dataclass
class BulkWriteResult:
    """Counters reported by a bulk write."""
    attempted: int = 0
    upserted: int = 0
    matched: int = 0
    deleted: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "attempted": self.attempted,
            "upserted": self.upserted,
            "matched": self.matched,
            "deleted": self.deleted,
        }


@dataclass(frozen=True)
class WriteErrorDetail:
    """A single failed operation within a bulk write."""
    index: int
    message: str
    code: Optional[int] = None


class WriteFailure(Exception):
    """Raised by a storage backend when one operation cannot be applied."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class BulkWriteFailure(Exception):
    """
    Raised when one or more operations of a bulk write failed.

    Attributes:
        result: Counters for the operations that did apply
        errors: Failed operations, in submission order
        ordered: Whether the batch stopped at the first failure
        write_concern_errors: Durability failures that are not tied to one
            operation; the operations themselves were applied
    """

    def __init__(
        self,
        result: BulkWriteResult,
        errors: Sequence[WriteErrorDetail],
        ordered: bool,
        write_concern_errors: Sequence[WriteFailure] = (),
    ):
        self.result = result
        self.errors = list(errors)
        self.ordered = ordered
        self.write_concern_errors = list(write_concern_errors)
        if self.errors:
            first = self.errors[0]
            message = (
                f"Bulk write failed with {len(self.errors)} error(s): "
                f"operation {first.index}: {first.message}"
            )
        elif self.write_concern_errors:
            message = (
                f"Bulk write applied but failed with "
                f"{len(self.write_concern_errors)} write concern error(s): "
                f"{self.write_concern_errors[0]}"
            )
        else:
            message = "Bulk write failed"
        super().__init__(message)


# =============================================================================
# Capability
# =============================================================================

@runtime_checkable
class DocumentCollection(Protocol):
    """Storage operations required by the quad repository."""

    durable: bool

    def find(self, filter: Optional[Filter] = None) -> Iterator[Document]:
        ...

    def count(self, filter: Optional[Filter] = None) -> int:
        ...

    def upsert(self, filter: Filter, replacement: Document) -> None:
        ...

    def delete_one(self, filter: Filter) -> int:
        ...

    def delete_many(self, filter: Optional[Filter] = None) -> int:
        ...

    def bulk_write(
        self, operations: Sequence[BulkOperation], ordered: bool = True
    ) -> BulkWriteResult:
        ...

    def ensure_indexes(self, specs: Iterable[IndexSpec]) -> list[str]:
        ...


# =============================================================================
# In-memory implementation
# =============================================================================

_MISSING = object()


def _same_value(left: Any, right: Any) -> bool:
    # BSON comparisons are type-strict: False never equals 0 or ""
    return type(left) is type(right) and left == right


def _field_matches(document: Document, field_name: str, condition: Any) -> bool:
    actual = document.get(field_name, _MISSING)
    if isinstance(condition, dict):
        for operator, operand in condition.items():
            if operator == "$ne":
                # A missing field satisfies $ne
                if actual is not _MISSING and _same_value(actual, operand):
                    return False
            elif operator == "$eq":
                if actual is _MISSING or not _same_value(actual, operand):
                    return False
            elif operator == "$exists":
                if (actual is not _MISSING) != bool(operand):
                    return False
            else:
                raise ValueError(f"Unsupported filter operator {operator!r}")
        return True
    return actual is not _MISSING and _same_value(actual, condition)


def matches_filter(document: Document, filter: Optional[Filter]) -> bool:
    """Evaluate a (flat) collection filter against a document."""
    if not filter:
        return True
    return all(
        _field_matches(document, field_name, condition)
        for field_name, condition in filter.items()
    )


class MemoryCollection:
    """
    An in-process document collection.

    Documents live in insertion order in a list guarded by a lock. Filters
    support field equality plus the $eq, $ne and $exists operators, with
    MongoDB's rules for missing fields.

    Example:
        collection = MemoryCollection()
        repo = QuadRepository(collection)
    """

    durable = False

    def __init__(self, documents: Optional[Iterable[Document]] = None):
        self._documents: list[Document] = [copy.deepcopy(d) for d in documents or ()]
        self._indexes: dict[str, IndexSpec] = {}
        self._lock = threading.RLock()

    @property
    def indexes(self) -> dict[str, IndexSpec]:
        return dict(self._indexes)

    def find(self, filter: Optional[Filter] = None) -> Iterator[Document]:
        with self._lock:
            snapshot = [
                copy.deepcopy(d) for d in self._documents if matches_filter(d, filter)
            ]
        return iter(snapshot)

    def count(self, filter: Optional[Filter] = None) -> int:
        with self._lock:
            return sum(1 for d in self._documents if matches_filter(d, filter))

    def upsert(self, filter: Filter, replacement: Document) -> None:
        with self._lock:
            self._apply(UpsertOne(filter, replacement), BulkWriteResult())

    def delete_one(self, filter: Filter) -> int:
        result = BulkWriteResult()
        with self._lock:
            self._apply(DeleteOne(filter), result)
        return result.deleted

    def delete_many(self, filter: Optional[Filter] = None) -> int:
        with self._lock:
            kept = [d for d in self._documents if not matches_filter(d, filter)]
            removed = len(self._documents) - len(kept)
            self._documents = kept
            return removed

    def bulk_write(
        self, operations: Sequence[BulkOperation], ordered: bool = True
    ) -> BulkWriteResult:
        """
        Apply operations in submission order.

        Ordered batches stop at the first failing operation; unordered
        batches apply every operation that does not fail.

        Raises:
            BulkWriteFailure: at least one operation failed
        """
        result = BulkWriteResult()
        errors: list[WriteErrorDetail] = []

        with self._lock:
            for index, operation in enumerate(operations):
                result.attempted += 1
                try:
                    self._apply(operation, result)
                except WriteFailure as e:
                    errors.append(WriteErrorDetail(index, str(e), e.code))
                    if ordered:
                        break

        if errors:
            raise BulkWriteFailure(result, errors, ordered)
        return result

    def _apply(self, operation: BulkOperation, result: BulkWriteResult) -> None:
        if isinstance(operation, UpsertOne):
            for position, document in enumerate(self._documents):
                if matches_filter(document, operation.filter):
                    self._documents[position] = copy.deepcopy(operation.replacement)
                    result.matched += 1
                    return
            self._documents.append(copy.deepcopy(operation.replacement))
            result.upserted += 1
        elif isinstance(operation, DeleteOne):
            for position, document in enumerate(self._documents):
                if matches_filter(document, operation.filter):
                    del self._documents[position]
                    result.deleted += 1
                    return
        else:
            raise TypeError(f"Unsupported bulk operation {operation!r}")

    def ensure_indexes(self, specs: Iterable[IndexSpec]) -> list[str]:
        # Declarations only; scans are linear
        with self._lock:
            for spec in specs:
                self._indexes[spec.name] = spec
            return list(self._indexes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
