"""
Changeset application.

A changeset is validated in full, staged as one list of bulk operations
(deletes first, then inserts) and submitted in a single bulk write:

- delete: remove one document equal to the encoded statement
- insert: upsert the encoded statement onto itself, so inserting a
  statement that is already stored changes nothing

Only a batch mixing deletes and inserts has to run ordered; a homogeneous
batch is submitted unordered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from rdf_mongostore.models import Changeset
from rdf_mongostore.storage.collections import (
    BulkOperation,
    BulkWriteFailure,
    BulkWriteResult,
    DeleteOne,
    DocumentCollection,
    UpsertOne,
    WriteErrorDetail,
    WriteFailure,
)
from rdf_mongostore.storage.translator import statement_to_document

logger = logging.getLogger(__name__)


class BatchApplyFailure(Exception):
    """
    A changeset batch failed in storage.

    Attributes:
        succeeded: Operations that were applied before/besides the failure
        attempted: Operations submitted in the batch
        ordered: Whether the batch was ordered (stopped at first failure)
        errors: Per-operation failures reported by storage
        write_concern_errors: Failures to reach the requested durability
    """

    def __init__(
        self,
        succeeded: int,
        attempted: int,
        ordered: bool,
        errors: Sequence[WriteErrorDetail] = (),
        write_concern_errors: Sequence[WriteFailure] = (),
    ):
        self.succeeded = succeeded
        self.attempted = attempted
        self.ordered = ordered
        self.errors = list(errors)
        self.write_concern_errors = list(write_concern_errors)
        mode = "ordered" if ordered else "unordered"
        super().__init__(
            f"{mode.capitalize()} changeset batch failed: "
            f"{succeeded} of {attempted} operations applied"
        )


@dataclass
class ChangesetPlan:
    """Staged bulk operations for one changeset."""
    operations: list[BulkOperation] = field(default_factory=list)
    ordered: bool = False
    deletes: int = 0
    inserts: int = 0

    def __len__(self) -> int:
        return len(self.operations)


def plan_changeset(changeset: Changeset) -> ChangesetPlan:
    """
    Stage a changeset as bulk operations.

    Every statement is encoded before anything is returned, so an
    incomplete statement aborts the whole changeset.

    Raises:
        IncompleteStatement: a statement lacks subject, predicate or object
    """
    delete_docs = [statement_to_document(st) for st in changeset.deletes]
    insert_docs = [statement_to_document(st) for st in changeset.inserts]

    operations: list[BulkOperation] = [DeleteOne(doc) for doc in delete_docs]
    operations.extend(UpsertOne(doc, dict(doc)) for doc in insert_docs)

    return ChangesetPlan(
        operations=operations,
        ordered=changeset.is_mixed,
        deletes=len(delete_docs),
        inserts=len(insert_docs),
    )


def _succeeded(failure: BulkWriteFailure, attempted: int, ordered: bool) -> int:
    if not failure.errors:
        # Write concern errors only: every operation was applied
        return failure.result.attempted or attempted
    if ordered:
        return failure.errors[0].index
    return attempted - len(failure.errors)


def apply_changeset(
    collection: DocumentCollection, changeset: Changeset
) -> BulkWriteResult:
    """
    Apply a changeset to a collection in one bulk write.

    Raises:
        IncompleteStatement: before any storage call
        BatchApplyFailure: storage rejected one or more operations
    """
    plan = plan_changeset(changeset)
    if not plan.operations:
        return BulkWriteResult()

    logger.debug(
        f"Applying changeset: {plan.deletes} deletes, {plan.inserts} inserts, "
        f"ordered={plan.ordered}"
    )
    try:
        return collection.bulk_write(plan.operations, ordered=plan.ordered)
    except BulkWriteFailure as e:
        succeeded = _succeeded(e, len(plan), plan.ordered)
        logger.warning(
            f"Changeset batch failed after {succeeded}/{len(plan)} operations: {e}"
        )
        raise BatchApplyFailure(
            succeeded=succeeded,
            attempted=len(plan),
            ordered=plan.ordered,
            errors=e.errors,
            write_concern_errors=e.write_concern_errors,
        ) from e
