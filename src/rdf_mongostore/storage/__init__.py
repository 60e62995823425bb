"""
Storage layer: document schema, term codec, pattern translation,
collection backends and changeset application.
"""

from rdf_mongostore.storage.schema import (
    SCHEMA_VERSION,
    IndexSpec,
    QUAD_INDEXES,
)
from rdf_mongostore.storage.codec import (
    EncodedTerm,
    MalformedDocument,
    NodeCache,
    Slot,
    decode,
    encode,
    encode_pattern,
    encode_term,
)
from rdf_mongostore.storage.translator import (
    document_to_statement,
    pattern_to_filter,
    statement_to_document,
)
from rdf_mongostore.storage.collections import (
    BulkWriteFailure,
    BulkWriteResult,
    DeleteOne,
    DocumentCollection,
    MemoryCollection,
    UpsertOne,
    WriteErrorDetail,
    WriteFailure,
)
from rdf_mongostore.storage.changeset import (
    BatchApplyFailure,
    ChangesetPlan,
    apply_changeset,
    plan_changeset,
)
from rdf_mongostore.storage.repo_config import (
    ConfigValidationError,
    RepositoryConfig,
)

__all__ = [
    # Schema
    "SCHEMA_VERSION",
    "IndexSpec",
    "QUAD_INDEXES",
    # Codec
    "EncodedTerm",
    "MalformedDocument",
    "NodeCache",
    "Slot",
    "decode",
    "encode",
    "encode_pattern",
    "encode_term",
    # Translation
    "document_to_statement",
    "pattern_to_filter",
    "statement_to_document",
    # Collections
    "BulkWriteFailure",
    "BulkWriteResult",
    "DeleteOne",
    "DocumentCollection",
    "MemoryCollection",
    "UpsertOne",
    "WriteErrorDetail",
    "WriteFailure",
    # Changesets
    "BatchApplyFailure",
    "ChangesetPlan",
    "apply_changeset",
    "plan_changeset",
    # Configuration
    "ConfigValidationError",
    "RepositoryConfig",
]
