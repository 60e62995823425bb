"""
Tests for the pymongo binding, using a mocked pymongo collection.
"""

from unittest.mock import MagicMock, patch

import pytest
from pymongo import DeleteOne as MongoDeleteOne
from pymongo import ReplaceOne
from pymongo.errors import BulkWriteError

from rdf_mongostore.models import Changeset, Pattern, Statement
from rdf_mongostore.repository import QuadRepository
from rdf_mongostore.storage.changeset import BatchApplyFailure
from rdf_mongostore.storage.collections import (
    BulkWriteFailure,
    DeleteOne,
    DocumentCollection,
    UpsertOne,
)
from rdf_mongostore.storage.mongo import MongoCollection, connect, to_driver_operation
from rdf_mongostore.storage.repo_config import RepositoryConfig
from rdf_mongostore.storage.schema import QUAD_INDEXES
from rdf_mongostore.storage.translator import statement_to_document
from rdf_mongostore.terms import URI, Literal

A = Statement(URI("http://ex/a"), URI("http://ex/p"), Literal("a"))
B = Statement(URI("http://ex/b"), URI("http://ex/p"), Literal("b"))


@pytest.fixture
def pymongo_collection():
    collection = MagicMock()
    collection.full_name = "quadb.quads"
    collection.create_indexes.side_effect = lambda models: [
        m.document["name"] for m in models
    ]
    return collection


@pytest.fixture
def mongo(pymongo_collection):
    return MongoCollection(pymongo_collection)


class TestMongoCollection:
    """Test translation of capability calls into pymongo calls."""

    def test_satisfies_protocol(self, mongo):
        assert isinstance(mongo, DocumentCollection)
        assert mongo.durable is True

    def test_find_hides_object_ids(self, mongo, pymongo_collection):
        pymongo_collection.find.return_value = iter([{"subject": "s"}])
        assert list(mongo.find({"p_type": "uri"})) == [{"subject": "s"}]
        pymongo_collection.find.assert_called_once_with({"p_type": "uri"}, {"_id": False})

    def test_count_uses_count_documents(self, mongo, pymongo_collection):
        pymongo_collection.count_documents.return_value = 3
        assert mongo.count() == 3
        pymongo_collection.count_documents.assert_called_once_with({})

    def test_upsert_replaces(self, mongo, pymongo_collection):
        doc = statement_to_document(A)
        mongo.upsert(doc, dict(doc))
        pymongo_collection.replace_one.assert_called_once_with(doc, doc, upsert=True)

    def test_delete_counts(self, mongo, pymongo_collection):
        pymongo_collection.delete_one.return_value.deleted_count = 1
        pymongo_collection.delete_many.return_value.deleted_count = 5
        assert mongo.delete_one({"subject": "s"}) == 1
        assert mongo.delete_many() == 5
        pymongo_collection.delete_many.assert_called_once_with({})

    def test_driver_operations(self):
        doc = statement_to_document(A)
        assert to_driver_operation(UpsertOne(doc, doc)) == ReplaceOne(doc, doc, upsert=True)
        assert to_driver_operation(DeleteOne(doc)) == MongoDeleteOne(doc)

    def test_bulk_write_result(self, mongo, pymongo_collection):
        outcome = pymongo_collection.bulk_write.return_value
        outcome.upserted_count = 1
        outcome.matched_count = 0
        outcome.deleted_count = 1

        doc = statement_to_document(A)
        result = mongo.bulk_write([DeleteOne(doc), UpsertOne(doc, doc)], ordered=True)

        assert result.attempted == 2
        assert result.upserted == 1
        assert result.deleted == 1
        requests = pymongo_collection.bulk_write.call_args.args[0]
        assert requests == [MongoDeleteOne(doc), ReplaceOne(doc, doc, upsert=True)]
        assert pymongo_collection.bulk_write.call_args.kwargs == {"ordered": True}

    def test_bulk_write_error_translated(self, mongo, pymongo_collection):
        pymongo_collection.bulk_write.side_effect = BulkWriteError({
            "writeErrors": [{"index": 1, "code": 11000, "errmsg": "E11000 duplicate key"}],
            "nUpserted": 1,
            "nMatched": 0,
            "nRemoved": 0,
        })
        doc = statement_to_document(A)
        ops = [UpsertOne(doc, doc), UpsertOne(doc, doc), UpsertOne(doc, doc)]

        with pytest.raises(BulkWriteFailure) as exc_info:
            mongo.bulk_write(ops, ordered=True)

        failure = exc_info.value
        assert failure.ordered is True
        assert failure.result.attempted == 2
        assert failure.result.upserted == 1
        assert failure.errors[0].index == 1
        assert failure.errors[0].code == 11000
        assert isinstance(failure.__cause__, BulkWriteError)

    def test_write_concern_error_translated(self, mongo, pymongo_collection):
        pymongo_collection.bulk_write.side_effect = BulkWriteError({
            "writeErrors": [],
            "writeConcernErrors": [{"code": 64, "errmsg": "waiting for replication timed out"}],
            "nUpserted": 2,
            "nMatched": 0,
            "nRemoved": 0,
        })
        doc = statement_to_document(A)

        with pytest.raises(BulkWriteFailure) as exc_info:
            mongo.bulk_write([UpsertOne(doc, doc), UpsertOne(doc, doc)], ordered=False)

        failure = exc_info.value
        assert failure.errors == []
        assert failure.result.attempted == 2
        assert failure.write_concern_errors[0].code == 64
        assert "write concern" in str(failure)

    def test_ensure_indexes(self, mongo, pymongo_collection):
        names = mongo.ensure_indexes(QUAD_INDEXES)
        assert names == [spec.name for spec in QUAD_INDEXES]

        models = pymongo_collection.create_indexes.call_args.args[0]
        hashed = models[0].document
        assert hashed["name"] == "subject_hashed"
        assert dict(hashed["key"]) == {"subject": "hashed"}

        literals = models[-1].document
        assert literals["name"] == "spoc_literals"
        assert list(literals["key"]) == ["s_literal", "p_literal", "o_literal", "c_literal"]


class TestRepositoryOnMongo:
    """Test the repository end to end against a mocked pymongo collection."""

    def test_changeset_failure_wrapped(self, mongo, pymongo_collection):
        pymongo_collection.bulk_write.side_effect = BulkWriteError({
            "writeErrors": [{"index": 1, "code": 121, "errmsg": "Document failed validation"}],
            "nUpserted": 1,
            "nMatched": 0,
            "nRemoved": 1,
        })
        repo = QuadRepository(mongo)

        with pytest.raises(BatchApplyFailure) as exc_info:
            repo.apply_changeset(Changeset(inserts=[A, B], deletes=[B]))

        assert exc_info.value.ordered is True
        assert exc_info.value.succeeded == 1

    def test_write_concern_failure_reports_applied_operations(self, mongo, pymongo_collection):
        """Operations held back only by write concern still count as applied."""
        pymongo_collection.bulk_write.side_effect = BulkWriteError({
            "writeErrors": [],
            "writeConcernErrors": [{"code": 64, "errmsg": "waiting for replication timed out"}],
            "nUpserted": 2,
            "nMatched": 0,
            "nRemoved": 0,
        })
        repo = QuadRepository(mongo)

        with pytest.raises(BatchApplyFailure) as exc_info:
            repo.insert(A, B)

        failure = exc_info.value
        assert failure.ordered is False
        assert failure.succeeded == 2
        assert failure.errors == []
        assert len(failure.write_concern_errors) == 1
        assert "2 of 2 operations applied" in str(failure)

    def test_query_decodes_documents(self, mongo, pymongo_collection):
        pymongo_collection.find.return_value = iter([statement_to_document(A)])
        repo = QuadRepository(mongo)

        assert list(repo.query(Pattern(predicate=URI("http://ex/p")))) == [A]
        query = pymongo_collection.find.call_args.args[0]
        assert query == {"predicate": "http://ex/p", "p_type": "uri"}


class TestConnect:
    """Test client construction from configuration."""

    def test_connect_uses_configured_collection(self):
        config = RepositoryConfig.from_uri(
            "mongodb://db.example:27017/rdf/specs", client_options={"appname": "tests"}
        )
        with patch("rdf_mongostore.storage.mongo.MongoClient") as client_cls:
            collection = connect(config)

        client_cls.assert_called_once_with("mongodb://db.example:27017/rdf", appname="tests")
        client = client_cls.return_value
        client.__getitem__.assert_called_once_with("rdf")
        client.__getitem__.return_value.__getitem__.assert_called_once_with("specs")
        assert isinstance(collection, MongoCollection)

    def test_from_uri_builds_repository(self):
        with patch("rdf_mongostore.storage.mongo.MongoClient"):
            repo = QuadRepository.from_uri(
                "mongodb://localhost:27017/quadb/quads", create_indexes=False
            )
        assert repo.durable is True
        assert repo.config.collection == "quads"
