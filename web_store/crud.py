"""Document writes and reads against a schema-validated collection.

Every function opens its own connection through ``open_connection`` and
closes it before returning, whether the operation succeeded or not.
Failures are logged and re-raised as ``web_store.errors`` exceptions.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel
from pymongo.errors import BulkWriteError, ConnectionFailure, PyMongoError

from .connect_db import get_database, open_connection
from .create_collections import collection_schema
from .errors import DatabaseConnectionError, DocumentWriteError, QueryError, SchemaValidationError
from .models import UpdateSummary, WriteSummary
from .schema import SchemaRule

logger = logging.getLogger(__name__)

DOCUMENT_VALIDATION_FAILURE = 121


@contextmanager
def _collection(database_name, collection_name, client_factory=None):
    with open_connection(client_factory) as client:
        try:
            yield get_database(database_name, client)[collection_name]
        except ConnectionFailure as e:
            logger.error("Lost connection to MongoDB: %s", e)
            raise DatabaseConnectionError(str(e)) from e
        except PyMongoError as e:
            # write failures are already translated, so this is a failed read
            logger.error("Query on '%s.%s' failed: %s", database_name, collection_name, e)
            raise QueryError(str(e)) from e


def _as_document(doc) -> Dict[str, Any]:
    if isinstance(doc, BaseModel):
        return doc.model_dump()
    return dict(doc)


def _resolve_rule(collection, schema_rule) -> Optional[SchemaRule]:
    if schema_rule is None:
        return collection_schema(collection.database, collection.name)
    if isinstance(schema_rule, SchemaRule):
        return schema_rule
    return SchemaRule.from_bson(schema_rule)


def _write_error(e: PyMongoError, index: int = 0) -> Exception:
    if getattr(e, "code", None) == DOCUMENT_VALIDATION_FAILURE:
        return SchemaValidationError(str(e), index=index)
    return DocumentWriteError(str(e))


def insert_documents(
    database_name: str,
    collection_name: str,
    documents: Sequence[Any],
    schema_rule=None,
    client_factory=None,
) -> WriteSummary:
    """Insert ``documents`` in order, validating each against the schema first.

    A single document goes through ``insert_one``, several through an
    ordered ``insert_many``. If any document fails validation nothing from
    this call is written.
    """
    docs = [_as_document(d) for d in documents]
    if not docs:
        raise ValueError("documents must not be empty")

    with _collection(database_name, collection_name, client_factory) as collection:
        rule = _resolve_rule(collection, schema_rule)
        if rule is not None:
            for index, doc in enumerate(docs):
                try:
                    rule.validate_document(doc, index=index)
                except SchemaValidationError as e:
                    logger.error("Rejected insert into '%s': %s", collection_name, e)
                    raise

        if len(docs) > 1:
            logger.info("using query: %s.%s.insertMany(%d documents)", database_name, collection_name, len(docs))
            try:
                result = collection.insert_many(docs, ordered=True)
            except BulkWriteError as e:
                write_errors = e.details.get("writeErrors") or [{}]
                first = write_errors[0]
                logger.error("Failed to insert documents: %s", first.get("errmsg", e))
                if first.get("code") == DOCUMENT_VALIDATION_FAILURE:
                    raise SchemaValidationError(first.get("errmsg", str(e)), index=first.get("index", 0)) from e
                raise DocumentWriteError(str(e)) from e
            except ConnectionFailure:
                raise
            except PyMongoError as e:
                logger.error("Failed to insert documents: %s", e)
                raise _write_error(e) from e
            logger.info("Inserted multiple documents")
            return WriteSummary(acknowledged=result.acknowledged, inserted_ids=list(result.inserted_ids))

        logger.info("using query: %s.%s.insertOne(%s)", database_name, collection_name, docs[0])
        try:
            result = collection.insert_one(docs[0])
        except ConnectionFailure:
            raise
        except PyMongoError as e:
            logger.error("Failed to insert document: %s", e)
            raise _write_error(e) from e
        logger.info("Inserted document")
        return WriteSummary(
            acknowledged=result.acknowledged,
            inserted_ids=[result.inserted_id],
            inserted_id=result.inserted_id,
        )


def find_by_names(
    database_name: str,
    collection_name: str,
    names: Iterable[Any],
    client_factory=None,
) -> List[dict]:
    """Return every document whose ``name`` is one of ``names``.

    ``names`` is a collection of names or of product documents, not a
    single name. Order follows the server's natural order.
    """
    if isinstance(names, (str, bytes)):
        raise TypeError("names must be a collection of names, not a single string")

    name_list = []
    for item in names:
        if isinstance(item, BaseModel):
            item = item.name
        elif isinstance(item, dict):
            if "name" not in item:
                raise ValueError(f"document has no 'name' field: {item}")
            item = item["name"]
        if item not in name_list:
            name_list.append(item)
    if not name_list:
        return []

    with _collection(database_name, collection_name, client_factory) as collection:
        logger.info("using query: %s.%s.find({name: {$in: %s}})", database_name, collection_name, name_list)
        return list(collection.find({"name": {"$in": name_list}}))


def find_document(
    database_name: str,
    collection_name: str,
    query: Dict[str, Any],
    client_factory=None,
) -> Optional[dict]:
    with _collection(database_name, collection_name, client_factory) as collection:
        logger.info("using query: %s.%s.findOne(%s)", database_name, collection_name, query)
        return collection.find_one(query)


def update_document(
    database_name: str,
    collection_name: str,
    query: Dict[str, Any],
    patch: Dict[str, Any],
    schema_rule=None,
    client_factory=None,
) -> UpdateSummary:
    """`$set` ``patch`` on the first document matching ``query``.

    The patched document is validated before anything is written. No match
    is not an error: the summary reports zero matched documents.
    """
    patch = _as_document(patch)
    if not patch:
        raise ValueError("No fields to update")
    operators = [key for key in patch if key.startswith("$")]
    if operators:
        raise ValueError(f"patch must be a plain field set, got operators {operators}")

    with _collection(database_name, collection_name, client_factory) as collection:
        doc = collection.find_one(query)
        if doc is None:
            logger.info("No document in '%s' matches %s", collection_name, query)
            return UpdateSummary(acknowledged=True, matched_count=0, modified_count=0)

        rule = _resolve_rule(collection, schema_rule)
        if rule is not None:
            merged = dict(doc)
            merged.update(patch)
            merged.pop("_id", None)
            try:
                rule.validate_document(merged)
            except SchemaValidationError as e:
                logger.error("Rejected update in '%s': %s", collection_name, e)
                raise

        update_query = {"$set": patch}
        logger.info("using query: %s.%s.updateOne(%s, %s)", database_name, collection_name, query, update_query)
        try:
            result = collection.update_one({"_id": doc["_id"]}, update_query)
        except ConnectionFailure:
            raise
        except PyMongoError as e:
            logger.error("Failed to update document: %s", e)
            raise _write_error(e) from e
        logger.info("Updated document")
        return UpdateSummary(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )
