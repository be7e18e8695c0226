import logging

from pymongo.errors import CollectionInvalid, ConnectionFailure, OperationFailure

from .connect_db import get_database, open_connection
from .errors import CollectionExistsError, DatabaseConnectionError, DocumentWriteError, ValidationRuleError
from .schema import SchemaRule

logger = logging.getLogger(__name__)

# server error codes
NAMESPACE_EXISTS = 48
BAD_VALUE = 2
FAILED_TO_PARSE = 9


def create_collection(database_name, collection_name, schema_rule, client_factory=None):
    """Create ``collection_name`` with ``schema_rule`` attached as its validator.

    ``schema_rule`` may be a SchemaRule or its `$jsonSchema` mapping.
    Fails with CollectionExistsError if the name is taken and with
    ValidationRuleError if the rule is malformed.
    """
    if not isinstance(schema_rule, SchemaRule):
        schema_rule = SchemaRule.from_bson(schema_rule)

    with open_connection(client_factory) as client:
        db = get_database(database_name, client)
        try:
            db.create_collection(collection_name, validator=schema_rule.to_validator())
        except CollectionInvalid as e:
            logger.error("Collection '%s.%s' already exists", database_name, collection_name)
            raise CollectionExistsError(str(e)) from e
        except ConnectionFailure as e:
            logger.error("Lost connection to MongoDB: %s", e)
            raise DatabaseConnectionError(str(e)) from e
        except OperationFailure as e:
            if e.code == NAMESPACE_EXISTS:
                logger.error("Collection '%s.%s' already exists", database_name, collection_name)
                raise CollectionExistsError(str(e)) from e
            if e.code in (BAD_VALUE, FAILED_TO_PARSE):
                logger.error("Validator rejected for '%s': %s", collection_name, e)
                raise ValidationRuleError(str(e)) from e
            logger.error("Failed to create collection '%s': %s", collection_name, e)
            raise DocumentWriteError(str(e)) from e

    logger.info("Created new collection: %s", collection_name)


def collection_schema(db, collection_name):
    """Return the SchemaRule attached to ``collection_name``, or None."""
    options = db[collection_name].options()
    schema = options.get("validator", {}).get("$jsonSchema")
    if schema is None:
        return None
    return SchemaRule.from_bson(schema)


if __name__ == "__main__":
    from .schema import PRODUCT_RULE

    create_collection("web_store", "products", PRODUCT_RULE)
