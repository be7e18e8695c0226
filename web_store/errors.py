"""Exceptions raised by the web_store database operations."""


class WebStoreError(Exception):
    """Base class for web_store errors."""


class DatabaseConnectionError(WebStoreError):
    """Raised when the MongoDB deployment cannot be reached."""


class CollectionExistsError(WebStoreError):
    """Raised when creating a collection whose name is already taken."""


class ValidationRuleError(WebStoreError):
    """Raised when a schema rule is structurally invalid."""


class SchemaValidationError(WebStoreError):
    """Raised when a document does not satisfy the collection schema.

    ``index`` is the position of the offending document in the write call
    (0 for single-document writes) and ``field`` the first field reported
    missing or invalid, when known.
    """

    def __init__(self, reason, index=0, field=None):
        self.reason = reason
        self.index = index
        self.field = field
        location = f"document {index}"
        if field:
            location += f", field '{field}'"
        super().__init__(f"Schema validation error ({location}): {reason}")


class DocumentWriteError(WebStoreError):
    """Raised for persistence failures that are not schema violations."""


class QueryError(WebStoreError):
    """Raised when the server rejects a read (e.g. not authorized)."""
