"""MongoDB Storage Adapter.

This adapter implements the DocumentStorePort contract on top of pymongo.

Security Impact:
    - The connection URI is read from SecretStr and never logged
    - Native ObjectId keys are converted to strings on the way out, so the
      domain compares identities in one canonical form
    - Driver errors are wrapped so connection details do not leak to callers

Architecture:
    - Implements DocumentStorePort (Hexagonal Architecture)
    - Connection is established lazily and reused across requests
    - Read operations only, apart from the directory's seed insert
"""

import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from clinic_roster.domain.ports import (
    DocumentStorePort,
    InvalidIdentifierError,
    StorageError,
    StorageUnavailableError,
)
from clinic_roster.infrastructure.config_manager import DocumentStoreConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')


def to_plain(value: Any) -> Any:
    """Recursively replace ObjectId values with their string form."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


class MongoDBAdapter(DocumentStorePort):
    """MongoDB implementation of DocumentStorePort.

    Parameters:
        store_config: DocumentStoreConfig from configuration manager
        client: Pre-built MongoClient (used instead of connecting from config)

    Example Usage:
        ```python
        from clinic_roster.infrastructure.settings import settings

        adapter = MongoDBAdapter(store_config=settings.document_store_config)
        if adapter.is_available():
            doctors = adapter.find("users", {"role": "doctor"})
        ```
    """

    db_type = "mongodb"

    def __init__(
        self,
        store_config: Optional[DocumentStoreConfig] = None,
        client: Optional[MongoClient] = None
    ):
        self.store_config = store_config or DocumentStoreConfig()
        self._client: Optional[MongoClient] = client

    def _get_client(self) -> MongoClient:
        """Get or create the MongoDB client.

        Raises:
            StorageUnavailableError: If no URI is configured or the URI is rejected
        """
        if self._client is None:
            if not self.store_config.is_configured:
                raise StorageUnavailableError("Document store is not configured", operation="connect")
            try:
                self._client = MongoClient(
                    self.store_config.uri.get_secret_value(),
                    serverSelectionTimeoutMS=self.store_config.timeout_ms,
                    tz_aware=True,
                )
                logger.info(f"Configured MongoDB client for {self.store_config.masked_uri()}")
            except PyMongoError as e:
                raise StorageUnavailableError(
                    f"Failed to create MongoDB client: {type(e).__name__}",
                    operation="connect"
                )
        return self._client

    def _run(self, operation: str, collection: str, action: Callable[[Any], T]) -> T:
        """Run ``action`` against a collection, wrapping driver errors."""
        try:
            coll = self._get_client()[self.store_config.database][collection]
            return action(coll)
        except StorageError:
            raise
        except ConnectionFailure as e:
            raise StorageUnavailableError(
                f"Document store unreachable during {operation}: {type(e).__name__}",
                operation=operation,
                details={"collection": collection}
            )
        except PyMongoError as e:
            raise StorageError(
                f"Document store {operation} failed: {type(e).__name__}",
                operation=operation,
                details={"collection": collection}
            )

    def is_available(self) -> bool:
        if self._client is None and not self.store_config.is_configured:
            return False
        try:
            self._get_client().admin.command("ping")
            return True
        except StorageError as e:
            logger.warning(f"Document store unavailable: {str(e)}")
            return False
        except PyMongoError as e:
            logger.warning(f"Document store ping failed: {type(e).__name__}")
            return False

    def find(self, collection: str, query: Optional[dict] = None) -> list[dict]:
        return self._run(
            "find", collection,
            lambda coll: [to_plain(doc) for doc in coll.find(query or {})]
        )

    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        document = self._run("find_one", collection, lambda coll: coll.find_one(query))
        return to_plain(document) if document is not None else None

    def count(self, collection: str, query: Optional[dict] = None) -> int:
        return self._run("count", collection, lambda coll: coll.count_documents(query or {}))

    def insert_many(self, collection: str, documents: Iterable[dict]) -> list[str]:
        # insert_many assigns _id into the dicts it is given
        rows = [dict(doc) for doc in documents]
        if not rows:
            return []
        result = self._run("insert_many", collection, lambda coll: coll.insert_many(rows))
        return [str(key) for key in result.inserted_ids]

    def parse_key(self, value: str) -> ObjectId:
        if not isinstance(value, str):
            raise InvalidIdentifierError("Invalid identifier", value=value)
        try:
            return ObjectId(value)
        except InvalidId:
            raise InvalidIdentifierError("Invalid identifier", value=value)

    def generate_key(self) -> str:
        return str(ObjectId())

    def close(self) -> None:
        """Close the underlying client, if one was created."""
        if self._client is not None:
            self._client.close()
            self._client = None
