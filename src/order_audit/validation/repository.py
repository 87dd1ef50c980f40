"""MongoDB repository for fetching order documents."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from pymongo import MongoClient

from ..utils.config import Config
from ..utils.logging import get_logger

logger = get_logger(__name__)


class OrderRepository:
    def __init__(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        collection: Optional[str] = None,
        connection_url_env_key: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        config = config or Config(".env")

        # An environment-specific key (e.g. DB_CONNECTION_URL_PROD) wins over the generic URL
        if connection_url_env_key:
            self._url = url or os.getenv(connection_url_env_key) or config.get("mongo_url")
        else:
            self._url = url or config.get("mongo_url")

        self._db = db_name or config.get("mongo_db")
        self._collection = collection or config.get("mongo_collection")
        if not self._url:
            raise ValueError("DB_CONNECTION_URL is required")
        self._client: Optional[MongoClient] = None

    def __enter__(self) -> "OrderRepository":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self._url, serverSelectionTimeoutMS=5000)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _orders(self):
        if self._client is None:
            self.connect()
        return self._client[self._db][self._collection]

    def get_order_by_id(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._orders().find_one({"id": order_id}, {"_id": 0})

    def fetch_orders(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """All order documents matching ``query``, ordered by ``_id`` ascending."""
        cursor = self._orders().find(query or {}, {"_id": 0}).sort("_id", 1)
        documents = list(cursor)
        logger.info(f"Fetched {len(documents)} orders from {self._db}.{self._collection}")
        return documents
