"""
MongoDB Document Store backed by Motor.
"""

import logging
import uuid
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from .interface import DocumentStore, Document, SortSpec
from ..core.errors import StoreError

logger = logging.getLogger(__name__)


class MongoDocumentStore(DocumentStore):
    """Document store on a MongoDB (or Cosmos DB Mongo API) database."""

    def __init__(self, url: str, database: str, server_selection_timeout_ms: int = 30000):
        self._client = AsyncIOMotorClient(
            url,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            maxPoolSize=10,
            uuidRepresentation="standard",
        )
        self._database: AsyncIOMotorDatabase = self._client[database]
        self.database_name = database

    async def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Document]:
        try:
            return await self._database[collection].find_one(filter)
        except PyMongoError as e:
            logger.error(f"MongoDB find_one failed on {collection}: {e}")
            raise StoreError(f"Could not read from {collection}") from e

    async def find_many(
        self,
        collection: str,
        filter: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Document]:
        try:
            cursor = self._database[collection].find(filter)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"MongoDB find failed on {collection}: {e}")
            raise StoreError(f"Could not read from {collection}") from e

    async def count(self, collection: str, filter: Dict[str, Any]) -> int:
        try:
            return await self._database[collection].count_documents(filter)
        except PyMongoError as e:
            logger.error(f"MongoDB count failed on {collection}: {e}")
            raise StoreError(f"Could not count documents in {collection}") from e

    async def save(self, collection: str, document: Document) -> Document:
        document = dict(document)
        document.setdefault("_id", uuid.uuid4().hex)
        try:
            await self._database[collection].replace_one(
                {"_id": document["_id"]}, document, upsert=True
            )
        except PyMongoError as e:
            logger.error(f"MongoDB save failed on {collection}: {e}")
            raise StoreError(f"Could not save document in {collection}") from e
        return document

    async def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        try:
            result = await self._database[collection].delete_many(filter)
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"MongoDB delete failed on {collection}: {e}")
            raise StoreError(f"Could not delete documents in {collection}") from e

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    async def close(self) -> None:
        logger.info("Closing MongoDB connection")
        self._client.close()
