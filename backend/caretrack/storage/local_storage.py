"""
Local Filesystem Document Store.
Stores each document as a JSON file: <base_dir>/<collection>/<_id>.json
"""

import json
import logging
import uuid
import aiofiles
from pathlib import Path
from typing import Optional, List, Dict, Any

from .interface import DocumentStore, Document, SortSpec, matches
from ..core.errors import StoreError

logger = logging.getLogger(__name__)


class LocalDocumentStore(DocumentStore):
    """
    Local filesystem document store.
    Suitable for development, tests and single-instance deployments.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all collections
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        path = (self.base_dir / collection).resolve()

        # Security check: ensure path is within base_dir
        if path.parent != self.base_dir:
            raise StoreError(f"Invalid collection name: {collection}")

        return path

    def _document_path(self, collection: str, document_id: str) -> Path:
        collection_dir = self._collection_dir(collection)
        path = (collection_dir / f"{document_id}.json").resolve()
        if path.parent != collection_dir:
            raise StoreError(f"Invalid document id: {document_id}")
        return path

    async def _read(self, path: Path) -> Optional[Document]:
        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                return json.loads(await f.read())
        except FileNotFoundError:
            # Deleted between listing and reading
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading document {path}: {e}")
            raise StoreError(f"Could not read document {path.name}") from e

    async def _scan(self, collection: str, filter: Dict[str, Any]) -> List[Document]:
        collection_dir = self._collection_dir(collection)
        if not collection_dir.exists():
            return []

        documents = []
        for path in sorted(collection_dir.glob("*.json")):
            document = await self._read(path)
            if document is not None and matches(document, filter):
                documents.append(document)
        return documents

    async def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Document]:
        if set(filter) == {"_id"}:
            path = self._document_path(collection, str(filter["_id"]))
            return await self._read(path) if path.exists() else None

        documents = await self._scan(collection, filter)
        return documents[0] if documents else None

    async def find_many(
        self,
        collection: str,
        filter: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Document]:
        documents = await self._scan(collection, filter)

        # Apply sort keys from least to most significant
        for field, direction in reversed(sort or []):
            documents.sort(
                key=lambda d: (d.get(field) is not None, d.get(field) or ""),
                reverse=direction < 0
            )

        documents = documents[skip:]
        if limit is not None:
            documents = documents[:limit]
        return documents

    async def count(self, collection: str, filter: Dict[str, Any]) -> int:
        return len(await self._scan(collection, filter))

    async def save(self, collection: str, document: Document) -> Document:
        document = dict(document)
        document.setdefault("_id", uuid.uuid4().hex)
        path = self._document_path(collection, str(document["_id"]))

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(document, ensure_ascii=False, indent=2))
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving document {collection}/{document['_id']}: {e}")
            raise StoreError(f"Could not save document in {collection}") from e

        return document

    async def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        deleted = 0
        for document in await self._scan(collection, filter):
            path = self._document_path(collection, str(document["_id"]))
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Error deleting document {collection}/{document['_id']}: {e}")
                raise StoreError(f"Could not delete document in {collection}") from e
            deleted += 1
        return deleted

    async def ping(self) -> bool:
        return self.base_dir.exists()
