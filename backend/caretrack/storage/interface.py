"""
Document Store Interface - Abstract base class for all persistence backends.
This interface enables switching between the local JSON store and MongoDB.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple

Document = Dict[str, Any]
SortSpec = List[Tuple[str, int]]


def matches(document: Document, filter: Dict[str, Any]) -> bool:
    """
    Top-level equality match used by stores without a native query engine.
    A None filter value matches a missing or null field.
    """
    for key, expected in filter.items():
        if document.get(key) != expected:
            return False
    return True


class DocumentStore(ABC):
    """
    Abstract document store with find/save/delete-by-filter semantics.
    Documents are plain JSON-compatible dicts keyed by a string "_id".
    """

    @abstractmethod
    async def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Document]:
        """
        Return the first document matching the filter.

        Args:
            collection: Collection name (e.g., "tracking")
            filter: Top-level equality filter

        Returns:
            Optional[Document]: Matching document, or None
        """
        pass

    @abstractmethod
    async def find_many(
        self,
        collection: str,
        filter: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Document]:
        """
        Return all documents matching the filter.

        Args:
            collection: Collection name
            filter: Top-level equality filter
            sort: Optional list of (field, direction) pairs; direction is 1 or -1
            skip: Number of matching documents to skip
            limit: Maximum number of documents to return

        Returns:
            List[Document]: Matching documents
        """
        pass

    @abstractmethod
    async def count(self, collection: str, filter: Dict[str, Any]) -> int:
        """Count documents matching the filter."""
        pass

    @abstractmethod
    async def save(self, collection: str, document: Document) -> Document:
        """
        Insert or replace a document by its "_id".

        A new "_id" is assigned when the document has none.

        Returns:
            Document: The stored document, including its "_id"
        """
        pass

    @abstractmethod
    async def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        """
        Delete every document matching the filter.

        Returns:
            int: Number of deleted documents
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
