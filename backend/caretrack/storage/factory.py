"""
Document Store Factory - Creates the configured persistence backend.
"""

from typing import Any

from .interface import DocumentStore
from .local_storage import LocalDocumentStore
from .mongo_storage import MongoDocumentStore


def create_document_store(config: Any) -> DocumentStore:
    """
    Create a document store from settings.

    Args:
        config: Settings object with storage_type and backend options

    Returns:
        DocumentStore instance
    """
    if config.storage_type == "local":
        return LocalDocumentStore(config.local_storage_path)

    elif config.storage_type == "mongo":
        return MongoDocumentStore(
            url=config.mongo_url,
            database=config.mongo_database,
            server_selection_timeout_ms=config.mongo_server_selection_timeout_ms,
        )

    else:
        raise ValueError(f"Unsupported storage type: {config.storage_type}")
