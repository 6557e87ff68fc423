"""Storage module - document store interface and implementations."""

from .interface import DocumentStore
from .local_storage import LocalDocumentStore
from .mongo_storage import MongoDocumentStore
from .factory import create_document_store

__all__ = ['DocumentStore', 'LocalDocumentStore', 'MongoDocumentStore', 'create_document_store']
