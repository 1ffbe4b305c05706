"""
Database Module Initialization
Exportiert Dokumentenspeicher und DB-Funktionen für einfacheren Zugriff.
"""
from .connection import (
    get_engine,
    close_all_engines,
)
from .document_store import DocumentStore, StoreTimestamp
from .memory_store import InMemoryDocumentStore
from .sql_store import SqlDocumentStore

__all__ = [
    "get_engine",
    "close_all_engines",
    "DocumentStore",
    "StoreTimestamp",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
]
