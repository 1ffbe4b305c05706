"""
Shared Module - Zentrale Infrastruktur für alle Module

Dieses Modul bietet gemeinsame Funktionen für Dokumentenspeicher, Logging und Fehler.
Alle Module importieren von hier, nicht direkt von den Untermodulen.

Verwendung in neuen Modulen:
    from modules.shared import BaseRepository, log_service, StoreUnavailableError
    from config.settings import DAILY_LIMIT
"""

# Database (lokale Imports aus modules/shared/database/)
from .database import (
    DocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
    StoreTimestamp,
    get_engine,
    close_all_engines,
)
from .database.repositories.base import BaseRepository

# Logging (lokale Imports aus modules/shared/logging/)
from .logging import create_module_logger, log_service, app_logger

# Fehler
from .errors import (
    BackstubeError,
    ValidationError,
    StoreUnavailableError,
    AmbiguousDateShapeError,
    PartialArchiveFailure,
)

# Public API
__all__ = [
    # Database
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "StoreTimestamp",
    "get_engine",
    "close_all_engines",
    "BaseRepository",

    # Logging
    "create_module_logger",
    "log_service",
    "app_logger",

    # Fehler
    "BackstubeError",
    "ValidationError",
    "StoreUnavailableError",
    "AmbiguousDateShapeError",
    "PartialArchiveFailure",
]

# Version
__version__ = "1.0.0"
