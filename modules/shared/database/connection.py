"""
Database Connection Manager - SQLAlchemy Engine (echtes Pooling).

Standard: DATABASE_URL (SQLite unter data/), alternativ SQL Server via pyodbc,
sobald SQL_SERVER in der .env gesetzt ist.
"""

import platform
from typing import Dict, Optional
from urllib.parse import quote_plus

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from config.settings import (
    DATABASE_URL,
    DATA_DIR,
    SQL_SERVER,
    SQL_USERNAME,
    SQL_PASSWORD,
    SQL_DATABASE,
)

# Engine Cache pro URL
_engines: Dict[str, Engine] = {}


def _parse_server():
    """Split host/port from SQL_SERVER setting."""
    parts = SQL_SERVER.replace(':', ',').split(',')
    host = parts[0]
    port = parts[1] if len(parts) > 1 else '1433'
    return host, port


def _build_mssql_url(database: str) -> str:
    """Build SQLAlchemy URL for pyodbc with driver differences (Linux vs Windows)."""
    host, port = _parse_server()
    driver = 'ODBC Driver 18 for SQL Server' if platform.system() == 'Linux' else 'SQL Server'

    driver_enc = quote_plus(driver)
    trust_param = 'TrustServerCertificate=yes'
    base = f"mssql+pyodbc://{quote_plus(SQL_USERNAME or '')}:{quote_plus(SQL_PASSWORD or '')}@{host}:{port}/{database}"
    return f"{base}?driver={driver_enc}&{trust_param}"


def build_connection_url() -> str:
    """DATABASE_URL > SQL Server > lokale SQLite-Datei"""
    if DATABASE_URL:
        return DATABASE_URL
    if SQL_SERVER:
        return _build_mssql_url(SQL_DATABASE)
    return f"sqlite:///{DATA_DIR / 'backstube.db'}"


def _create_engine(url: str) -> Engine:
    if url.startswith('sqlite'):
        # Store-Aufrufe laufen im Thread-Pool
        return create_engine(url, connect_args={"check_same_thread": False}, future=True)

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        future=True,
    )


def get_engine(url: Optional[str] = None) -> Engine:
    """Get or create a pooled SQLAlchemy Engine for the given URL."""
    url = url or build_connection_url()
    if url not in _engines:
        _engines[url] = _create_engine(url)
    return _engines[url]


def close_all_engines():
    """Dispose all engines and close pooled connections (e.g., on shutdown)."""
    global _engines
    for engine in _engines.values():
        engine.dispose()
    _engines = {}
