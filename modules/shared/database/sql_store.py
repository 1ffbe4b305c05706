"""
SQL Document Store - JSON-Dokumente in einer SQLAlchemy-Tabelle

Tabelle `documents` (collection, doc_id, data). Filter werden nach dem Laden
einer Collection mit derselben Semantik wie im InMemoryDocumentStore angewendet.
Batches laufen in genau einer Transaktion (engine.begin()).
"""

import asyncio
import json
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import Column, MetaData, String, Table, Text, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreUnavailableError
from ..logging import app_logger
from .connection import get_engine
from .document_store import (
    BatchOperation,
    Document,
    DocumentStore,
    StoreTimestamp,
    apply_query,
    normalize_filters,
    validate_batch,
)

TIMESTAMP_KEY = '__timestamp__'

metadata = MetaData()

documents_table = Table(
    'documents',
    metadata,
    Column('collection', String(100), primary_key=True),
    Column('doc_id', String(64), primary_key=True),
    Column('data', Text, nullable=False),
)


def _encode(value: Any):
    if isinstance(value, StoreTimestamp):
        return {TIMESTAMP_KEY: value.isoformat()}
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Nicht serialisierbar: {type(value).__name__}")


def _decode(obj: Dict[str, Any]):
    if len(obj) == 1 and TIMESTAMP_KEY in obj:
        return StoreTimestamp.from_isoformat(obj[TIMESTAMP_KEY])
    return obj


def dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, default=_encode, ensure_ascii=False)


def loads(raw: str) -> Dict[str, Any]:
    return json.loads(raw, object_hook=_decode)


class SqlDocumentStore(DocumentStore):
    """Dokumentenspeicher auf Basis einer SQL-Datenbank (SQLite, SQL Server, ...)"""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()
        self._table_ready = False

    def ensure_table_exists(self):
        if not self._table_ready:
            metadata.create_all(self.engine, checkfirst=True)
            self._table_ready = True

    async def _async_wrapper(self, sync_func, *args, **kwargs):
        """Wrapper für synchrone SQLAlchemy-Aufrufe (Thread-Pool)"""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, lambda: sync_func(*args, **kwargs))
        except SQLAlchemyError as e:
            app_logger.error(f"✗ Datenbankfehler: {e}", exc_info=True)
            raise StoreUnavailableError("Datenbank nicht erreichbar", cause=e) from e

    # ═══════════════════════════════════════════════════════════════
    # SYNC HELPER
    # ═══════════════════════════════════════════════════════════════

    def _load_collection(self, collection: str) -> List[Document]:
        self.ensure_table_exists()
        stmt = select(documents_table.c.doc_id, documents_table.c.data).where(
            documents_table.c.collection == collection
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [Document(row._mapping['doc_id'], loads(row._mapping['data'])) for row in rows]

    def _get_sync(self, collection: str, doc_id: str) -> Optional[Document]:
        self.ensure_table_exists()
        stmt = select(documents_table.c.data).where(
            documents_table.c.collection == collection,
            documents_table.c.doc_id == doc_id,
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None
        return Document(doc_id, loads(row._mapping['data']))

    @staticmethod
    def _upsert(conn: Connection, collection: str, doc_id: str, data: Dict[str, Any]):
        conn.execute(delete(documents_table).where(
            documents_table.c.collection == collection,
            documents_table.c.doc_id == doc_id,
        ))
        conn.execute(insert(documents_table).values(
            collection=collection, doc_id=doc_id, data=dumps(data)
        ))

    @staticmethod
    def _delete(conn: Connection, collection: str, doc_id: str) -> int:
        result = conn.execute(delete(documents_table).where(
            documents_table.c.collection == collection,
            documents_table.c.doc_id == doc_id,
        ))
        return result.rowcount

    def _set_sync(self, collection: str, doc_id: str, data: Dict[str, Any]):
        self.ensure_table_exists()
        with self.engine.begin() as conn:
            self._upsert(conn, collection, doc_id, data)

    def _update_sync(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        self.ensure_table_exists()
        with self.engine.begin() as conn:
            row = conn.execute(select(documents_table.c.data).where(
                documents_table.c.collection == collection,
                documents_table.c.doc_id == doc_id,
            )).first()
            if row is None:
                return False
            data = loads(row._mapping['data'])
            data.update(fields)
            conn.execute(update(documents_table).where(
                documents_table.c.collection == collection,
                documents_table.c.doc_id == doc_id,
            ).values(data=dumps(data)))
        return True

    def _delete_sync(self, collection: str, doc_id: str) -> bool:
        self.ensure_table_exists()
        with self.engine.begin() as conn:
            return self._delete(conn, collection, doc_id) > 0

    def _batch_sync(self, operations: List[BatchOperation]):
        self.ensure_table_exists()
        with self.engine.begin() as conn:
            for op in operations:
                if op.type == 'set':
                    self._upsert(conn, op.collection, op.id, op.data)
                else:
                    self._delete(conn, op.collection, op.id)

    # ═══════════════════════════════════════════════════════════════
    # DOCUMENT STORE API
    # ═══════════════════════════════════════════════════════════════

    async def query(self, collection: str, filters: Optional[Iterable[Sequence[Any]]] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Document]:
        parsed = normalize_filters(filters)
        docs = await self._async_wrapper(self._load_collection, collection)
        return apply_query(docs, parsed, order_by, descending, limit)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await self._async_wrapper(self._get_sync, collection, doc_id)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self._async_wrapper(self._set_sync, collection, doc_id, data)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._async_wrapper(self._set_sync, collection, doc_id, data)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        return await self._async_wrapper(self._update_sync, collection, doc_id, fields)

    async def delete(self, collection: str, doc_id: str) -> bool:
        return await self._async_wrapper(self._delete_sync, collection, doc_id)

    async def batch_write(self, operations: List[BatchOperation]) -> None:
        validate_batch(operations)
        await self._async_wrapper(self._batch_sync, operations)
