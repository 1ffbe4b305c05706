"""
Basis-Klasse für alle Repositories (DRY Prinzip)
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from ...errors import StoreUnavailableError
from ...logging import app_logger
from ..document_store import BatchOperation, Document, DocumentStore


class BaseRepository:
    """
    Basisklasse für Repositories über einer Collection.
    Stellt Helper-Methoden für Queries und Schreibzugriffe bereit.
    Speicherfehler werden geloggt und als StoreUnavailableError weitergereicht.
    """

    collection: str = None

    def __init__(self, store: DocumentStore, collection: Optional[str] = None):
        self.store = store
        if collection:
            self.collection = collection
        if not self.collection:
            raise ValueError(f"{type(self).__name__}: keine Collection konfiguriert")

    def _log_failure(self, action: str, error: StoreUnavailableError):
        app_logger.error(f"✗ {action} auf '{self.collection}' fehlgeschlagen: {error}")

    async def _query(self, filters: Optional[Iterable[Sequence[Any]]] = None,
                     order_by: Optional[str] = None, descending: bool = False,
                     limit: Optional[int] = None) -> List[Document]:
        """Helper für Abfragen (Multi Document)"""
        try:
            return await self.store.query(self.collection, filters, order_by, descending, limit)
        except StoreUnavailableError as e:
            self._log_failure("Abfrage", e)
            raise

    async def _get(self, doc_id: str) -> Optional[Document]:
        """Helper für Single Document"""
        try:
            return await self.store.get(self.collection, doc_id)
        except StoreUnavailableError as e:
            self._log_failure("Lesen", e)
            raise

    async def _add(self, data: Dict[str, Any]) -> str:
        try:
            return await self.store.add(self.collection, data)
        except StoreUnavailableError as e:
            self._log_failure("Anlegen", e)
            raise

    async def _update(self, doc_id: str, fields: Dict[str, Any]) -> bool:
        try:
            return await self.store.update(self.collection, doc_id, fields)
        except StoreUnavailableError as e:
            self._log_failure("Update", e)
            raise

    async def _delete(self, doc_id: str) -> bool:
        try:
            return await self.store.delete(self.collection, doc_id)
        except StoreUnavailableError as e:
            self._log_failure("Löschen", e)
            raise

    async def _batch(self, operations: List[BatchOperation]) -> None:
        try:
            await self.store.batch_write(operations)
        except StoreUnavailableError as e:
            self._log_failure("Batch", e)
            raise

    @staticmethod
    def _merge_unique(*result_sets: List[Document]) -> List[Document]:
        """Ergebnismengen zusammenführen, Duplikate (gleiche ID) nur einmal"""
        merged: Dict[str, Document] = {}
        for docs in result_sets:
            for doc in docs:
                merged.setdefault(doc.id, doc)
        return list(merged.values())
