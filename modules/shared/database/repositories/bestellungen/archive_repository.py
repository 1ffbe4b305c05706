"""Archive Repository - atomares Verschieben aktiv → archiviert"""

from typing import Any, Dict, List

from config.settings import COLLECTION_ARCHIVED, COLLECTION_ORDERS
from ..base import BaseRepository
from ...document_store import BatchOperation, Document


class ArchiveRepository(BaseRepository):

    collection = COLLECTION_ARCHIVED

    def __init__(self, store, collection: str = None, active_collection: str = COLLECTION_ORDERS):
        super().__init__(store, collection)
        self.active_collection = active_collection

    async def move_to_archive(self, entries: List[Dict[str, Any]]) -> None:
        """
        Kopiert jede Bestellung ins Archiv und löscht sie aus der aktiven Collection,
        alles in einem einzigen Batch.

        Args:
            entries: Liste von {'id': order_id, 'data': archivierte Daten}
        """
        operations: List[BatchOperation] = []
        for entry in entries:
            operations.append(BatchOperation('set', self.collection, entry['id'], entry['data']))
            operations.append(BatchOperation('delete', self.active_collection, entry['id']))
        await self._batch(operations)

    async def find_all(self) -> List[Document]:
        return await self._query()
