"""In-Memory Document Store - für Tests und lokale Entwicklung"""

import copy
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .document_store import (
    BatchOperation,
    Document,
    DocumentStore,
    apply_query,
    normalize_filters,
    validate_batch,
)


class InMemoryDocumentStore(DocumentStore):
    """Hält alle Collections als Dicts; Dokumente werden beim Lesen/Schreiben kopiert"""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = copy.deepcopy(initial or {})

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def query(self, collection: str, filters: Optional[Iterable[Sequence[Any]]] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Document]:
        docs = [
            Document(doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]
        return apply_query(docs, normalize_filters(filters), order_by, descending, limit)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return Document(doc_id, copy.deepcopy(data))

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._collection(collection)[doc_id] = copy.deepcopy(data)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        existing = self._collection(collection).get(doc_id)
        if existing is None:
            return False
        existing.update(copy.deepcopy(fields))
        return True

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(doc_id, None) is not None

    async def batch_write(self, operations: List[BatchOperation]) -> None:
        validate_batch(operations)

        # Auf Kopie anwenden, dann austauschen
        staged = copy.deepcopy(self._collections)
        for op in operations:
            target = staged.setdefault(op.collection, {})
            if op.type == 'set':
                target[op.id] = copy.deepcopy(op.data)
            else:
                target.pop(op.id, None)
        self._collections = staged

    def dump(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Rohdaten einer Collection (Tests/Debugging)"""
        return copy.deepcopy(self._collection(collection))
