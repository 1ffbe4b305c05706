"""Review Repository"""

from typing import Any, Dict, List

from config.settings import COLLECTION_REVIEWS
from ..base import BaseRepository
from ...document_store import Document


class ReviewRepository(BaseRepository):

    collection = COLLECTION_REVIEWS

    async def add(self, data: Dict[str, Any]) -> str:
        return await self._add(data)

    async def find_latest(self, limit: int = 12) -> List[Document]:
        return await self._query(order_by='created', descending=True, limit=limit)
