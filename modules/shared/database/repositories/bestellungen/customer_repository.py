"""Customer Repository"""

from typing import Any, Dict, Optional

from config.settings import COLLECTION_CUSTOMERS
from ..base import BaseRepository
from ...document_store import Document


class CustomerRepository(BaseRepository):

    collection = COLLECTION_CUSTOMERS

    async def get(self, customer_id: str) -> Optional[Document]:
        return await self._get(customer_id)

    async def find_by_email(self, email: str) -> Optional[Document]:
        docs = await self._query([('email', '==', email)], limit=1)
        return docs[0] if docs else None

    async def upsert_by_email(self, data: Dict[str, Any]) -> str:
        """Kunde anhand E-Mail suchen, sonst anlegen. Gibt die Kunden-ID zurück."""
        existing = await self.find_by_email(data['email'])
        if existing:
            await self._update(existing.id, data)
            return existing.id
        return await self._add(data)
