"""Expense Repository - Ausgaben (und manuell erfasster Umsatz)"""

import uuid
from typing import Any, Dict, List, Optional

from config.settings import COLLECTION_EXPENSES
from ..base import BaseRepository
from ...document_store import BatchOperation, Document


class ExpenseRepository(BaseRepository):

    collection = COLLECTION_EXPENSES

    async def get(self, expense_id: str) -> Optional[Document]:
        return await self._get(expense_id)

    async def add(self, data: Dict[str, Any]) -> str:
        return await self._add(data)

    async def delete(self, expense_id: str) -> bool:
        return await self._delete(expense_id)

    async def find_all(self) -> List[Document]:
        return await self._query(order_by='date', descending=True)

    async def find_by_date_range(self, start_day: str, end_day: str) -> List[Document]:
        """Einträge mit date in [start_day, end_day] (YYYY-MM-DD, lexikalisch sortierbar)"""
        return await self._query([('date', '>=', start_day), ('date', '<=', end_day)],
                                 order_by='date', descending=True)

    async def replace_with_group(self, expense_ids: List[str], data: Dict[str, Any]) -> str:
        """Mehrere Einträge atomar durch einen Sammeleintrag ersetzen. Gibt die neue ID zurück."""
        group_id = f"group_{uuid.uuid4().hex[:16]}"
        operations = [BatchOperation('set', self.collection, group_id, data)]
        operations.extend(BatchOperation('delete', self.collection, expense_id) for expense_id in expense_ids)
        await self._batch(operations)
        return group_id
