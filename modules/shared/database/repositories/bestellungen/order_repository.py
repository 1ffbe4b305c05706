"""Order Repository - Zugriff auf die aktive Bestellungs-Collection"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from config.settings import COLLECTION_ORDERS
from ..base import BaseRepository
from ...document_store import Document, StoreTimestamp

# Historische Ablageorte des Wunschtermins
FIELD_WUNSCHDATUM = 'wunschDatum'
FIELD_WUNSCHTERMIN_DATUM = 'wunschtermin.datum'
FIELD_CREATED = 'created'
FIELD_ADMIN_NOTIFIED = 'adminNotifiedAt'

STRING_RANGE_END = '\uf8ff'


class OrderRepository(BaseRepository):
    """Data Access Layer - nur Speicherzugriffe, keine Fachlogik"""

    collection = COLLECTION_ORDERS

    async def get(self, order_id: str) -> Optional[Document]:
        return await self._get(order_id)

    async def add(self, data: Dict[str, Any]) -> str:
        return await self._add(data)

    async def update_fields(self, order_id: str, fields: Dict[str, Any]) -> bool:
        return await self._update(order_id, fields)

    async def delete(self, order_id: str) -> bool:
        return await self._delete(order_id)

    async def find_all(self, limit: Optional[int] = None) -> List[Document]:
        return await self._query(limit=limit)

    async def find_by_status(self, status: str) -> List[Document]:
        return await self._query([('status', '==', status)])

    async def find_without_admin_notification(self, status: str) -> List[Document]:
        """Bestellungen im Status, für die noch keine Admin-Mail verschickt wurde"""
        docs = await self.find_by_status(status)
        return [doc for doc in docs if not doc.data.get(FIELD_ADMIN_NOTIFIED)]

    async def mark_admin_notified(self, order_id: str, timestamp: str) -> bool:
        return await self._update(order_id, {FIELD_ADMIN_NOTIFIED: timestamp})

    async def find_by_email(self, email: str) -> List[Document]:
        return await self._query([('email', '==', email)])

    async def find_by_customer_id(self, customer_id: str) -> List[Document]:
        return await self._query([('customerId', '==', customer_id)])

    async def find_by_desired_date_range(self, start_day: str, end_day: str,
                                         start_ts: datetime, end_ts: datetime) -> List[Document]:
        """
        Alle Bestellungen, deren Wunschtermin in [start_day, end_day] liegt.

        Drei Abfragen (String-Feld, verschachtelter String, verschachtelter Timestamp),
        parallel ausgeführt und nach ID dedupliziert.
        """
        ts_start, ts_end = StoreTimestamp(start_ts), StoreTimestamp(end_ts)
        # ISO-Strings mit Uhrzeit ('2024-07-31T10:00') sortieren hinter '2024-07-31'
        end_text = end_day + STRING_RANGE_END
        results = await asyncio.gather(
            self._query([(FIELD_WUNSCHDATUM, '>=', start_day), (FIELD_WUNSCHDATUM, '<=', end_text)]),
            self._query([(FIELD_WUNSCHTERMIN_DATUM, '>=', start_day), (FIELD_WUNSCHTERMIN_DATUM, '<=', end_text)]),
            self._query([(FIELD_WUNSCHTERMIN_DATUM, '>=', ts_start), (FIELD_WUNSCHTERMIN_DATUM, '<=', ts_end)]),
        )
        return self._merge_unique(*results)

    async def find_by_created_range(self, start: datetime, end_exclusive: datetime) -> List[Document]:
        """
        Kandidaten für created in [start, end_exclusive).

        created ist ein ISO-String (lexikalisch sortierbar); ältere Datensätze
        tragen einen Speicher-Timestamp, beide Formen werden abgefragt.
        """
        # Ein Tag Puffer je Seite: created-Strings können in UTC oder lokal gespeichert sein.
        # Die exakte Eingrenzung macht der Aufrufer über normalize_created.
        start_text = (start - timedelta(days=1)).date().isoformat()
        end_text = (end_exclusive + timedelta(days=1)).date().isoformat()
        results = await asyncio.gather(
            self._query([(FIELD_CREATED, '>=', start_text), (FIELD_CREATED, '<', end_text)]),
            self._query([
                (FIELD_CREATED, '>=', StoreTimestamp(start)),
                (FIELD_CREATED, '<', StoreTimestamp(end_exclusive)),
            ]),
        )
        return self._merge_unique(*results)
