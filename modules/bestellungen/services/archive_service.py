"""
Archive Service - Bestellungen atomar ins Archiv verschieben

Kopieren nach archived_orders und Löschen aus orders passieren immer
im selben Batch. Schlägt der Batch fehl, bleibt alles unverändert und
PartialArchiveFailure wird geworfen (Aufrufer kann erneut versuchen).
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from config.settings import AUTO_ARCHIVE_AFTER_DAYS
from modules.shared import log_service
from modules.shared.database.document_store import Document, to_jsonable
from modules.shared.database.repositories.bestellungen.archive_repository import ArchiveRepository
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import Clock, month_name, system_clock
from modules.shared.errors import PartialArchiveFailure, StoreUnavailableError
from modules.shared.logging import bestellungen_logger
from ..models import OrderStatus, normalize_created, normalize_status
from ..schemas import ArchiveMonth, ArchiveResult


class ArchiveService:

    def __init__(self, order_repo: OrderRepository, archive_repo: ArchiveRepository,
                 clock: Optional[Clock] = None, auto_archive_after_days: int = AUTO_ARCHIVE_AFTER_DAYS):
        if auto_archive_after_days < 0:
            raise ValueError("auto_archive_after_days darf nicht negativ sein")
        self.order_repo = order_repo
        self.archive_repo = archive_repo
        self.clock = clock or system_clock
        self.auto_archive_after_days = auto_archive_after_days

    def _archive_entry(self, doc: Document, flag: str) -> Dict[str, Any]:
        data = dict(doc.data)
        data.update({
            'archivedAt': self.clock().isoformat(),
            'originalOrderId': doc.id,
            flag: True,
        })
        return {'id': doc.id, 'data': data}

    async def _move(self, docs: List[Document], flag: str) -> ArchiveResult:
        if not docs:
            return ArchiveResult(success=True, archived=0)

        order_ids = [doc.id for doc in docs]
        try:
            await self.archive_repo.move_to_archive([self._archive_entry(doc, flag) for doc in docs])
        except StoreUnavailableError as e:
            bestellungen_logger.error(f"✗ Archiv-Batch fehlgeschlagen ({len(order_ids)} Bestellungen): {e}")
            raise PartialArchiveFailure(order_ids, cause=e) from e

        bestellungen_logger.info(f"✓ {len(order_ids)} Bestellung(en) archiviert ({flag})")
        return ArchiveResult(success=True, archived=len(order_ids), order_ids=order_ids)

    async def archive_order(self, order_id: str) -> ArchiveResult:
        """Einzelne Bestellung manuell archivieren"""
        doc = await self.order_repo.get(order_id)
        if doc is None:
            return ArchiveResult(success=False, error=f"Bestellung {order_id} nicht gefunden")
        return await self._move([doc], 'manualArchived')

    async def archive_all_finished(self) -> ArchiveResult:
        """Alle fertigen Bestellungen archivieren (unabhängig vom Alter)"""
        docs = await self.order_repo.find_all()
        finished = [doc for doc in docs if normalize_status(doc.data.get('status')) == OrderStatus.FERTIG]
        return await self._move(finished, 'manualArchived')

    async def auto_archive_old_orders(self, job_id: Optional[str] = None) -> ArchiveResult:
        """
        Fertige Bestellungen älter als N Tage (nach created) archivieren.

        Idempotent: bereits verschobene Bestellungen sind nicht mehr in orders.
        """
        cutoff = self.clock() - timedelta(days=self.auto_archive_after_days)
        docs = await self.order_repo.find_by_status(OrderStatus.FERTIG.value)

        old_orders = []
        for doc in docs:
            created = normalize_created(doc.data.get('created'))
            if created is not None and created < cutoff:
                old_orders.append(doc)

        log_service.log(job_id, "auto_archive", "INFO",
                        f"→ {len(old_orders)} fertige Bestellung(en) älter als "
                        f"{self.auto_archive_after_days} Tage")
        result = await self._move(old_orders, 'autoArchived')
        if result.archived:
            log_service.log(job_id, "auto_archive", "INFO", f"✓ {result.archived} automatisch archiviert")
        return result

    async def list_archives(self) -> List[ArchiveMonth]:
        """Archivierte Bestellungen nach Monat (archivedAt) gruppiert, neueste zuerst"""
        docs = await self.archive_repo.find_all()

        groups: Dict[str, ArchiveMonth] = {}
        for doc in docs:
            archived_at = normalize_created(doc.data.get('archivedAt'))
            if archived_at is None:
                key, label = 'unbekannt', 'Unbekannt'
            else:
                key = f"{archived_at.year}-{archived_at.month:02d}"
                label = f"{month_name(archived_at.month)} {archived_at.year}"

            if key not in groups:
                groups[key] = ArchiveMonth(month_key=key, label=label)
            groups[key].orders.append(to_jsonable({"id": doc.id, **doc.data}))

        ordered = sorted(groups, key=lambda k: (k != "unbekannt", k), reverse=True)
        return [groups[key] for key in ordered]
