"""
Order Service - Bestellannahme und Bestellverwaltung

Public: submit_order (Verfügbarkeit → Preis → Kunde → Bestellung → Admin-Mail)
Admin: Status/Preis ändern, löschen, Liste, Kundenhistorie, Dashboard-Zahlen
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from modules.shared.database.document_store import Document, to_jsonable
from modules.shared.database.repositories.bestellungen.customer_repository import CustomerRepository
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import Clock, system_clock
from modules.shared.errors import StoreUnavailableError
from modules.shared.logging import bestellungen_logger
from ..models import OrderStatus, normalize_created, normalize_desired_date, normalize_status
from ..pricing import calculate_price
from ..schemas import (
    DashboardStats,
    OrderSubmission,
    OrderSubmissionResult,
    StatusUpdateResult,
)
from .availability_service import OrderAvailabilityEngine
from .notification_service import NotificationService

STATUS_PRIORITY = {
    OrderStatus.NEU: 0,
    OrderStatus.ANGENOMMEN: 1,
    OrderStatus.IN_VORBEREITUNG: 1,
    OrderStatus.FERTIG: 2,
}
DEFAULT_PRIORITY = 3

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SAVE_FAILED_MESSAGE = "Die Bestellung konnte gerade nicht gespeichert werden. Bitte versuche es später erneut."


def _created_key(doc: Document) -> datetime:
    return normalize_created(doc.data.get('created')) or EPOCH


class OrderService:

    def __init__(self, order_repo: OrderRepository, customer_repo: CustomerRepository,
                 availability: OrderAvailabilityEngine, notifications: NotificationService,
                 clock: Optional[Clock] = None):
        self.order_repo = order_repo
        self.customer_repo = customer_repo
        self.availability = availability
        self.notifications = notifications
        self.clock = clock or system_clock

    # ═══════════════════════════════════════════════════════════════
    # PUBLIC: BESTELLUNG AUFGEBEN
    # ═══════════════════════════════════════════════════════════════

    async def submit_order(self, submission: OrderSubmission) -> OrderSubmissionResult:
        """
        Neue Bestellung annehmen

        Returns:
            OrderSubmissionResult - success=False mit availability-Begründung,
            wenn das Datum nicht angenommen werden kann (nichts wird gespeichert)
        """
        availability = await self.availability.evaluate(submission.wunsch_datum)
        if not availability.accepted:
            bestellungen_logger.info(
                f"→ Bestellung abgewiesen ({availability.status.value}): {availability.reason}"
            )
            return OrderSubmissionResult(success=False, availability=availability,
                                         error=availability.reason)

        price = calculate_price(submission.durchmesser_cm, submission.extras,
                                submission.stockwerke, submission.lieferung)
        now = self.clock().isoformat()

        customer = {
            'name': submission.name,
            'email': submission.email,
            'telefon': submission.telefon,
            'adresse': submission.adresse,
            'updated': now,
        }

        order = {
            'name': submission.name,
            'email': submission.email,
            'telefon': submission.telefon,
            'adresse': submission.adresse,
            'details': {
                'durchmesserCm': submission.durchmesser_cm,
                'kategorie': price['kategorie'].value,
                'extras': list(submission.extras),
                'stockwerke': submission.stockwerke,
                'lieferung': submission.lieferung,
            },
            'wunschtermin': {
                'datum': availability.date,
                'uhrzeit': submission.uhrzeit,
            },
            'gesamtpreis': float(price['gesamtpreis']),
            'anlass': submission.anlass,
            'sonderwunsch': submission.sonderwunsch,
            'status': OrderStatus.NEU.value,
            'created': now,
        }

        try:
            customer_id = await self.customer_repo.upsert_by_email(customer)
            order['customerId'] = customer_id
            order_id = await self.order_repo.add(order)
        except StoreUnavailableError as e:
            bestellungen_logger.error(f"✗ Bestellung nicht gespeichert: {e}")
            return OrderSubmissionResult(success=False, availability=availability, error=SAVE_FAILED_MESSAGE)

        bestellungen_logger.info(
            f"✓ Bestellung {order_id} gespeichert ({availability.date}, {price['gesamtpreis']} €)"
        )

        mail = await self.notifications.send_new_order_notification(order_id, order)
        return OrderSubmissionResult(
            success=True,
            order_id=order_id,
            customer_id=customer_id,
            gesamtpreis=float(price['gesamtpreis']),
            availability=availability,
            notification_sent=mail.success,
            notification_error=mail.error,
        )

    # ═══════════════════════════════════════════════════════════════
    # ADMIN
    # ═══════════════════════════════════════════════════════════════

    @staticmethod
    def _not_found(order_id: str) -> StatusUpdateResult:
        return StatusUpdateResult(success=False, order_id=order_id,
                                  error=f"Bestellung {order_id} nicht gefunden")

    async def update_status(self, order_id: str, raw_status: str, notify: bool = True) -> StatusUpdateResult:
        """Status setzen (normalisiert) und optional Kunden-E-Mail senden"""
        doc = await self.order_repo.get(order_id)
        if doc is None:
            return self._not_found(order_id)

        status = normalize_status(raw_status)
        updated = await self.order_repo.update_fields(order_id, {
            'status': status.value,
            'updated': self.clock().isoformat(),
        })
        if not updated:
            # Zwischen Lesen und Schreiben gelöscht oder archiviert
            return self._not_found(order_id)
        bestellungen_logger.info(f"✓ Status {order_id}: {doc.data.get('status')} → {status.value}")

        result = StatusUpdateResult(success=True, order_id=order_id, status=status.value)
        if notify:
            mail = await self.notifications.send_status_email(order_id, doc.data, status)
            if mail is not None:
                result.email_sent = mail.success
                result.email_error = mail.error
        return result

    async def update_price(self, order_id: str, price: float) -> bool:
        if price < 0:
            raise ValueError("Preis darf nicht negativ sein")
        amount = float(Decimal(str(price)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))
        updated = await self.order_repo.update_fields(order_id, {
            'gesamtpreis': amount,
            'updated': self.clock().isoformat(),
        })
        if updated:
            bestellungen_logger.info(f"✓ Preis {order_id}: {amount:.2f} €")
        return updated

    async def delete_order(self, order_id: str) -> bool:
        deleted = await self.order_repo.delete(order_id)
        if deleted:
            bestellungen_logger.info(f"✓ Bestellung {order_id} gelöscht")
        return deleted

    @staticmethod
    def _sort_orders(docs: List[Document]) -> List[Document]:
        """Status-Priorität, dann Wunschtermin aufsteigend, dann neueste zuerst"""
        by_created = sorted(docs, key=_created_key, reverse=True)
        return sorted(by_created, key=lambda d: (
            STATUS_PRIORITY.get(normalize_status(d.data.get('status')), DEFAULT_PRIORITY),
            normalize_desired_date(d.data) or '9999-12-31',
        ))

    @staticmethod
    def _to_view(doc: Document) -> Dict:
        view = to_jsonable({'id': doc.id, **doc.data})
        view['status'] = normalize_status(doc.data.get('status')).value
        view['wunschDatum'] = normalize_desired_date(doc.data)
        return view

    async def list_active_orders(self) -> List[Dict]:
        docs = await self.order_repo.find_all()
        return [self._to_view(doc) for doc in self._sort_orders(docs)]

    async def customer_order_history(self, email: str) -> List[Dict]:
        docs = await self.order_repo.find_by_email(email)
        docs.sort(key=_created_key, reverse=True)
        return [self._to_view(doc) for doc in docs]

    async def dashboard_stats(self) -> DashboardStats:
        docs = await self.order_repo.find_all()
        today = self.clock().date()

        counts = {OrderStatus.NEU: 0, OrderStatus.IN_VORBEREITUNG: 0, OrderStatus.FERTIG: 0}
        created_today = 0
        for doc in docs:
            status = normalize_status(doc.data.get('status'))
            if status in counts:
                counts[status] += 1
            created = normalize_created(doc.data.get('created'))
            if created is not None and created.date() == today:
                created_today += 1

        return DashboardStats(
            today=created_today,
            new=counts[OrderStatus.NEU],
            in_preparation=counts[OrderStatus.IN_VORBEREITUNG],
            finished=counts[OrderStatus.FERTIG],
            total_active=len(docs),
        )
