"""
Notification Service - E-Mails an Admin und Kunden

Fehler beim Versand werden als EmailResult zurückgegeben, nie geworfen.
Versendete Admin-Mails werden an der Bestellung vermerkt (adminNotifiedAt),
damit ein Neustart keine zweite Mail auslöst.
"""

from typing import Any, Dict, Optional, Set

from config.settings import EMAILJS_SERVICE_ID, EMAILJS_TEMPLATE_NEW_ORDER, EMAILJS_TEMPLATE_ORDER_STATUS
from modules.shared import log_service
from modules.shared.connectors.base_connector import BaseEmailConnector, EmailResult
from modules.shared.database.repositories.bestellungen.order_repository import (
    FIELD_ADMIN_NOTIFIED,
    OrderRepository,
)
from modules.shared.dates import Clock, system_clock
from modules.shared.errors import StoreUnavailableError
from modules.shared.logging import bestellungen_logger
from ..email_templates import new_order_params, status_params
from ..models import OrderStatus, normalize_status


class NotificationService:
    """Versendet Benachrichtigungen über den injizierten E-Mail Connector"""

    def __init__(self, email_client: BaseEmailConnector, order_repo: OrderRepository,
                 clock: Optional[Clock] = None, service_id: str = EMAILJS_SERVICE_ID,
                 new_order_template: str = EMAILJS_TEMPLATE_NEW_ORDER,
                 status_template: str = EMAILJS_TEMPLATE_ORDER_STATUS):
        self.email_client = email_client
        self.order_repo = order_repo
        self.clock = clock or system_clock
        self.service_id = service_id
        self.new_order_template = new_order_template
        self.status_template = status_template
        # Nur Bestellungen, deren Versand gerade läuft
        self._in_flight: Set[str] = set()

    async def _send(self, template_id: str, params: Dict[str, str], job_id: Optional[str]) -> EmailResult:
        try:
            return await self.email_client.send(self.service_id, template_id, params, job_id=job_id)
        except Exception as e:
            # Connector-Vertrag verletzt: trotzdem nicht nach oben durchreichen
            bestellungen_logger.error(f"✗ E-Mail Connector Fehler: {e}", exc_info=True)
            return EmailResult(success=False, error=str(e))

    async def _mark_notified(self, order_id: str):
        try:
            await self.order_repo.mark_admin_notified(order_id, self.clock().isoformat())
        except StoreUnavailableError as e:
            bestellungen_logger.error(f"✗ Versandvermerk für {order_id} nicht gespeichert: {e}")

    async def send_new_order_notification(self, order_id: str, order: Dict[str, Any],
                                          job_id: Optional[str] = None) -> EmailResult:
        """Admin über neue Bestellung informieren"""
        params = new_order_params(order_id, order, self.clock())
        result = await self._send(self.new_order_template, params, job_id)

        if result.success:
            await self._mark_notified(order_id)
            bestellungen_logger.info(f"✓ Admin benachrichtigt: Bestellung {order_id}")
        else:
            bestellungen_logger.error(f"✗ Admin-Benachrichtigung für {order_id} fehlgeschlagen: {result.error}")
        return result

    async def send_status_email(self, order_id: str, order: Dict[str, Any], status: OrderStatus,
                                job_id: Optional[str] = None) -> Optional[EmailResult]:
        """
        Kunden über Statusänderung informieren.

        Returns:
            None wenn für den Status keine E-Mail vorgesehen ist oder keine Adresse vorliegt
        """
        params = status_params(order_id, order, status)
        if params is None or not params["to_email"]:
            return None

        result = await self._send(self.status_template, params, job_id)
        if result.success:
            bestellungen_logger.info(f"✓ Status-E-Mail '{status.value}' an Kunde ({order_id})")
        else:
            bestellungen_logger.error(f"✗ Status-E-Mail für {order_id} fehlgeschlagen: {result.error}")
        return result

    async def _still_pending(self, order_id: str) -> Optional[Dict[str, Any]]:
        """Aktueller Stand der Bestellung, None wenn sie nicht mehr gemeldet werden muss"""
        doc = await self.order_repo.get(order_id)
        if doc is None or doc.data.get(FIELD_ADMIN_NOTIFIED):
            return None
        if normalize_status(doc.data.get('status')) != OrderStatus.NEU:
            return None
        return doc.data

    async def check_for_new_orders(self, job_id: Optional[str] = None) -> Dict:
        """
        Sendet für jede Bestellung mit Status 'neu' ohne Versandvermerk eine Admin-Mail.

        Idempotent: der Vermerk (adminNotifiedAt) steht an der Bestellung, überlappende Aufrufe und
        Neustarts melden dieselbe Bestellung höchstens einmal.

        Returns:
            dict mit found/notified/errors/success
        """
        docs = await self.order_repo.find_without_admin_notification(OrderStatus.NEU.value)
        pending = [doc for doc in docs if doc.id not in self._in_flight]

        if not pending:
            log_service.log(job_id, "check_new_orders", "INFO", "✓ Keine neuen Bestellungen")
            return {'found': 0, 'notified': 0, 'errors': 0, 'success': True}

        log_service.log(job_id, "check_new_orders", "INFO",
                        f"→ {len(pending)} neue Bestellung(en) gefunden")

        notified = 0
        errors = 0
        for doc in pending:
            if doc.id in self._in_flight:
                continue
            self._in_flight.add(doc.id)
            try:
                # Erneut lesen: ein paralleler Lauf kann sie inzwischen gemeldet haben
                data = await self._still_pending(doc.id)
                if data is None:
                    continue
                result = await self.send_new_order_notification(doc.id, data, job_id=job_id)
            finally:
                self._in_flight.discard(doc.id)

            if result.success:
                notified += 1
            else:
                errors += 1

        log_service.log(job_id, "check_new_orders", "INFO" if not errors else "WARNING",
                        f"✓ {notified} benachrichtigt, {errors} Fehler")
        return {'found': len(pending), 'notified': notified, 'errors': errors, 'success': errors == 0}
