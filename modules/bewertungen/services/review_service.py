"""Review Service - Kundenbewertungen speichern und anzeigen"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from config.settings import ADMIN_EMAIL, EMAILJS_SERVICE_ID, EMAILJS_TEMPLATE_NEW_REVIEW
from modules.shared.connectors.base_connector import BaseEmailConnector
from modules.shared.database.document_store import Document, to_jsonable
from modules.shared.database.repositories.bewertungen.review_repository import ReviewRepository
from modules.shared.dates import Clock, system_clock
from modules.shared.errors import StoreUnavailableError
from modules.shared.logging import app_logger
from ..schemas import Review, ReviewCreate, ReviewList, ReviewSubmissionResult

ANONYMOUS = "Anonym"
NO_COMMENT = "Keine zusätzlichen Kommentare"
LATEST_LIMIT = 12


def review_params(review_id: str, review: Dict) -> Dict[str, str]:
    """Admin-Benachrichtigung: neue Bewertung (EmailJS template_params)"""
    name = review.get('name') or ANONYMOUS
    comment = review.get('comment') or ''
    overall = review.get('overall')
    text = (
        f"Neue Bewertung von {name}\n\n"
        f"Bewertung: {overall}/5\n"
        f"Kommentar: {comment or NO_COMMENT}\n"
    )
    if review.get('orderId'):
        text += f"Bestellungs-ID: {review['orderId']}\n"

    return {
        "to_email": ADMIN_EMAIL or "",
        "to_name": "Admin",
        "subject": "Neue Bewertung erhalten",
        "notification_title": "Neue Bewertung erhalten",
        "text_body": text,
        "message_text": text,
        "review_id": review_id,
        "review_comment": comment,
        "rating_overall": str(overall),
        "reviewer_name": name,
        "order_id": review.get('orderId') or '',
    }


class ReviewService:

    def __init__(self, review_repo: ReviewRepository, email_client: BaseEmailConnector,
                 clock: Optional[Clock] = None, service_id: str = EMAILJS_SERVICE_ID,
                 template_id: str = EMAILJS_TEMPLATE_NEW_REVIEW):
        self.review_repo = review_repo
        self.email_client = email_client
        self.clock = clock or system_clock
        self.service_id = service_id
        self.template_id = template_id

    async def submit_review(self, review: ReviewCreate) -> ReviewSubmissionResult:
        """
        Bewertung speichern und Admin benachrichtigen.

        Ein fehlgeschlagener E-Mail-Versand ändert nichts am gespeicherten Ergebnis.
        """
        data = {
            'taste': review.geschmack,
            'appearance': review.optik,
            'service': review.service,
            'overall': review.gesamtbewertung,
            'nps': review.nps,
            'comment': review.kommentar.strip(),
            'name': review.name,
            'orderId': review.order_id,
            'customerId': review.customer_id,
            'created': self.clock().isoformat(),
        }

        try:
            review_id = await self.review_repo.add(data)
        except StoreUnavailableError as e:
            app_logger.error(f"✗ Bewertung nicht gespeichert: {e}")
            return ReviewSubmissionResult(success=False,
                                          error="Bewertung konnte nicht gespeichert werden")

        app_logger.info(f"✓ Bewertung {review_id} gespeichert ({review.gesamtbewertung}/5)")

        result = await self.email_client.send(self.service_id, self.template_id, review_params(review_id, data))
        if not result.success:
            app_logger.error(f"✗ Admin-Benachrichtigung für Bewertung {review_id} fehlgeschlagen: {result.error}")
        return ReviewSubmissionResult(success=True, review_id=review_id, notification_sent=result.success)

    @staticmethod
    def _to_review(doc: Document) -> Review:
        data = to_jsonable(doc.data)
        return Review(
            id=doc.id,
            geschmack=data.get('taste') or 0,
            optik=data.get('appearance') or 0,
            service=data.get('service') or 0,
            gesamtbewertung=data.get('overall') or 0,
            nps=data.get('nps') or 0,
            kommentar=data.get('comment') or '',
            name=data.get('name'),
            order_id=data.get('orderId'),
            created=data.get('created'),
        )

    async def latest_reviews(self, limit: int = LATEST_LIMIT) -> ReviewList:
        """Neueste Bewertungen für die Startseite"""
        docs = await self.review_repo.find_latest(limit)
        reviews = [self._to_review(doc) for doc in docs]

        average = None
        if reviews:
            total = Decimal(sum(r.gesamtbewertung for r in reviews)) / len(reviews)
            average = float(total.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))
        return ReviewList(reviews=reviews, average_overall=average)
