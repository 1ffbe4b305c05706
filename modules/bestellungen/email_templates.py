"""E-Mail Template-Daten für Bestellungen (EmailJS template_params)"""

from datetime import datetime
from typing import Any, Dict, Optional

from config.settings import ADMIN_EMAIL, COMPANY_EMAIL, COMPANY_NAME, REVIEW_URL
from modules.shared.dates import format_german
from .models import desired_time, extras_of, normalize_desired_date, OrderStatus
from .pricing import PRICE_CONFIG, extra_labels

STATUS_DATA = {
    OrderStatus.ANGENOMMEN: {
        "header_color": "#8B4513",
        "title": "Bestellung angenommen",
        "message": "Vielen Dank für Ihre Bestellung! Wir haben sie angenommen und werden sie sorgfältig zubereiten.",
        "footer_message": "Sie erhalten eine weitere E-Mail, sobald Ihre Bestellung fertig ist.",
    },
    OrderStatus.IN_VORBEREITUNG: {
        "header_color": "#FF9800",
        "title": "Bestellung in Vorbereitung",
        "message": "Ihre Bestellung ist jetzt in Vorbereitung! Unsere Bäcker arbeiten bereits daran.",
        "footer_message": "Sie werden benachrichtigt, sobald Ihre Bestellung fertig ist.",
    },
    OrderStatus.ABGELEHNT: {
        "header_color": "#f44336",
        "title": "Bestellung abgelehnt",
        "message": "Leider müssen wir Ihre Bestellung ablehnen. Es tut uns sehr leid für die Unannehmlichkeiten.",
        "footer_message": "Gerne können Sie eine neue Bestellung aufgeben.",
    },
    OrderStatus.FERTIG: {
        "header_color": "#4CAF50",
        "title": "Bestellung fertig",
        "message": "Ihre Bestellung ist fertig!",
        "footer_message": "Bei Fragen können Sie uns gerne kontaktieren.",
    },
}

DELIVERY_MESSAGES = {
    "abholung": "Ihre Bestellung kann abgeholt werden! Bitte kommen Sie vorbei.",
    "lieferung": "Ihre Bestellung wird in Kürze geliefert! Wir werden uns bald bei Ihnen melden.",
}

NOT_SPECIFIED = "Nicht angegeben"


def _format_price(value: Any) -> Optional[str]:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return f"{price:.2f}" if price else None


def _wunschtermin_text(order: Dict[str, Any]) -> str:
    day = normalize_desired_date(order)
    if not day:
        return NOT_SPECIFIED
    uhrzeit = desired_time(order)
    return f"{format_german(day)} {uhrzeit} Uhr" if uhrzeit else format_german(day)


def _delivery_key(order: Dict[str, Any]) -> str:
    lieferung = (order.get('details') or {}).get('lieferung') or 'abholung'
    return 'abholung' if lieferung == 'abholung' else 'lieferung'


def new_order_params(order_id: str, order: Dict[str, Any], now: datetime) -> Dict[str, str]:
    """Admin-Benachrichtigung: neue Bestellung eingegangen"""
    details = order.get('details') or {}
    durchmesser = details.get('durchmesserCm')
    lieferung = details.get('lieferung') or 'abholung'
    extras = extras_of(order)

    return {
        "to_email": ADMIN_EMAIL or "",
        "to_name": "Admin",
        "notification_title": "Neue Bestellung eingegangen",
        "header_title": "NEUE BESTELLUNG",
        "alert_title": "🎂 Neue Tortenbestellung eingegangen!",
        "order_id": order_id,
        "order_size": f"{durchmesser} cm" if durchmesser else NOT_SPECIFIED,
        "order_extras": extra_labels(extras),
        "wunschtermin": _wunschtermin_text(order),
        "delivery_type": PRICE_CONFIG["lieferung"].get(lieferung, {}).get("label", f"Lieferung: {lieferung}"),
        "total_price": _format_price(order.get('gesamtpreis')) or "Noch nicht berechnet",
        "customer_name": order.get('name') or NOT_SPECIFIED,
        "customer_email": order.get('email') or NOT_SPECIFIED,
        "customer_phone": order.get('telefon') or NOT_SPECIFIED,
        "customer_address": order.get('adresse') or NOT_SPECIFIED,
        "order_occasion": order.get('anlass') or NOT_SPECIFIED,
        "order_notes": order.get('sonderwunsch') or "Keine besonderen Wünsche",
        "order_timestamp": now.strftime('%d.%m.%Y, %H:%M:%S'),
    }


def status_params(order_id: str, order: Dict[str, Any], status: OrderStatus) -> Optional[Dict[str, str]]:
    """
    Kunden-E-Mail zur Statusänderung.

    Returns:
        None wenn für den Status keine E-Mail vorgesehen ist
    """
    status_info = STATUS_DATA.get(status)
    if status_info is None:
        return None

    details = order.get('details') or {}
    customer_email = order.get('email') or ""
    customer_name = order.get('name') or "Kunde"
    size = f"{details['durchmesserCm']} cm Torte" if details.get('durchmesserCm') else "Torte"

    params = {
        "to_email": customer_email,
        "to_name": customer_name,
        "customer_name": customer_name,
        "order_items": f"{size} mit {extra_labels(extras_of(order))}",
        "total_price": _format_price(order.get('gesamtpreis')) or "0.00",
        "company_name": COMPANY_NAME,
        "company_email": COMPANY_EMAIL,
        "header_color": status_info["header_color"],
        "status_title": status_info["title"],
        "status_message": status_info["message"],
        "footer_message": status_info["footer_message"],
        "wunschtermin": _wunschtermin_text(order),
        "delivery_message": "",
        "review_link": "",
    }

    if status == OrderStatus.FERTIG:
        params["delivery_message"] = DELIVERY_MESSAGES[_delivery_key(order)]
        if REVIEW_URL:
            params["review_link"] = (
                f"{REVIEW_URL}?orderId={order_id}&customerId={order.get('customerId') or ''}"
            )
    return params
