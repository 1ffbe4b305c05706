"""
Bestellungen - Domain-Helfer

Normalisiert die historisch gewachsenen Felder einer gespeicherten Bestellung:
Status, Wunschtermin (String vs. verschachtelter Timestamp), Preis, Größe.
Alles nachgelagerte arbeitet nur mit den normalisierten Formen.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from modules.shared.database.document_store import StoreTimestamp
from modules.shared.dates import STORE_TZ, parse_date_string, parse_iso_timestamp
from modules.shared.errors import AmbiguousDateShapeError
from modules.shared.logging import bestellungen_logger


class OrderStatus(str, Enum):
    """Kanonische Status-Werte (so wie sie gespeichert werden)"""
    NEU = "neu"
    ANGENOMMEN = "angenommen"
    IN_VORBEREITUNG = "in Vorbereitung"
    FERTIG = "fertig"
    ABGELEHNT = "abgelehnt"
    ABGEHOLT = "abgeholt"
    ARCHIVIERT = "archiviert"


class SizeCategory(str, Enum):
    MINI = "mini"
    NORMAL = "normal"
    LARGE = "large"


# Vollständige Zuordnung bekannter Altwerte → kanonischer Status.
# Schlüssel sind kleingeschrieben, Leerzeichen/Bindestriche/Unterstriche vereinheitlicht.
STATUS_TABLE: Dict[str, OrderStatus] = {
    "neu": OrderStatus.NEU,
    "new": OrderStatus.NEU,
    "offen": OrderStatus.NEU,
    "eingegangen": OrderStatus.NEU,

    "angenommen": OrderStatus.ANGENOMMEN,
    "accepted": OrderStatus.ANGENOMMEN,
    "bestätigt": OrderStatus.ANGENOMMEN,
    "bestaetigt": OrderStatus.ANGENOMMEN,

    "in vorbereitung": OrderStatus.IN_VORBEREITUNG,
    "vorbereitung": OrderStatus.IN_VORBEREITUNG,
    "in bearbeitung": OrderStatus.IN_VORBEREITUNG,
    "bearbeitung": OrderStatus.IN_VORBEREITUNG,
    "in preparation": OrderStatus.IN_VORBEREITUNG,
    "processing": OrderStatus.IN_VORBEREITUNG,

    "fertig": OrderStatus.FERTIG,
    "ready": OrderStatus.FERTIG,
    "abholbereit": OrderStatus.FERTIG,

    "abgelehnt": OrderStatus.ABGELEHNT,
    "rejected": OrderStatus.ABGELEHNT,
    "storniert": OrderStatus.ABGELEHNT,
    "cancelled": OrderStatus.ABGELEHNT,

    "abgeholt": OrderStatus.ABGEHOLT,
    "picked up": OrderStatus.ABGEHOLT,
    "geliefert": OrderStatus.ABGEHOLT,
    "delivered": OrderStatus.ABGEHOLT,
    "erledigt": OrderStatus.ABGEHOLT,

    "archiviert": OrderStatus.ARCHIVIERT,
    "archived": OrderStatus.ARCHIVIERT,
}

DEFAULT_STATUS = OrderStatus.NEU

_SEPARATORS = re.compile(r'[\s_\-]+')


def _status_key(raw: str) -> str:
    return _SEPARATORS.sub(' ', raw.strip().lower())


def normalize_status(raw: Any) -> OrderStatus:
    """
    Altwert → kanonischer Status.

    Unbekannte oder fehlende Werte werden zu NEU (landen damit in der
    Eingangsliste des Admins) und werden geloggt.
    """
    if isinstance(raw, OrderStatus):
        return raw
    if isinstance(raw, str) and raw.strip():
        status = STATUS_TABLE.get(_status_key(raw))
        if status:
            return status
    bestellungen_logger.warning(f"Unbekannter Status {raw!r} → '{DEFAULT_STATUS.value}'")
    return DEFAULT_STATUS


def is_known_status(raw: Any) -> bool:
    return isinstance(raw, str) and _status_key(raw) in STATUS_TABLE


# ═══════════════════════════════════════════════════════════════
# WUNSCHTERMIN
# ═══════════════════════════════════════════════════════════════

def _date_from_value(value: Any) -> date:
    """Wert aus wunschDatum/wunschtermin.datum → Kalendertag (wirft ValueError)"""
    if isinstance(value, StoreTimestamp):
        return value.to_date()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(STORE_TZ)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date_string(value)
    raise ValueError(f"Kein Datumswert: {value!r}")


def _raw_desired_date(data: Dict[str, Any]) -> Tuple[bool, Any]:
    """(vorhanden, Rohwert); verschachtelte Form hat Vorrang"""
    termin = data.get('wunschtermin')
    if isinstance(termin, dict):
        if termin.get('datum') not in (None, ''):
            return True, termin['datum']
    elif termin not in (None, ''):
        return True, termin

    if data.get('wunschDatum') not in (None, ''):
        return True, data['wunschDatum']
    return False, None


def parse_desired_date(data: Dict[str, Any], order_id: Optional[str] = None) -> Optional[str]:
    """
    Wunschtermin → 'YYYY-MM-DD'.

    Returns:
        None wenn kein Wunschtermin gespeichert ist

    Raises:
        AmbiguousDateShapeError: Feld vorhanden, aber in keiner unterstützten Form
    """
    present, raw = _raw_desired_date(data)
    if not present:
        return None
    try:
        return _date_from_value(raw).isoformat()
    except ValueError:
        raise AmbiguousDateShapeError(order_id, raw)


def normalize_desired_date(data: Dict[str, Any]) -> Optional[str]:
    """Wie parse_desired_date, aber None statt Exception"""
    try:
        return parse_desired_date(data)
    except AmbiguousDateShapeError:
        return None


def desired_time(data: Dict[str, Any]) -> Optional[str]:
    termin = data.get('wunschtermin')
    if isinstance(termin, dict):
        return termin.get('uhrzeit') or None
    return None


def normalize_created(value: Any) -> Optional[datetime]:
    """created (ISO-String oder Speicher-Timestamp) → datetime in Speicher-Zeitzone"""
    if isinstance(value, StoreTimestamp):
        return value.to_datetime()
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=STORE_TZ)
    if isinstance(value, str) and value.strip():
        try:
            return parse_iso_timestamp(value).astimezone(STORE_TZ)
        except ValueError:
            return None
    return None


# ═══════════════════════════════════════════════════════════════
# PREIS & GRÖSSE
# ═══════════════════════════════════════════════════════════════

PRICE_FIELDS = ('gesamtpreis', 'price', 'total', 'totalPrice')


def coerce_price(data: Dict[str, Any]) -> Tuple[Decimal, bool]:
    """
    Erstes nicht-leeres Preisfeld → Decimal.

    Returns:
        (Preis, gültig). Nicht-numerische Werte ergeben (0, False).
    """
    for field in PRICE_FIELDS:
        value = data.get(field)
        if value is None or value == '':
            continue
        if isinstance(value, bool):
            return Decimal('0'), False
        try:
            if isinstance(value, str):
                value = value.replace('€', '').strip().replace(',', '.')
            price = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return Decimal('0'), False
        if not price.is_finite():
            return Decimal('0'), False
        return price, True
    return Decimal('0'), True


def size_category_for_diameter(diameter_cm: Any) -> Optional[SizeCategory]:
    try:
        diameter = float(diameter_cm)
    except (TypeError, ValueError):
        return None
    if diameter <= 14:
        return SizeCategory.MINI
    if diameter <= 20:
        return SizeCategory.NORMAL
    return SizeCategory.LARGE


_CATEGORY_ALIASES = {
    'mini': SizeCategory.MINI,
    'normal': SizeCategory.NORMAL,
    'large': SizeCategory.LARGE,
    'gross': SizeCategory.LARGE,
    'groß': SizeCategory.LARGE,
}


def size_category(data: Dict[str, Any]) -> Optional[SizeCategory]:
    """Kategorie-Feld, sonst aus dem Durchmesser abgeleitet"""
    details = data.get('details') or {}
    for raw in (details.get('kategorie'), details.get('sizeCategory'), data.get('size')):
        if isinstance(raw, str) and raw.strip().lower() in _CATEGORY_ALIASES:
            return _CATEGORY_ALIASES[raw.strip().lower()]
    return size_category_for_diameter(details.get('durchmesserCm', data.get('durchmesserCm')))


def extras_of(data: Dict[str, Any]) -> list:
    details = data.get('details') or {}
    extras = details.get('extras', data.get('extras'))
    return list(extras) if isinstance(extras, (list, tuple, set)) else []


def customer_display_name(data: Dict[str, Any]) -> str:
    for field in ('name', 'customerName', 'kundenName'):
        if data.get(field):
            return str(data[field])
    return 'Unbekannt'
