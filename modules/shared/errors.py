"""Fehler-Taxonomie für Backstube Backend"""

from typing import Any, List, Optional


class BackstubeError(Exception):
    """Basisklasse aller fachlichen Fehler"""


class ValidationError(BackstubeError):
    """Fehlendes oder ungültiges Eingabefeld (Datum, Preis, ...)"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class StoreUnavailableError(BackstubeError):
    """Abfrage/Schreibzugriff auf den Dokumentenspeicher fehlgeschlagen"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class AmbiguousDateShapeError(BackstubeError):
    """Datumsfeld passt auf keine der unterstützten Formen"""

    def __init__(self, order_id: Optional[str], raw_value: Any):
        super().__init__(f"Unbekanntes Datumsformat bei Bestellung {order_id}: {raw_value!r}")
        self.order_id = order_id
        self.raw_value = raw_value


class PartialArchiveFailure(BackstubeError):
    """Atomarer Archiv-Batch fehlgeschlagen - aktive Bestellungen unverändert"""

    def __init__(self, order_ids: List[str], cause: Optional[BaseException] = None):
        super().__init__(
            f"Archivierung fehlgeschlagen für {len(order_ids)} Bestellung(en), bitte erneut versuchen"
        )
        self.order_ids = order_ids
        self.cause = cause
