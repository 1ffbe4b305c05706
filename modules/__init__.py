"""
Modules Package - Alle Anwendungsmodule

Dieses Package enthält alle Anwendungsmodule:
- shared: Gemeinsame Funktionen (Dokumentenspeicher, Logging, Connectors)
- bestellungen: Bestellannahme, Kalender, Archiv, Benachrichtigungen
- buchhaltung: Umsatz-Statistiken und Export
- bewertungen: Kundenbewertungen

Verwendung:
    from modules.shared import BaseRepository, log_service
    from modules.bestellungen.router import router as bestellungen_router
"""

__version__ = "1.0.0"
