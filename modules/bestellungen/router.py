"""
Bestellungen API Router

Public:
- Verfügbarkeit eines Wunschtermins, Kalender, Bestellformular

Admin (/api/admin):
- Bestellliste, Status/Preis ändern, löschen, archivieren
- Admin-Kalender und Dashboard
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Request, Response

from .jobs import get_job_info
from .schemas import (
    AvailabilityStatus,
    OrderSubmission,
    OrderSubmissionResult,
    PriceUpdate,
    StatusUpdate,
)

router = APIRouter()
admin_router = APIRouter(prefix="/admin")


def _services(request: Request):
    return request.app.state.services


# ═══════════════════════════════════════════════════════════════
# PUBLIC
# ═══════════════════════════════════════════════════════════════

@router.get("/verfuegbarkeit")
async def check_availability(request: Request, datum: Optional[str] = None):
    """Kann für das Datum (YYYY-MM-DD oder DD.MM.YYYY) bestellt werden?"""
    return await _services(request).availability.evaluate(datum)


@router.get("/kalender/{jahr}/{monat}")
async def public_calendar(request: Request, jahr: int = Path(..., ge=2000, le=2100),
                          monat: int = Path(..., ge=1, le=12)):
    """Tagesstatus (past/full/busy/available) ohne Kundendaten"""
    return await _services(request).calendar.public_calendar(jahr, monat)


@router.post("/bestellungen", response_model=OrderSubmissionResult, status_code=201)
async def submit_order(request: Request, submission: OrderSubmission, response: Response):
    """
    Neue Bestellung aus dem Bestellformular

    - 201: gespeichert
    - 409: Datum nicht verfügbar (zu früh, ausgebucht, ungültig)
    - 503: Verfügbarkeit nicht prüfbar oder Speichern fehlgeschlagen
    """
    result = await _services(request).orders.submit_order(submission)
    if not result.success:
        if result.availability.accepted or result.availability.status == AvailabilityStatus.UNKNOWN:
            response.status_code = 503
        else:
            response.status_code = 409
    return result


@router.get("/bestellungen/info")
async def get_info():
    """Info über die Bestell-Jobs"""
    return {"module": "Bestellungen", "jobs": get_job_info()}


# ═══════════════════════════════════════════════════════════════
# ADMIN
# ═══════════════════════════════════════════════════════════════

@admin_router.get("/bestellungen")
async def list_orders(request: Request, email: Optional[str] = None):
    """Aktive Bestellungen (sortiert) oder Bestellhistorie eines Kunden"""
    services = _services(request)
    if email:
        return await services.orders.customer_order_history(email)
    return await services.orders.list_active_orders()


@admin_router.patch("/bestellungen/{order_id}/status")
async def update_status(request: Request, order_id: str, update: StatusUpdate):
    result = await _services(request).orders.update_status(order_id, update.status, update.notify)
    if not result.success:
        raise HTTPException(status_code=404, detail=result.error)
    return result


@admin_router.patch("/bestellungen/{order_id}/preis")
async def update_price(request: Request, order_id: str, update: PriceUpdate):
    updated = await _services(request).orders.update_price(order_id, update.gesamtpreis)
    if not updated:
        raise HTTPException(status_code=404, detail=f"Bestellung {order_id} nicht gefunden")
    return {"status": "updated", "order_id": order_id, "gesamtpreis": update.gesamtpreis}


@admin_router.delete("/bestellungen/{order_id}")
async def delete_order(request: Request, order_id: str):
    deleted = await _services(request).orders.delete_order(order_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Bestellung {order_id} nicht gefunden")
    return {"status": "deleted", "order_id": order_id}


@admin_router.post("/bestellungen/{order_id}/archivieren")
async def archive_order(request: Request, order_id: str):
    result = await _services(request).archive.archive_order(order_id)
    if not result.success:
        raise HTTPException(status_code=404, detail=result.error)
    return result


@admin_router.post("/archiv/fertige")
async def archive_finished(request: Request):
    """Alle fertigen Bestellungen archivieren"""
    return await _services(request).archive.archive_all_finished()


@admin_router.get("/archiv")
async def list_archive(request: Request):
    return await _services(request).archive.list_archives()


@admin_router.get("/kalender/{jahr}/{monat}")
async def admin_calendar(request: Request, jahr: int = Path(..., ge=2000, le=2100),
                         monat: int = Path(..., ge=1, le=12)):
    """Bestellungen pro Tag inkl. Details (Kunde, Größe, Status, Uhrzeit)"""
    return await _services(request).calendar.aggregate(jahr, monat)


@admin_router.get("/dashboard")
async def dashboard(request: Request, tage: int = 7):
    if tage < 1 or tage > 90:
        raise HTTPException(status_code=400, detail="tage muss zwischen 1 und 90 liegen")

    services = _services(request)
    stats, daily = await asyncio.gather(
        services.orders.dashboard_stats(),
        services.availability.daily_order_stats(tage),
    )
    return {"stats": stats, "daily": daily}
