"""
Buchhaltung API Router (/api/admin/buchhaltung)

- Monatsreport mit Vormonat, Jahr, Trends, Ausgaben und Gewinn
- Export als JSON oder CSV
- Ausgaben erfassen, gruppieren, löschen und exportieren
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Query, Request
from fastapi.responses import Response

from config.settings import EXPORT_DIR
from modules.shared.errors import ValidationError
from .schemas import ExpenseCreate, ExpenseGroupRequest

router = APIRouter(prefix="/admin/buchhaltung")

EXPORT_FORMATS = ("json", "csv")


def _services(request: Request):
    return request.app.state.services


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'},
    )


# ═══════════════════════════════════════════════════════════════
# AUSGABEN
# ═══════════════════════════════════════════════════════════════

@router.get("/ausgaben")
async def list_expenses(request: Request, jahr: Optional[int] = Query(None, ge=2000, le=2100),
                        monat: Optional[int] = Query(None, ge=1, le=12)):
    """Alle Ausgaben oder, mit jahr und monat, die Monatsübersicht inkl. Summen"""
    services = _services(request)
    if (jahr is None) != (monat is None):
        raise HTTPException(status_code=400, detail="jahr und monat nur gemeinsam angeben")
    if jahr is not None:
        return await services.expenses.monthly_summary(jahr, monat)
    return await services.expenses.list_expenses()


@router.post("/ausgaben", status_code=201)
async def add_expense(request: Request, expense: ExpenseCreate):
    return await _services(request).expenses.add_expense(expense)


@router.post("/ausgaben/gruppieren", status_code=201)
async def group_expenses(request: Request, group: ExpenseGroupRequest):
    try:
        return await _services(request).expenses.group_expenses(group.expense_ids, group.category)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/ausgaben/export")
async def export_expenses(request: Request, jahr: int = Query(..., ge=2000, le=2100),
                          monat: int = Query(..., ge=1, le=12), speichern: bool = False):
    filename = f"ausgaben_{jahr}_{monat:02d}"
    output_path = EXPORT_DIR / f"{filename}.csv" if speichern else None
    content = await _services(request).export.export_expenses_csv(jahr, monat, output_path)
    return _csv_response(content, filename)


@router.delete("/ausgaben/{expense_id}")
async def delete_expense(request: Request, expense_id: str):
    deleted = await _services(request).expenses.delete_expense(expense_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Ausgabe {expense_id} nicht gefunden")
    return {"status": "deleted", "expense_id": expense_id}


# ═══════════════════════════════════════════════════════════════
# REPORT
# ═══════════════════════════════════════════════════════════════

@router.get("/{jahr}/{monat}")
async def get_report(request: Request, jahr: int = Path(..., ge=2000, le=2100),
                     monat: int = Path(..., ge=1, le=12)):
    return await _services(request).revenue.build_report(jahr, monat)


@router.get("/{jahr}/{monat}/export")
async def export_report(request: Request, jahr: int = Path(..., ge=2000, le=2100),
                        monat: int = Path(..., ge=1, le=12), format: str = "json",
                        speichern: bool = False):
    """
    Export der Buchhaltungsdaten

    Query Params:
    - format: json (Report + Kurzfassung) oder csv (Buchungsliste des Monats)
    - speichern: CSV zusätzlich unter data/exports/ ablegen
    """
    if format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Ungültiges Format: {format} (json oder csv)")

    services = _services(request)
    filename = f"buchhaltung_{jahr}_{monat:02d}"

    if format == "csv":
        output_path = EXPORT_DIR / f"{filename}.csv" if speichern else None
        content = await services.export.export_csv(jahr, monat, output_path)
        return _csv_response(content, filename)

    report = await services.revenue.build_report(jahr, monat)
    return services.export.report_to_export(report)
