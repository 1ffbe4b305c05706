"""Buchhaltung Schemas - Statistik-, Ausgaben- und Report-Objekte"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from config.settings import EXPENSE_DEFAULT_CATEGORY
from modules.bestellungen.schemas import DataStatus
from modules.shared.dates import to_date


class Trend(BaseModel):
    percent_text: str
    direction: str  # up | down | neutral


class MonthSummary(BaseModel):
    revenue: float = 0.0
    orders: int = 0


class Stats(BaseModel):
    """Umsatz-Statistik für einen Monat (month gesetzt) oder ein Jahr (month None)"""
    year: int
    month: Optional[int] = None
    month_name: Optional[str] = None
    period: str
    total_revenue: float = 0.0
    order_count: int = 0
    average_order_value: float = 0.0
    category_breakdown: Dict[str, float] = {}
    status_breakdown: Dict[str, float] = {}
    size_breakdown: Dict[str, float] = {}
    occasion_breakdown: Dict[str, float] = {}
    monthly_breakdown: Optional[Dict[int, MonthSummary]] = None
    invalid_prices: int = 0
    data_status: DataStatus = DataStatus.OK
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════════
# AUSGABEN
# ═══════════════════════════════════════════════════════════════

class ExpenseCreate(BaseModel):
    """Neue Ausgabe; ohne Datum gilt der heutige Tag"""
    amount: float = Field(..., gt=0)
    category: str = EXPENSE_DEFAULT_CATEGORY
    date: Optional[str] = None
    note: str = ""

    @field_validator('category')
    @classmethod
    def strip_category(cls, value: str) -> str:
        return value.strip() or EXPENSE_DEFAULT_CATEGORY

    @field_validator('date')
    @classmethod
    def normalize_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return to_date(value).isoformat()


class ExpenseGroupRequest(BaseModel):
    expense_ids: List[str] = Field(..., min_length=2)
    category: Optional[str] = None


class Expense(BaseModel):
    id: str
    amount: float
    category: str
    date: str
    note: str = ""
    created: Optional[str] = None


class ExpenseSummary(BaseModel):
    """Ausgaben eines Monats; Einträge der Umsatz-Kategorie zählen als revenue_entries"""
    year: int
    month: int
    expenses: List[Expense] = []
    total_expenses: float = 0.0
    revenue_entries: float = 0.0
    category_breakdown: Dict[str, float] = {}
    data_status: DataStatus = DataStatus.OK
    error: Optional[str] = None


class AccountingReport(BaseModel):
    current: Stats
    previous: Stats
    yearly: Stats
    trends: Dict[str, Trend] = {}
    expenses: Optional[ExpenseSummary] = None
    # Umsatz + Umsatz-Einträge - Ausgaben; None wenn eine der Abfragen fehlschlug
    profit: Optional[float] = None
    generated_at: str
