"""Bestellungen Schemas - API Input/Output und Ergebnis-Objekte"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .pricing import PRICE_CONFIG


class DataStatus(str, Enum):
    """Unterscheidet 'keine Daten' von 'Abfrage fehlgeschlagen'"""
    OK = "ok"
    NO_DATA = "no_data"
    QUERY_FAILED = "query_failed"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    DATE_REQUIRED = "date_required"
    INVALID_DATE = "invalid_date"
    TOO_EARLY = "too_early"
    CAPACITY_FULL = "capacity_full"
    UNKNOWN = "unknown"


class CountingBasis(str, Enum):
    """Worauf sich das Tageslimit bezieht"""
    CREATED = "created"
    DESIRED_DATE = "desired_date"


# ═══════════════════════════════════════════════════════════════
# VERFÜGBARKEIT
# ═══════════════════════════════════════════════════════════════

class LeadTimeResult(BaseModel):
    accepted: bool
    minimum_date: str
    reason: str


class CapacityResult(BaseModel):
    accepted: bool
    current_count: Optional[int] = None
    limit: int
    remaining: Optional[int] = None
    data_status: DataStatus = DataStatus.OK
    error: Optional[str] = None


class AvailabilityResult(BaseModel):
    accepted: bool
    status: AvailabilityStatus
    reason: str
    date: Optional[str] = None
    minimum_date: Optional[str] = None
    current_count: Optional[int] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None


# ═══════════════════════════════════════════════════════════════
# KALENDER
# ═══════════════════════════════════════════════════════════════

class OrderSummary(BaseModel):
    id: str
    customer_name: str
    size_category: Optional[str] = None
    status: str
    desired_time: Optional[str] = None
    is_fallback: bool = False


class MonthlyOrders(BaseModel):
    year: int
    month: int
    month_name: str
    counts: Dict[str, int] = {}
    details: Dict[str, List[OrderSummary]] = {}
    excluded: int = 0
    used_fallback: bool = False
    data_status: DataStatus = DataStatus.OK
    error: Optional[str] = None


class CalendarDay(BaseModel):
    date: str
    count: int
    free: int
    status: str  # past | full | busy | available


class PublicCalendar(BaseModel):
    year: int
    month: int
    month_name: str
    limit: int
    days: List[CalendarDay] = []
    data_status: DataStatus = DataStatus.OK
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════════
# BESTELLUNG (Public Form)
# ═══════════════════════════════════════════════════════════════

class OrderSubmission(BaseModel):
    """Input Schema: Neue Bestellung über das Bestellformular"""
    name: str = Field(..., min_length=1)
    email: EmailStr
    telefon: Optional[str] = None
    adresse: Optional[str] = None
    durchmesser_cm: int = Field(..., ge=10, le=24)
    extras: List[str] = []
    stockwerke: Optional[int] = Field(None, ge=2, le=3)
    lieferung: str = "abholung"
    wunsch_datum: str = Field(..., min_length=1)
    uhrzeit: Optional[str] = None
    anlass: Optional[str] = None
    sonderwunsch: Optional[str] = None

    @field_validator('extras')
    @classmethod
    def check_extras(cls, value: List[str]) -> List[str]:
        unknown = [e for e in value if e not in PRICE_CONFIG["extras"]]
        if unknown:
            raise ValueError(f"Unbekannte Extras: {', '.join(unknown)}")
        return value

    @field_validator('lieferung')
    @classmethod
    def check_lieferung(cls, value: str) -> str:
        if value not in PRICE_CONFIG["lieferung"]:
            raise ValueError(f"Unbekannte Lieferart: {value}")
        return value


class OrderSubmissionResult(BaseModel):
    success: bool
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    gesamtpreis: Optional[float] = None
    availability: AvailabilityResult
    notification_sent: bool = False
    notification_error: Optional[str] = None
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════════
# ADMIN
# ═══════════════════════════════════════════════════════════════

class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    notify: bool = True


class PriceUpdate(BaseModel):
    gesamtpreis: float = Field(..., ge=0)


class StatusUpdateResult(BaseModel):
    success: bool
    order_id: str
    status: Optional[str] = None
    email_sent: bool = False
    email_error: Optional[str] = None
    error: Optional[str] = None


class ArchiveResult(BaseModel):
    success: bool
    archived: int = 0
    order_ids: List[str] = []
    error: Optional[str] = None


class ArchiveMonth(BaseModel):
    month_key: str
    label: str
    orders: List[Dict] = []


class DashboardStats(BaseModel):
    today: int
    new: int
    in_preparation: int
    finished: int
    total_active: int


class DailyOrderStat(BaseModel):
    date: str
    count: int
    limit: int
    percentage: int
