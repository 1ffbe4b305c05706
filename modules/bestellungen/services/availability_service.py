"""
OrderAvailabilityEngine - darf eine Bestellung für ein Datum angenommen werden?

Zwei unabhängige Regeln:
1. Vorlaufzeit (Mindestanzahl Tage zwischen heute und Wunschtermin)
2. Kapazität (maximale Bestellungen pro Tag, gezählt nach Eingangs- oder Wunschdatum)

Die Vorlaufzeit wird zuerst geprüft und hat Vorrang in der Begründung.
"""

import asyncio
from datetime import date, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from config.settings import CAPACITY_BASIS, DAILY_LIMIT, LEAD_DAYS
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import Clock, DateLike, day_bounds, to_date, today as current_day
from modules.shared.errors import StoreUnavailableError, ValidationError
from modules.shared.logging import bestellungen_logger
from ..models import normalize_created, normalize_desired_date
from ..schemas import (
    AvailabilityResult,
    AvailabilityStatus,
    CapacityResult,
    CountingBasis,
    DailyOrderStat,
    DataStatus,
    LeadTimeResult,
)

REASON_OK = "OK"
REASON_AVAILABLE = "Datum verfügbar"
REASON_DATE_REQUIRED = "Kein Datum ausgewählt"
REASON_INVALID_DATE = "Ungültiges Datum"
REASON_UNKNOWN = "Verfügbarkeit kann gerade nicht geprüft werden. Bitte versuche es später erneut."


def reason_too_early(lead_days: int) -> str:
    return f"Bestellungen sind nur mit mindestens {lead_days} Tagen Vorlaufzeit möglich"


def reason_capacity_full(count: int, limit: int) -> str:
    return f"Maximale Kapazität erreicht ({count}/{limit} Bestellungen)"


def parse_candidate_date(candidate: Optional[DateLike]) -> date:
    """
    Wunschtermin aus Formular/Query → date

    Raises:
        ValidationError: kein Datum angegeben oder nicht lesbar
    """
    if candidate is None or (isinstance(candidate, str) and not candidate.strip()):
        raise ValidationError(REASON_DATE_REQUIRED, field="datum")
    try:
        return to_date(candidate)
    except ValueError:
        raise ValidationError(REASON_INVALID_DATE, field="datum")


class AvailabilityConfig(BaseModel):
    """Vorlaufzeit und Tageslimit - unabhängig voneinander einstellbar"""
    lead_days: int = Field(LEAD_DAYS, ge=0)
    daily_limit: int = Field(DAILY_LIMIT, ge=0)
    counting_basis: CountingBasis = CountingBasis(CAPACITY_BASIS)


class OrderAvailabilityEngine:
    """Prüft Vorlaufzeit und Tageskapazität für einen Wunschtermin"""

    def __init__(self, order_repo: OrderRepository, config: Optional[AvailabilityConfig] = None,
                 clock: Optional[Clock] = None):
        self.order_repo = order_repo
        self.config = config or AvailabilityConfig()
        self.clock = clock

    # ═══════════════════════════════════════════════════════════════
    # VORLAUFZEIT
    # ═══════════════════════════════════════════════════════════════

    @staticmethod
    def minimum_acceptable_date(today: DateLike, lead_days: int = 7) -> date:
        if lead_days < 0:
            raise ValueError("lead_days darf nicht negativ sein")
        return to_date(today) + timedelta(days=lead_days)

    @staticmethod
    def is_too_early(candidate: DateLike, today: DateLike, lead_days: int = 7) -> bool:
        """Vergleich auf Tagesebene, Uhrzeit wird ignoriert"""
        return to_date(candidate) < OrderAvailabilityEngine.minimum_acceptable_date(today, lead_days)

    def can_accept_by_lead_time(self, candidate: DateLike, today: Optional[DateLike] = None) -> LeadTimeResult:
        today = today or current_day(self.clock)
        lead_days = self.config.lead_days
        minimum = self.minimum_acceptable_date(today, lead_days)

        if self.is_too_early(candidate, today, lead_days):
            return LeadTimeResult(accepted=False, minimum_date=minimum.isoformat(),
                                  reason=reason_too_early(lead_days))
        return LeadTimeResult(accepted=True, minimum_date=minimum.isoformat(), reason=REASON_OK)

    # ═══════════════════════════════════════════════════════════════
    # KAPAZITÄT
    # ═══════════════════════════════════════════════════════════════

    async def count_orders_on_date(self, day: DateLike, basis: Optional[CountingBasis] = None) -> int:
        """
        Anzahl Bestellungen an einem Kalendertag [00:00:00, 23:59:59].

        Raises:
            StoreUnavailableError: Abfrage fehlgeschlagen (niemals als 0 gewertet)
        """
        basis = basis or self.config.counting_basis
        target = to_date(day)
        start, end = day_bounds(target)

        if basis == CountingBasis.CREATED:
            end_exclusive = start + timedelta(days=1)
            docs = await self.order_repo.find_by_created_range(start, end_exclusive)
            count = 0
            for doc in docs:
                created = normalize_created(doc.data.get('created'))
                if created is not None and start <= created < end_exclusive:
                    count += 1
            return count

        day_text = target.isoformat()
        docs = await self.order_repo.find_by_desired_date_range(day_text, day_text, start, end)
        return sum(1 for doc in docs if normalize_desired_date(doc.data) == day_text)

    @staticmethod
    def capacity_decision(current_count: int, daily_limit: int) -> CapacityResult:
        if daily_limit < 0:
            raise ValueError("daily_limit darf nicht negativ sein")
        return CapacityResult(
            accepted=current_count < daily_limit,
            current_count=current_count,
            limit=daily_limit,
            remaining=max(0, daily_limit - current_count),
        )

    async def can_accept_by_capacity(self, day: DateLike, daily_limit: Optional[int] = None) -> CapacityResult:
        limit = self.config.daily_limit if daily_limit is None else daily_limit
        if limit < 0:
            raise ValueError("daily_limit darf nicht negativ sein")

        try:
            count = await self.count_orders_on_date(day)
        except StoreUnavailableError as e:
            bestellungen_logger.error(f"✗ Kapazität für {to_date(day)} nicht prüfbar: {e}")
            return CapacityResult(accepted=False, limit=limit,
                                  data_status=DataStatus.QUERY_FAILED, error=str(e))

        return self.capacity_decision(count, limit)

    # ═══════════════════════════════════════════════════════════════
    # GESAMTPRÜFUNG
    # ═══════════════════════════════════════════════════════════════

    async def evaluate(self, candidate: Optional[DateLike],
                       config: Optional[AvailabilityConfig] = None) -> AvailabilityResult:
        """Beide Regeln müssen erfüllt sein; Vorlaufzeit zuerst"""
        if config is not None:
            return await OrderAvailabilityEngine(self.order_repo, config, self.clock).evaluate(candidate)

        try:
            target = parse_candidate_date(candidate)
        except ValidationError as e:
            status = (AvailabilityStatus.DATE_REQUIRED if str(e) == REASON_DATE_REQUIRED
                      else AvailabilityStatus.INVALID_DATE)
            return AvailabilityResult(accepted=False, status=status, reason=str(e))

        lead = self.can_accept_by_lead_time(target)
        if not lead.accepted:
            return AvailabilityResult(accepted=False, status=AvailabilityStatus.TOO_EARLY,
                                      reason=lead.reason, date=target.isoformat(),
                                      minimum_date=lead.minimum_date)

        capacity = await self.can_accept_by_capacity(target)
        common = dict(date=target.isoformat(), minimum_date=lead.minimum_date, limit=capacity.limit,
                      current_count=capacity.current_count, remaining=capacity.remaining)

        if capacity.data_status == DataStatus.QUERY_FAILED:
            return AvailabilityResult(accepted=False, status=AvailabilityStatus.UNKNOWN,
                                      reason=REASON_UNKNOWN, **common)
        if not capacity.accepted:
            return AvailabilityResult(accepted=False, status=AvailabilityStatus.CAPACITY_FULL,
                                      reason=reason_capacity_full(capacity.current_count, capacity.limit),
                                      **common)
        return AvailabilityResult(accepted=True, status=AvailabilityStatus.AVAILABLE,
                                  reason=REASON_AVAILABLE, **common)

    async def daily_order_stats(self, days: int = 7) -> List[DailyOrderStat]:
        """Eingegangene Bestellungen der letzten N Tage im Verhältnis zum Tageslimit"""
        if days < 1:
            raise ValueError("days muss mindestens 1 sein")

        today = current_day(self.clock)
        dates = [today - timedelta(days=offset) for offset in range(days)]
        counts = await asyncio.gather(
            *(self.count_orders_on_date(d, CountingBasis.CREATED) for d in dates)
        )

        limit = self.config.daily_limit
        return [
            DailyOrderStat(
                date=d.isoformat(),
                count=count,
                limit=limit,
                percentage=round(count / limit * 100) if limit else 0,
            )
            for d, count in zip(dates, counts)
        ]
