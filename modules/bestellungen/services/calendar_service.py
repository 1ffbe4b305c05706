"""
MonthlyAggregator - Bestellungen pro Kalendertag eines Monats

Liest beide historischen Ablageformen des Wunschtermins (String und
verschachtelter Timestamp), dedupliziert nach ID und zählt pro Tag.
Findet die reguläre Abfrage nichts, greift eine begrenzte Volltext-Suche
über die Collection (verlustbehaftet, wird als WARNING geloggt und im
Ergebnis markiert).
"""

import json
import re
from datetime import date
from typing import Dict, List, Optional, Tuple

from config.settings import DAILY_LIMIT, FALLBACK_SCAN_LIMIT
from modules.shared.database.document_store import Document
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import (
    Clock,
    days_in_month,
    month_bounds,
    month_date_strings,
    month_name,
    today as current_day,
)
from modules.shared.errors import AmbiguousDateShapeError, StoreUnavailableError
from modules.shared.logging import bestellungen_logger
from ..models import customer_display_name, desired_time, normalize_status, parse_desired_date, size_category
from ..schemas import CalendarDay, DataStatus, MonthlyOrders, OrderSummary, PublicCalendar

ISO_PATTERN = re.compile(r'(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)')
GERMAN_PATTERN = re.compile(r'(?<!\d)(\d{1,2})\.(\d{1,2})\.(\d{4})(?!\d)')

# Verwaltungsfelder enthalten Datumsangaben, die nichts mit dem Wunschtermin zu tun haben
FALLBACK_IGNORED_FIELDS = ('created', 'updated', 'archivedAt')

BUSY_THRESHOLD = 3
BUSY_RATIO = 0.6


def find_dates_in_text(text: str) -> List[date]:
    """Alle YYYY-MM-DD und DD.MM.YYYY Vorkommen in Reihenfolge des Auftretens"""
    found: List[Tuple[int, date]] = []
    for match in ISO_PATTERN.finditer(text):
        year, month, day = (int(g) for g in match.groups())
        try:
            found.append((match.start(), date(year, month, day)))
        except ValueError:
            continue
    for match in GERMAN_PATTERN.finditer(text):
        day, month, year = (int(g) for g in match.groups())
        try:
            found.append((match.start(), date(year, month, day)))
        except ValueError:
            continue
    found.sort(key=lambda item: item[0])
    return [d for _, d in found]


def _serialize_for_scan(data: Dict) -> str:
    relevant = {k: v for k, v in data.items() if k not in FALLBACK_IGNORED_FIELDS}
    return json.dumps(relevant, default=str, ensure_ascii=False)


class MonthlyAggregator:
    """Zählt Bestellungen pro Tag für Kalenderansichten"""

    def __init__(self, order_repo: OrderRepository, fallback_limit: int = FALLBACK_SCAN_LIMIT,
                 daily_limit: int = DAILY_LIMIT, clock: Optional[Clock] = None):
        if fallback_limit < 0 or daily_limit < 0:
            raise ValueError("fallback_limit und daily_limit dürfen nicht negativ sein")
        self.order_repo = order_repo
        self.fallback_limit = fallback_limit
        self.daily_limit = daily_limit
        self.clock = clock

    @staticmethod
    def _summary(doc: Document, is_fallback: bool = False) -> OrderSummary:
        category = size_category(doc.data)
        return OrderSummary(
            id=doc.id,
            customer_name=customer_display_name(doc.data),
            size_category=category.value if category else None,
            status=normalize_status(doc.data.get('status')).value,
            desired_time=desired_time(doc.data),
            is_fallback=is_fallback,
        )

    async def aggregate(self, year: int, month: int) -> MonthlyOrders:
        """
        Bestellungen eines Monats nach Wunschtermin.

        Returns:
            MonthlyOrders mit counts {YYYY-MM-DD: n}, details pro Tag,
            excluded (unlesbare Datumsfelder) und data_status
        """
        start_day, end_day = month_date_strings(year, month)
        start_ts, end_ts = month_bounds(year, month)
        result = MonthlyOrders(year=year, month=month, month_name=month_name(month))

        try:
            docs = await self.order_repo.find_by_desired_date_range(start_day, end_day, start_ts, end_ts)
        except StoreUnavailableError as e:
            bestellungen_logger.error(f"✗ Kalender {month:02d}/{year} nicht ladbar: {e}")
            result.data_status = DataStatus.QUERY_FAILED
            result.error = str(e)
            return result

        for doc in docs:
            try:
                day = parse_desired_date(doc.data, doc.id)
            except AmbiguousDateShapeError as e:
                bestellungen_logger.warning(f"Ausgeschlossen: {e}")
                result.excluded += 1
                continue
            if day is None or not start_day <= day <= end_day:
                continue
            result.counts[day] = result.counts.get(day, 0) + 1
            result.details.setdefault(day, []).append(self._summary(doc))

        if not result.counts:
            try:
                await self._fallback_scan(result)
            except StoreUnavailableError as e:
                bestellungen_logger.error(f"✗ Fallback-Suche {month:02d}/{year} fehlgeschlagen: {e}")
                result.data_status = DataStatus.QUERY_FAILED
                result.error = str(e)
                return result

        if not result.counts:
            result.data_status = DataStatus.NO_DATA
        return result

    @staticmethod
    def _has_strict_date(doc: Document) -> bool:
        """Lesbarer Wunschtermin vorhanden - dann zählt die Bestellung nur über die reguläre Abfrage"""
        try:
            return parse_desired_date(doc.data, doc.id) is not None
        except AmbiguousDateShapeError:
            return False

    async def _fallback_scan(self, result: MonthlyOrders):
        """
        Begrenzte Volltext-Suche nach Datumsangaben (letzter Ausweg).

        Nur Bestellungen ohne Wunschtermin oder mit unlesbarem Wunschtermin.
        """
        docs = await self.order_repo.find_all(limit=self.fallback_limit)

        seen = set()
        for doc in docs:
            if doc.id in seen or self._has_strict_date(doc):
                continue
            for found in find_dates_in_text(_serialize_for_scan(doc.data)):
                if found.year == result.year and found.month == result.month:
                    day = found.isoformat()
                    seen.add(doc.id)
                    result.counts[day] = result.counts.get(day, 0) + 1
                    result.details.setdefault(day, []).append(self._summary(doc, is_fallback=True))
                    break

        if seen:
            result.used_fallback = True
            bestellungen_logger.warning(
                f"Fallback-Heuristik aktiv für {result.month:02d}/{result.year}: "
                f"{len(seen)} Bestellung(en) per Textsuche zugeordnet (verlustbehaftet, "
                f"{len(docs)} Dokumente durchsucht)"
            )

    async def public_calendar(self, year: int, month: int) -> PublicCalendar:
        """Verfügbarkeit pro Tag für den öffentlichen Kalender (ohne Kundendaten)"""
        monthly = await self.aggregate(year, month)
        calendar_view = PublicCalendar(year=year, month=month, month_name=monthly.month_name,
                                       limit=self.daily_limit)

        if monthly.data_status == DataStatus.QUERY_FAILED:
            calendar_view.data_status = DataStatus.QUERY_FAILED
            calendar_view.error = "Kalender konnte nicht geladen werden. Bitte später erneut versuchen."
            return calendar_view

        today = current_day(self.clock)
        for day_number in range(1, days_in_month(year, month) + 1):
            day = date(year, month, day_number)
            count = monthly.counts.get(day.isoformat(), 0)
            calendar_view.days.append(CalendarDay(
                date=day.isoformat(),
                count=count,
                free=max(0, self.daily_limit - count),
                status=self._day_status(day, count, today),
            ))
        return calendar_view

    def _day_status(self, day: date, count: int, today: date) -> str:
        if day < today:
            return "past"
        if count >= self.daily_limit:
            return "full"
        if count >= BUSY_THRESHOLD or (self.daily_limit and count / self.daily_limit >= BUSY_RATIO):
            return "busy"
        return "available"
