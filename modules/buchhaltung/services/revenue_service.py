"""
RevenueAggregator - Umsatz- und Kategorie-Statistiken pro Monat/Jahr

Beträge werden als Decimal summiert und erst am Ende jeder Aggregation
kaufmännisch (ROUND_HALF_UP) auf 2 Nachkommastellen gerundet.
Archivierte Bestellungen zählen mit, damit das Archivieren den Umsatz
eines Monats nicht verändert.
"""

import asyncio
import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from modules.bestellungen.models import (
    OrderStatus,
    coerce_price,
    extras_of,
    normalize_created,
    normalize_status,
    size_category,
)
from modules.bestellungen.schemas import DataStatus
from modules.shared.database.document_store import Document
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import (
    STORE_TZ,
    Clock,
    month_bounds,
    month_name,
    next_month_start,
    previous_month,
    system_clock,
)
from modules.shared.errors import StoreUnavailableError
from modules.shared.logging import buchhaltung_logger
from ..schemas import AccountingReport, MonthSummary, Stats, Trend

CATEGORY_BASIC = "basic"
CATEGORY_STANDARD = "standard"
CATEGORY_PREMIUM = "premium"

OCCASION_DEFAULT = "unspecified"
SIZE_UNKNOWN = "unknown"

# Immer im Status-Breakdown enthalten, auch ohne Bestellungen
INITIAL_STATUSES = (OrderStatus.NEU, OrderStatus.IN_VORBEREITUNG, OrderStatus.FERTIG, OrderStatus.ABGEHOLT)

OCCASION_LABELS = {
    "geburtstag": "Geburtstag",
    "hochzeit": "Hochzeit",
    "jahrestag": "Jahrestag",
    "taufe": "Taufe",
    "abschluss": "Abschluss",
    "firmung": "Firmung/Konfirmation",
    "valentinstag": "Valentinstag",
    "muttertag": "Muttertag",
    "weihnachten": "Weihnachten",
    "ostern": "Ostern",
    "party": "Party",
    "sonstiges": "Sonstiges",
    OCCASION_DEFAULT: "Nicht angegeben",
}

CENT = Decimal("0.01")


def round_money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def category_for_extras(extra_count: int) -> str:
    if extra_count == 0:
        return CATEGORY_BASIC
    if extra_count > 2:
        return CATEGORY_PREMIUM
    return CATEGORY_STANDARD


def occasion_of(data: Dict) -> str:
    raw = data.get('anlass') or data.get('occasion')
    if isinstance(raw, str) and raw.strip():
        return raw.strip().lower()
    return OCCASION_DEFAULT


def occasion_label(key: str) -> str:
    return OCCASION_LABELS.get(key, key.capitalize())


class _Accumulator:
    """Sammelt Summen einer Periode als Decimal"""

    def __init__(self, with_months: bool = False):
        self.total = Decimal("0")
        self.count = 0
        self.invalid_prices = 0
        self.categories: Dict[str, Decimal] = {}
        self.statuses: Dict[str, Decimal] = {s.value: Decimal("0") for s in INITIAL_STATUSES}
        self.sizes: Dict[str, Decimal] = {}
        self.occasions: Dict[str, Decimal] = {}
        self.months: Optional[Dict[int, List]] = (
            {m: [Decimal("0"), 0] for m in range(1, 13)} if with_months else None
        )

    @staticmethod
    def _bump(bucket: Dict[str, Decimal], key: str, amount: Decimal):
        bucket[key] = bucket.get(key, Decimal("0")) + amount

    def add(self, doc: Document, created: datetime):
        price, valid = coerce_price(doc.data)
        if not valid:
            self.invalid_prices += 1
            buchhaltung_logger.warning(f"Ungültiger Preis bei Bestellung {doc.id} → 0 €")

        self.total += price
        self.count += 1

        self._bump(self.categories, category_for_extras(len(extras_of(doc.data))), price)
        self._bump(self.statuses, normalize_status(doc.data.get('status')).value, price)
        category = size_category(doc.data)
        self._bump(self.sizes, category.value if category else SIZE_UNKNOWN, price)
        self._bump(self.occasions, occasion_of(doc.data), price)

        if self.months is not None:
            self.months[created.month][0] += price
            self.months[created.month][1] += 1

    def to_stats(self, year: int, month: Optional[int], period: str) -> Stats:
        average = self.total / self.count if self.count else Decimal("0")
        stats = Stats(
            year=year,
            month=month,
            month_name=month_name(month) if month else None,
            period=period,
            total_revenue=round_money(self.total),
            order_count=self.count,
            average_order_value=round_money(average),
            category_breakdown={k: round_money(v) for k, v in self.categories.items()},
            status_breakdown={k: round_money(v) for k, v in self.statuses.items()},
            size_breakdown={k: round_money(v) for k, v in self.sizes.items()},
            occasion_breakdown={k: round_money(v) for k, v in self.occasions.items()},
            invalid_prices=self.invalid_prices,
            data_status=DataStatus.OK if self.count else DataStatus.NO_DATA,
        )
        if self.months is not None:
            stats.monthly_breakdown = {
                m: MonthSummary(revenue=round_money(rev), orders=n) for m, (rev, n) in self.months.items()
            }
        return stats


class RevenueAggregator:

    def __init__(self, order_repos: List[OrderRepository], clock: Optional[Clock] = None,
                 expenses=None):
        """
        Args:
            order_repos: aktive Bestellungen und Archiv (beide mit created-Abfrage)
            clock: Zeitquelle für Reports
            expenses: optionaler ExpenseService für Ausgaben und Gewinn im Report
        """
        self.order_repos = order_repos
        self.clock = clock or system_clock
        self.expenses = expenses

    async def _load(self, start: datetime, end_exclusive: datetime) -> List[Document]:
        results = await asyncio.gather(
            *(repo.find_by_created_range(start, end_exclusive) for repo in self.order_repos)
        )
        merged: Dict[str, Document] = {}
        for docs in results:
            for doc in docs:
                key = doc.data.get('originalOrderId') or doc.id
                merged.setdefault(key, doc)
        return list(merged.values())

    async def _aggregate(self, start: datetime, end_exclusive: datetime, accumulator: _Accumulator,
                         year: int, month: Optional[int], period: str) -> Stats:
        try:
            docs = await self._load(start, end_exclusive)
        except StoreUnavailableError as e:
            buchhaltung_logger.error(f"✗ Statistik {period} nicht ladbar: {e}")
            return Stats(year=year, month=month, month_name=month_name(month) if month else None,
                         period=period, data_status=DataStatus.QUERY_FAILED, error=str(e))

        for doc in docs:
            created = normalize_created(doc.data.get('created'))
            if created is None or not start <= created < end_exclusive:
                continue
            accumulator.add(doc, created)

        stats = accumulator.to_stats(year, month, period)
        buchhaltung_logger.info(
            f"✓ Statistik {period}: {stats.order_count} Bestellungen, {stats.total_revenue:.2f} €"
        )
        return stats

    async def monthly_stats(self, year: int, month: int) -> Stats:
        start, _ = month_bounds(year, month)
        end_exclusive = next_month_start(year, month)
        return await self._aggregate(start, end_exclusive, _Accumulator(), year, month,
                                     f"{month_name(month)} {year}")

    async def yearly_stats(self, year: int) -> Stats:
        start = datetime(year, 1, 1, tzinfo=STORE_TZ)
        end_exclusive = datetime(year + 1, 1, 1, tzinfo=STORE_TZ)
        return await self._aggregate(start, end_exclusive, _Accumulator(with_months=True),
                                     year, None, str(year))

    @staticmethod
    def trend(current: float, previous: float) -> Trend:
        """Veränderung gegenüber Vorperiode, Prozent ganzzahlig gerundet"""
        if previous == 0:
            if current > 0:
                return Trend(percent_text="+100%", direction="up")
            return Trend(percent_text="0%", direction="neutral")

        percent = (current - previous) / previous * 100
        rounded = math.floor(percent + 0.5)
        text = f"+{rounded}%" if percent > 0 else f"{rounded}%"

        if abs(percent) < 1:
            return Trend(percent_text=text, direction="neutral")
        return Trend(percent_text=text, direction="up" if percent > 0 else "down")

    async def build_report(self, year: int, month: int) -> AccountingReport:
        """Aktueller Monat, Vormonat und Jahr parallel, dazu Trends und Gewinn"""
        prev_year, prev_month = previous_month(year, month)
        current, previous, yearly = await asyncio.gather(
            self.monthly_stats(year, month),
            self.monthly_stats(prev_year, prev_month),
            self.yearly_stats(year),
        )

        expenses = None
        profit = None
        if self.expenses is not None:
            expenses = await self.expenses.monthly_summary(year, month)
            if DataStatus.QUERY_FAILED not in (current.data_status, expenses.data_status):
                profit = self.expenses.compute_profit(current.total_revenue, expenses)

        trends: Dict[str, Trend] = {}
        if DataStatus.QUERY_FAILED not in (current.data_status, previous.data_status):
            trends = {
                "revenue": self.trend(current.total_revenue, previous.total_revenue),
                "orders": self.trend(current.order_count, previous.order_count),
                "average": self.trend(current.average_order_value, previous.average_order_value),
            }

        return AccountingReport(current=current, previous=previous, yearly=yearly, trends=trends,
                                expenses=expenses, profit=profit, generated_at=self.clock().isoformat())

    async def ledger(self, year: int, month: int) -> List[Dict]:
        """Einzelne Bestellungen eines Monats (Basis für CSV-Export)"""
        start, _ = month_bounds(year, month)
        end_exclusive = next_month_start(year, month)
        docs = await self._load(start, end_exclusive)

        entries = []
        for doc in docs:
            created = normalize_created(doc.data.get('created'))
            if created is None or not start <= created < end_exclusive:
                continue
            price, _ = coerce_price(doc.data)
            extras = extras_of(doc.data)
            category = size_category(doc.data)
            entries.append((created, {
                "bestellung_id": doc.data.get('originalOrderId') or doc.id,
                "eingang": created.strftime('%d.%m.%Y %H:%M'),
                "kunde": doc.data.get('name') or '',
                "status": normalize_status(doc.data.get('status')).value,
                "groesse": category.value if category else SIZE_UNKNOWN,
                "kategorie": category_for_extras(len(extras)),
                "extras": ", ".join(extras),
                "anlass": occasion_label(occasion_of(doc.data)),
                "preis": round_money(price),
            }))
        entries.sort(key=lambda e: e[0])
        return [row for _, row in entries]
