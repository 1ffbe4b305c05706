"""
Expense Service - Ausgaben erfassen, gruppieren und pro Monat summieren

Einträge der Kategorie 'Umsatz' sind manuell erfasste Einnahmen und fließen
in den Gewinn, nicht in die Ausgabensumme.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from config.settings import EXPENSE_REVENUE_CATEGORY
from modules.bestellungen.schemas import DataStatus
from modules.shared.database.document_store import Document
from modules.shared.database.repositories.buchhaltung.expense_repository import ExpenseRepository
from modules.shared.dates import Clock, month_date_strings, system_clock
from modules.shared.errors import StoreUnavailableError, ValidationError
from modules.shared.logging import buchhaltung_logger
from ..schemas import Expense, ExpenseCreate, ExpenseSummary
from .revenue_service import round_money

GROUP_CATEGORY_DEFAULT = "Einkauf (Gruppiert)"

EXPENSE_CSV_COLUMNS = ["ausgabe_id", "datum", "kategorie", "betrag", "notiz"]


def _amount(value) -> Decimal:
    try:
        return Decimal(str(value or 0))
    except ArithmeticError:
        return Decimal(0)


class ExpenseService:

    def __init__(self, expense_repo: ExpenseRepository, clock: Optional[Clock] = None,
                 revenue_category: str = EXPENSE_REVENUE_CATEGORY):
        self.expense_repo = expense_repo
        self.clock = clock or system_clock
        self.revenue_category = revenue_category

    @staticmethod
    def _to_expense(doc: Document) -> Expense:
        return Expense(
            id=doc.id,
            amount=round_money(_amount(doc.data.get('amount'))),
            category=doc.data.get('category') or '',
            date=doc.data.get('date') or '',
            note=doc.data.get('note') or '',
            created=doc.data.get('created'),
        )

    # ═══════════════════════════════════════════════════════════════
    # ERFASSEN / LÖSCHEN / GRUPPIEREN
    # ═══════════════════════════════════════════════════════════════

    async def add_expense(self, expense: ExpenseCreate) -> Expense:
        now = self.clock()
        data = {
            'amount': round_money(_amount(expense.amount)),
            'category': expense.category,
            'date': expense.date or now.date().isoformat(),
            'note': expense.note,
            'created': now.isoformat(),
        }
        expense_id = await self.expense_repo.add(data)
        buchhaltung_logger.info(f"✓ Ausgabe {expense_id}: {data['amount']:.2f} € ({data['category']})")
        return Expense(id=expense_id, **data)

    async def delete_expense(self, expense_id: str) -> bool:
        deleted = await self.expense_repo.delete(expense_id)
        if deleted:
            buchhaltung_logger.info(f"✓ Ausgabe {expense_id} gelöscht")
        return deleted

    async def group_expenses(self, expense_ids: List[str], category: Optional[str] = None) -> Expense:
        """
        Mehrere Ausgaben zu einem Sammeleintrag zusammenfassen (atomar).

        Betrag = Summe, Datum = frühestes Datum, Notiz = alle Einzelposten.

        Raises:
            ValidationError: weniger als zwei Einträge oder unbekannte IDs
        """
        unique_ids = list(dict.fromkeys(expense_ids))
        if len(unique_ids) < 2:
            raise ValidationError("Mindestens zwei Einträge zum Gruppieren auswählen", field="expense_ids")

        docs = [await self.expense_repo.get(expense_id) for expense_id in unique_ids]
        missing = [expense_id for expense_id, doc in zip(unique_ids, docs) if doc is None]
        if missing:
            raise ValidationError(f"Unbekannte Ausgaben: {', '.join(missing)}", field="expense_ids")

        items = sorted((self._to_expense(doc) for doc in docs), key=lambda e: e.date)
        categories = list(dict.fromkeys(item.category for item in items if item.category))
        total = sum((_amount(item.amount) for item in items), Decimal(0))

        data = {
            'amount': round_money(total),
            'category': (category or '').strip() or ", ".join(categories) or GROUP_CATEGORY_DEFAULT,
            'date': items[0].date or self.clock().date().isoformat(),
            'note': "\n".join(f"[{item.date}] {item.category}: {item.note}" for item in items),
            'created': self.clock().isoformat(),
        }
        group_id = await self.expense_repo.replace_with_group(unique_ids, data)
        buchhaltung_logger.info(f"✓ {len(unique_ids)} Ausgaben gruppiert → {group_id} ({data['amount']:.2f} €)")
        return Expense(id=group_id, **data)

    # ═══════════════════════════════════════════════════════════════
    # AUSWERTUNG
    # ═══════════════════════════════════════════════════════════════

    async def list_expenses(self, year: Optional[int] = None, month: Optional[int] = None) -> List[Expense]:
        """Alle Einträge (neueste zuerst), optional auf einen Monat begrenzt"""
        if year is not None and month is not None:
            start_day, end_day = month_date_strings(year, month)
            docs = await self.expense_repo.find_by_date_range(start_day, end_day)
        else:
            docs = await self.expense_repo.find_all()
        return [self._to_expense(doc) for doc in docs]

    async def monthly_summary(self, year: int, month: int) -> ExpenseSummary:
        summary = ExpenseSummary(year=year, month=month)
        try:
            expenses = await self.list_expenses(year, month)
        except StoreUnavailableError as e:
            buchhaltung_logger.error(f"✗ Ausgaben {month:02d}/{year} nicht ladbar: {e}")
            summary.data_status = DataStatus.QUERY_FAILED
            summary.error = str(e)
            return summary

        total = Decimal(0)
        revenue = Decimal(0)
        by_category: Dict[str, Decimal] = {}
        for expense in expenses:
            amount = _amount(expense.amount)
            if expense.category == self.revenue_category:
                revenue += amount
                continue
            total += amount
            by_category[expense.category] = by_category.get(expense.category, Decimal(0)) + amount

        summary.expenses = expenses
        summary.total_expenses = round_money(total)
        summary.revenue_entries = round_money(revenue)
        summary.category_breakdown = {k: round_money(v) for k, v in by_category.items()}
        if not expenses:
            summary.data_status = DataStatus.NO_DATA
        return summary

    @staticmethod
    def compute_profit(order_revenue: float, summary: ExpenseSummary) -> float:
        """Bestellumsatz + Umsatz-Einträge - Ausgaben"""
        profit = _amount(order_revenue) + _amount(summary.revenue_entries) - _amount(summary.total_expenses)
        return round_money(profit)

    async def ledger(self, year: int, month: int) -> List[Dict]:
        """Ausgaben eines Monats (Basis für CSV-Export), älteste zuerst"""
        expenses = await self.list_expenses(year, month)
        return [
            {
                "ausgabe_id": e.id,
                "datum": e.date,
                "kategorie": e.category,
                "betrag": e.amount,
                "notiz": e.note,
            }
            for e in sorted(expenses, key=lambda e: e.date)
        ]
