"""Export Service - Buchhaltungsdaten als JSON oder CSV (pandas)"""

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from modules.shared.logging import buchhaltung_logger
from ..schemas import AccountingReport
from .expense_service import EXPENSE_CSV_COLUMNS, ExpenseService
from .revenue_service import RevenueAggregator, occasion_label

CSV_COLUMNS = [
    "bestellung_id", "eingang", "kunde", "status", "groesse",
    "kategorie", "extras", "anlass", "preis",
]


class ExportService:

    def __init__(self, revenue: RevenueAggregator, expenses: Optional[ExpenseService] = None):
        self.revenue = revenue
        self.expenses = expenses

    @staticmethod
    def report_to_export(report: AccountingReport) -> Dict:
        """JSON-Export: aktueller Monat, Jahr und Kurzfassung"""
        current = report.current
        yearly = report.yearly
        top_occasion: Optional[str] = None
        if current.occasion_breakdown:
            top_occasion = occasion_label(max(current.occasion_breakdown, key=current.occasion_breakdown.get))

        exported = {
            "exportDate": report.generated_at,
            "currentMonth": current.model_dump(mode="json"),
            "previousMonth": previous_summary(report),
            "yearly": yearly.model_dump(mode="json"),
            "trends": {k: v.model_dump() for k, v in report.trends.items()},
            "summary": {
                "period": current.period,
                "totalRevenue": current.total_revenue,
                "orderCount": current.order_count,
                "averageOrderValue": current.average_order_value,
                "yearlyRevenue": yearly.total_revenue,
                "yearlyOrders": yearly.order_count,
                "topOccasion": top_occasion,
                "dataStatus": current.data_status.value,
            },
        }
        if report.expenses is not None:
            exported["expenses"] = report.expenses.model_dump(mode="json")
            exported["summary"]["totalExpenses"] = report.expenses.total_expenses
            exported["summary"]["profit"] = report.profit
        return exported

    @staticmethod
    def _write_csv(df: pd.DataFrame, output_path: Optional[Path]) -> str:
        """CSV mit Semikolon und deutschem Dezimalkomma; optional zusätzlich als Datei"""
        content = df.to_csv(sep=";", index=False, decimal=",")
        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(output_path, sep=";", index=False, decimal=",", encoding="utf-8")
            buchhaltung_logger.info(f"✓ CSV exportiert: {output_path.name} ({len(df)} Zeilen)")
        return content

    @staticmethod
    def ledger_to_dataframe(rows: List[Dict]) -> pd.DataFrame:
        return pd.DataFrame(rows, columns=CSV_COLUMNS)

    async def export_csv(self, year: int, month: int, output_path: Optional[Path] = None) -> str:
        """
        Monats-Buchungsliste als CSV

        Returns:
            CSV-Inhalt als String (wird zusätzlich geschrieben, wenn output_path gesetzt)
        """
        rows = await self.revenue.ledger(year, month)
        return self._write_csv(self.ledger_to_dataframe(rows), output_path)

    async def export_expenses_csv(self, year: int, month: int, output_path: Optional[Path] = None) -> str:
        """Ausgaben eines Monats als CSV (gleiches Format wie die Buchungsliste)"""
        if self.expenses is None:
            raise RuntimeError("ExportService ohne ExpenseService konfiguriert")
        rows = await self.expenses.ledger(year, month)
        return self._write_csv(pd.DataFrame(rows, columns=EXPENSE_CSV_COLUMNS), output_path)


def previous_summary(report: AccountingReport) -> Dict:
    previous = report.previous
    return {
        "period": previous.period,
        "totalRevenue": previous.total_revenue,
        "orderCount": previous.order_count,
        "dataStatus": previous.data_status.value,
    }
