"""Tests: Umsatzstatistik, Trends und Buchhaltungs-Export"""

import pytest

from modules.bestellungen.schemas import DataStatus
from modules.buchhaltung.services.export_service import CSV_COLUMNS, ExportService
from modules.buchhaltung.services.revenue_service import (
    RevenueAggregator,
    category_for_extras,
    occasion_label,
)
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from tests.conftest import FailingStore, fixed_clock, make_order


def _aggregator(store):
    return RevenueAggregator(
        [OrderRepository(store), OrderRepository(store, "archived_orders")], fixed_clock
    )


async def _seed_prices(store, prices, created="2024-06-03T12:00:00+02:00"):
    for i, price in enumerate(prices):
        await store.set("orders", f"o{i}", make_order(created=created, gesamtpreis=price))


@pytest.mark.asyncio
async def test_scenario_d_invalid_price_counts_as_zero(store):
    await _seed_prices(store, [20, 30, "invalid"])

    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.total_revenue == 50.0
    assert stats.order_count == 3
    assert stats.invalid_prices == 1
    assert stats.average_order_value == 16.67
    assert stats.data_status == DataStatus.OK


@pytest.mark.asyncio
async def test_money_is_summed_exactly_and_rounded_half_up(store):
    await _seed_prices(store, ["10.005", "10.005"])
    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.total_revenue == 20.01


@pytest.mark.asyncio
async def test_breakdowns(store):
    await store.set("orders", "a", make_order(
        created="2024-06-03T12:00:00+02:00", gesamtpreis=40, anlass="Geburtstag",
        details={"durchmesserCm": 12, "extras": []}))
    await store.set("orders", "b", make_order(
        created="2024-06-04T12:00:00+02:00", gesamtpreis=90, status="fertig",
        details={"durchmesserCm": 22, "extras": ["deko", "obst", "schrift"]}))

    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.category_breakdown == {"basic": 40.0, "premium": 90.0}
    assert stats.size_breakdown == {"mini": 40.0, "large": 90.0}
    assert stats.occasion_breakdown == {"geburtstag": 40.0, "unspecified": 90.0}
    assert stats.status_breakdown["neu"] == 40.0
    assert stats.status_breakdown["fertig"] == 90.0
    assert stats.status_breakdown["abgeholt"] == 0.0


@pytest.mark.asyncio
async def test_only_orders_created_in_the_month_count(store):
    await store.set("orders", "may", make_order(created="2024-05-31T23:30:00+02:00", gesamtpreis=10))
    await store.set("orders", "june", make_order(created="2024-05-31T22:30:00Z", gesamtpreis=20))
    await store.set("orders", "july", make_order(created="2024-07-01T00:00:00+02:00", gesamtpreis=40))

    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.order_count == 1
    assert stats.total_revenue == 20.0


@pytest.mark.asyncio
async def test_empty_month_is_no_data(store):
    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.data_status == DataStatus.NO_DATA
    assert stats.total_revenue == 0.0
    assert stats.average_order_value == 0.0


@pytest.mark.asyncio
async def test_query_failure_is_reported():
    stats = await _aggregator(FailingStore()).monthly_stats(2024, 6)
    assert stats.data_status == DataStatus.QUERY_FAILED
    assert stats.error


@pytest.mark.asyncio
async def test_archived_orders_are_counted_once(store):
    await store.set("orders", "a", make_order(created="2024-06-03T12:00:00+02:00", gesamtpreis=20))
    await store.set("archived_orders", "a", make_order(
        created="2024-06-03T12:00:00+02:00", gesamtpreis=20, originalOrderId="a"))
    await store.set("archived_orders", "b", make_order(
        created="2024-06-05T12:00:00+02:00", gesamtpreis=30, originalOrderId="b"))

    stats = await _aggregator(store).monthly_stats(2024, 6)
    assert stats.order_count == 2
    assert stats.total_revenue == 50.0


@pytest.mark.asyncio
async def test_yearly_stats_has_twelve_months(store):
    await store.set("orders", "jan", make_order(created="2024-01-15T12:00:00+01:00", gesamtpreis=10))
    await store.set("orders", "jun", make_order(created="2024-06-03T12:00:00+02:00", gesamtpreis=25))

    stats = await _aggregator(store).yearly_stats(2024)
    assert stats.month is None
    assert sorted(stats.monthly_breakdown) == list(range(1, 13))
    assert stats.monthly_breakdown[1].revenue == 10.0
    assert stats.monthly_breakdown[6].orders == 1
    assert stats.monthly_breakdown[12].orders == 0
    assert stats.total_revenue == 35.0


def test_scenario_e_no_change_from_zero():
    trend = RevenueAggregator.trend(0, 0)
    assert (trend.percent_text, trend.direction) == ("0%", "neutral")


@pytest.mark.parametrize("current, previous, text, direction", [
    (5, 0, "+100%", "up"),
    (110, 100, "+10%", "up"),
    (90, 100, "-10%", "down"),
    (100.9, 100, "+1%", "neutral"),
    (99.6, 100, "0%", "neutral"),
    (3, 2, "+50%", "up"),
])
def test_trend(current, previous, text, direction):
    trend = RevenueAggregator.trend(current, previous)
    assert trend.percent_text == text
    assert trend.direction == direction


@pytest.mark.asyncio
async def test_report_with_trends(store):
    await store.set("orders", "may", make_order(created="2024-05-10T12:00:00+02:00", gesamtpreis=100))
    await store.set("orders", "june", make_order(created="2024-06-10T12:00:00+02:00", gesamtpreis=150))

    report = await _aggregator(store).build_report(2024, 6)
    assert report.current.total_revenue == 150.0
    assert report.previous.total_revenue == 100.0
    assert report.previous.month == 5
    assert report.yearly.total_revenue == 250.0
    assert report.trends["revenue"].percent_text == "+50%"
    assert report.trends["orders"].direction == "neutral"


@pytest.mark.asyncio
async def test_report_without_trends_on_failure():
    report = await _aggregator(FailingStore()).build_report(2024, 1)
    assert report.trends == {}
    assert report.previous.year == 2023
    assert report.previous.month == 12


def test_category_and_occasion_helpers():
    assert [category_for_extras(n) for n in (0, 1, 2, 3)] == ["basic", "standard", "standard", "premium"]
    assert occasion_label("unspecified") == "Nicht angegeben"
    assert occasion_label("einschulung") == "Einschulung"


@pytest.mark.asyncio
async def test_ledger_is_sorted_by_created(store):
    await store.set("orders", "late", make_order(created="2024-06-20T12:00:00+02:00", name="Zoe"))
    await store.set("orders", "early", make_order(created="2024-06-02T08:15:00+02:00", name="Ben",
                                                  details={"durchmesserCm": 18, "extras": ["deko"]}))

    rows = await _aggregator(store).ledger(2024, 6)
    assert [row["bestellung_id"] for row in rows] == ["early", "late"]
    assert rows[0]["eingang"] == "02.06.2024 08:15"
    assert rows[0]["extras"] == "deko"
    assert rows[0]["kategorie"] == "standard"


@pytest.mark.asyncio
async def test_export_csv(store, tmp_path):
    await store.set("orders", "a", make_order(created="2024-06-03T12:00:00+02:00", gesamtpreis="12.5"))
    export = ExportService(_aggregator(store))

    target = tmp_path / "exports" / "juni.csv"
    content = await export.export_csv(2024, 6, target)
    lines = content.splitlines()
    assert lines[0] == ";".join(CSV_COLUMNS)
    assert lines[1].startswith("a;03.06.2024 12:00;Anna Beispiel;neu;normal;basic;")
    assert lines[1].endswith(";12,5")
    assert target.exists()


@pytest.mark.asyncio
async def test_export_csv_empty_month_has_header_only(store):
    content = await ExportService(_aggregator(store)).export_csv(2024, 6)
    assert content.splitlines() == [";".join(CSV_COLUMNS)]


@pytest.mark.asyncio
async def test_report_to_export(store):
    await store.set("orders", "a", make_order(created="2024-06-03T12:00:00+02:00", anlass="hochzeit"))
    report = await _aggregator(store).build_report(2024, 6)

    exported = ExportService.report_to_export(report)
    assert exported["summary"]["topOccasion"] == "Hochzeit"
    assert exported["summary"]["totalRevenue"] == 55.0
    assert exported["previousMonth"]["dataStatus"] == "no_data"
    assert exported["exportDate"] == report.generated_at
