"""Tests: Monatsaggregation für den Kalender"""

from datetime import date, datetime

import pytest

from modules.bestellungen.schemas import DataStatus
from modules.bestellungen.services.calendar_service import MonthlyAggregator, find_dates_in_text
from modules.shared.database.document_store import StoreTimestamp
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import STORE_TZ
from tests.conftest import FailingStore, fixed_clock, make_order


def _aggregator(store, **kwargs):
    kwargs.setdefault("clock", fixed_clock)
    return MonthlyAggregator(OrderRepository(store), **kwargs)


@pytest.mark.asyncio
async def test_scenario_c_both_shapes_counted(store):
    await store.set("orders", "A", make_order(wunschDatum="2024-07-10"))
    await store.set("orders", "B", make_order(
        wunschtermin={"datum": StoreTimestamp.from_date(date(2024, 7, 10))}))

    result = await _aggregator(store).aggregate(2024, 7)
    assert result.counts == {"2024-07-10": 2}
    assert result.data_status == DataStatus.OK
    assert not result.used_fallback


@pytest.mark.asyncio
async def test_order_matching_both_queries_counted_once(store):
    stamp = StoreTimestamp(datetime(2024, 7, 10, 15, 0, tzinfo=STORE_TZ))
    await store.set("orders", "migrated", make_order(
        wunschDatum="2024-07-10", wunschtermin={"datum": stamp, "uhrzeit": "15:00"}))

    aggregator = _aggregator(store)
    first = await aggregator.aggregate(2024, 7)
    second = await aggregator.aggregate(2024, 7)
    assert first.counts == {"2024-07-10": 1}
    assert second.counts == first.counts


@pytest.mark.asyncio
async def test_details_per_day(store):
    await store.set("orders", "A", make_order(
        name="Clara", status="in-vorbereitung",
        details={"durchmesserCm": 22}, wunschtermin={"datum": "2024-07-31", "uhrzeit": "11:00"}))

    result = await _aggregator(store).aggregate(2024, 7)
    summary = result.details["2024-07-31"][0]
    assert summary.customer_name == "Clara"
    assert summary.size_category == "large"
    assert summary.status == "in Vorbereitung"
    assert summary.desired_time == "11:00"


@pytest.mark.asyncio
async def test_month_boundaries_are_respected(store):
    await store.set("orders", "june", make_order(wunschDatum="2024-06-30"))
    await store.set("orders", "july", make_order(wunschDatum="2024-07-01"))
    await store.set("orders", "august", make_order(wunschDatum="2024-08-01"))
    await store.set("orders", "stamp_aug", make_order(
        wunschtermin={"datum": StoreTimestamp(datetime(2024, 8, 1, 0, 0, tzinfo=STORE_TZ))}))

    result = await _aggregator(store).aggregate(2024, 7)
    assert result.counts == {"2024-07-01": 1}


@pytest.mark.asyncio
async def test_leap_day_is_included(store):
    await store.set("orders", "leap", make_order(wunschDatum="2024-02-29"))
    result = await _aggregator(store).aggregate(2024, 2)
    assert result.counts == {"2024-02-29": 1}


@pytest.mark.asyncio
async def test_unreadable_dates_are_excluded_and_counted(store):
    await store.set("orders", "ok", make_order(wunschDatum="2024-07-10"))
    await store.set("orders", "bad", make_order(wunschtermin={"datum": "2024-07-1x"}))

    result = await _aggregator(store).aggregate(2024, 7)
    assert result.counts == {"2024-07-10": 1}
    assert result.excluded == 1


@pytest.mark.asyncio
async def test_fallback_scan_finds_unknown_shapes(store):
    await store.set("orders", "legacy", make_order(
        created="2024-07-02T10:00:00+02:00", notiz="Abholung am 12.07.2024 gegen Mittag"))

    result = await _aggregator(store).aggregate(2024, 7)
    assert result.used_fallback
    assert result.counts == {"2024-07-12": 1}
    assert result.details["2024-07-12"][0].is_fallback


@pytest.mark.asyncio
async def test_fallback_ignores_bookkeeping_dates(store):
    await store.set("orders", "legacy", make_order(created="2024-07-02T10:00:00+02:00"))

    result = await _aggregator(store).aggregate(2024, 7)
    assert result.counts == {}
    assert result.data_status == DataStatus.NO_DATA
    assert not result.used_fallback


@pytest.mark.asyncio
async def test_fallback_skips_orders_with_readable_desired_date(store):
    await store.set("orders", "august", make_order(
        wunschtermin={"datum": StoreTimestamp.from_date(date(2024, 8, 3))},
        sonderwunsch="Bitte Bestätigung bis 28.07.2024"))
    await store.set("orders", "kaputt", make_order(
        wunschtermin={"datum": "irgendwann"}, notiz="Abholung 20.07.2024"))
    aggregator = _aggregator(store)

    july = await aggregator.aggregate(2024, 7)
    august = await aggregator.aggregate(2024, 8)

    assert july.counts == {"2024-07-20": 1}
    assert [s.id for s in july.details["2024-07-20"]] == ["kaputt"]
    assert august.counts == {"2024-08-03": 1}
    assert not august.used_fallback


@pytest.mark.asyncio
async def test_fallback_is_bounded(store):
    for i in range(5):
        await store.set("orders", f"legacy-{i}", make_order(notiz="Termin 2024-07-15"))

    result = await _aggregator(store, fallback_limit=2).aggregate(2024, 7)
    assert result.counts == {"2024-07-15": 2}


@pytest.mark.asyncio
async def test_query_failure_is_distinct_from_no_data():
    result = await _aggregator(FailingStore()).aggregate(2024, 7)
    assert result.data_status == DataStatus.QUERY_FAILED
    assert result.error
    assert result.counts == {}


@pytest.mark.asyncio
async def test_public_calendar_day_status(store):
    for i in range(5):
        await store.set("orders", f"full-{i}", make_order(wunschDatum="2024-06-20"))
    for i in range(3):
        await store.set("orders", f"busy-{i}", make_order(wunschDatum="2024-06-21"))
    await store.set("orders", "past", make_order(wunschDatum="2024-05-31"))

    calendar = await _aggregator(store, daily_limit=5).public_calendar(2024, 6)
    days = {d.date: d for d in calendar.days}
    assert len(calendar.days) == 30
    assert days["2024-06-20"].status == "full"
    assert days["2024-06-20"].free == 0
    assert days["2024-06-21"].status == "busy"
    assert days["2024-06-21"].free == 2
    assert days["2024-06-22"].status == "available"
    assert days["2024-06-01"].status == "available"


@pytest.mark.asyncio
async def test_public_calendar_marks_past_days(store):
    calendar = await _aggregator(store).public_calendar(2024, 5)
    assert {d.status for d in calendar.days} == {"past"}


@pytest.mark.asyncio
async def test_public_calendar_reports_failure():
    calendar = await _aggregator(FailingStore()).public_calendar(2024, 7)
    assert calendar.data_status == DataStatus.QUERY_FAILED
    assert calendar.days == []


def test_find_dates_in_text_keeps_order():
    text = '{"notiz": "statt 01.08.2024 lieber 2024-07-30", "tel": "0176-2024-07-30999"}'
    assert find_dates_in_text(text) == [date(2024, 8, 1), date(2024, 7, 30)]


def test_negative_limits_are_rejected(store):
    with pytest.raises(ValueError):
        MonthlyAggregator(OrderRepository(store), fallback_limit=-1)
