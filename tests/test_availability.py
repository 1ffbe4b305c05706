"""Tests: Vorlaufzeit und Tageskapazität"""

from datetime import date, datetime, timedelta

import pytest

from modules.bestellungen.schemas import AvailabilityStatus, CountingBasis, DataStatus
from modules.bestellungen.services.availability_service import (
    REASON_OK,
    AvailabilityConfig,
    OrderAvailabilityEngine,
    parse_candidate_date,
)
from modules.shared.database.document_store import StoreTimestamp
from modules.shared.database.memory_store import InMemoryDocumentStore
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.dates import STORE_TZ
from modules.shared.errors import ValidationError
from tests.conftest import FailingStore, fixed_clock, make_order

TODAY = date(2024, 6, 1)


def _engine(store, **config):
    return OrderAvailabilityEngine(OrderRepository(store), AvailabilityConfig(**config), fixed_clock)


async def _seed_desired(store, day: str, count: int):
    for i in range(count):
        await store.set("orders", f"{day}-{i}", make_order(wunschtermin={"datum": day}))


def test_scenario_a_too_early_with_minimum_date():
    assert OrderAvailabilityEngine.is_too_early(date(2024, 6, 5), TODAY, 7) is True
    assert OrderAvailabilityEngine.minimum_acceptable_date(TODAY, 7) == date(2024, 6, 8)


@pytest.mark.parametrize("offset", range(-3, 12))
def test_too_early_matches_day_arithmetic(offset):
    candidate = datetime(2024, 6, 1, 23, 59, tzinfo=STORE_TZ) + timedelta(days=offset)
    assert OrderAvailabilityEngine.is_too_early(candidate, TODAY, 7) == (candidate.date() < TODAY + timedelta(days=7))


def test_lead_time_result_reasons(store):
    engine = _engine(store, lead_days=7)
    accepted = engine.can_accept_by_lead_time("2024-06-08")
    assert accepted.accepted and accepted.reason == REASON_OK
    rejected = engine.can_accept_by_lead_time("07.06.2024")
    assert not rejected.accepted
    assert rejected.minimum_date == "2024-06-08"
    assert "7 Tagen" in rejected.reason


def test_negative_lead_days_is_a_programmer_error():
    with pytest.raises(ValueError):
        OrderAvailabilityEngine.minimum_acceptable_date(TODAY, -1)


@pytest.mark.parametrize("count, limit", [(0, 5), (4, 5), (5, 5), (7, 5), (0, 0)])
def test_capacity_decision_property(count, limit):
    result = OrderAvailabilityEngine.capacity_decision(count, limit)
    assert result.accepted == (count < limit)
    assert result.remaining >= 0


def test_negative_daily_limit_is_rejected():
    with pytest.raises(ValueError):
        OrderAvailabilityEngine.capacity_decision(0, -1)
    with pytest.raises(ValueError):
        AvailabilityConfig(daily_limit=-1)


@pytest.mark.asyncio
async def test_scenario_b_capacity_full(store):
    await _seed_desired(store, "2024-06-20", 5)
    result = await _engine(store, daily_limit=5).can_accept_by_capacity("2024-06-20")
    assert result.accepted is False
    assert result.remaining == 0
    assert result.current_count == 5


@pytest.mark.asyncio
async def test_count_by_desired_date_reads_both_shapes(store):
    await store.set("orders", "string", make_order(wunschDatum="2024-06-20"))
    await store.set("orders", "nested", make_order(wunschtermin={"datum": "2024-06-20T00:00:00"}))
    await store.set("orders", "stamp", make_order(
        wunschtermin={"datum": StoreTimestamp.from_date(date(2024, 6, 20))}))
    await store.set("orders", "both", make_order(
        wunschDatum="2024-06-20", wunschtermin={"datum": StoreTimestamp.from_date(date(2024, 6, 20))}))
    await store.set("orders", "other", make_order(wunschDatum="2024-06-21"))

    count = await _engine(store).count_orders_on_date("2024-06-20", CountingBasis.DESIRED_DATE)
    assert count == 4


@pytest.mark.asyncio
async def test_count_by_created_date_uses_whole_local_day(store):
    await store.set("orders", "early", make_order(created="2024-06-19T22:30:00Z"))  # 00:30 lokal
    await store.set("orders", "late", make_order(created="2024-06-20T23:59:59+02:00"))
    await store.set("orders", "stamp", make_order(
        created=StoreTimestamp(datetime(2024, 6, 20, 12, 0, tzinfo=STORE_TZ))))
    await store.set("orders", "before", make_order(created="2024-06-19T21:59:59Z"))  # 23:59 lokal am Vortag

    count = await _engine(store).count_orders_on_date(date(2024, 6, 20), CountingBasis.CREATED)
    assert count == 3


@pytest.mark.asyncio
async def test_evaluate_requires_a_date(store):
    engine = _engine(store)
    for candidate in (None, "", "   "):
        result = await engine.evaluate(candidate)
        assert result.status == AvailabilityStatus.DATE_REQUIRED
        assert not result.accepted


@pytest.mark.asyncio
async def test_evaluate_rejects_invalid_date(store):
    result = await _engine(store).evaluate("31.02.2024")
    assert result.status == AvailabilityStatus.INVALID_DATE


@pytest.mark.asyncio
async def test_lead_time_wins_over_capacity(store):
    await _seed_desired(store, "2024-06-05", 5)
    result = await _engine(store, lead_days=7, daily_limit=5).evaluate("2024-06-05")
    assert result.status == AvailabilityStatus.TOO_EARLY
    assert result.minimum_date == "2024-06-08"


@pytest.mark.asyncio
async def test_evaluate_capacity_full_and_available(store):
    await _seed_desired(store, "2024-06-20", 2)
    engine = _engine(store, daily_limit=2)

    full = await engine.evaluate("2024-06-20")
    assert full.status == AvailabilityStatus.CAPACITY_FULL
    assert full.remaining == 0

    free = await engine.evaluate("2024-06-21")
    assert free.accepted
    assert free.status == AvailabilityStatus.AVAILABLE
    assert free.remaining == 2


@pytest.mark.asyncio
async def test_lead_time_and_limit_are_independent(store):
    await _seed_desired(store, "2024-06-03", 1)
    result = await _engine(store, lead_days=0, daily_limit=10).evaluate("2024-06-03")
    assert result.accepted
    assert result.current_count == 1


@pytest.mark.asyncio
async def test_evaluate_with_override_config(store):
    engine = _engine(store, lead_days=7)
    result = await engine.evaluate("2024-06-02", AvailabilityConfig(lead_days=1))
    assert result.accepted


@pytest.mark.asyncio
async def test_store_failure_is_never_reported_as_available():
    engine = _engine(FailingStore())

    capacity = await engine.can_accept_by_capacity("2024-06-20")
    assert capacity.accepted is False
    assert capacity.data_status == DataStatus.QUERY_FAILED
    assert capacity.current_count is None

    result = await engine.evaluate("2024-06-20")
    assert result.status == AvailabilityStatus.UNKNOWN
    assert not result.accepted


@pytest.mark.asyncio
async def test_daily_order_stats():
    store = InMemoryDocumentStore()
    await store.set("orders", "a", make_order(created="2024-06-01T08:00:00+02:00"))
    await store.set("orders", "b", make_order(created="2024-06-01T09:00:00+02:00"))
    await store.set("orders", "c", make_order(created="2024-05-31T09:00:00+02:00"))

    stats = await _engine(store, daily_limit=4).daily_order_stats(days=3)
    assert [(s.date, s.count, s.percentage) for s in stats] == [
        ("2024-06-01", 2, 50),
        ("2024-05-31", 1, 25),
        ("2024-05-30", 0, 0),
    ]


@pytest.mark.parametrize("candidate, message", [
    (None, "Kein Datum ausgewählt"),
    ("  ", "Kein Datum ausgewählt"),
    ("31.02.2024", "Ungültiges Datum"),
    ("morgen", "Ungültiges Datum"),
])
def test_parse_candidate_date_raises_validation_error(candidate, message):
    with pytest.raises(ValidationError) as exc_info:
        parse_candidate_date(candidate)
    assert str(exc_info.value) == message
    assert exc_info.value.field == "datum"


def test_parse_candidate_date_accepts_both_text_forms():
    assert parse_candidate_date("14.06.2024") == parse_candidate_date("2024-06-14") == date(2024, 6, 14)
