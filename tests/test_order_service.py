"""Tests: Bestellannahme und Admin-Funktionen"""

import pytest

from modules.bestellungen.schemas import AvailabilityStatus, OrderSubmission
from tests.conftest import FailingStore, FakeEmailSender, fixed_clock, make_order


def _submission(**overrides):
    data = {
        "name": "Clara Kunde",
        "email": "clara@example.com",
        "telefon": "0170 1234567",
        "durchmesser_cm": 18,
        "extras": ["deko"],
        "wunsch_datum": "2024-06-20",
        "uhrzeit": "14:00",
        "anlass": "geburtstag",
    }
    data.update(overrides)
    return OrderSubmission(**data)


@pytest.mark.asyncio
async def test_submit_order_stores_order_and_customer(services, store, email_sender):
    result = await services.orders.submit_order(_submission())

    assert result.success
    assert result.gesamtpreis == 73.0
    assert result.notification_sent

    order = (await store.get("orders", result.order_id)).data
    assert order["status"] == "neu"
    assert order["wunschtermin"] == {"datum": "2024-06-20", "uhrzeit": "14:00"}
    assert order["details"]["kategorie"] == "normal"
    assert order["customerId"] == result.customer_id
    assert order["created"] == fixed_clock().isoformat()

    customer = (await store.get("customers", result.customer_id)).data
    assert customer["email"] == "clara@example.com"
    assert email_sender.sent[0]["variables"]["order_id"] == result.order_id


@pytest.mark.asyncio
async def test_repeat_customer_is_reused(services):
    first = await services.orders.submit_order(_submission())
    second = await services.orders.submit_order(_submission(wunsch_datum="2024-06-21", telefon="0171"))
    assert first.customer_id == second.customer_id


@pytest.mark.asyncio
async def test_too_early_submission_stores_nothing(services, store, email_sender):
    result = await services.orders.submit_order(_submission(wunsch_datum="2024-06-03"))

    assert not result.success
    assert result.availability.status == AvailabilityStatus.TOO_EARLY
    assert store.dump("orders") == {}
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_full_day_rejects_submission(services, store):
    for i in range(5):
        await store.set("orders", f"o{i}", make_order(wunschDatum="2024-06-20"))

    result = await services.orders.submit_order(_submission())
    assert not result.success
    assert result.availability.status == AvailabilityStatus.CAPACITY_FULL


@pytest.mark.asyncio
async def test_mail_failure_does_not_undo_order(store, clock):
    from api.container import Services
    services = Services(store=store, email_client=FakeEmailSender(fail=True), clock=clock)

    result = await services.orders.submit_order(_submission())
    assert result.success
    assert not result.notification_sent
    assert result.notification_error
    assert len(store.dump("orders")) == 1


@pytest.mark.asyncio
async def test_store_outage_is_not_reported_as_success(clock):
    from api.container import Services
    services = Services(store=FailingStore(), email_client=FakeEmailSender(), clock=clock)

    result = await services.orders.submit_order(_submission())
    assert not result.success
    assert result.availability.status == AvailabilityStatus.UNKNOWN


@pytest.mark.asyncio
async def test_update_status_normalizes_and_notifies(services, store, email_sender):
    await store.set("orders", "a", make_order())

    result = await services.orders.update_status("a", "In-Vorbereitung")
    assert result.success
    assert result.status == "in Vorbereitung"
    assert result.email_sent
    assert (await store.get("orders", "a")).data["status"] == "in Vorbereitung"

    silent = await services.orders.update_status("a", "fertig", notify=False)
    assert not silent.email_sent
    assert len(email_sender.sent) == 1

    missing = await services.orders.update_status("fehlt", "fertig")
    assert not missing.success


@pytest.mark.asyncio
async def test_update_status_of_order_deleted_meanwhile(services, store, email_sender, monkeypatch):
    await store.set("orders", "a", make_order())
    original_get = services.order_repo.get

    async def get_then_delete(order_id):
        doc = await original_get(order_id)
        await store.delete("orders", order_id)
        return doc

    monkeypatch.setattr(services.order_repo, "get", get_then_delete)

    result = await services.orders.update_status("a", "fertig")
    assert not result.success
    assert result.error == "Bestellung a nicht gefunden"
    assert email_sender.sent == []
    assert await store.get("orders", "a") is None


@pytest.mark.asyncio
async def test_update_price_rounds_half_up(services, store):
    await store.set("orders", "a", make_order())
    assert await services.orders.update_price("a", 10.005)
    assert (await store.get("orders", "a")).data["gesamtpreis"] == 10.01
    assert not await services.orders.update_price("fehlt", 5)
    with pytest.raises(ValueError):
        await services.orders.update_price("a", -1)


@pytest.mark.asyncio
async def test_delete_order(services, store):
    await store.set("orders", "a", make_order())
    assert await services.orders.delete_order("a")
    assert not await services.orders.delete_order("a")


@pytest.mark.asyncio
async def test_active_orders_sorted_by_status_then_date(services, store):
    await store.set("orders", "done", make_order(status="fertig", wunschDatum="2024-06-10"))
    await store.set("orders", "new_late", make_order(wunschDatum="2024-06-30"))
    await store.set("orders", "new_early", make_order(wunschtermin={"datum": "2024-06-12"}))
    await store.set("orders", "prep", make_order(status="in-vorbereitung", wunschDatum="2024-06-11"))

    orders = await services.orders.list_active_orders()
    assert [o["id"] for o in orders] == ["new_early", "new_late", "prep", "done"]
    assert orders[0]["wunschDatum"] == "2024-06-12"
    assert orders[2]["status"] == "in Vorbereitung"


@pytest.mark.asyncio
async def test_customer_history_newest_first(services, store):
    await store.set("orders", "old", make_order(created="2024-01-01T10:00:00+01:00"))
    await store.set("orders", "new", make_order(created="2024-05-01T10:00:00+02:00"))
    await store.set("orders", "other", make_order(email="ben@example.com"))

    history = await services.orders.customer_order_history("anna@example.com")
    assert [o["id"] for o in history] == ["new", "old"]


@pytest.mark.asyncio
async def test_dashboard_stats(services, store):
    await store.set("orders", "a", make_order(created="2024-06-01T08:00:00+02:00"))
    await store.set("orders", "b", make_order(status="fertig"))
    await store.set("orders", "c", make_order(status="in Vorbereitung"))

    stats = await services.orders.dashboard_stats()
    assert (stats.today, stats.new, stats.in_preparation, stats.finished, stats.total_active) == (1, 1, 1, 1, 3)
