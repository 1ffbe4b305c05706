"""Tests: Admin- und Kunden-Benachrichtigungen"""

import asyncio

import pytest

from modules.bestellungen.models import OrderStatus
from modules.bestellungen.services.notification_service import NotificationService
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from tests.conftest import FakeEmailSender, fixed_clock, make_order


def _service(store, sender):
    return NotificationService(sender, OrderRepository(store), fixed_clock,
                               service_id="service_test", new_order_template="tpl_new",
                               status_template="tpl_status")


@pytest.mark.asyncio
async def test_each_new_order_is_notified_once(store, email_sender):
    await store.set("orders", "a", make_order())
    await store.set("orders", "b", make_order(status="fertig"))
    service = _service(store, email_sender)

    first = await service.check_for_new_orders()
    second = await service.check_for_new_orders()

    assert first == {'found': 1, 'notified': 1, 'errors': 0, 'success': True}
    assert second['found'] == 0
    assert len(email_sender.sent) == 1
    assert email_sender.sent[0]["template_id"] == "tpl_new"
    assert email_sender.sent[0]["variables"]["order_id"] == "a"


@pytest.mark.asyncio
async def test_overlapping_runs_do_not_double_send(store, email_sender):
    for i in range(3):
        await store.set("orders", f"o{i}", make_order())
    service = _service(store, email_sender)

    await asyncio.gather(service.check_for_new_orders(), service.check_for_new_orders())
    assert sorted(m["variables"]["order_id"] for m in email_sender.sent) == ["o0", "o1", "o2"]


@pytest.mark.asyncio
async def test_failed_send_is_retried_next_run(store):
    await store.set("orders", "a", make_order())
    sender = FakeEmailSender(fail=True)
    service = _service(store, sender)

    failed = await service.check_for_new_orders()
    assert failed['errors'] == 1
    assert failed['success'] is False

    sender.fail = False
    retried = await service.check_for_new_orders()
    assert retried['notified'] == 1


@pytest.mark.asyncio
async def test_sent_marker_survives_restart(store, email_sender):
    await store.set("orders", "a", make_order())
    await _service(store, email_sender).check_for_new_orders()

    assert (await store.get("orders", "a")).data["adminNotifiedAt"] == fixed_clock().isoformat()

    restarted = _service(store, email_sender)
    again = await restarted.check_for_new_orders()
    assert again['found'] == 0
    assert len(email_sender.sent) == 1


@pytest.mark.asyncio
async def test_tracking_does_not_grow_with_handled_orders(store, email_sender):
    service = _service(store, email_sender)
    for i in range(20):
        await store.set("orders", f"o{i}", make_order())
        await service.check_for_new_orders()
        await store.update("orders", f"o{i}", {"status": "fertig"})
        await store.delete("orders", f"o{i}")

    assert len(email_sender.sent) == 20
    assert service._in_flight == set()


@pytest.mark.asyncio
async def test_order_leaving_neu_is_not_notified(store, email_sender):
    await store.set("orders", "a", make_order())
    service = _service(store, email_sender)
    original_get = service.order_repo.get

    async def get_after_status_change(order_id):
        await store.update("orders", order_id, {"status": "angenommen"})
        return await original_get(order_id)

    service.order_repo.get = get_after_status_change
    result = await service.check_for_new_orders()

    assert result['notified'] == 0
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_submitted_order_is_marked(services, store, email_sender):
    await store.set("orders", "a", make_order())
    await services.notifications.send_new_order_notification("a", make_order())

    assert "adminNotifiedAt" in (await store.get("orders", "a")).data
    assert (await services.notifications.check_for_new_orders())['found'] == 0


@pytest.mark.asyncio
async def test_new_order_params(store, email_sender):
    order = make_order(wunschtermin={"datum": "2024-06-20", "uhrzeit": "14:00"},
                       details={"durchmesserCm": 18, "extras": ["deko"], "lieferung": "20km"})
    result = await _service(store, email_sender).send_new_order_notification("x1", order)

    assert result.success
    params = email_sender.sent[0]["variables"]
    assert params["wunschtermin"] == "20.06.2024 14:00 Uhr"
    assert params["order_size"] == "18 cm"
    assert params["order_extras"] == "Deko"
    assert params["delivery_type"] == "Lieferung bis 20 km"
    assert params["total_price"] == "55.00"
    assert params["order_timestamp"] == "01.06.2024, 10:00:00"


@pytest.mark.asyncio
async def test_status_email_only_for_customer_facing_statuses(store, email_sender):
    service = _service(store, email_sender)
    order = make_order(customerId="c1", details={"durchmesserCm": 18, "extras": []})

    assert await service.send_status_email("a", order, OrderStatus.NEU) is None
    assert await service.send_status_email("a", make_order(email=""), OrderStatus.FERTIG) is None

    result = await service.send_status_email("a", order, OrderStatus.FERTIG)
    assert result.success
    params = email_sender.sent[-1]["variables"]
    assert params["to_email"] == "anna@example.com"
    assert params["status_title"] == "Bestellung fertig"
    assert params["delivery_message"].startswith("Ihre Bestellung kann abgeholt werden")
    assert params["order_items"] == "18 cm Torte mit Keine"


@pytest.mark.asyncio
async def test_connector_exception_becomes_failed_result(store):
    class BrokenSender(FakeEmailSender):
        async def send(self, service_id, template_id, variables, job_id=None):
            raise RuntimeError("kaputt")

    result = await _service(store, BrokenSender()).send_new_order_notification("a", make_order())
    assert not result.success
    assert "kaputt" in result.error
