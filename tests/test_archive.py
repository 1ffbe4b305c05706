"""Tests: Archivierung (atomar, automatisch, Übersicht)"""

import pytest

from modules.bestellungen.services.archive_service import ArchiveService
from modules.shared.database.repositories.bestellungen.archive_repository import ArchiveRepository
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.errors import PartialArchiveFailure
from tests.conftest import FailingBatchStore, fixed_clock, make_order


def _service(store, days=7):
    return ArchiveService(OrderRepository(store), ArchiveRepository(store), fixed_clock, days)


@pytest.mark.asyncio
async def test_archive_order_moves_document(store):
    await store.set("orders", "a", make_order(status="fertig"))

    result = await _service(store).archive_order("a")
    assert result.success
    assert result.order_ids == ["a"]
    assert await store.get("orders", "a") is None

    archived = (await store.get("archived_orders", "a")).data
    assert archived["originalOrderId"] == "a"
    assert archived["manualArchived"] is True
    assert archived["archivedAt"] == fixed_clock().isoformat()
    assert archived["name"] == "Anna Beispiel"


@pytest.mark.asyncio
async def test_archive_unknown_order(store):
    result = await _service(store).archive_order("fehlt")
    assert not result.success
    assert "fehlt" in result.error


@pytest.mark.asyncio
async def test_failed_batch_leaves_orders_untouched():
    store = FailingBatchStore()
    await store.set("orders", "a", make_order(status="fertig"))
    await store.set("orders", "b", make_order(status="Fertig"))

    with pytest.raises(PartialArchiveFailure) as exc_info:
        await _service(store).archive_all_finished()

    assert sorted(exc_info.value.order_ids) == ["a", "b"]
    assert sorted(store.dump("orders")) == ["a", "b"]
    assert store.dump("archived_orders") == {}


@pytest.mark.asyncio
async def test_archive_all_finished_ignores_other_statuses(store):
    await store.set("orders", "done", make_order(status="fertig"))
    await store.set("orders", "open", make_order(status="neu"))

    result = await _service(store).archive_all_finished()
    assert result.archived == 1
    assert list(store.dump("orders")) == ["open"]


@pytest.mark.asyncio
async def test_auto_archive_uses_created_cutoff(store):
    await store.set("orders", "old", make_order(status="fertig", created="2024-05-20T09:00:00+02:00"))
    await store.set("orders", "recent", make_order(status="fertig", created="2024-05-30T09:00:00+02:00"))
    await store.set("orders", "old_open", make_order(status="neu", created="2024-05-01T09:00:00+02:00"))

    service = _service(store, days=7)
    result = await service.auto_archive_old_orders()
    assert result.order_ids == ["old"]
    assert (await store.get("archived_orders", "old")).data["autoArchived"] is True

    again = await service.auto_archive_old_orders()
    assert again.archived == 0
    assert sorted(store.dump("orders")) == ["old_open", "recent"]


def test_negative_retention_is_rejected(store):
    with pytest.raises(ValueError):
        _service(store, days=-1)


@pytest.mark.asyncio
async def test_list_archives_grouped_by_month(store):
    await store.set("archived_orders", "a", make_order(archivedAt="2024-05-03T10:00:00+02:00"))
    await store.set("archived_orders", "b", make_order(archivedAt="2024-06-01T08:00:00+02:00"))
    await store.set("archived_orders", "c", make_order(archivedAt="2024-05-28T10:00:00+02:00"))
    await store.set("archived_orders", "d", make_order())

    months = await _service(store).list_archives()
    assert [m.month_key for m in months] == ["2024-06", "2024-05", "unbekannt"]
    assert months[0].label == "Juni 2024"
    assert sorted(o["id"] for o in months[1].orders) == ["a", "c"]
