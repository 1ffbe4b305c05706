"""Gemeinsame Fixtures: In-Memory Speicher, feste Uhr, E-Mail Fake"""

from datetime import datetime
from typing import Dict, List, Optional

import pytest

from modules.shared.connectors.base_connector import BaseEmailConnector, EmailResult
from modules.shared.database.document_store import DocumentStore
from modules.shared.database.memory_store import InMemoryDocumentStore
from modules.shared.dates import STORE_TZ
from modules.shared.errors import StoreUnavailableError

FIXED_NOW = datetime(2024, 6, 1, 10, 0, 0, tzinfo=STORE_TZ)


class FakeEmailSender(BaseEmailConnector):
    """Zeichnet alle Sendungen auf; fail=True simuliert einen Versandfehler"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict] = []

    def validate_credentials(self) -> bool:
        return True

    async def send(self, service_id: str, template_id: str, variables: Dict[str, str],
                   job_id: Optional[str] = None) -> EmailResult:
        if self.fail:
            return EmailResult(success=False, error="Versand fehlgeschlagen")
        self.sent.append({"service_id": service_id, "template_id": template_id, "variables": variables})
        return EmailResult(success=True, status_code=200)


class FailingStore(DocumentStore):
    """Jeder Zugriff schlägt fehl"""

    def _fail(self):
        raise StoreUnavailableError("Speicher nicht erreichbar")

    async def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        self._fail()

    async def get(self, collection, doc_id):
        self._fail()

    async def add(self, collection, data):
        self._fail()

    async def set(self, collection, doc_id, data):
        self._fail()

    async def update(self, collection, doc_id, fields):
        self._fail()

    async def delete(self, collection, doc_id):
        self._fail()

    async def batch_write(self, operations):
        self._fail()


class FailingBatchStore(InMemoryDocumentStore):
    """Lesen/Schreiben funktioniert, nur der atomare Batch schlägt fehl"""

    async def batch_write(self, operations):
        raise StoreUnavailableError("Batch abgelehnt")


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_order(created: str = "2024-05-20T09:00:00+02:00", **fields) -> Dict:
    order = {
        "name": "Anna Beispiel",
        "email": "anna@example.com",
        "status": "neu",
        "created": created,
        "gesamtpreis": 55,
        "details": {"durchmesserCm": 18, "extras": []},
    }
    order.update(fields)
    return order


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def services(store, email_sender, clock):
    from api.container import Services
    return Services(store=store, email_client=email_sender, clock=clock)
