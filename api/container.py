"""Service Container - verdrahtet Speicher, Repositories und Services"""

from typing import Optional

from config.settings import (
    AUTO_ARCHIVE_AFTER_DAYS,
    CAPACITY_BASIS,
    COLLECTION_ARCHIVED,
    DAILY_LIMIT,
    FALLBACK_SCAN_LIMIT,
    LEAD_DAYS,
)
from modules.bestellungen.schemas import CountingBasis
from modules.bestellungen.services.archive_service import ArchiveService
from modules.bestellungen.services.availability_service import AvailabilityConfig, OrderAvailabilityEngine
from modules.bestellungen.services.calendar_service import MonthlyAggregator
from modules.bestellungen.services.notification_service import NotificationService
from modules.bestellungen.services.order_service import OrderService
from modules.bewertungen.services.review_service import ReviewService
from modules.buchhaltung.services.expense_service import ExpenseService
from modules.buchhaltung.services.export_service import ExportService
from modules.buchhaltung.services.revenue_service import RevenueAggregator
from modules.shared.connectors.base_connector import BaseEmailConnector
from modules.shared.connectors.emailjs.api_client import EmailJsClient
from modules.shared.database.document_store import DocumentStore
from modules.shared.database.repositories.bestellungen.archive_repository import ArchiveRepository
from modules.shared.database.repositories.bestellungen.customer_repository import CustomerRepository
from modules.shared.database.repositories.bestellungen.order_repository import OrderRepository
from modules.shared.database.repositories.bewertungen.review_repository import ReviewRepository
from modules.shared.database.repositories.buchhaltung.expense_repository import ExpenseRepository
from modules.shared.database.sql_store import SqlDocumentStore
from modules.shared.dates import Clock, system_clock


class Services:
    """Alle Services einer Anwendung, über denselben Speicher und dieselbe Uhr"""

    def __init__(self, store: Optional[DocumentStore] = None,
                 email_client: Optional[BaseEmailConnector] = None,
                 clock: Optional[Clock] = None,
                 availability_config: Optional[AvailabilityConfig] = None):
        self.store = store or SqlDocumentStore()
        self.email_client = email_client or EmailJsClient()
        self.clock = clock or system_clock

        # Repositories
        self.order_repo = OrderRepository(self.store)
        self.archived_order_repo = OrderRepository(self.store, COLLECTION_ARCHIVED)
        self.customer_repo = CustomerRepository(self.store)
        self.archive_repo = ArchiveRepository(self.store)
        self.review_repo = ReviewRepository(self.store)
        self.expense_repo = ExpenseRepository(self.store)

        # Bestellungen
        self.availability_config = availability_config or AvailabilityConfig(
            lead_days=LEAD_DAYS, daily_limit=DAILY_LIMIT, counting_basis=CountingBasis(CAPACITY_BASIS)
        )
        self.availability = OrderAvailabilityEngine(self.order_repo, self.availability_config, self.clock)
        self.calendar = MonthlyAggregator(self.order_repo, FALLBACK_SCAN_LIMIT,
                                          self.availability_config.daily_limit, self.clock)
        self.notifications = NotificationService(self.email_client, self.order_repo, self.clock)
        self.orders = OrderService(self.order_repo, self.customer_repo, self.availability,
                                   self.notifications, self.clock)
        self.archive = ArchiveService(self.order_repo, self.archive_repo, self.clock,
                                      AUTO_ARCHIVE_AFTER_DAYS)

        # Buchhaltung
        self.expenses = ExpenseService(self.expense_repo, self.clock)
        self.revenue = RevenueAggregator([self.order_repo, self.archived_order_repo], self.clock,
                                         self.expenses)
        self.export = ExportService(self.revenue, self.expenses)

        # Bewertungen
        self.reviews = ReviewService(self.review_repo, self.email_client, self.clock)
