"""Zentrale Konfigurationsverwaltung"""

import os
from dotenv import load_dotenv
from pathlib import Path

config_dir = Path(__file__).parent
env_file = config_dir / '.env'
load_dotenv(env_file)

# --- Datenbank ---
DATABASE_URL = os.getenv('DATABASE_URL')

SQL_SERVER = os.getenv('SQL_SERVER')
SQL_USERNAME = os.getenv('SQL_USERNAME')
SQL_PASSWORD = os.getenv('SQL_PASSWORD')
SQL_DATABASE = os.getenv('SQL_DATABASE', 'backstube')

STORE_TIMEZONE = os.getenv('STORE_TIMEZONE', 'Europe/Berlin')

COLLECTION_ORDERS = os.getenv('COLLECTION_ORDERS', 'orders')
COLLECTION_ARCHIVED = os.getenv('COLLECTION_ARCHIVED', 'archived_orders')
COLLECTION_CUSTOMERS = os.getenv('COLLECTION_CUSTOMERS', 'customers')
COLLECTION_REVIEWS = os.getenv('COLLECTION_REVIEWS', 'reviews')
COLLECTION_EXPENSES = os.getenv('COLLECTION_EXPENSES', 'expenses')

# --- Bestellannahme ---
LEAD_DAYS = int(os.getenv('LEAD_DAYS', '7'))
DAILY_LIMIT = int(os.getenv('DAILY_LIMIT', '5'))
CAPACITY_BASIS = os.getenv('CAPACITY_BASIS', 'desired_date')
FALLBACK_SCAN_LIMIT = int(os.getenv('FALLBACK_SCAN_LIMIT', '1000'))
AUTO_ARCHIVE_AFTER_DAYS = int(os.getenv('AUTO_ARCHIVE_AFTER_DAYS', '7'))

# --- Ausgaben ---
EXPENSE_DEFAULT_CATEGORY = os.getenv('EXPENSE_DEFAULT_CATEGORY', 'Sonstiges')
# Einträge dieser Kategorie sind manuell erfasster Umsatz, keine Ausgabe
EXPENSE_REVENUE_CATEGORY = os.getenv('EXPENSE_REVENUE_CATEGORY', 'Umsatz')

# --- EmailJS ---
EMAILJS_API_URL = os.getenv('EMAILJS_API_URL', 'https://api.emailjs.com/api/v1.0/email/send')
EMAILJS_SERVICE_ID = os.getenv('EMAILJS_SERVICE_ID', 'service_backstube')
EMAILJS_PUBLIC_KEY = os.getenv('EMAILJS_PUBLIC_KEY')
EMAILJS_TEMPLATE_ORDER_STATUS = os.getenv('EMAILJS_TEMPLATE_ORDER_STATUS', 'template_2eyveh9')
EMAILJS_TEMPLATE_NEW_ORDER = os.getenv('EMAILJS_TEMPLATE_NEW_ORDER', 'template_ov1de3n')
EMAILJS_TEMPLATE_NEW_REVIEW = os.getenv('EMAILJS_TEMPLATE_NEW_REVIEW', 'template_ov1de3n')

ADMIN_EMAIL = os.getenv('ADMIN_EMAIL')

# --- Firmendaten (E-Mail Footer) ---
COMPANY_NAME = os.getenv('COMPANY_NAME', "Laura's Backstube")
COMPANY_PHONE = os.getenv('COMPANY_PHONE', '')
COMPANY_EMAIL = os.getenv('COMPANY_EMAIL', '')
COMPANY_ADDRESS = os.getenv('COMPANY_ADDRESS', '')
REVIEW_URL = os.getenv('REVIEW_URL', '')

# --- Dateipfade (data/ und logs/ Verzeichnis) ---
DATA_DIR = Path(__file__).parent.parent / 'data'
DATA_DIR.mkdir(exist_ok=True)

LOG_DIR = Path(os.getenv('LOG_DIR', str(Path(__file__).parent.parent / 'logs')))

EXPORT_DIR = DATA_DIR / os.getenv('EXPORT_DIR', 'exports')
