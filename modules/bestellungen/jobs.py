"""
Bestellungen Jobs für APScheduler

Registriert die Hintergrund-Jobs der Bestellverwaltung:
- check_new_orders: Admin-Mail für neue Bestellungen
- auto_archive: fertige Bestellungen nach N Tagen archivieren
"""

from config.settings import AUTO_ARCHIVE_AFTER_DAYS
from workers.job_models import JobType


def register_jobs(scheduler_service):
    """
    Registriert die Bestell-Jobs beim zentralen SchedulerService

    Args:
        scheduler_service: Instance von SchedulerService (workers/worker_service.py)

    Returns:
        List of created job_ids
    """
    job_ids = []

    for job_type, info in get_job_info().items():
        job_id = scheduler_service.add_job(
            job_type=job_type,
            interval_minutes=info["default_interval"],
            description=info["description"],
            enabled=True
        )
        job_ids.append(job_id)

    return job_ids


def get_job_info():
    """
    Gibt Info über verfügbare Bestell-Jobs zurück

    Returns:
        dict mit Job-Beschreibungen
    """
    return {
        JobType.CHECK_NEW_ORDERS: {
            "name": "Neue Bestellungen",
            "description": "Admin per E-Mail über neue Bestellungen (Status 'neu') informieren",
            "default_interval": 1,
            "steps": [
                "1. Bestellungen mit Status 'neu' laden",
                "2. Bereits gemeldete überspringen",
                "3. Admin-Mail über EmailJS senden",
            ]
        },
        JobType.AUTO_ARCHIVE: {
            "name": "Auto-Archivierung",
            "description": f"Fertige Bestellungen älter als {AUTO_ARCHIVE_AFTER_DAYS} Tage archivieren",
            "default_interval": 30,
            "steps": [
                "1. Fertige Bestellungen laden",
                f"2. Älter als {AUTO_ARCHIVE_AFTER_DAYS} Tage (Eingang) auswählen",
                "3. In einem Batch ins Archiv kopieren und löschen",
            ]
        },
    }
