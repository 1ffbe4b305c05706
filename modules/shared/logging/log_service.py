"""Log Service - Zentrale Job-Log-Verwaltung für den Scheduler"""

from collections import deque
from datetime import datetime
from typing import Optional, List, Dict, Deque

from .logger import app_logger

MAX_ENTRIES_PER_JOB = 200


class LogService:
    """Verwaltet strukturiertes Logging pro Job (In-Memory Verlauf + Log-Datei)"""

    def __init__(self, max_entries: int = MAX_ENTRIES_PER_JOB):
        self.max_entries = max_entries
        self.current_job_id: Optional[str] = None
        self.current_job_type: Optional[str] = None
        self._entries: Dict[str, Deque[Dict]] = {}

    def start_job_capture(self, job_id: str, job_type: str):
        """Starte Capturing für einen Job"""
        self.current_job_id = job_id
        self.current_job_type = job_type

        self.log(job_id, job_type, "INFO", f"Job gestartet: {job_type}")

    def log(self, job_id: Optional[str], job_type: str, level: str, message: str,
            status: str = None, duration: float = None, error_text: str = None):
        """Speichere Log-Eintrag im Verlauf des Jobs"""

        entry = {
            "timestamp": datetime.now().isoformat(),
            "job_id": job_id,
            "job_type": job_type,
            "level": level,
            "message": message,
            "status": status,
            "duration_seconds": duration,
            "error_text": error_text,
        }

        key = job_id or "SYSTEM"
        if key not in self._entries:
            self._entries[key] = deque(maxlen=self.max_entries)
        self._entries[key].append(entry)

        # ERROR-Level immer in zentrale app.log schreiben
        if level == "ERROR":
            app_logger.error(f"[{job_type}] {message}")

    def end_job_capture(self, success: bool = True, duration: float = 0, error: str = None):
        """Beende Job Capturing"""

        if not self.current_job_id:
            return

        status = "SUCCESS" if success else "FAILED"
        self.log(
            self.current_job_id,
            self.current_job_type,
            "ERROR" if not success else "INFO",
            f"Job beendet: {status}",
            status=status,
            duration=duration,
            error_text=error
        )
        self.current_job_id = None
        self.current_job_type = None

    def get_recent_logs(self, job_id: str, limit: int = 50) -> List[Dict]:
        """Hole letzte Logs für Job (für Dashboard)"""
        entries = list(self._entries.get(job_id, []))
        return entries[-limit:]

    def get_logs(self, job_id: str = None, level: str = None,
                 limit: int = 100, offset: int = 0) -> List[Dict]:
        """Hole Logs mit Filtern"""
        if job_id:
            entries = list(self._entries.get(job_id, []))
        else:
            entries = [e for job_entries in self._entries.values() for e in job_entries]
            entries.sort(key=lambda e: e["timestamp"])

        if level:
            entries = [e for e in entries if e["level"] == level]

        entries.reverse()
        return entries[offset:offset + limit]

    def clear(self, job_id: str = None) -> int:
        """Lösche Verlauf (eines Jobs oder komplett)"""
        if job_id:
            removed = len(self._entries.pop(job_id, []))
        else:
            removed = sum(len(e) for e in self._entries.values())
            self._entries = {}
        return removed


# Globale LogService Instanz
log_service = LogService()
