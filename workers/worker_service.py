"""APScheduler Service - Job Management"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional
import traceback

from workers.workers_config import WorkersConfig
from workers.job_models import JobType, JobStatusEnum, JobConfig, JobSchedule
from modules.bestellungen.jobs import register_jobs
from modules.shared.dates import Clock, system_clock
from modules.shared.logging import app_logger
from modules.shared.logging.log_service import log_service


class SchedulerService:
    """Verwaltet alle geplanten Jobs"""

    def __init__(self, services, clock: Optional[Clock] = None, config_file: Optional[Path] = None):
        """
        Args:
            services: Services-Container (api/container.py)
            clock: Zeitquelle für Laufzeiten und nächste Ausführung
            config_file: Optional - eigene Job-Config Datei (Tests)
        """
        self.services = services
        self.clock = clock or system_clock
        self.config_file = config_file
        self.scheduler = AsyncIOScheduler(timezone=self.clock().tzinfo)
        self.jobs: Dict[str, JobConfig] = {}
        self.job_logs: Dict[str, List[dict]] = {}
        self.job_status: Dict[str, dict] = {}

    def initialize_from_config(self) -> List[str]:
        """Lade Jobs aus gespeicherter Konfiguration, sonst Modul-Defaults"""
        job_configs = WorkersConfig.load_jobs(self.config_file)
        if not job_configs:
            return register_jobs(self)

        job_ids = []
        for job_config in job_configs:
            try:
                job_type = JobType(job_config['job_type'])
            except (KeyError, ValueError):
                app_logger.warning(f"Unbekannter Job in Config übersprungen: {job_config}")
                continue
            job_ids.append(self.add_job(
                job_type=job_type,
                interval_minutes=job_config['interval_minutes'],
                description=job_config.get('description', job_type.value),
                enabled=job_config.get('enabled', True)
            ))
        return job_ids

    def add_job(self, job_type: JobType, interval_minutes: int, description: str, enabled: bool = True):
        """Fügt einen neuen Job hinzu"""
        job_id = f"{job_type.value}_{int(self.clock().timestamp())}"

        config = JobConfig(
            job_type=job_type,
            schedule=JobSchedule(
                interval_minutes=interval_minutes,
                enabled=enabled
            ),
            description=description
        )

        self.jobs[job_id] = config
        self.job_logs[job_id] = []
        self.job_status[job_id] = {
            "status": JobStatusEnum.IDLE,
            "last_run": None,
            "next_run": None,
            "last_error": None,
            "last_duration": None
        }

        self.scheduler.add_job(
            self._run_job,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=job_id,
            args=[job_id],
            next_run_time=self.clock() if enabled else None,
            misfire_grace_time=None,
            coalesce=True,
            max_instances=1
        )

        if not enabled:
            job = self.scheduler.get_job(job_id)
            if job:
                job.pause()

        return job_id

    async def _execute(self, job_id: str, job_type: JobType) -> dict:
        if job_type == JobType.CHECK_NEW_ORDERS:
            return await self.services.notifications.check_for_new_orders(job_id=job_id)

        if job_type == JobType.AUTO_ARCHIVE:
            result = await self.services.archive.auto_archive_old_orders(job_id=job_id)
            return result.model_dump()

        raise ValueError(f"Unbekannter Job-Typ: {job_type}")

    async def _run_job(self, job_id: str):
        """Führt einen Job aus und protokolliert Status und Laufzeit"""
        start_time = self.clock()
        self.job_status[job_id]["status"] = JobStatusEnum.RUNNING
        job_type = self.jobs[job_id].job_type

        log_service.start_job_capture(job_id, job_type.value)

        try:
            result = await self._execute(job_id, job_type)
            log_service.log(job_id, job_type.value, "INFO", f"Job Ergebnis: {result}")

            duration = (self.clock() - start_time).total_seconds()
            self.jobs[job_id].last_result = result
            self.job_status[job_id]["status"] = JobStatusEnum.SUCCESS
            self.job_status[job_id]["last_error"] = None
            self.job_status[job_id]["last_duration"] = duration

            log_service.end_job_capture(success=True, duration=duration)
            return result

        except Exception as e:
            # Job-Fehler dürfen den Scheduler nicht stoppen
            self.job_status[job_id]["status"] = JobStatusEnum.FAILED
            self.job_status[job_id]["last_error"] = str(e)

            log_service.log(job_id, job_type.value, "ERROR", traceback.format_exc())
            log_service.end_job_capture(success=False, duration=(self.clock() - start_time).total_seconds(),
                                        error=str(e))
            return None

        finally:
            self.job_logs[job_id] = log_service.get_recent_logs(job_id, 50)

            self.job_status[job_id]["last_run"] = start_time
            interval_minutes = self.jobs[job_id].schedule.interval_minutes
            next_run = self.clock() + timedelta(minutes=interval_minutes)
            self.job_status[job_id]["next_run"] = next_run

            job = self.scheduler.get_job(job_id)
            if job and self.scheduler.running and self.jobs[job_id].schedule.enabled:
                job.reschedule(trigger=IntervalTrigger(minutes=interval_minutes), next_run_time=next_run)

    async def run_job_now(self, job_id: str):
        """Job sofort ausführen und auf das Ergebnis warten"""
        if job_id not in self.jobs:
            raise KeyError(job_id)
        return await self._run_job(job_id)

    def start(self):
        """Starte Scheduler"""
        self.scheduler.start()

    def stop(self):
        """Stoppe Scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()

    def get_job_status(self, job_id: str) -> Optional[dict]:
        """Gib Job-Status zurück (None wenn unbekannt)"""
        if job_id not in self.jobs:
            return None

        return {
            "job_id": job_id,
            "config": self.jobs[job_id].model_dump(mode="json"),
            "status": self.job_status[job_id],
            "recent_logs": self.job_logs[job_id][-20:]
        }

    def get_all_jobs(self) -> List[dict]:
        """Gib alle Jobs zurück"""
        return [self.get_job_status(job_id) for job_id in self.jobs.keys()]

    def find_job_id(self, job_type: JobType) -> Optional[str]:
        for job_id, config in self.jobs.items():
            if config.job_type == job_type:
                return job_id
        return None

    def update_job_schedule(self, job_id: str, interval_minutes: int) -> bool:
        """Ändere Job-Schedule und speichere"""
        if job_id not in self.jobs:
            return False
        self.jobs[job_id].schedule = JobSchedule(
            interval_minutes=interval_minutes, enabled=self.jobs[job_id].schedule.enabled
        )
        job = self.scheduler.get_job(job_id)
        if job:
            if self.jobs[job_id].schedule.enabled:
                job.reschedule(trigger=IntervalTrigger(minutes=interval_minutes))
            else:
                # pausiert bleiben
                job.modify(trigger=IntervalTrigger(minutes=interval_minutes))
        self._save_config()
        return True

    def toggle_job(self, job_id: str, enabled: bool) -> bool:
        """Enable/Disable Job und speichere"""
        if job_id not in self.jobs:
            return False
        job = self.scheduler.get_job(job_id)
        if job:
            if enabled:
                job.resume()
            else:
                job.pause()
        self.jobs[job_id].schedule.enabled = enabled
        self._save_config()
        return True

    def _save_config(self):
        """Speichere aktuelle Job-Konfigurationen"""
        jobs_list = []

        for job_id, job_config in self.jobs.items():
            jobs_list.append({
                'job_type': job_config.job_type.value,
                'interval_minutes': job_config.schedule.interval_minutes,
                'enabled': job_config.schedule.enabled,
                'description': job_config.description
            })

        WorkersConfig.save_jobs(jobs_list, self.config_file)
