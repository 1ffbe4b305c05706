"""FastAPI Server - Backstube Bestellverwaltung"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.container import Services
from modules.bestellungen.router import admin_router as bestellungen_admin_router
from modules.bestellungen.router import router as bestellungen_router
from modules.bewertungen.router import router as bewertungen_router
from modules.buchhaltung.router import router as buchhaltung_router
from modules.shared.connectors.base_connector import BaseEmailConnector
from modules.shared.database import close_all_engines
from modules.shared.database.document_store import DocumentStore
from modules.shared.dates import Clock
from modules.shared.errors import PartialArchiveFailure, StoreUnavailableError
from modules.shared.logging import app_logger, log_service
from workers.worker_service import SchedulerService

ARCHIVE_RETRY_MESSAGE = "Archivierung fehlgeschlagen, es wurde nichts verändert. Bitte erneut versuchen."


def create_app(store: Optional[DocumentStore] = None,
               email_client: Optional[BaseEmailConnector] = None,
               clock: Optional[Clock] = None,
               start_scheduler: bool = True,
               jobs_config_file: Optional[Path] = None) -> FastAPI:
    """
    Baut die FastAPI App mit allen Services

    Args:
        store: Dokumentenspeicher (Default: SqlDocumentStore)
        email_client: E-Mail Connector (Default: EmailJsClient)
        clock: Zeitquelle (Default: Systemzeit in Europe/Berlin)
        start_scheduler: Hintergrund-Jobs beim Start aktivieren
        jobs_config_file: Optional - eigene Job-Config Datei
    """
    services = Services(store=store, email_client=email_client, clock=clock)
    scheduler = SchedulerService(services, services.clock, jobs_config_file)
    scheduler.initialize_from_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup und Shutdown Events"""
        if start_scheduler:
            try:
                scheduler.start()
                app_logger.info(f"✓ Scheduler gestartet ({len(scheduler.jobs)} Jobs)")
            except Exception as e:
                app_logger.error(f"Fehler beim Starten des Schedulers: {e}", exc_info=True)
                raise

        yield

        try:
            scheduler.stop()
            close_all_engines()
        except Exception as e:
            app_logger.error(f"Fehler beim Stoppen des Schedulers: {e}", exc_info=True)

    app = FastAPI(
        title="Backstube Bestellverwaltung",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.services = services
    app.state.scheduler = scheduler

    # CORS aktivieren (Website + Admin-Oberfläche)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        app_logger.error(f"✗ {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={
            "detail": "Datenbank gerade nicht erreichbar. Bitte später erneut versuchen."
        })

    @app.exception_handler(PartialArchiveFailure)
    async def archive_failure_handler(request: Request, exc: PartialArchiveFailure):
        return JSONResponse(status_code=503, content={
            "detail": ARCHIVE_RETRY_MESSAGE,
            "order_ids": exc.order_ids,
        })

    app.include_router(bestellungen_router, prefix="/api", tags=["Bestellungen"])
    app.include_router(bestellungen_admin_router, prefix="/api", tags=["Admin"])
    app.include_router(buchhaltung_router, prefix="/api", tags=["Buchhaltung"])
    app.include_router(bewertungen_router, prefix="/api", tags=["Bewertungen"])

    # REST API Endpoints

    @app.get("/api/health")
    async def health():
        """Health Check"""
        return {"status": "ok", "timestamp": services.clock().isoformat()}

    @app.get("/api/jobs")
    async def get_jobs():
        """Gib alle Jobs zurück"""
        return scheduler.get_all_jobs()

    @app.get("/api/jobs/{job_id}")
    async def get_job(job_id: str):
        """Gib einen Job zurück"""
        status = scheduler.get_job_status(job_id)
        if status is None:
            raise HTTPException(status_code=404, detail="Job nicht gefunden")
        return status

    @app.post("/api/jobs/{job_id}/run-now")
    async def trigger_job(job_id: str):
        """Führe Job SOFORT aus"""
        if job_id not in scheduler.jobs:
            raise HTTPException(status_code=404, detail="Job nicht gefunden")
        result = await scheduler.run_job_now(job_id)
        return {
            "status": scheduler.job_status[job_id]["status"],
            "job_id": job_id,
            "result": result,
        }

    @app.post("/api/jobs/{job_id}/schedule")
    async def update_schedule(job_id: str, interval_minutes: int):
        """Ändere Job-Schedule"""
        if interval_minutes < 1:
            raise HTTPException(status_code=400, detail="interval_minutes muss mindestens 1 sein")
        if not scheduler.update_job_schedule(job_id, interval_minutes):
            raise HTTPException(status_code=404, detail="Job nicht gefunden")
        return {"status": "updated", "job_id": job_id, "interval_minutes": interval_minutes}

    @app.post("/api/jobs/{job_id}/toggle")
    async def toggle_job(job_id: str, enabled: bool):
        """Enable/Disable Job"""
        if not scheduler.toggle_job(job_id, enabled):
            raise HTTPException(status_code=404, detail="Job nicht gefunden")
        return {"status": "toggled", "job_id": job_id, "enabled": enabled}

    # ===== LOG ENDPOINTS =====

    @app.get("/api/logs")
    async def get_logs(job_id: str = None, level: str = None, limit: int = 100, offset: int = 0):
        """Hole Logs mit Filtern"""
        return log_service.get_logs(job_id, level, limit, offset)

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.server:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True
    )
