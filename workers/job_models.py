"""Job Models - Datenstrukturen für Job-Konfiguration"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

class JobType(str, Enum):
    """Verfügbare Job-Typen"""
    CHECK_NEW_ORDERS = "check_new_orders"
    AUTO_ARCHIVE = "auto_archive"

class JobStatusEnum(str, Enum):
    """Job-Status"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

class JobSchedule(BaseModel):
    """Job-Schedule Konfiguration"""
    interval_minutes: int = Field(..., ge=1)
    enabled: bool = True

class JobConfig(BaseModel):
    """Komplette Job-Konfiguration"""
    job_type: JobType
    schedule: JobSchedule
    description: str
    last_result: Optional[dict] = None
