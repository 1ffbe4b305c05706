"""Logging Package - Zentrale Logger- und Log-Service-Verwaltung"""

from .logger import create_module_logger, app_logger, bestellungen_logger, buchhaltung_logger
from .log_service import LogService, log_service

__all__ = [
    'create_module_logger',
    'app_logger',
    'bestellungen_logger',
    'buchhaltung_logger',
    'LogService',
    'log_service',
]
