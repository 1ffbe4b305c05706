"""Job Configuration Persistence"""

import json
from pathlib import Path
from typing import Dict, List, Optional
from modules.shared.logging import app_logger

CONFIG_FILE = Path(__file__).parent / 'config' / 'workers_config.json'

class WorkersConfig:
    """Persistiere Job-Konfigurationen in JSON"""

    @staticmethod
    def load_jobs(config_file: Optional[Path] = None) -> List[Dict]:
        """
        Lade Job-Konfiguration aus File

        Returns:
            Leere Liste, wenn noch nichts gespeichert wurde (dann gelten die Modul-Defaults)
        """
        config_file = config_file or CONFIG_FILE
        if not config_file.exists():
            return []

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            app_logger.error(f"Fehler beim Laden der Job-Config: {e}", exc_info=True)
            return []

    @staticmethod
    def save_jobs(jobs: List[Dict], config_file: Optional[Path] = None) -> bool:
        """Speichere Job-Konfiguration in File"""
        config_file = config_file or CONFIG_FILE
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, 'w', encoding='utf-8') as f:
                json.dump(jobs, f, indent=2, ensure_ascii=False)
            app_logger.info(f"✓ Job-Config gespeichert ({len(jobs)} Jobs)")
            return True
        except OSError as e:
            app_logger.error(f"Fehler beim Speichern der Job-Config: {e}", exc_info=True)
            return False
