"""Base Connector - Abstract Base Class für E-Mail Versanddienste"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from pydantic import BaseModel


class EmailResult(BaseModel):
    """Ergebnis eines Versandversuchs (wird nie als Exception geworfen)"""
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class BaseEmailConnector(ABC):
    """
    Abstract Base Class für E-Mail Connectors

    send() darf niemals werfen: Fehler kommen als EmailResult(success=False) zurück.
    """

    @abstractmethod
    def validate_credentials(self) -> bool:
        """Sind alle Zugangsdaten vorhanden?"""
        pass

    @abstractmethod
    async def send(self, service_id: str, template_id: str, variables: Dict[str, str],
                   job_id: Optional[str] = None) -> EmailResult:
        """Sende Template-E-Mail mit Variablen"""
        pass
