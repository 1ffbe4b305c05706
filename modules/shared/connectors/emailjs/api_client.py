"""EmailJS API Client - REST Versand von Template-E-Mails"""

import asyncio
from typing import Dict, Optional

import requests

from config.settings import EMAILJS_API_URL, EMAILJS_PUBLIC_KEY
from ..base_connector import BaseEmailConnector, EmailResult
from ...logging.log_service import log_service
from ...logging.logger import app_logger


class EmailJsClient(BaseEmailConnector):
    """Client für die EmailJS REST API (POST /api/v1.0/email/send)"""

    def __init__(self, public_key: Optional[str] = EMAILJS_PUBLIC_KEY,
                 endpoint: str = EMAILJS_API_URL, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        """
        Args:
            public_key: EmailJS Public Key (user_id)
            endpoint: Versand-Endpoint
            timeout: Request Timeout in Sekunden
            session: Optional - eigene requests.Session (Tests)
        """
        self.public_key = public_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def validate_credentials(self) -> bool:
        return bool(self.public_key)

    def _post(self, service_id: str, template_id: str, variables: Dict[str, str],
              job_id: Optional[str]) -> EmailResult:
        if not self.validate_credentials():
            return EmailResult(success=False, error="EmailJS Public Key fehlt")

        payload = {
            "service_id": service_id,
            "template_id": template_id,
            "user_id": self.public_key,
            "template_params": variables,
        }

        try:
            if job_id:
                log_service.log(job_id, "emailjs", "INFO", f"→ Sende E-Mail ({template_id})")

            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()

            if job_id:
                log_service.log(job_id, "emailjs", "INFO", "✓ E-Mail versendet")
            return EmailResult(success=True, status_code=response.status_code)

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            error_msg = f"EmailJS HTTP Fehler ({status}): {e.response.text if e.response is not None else e}"
            app_logger.error(f"✗ {error_msg}")
            if job_id:
                log_service.log(job_id, "emailjs", "ERROR", error_msg)
            return EmailResult(success=False, status_code=status, error=error_msg)

        except requests.exceptions.RequestException as e:
            error_msg = f"Request Fehler: {str(e)}"
            app_logger.error(f"✗ {error_msg}")
            if job_id:
                log_service.log(job_id, "emailjs", "ERROR", error_msg)
            return EmailResult(success=False, error=error_msg)

    async def send(self, service_id: str, template_id: str, variables: Dict[str, str],
                   job_id: Optional[str] = None) -> EmailResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self._post(service_id, template_id, variables, job_id)
        )
