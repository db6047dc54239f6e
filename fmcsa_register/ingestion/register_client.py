"""
HTTP client for the FMCSA Register detail page.

The register is published as one HTML page per day, requested with a
form POST carrying the date in DD-MMM-YY form.
"""

import requests
from typing import Optional
import structlog

from ..core.config import settings
from ..core.exceptions import SourceUnavailable

logger = structlog.get_logger(__name__)


class FMCSARegisterClient:
    """Client for retrieving the raw FMCSA Register markup for a date."""

    def __init__(self, timeout: Optional[int] = None):
        self.register_url = settings.register_url
        self.timeout = timeout or settings.request_timeout
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": settings.user_agent,
            "Referer": settings.register_referer,
            "Origin": settings.register_origin,
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        })

    def fetch_register_page(self, register_date: str) -> str:
        """Retrieve the register page markup.

        Args:
            register_date: Register date in DD-MMM-YY form (e.g. "20-FEB-26")

        Returns:
            Raw HTML of the register page

        Raises:
            SourceUnavailable: On network errors, timeouts or HTTP error status
        """
        logger.info("Fetching FMCSA Register", register_date=register_date)

        try:
            response = self.session.post(
                self.register_url,
                data={"pd_date": register_date, "pv_vpath": "LIVIEW"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as e:
            logger.error("Register request timed out", register_date=register_date, timeout=self.timeout)
            raise SourceUnavailable(
                f"Timed out after {self.timeout}s fetching register for {register_date}",
                register_date=register_date,
            ) from e
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error("Register request returned error status",
                         register_date=register_date,
                         status_code=status_code)
            raise SourceUnavailable(
                f"FMCSA returned HTTP {status_code} for register {register_date}",
                register_date=register_date,
                status_code=status_code,
            ) from e
        except requests.RequestException as e:
            logger.error("Failed to fetch register", register_date=register_date, error=str(e))
            raise SourceUnavailable(
                f"Failed to fetch register for {register_date}: {e}",
                register_date=register_date,
            ) from e

        logger.info("Fetched FMCSA Register",
                    register_date=register_date,
                    size=len(response.text))
        return response.text

    def close(self):
        self.session.close()

    def health_check(self) -> bool:
        """Check that the register host answers."""
        try:
            response = self.session.get(settings.register_referer, timeout=10)
            return response.status_code < 500
        except requests.RequestException as e:
            logger.error("Register health check failed", error=str(e))
            return False
