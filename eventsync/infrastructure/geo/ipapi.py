# ==============================================================================
# ipapi.co Geolocation Client
# ==============================================================================
"""
HTTP client for the ipapi.co JSON endpoint (``/{ip}/json/``).
"""

import logging

import requests

from eventsync.base.geo import GeoLookupClient
from eventsync.core.errors import GeoLookupError
from eventsync.utils.config import GeoSettings, get_settings

logger = logging.getLogger(__name__)


class IpApiClient(GeoLookupClient):
    """
    Geolocation lookups against ipapi.co.

    Args:
        settings: Geo settings. If None, uses get_settings().geo.
        session: requests.Session to reuse (tests may inject a mock)
    """

    def __init__(self, settings: GeoSettings | None = None, session: requests.Session | None = None):
        self._settings = settings or get_settings().geo
        self._session = session or requests.Session()

    def lookup(self, ip: str) -> dict:
        url = f"{self._settings.base_url.rstrip('/')}/{ip}/json/"
        try:
            response = self._session.get(
                url,
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise GeoLookupError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise GeoLookupError(f"Invalid JSON from {url}") from e

        if not isinstance(data, dict):
            raise GeoLookupError(f"Expected a JSON object from {url}, got {type(data).__name__}")
        if data.get("error"):
            raise GeoLookupError(data.get("reason") or "ipapi.co reported an error")

        return {
            "country": data.get("country_name"),
            "country_code": data.get("country_code"),
            "city": data.get("city"),
            "region": data.get("region"),
            "region_code": data.get("region_code"),
        }
