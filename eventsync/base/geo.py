# ==============================================================================
# Geolocation Client Abstract Base Class
# ==============================================================================
"""
Abstract interface for an IP geolocation service.
"""

from abc import ABC, abstractmethod


class GeoLookupClient(ABC):
    """One network lookup of an IPv4 address."""

    @abstractmethod
    def lookup(self, ip: str) -> dict:
        """
        Resolve an address.

        Args:
            ip: Validated IPv4 address

        Returns:
            Dict with country, country_code, city, region, region_code

        Raises:
            GeoLookupError: On HTTP error, timeout, or an error reported by the service
        """
        ...
