# ==============================================================================
# Geolocation Adapters
# ==============================================================================
"""
IP geolocation clients implementing base.geo.GeoLookupClient.
"""

from eventsync.infrastructure.geo.ipapi import IpApiClient

__all__ = ["IpApiClient"]
