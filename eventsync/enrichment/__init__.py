# ==============================================================================
# Geolocation Enrichment
# ==============================================================================
"""
Client IP extraction and cached, rate-limited geolocation.
"""

from eventsync.enrichment.ip import extract_client_ip, is_valid_ipv4
from eventsync.enrichment.resolver import GeoResolver

__all__ = [
    "GeoResolver",
    "extract_client_ip",
    "is_valid_ipv4",
]
