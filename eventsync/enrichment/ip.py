# ==============================================================================
# Client IP Extraction
# ==============================================================================
"""
Helpers for finding the client's IPv4 address behind proxies.
"""

import ipaddress
from collections.abc import Mapping

# Checked in priority order
FORWARDING_HEADERS = ("x-forwarded-for", "cf-connecting-ip", "x-real-ip")


def is_valid_ipv4(ip: str | None) -> bool:
    """Strict dotted-quad IPv4: ASCII digits, four octets in 0-255, nothing around them."""
    if not ip or not isinstance(ip, str):
        return False
    try:
        return isinstance(ipaddress.ip_address(ip), ipaddress.IPv4Address)
    except ValueError:
        return False


def extract_client_ip(headers: Mapping, remote_addr: str | None = None) -> str | None:
    """
    Extract the client IP from request headers, falling back to the peer address.

    Each forwarding header may carry a comma-separated chain; only the first
    entry is considered. Header names are matched case-insensitively.

    Args:
        headers: Request headers (values may be strings or lists of strings)
        remote_addr: Address of the connection's peer

    Returns:
        The first candidate that is a valid IPv4 address, or None
    """
    lowered = {str(name).lower(): value for name, value in headers.items()}

    for header in FORWARDING_HEADERS:
        value = lowered.get(header)
        if not value:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0]
        first_ip = str(value).split(",")[0].strip()
        if is_valid_ipv4(first_ip):
            return first_ip

    if remote_addr and is_valid_ipv4(remote_addr):
        return remote_addr

    return None
