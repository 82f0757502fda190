# ==============================================================================
# Device Category Heuristic
# ==============================================================================
"""
Best-effort device classification from a user agent string.

Substring matching only: mobile markers win over tablet markers, and
anything unrecognized is a desktop.
"""

from enum import Enum

MOBILE_MARKERS = ("mobile", "android", "iphone")
TABLET_MARKERS = ("tablet", "ipad")


class DeviceCategory(str, Enum):
    """Device classes derived from the user agent."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


def classify_device(user_agent: str) -> DeviceCategory:
    """
    Classify a user agent as mobile, tablet or desktop.

    Args:
        user_agent: Raw User-Agent header value (may be empty)

    Returns:
        DeviceCategory member
    """
    ua = (user_agent or "").lower()
    if any(marker in ua for marker in MOBILE_MARKERS):
        return DeviceCategory.MOBILE
    if any(marker in ua for marker in TABLET_MARKERS):
        return DeviceCategory.TABLET
    return DeviceCategory.DESKTOP
