# ==============================================================================
# Operator API
# ==============================================================================
"""
FastAPI application exposing manual triggers and status reads.
"""

from eventsync.api.ops import create_app

__all__ = ["create_app"]
