# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Concrete implementations of the base interfaces.

- cache/: Valkey cache
- geo/: ipapi.co client
- repositories/: PostgreSQL durable store
- warehouse/: BigQuery event warehouse
- local_store.py: JSON file sessions dataset
- sync_state.py: file and Valkey sync-state stores

Subpackages are imported directly so that optional clients (BigQuery) load
only when used.
"""
