# ==============================================================================
# Database Utilities
# ==============================================================================
"""
Schema bootstrap for the PostgreSQL durable store.

The schema script is a Jinja2 template rendered with the configured schema name.
"""

import logging

import psycopg2
from jinja2 import Template

from eventsync.utils.config import Settings, get_settings
from eventsync.utils.paths import find_schema_template
from eventsync.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_standard

logger = logging.getLogger(__name__)


def render_schema_sql(schema_name: str) -> str:
    """Render the schema SQL template with the given schema name."""
    schema_file = find_schema_template()
    if not schema_file:
        raise RuntimeError(
            "Schema file (schema/init.sql) not found. "
            "Make sure you're running from the project root."
        )

    template = Template(schema_file.read_text())
    return template.render(schema_name=schema_name)


@retry_standard(POSTGRES_RETRY_EXCEPTIONS, logger)
def ensure_schema(settings: Settings | None = None) -> None:
    """
    Create the schema, tables and functions if they do not exist.

    Idempotent: every statement in the script is IF NOT EXISTS or CREATE OR REPLACE.

    Raises:
        RuntimeError: If the schema file is missing or initialization fails
    """
    settings = settings or get_settings()
    schema_name = settings.postgres.schema_name
    schema_sql = render_schema_sql(schema_name)

    logger.info("Initializing database schema '%s'...", schema_name)
    conn = psycopg2.connect(settings.postgres.connection_string, connect_timeout=5)
    try:
        with conn.cursor() as cur:
            cur.execute(schema_sql)
        conn.commit()
    except POSTGRES_RETRY_EXCEPTIONS:
        raise
    except psycopg2.Error as e:
        raise RuntimeError(f"Failed to initialize schema: {e}") from e
    finally:
        conn.close()
    logger.info("Database schema '%s' initialized.", schema_name)
