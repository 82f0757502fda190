# ==============================================================================
# Path Utilities
# ==============================================================================
"""
Locations resolved against the project: the local data directory and the
durable store's schema template.
"""

from pathlib import Path

SCHEMA_TEMPLATE = Path("schema") / "init.sql"


def get_project_root() -> Path:
    """The source checkout holding pyproject.toml, else the working directory."""
    checkout = Path(__file__).resolve().parents[2]  # utils/paths.py -> eventsync -> project
    if (checkout / "pyproject.toml").exists():
        return checkout
    return Path.cwd()


def resolve_project_path(path: Path) -> Path:
    """Absolute paths pass through; relative ones hang off the project root."""
    path = Path(path)
    if path.is_absolute():
        return path
    return get_project_root() / path


def find_schema_template() -> Path | None:
    """
    Locate ``schema/init.sql``.

    The project root is tried first, then the working directory.

    Returns:
        Path to the template, or None if neither location has one
    """
    for base in dict.fromkeys((get_project_root(), Path.cwd())):
        candidate = base / SCHEMA_TEMPLATE
        if candidate.exists():
            return candidate
    return None
