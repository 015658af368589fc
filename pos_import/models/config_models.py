from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the bulk import tool.

Built by pos_import.config.loader from config/import.yml after JSON schema
validation.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables (DATABASE_URL / PGDSN / PG*) and .env take
    precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration of an import run."""
    organization_id: str  # Tenant every lookup and write is confined to
    output_directory: str  # Where error files and blank templates are written
    logs_directory: str  # JSON Lines error logs
    database: DatabaseConfig
