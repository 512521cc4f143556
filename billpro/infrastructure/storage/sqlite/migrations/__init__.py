"""Database migrations module."""

from billpro.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    MigrationFailedError,
    MigrationResult,
    SchemaMigrator,
    backed_up,
    discover_migrations,
    get_migration_status,
    initialize_database,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "Migration",
    "MigrationFailedError",
    "MigrationResult",
    "SchemaMigrator",
    "backed_up",
    "discover_migrations",
    "get_migration_status",
    "initialize_database",
    "run_migrations",
    "verify_schema_integrity",
]
