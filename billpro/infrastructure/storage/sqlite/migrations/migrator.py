"""
Versioned schema migrations for the billing database.

Migration files live next to this module as ``vNNN_<name>.sql`` and are
applied in version order. Each applied version is recorded in
``schema_migrations`` together with a checksum of the file so edits to an
already-applied migration are reported instead of silently re-run.

The file is copied aside before migrating an existing database and copied
back if anything fails.
"""

import asyncio
import hashlib
import re
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from billpro.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE = re.compile(r"v(?P<version>\d+)_(?P<name>.+)\.sql")

REQUIRED_TABLES = [
    "customers",
    "products",
    "invoices",
    "invoice_line_items",
    "stock_movements",
    "schema_migrations",
]

# (check name, query returning the number of offending rows)
BILLING_CHECKS: list[tuple[str, str]] = [
    (
        "non_negative_stock",
        "SELECT COUNT(*) FROM products WHERE stock_quantity < 0",
    ),
    (
        "invoices_have_line_items",
        """
        SELECT COUNT(*) FROM invoices i
        WHERE NOT EXISTS (
            SELECT 1 FROM invoice_line_items li WHERE li.invoice_id = i.id
        )
        """,
    ),
]


@dataclass(frozen=True)
class Migration:
    """One ``vNNN_<name>.sql`` file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        match = MIGRATION_FILE.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(
            version=match["version"],
            name=match["name"],
            path=path,
            checksum=digest,
        )

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Migration files in version order; badly named files are skipped."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            found.append(Migration.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


class SchemaMigrator:
    """Applies pending migrations over one open connection."""

    def __init__(self, conn: aiosqlite.Connection, migrations: list[Migration] | None = None):
        self._conn = conn
        self._migrations = migrations if migrations is not None else discover_migrations()

    @property
    def migrations(self) -> list[Migration]:
        return self._migrations

    async def applied(self) -> dict[str, str]:
        """Applied versions mapped to the checksum recorded at the time."""
        try:
            cursor = await self._conn.execute(
                "SELECT version, checksum FROM schema_migrations ORDER BY version"
            )
        except aiosqlite.OperationalError:
            # Fresh database, the tracking table arrives with v001
            return {}
        return {row[0]: row[1] for row in await cursor.fetchall()}

    async def current_version(self) -> str | None:
        applied = await self.applied()
        return max(applied) if applied else None

    async def pending(self) -> list[Migration]:
        applied = await self.applied()
        for migration in self._migrations:
            recorded = applied.get(migration.version)
            if recorded is not None and recorded != migration.checksum:
                logger.warning(
                    "migration_checksum_changed",
                    version=migration.version,
                    recorded=recorded,
                    current=migration.checksum,
                )
        return [m for m in self._migrations if m.version not in applied]

    async def apply(self, migration: Migration) -> MigrationResult:
        """Run one migration script and record it; failures roll back."""
        logger.info("applying_migration", version=migration.version, name=migration.name)
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            await self._conn.executescript(migration.read())
            await self._conn.execute(
                """
                INSERT OR REPLACE INTO schema_migrations
                    (version, name, checksum, execution_time_ms)
                VALUES (?, ?, ?, ?)
                """,
                (migration.version, migration.name, migration.checksum, elapsed_ms()),
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            logger.error(
                "migration_failed",
                version=migration.version,
                name=migration.name,
                error=str(e),
            )
            return MigrationResult(
                migration.version, migration.name, False, elapsed_ms(), error=str(e)
            )

        result = MigrationResult(migration.version, migration.name, True, elapsed_ms())
        logger.info(
            "migration_applied",
            version=result.version,
            name=result.name,
            execution_time_ms=result.execution_time_ms,
        )
        return result

    async def upgrade(self) -> list[MigrationResult]:
        """Apply every pending migration, stopping at the first failure."""
        results: list[MigrationResult] = []
        for migration in await self.pending():
            result = await self.apply(migration)
            results.append(result)
            if not result.success:
                break
        return results

    async def verify(self) -> list[dict[str, Any]]:
        """SQLite integrity plus the billing invariants the schema relies on."""
        checks: list[dict[str, Any]] = []

        cursor = await self._conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append(_check("foreign_keys", not fk_violations, violations=len(fk_violations)))

        cursor = await self._conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        checks.append(_check("integrity", integrity == "ok", result=integrity))

        cursor = await self._conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append(_check("required_tables", not missing, missing=missing))
        if missing:
            return checks

        for name, query in BILLING_CHECKS:
            cursor = await self._conn.execute(query)
            (offending,) = await cursor.fetchone()
            checks.append(_check(name, offending == 0, rows=offending))
        return checks


def _check(name: str, passed: bool, **details: Any) -> dict[str, Any]:
    return {"check": name, "status": "PASS" if passed else "FAIL", **details}


@contextmanager
def backed_up(db_path: Path, enabled: bool = True) -> Iterator[None]:
    """
    Copy the database aside for the duration of the block.

    The copy is restored if the block raises or returns a failed migration,
    and removed otherwise.
    """
    if not enabled or not db_path.exists():
        yield
        return

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))

    try:
        yield
    except Exception:
        shutil.copy2(backup_path, db_path)
        logger.warning("database_restored_from_backup", backup_path=str(backup_path))
        raise
    backup_path.unlink()


async def _open(db_path: Path) -> aiosqlite.Connection:
    conn = await aiosqlite.connect(db_path)
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    return conn


class MigrationFailedError(RuntimeError):
    """A migration script failed; the database was restored from backup."""


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database up to the newest schema version.

    Args:
        db_path: Path to database file (default from settings)
        create_backup_before: Copy an existing file aside while migrating

    Returns:
        Results of the migrations applied by this call (empty when current)
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    with backed_up(db_path, enabled=create_backup_before):
        conn = await _open(db_path)
        try:
            results = await SchemaMigrator(conn).upgrade()
        finally:
            await conn.close()

        failed = [r for r in results if not r.success]
        if failed:
            raise MigrationFailedError(f"v{failed[0].version}: {failed[0].error}")

    return results


# Name used by the API lifespan
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict[str, Any]:
    """Applied and pending versions for the database at ``db_path``."""
    db_path = db_path or get_settings().storage.db_path
    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discover_migrations()],
        }

    async with aiosqlite.connect(db_path) as conn:
        migrator = SchemaMigrator(conn)
        applied = await migrator.applied()
        return {
            "exists": True,
            "current_version": await migrator.current_version(),
            "applied_migrations": sorted(applied),
            "pending_migrations": [m.version for m in await migrator.pending()],
            "total_migrations": len(migrator.migrations),
        }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict[str, Any]]:
    """Run the integrity and billing checks against ``db_path``."""
    db_path = db_path or get_settings().storage.db_path
    async with aiosqlite.connect(db_path) as conn:
        return await SchemaMigrator(conn).verify()


def main() -> None:
    """``billpro-migrate`` entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="BillPro database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument("--verify", action="store_true", help="Check schema and stock invariants")
    parser.add_argument("--no-backup", action="store_true", help="Skip the backup copy")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists:  {status['exists']}")
            print(f"Current version:  {status['current_version'] or '-'}")
            print(f"Applied:          {', '.join(status['applied_migrations']) or '-'}")
            print(f"Pending:          {', '.join(status['pending_migrations']) or '-'}")
            return 0

        if args.verify:
            checks = await verify_schema_integrity(args.db_path)
            for check in checks:
                extra = {k: v for k, v in check.items() if k not in ("check", "status")}
                print(f"[{check['status']}] {check['check']} {extra if check['status'] != 'PASS' else ''}")
            return 0 if all(c["status"] == "PASS" for c in checks) else 1

        results = await initialize_database(
            args.db_path, create_backup_before=not args.no_backup
        )
        if not results:
            print("Schema is up to date")
        for result in results:
            print(f"[OK] v{result.version} {result.name} ({result.execution_time_ms}ms)")
        return 0

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
