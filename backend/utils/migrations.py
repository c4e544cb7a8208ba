# backend/utils/migrations.py
"""
Applies the SQL files of the migrations folder on startup.

Files are applied in filename order and recorded in the `migrations` table
once every batch of the file succeeded. Execution and recording are not one
atomic unit: a crash after the last batch makes the file run again on the
next start, so migration scripts should be written to be re-runnable.
"""
import hashlib
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

from sqlalchemy import create_engine, func, insert, inspect, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from models.migration import Migration
from utils.errors import MigrationError

logger = logging.getLogger(__name__)

MIGRATION_EXTENSION = ".sql"

# SQL Server batch separator: a line holding only GO
BATCH_SEPARATOR = re.compile(r"^\s*GO\s*$", re.IGNORECASE | re.MULTILINE)


def split_batches(content: str) -> List[str]:
    return [batch.strip() for batch in BATCH_SEPARATOR.split(content) if batch.strip()]


def calculate_checksum(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def pending_migrations(files: Iterable[str], executed: Set[str]) -> List[str]:
    return [f for f in files if f not in executed]


class MigrationRunner:
    def __init__(self, engine: Engine, migrations_path):
        self.engine = engine
        self.migrations_path = Path(migrations_path).resolve()

    def initialize_migration_table(self, conn: Connection) -> None:
        Migration.__table__.create(conn, checkfirst=True)
        conn.commit()
        logger.info("Migration tracking table initialized")

    def get_executed_migrations(self, conn: Connection) -> Set[str]:
        rows = conn.execute(select(Migration.filename).order_by(Migration.id))
        return set(rows.scalars())

    def get_migration_files(self) -> List[str]:
        if not self.migrations_path.is_dir():
            logger.warning("Migrations directory not found: %s", self.migrations_path)
            return []
        return sorted(
            p.name for p in self.migrations_path.iterdir()
            if p.is_file() and p.name.endswith(MIGRATION_EXTENSION)
        )

    def record_migration(self, conn: Connection, filename: str, checksum: str) -> None:
        conn.execute(insert(Migration).values(filename=filename, checksum=checksum))
        conn.commit()

    def execute_migration(self, conn: Connection, filename: str, content: str) -> None:
        batches = split_batches(content)
        logger.info("Executing migration %s (%d batches)", filename, len(batches))

        for index, batch in enumerate(batches, start=1):
            try:
                conn.exec_driver_sql(batch)
                conn.commit()
            except SQLAlchemyError as e:
                conn.rollback()
                reason = getattr(e, "orig", None) or e
                logger.error("Batch %d/%d of %s failed: %s", index, len(batches), filename, reason)
                raise MigrationError(f"Migration {filename} failed at batch {index}: {reason}") from e
            logger.debug("Batch %d/%d of %s executed", index, len(batches), filename)

        self.record_migration(conn, filename, calculate_checksum(content))
        logger.info("Migration %s completed", filename)

    def run_migrations(self) -> List[str]:
        """Apply every pending file and return their names in execution order."""
        executed_now: List[str] = []
        try:
            with self.engine.connect() as conn:
                logger.info("Database connection established")
                self.initialize_migration_table(conn)

                executed = self.get_executed_migrations(conn)
                files = self.get_migration_files()
                logger.info("Found %d executed migrations and %d migration files", len(executed), len(files))

                pending = pending_migrations(files, executed)
                if not pending:
                    logger.info("Database is up to date, no pending migrations")
                else:
                    logger.info("Running %d pending migrations", len(pending))

                for filename in pending:
                    try:
                        content = (self.migrations_path / filename).read_text(encoding="utf-8-sig")
                    except UnicodeDecodeError as e:
                        raise MigrationError(f"Migration {filename} could not be read: {e}") from e
                    self.execute_migration(conn, filename, content)
                    executed_now.append(filename)
            logger.info("Database connection closed")
        except (MigrationError, SQLAlchemyError, OSError) as e:
            logger.error("MIGRATION FAILED: %s", e)
            raise

        if executed_now:
            logger.info("All %d migrations completed successfully", len(executed_now))
        return executed_now

    def is_up_to_date(self) -> bool:
        """Cheap check: no files, or at least as many recorded rows as files."""
        files = self.get_migration_files()
        if not files:
            logger.info("No migration files found, skipping migration check")
            return True

        try:
            with self.engine.connect() as conn:
                if not inspect(conn).has_table(Migration.__tablename__):
                    return False
                executed_count = conn.execute(select(func.count()).select_from(Migration)).scalar_one()
        except SQLAlchemyError as e:
            logger.info("Quick migration check failed, running full migration process: %s", e)
            return False

        if executed_count >= len(files):
            logger.info("Database migrations up to date")
            return True
        return False


def run_database_migrations(
    settings,
    engine: Optional[Engine] = None,
    skip_if_no_new_migrations: bool = True,
) -> List[str]:
    """Entry point used on startup and by migrate.py."""
    if settings.SKIP_MIGRATIONS:
        logger.info("Migrations skipped (SKIP_MIGRATIONS=true)")
        return []

    owns_engine = engine is None
    if owns_engine:
        missing = settings.missing_database_settings()
        if missing:
            logger.error("Migration configuration error, missing: %s", ", ".join(missing))
        engine = create_engine(settings.database_url(), pool_pre_ping=True)

    runner = MigrationRunner(engine, settings.MIGRATIONS_PATH)
    try:
        if skip_if_no_new_migrations and runner.is_up_to_date():
            return []
        return runner.run_migrations()
    finally:
        if owns_engine:
            engine.dispose()
