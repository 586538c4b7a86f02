import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import StorageError

logger = logging.getLogger(__name__)

FILENAME_RE = re.compile(r"migration_(\d+)_.*\.sql$")


@dataclass(frozen=True)
class Migration:
    version: int
    query: str

    def statements(self) -> List[str]:
        # Migration files hold plain DDL; no statement embeds a semicolon.
        return [s.strip() for s in self.query.split(";") if s.strip()]


@dataclass
class MigrationStore:
    """Ordered set of schema migrations.

    Built once at startup with :meth:`load` and handed to whatever applies
    it. Progress is tracked in SQLite's ``PRAGMA user_version``.
    """

    migrations: List[Migration] = field(default_factory=list)

    @classmethod
    def load(cls, directory: Path) -> "MigrationStore":
        directory = Path(directory)
        migrations = []
        for path in directory.iterdir():
            if path.is_dir():
                continue
            match = FILENAME_RE.match(path.name)
            if not match:
                continue
            migrations.append(
                Migration(
                    version=int(match.group(1)),
                    query=path.read_text(encoding="utf-8"),
                )
            )
        migrations.sort(key=lambda m: m.version)
        return cls(migrations=migrations)

    @property
    def latest(self) -> int:
        return self.migrations[-1].version if self.migrations else 0

    def current_version(self, engine: Engine) -> int:
        with engine.connect() as conn:
            return conn.exec_driver_sql("PRAGMA user_version").scalar_one()

    def apply(self, engine: Engine) -> int:
        """Run every migration newer than the database's version.

        Each migration and its version bump commit together; a failing
        migration leaves the database at the previous version with none
        of its statements applied.
        """
        try:
            version = self.current_version(engine)
        except SQLAlchemyError as e:
            raise StorageError("failed to get user_version", e) from e

        logger.info("Migration counter: %d/%d", version, len(self.migrations))

        for migration in self.migrations:
            if migration.version <= version:
                continue
            try:
                self._run(engine, migration)
            except SQLAlchemyError as e:
                raise StorageError(
                    f"failed to run migration {migration.version}", e
                ) from e
            version = migration.version
            logger.info("Migration counter: %d/%d", version, len(self.migrations))

        return version

    def _run(self, engine: Engine, migration: Migration) -> None:
        # pysqlite never emits BEGIN before DDL, so the transaction is driven
        # by hand on a connection left in driver autocommit mode.
        with engine.connect() as conn:
            conn = conn.execution_options(isolation_level="AUTOCOMMIT")
            conn.exec_driver_sql("BEGIN")
            try:
                for statement in migration.statements():
                    conn.exec_driver_sql(statement)
                conn.exec_driver_sql(f"PRAGMA user_version = {migration.version:d}")
            except SQLAlchemyError:
                if conn.connection.dbapi_connection.in_transaction:
                    conn.exec_driver_sql("ROLLBACK")
                raise
            conn.exec_driver_sql("COMMIT")
