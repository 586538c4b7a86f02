import logging

from .config import settings
from .db import engine, init_db
from .migrations import MigrationStore


def main():
    logging.basicConfig(level=settings.log_level)
    store = MigrationStore.load(settings.migrations_dir)
    version = init_db(store, bind=engine)
    engine.dispose()
    print(f"Migrations successfully applied (schema version {version})")


if __name__ == "__main__":
    main()
