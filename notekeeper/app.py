"""
Process bootstrap.

Builds the one note store an application uses, with the driver named in its
settings. Callers keep the returned store and hand it to every consumer;
nothing here is cached at module level.
"""

import logging
from typing import Callable

from notekeeper.config import Settings
from notekeeper.drivers.base import StorageDriver
from notekeeper.drivers.memory import MemoryDriver
from notekeeper.drivers.sql import SqlDriver
from notekeeper.errors import ConfigError
from notekeeper.store import NoteStore

logger = logging.getLogger(__name__)


def _memory_driver(settings: Settings) -> StorageDriver:
    return MemoryDriver()


def _sql_driver(settings: Settings) -> StorageDriver:
    return SqlDriver.from_url(settings.database_url, echo=settings.echo_sql)


DRIVERS: dict[str, Callable[[Settings], StorageDriver]] = {
    "memory": _memory_driver,
    "sql": _sql_driver,
}


# PUBLIC_INTERFACE
def make_driver(settings: Settings) -> StorageDriver:
    """Instantiate the driver registered under `settings.backend`."""
    factory = DRIVERS.get(settings.backend)
    if factory is None:
        raise ConfigError(
            f"Unknown notes backend {settings.backend!r}; expected one of {sorted(DRIVERS)}"
        )
    return factory(settings)


# PUBLIC_INTERFACE
async def build_store(settings: Settings | None = None) -> NoteStore:
    """Open a note store for `settings` (read from the environment when omitted)."""
    settings = settings or Settings.from_env()
    driver = make_driver(settings)
    try:
        store = await NoteStore.open(driver)
    except Exception:
        await driver.close()
        raise
    logger.info("Opened note store backend=%s notes=%s", settings.backend, len(store))
    return store
