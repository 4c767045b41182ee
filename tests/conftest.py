import asyncio

import pytest

from notekeeper.drivers.memory import MemoryDriver
from notekeeper.drivers.sql import SqlDriver


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'notes.db'}"


@pytest.fixture(params=["memory", "sql"])
def make_driver(request, sqlite_url):
    """Factory for a fresh driver of each kind; sql drivers share one file."""
    drivers = []

    def _make():
        driver = MemoryDriver() if request.param == "memory" else SqlDriver.from_url(sqlite_url)
        drivers.append(driver)
        return driver

    yield _make
    for driver in drivers:
        asyncio.run(driver.close())

