import logging

import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture pgbind debug output so failing tests show the SQL trail."""
    caplog.set_level(logging.DEBUG, logger='pgbind')
    yield


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
    'tests.fixtures.postgres',
]
