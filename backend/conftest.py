"""
Shared fixtures for the DynDNS server tests
"""

import pytest
from fastapi.testclient import TestClient

from dyndnsd.core.config import Settings
from dyndnsd.core.context import AppContext
from dyndnsd.core.exceptions import PersistenceException, PropagationException
from dyndnsd.main import create_app
from dyndnsd.services.bind_service import Propagator
from dyndnsd.services.daemon import Daemon
from dyndnsd.services.database_service import JsonFileDatabase

DOMAIN = "example.com"

USERS = {
    "alice": {"password": "secret", "hosts": ["home.example.com", "work.example.com"]},
    "bob": {"password": "hunter2", "hosts": ["bob.example.com"]},
}


class RecordingPropagator(Propagator):
    """Remembers every serial it was asked to propagate"""

    def __init__(self):
        self.serials = []
        self.fail = False

    def update(self, db):
        self.serials.append(db["serial"])
        if self.fail:
            raise PropagationException("reload command failed")


class FlakyJsonDatabase(JsonFileDatabase):
    """JSON database whose writes can be switched to fail"""

    fail_writes = False

    def _write(self, data):
        if self.fail_writes:
            raise PersistenceException("No space left on device")
        super()._write(data)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DOMAIN": DOMAIN,
        "USERS": USERS,
        "DB": str(tmp_path / "dyndnsd.json"),
        "RATE_LIMIT_ENABLED": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def context():
    return AppContext()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def propagator():
    return RecordingPropagator()


@pytest.fixture
def db(tmp_path, context):
    return FlakyJsonDatabase(tmp_path / "dyndnsd.json", context)


@pytest.fixture
def daemon(settings, db, propagator, context):
    return Daemon(settings.DOMAIN, settings.USERS, db, propagator, context)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))
