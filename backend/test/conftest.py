"""
Shared fixtures: an app wired to an in-memory Mongo and a registry whose
keep-alive ticker is not running (tests drive heartbeats explicitly).
"""

import os
import sys

# Run from backend/ so imports resolve
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import mongomock
import pytest

from app import create_app
from auth import issue_token
from events import SubscriberRegistry


@pytest.fixture
def registry():
    reg = SubscriberRegistry(keepalive_interval=30)
    yield reg
    reg.shutdown()


@pytest.fixture
def database():
    return mongomock.MongoClient()["inventory_test"]


@pytest.fixture
def app(database, registry):
    app = create_app(database=database, registry=registry, start_keepalive=False)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {issue_token(user_id, f'{user_id}@example.com')}"}


@pytest.fixture
def owner_headers():
    return bearer("owner-1")


@pytest.fixture
def other_headers():
    return bearer("owner-2")
