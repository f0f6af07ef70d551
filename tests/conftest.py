import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from relaychat.app import create_app
from relaychat.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=str(tmp_path / 'uploads'))


@pytest.fixture
def database():
    return AsyncMongoMockClient()['relaychat_test']


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    # one portal for every websocket, so the hub sees a single event loop
    with TestClient(app) as c:
        yield c
