import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from helpers import TEST_CONFIG, seed_category, setup_test_db

import donation_server.api.payment_router as payment_router


@pytest.fixture
def payu_config():
    return TEST_CONFIG


@pytest.fixture
def session_factory(tmp_path):
    return setup_test_db(tmp_path)


@pytest.fixture
def category_id(session_factory):
    return seed_category(session_factory)


@pytest.fixture
def make_client(monkeypatch, session_factory):
    """Build a TestClient around the payment router with a given PayU config."""
    monkeypatch.setattr(payment_router, "SessionLocal", session_factory)
    clients = []

    def build(config=TEST_CONFIG):
        app = FastAPI()
        app.include_router(payment_router.router, prefix="/api")
        app.dependency_overrides[payment_router.get_payu_config] = lambda: config
        app.dependency_overrides[payment_router.get_redirect_config] = lambda: config
        client = TestClient(app, follow_redirects=False)
        clients.append(client)
        return client

    yield build
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()
