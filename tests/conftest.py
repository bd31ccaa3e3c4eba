import json

import pytest

from scaneia import create_app
from scaneia.extensions import db
from scaneia.services import ai_service, scan_service


TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test",
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "OPENAI_API_KEY": "sk-test",
    "SCAN_ASYNC": False,
    "SCAN_DURATION_SEC": 0,
    "SCAN_TICK_SEC": 0,
    "SCAN_RATE_LIMIT": 100,
}


class FakeResponse:
    def __init__(self, payload):
        self._body = json.dumps(payload).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeCompletions:
    """Stands in for urlopen; records every request body it receives."""

    def __init__(self, text="Relatório gerado."):
        self.text = text
        self.error = None
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append(json.loads(req.data.decode("utf-8")))
        if self.error is not None:
            raise self.error
        return FakeResponse({"choices": [{"message": {"role": "assistant", "content": self.text}}]})


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def reset_scan_state():
    scan_service.jobs.clear()
    scan_service.rate_limiter.clear()
    yield
    scan_service.jobs.clear()
    scan_service.rate_limiter.clear()


@pytest.fixture
def completions(monkeypatch):
    fake = FakeCompletions()
    monkeypatch.setattr(ai_service, "urlopen", fake)
    return fake


def signup(client, email="ana@example.com", password="segredo123", name="Ana"):
    return client.post(
        "/auth/signup",
        data={"name": name, "email": email, "password": password, "confirmPassword": password},
    )


@pytest.fixture
def logged_in(client):
    resp = signup(client)
    assert resp.status_code == 302
    return client
