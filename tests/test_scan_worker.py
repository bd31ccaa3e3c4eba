import time
from urllib.parse import parse_qs, urlparse

import pytest

from conftest import TEST_CONFIG, signup
from scaneia import create_app
from scaneia.extensions import db
from scaneia.models.scan_model import Scan
from scaneia.services import scan_service, store


@pytest.fixture
def worker_app(tmp_path):
    app = create_app({
        **TEST_CONFIG,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'scaneia.db'}",
        "SCAN_ASYNC": True,
        "SCAN_WORKERS": 2,
    })
    yield app
    app.extensions["scan_executor"].shutdown(wait=True)
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def worker_client(worker_app):
    client = worker_app.test_client()
    assert signup(client).status_code == 302
    return client


def _start(app, client):
    with client.session_transaction() as sess:
        uid = sess["user_id"]
    with app.app_context():
        site_id = store.add_site(uid, "https://exemplo.com", "descrição")
    resp = client.post(f"/scans/new?siteId={site_id}")
    assert resp.status_code == 302
    return parse_qs(urlparse(resp.headers["Location"]).query)["job"][0]


def _wait_for(client, job_id, timeout=10):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        data = client.get(f"/scans/jobs/{job_id}").get_json()
        if data["state"] in (scan_service.COMPLETE, scan_service.FAILED):
            return data
        time.sleep(0.05)
    raise AssertionError(f"job {job_id} still {data['state']}")


def test_pooled_scan_completes(worker_app, worker_client, completions):
    job_id = _start(worker_app, worker_client)
    data = _wait_for(worker_client, job_id)
    assert data["state"] == "complete"
    assert data["progress"] == 100
    with worker_app.app_context():
        assert db.session.get(Scan, data["scanId"]) is not None


def test_pooled_scan_crash_ends_failed(worker_app, worker_client, completions, monkeypatch):
    def explode(rng=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(scan_service, "pick_vulnerabilities", explode)
    job_id = _start(worker_app, worker_client)
    data = _wait_for(worker_client, job_id)
    assert data["state"] == "failed"
    assert data["error"] == scan_service.SCAN_FAILED_MESSAGE
    with worker_app.app_context():
        assert Scan.query.count() == 0


def test_each_app_sizes_its_own_pool():
    small = create_app({**TEST_CONFIG, "SCAN_WORKERS": 1})
    large = create_app({**TEST_CONFIG, "SCAN_WORKERS": 3})
    try:
        assert small.extensions["scan_executor"] is not large.extensions["scan_executor"]
        assert small.extensions["scan_executor"]._max_workers == 1
        assert large.extensions["scan_executor"]._max_workers == 3
    finally:
        small.extensions["scan_executor"].shutdown()
        large.extensions["scan_executor"].shutdown()
