"""
tests/test_health.py -- Integration tests for GET /api/healthz.
"""

from __future__ import annotations


def test_healthz_returns_ok_text(api_client):
    client, _, _ = api_client
    resp = client.get("/api/healthz")
    assert resp.status_code == 200
    assert resp.text == "OK"
    assert resp.headers["content-type"].startswith("text/plain")


def test_healthz_no_auth_required(api_client):
    client, _, _ = api_client
    resp = client.get("/api/healthz", headers={})
    assert resp.status_code == 200
