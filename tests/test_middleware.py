# tests/test_middleware.py
from __future__ import annotations

import logging

from roomy.middleware.structured_logging import resource_of


def test_resource_of_strips_api_prefix():
    assert resource_of("/api/owners/3/bank-details") == "owners"
    assert resource_of("/api/chat/conversations") == "chat"
    assert resource_of("/") is None


def test_malformed_request_id_is_replaced(client):
    r = client.get("/api/health", headers={"X-Request-ID": "bad id\twith spaces"})
    rid = r.headers["X-Request-ID"]
    assert rid and rid != "bad id\twith spaces"
    assert " " not in rid


def test_minted_request_id_differs_per_request(client):
    a = client.get("/api/health").headers["X-Request-ID"]
    b = client.get("/api/health").headers["X-Request-ID"]
    assert a != b


def test_client_errors_log_at_warning(client, caplog):
    with caplog.at_level(logging.INFO, logger="roomy.access"):
        client.get("/api/agents/999999")
    lines = [r for r in caplog.records if r.name == "roomy.access"]
    assert lines and lines[-1].levelno == logging.WARNING
    assert lines[-1].resource == "agents"
    assert lines[-1].status_code == 404
