# tests/test_client_http.py
from __future__ import annotations

import httpx
import pytest

from roomy.client.http import (
    ApiClient,
    ApplicationError,
    HttpStatusError,
    MalformedResponseError,
    TransportError,
)


def _client(handler) -> ApiClient:
    return ApiClient(http=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test/api"))


def test_connection_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as ei:
        _client(handler).get("/agents/1")
    assert ei.value.kind == "transport"
    assert ei.value.status_code is None


def test_timeout_is_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError):
        _client(handler).get("/agents/1")


def test_non_2xx_is_http_status_error_with_server_message():
    def handler(request):
        return httpx.Response(404, json={"success": False, "error": "agent not found"})

    with pytest.raises(HttpStatusError) as ei:
        _client(handler).get("/agents/1")
    assert ei.value.status_code == 404
    assert ei.value.message == "agent not found"


def test_non_2xx_without_envelope_uses_reason_phrase():
    def handler(request):
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(HttpStatusError) as ei:
        _client(handler).get("/agents/1")
    assert ei.value.message == "Bad Gateway"


def test_success_false_is_application_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "quota exceeded"})

    with pytest.raises(ApplicationError) as ei:
        _client(handler).post("/agents", {"name": "x"})
    assert ei.value.kind == "application"
    assert ei.value.message == "quota exceeded"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, json={"data": {"id": 1}}),
    ],
)
def test_invalid_envelope_is_malformed(response):
    with pytest.raises(MalformedResponseError):
        _client(lambda request: response).get("/agents/1")


def test_list_requires_data_array():
    def handler(request):
        return httpx.Response(200, json={"success": True, "data": {"id": 1}})

    with pytest.raises(MalformedResponseError):
        _client(handler).list("/agents")


def test_params_drop_blanks_and_encode_booleans():
    seen = {}

    def handler(request):
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={"success": True, "data": [], "total": 0, "page": 1, "limit": 50})

    page = _client(handler).list("/owners", search="", isVip=True, nationality=None, page=2)
    assert seen == {"isVip": "true", "page": "2"}
    assert page.total == 0


def test_actor_header_is_sent():
    seen = {}

    def handler(request):
        seen["actor"] = request.headers.get("X-User-Email")
        return httpx.Response(200, json={"success": True, "data": {}})

    api = ApiClient(
        http=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test/api"),
        actor="ops@roomy.local",
    )
    api.get("/agents/stats")
    assert seen["actor"] == "ops@roomy.local"
