# roomy/client/http.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import settings

log = logging.getLogger("roomy.client.http")


class ApiError(Exception):
    """Any failed API call. `kind` tells the four failure classes apart."""

    kind = "error"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(ApiError):
    """Network failure or timeout; no response was received."""

    kind = "transport"


class HttpStatusError(ApiError):
    """Non-2xx response."""

    kind = "http_status"


class ApplicationError(ApiError):
    """2xx response whose envelope says success=false."""

    kind = "application"


class MalformedResponseError(ApiError):
    """2xx response that is not a valid envelope."""

    kind = "malformed"


@dataclass
class ListPage:
    data: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 0


class ApiClient:
    """
    Thin envelope-aware wrapper around one httpx.Client.

    No retries and no caching: every call either returns the envelope's data
    or raises an ApiError subclass.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        actor: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ) -> None:
        headers = {settings.actor_header: actor} if actor else {}
        if http is None:
            http = httpx.Client(
                base_url=(base_url or settings.api_base_url).rstrip("/"),
                timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            )
        self.http = http
        self.headers = headers

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- core ----

    def envelope(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        data: Optional[dict[str, Any]] = None,
        files: Any = None,
    ) -> dict[str, Any]:
        try:
            r = self.http.request(
                method,
                path,
                params=_clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=self.headers,
            )
        except httpx.TransportError as e:
            log.warning("transport failure %s %s: %s", method, path, e, extra={"error_kind": "transport"})
            raise TransportError(str(e) or type(e).__name__) from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if r.status_code >= 400:
            msg = body.get("error") if isinstance(body, dict) and body.get("error") else r.reason_phrase
            log.warning(
                "http %s on %s %s: %s",
                r.status_code,
                method,
                path,
                msg,
                extra={"error_kind": "http_status", "status_code": r.status_code},
            )
            raise HttpStatusError(str(msg), status_code=r.status_code)

        if not isinstance(body, dict) or not isinstance(body.get("success"), bool):
            log.warning("malformed response on %s %s", method, path, extra={"error_kind": "malformed"})
            raise MalformedResponseError("response is not a valid envelope", status_code=r.status_code)

        if not body["success"]:
            msg = body.get("error") or body.get("message") or "request failed"
            log.warning("application error on %s %s: %s", method, path, msg, extra={"error_kind": "application"})
            raise ApplicationError(str(msg), status_code=r.status_code)

        return body

    def call(self, method: str, path: str, **kw: Any) -> Any:
        return self.envelope(method, path, **kw).get("data")

    def get(self, path: str, **params: Any) -> Any:
        return self.call("GET", path, params=params)

    def post(self, path: str, payload: Any = None) -> Any:
        return self.call("POST", path, json=payload)

    def put(self, path: str, payload: Any = None) -> Any:
        return self.call("PUT", path, json=payload)

    def delete(self, path: str) -> Any:
        return self.call("DELETE", path)

    def list(self, path: str, **params: Any) -> ListPage:
        body = self.envelope("GET", path, params=params)
        rows = body.get("data")
        if not isinstance(rows, list):
            raise MalformedResponseError("list response without a data array")
        return ListPage(
            data=rows,
            total=int(body.get("total", len(rows))),
            page=int(body.get("page", 1)),
            limit=int(body.get("limit", len(rows))),
        )


def _clean_params(params: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    # drop unset filters; booleans go over the wire as true/false
    if not params:
        return None
    out: dict[str, Any] = {}
    for k, v in params.items():
        if v is None or v == "" or v == []:
            continue
        if isinstance(v, bool):
            v = "true" if v else "false"
        out[k] = v
    return out or None
