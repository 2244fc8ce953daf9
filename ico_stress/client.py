"""
HTTP clients for the applogic and ledger services.

:class:`ServiceClient` is the only place that touches the network.  It
joins URLs, attaches bearer tokens, serialises JSON bodies and insists on a
2xx answer: anything else raises :class:`~ico_stress.errors.HttpError`
carrying the full exchange, because a stress run stops at the first failure
and the operator needs enough context to reproduce it by hand.

The small ``*Api`` classes on top name the endpoints the harness consumes so
the workflow code reads as a sequence of business calls.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from urllib.parse import urljoin

import requests

from .config import DEFAULT_HTTP_TIMEOUT
from .errors import HttpError, TransportError

logger = logging.getLogger(__name__)

APPLOGIC_PREFIX = "/api/v1"
LEDGER_PREFIX = "/api/v2"
MANAGEMENT_PREFIX = "/management_api/v1"

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ApiResult:
    """One completed exchange: the request as sent plus the response."""

    method: str
    url: str
    request_headers: dict[str, str]
    request_body: str | None
    status_code: int
    reason: str
    response_headers: dict[str, str]
    response_body: str
    elapsed: float

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parsed response body, or ``None`` when it is empty or not JSON."""
        if not self.response_body:
            return None
        try:
            return json.loads(self.response_body)
        except ValueError:
            return None

    def to_error(self) -> HttpError:
        return HttpError(
            status_code=self.status_code,
            reason=self.reason,
            url=self.url,
            method=self.method,
            request_headers=self.request_headers,
            request_body=self.request_body,
            response_headers=self.response_headers,
            response_body=self.response_body,
        )


class ServiceClient:
    """
    Request builder bound to one service root and API prefix.

    Args:
        root_url: Scheme and host of the service, e.g.
            ``"http://peatio.local"``.  A trailing path is kept.
        api_prefix: Fixed prefix for every call, e.g. ``"/api/v2"``.
        session: Optional pre-built :class:`requests.Session`; one is
            created when omitted.  Sessions are thread-safe for the
            request/response use made here and keep connections pooled.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        root_url: str,
        api_prefix: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ):
        self.root_url = root_url
        self.api_prefix = api_prefix
        self._session = session or requests.Session()
        self._timeout = timeout

    def url_for(self, path: str) -> str:
        """Join root, prefix and *path* without doubling slashes."""
        base = self.root_url.rstrip("/") + "/"
        prefix = self.api_prefix.strip("/")
        relative = path.lstrip("/")
        if prefix:
            relative = f"{prefix}/{relative}" if relative else prefix
        return urljoin(base, relative)

    def get(
        self,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResult:
        return self._send("GET", path, token=token, params=params)

    def post(
        self,
        path: str,
        body: Any = None,
        *,
        token: str | None = None,
    ) -> ApiResult:
        return self._send("POST", path, token=token, body=body)

    def _send(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> ApiResult:
        headers = {"Accept": JSON_CONTENT_TYPE}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        data = None
        if method != "GET":
            headers["Content-Type"] = JSON_CONTENT_TYPE
            # A str body is already serialised JSON (e.g. a multisig token)
            data = body if isinstance(body, str) else json.dumps(body if body is not None else {})

        url = self.url_for(path)
        try:
            prepared = self._session.prepare_request(
                requests.Request(method, url, headers=headers, params=params, data=data)
            )
            logger.debug("%s %s", method, prepared.url)
            response = self._session.send(prepared, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(method, url, str(exc)) from exc

        result = ApiResult(
            method=method,
            url=prepared.url or url,
            request_headers=dict(prepared.headers),
            request_body=_body_text(prepared.body),
            status_code=response.status_code,
            reason=response.reason or _phrase(response.status_code),
            response_headers=dict(response.headers),
            response_body=response.text,
            elapsed=response.elapsed.total_seconds() if response.elapsed else 0.0,
        )
        if not result.ok:
            logger.error("%s %s returned %s", method, result.url, result.status_code)
            raise result.to_error()
        return result


def _body_text(body: Any) -> str | None:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class ApplogicApi:
    """Endpoints of the application logic service."""

    def __init__(self, client: ServiceClient):
        self.client = client

    def apply_distributor(self, token: str, application: dict[str, Any]) -> ApiResult:
        return self.client.post("/distributor/apply", application, token=token)

    def admin_action(self, token: str, action: dict[str, Any]) -> ApiResult:
        return self.client.post("/distributor/admin/action", action, token=token)

    def purchase_package(self, token: str, purchase: dict[str, Any]) -> ApiResult:
        return self.client.post("/purchase/package/amount", purchase, token=token)

    def my_purchases(self, token: str) -> ApiResult:
        return self.client.get("/purchases/me", token=token)


class LedgerApi:
    """Member endpoints of the ledger service."""

    def __init__(self, client: ServiceClient):
        self.client = client

    def me(self, token: str) -> ApiResult:
        """Fetch the caller's member record, creating it on first sight."""
        return self.client.get("/members/me", token=token)


class ManagementApi:
    """Privileged ledger endpoints; bodies are multisig tokens."""

    def __init__(self, client: ServiceClient):
        self.client = client

    def new_deposit(self, signed_body: str) -> ApiResult:
        return self.client.post("/deposits/new", signed_body)

    def transfers(self, signed_body: str) -> ApiResult:
        return self.client.post("/transfers", signed_body)
