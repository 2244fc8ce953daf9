"""
Error types raised by the stress harness.

Every failure the harness can hit is fatal: nothing is retried, and the
first error unwinds straight to the CLI, which turns it into an exit code.
The hierarchy exists so the CLI can tell "you configured me wrong" apart
from "the system under load misbehaved".

- :class:`ConfigurationError` -- bad CLI input or key material; the run
  never starts.
- :class:`SigningError` -- a token could not be signed at issue time.
- :class:`HttpError` -- a backend answered with a non-2xx status.
- :class:`TransportError` -- the request never got an HTTP answer.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class IcoStressError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(IcoStressError):
    """Raised when CLI input or key material is missing or invalid."""


class SigningError(IcoStressError):
    """Raised when a token cannot be signed with the configured key."""


class TransportError(IcoStressError):
    """Raised when a request fails before any HTTP response is received."""

    def __init__(self, method: str, url: str, reason: str):
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class HttpError(IcoStressError):
    """
    A backend returned a non-success status.

    Carries both sides of the exchange so that a failure under load can be
    reproduced by hand without re-running the whole workload.
    """

    def __init__(
        self,
        *,
        status_code: int,
        reason: str,
        url: str,
        method: str,
        request_headers: Mapping[str, str],
        request_body: Any,
        response_headers: Mapping[str, str],
        response_body: str,
    ):
        super().__init__(f"{method} {url} returned {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason
        self.url = url
        self.method = method
        self.request_headers = dict(request_headers)
        self.request_body = request_body
        self.response_headers = dict(response_headers)
        self.response_body = response_body

    def diagnostic(self) -> str:
        """Render the failed exchange as multi-line text for stderr."""
        lines = [
            f"HTTP {self.status_code} {self.reason}".rstrip(),
            f"Request: {self.method} {self.url}",
            "Request headers:",
            *_format_headers(self.request_headers),
            "Request body:",
            _format_body(self.request_body),
            "Response headers:",
            *_format_headers(self.response_headers),
            "Response body:",
            _format_body(self.response_body),
        ]
        return "\n".join(lines)


def _format_headers(headers: Mapping[str, str]) -> list[str]:
    return [f"  {name}: {value}" for name, value in headers.items()]


def _format_body(body: Any) -> str:
    if body is None or body == b"" or body == "":
        return "  <empty>"
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return f"  {body}"
