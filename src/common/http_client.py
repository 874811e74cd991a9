"""HTTP transport used by every repository operation.

Wraps a single ``requests.Session`` so connections are pooled for the life of
the process. Failures are classified instead of exiting: timeouts become
``TransientNetworkError`` (retryable), TLS handshake failures become
``SecureTransportError`` and anything else ``PermanentNetworkError``.
Non-2xx responses are returned to the caller untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from constants import Constants
from common.errors import PermanentNetworkError, SecureTransportError, TransientNetworkError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Fully read HTTP response."""

    url: str
    status_code: int
    content: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status_code < 300


class HttpTransport:
    """Blocking GET transport backed by a pooled ``requests.Session``."""

    def __init__(
        self,
        timeout: float = Constants.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", Constants.USER_AGENT)

    def get(self, url: str, *, credentials=None) -> HttpResponse:
        """GET ``url``, attaching basic auth when ``credentials`` are complete.

        Raises:
            TransientNetworkError: connect or read timeout.
            SecureTransportError: TLS handshake failure.
            PermanentNetworkError: any other request failure.
        """
        target = safe_url(url)
        auth = None
        if credentials is not None and credentials.username and credentials.password is not None:
            auth = HTTPBasicAuth(credentials.username, credentials.password)

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=target,
                    ),
                )
            try:
                res = self._session.get(url, timeout=self._timeout, auth=auth)
            except requests.Timeout as exc:
                logger.debug("GET %s timed out after %s seconds", target, self._timeout)
                raise TransientNetworkError(f"timeout: {exc}", url) from exc
            except requests.exceptions.SSLError as exc:
                logger.debug("GET %s failed TLS handshake: %s", target, exc)
                raise SecureTransportError(f"TLS failure: {exc}", url) from exc
            except requests.RequestException as exc:  # includes ConnectionError
                logger.debug("GET %s connection error: %s", target, exc)
                raise PermanentNetworkError(f"connection error: {exc}", url) from exc

            response = HttpResponse(
                url=url,
                status_code=res.status_code,
                content=res.content or b"",
                headers=dict(res.headers),
            )

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if response.ok else "handled_non_2xx",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=target,
                ),
            )
        return response

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
