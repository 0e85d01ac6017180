"""Request dispatch and response classification.

Every live operation goes through ``Dispatcher.dispatch``.  It is the
only place in the package that talks HTTP:

  1. Attach ``Authorization: Bearer <key>`` when a key is configured
  2. Attach ``Content-Type: application/json`` when there is a body
  3. Trace the request and response when verbose
  4. Execute a single exchange with a 30 second timeout
  5. Return the body on 2xx, otherwise raise the matching error kind

There is no retry and no backoff; callers own any retry policy.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from . import trace
from .config import DEFAULT_TIMEOUT
from .errors import (
    STATUS_ERRORS,
    TransportFailure,
    UnexpectedStatus,
    parse_api_errors,
)

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


def join_url(base: str, path: str) -> str:
    """Join an endpoint and a relative path with exactly one slash.

    >>> join_url("https://api.sendgrid.com/v3/", "/mail/send")
    'https://api.sendgrid.com/v3/mail/send'
    """
    if not path:
        return base
    return base.rstrip("/") + "/" + path.lstrip("/")


class Dispatcher:
    """Authenticated, classified HTTP exchange against one endpoint."""

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        *,
        verbose: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.verbose = verbose
        self._api_key = api_key
        self._http = httpx.Client(timeout=timeout, transport=transport)

    # --- lifecycle ---

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- dispatch ---

    def build_headers(self, has_body: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def dispatch(self, method: str, path: str, body: Optional[bytes] = None) -> bytes:
        """Send one request and classify the response.

        Args:
            method: HTTP verb, one of ``SUPPORTED_METHODS``.
            path:   Path relative to the endpoint, query string included.
            body:   Already-serialized JSON payload, or None.

        Returns:
            The raw response body of a 2xx response.

        Raises:
            BadRequest, Unauthorized, Forbidden, ServiceError,
            UnexpectedStatus, TransportFailure
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = join_url(self.endpoint, path)
        headers = self.build_headers(body is not None)

        if self.verbose:
            trace.emit(trace.render_request_line(method, url))
            if "Authorization" in headers:
                logger.debug("Authorization header attached to %s %s", method, url)
            if body is not None:
                trace.emit(
                    trace.render_block(body.decode("utf-8", errors="replace"), trace.REQUEST_PREFIX),
                    trace.BODY_SEPARATOR,
                )

        try:
            response = self._http.request(method, url, content=body, headers=headers)
        except httpx.RequestError as exc:
            raise TransportFailure(f"{method} {url}: {exc}") from exc

        data = response.content
        if self.verbose:
            trace.emit(trace.render_block(data.decode("utf-8", errors="replace"), trace.RESPONSE_PREFIX))

        if 200 <= response.status_code < 300:
            return data

        errors = parse_api_errors(data, verbose=self.verbose)
        kind = STATUS_ERRORS.get(response.status_code)
        if kind is not None:
            raise kind(errors=errors)
        status_text = f"{response.status_code} {response.reason_phrase}".strip()
        raise UnexpectedStatus(status_text, errors)
