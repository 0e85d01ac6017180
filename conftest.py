"""Root conftest.py -- makes `sendgrid_client` importable and stubs the HTTP service."""

import json
import os
import sys
from pathlib import Path

import httpx
import pytest

# Add the project root to sys.path so `from sendgrid_client import ...` works
# without an editable install.
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class StubService:
    """Canned responses served through ``httpx.MockTransport``.

    Every request is recorded on ``requests`` so tests can assert on the
    method, URL, headers and body that reached the transport.
    """

    def __init__(self, status=200, json_body=None, content=b"", error=None):
        self.status = status
        self.json_body = json_body
        self.content = content
        self.error = error
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.json_body is not None:
            return httpx.Response(self.status, json=self.json_body)
        return httpx.Response(self.status, content=self.content)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def stub_service():
    """Factory: ``stub_service(status=..., json_body=..., content=..., error=...)``."""
    return StubService


@pytest.fixture(autouse=True)
def _clean_sendgrid_env(monkeypatch):
    """Keep SENDGRID_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("SENDGRID_"):
            monkeypatch.delenv(key, raising=False)
