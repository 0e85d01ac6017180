"""Simulation client: the full request shaping, none of the network.

Writes (``send_email``, ``store_contacts``) always succeed and reads
(``fetch_contact*``) always raise ``NotFound``, since no server-side
state exists to find.  Every request that would have been sent is
traced and kept in ``history``, which holds the most recent
``HISTORY_LIMIT`` requests.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from . import trace
from .client import (
    CONTACTS_PATH,
    SEND_PATH,
    MailClient,
    encode_json,
    search_path,
    store_contacts_payload,
)
from .config import DEFAULT_ENDPOINT, ClientConfig
from .dispatcher import join_url
from .errors import NotFound
from .models import Contact, Email

HISTORY_LIMIT = 100


@dataclass(frozen=True)
class SimulatedRequest:
    """A request the simulation client would have sent."""
    method: str
    url: str
    payload: Optional[Any] = None


class SimulationClient(MailClient):

    def __init__(self, config: ClientConfig, *, history_limit: int = HISTORY_LIMIT) -> None:
        if not config.endpoint:
            config = replace(config, endpoint=DEFAULT_ENDPOINT)
        self.config = config
        self.history: deque[SimulatedRequest] = deque(maxlen=history_limit)

    def with_endpoint(self, url: str) -> SimulationClient:
        return SimulationClient(
            replace(self.config, endpoint=url or DEFAULT_ENDPOINT),
            history_limit=self.history.maxlen,
        )

    def _dump(self, method: str, path: str, payload: Optional[Any] = None) -> SimulatedRequest:
        url = join_url(self.config.endpoint, path)
        rendered = ""
        if self.config.verbose and payload is not None:
            rendered = trace.render_block(
                encode_json(payload, indent=2).decode("utf-8"), trace.SIMULATED_PREFIX
            )
        trace.emit(trace.render_request_line(method, url), rendered)

        request = SimulatedRequest(method=method, url=url, payload=payload)
        self.history.append(request)
        return request

    def send_email(self, email: Email) -> None:
        self._dump("POST", SEND_PATH, self.prepare(email).to_dict())

    def store_contacts(self, contacts: Sequence[Contact], list_ids: Sequence[str]) -> None:
        self._dump("PUT", CONTACTS_PATH, store_contacts_payload(contacts, list_ids))

    def fetch_contact_by_params(self, params: dict[str, str]) -> Contact:
        self._dump("POST", search_path(params))
        raise NotFound()
