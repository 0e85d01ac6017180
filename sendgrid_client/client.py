"""SendGrid client contract and the live (networked) implementation.

Callers depend on ``MailClient`` only.  ``new_client`` picks the live or
the simulation implementation from the ``simulate`` config field:

    client = new_client(api_key, endpoint("https://stub.test"), override_address("qa@x.com"))
    client.send_email(email)
    contact = client.fetch_contact_by_email("someone@example.com")
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Optional, Sequence
from urllib.parse import urlencode

import httpx

from .config import DEFAULT_ENDPOINT, ClientConfig, Option, apply_options
from .dispatcher import Dispatcher
from .errors import NotFound, SerializationFailure
from .models import Address, Contact, Email
from .prepare import prepare_email

logger = logging.getLogger(__name__)

CONTACTS_PATH = "/marketing/contacts"
SEARCH_PATH = "/marketing/contacts/search"
SEND_PATH = "/mail/send"


# ---------------------------------------------------------------------------
# Payload helpers shared by both implementations
# ---------------------------------------------------------------------------

def store_contacts_payload(contacts: Sequence[Contact], list_ids: Sequence[str]) -> dict[str, Any]:
    return {
        "list_ids": list(list_ids),
        "contacts": [c.to_dict() for c in contacts],
    }


def search_path(params: dict[str, str]) -> str:
    """Search path with url-encoded params, keys in sorted order."""
    if not params:
        return SEARCH_PATH
    return f"{SEARCH_PATH}?{urlencode(sorted(params.items()))}"


def encode_json(payload: Any, *, indent: Optional[int] = None) -> bytes:
    try:
        return json.dumps(payload, indent=indent, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"Could not encode request body: {exc}") from exc


def decode_json(data: bytes) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        raise SerializationFailure(f"Could not decode response body: {exc}") from exc


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class MailClient(ABC):
    """Operations every client implementation provides."""

    config: ClientConfig

    @property
    def default_sender(self) -> Address:
        return self.config.default_sender

    @abstractmethod
    def store_contacts(self, contacts: Sequence[Contact], list_ids: Sequence[str]) -> None:
        """Create or update contacts and add them to the given lists."""

    @abstractmethod
    def fetch_contact_by_params(self, params: dict[str, str]) -> Contact:
        """Search for exactly one contact.  Raises NotFound otherwise."""

    @abstractmethod
    def send_email(self, email: Email) -> None:
        """Send a templated email."""

    def fetch_contact(self, contact_id: str) -> Contact:
        """Look up a contact by its external identifier."""
        return self.fetch_contact_by_params({"ext_id": contact_id})

    def fetch_contact_by_email(self, email: str) -> Contact:
        return self.fetch_contact_by_params({"email": email})

    def prepare(self, email: Email) -> Email:
        return prepare_email(email, self.config.default_sender, self.config.override_address)

    def close(self) -> None:
        pass

    def __enter__(self) -> MailClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Live client
# ---------------------------------------------------------------------------

class LiveClient(MailClient):
    """Talks to the real service through a ``Dispatcher``."""

    def __init__(
        self,
        api_key: str,
        config: ClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not config.endpoint:
            config = replace(config, endpoint=DEFAULT_ENDPOINT)
        self.config = config
        self._api_key = api_key
        self._transport = transport
        self._dispatcher = Dispatcher(
            config.endpoint,
            api_key,
            verbose=config.verbose,
            transport=transport,
        )

    def with_endpoint(self, url: str) -> LiveClient:
        """A new client identical to this one but rooted at ``url``."""
        return LiveClient(
            self._api_key,
            replace(self.config, endpoint=url or DEFAULT_ENDPOINT),
            transport=self._transport,
        )

    def close(self) -> None:
        self._dispatcher.close()

    def store_contacts(self, contacts: Sequence[Contact], list_ids: Sequence[str]) -> None:
        body = encode_json(store_contacts_payload(contacts, list_ids))
        self._dispatcher.dispatch("PUT", CONTACTS_PATH, body)
        logger.debug("Stored %d contacts in %d lists", len(contacts), len(list_ids))

    def fetch_contact_by_params(self, params: dict[str, str]) -> Contact:
        data = decode_json(self._dispatcher.dispatch("POST", search_path(params)))
        if not isinstance(data, dict):
            raise SerializationFailure("Search response is not a JSON object")
        results = data.get("result") or []
        if not isinstance(results, list):
            raise SerializationFailure("Search response 'result' is not a list")
        # Zero and several matches are both reported as not found.
        if len(results) != 1:
            logger.debug("Contact search %s matched %d contacts", params, len(results))
            raise NotFound()
        if not isinstance(results[0], dict):
            raise SerializationFailure("Search result entry is not a JSON object")
        return Contact.from_dict(results[0])

    def send_email(self, email: Email) -> None:
        body = encode_json(self.prepare(email).to_dict())
        self._dispatcher.dispatch("POST", SEND_PATH, body)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def new_client(
    api_key: str,
    *options: Option,
    transport: Optional[httpx.BaseTransport] = None,
) -> MailClient:
    """Build a client from options.  ``simulate`` selects the implementation."""
    config = apply_options(*options)
    if config.simulate:
        from .simulation import SimulationClient
        return SimulationClient(config)
    return LiveClient(api_key, config, transport=transport)
