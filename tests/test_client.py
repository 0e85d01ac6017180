"""Tests for sendgrid_client.client -- live client operations.

Covers:
- store_contacts payload and method
- Contact search: exactly one match, zero, several, malformed responses
- fetch_contact / fetch_contact_by_email query parameters
- send_email preparation (override + default sender) on the wire
- Error propagation from the dispatcher
- Factory selection of live vs simulation
- End-to-end scenario against a stub endpoint
"""

import pytest

from sendgrid_client import (
    Address,
    Contact,
    Email,
    Personalization,
    default_sender,
    endpoint,
    new_client,
    override_address,
    simulate,
)
from sendgrid_client.client import LiveClient, search_path
from sendgrid_client.config import DEFAULT_ENDPOINT, ClientConfig
from sendgrid_client.errors import BadRequest, NotFound, SerializationFailure, Unauthorized
from sendgrid_client.simulation import SimulationClient


def _client(stub, *options) -> LiveClient:
    return new_client("SG.key", endpoint("https://stub.test"), *options, transport=stub.transport)


# ============================================================================
# Contacts
# ============================================================================

class TestStoreContacts:
    def test_put_payload(self, stub_service):
        stub = stub_service(status=202, json_body={"job_id": "j1"})
        contacts = [Contact(email="a@b.com", first_name="Ann"), Contact(email="c@d.com")]
        _client(stub).store_contacts(contacts, ["list-1", "list-2"])

        assert stub.last.method == "PUT"
        assert str(stub.last.url) == "https://stub.test/marketing/contacts"
        assert stub.last_json() == {
            "list_ids": ["list-1", "list-2"],
            "contacts": [{"email": "a@b.com", "first_name": "Ann"}, {"email": "c@d.com"}],
        }

    def test_failure_propagates(self, stub_service):
        stub = stub_service(status=400)
        with pytest.raises(BadRequest):
            _client(stub).store_contacts([Contact(email="bad")], [])


class TestSearchPath:
    def test_no_params(self):
        assert search_path({}) == "/marketing/contacts/search"

    def test_sorted_and_encoded(self):
        assert search_path({"email": "a+b@c.com", "ext_id": "7"}) == (
            "/marketing/contacts/search?email=a%2Bb%40c.com&ext_id=7"
        )


class TestFetchContact:
    def test_exactly_one_match(self, stub_service):
        stub = stub_service(json_body={"result": [{"id": "abc", "email": "a@b.com"}]})
        contact = _client(stub).fetch_contact_by_email("a@b.com")
        assert contact == Contact(id="abc", email="a@b.com")
        assert stub.last.method == "POST"
        assert stub.last.url.path == "/marketing/contacts/search"
        assert stub.last.url.params["email"] == "a@b.com"
        assert stub.last.content == b""

    def test_fetch_by_id_uses_ext_id(self, stub_service):
        stub = stub_service(json_body={"result": [{"id": "abc"}]})
        _client(stub).fetch_contact("user-42")
        assert stub.last.url.params["ext_id"] == "user-42"

    def test_zero_matches_not_found(self, stub_service):
        stub = stub_service(json_body={"result": []})
        with pytest.raises(NotFound):
            _client(stub).fetch_contact("nobody")

    def test_missing_result_not_found(self, stub_service):
        stub = stub_service(json_body={})
        with pytest.raises(NotFound):
            _client(stub).fetch_contact("nobody")

    def test_several_matches_not_found(self, stub_service):
        stub = stub_service(json_body={"result": [{"id": "1"}, {"id": "2"}]})
        with pytest.raises(NotFound):
            _client(stub).fetch_contact_by_email("dup@b.com")

    def test_params_passed_through(self, stub_service):
        stub = stub_service(json_body={"result": [{"id": "1"}]})
        _client(stub).fetch_contact_by_params({"email": "a@b.com", "ext_id": "9"})
        assert stub.last.url.params["ext_id"] == "9"
        assert stub.last.url.params["email"] == "a@b.com"

    def test_malformed_body(self, stub_service):
        stub = stub_service(content=b"not json")
        with pytest.raises(SerializationFailure) as excinfo:
            _client(stub).fetch_contact("x")
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_result_not_a_list(self, stub_service):
        stub = stub_service(json_body={"result": "nope"})
        with pytest.raises(SerializationFailure):
            _client(stub).fetch_contact("x")

    def test_unauthorized(self, stub_service):
        stub = stub_service(status=401)
        with pytest.raises(Unauthorized):
            _client(stub).fetch_contact("x")


# ============================================================================
# Email
# ============================================================================

class TestSendEmail:
    def test_posts_prepared_email(self, stub_service):
        stub = stub_service(status=202)
        email = Email(
            template_id="d-1",
            personalizations=[Personalization(recipients=[Address("real@y.com", "Y")])],
        )
        _client(stub, override_address("qa@x.com"), default_sender(Address("from@x.com", "X"))).send_email(email)

        body = stub.last_json()
        assert stub.last.method == "POST"
        assert str(stub.last.url) == "https://stub.test/mail/send"
        assert body["personalizations"][0]["to"] == [{"email": "qa@x.com", "name": "Y"}]
        assert body["from"] == {"email": "from@x.com", "name": "X"}
        assert body["reply_to"] == {"email": "from@x.com", "name": "X"}
        # caller's email untouched
        assert email.recipients[0].email == "real@y.com"
        assert email.from_address.is_zero

    def test_no_override_sends_real_recipients(self, stub_service):
        stub = stub_service(status=202)
        email = Email(personalizations=[Personalization(recipients=[Address("real@y.com")])])
        _client(stub).send_email(email)
        assert stub.last_json()["personalizations"][0]["to"][0]["email"] == "real@y.com"

    def test_unencodable_substitution(self, stub_service):
        stub = stub_service(status=202)
        email = Email(personalizations=[
            Personalization(recipients=[Address("a@b.com")], substitutions={"k": object()}),
        ])
        with pytest.raises(SerializationFailure) as excinfo:
            _client(stub).send_email(email)
        assert isinstance(excinfo.value.__cause__, TypeError)
        assert stub.requests == []


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:
    def test_factory_live_by_default(self, stub_service):
        assert isinstance(_client(stub_service()), LiveClient)

    def test_factory_simulation(self):
        client = new_client("SG.key", simulate())
        assert isinstance(client, SimulationClient)

    def test_empty_endpoint_never_used(self):
        client = LiveClient("k", ClientConfig(endpoint=""))
        assert client.config.endpoint == DEFAULT_ENDPOINT

    def test_with_endpoint(self, stub_service):
        stub = stub_service(status=202)
        client = _client(stub, override_address("qa@x.com"))
        rebased = client.with_endpoint("https://other.test/v3")
        rebased.send_email(Email(personalizations=[Personalization(recipients=[Address("r@y.com")])]))
        assert str(stub.last.url) == "https://other.test/v3/mail/send"
        assert rebased.config.override_address == "qa@x.com"
        assert client.config.endpoint == "https://stub.test"

    def test_default_sender_property(self, stub_service):
        sender = Address("from@x.com", "X")
        assert _client(stub_service(), default_sender(sender)).default_sender == sender


# ============================================================================
# End to end
# ============================================================================

def test_end_to_end_override_and_default_sender(stub_service):
    stub = stub_service(status=202)
    client = new_client(
        "SG.key",
        endpoint("https://stub.test"),
        override_address("test@x.com"),
        default_sender(Address("from@x.com", "X")),
        transport=stub.transport,
    )
    email = Email(personalizations=[Personalization(recipients=[Address("real@y.com", "Y")])])
    client.send_email(email)

    body = stub.last_json()
    assert body["from"]["email"] == "from@x.com"
    assert body["personalizations"][0]["to"] == [{"email": "test@x.com", "name": "Y"}]
    assert stub.last.headers["Authorization"] == "Bearer SG.key"
