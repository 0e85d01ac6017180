"""Tests for sendgrid_client.prepare -- default sender and recipient override."""

import pytest

from sendgrid_client.models import Address, Attachment, Email, Personalization
from sendgrid_client.prepare import prepare_email

SENDER = Address("from@x.com", "X")


def _make_email(**overrides) -> Email:
    defaults = {
        "template_id": "d-123",
        "personalizations": [
            Personalization(
                recipients=[Address("real@y.com", "Y"), Address("other@y.com", "O")],
                substitutions={"k": "v"},
                subject="First",
            ),
            Personalization(recipients=[Address("third@z.com", "Z")]),
        ],
        "attachments": [Attachment(content="aGk=", filename="a.txt")],
    }
    defaults.update(overrides)
    return Email(**defaults)


# ============================================================================
# Override address
# ============================================================================

class TestOverride:
    def test_every_recipient_rewritten(self):
        out = prepare_email(_make_email(), SENDER, "test@x.com")
        assert all(r.email == "test@x.com" for r in out.recipients)
        assert len(out.recipients) == 3

    def test_names_preserved(self):
        out = prepare_email(_make_email(), SENDER, "test@x.com")
        assert [r.name for r in out.recipients] == ["Y", "O", "Z"]

    def test_from_and_reply_to_not_overridden(self):
        email = _make_email(
            from_address=Address("me@x.com", "Me"),
            reply_to=Address("replies@x.com", "R"),
        )
        out = prepare_email(email, SENDER, "test@x.com")
        assert out.from_address == Address("me@x.com", "Me")
        assert out.reply_to == Address("replies@x.com", "R")

    def test_no_override_keeps_recipients(self):
        out = prepare_email(_make_email(), SENDER, "")
        assert [r.email for r in out.recipients] == ["real@y.com", "other@y.com", "third@z.com"]

    def test_idempotent(self):
        once = prepare_email(_make_email(), SENDER, "test@x.com")
        twice = prepare_email(once, SENDER, "test@x.com")
        assert twice.to_dict() == once.to_dict()

    def test_subjects_and_attachments_untouched(self):
        out = prepare_email(_make_email(), SENDER, "test@x.com")
        assert out.personalizations[0].subject == "First"
        assert out.personalizations[0].substitutions == {"k": "v"}
        assert out.attachments == [Attachment(content="aGk=", filename="a.txt")]


# ============================================================================
# Default sender
# ============================================================================

class TestDefaultSender:
    def test_zero_from_replaced(self):
        out = prepare_email(_make_email(), SENDER)
        assert out.from_address == SENDER

    def test_zero_reply_to_replaced(self):
        out = prepare_email(_make_email(), SENDER)
        assert out.reply_to == SENDER

    @pytest.mark.parametrize("field_name", ["from_address", "reply_to"])
    def test_explicit_address_kept(self, field_name):
        explicit = Address("explicit@x.com", "E")
        out = prepare_email(_make_email(**{field_name: explicit}), SENDER)
        assert getattr(out, field_name) == explicit

    def test_zero_default_sender_leaves_zero(self):
        out = prepare_email(_make_email(), Address())
        assert out.from_address.is_zero


# ============================================================================
# Caller's value is never mutated
# ============================================================================

class TestNoMutation:
    def test_caller_email_unchanged(self):
        email = _make_email()
        before = email.to_dict()
        out = prepare_email(email, SENDER, "test@x.com")
        assert email.to_dict() == before
        assert out is not email

    def test_copies_are_distinct(self):
        email = _make_email()
        out = prepare_email(email, SENDER, "test@x.com")
        assert out.personalizations is not email.personalizations
        assert out.personalizations[0] is not email.personalizations[0]
        assert out.personalizations[0].recipients is not email.personalizations[0].recipients
        assert out.from_address is not SENDER
