"""Data models for the SendGrid client.

All models are plain dataclasses with type hints.  Each one knows how to
render itself into the JSON shape the v3 API expects (``to_dict``) and,
where the service sends it back to us, how to parse it (``from_dict``).

Empty optional fields are omitted from the rendered payload, matching
what the service accepts for partial contact upserts.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Self


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


# ---------------------------------------------------------------------------
# Addressing
# ---------------------------------------------------------------------------

@dataclass
class Address:
    """An email address with an optional display name."""

    email: str = ""
    name: str = ""

    @property
    def is_zero(self) -> bool:
        """True when no email is set.  Zero senders get the default sender."""
        return not self.email

    def to_dict(self) -> dict[str, str]:
        return {"email": self.email, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Self:
        if not data:
            return cls()
        data = _require_mapping(data, "address")
        return cls(email=data.get("email", "") or "", name=data.get("name", "") or "")


@dataclass
class Personalization:
    """A group of recipients sharing template substitutions.

    One email may carry several personalizations, each with its own
    recipient list and optional subject.
    """

    recipients: list[Address] = field(default_factory=list)
    substitutions: dict[str, str] = field(default_factory=dict)
    subject: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"to": [r.to_dict() for r in self.recipients]}
        if self.substitutions:
            out["dynamic_template_data"] = dict(self.substitutions)
        if self.subject:
            out["subject"] = self.subject
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        data = _require_mapping(data, "personalization")
        return cls(
            recipients=[Address.from_dict(r) for r in data.get("to") or []],
            substitutions=dict(data.get("dynamic_template_data") or {}),
            subject=data.get("subject") or None,
        )


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

@dataclass
class Attachment:
    """A file attached to an outgoing email.  ``content`` is base64."""

    content: str
    filename: str
    mime_type: str | None = None
    disposition: str | None = None
    content_id: str | None = None

    @classmethod
    def from_bytes(cls, mime_type: str, filename: str, data: bytes) -> Self:
        """Build an attachment from raw file bytes.

        >>> Attachment.from_bytes("text/plain", "a.txt", b"hi").content
        'aGk='
        """
        return cls(
            content=base64.b64encode(data).decode("ascii"),
            filename=filename,
            mime_type=mime_type,
        )

    def to_dict(self) -> dict[str, str]:
        out = {"content": self.content}
        if self.mime_type:
            out["type"] = self.mime_type
        out["filename"] = self.filename
        if self.disposition:
            out["disposition"] = self.disposition
        if self.content_id:
            out["content_id"] = self.content_id
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        data = _require_mapping(data, "attachment")
        return cls(
            content=data.get("content", ""),
            filename=data.get("filename", ""),
            mime_type=data.get("type") or None,
            disposition=data.get("disposition") or None,
            content_id=data.get("content_id") or None,
        )


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------

@dataclass
class Email:
    """A templated email.

    ``from_address`` is named to avoid the ``from`` keyword; it is
    rendered as ``from`` in the payload.
    """

    template_id: str = ""
    from_address: Address = field(default_factory=Address)
    reply_to: Address = field(default_factory=Address)
    personalizations: list[Personalization] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def recipients(self) -> list[Address]:
        """Every recipient across all personalizations, in order."""
        return [r for p in self.personalizations for r in p.recipients]

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "from": self.from_address.to_dict(),
            "reply_to": self.reply_to.to_dict(),
            "personalizations": [p.to_dict() for p in self.personalizations],
            "attachments": [a.to_dict() for a in self.attachments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        data = _require_mapping(data, "email")
        return cls(
            template_id=data.get("template_id", ""),
            from_address=Address.from_dict(data.get("from")),
            reply_to=Address.from_dict(data.get("reply_to")),
            personalizations=[
                Personalization.from_dict(p) for p in data.get("personalizations") or []
            ],
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
        )


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

@dataclass
class Field:
    """A custom contact field definition."""

    id: int = 0
    name: str = ""
    type: str = ""
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id}
        if self.name:
            out["name"] = self.name
        if self.type:
            out["type"] = self.type
        if self.value is not None and self.value != "":
            out["value"] = self.value
        return out


def traits(values: dict[str, Any]) -> list[Field]:
    """Turn an arbitrary mapping into string-typed custom fields.

    >>> [f.value for f in traits({"plan": "pro", "seats": 3})]
    ['pro', '3']
    """
    return [Field(name=k, type="string", value=str(v)) for k, v in values.items()]


@dataclass
class Contact:
    """A marketing contact record."""

    id: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    lists: list[str] = field(default_factory=list)
    custom_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.id:
            out["id"] = self.id
        if self.email:
            out["email"] = self.email
        if self.first_name:
            out["first_name"] = self.first_name
        if self.last_name:
            out["last_name"] = self.last_name
        if self.lists:
            out["list_ids"] = list(self.lists)
        if self.custom_fields:
            out["custom_fields"] = dict(self.custom_fields)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        data = _require_mapping(data, "contact")
        return cls(
            id=data.get("id") or None,
            email=data.get("email") or None,
            first_name=data.get("first_name") or None,
            last_name=data.get("last_name") or None,
            lists=list(data.get("list_ids") or []),
            custom_fields=dict(data.get("custom_fields") or {}),
        )


def split_name(name: str) -> tuple[str, str]:
    """Split a full name into (first, last) on the last space.

    >>> split_name("Mary Jane Watson")
    ('Mary Jane', 'Watson')
    >>> split_name("Cher")
    ('Cher', '')
    """
    i = name.rfind(" ")
    if i > 0:
        return name[:i].strip(), name[i + 1:].strip()
    return name, ""
