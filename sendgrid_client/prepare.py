"""Email preparation: default sender fill-in and recipient override.

Both the live and the simulation client run every outgoing email through
``prepare_email`` before it is serialized.
"""

from __future__ import annotations

from dataclasses import replace

from .models import Address, Email


def prepare_email(email: Email, default_sender: Address, override_address: str = "") -> Email:
    """Return a copy of ``email`` ready to be sent.

    - An empty ``from`` or ``reply_to`` is replaced by ``default_sender``.
    - When ``override_address`` is set every recipient of every
      personalization is redirected to it.  Display names are kept and
      ``from`` / ``reply_to`` are never touched by the override.

    The caller's email, its personalizations and their recipient lists
    are left as they were.
    """
    personalizations = [
        replace(
            p,
            recipients=[
                Address(email=override_address, name=r.name) if override_address
                else replace(r)
                for r in p.recipients
            ],
            substitutions=dict(p.substitutions),
        )
        for p in email.personalizations
    ]

    return replace(
        email,
        from_address=replace(default_sender) if email.from_address.is_zero else email.from_address,
        reply_to=replace(default_sender) if email.reply_to.is_zero else email.reply_to,
        personalizations=personalizations,
        attachments=list(email.attachments),
    )
