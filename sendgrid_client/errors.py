"""Error taxonomy for the SendGrid client.

Every failure surfaced by a client operation is a ``SendgridError``.
Callers branch on the concrete class:

    BadRequest          400
    Unauthorized        401
    Forbidden           403
    ServiceError        500
    UnexpectedStatus    any other non-2xx status (carries the status text)
    NotFound            contact search did not yield exactly one match
    TransportFailure    network / timeout failure, cause chained
    SerializationFailure  request or response body could not be (de)coded

None of these are retried.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class APIError:
    """A single error entry reported by the service.

    ``indices`` identifies which elements of a batch request failed.  They
    are only included in the rendered message when ``verbose`` is set.
    """

    message: str
    indices: list[int] = field(default_factory=list)
    verbose: bool = False

    def __str__(self) -> str:
        if self.verbose and self.indices:
            joined = ", ".join(str(i) for i in self.indices)
            return f"{self.message} (input indices: {joined})"
        return self.message

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, verbose: bool = False) -> APIError:
        return cls(
            message=str(data.get("message", "")),
            indices=[int(i) for i in data.get("error_indices") or []],
            verbose=verbose,
        )


def parse_api_errors(body: bytes, *, verbose: bool = False) -> tuple[APIError, ...]:
    """Extract ``{"errors": [...]}`` entries from an error response body.

    Bodies that are empty or not in that shape yield an empty tuple.
    """
    if not body:
        return ()
    try:
        data = json.loads(body)
    except ValueError:
        return ()
    if not isinstance(data, dict):
        return ()
    entries = data.get("errors")
    if not isinstance(entries, list):
        return ()
    return tuple(
        APIError.from_dict(e, verbose=verbose) for e in entries if isinstance(e, dict)
    )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SendgridError(Exception):
    """Base class for every client failure."""

    default_message = "SendGrid request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class StatusError(SendgridError):
    """A failure classified from the HTTP status of a response."""

    status_code: int = 0

    def __init__(self, message: str | None = None, errors: tuple[APIError, ...] = ()) -> None:
        super().__init__(message)
        self.errors = errors

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return f"{base}: " + "; ".join(str(e) for e in self.errors)


class BadRequest(StatusError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(StatusError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(StatusError):
    status_code = 403
    default_message = "Forbidden"


class ServiceError(StatusError):
    status_code = 500
    default_message = "Service error"


class UnexpectedStatus(StatusError):
    """Any non-2xx status outside the classified set."""

    def __init__(self, status_text: str, errors: tuple[APIError, ...] = ()) -> None:
        super().__init__(f"Unexpected status code: {status_text}", errors)
        self.status_text = status_text


class NotFound(SendgridError):
    default_message = "Not found"


class TransportFailure(SendgridError):
    default_message = "Transport failure"


class SerializationFailure(SendgridError):
    default_message = "Could not encode or decode message body"


# Status codes with a dedicated error kind.
STATUS_ERRORS: dict[int, type[StatusError]] = {
    cls.status_code: cls for cls in (BadRequest, Unauthorized, Forbidden, ServiceError)
}
