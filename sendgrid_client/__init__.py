"""SendGrid Client - contacts and templated email over the v3 API.

``new_client`` builds either a live client (HTTP through a single
dispatcher that handles auth, tracing and error classification) or a
simulation client that renders requests without sending them.  Both can
redirect every recipient to an override address for staging use.
"""

from .client import LiveClient, MailClient, new_client
from .config import (
    DEFAULT_ENDPOINT,
    ClientConfig,
    Option,
    apply_options,
    default_sender,
    endpoint,
    load_options,
    override_address,
    simulate,
    verbose,
)
from .errors import (
    APIError,
    BadRequest,
    Forbidden,
    NotFound,
    SendgridError,
    SerializationFailure,
    ServiceError,
    TransportFailure,
    Unauthorized,
    UnexpectedStatus,
)
from .models import (
    Address,
    Attachment,
    Contact,
    Email,
    Field,
    Personalization,
    split_name,
    traits,
)
from .prepare import prepare_email
from .simulation import SimulatedRequest, SimulationClient

__all__ = [
    "APIError",
    "Address",
    "Attachment",
    "BadRequest",
    "ClientConfig",
    "Contact",
    "DEFAULT_ENDPOINT",
    "Email",
    "Field",
    "Forbidden",
    "LiveClient",
    "MailClient",
    "NotFound",
    "Option",
    "Personalization",
    "SendgridError",
    "SerializationFailure",
    "ServiceError",
    "SimulatedRequest",
    "SimulationClient",
    "TransportFailure",
    "Unauthorized",
    "UnexpectedStatus",
    "apply_options",
    "default_sender",
    "endpoint",
    "load_options",
    "new_client",
    "override_address",
    "prepare_email",
    "simulate",
    "split_name",
    "traits",
    "verbose",
]
