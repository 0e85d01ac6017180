"""Request / response trace rendering.

Traces are written to the ``sendgrid_client.trace`` logger at INFO so the
dispatcher and the simulation client emit the same layout:

    sendgrid: POST https://api.sendgrid.com/v3/mail/send
     > {"template_id": ...}
     *
     < {"result": ...}
"""

from __future__ import annotations

import logging
import textwrap

logger = logging.getLogger("sendgrid_client.trace")

REQUEST_PREFIX = " > "
RESPONSE_PREFIX = " < "
SIMULATED_PREFIX = "        > "
BODY_SEPARATOR = " * "


def render_request_line(method: str, url: str) -> str:
    return "sendgrid: %s %s" % (method, url)


def render_block(body: str, prefix: str) -> str:
    """Prefix every line of a body, blank ones included.  ``""`` for an empty body."""
    if not body:
        return ""
    return textwrap.indent(body, prefix, predicate=lambda _line: True)


def emit(*lines: str) -> None:
    """Write non-empty trace lines to the trace logger."""
    for line in lines:
        if line:
            logger.info("%s", line)
