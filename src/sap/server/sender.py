"""ASGI response sending: translates a sap Response to ASGI messages."""

import logging

from sap._internal.asgi import Send
from sap.http.response import Response

logger = logging.getLogger("sap.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Translate a sap Response into ASGI send() calls.

    Header pairs go out exactly as stored, in order; ``content-length``
    is always computed here.
    """
    raw_headers: list[tuple[bytes, bytes]] = [
        (name.lower(), value)
        for name, value in response.headers.raw
        if name.lower() != b"content-length"
    ]

    body = response.body if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
