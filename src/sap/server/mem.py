"""In-memory file server.

Serves a loaded ``RouteTable`` without touching the disk.  All fallible
work happened at load time, so request handling can't fail: every
request maps to one of a few pre-built responses.

``MemServer`` is an ASGI 3.0 application::

    table = await load("dist", config.loader_config())
    app = MemServer(table)
"""

import logging

from sap._internal.asgi import Receive, Scope, Send
from sap.http.response import Response
from sap.routing.table import RouteTable
from sap.server.sender import send_response

logger = logging.getLogger("sap.server")

METHOD_NOT_ALLOWED = Response(status=405).with_header(b"allow", b"GET")
NOT_FOUND = Response(body=b"not found", status=404)


class MemServer:
    """Serve GET requests from a frozen route table.

    Args:
        table: The loaded routes and optional fallback asset.
        not_found_status: Status used when the fallback asset answers an
            unmatched path.  ``200`` (default) suits client-side
            routers; ``404`` keeps crawlers honest.
    """

    __slots__ = ("_fallback", "_routes", "not_found_status", "table")

    def __init__(self, table: RouteTable, *, not_found_status: int = 200) -> None:
        self.table = table
        self.not_found_status = not_found_status
        # Responses are built once; handling a request is a dict lookup.
        self._routes = {
            route: Response(body=asset.body, headers=asset.headers)
            for route, asset in table.routes.items()
        }
        self._fallback = NOT_FOUND
        if table.not_found is not None:
            self._fallback = Response(
                body=table.not_found.body, headers=table.not_found.headers
            ).with_status(not_found_status)

    def handle(self, method: str, path: str) -> Response:
        """Return the response for *method* and *path* (exact, case-sensitive match)."""
        if method != "GET":
            return METHOD_NOT_ALLOWED
        response = self._routes.get(path)
        if response is not None:
            return response
        return self._fallback

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        response = self.handle(scope["method"], scope["path"])
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Acknowledge the ASGI lifespan protocol; there is nothing to set up."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.info("Serving %d routes", len(self._routes))
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
