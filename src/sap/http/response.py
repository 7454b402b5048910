"""HTTP response value with chainable .with_*() transformation API.

Each transformation returns a new Response.  The body and header byte
buffers are shared, never copied, so building a response from a loaded
asset costs a single small allocation.
"""

from dataclasses import dataclass, field, replace

from sap.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: bytes = b""
    status: int = 200
    headers: Headers = field(default_factory=Headers)

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str | bytes, value: str | bytes) -> "Response":
        """Return a new Response with an additional header."""
        return replace(self, headers=self.headers.with_header(name, value))

    @property
    def content_type(self) -> str | None:
        """The ``Content-Type`` header, if any."""
        return self.headers.get("content-type")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")
