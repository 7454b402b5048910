"""Sap exception hierarchy.

Shared across the loader, templating engines, and server so every module
raises and catches the same types.  Load-phase errors always carry the
offending path; the underlying cause is chained via ``raise ... from``.
"""

from pathlib import PurePath


class SapError(Exception):
    """Base for all sap-specific errors."""


class ConfigurationError(SapError):
    """Raised when process settings are invalid.

    Typically raised by ``ServerConfig.from_env()`` at startup.
    """


# -- Routes --


class RouteError(SapError):
    """Converting a file path to a route failed."""


class NonUnicodePath(RouteError):  # noqa: N818
    """The file path cannot be represented as UTF-8 text."""

    def __init__(self, path: PurePath | str | bytes) -> None:
        self.path = path
        super().__init__(f"non-unicode path: {path!r}")


# -- Templating --


class TemplatingError(SapError):
    """Base for HTML and JSON templating failures."""


class HtmlParsingError(TemplatingError):
    """The HTML document had parse errors and strict parsing was requested."""

    def __init__(self, errors: tuple[str, ...]) -> None:
        self.errors = errors
        super().__init__(f"HTML parsing failed: {'; '.join(errors)}")


class TemplateNotFound(TemplatingError):  # noqa: N818
    """No element matched the template filter."""

    def __init__(self) -> None:
        super().__init__("template element not found in the HTML")


class TemplateContentNotFound(TemplatingError):  # noqa: N818
    """The template element has no children."""

    def __init__(self) -> None:
        super().__init__("template element content not found")


class TemplateElementHasMoreThanOneChild(TemplatingError):  # noqa: N818
    """The template element has more than one child node."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"template element has more than one child ({count})")


class TemplateNonTextContent(TemplatingError):  # noqa: N818
    """The single child of the template element is not a text node."""

    def __init__(self) -> None:
        super().__init__("template element content is not text")


class ContentProcessorError(TemplatingError):
    """The content processor failed; the original error is kept in ``error``."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        super().__init__(f"content processor error: {error}")


class JsonTemplatingError(TemplatingError):
    """Base for env-substituted JSON failures."""


class JsonError(JsonTemplatingError):
    """The input is not a flat JSON object of strings, or could not be written."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"json: {message}")


class NotUnicode:
    """Reason attached to an ``EnvError``: the value is not valid text."""

    __slots__ = ("raw",)

    def __init__(self, raw: bytes) -> None:
        self.raw = raw

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NotUnicode) and other.raw == self.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __repr__(self) -> str:
        return f"NotUnicode({self.raw!r})"

    def __str__(self) -> str:
        return f"the value is not valid unicode: {self.raw!r}"


class EnvError(JsonTemplatingError):
    """An environment variable could not be used for substitution."""

    def __init__(self, env_var: str, reason: NotUnicode) -> None:
        self.env_var = env_var
        self.reason = reason
        super().__init__(f"env: processing env var {env_var!r} error: {reason}")


# -- Loading --


class LoadError(SapError):
    """Base for load failures. ``path`` identifies the offending file or directory."""

    def __init__(self, path: PurePath, message: str) -> None:
        self.path = path
        super().__init__(message)


class ReadingDir(LoadError):
    def __init__(self, path: PurePath, error: OSError) -> None:
        self.error = error
        super().__init__(path, f"reading dir {str(path)!r}: {error}")


class ReadingDirEntry(LoadError):
    def __init__(self, path: PurePath, error: OSError) -> None:
        self.error = error
        super().__init__(path, f"reading dir entry from {str(path)!r}: {error}")


class ReadingDirEntryMetadata(LoadError):
    def __init__(self, path: PurePath, error: OSError) -> None:
        self.error = error
        super().__init__(path, f"reading dir entry metadata for {str(path)!r}: {error}")


class RootDirPrefixStrip(LoadError):
    def __init__(self, path: PurePath, root: PurePath) -> None:
        self.root = root
        super().__init__(
            path, f"stripping the root dir prefix {str(root)!r} from a file path {str(path)!r}"
        )


class RouteConversion(LoadError):
    def __init__(self, path: PurePath, error: RouteError) -> None:
        self.error = error
        super().__init__(path, f"converting a file path to a route {str(path)!r}: {error}")


class ReadingBody(LoadError):
    def __init__(self, path: PurePath, error: OSError) -> None:
        self.error = error
        super().__init__(path, f"reading a response body from file {str(path)!r}: {error}")


class MaxFileSizeExceeded(LoadError):
    def __init__(self, path: PurePath, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            path, f"max file size {limit} exceeded for file {str(path)!r} of size {size}"
        )


class DuplicateRoute(LoadError):
    """Two distinct files derived the same route."""

    def __init__(self, path: PurePath, route: str) -> None:
        self.route = route
        super().__init__(path, f"adding file {str(path)!r} resulted in the route duplicate {route!r}")


class LoadTemplatingError(LoadError):
    """Templating a file failed; ``error`` is the ``TemplatingError``."""

    def __init__(self, path: PurePath, route: str, error: TemplatingError) -> None:
        self.route = route
        self.error = error
        super().__init__(
            path, f"applying the templating for file {str(path)!r} (route {route!r}): {error}"
        )
