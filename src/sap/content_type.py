"""Content type detection for loaded routes.

Detection looks only at the route string, never at the file contents,
so templating can't change what a route is served as.

The detected values are interned in a ``MediaTypeCache``: every asset
with the same media type carries the very same ``bytes`` object in its
headers, so thousands of routes amortize to one buffer per distinct
media type.
"""

import mimetypes
import posixpath

PAGE_MEDIA_TYPE = b"text/html; charset=utf-8"


class MediaTypeCache:
    """Append-only intern table of media-type header values.

    Entries are created lazily and never evicted or replaced.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def find_or_cache(self, media_type: str) -> bytes:
        """Return the interned bytes for *media_type*, caching them on first use.

        Idempotent: repeated calls with an equal string return the
        identical object, not merely an equal one.
        """
        cached = self._entries.get(media_type)
        if cached is None:
            cached = self._entries.setdefault(media_type, media_type.encode("latin-1"))
        return cached

    def __contains__(self, media_type: object) -> bool:
        return media_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def route_extension(route: str) -> str | None:
    """Return the extension of the trailing route segment, without the dot.

    Dotfiles count as having an extension (``/.env`` -> ``"env"``), so
    they are never mistaken for page routes.
    """
    segment = posixpath.basename(route)
    if "." not in segment:
        return None
    return segment.rsplit(".", 1)[1]


class ContentTypeDetector:
    """Route-based content type detection.

    * trailing segment with a known extension -> the table's media type,
      interned through the cache;
    * no extension at all -> ``text/html; charset=utf-8`` (a page route);
    * unknown extension -> ``None``, the caller omits the header.

    The extension table is a private ``mimetypes.MimeTypes`` instance so
    detection does not depend on global registrations made elsewhere in
    the process.
    """

    __slots__ = ("_types", "cache")

    def __init__(
        self,
        cache: MediaTypeCache | None = None,
        types: mimetypes.MimeTypes | None = None,
    ) -> None:
        self.cache = cache if cache is not None else MediaTypeCache()
        self._types = types if types is not None else mimetypes.MimeTypes()

    def guess(self, extension: str) -> str | None:
        """Look up the media type for a bare extension (``"css"``)."""
        media_type, _ = self._types.guess_type(f"file.{extension}", strict=False)
        return media_type

    def detect(self, route: str) -> bytes | None:
        """Return the content-type header value for *route*, or ``None``."""
        extension = route_extension(route)
        if extension is None:
            return PAGE_MEDIA_TYPE
        media_type = self.guess(extension)
        if media_type is None:
            return None
        return self.cache.find_or_cache(media_type)
