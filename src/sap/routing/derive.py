"""Route derivation from file paths.

Maps a file path, relative to the root directory, to the route it is
served under::

    "index.html"       -> "/"
    "about.html"       -> "/about.html"
    "about/index.html" -> "/about"
    "a/b/index.html"   -> "/a/b"
"""

import logging
import os
from pathlib import PurePath

from sap.errors import NonUnicodePath

logger = logging.getLogger("sap.loader")

INDEX_FILE = "index.html"


def _as_text(path: PurePath | str | bytes) -> str:
    if isinstance(path, bytes):
        try:
            text = path.decode("utf-8")
        except UnicodeDecodeError:
            raise NonUnicodePath(path) from None
    else:
        text = path.as_posix() if isinstance(path, PurePath) else str(path)
    # Undecodable bytes survive os.fsdecode() as lone surrogates.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise NonUnicodePath(os.fsencode(text)) from None
    return text.replace(os.sep, "/") if os.sep != "/" else text


def derive_route(path: PurePath | str | bytes) -> str:
    """Return the route for a file path relative to the root directory.

    Strips a trailing ``index.html``, then at most one trailing ``/``,
    and prepends ``/``.

    Raises:
        NonUnicodePath: If the path is not representable as UTF-8 text.
    """
    logger.debug("Preparing route for %r", path)

    route = _as_text(path)
    route = route.removesuffix(INDEX_FILE)
    route = route.removesuffix("/")
    return f"/{route}"
