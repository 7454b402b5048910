"""SPA loader: read a directory tree into an immutable route table.

Every regular file under the root is read exactly once, mapped to a
route, optionally templated, tagged with a content type, and registered.
Any failure aborts the whole load; there is no partially loaded table.

Traversal uses an explicit work-list of directories rather than
recursion.  Symlinks to files are followed; symlinks to directories are
not traversed, so link cycles can't make the load loop.

Usage::

    table = await load(Path("dist"), LoaderConfig(root_templating=HtmlConfigEngine()))
"""

import logging
import os
import stat
from pathlib import Path

import anyio
import anyio.to_thread

from sap.config import LoaderConfig
from sap.content_type import ContentTypeDetector
from sap.errors import (
    DuplicateRoute,
    LoadTemplatingError,
    MaxFileSizeExceeded,
    ReadingBody,
    ReadingDir,
    ReadingDirEntry,
    ReadingDirEntryMetadata,
    RootDirPrefixStrip,
    RouteConversion,
    RouteError,
    TemplatingError,
)
from sap.http.headers import Headers
from sap.routing.derive import derive_route
from sap.routing.table import Asset, RouteTable, RouteTableBuilder

logger = logging.getLogger("sap.loader")

ROOT_ROUTE = "/"
CONFIG_JSON_ROUTE = "/config.json"


def _scan(directory: Path) -> list[os.DirEntry[str]]:
    """List a directory, tagging failures with the step that failed."""
    try:
        iterator = os.scandir(directory)
    except OSError as exc:
        raise ReadingDir(directory, exc) from exc
    with iterator:
        try:
            return list(iterator)
        except OSError as exc:
            raise ReadingDirEntry(directory, exc) from exc


class Loader:
    """Loads the files under ``root_dir`` according to a ``LoaderConfig``."""

    __slots__ = ("config", "root_dir")

    def __init__(self, root_dir: str | Path, config: LoaderConfig | None = None) -> None:
        self.root_dir = Path(root_dir)
        self.config = config if config is not None else LoaderConfig()

    def __repr__(self) -> str:
        return f"Loader(root_dir={str(self.root_dir)!r}, config={self.config!r})"

    async def load(self) -> RouteTable:
        """Load every file under the root and return the frozen route table."""
        builder = RouteTableBuilder()
        detector = ContentTypeDetector()
        await self.populate_from([self.root_dir], builder, detector)

        if self.config.root_as_not_found and builder.use_as_not_found(ROOT_ROUTE):
            logger.info("Using root as not found route")

        table = builder.freeze()
        logger.info(
            "Loaded %d routes from %s (%d distinct content types)",
            len(table),
            self.root_dir,
            len(detector.cache),
        )
        return table

    async def populate_from(
        self,
        dirs: list[Path],
        builder: RouteTableBuilder,
        detector: ContentTypeDetector,
    ) -> None:
        """Drain the *dirs* work-list, registering every file found into *builder*."""
        while dirs:
            directory = dirs.pop()
            logger.debug("Visiting dir %s", directory)

            entries = await anyio.to_thread.run_sync(_scan, directory)
            for entry in entries:
                entry_path = Path(entry.path)
                logger.debug("Processing dir entry %s", entry_path)

                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_link = entry.is_symlink()
                    metadata = await anyio.to_thread.run_sync(entry.stat)
                except OSError as exc:
                    raise ReadingDirEntryMetadata(entry_path, exc) from exc

                if is_dir:
                    logger.debug("Queueing another dir for visiting %s", entry_path)
                    dirs.append(entry_path)
                    continue
                if is_link and stat.S_ISDIR(metadata.st_mode):
                    logger.info("Not traversing symlinked dir %s", entry_path)
                    continue
                if not stat.S_ISREG(metadata.st_mode):
                    logger.info("Skipping non-regular file %s", entry_path)
                    continue

                await self._load_file(entry_path, metadata.st_size, builder, detector)

        logger.debug("All dirs visited")

    async def _load_file(
        self,
        path: Path,
        size: int,
        builder: RouteTableBuilder,
        detector: ContentTypeDetector,
    ) -> None:
        try:
            relative = path.relative_to(self.root_dir)
        except ValueError:
            raise RootDirPrefixStrip(path, self.root_dir) from None

        try:
            route = derive_route(relative)
        except RouteError as exc:
            raise RouteConversion(relative, exc) from exc

        if not builder.reserve(route):
            raise DuplicateRoute(path, route)

        max_file_size = self.config.max_file_size
        if size > max_file_size:
            raise MaxFileSizeExceeded(path, size, max_file_size)

        logger.debug("Loading body for route %s from %s", route, path)
        try:
            body = await anyio.Path(path).read_bytes()
        except OSError as exc:
            raise ReadingBody(path, exc) from exc

        # The file may have grown since it was stat'ed.
        if len(body) > max_file_size:
            raise MaxFileSizeExceeded(path, len(body), max_file_size)

        body = self._apply_templating(path, route, body)

        content_type = detector.detect(route)
        headers = Headers()
        if content_type is not None:
            headers = headers.with_header(b"content-type", content_type)

        logger.info(
            "Adding route %s (%d bytes, content type %s)",
            route,
            len(body),
            content_type.decode("latin-1") if content_type is not None else None,
        )
        builder.add(route, Asset(body=body, headers=headers))

    def _apply_templating(self, path: Path, route: str, body: bytes) -> bytes:
        try:
            if route == ROOT_ROUTE and self.config.root_templating is not None:
                body = self.config.root_templating.apply(body)
                logger.info("Successfully applied HTML templating for route %s (%s)", route, path)
            elif route == CONFIG_JSON_ROUTE and self.config.config_json_templating is not None:
                body = self.config.config_json_templating.apply(body)
                logger.info("Successfully applied JSON templating for route %s (%s)", route, path)
        except TemplatingError as exc:
            raise LoadTemplatingError(path, route, exc) from exc
        return body


async def load(root: str | Path, config: LoaderConfig | None = None) -> RouteTable:
    """Load the SPA under *root* into a frozen ``RouteTable``."""
    return await Loader(root, config).load()
