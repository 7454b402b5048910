"""In-memory route table.

Routes are registered by the loader and compiled into an immutable
lookup structure once loading finishes.  After ``freeze()`` nothing can
write to it, so request handlers share it without locking.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from sap.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Asset:
    """The immutable (headers, body) pair served for a route."""

    body: bytes
    headers: Headers = field(default_factory=Headers)

    def copy(self) -> "Asset":
        """Return a new Asset sharing this one's header and body buffers."""
        return replace(self)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Frozen mapping of route -> Asset, plus an optional fallback asset."""

    routes: Mapping[str, Asset] = field(default_factory=lambda: MappingProxyType({}))
    not_found: Asset | None = None

    def get(self, route: str) -> Asset | None:
        return self.routes.get(route)

    def __contains__(self, route: object) -> bool:
        return route in self.routes

    def __iter__(self) -> Iterator[str]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)


class RouteTableBuilder:
    """Mutable route table under construction.

    Usage::

        builder = RouteTableBuilder()
        builder.add("/", Asset(b"<html>..."))
        builder.use_as_not_found("/")
        table = builder.freeze()
    """

    __slots__ = ("_frozen", "_not_found", "_routes")

    def __init__(self) -> None:
        self._routes: dict[str, Asset] = {}
        self._not_found: Asset | None = None
        self._frozen = False

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the route table after freeze()."
            raise RuntimeError(msg)

    def __contains__(self, route: object) -> bool:
        return route in self._routes

    def reserve(self, route: str) -> bool:
        """Claim *route* ahead of loading its asset.

        Returns ``False`` when the route is already registered or
        reserved; the first registration always wins.
        """
        self._check_not_frozen()
        if route in self._routes:
            return False
        self._routes[route] = _PENDING
        return True

    def add(self, route: str, asset: Asset) -> None:
        """Register *asset* under *route* (previously reserved or new)."""
        self._check_not_frozen()
        existing = self._routes.get(route)
        if existing is not None and existing is not _PENDING:
            msg = f"Route {route!r} is already registered."
            raise KeyError(msg)
        self._routes[route] = asset

    def get(self, route: str) -> Asset | None:
        asset = self._routes.get(route)
        return None if asset is _PENDING else asset

    def use_as_not_found(self, route: str) -> bool:
        """Install a copy of the asset at *route* as the fallback, if present."""
        self._check_not_frozen()
        asset = self.get(route)
        if asset is None:
            return False
        self._not_found = asset.copy()
        return True

    def freeze(self) -> RouteTable:
        """Finish construction and return the read-only table."""
        self._check_not_frozen()
        pending = [route for route, asset in self._routes.items() if asset is _PENDING]
        if pending:
            msg = f"Routes reserved but never loaded: {pending!r}"
            raise RuntimeError(msg)
        self._frozen = True
        return RouteTable(routes=MappingProxyType(dict(self._routes)), not_found=self._not_found)


_PENDING = Asset(body=b"")
