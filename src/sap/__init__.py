"""Sap: serve a single page app from memory.

Loads the static files of an SPA once at startup, applies
deployment-time configuration from the environment, and serves the
result without touching the disk again.

Basic usage::

    import anyio
    from sap import HtmlConfigEngine, LoaderConfig, MemServer, load

    config = LoaderConfig(root_templating=HtmlConfigEngine(env_prefix="APP_"))
    table = anyio.run(load, "dist", config)
    app = MemServer(table)  # any ASGI server
"""

__version__ = "0.1.0"
__all__ = [
    "Asset",
    "ConfigurationError",
    "HtmlConfigEngine",
    "JsonConfigEngine",
    "LoadError",
    "Loader",
    "LoaderConfig",
    "MemServer",
    "RouteTable",
    "SapError",
    "ServerConfig",
    "TemplateTagPresence",
    "TemplatingError",
    "derive_route",
    "load",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import sap`` fast while providing a clean top-level API.
    """
    if name in ("Loader", "load"):
        from sap import loader

        return getattr(loader, name)

    if name in ("LoaderConfig", "ServerConfig"):
        from sap import config

        return getattr(config, name)

    if name in ("HtmlConfigEngine", "JsonConfigEngine", "TemplateTagPresence"):
        from sap.templating import spa_cfg

        return getattr(spa_cfg, name)

    if name in ("Asset", "RouteTable"):
        from sap.routing import table

        return getattr(table, name)

    if name == "derive_route":
        from sap.routing.derive import derive_route

        return derive_route

    if name == "MemServer":
        from sap.server.mem import MemServer

        return MemServer

    if name in ("SapError", "ConfigurationError", "LoadError", "TemplatingError"):
        from sap import errors

        return getattr(errors, name)

    msg = f"module 'sap' has no attribute {name!r}"
    raise AttributeError(msg)
