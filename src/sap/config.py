"""Loader and process configuration.

Both configs are frozen dataclasses: immutable after creation,
IDE-autocompletable, no string-key dict lookups.  ``ServerConfig`` can
be read from environment variables for container deployments::

    ROOT_DIR=/srv/app ADDR=0.0.0.0:8080 CFG_ENV_PREFIX=APP_ sap run
"""

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Final, TypeVar

from sap.errors import ConfigurationError
from sap.templating.spa_cfg import (
    DEFAULT_ENV_PREFIX,
    DEFAULT_SCRIPT_TYPE,
    HtmlConfigEngine,
    JsonConfigEngine,
    TemplateTagPresence,
)

# No file is ever larger than this.
UNLIMITED: Final[int] = sys.maxsize


class Mode(Enum):
    """Process operating mode."""

    RUN = "run"  # load, then serve
    CHECK = "check"  # load, then exit


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """How the loader turns a directory into a route table.

    ``root_templating`` applies to the ``/`` route only and
    ``config_json_templating`` to ``/config.json`` only; ``None``
    disables the engine.
    """

    max_file_size: int = UNLIMITED
    root_as_not_found: bool = True
    root_templating: HtmlConfigEngine | None = None
    config_json_templating: JsonConfigEngine | None = None


_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = f"{name}: expected a boolean, got {value!r}"
    raise ConfigurationError(msg)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        msg = f"{name}: expected an integer, got {value!r}"
        raise ConfigurationError(msg) from None


def _parse_size(name: str, value: str) -> int:
    if value.strip().lower() == "unlimited":
        return UNLIMITED
    size = _parse_int(name, value)
    if size < 0:
        msg = f"{name}: expected a non-negative size, got {value!r}"
        raise ConfigurationError(msg)
    return size


def _parse_addr(name: str, value: str) -> tuple[str, int]:
    host, sep, port = value.strip().rpartition(":")
    if not sep or not host:
        msg = f"{name}: expected host:port, got {value!r}"
        raise ConfigurationError(msg)
    port_number = _parse_int(name, port)
    if not 0 <= port_number <= 65535:
        msg = f"{name}: port out of range in {value!r}"
        raise ConfigurationError(msg)
    return host.strip("[]"), port_number


E = TypeVar("E", bound=Enum)


def _parse_enum(name: str, value: str, enum: type[E]) -> E:
    try:
        return enum(value.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum)
        msg = f"{name}: expected one of {allowed}, got {value!r}"
        raise ConfigurationError(msg) from None


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Process configuration. Immutable after creation.

    All fields but ``root_dir`` have defaults::

        config = ServerConfig(root_dir=Path("dist"), port=3000)
    """

    root_dir: Path = Path()

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    mode: Mode = Mode.RUN

    # Loading
    max_file_size: int = UNLIMITED
    root_as_not_found: bool = True
    # 200 lets client-side routers render unknown paths from the app shell.
    not_found_status: int = 200

    # Templating
    root_templating: bool = True
    template_tag_presence: TemplateTagPresence = TemplateTagPresence.REQUIRED
    config_json_templating: bool = False
    cfg_env_prefix: str = DEFAULT_ENV_PREFIX
    script_type: str = DEFAULT_SCRIPT_TYPE
    strict_html: bool = False

    # Logging
    log_level: str = "info"
    log_format: str = "text"

    def loader_config(self) -> LoaderConfig:
        """Build the ``LoaderConfig`` these settings describe."""
        root_templating = None
        if self.root_templating:
            root_templating = HtmlConfigEngine(
                env_prefix=self.cfg_env_prefix,
                template_tag_presence=self.template_tag_presence,
                script_type=self.script_type,
                strict=self.strict_html,
            )
        config_json_templating = None
        if self.config_json_templating:
            config_json_templating = JsonConfigEngine(env_prefix=self.cfg_env_prefix)
        return LoaderConfig(
            max_file_size=self.max_file_size,
            root_as_not_found=self.root_as_not_found,
            root_templating=root_templating,
            config_json_templating=config_json_templating,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        require_root_dir: bool = True,
        **overrides: object,
    ) -> "ServerConfig":
        """Read settings from environment variables.

        Keyword *overrides* (e.g. from command-line flags) win over the
        environment; ``None`` overrides are ignored.

        Raises:
            ConfigurationError: On a malformed value or a missing ``ROOT_DIR``.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if "ROOT_DIR" in env:
            values["root_dir"] = Path(env["ROOT_DIR"])
        if "ADDR" in env:
            values["host"], values["port"] = _parse_addr("ADDR", env["ADDR"])
        if "MODE" in env:
            values["mode"] = _parse_enum("MODE", env["MODE"], Mode)
        if "MAX_FILE_SIZE" in env:
            values["max_file_size"] = _parse_size("MAX_FILE_SIZE", env["MAX_FILE_SIZE"])
        if "ROOT_AS_NOT_FOUND" in env:
            values["root_as_not_found"] = _parse_bool("ROOT_AS_NOT_FOUND", env["ROOT_AS_NOT_FOUND"])
        if "NOT_FOUND_STATUS" in env:
            values["not_found_status"] = _parse_int("NOT_FOUND_STATUS", env["NOT_FOUND_STATUS"])
        if "NO_ROOT_TEMPLATING" in env:
            values["root_templating"] = not _parse_bool(
                "NO_ROOT_TEMPLATING", env["NO_ROOT_TEMPLATING"]
            )
        if "TEMPLATE_TAG_PRESENCE" in env:
            values["template_tag_presence"] = _parse_enum(
                "TEMPLATE_TAG_PRESENCE", env["TEMPLATE_TAG_PRESENCE"], TemplateTagPresence
            )
        if "CONFIG_JSON_TEMPLATING" in env:
            values["config_json_templating"] = _parse_bool(
                "CONFIG_JSON_TEMPLATING", env["CONFIG_JSON_TEMPLATING"]
            )
        if "CFG_ENV_PREFIX" in env:
            values["cfg_env_prefix"] = env["CFG_ENV_PREFIX"]
        if "CFG_SCRIPT_TYPE" in env:
            values["script_type"] = env["CFG_SCRIPT_TYPE"]
        if "STRICT_HTML" in env:
            values["strict_html"] = _parse_bool("STRICT_HTML", env["STRICT_HTML"])
        if "LOG_LEVEL" in env:
            values["log_level"] = env["LOG_LEVEL"].strip().lower()
        if "LOG_FORMAT" in env:
            values["log_format"] = env["LOG_FORMAT"].strip().lower()

        known = {f.name for f in fields(cls)}
        for name, value in overrides.items():
            if name not in known:
                msg = f"Unknown setting {name!r}"
                raise ConfigurationError(msg)
            if value is not None:
                values[name] = value

        if require_root_dir and "root_dir" not in values:
            msg = "ROOT_DIR must be set"
            raise ConfigurationError(msg)
        if values.get("log_format", "text") not in ("text", "json"):
            msg = f"LOG_FORMAT: expected text or json, got {values['log_format']!r}"
            raise ConfigurationError(msg)
        if "log_level" in values:
            values["log_level"] = str(values["log_level"]).strip().lower()
            if values["log_level"].upper() not in logging.getLevelNamesMapping():
                msg = f"LOG_LEVEL: unknown log level {values['log_level']!r}"
                raise ConfigurationError(msg)
        status = values.get("not_found_status", 200)
        if not isinstance(status, int) or not 100 <= status <= 599:
            msg = f"NOT_FOUND_STATUS: expected an HTTP status (100-599), got {status!r}"
            raise ConfigurationError(msg)

        return cls(**values)  # type: ignore[arg-type]
