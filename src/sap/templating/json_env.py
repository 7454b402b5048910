"""Env-var-substituted flat JSON configs.

A config is a JSON object whose values are all strings::

    {"apiUrl": "http://localhost:3000", "featureFlag": "off"}

Every key maps to an environment variable named ``{prefix}{KEY}`` where
``KEY`` is the key in upper snake case (``apiUrl`` -> ``APP_API_URL``).
Set variables replace the value; unset variables leave it as-is.
"""

import json
import logging

from sap.env import EnvLookup, ProcessEnv
from sap.errors import JsonError

logger = logging.getLogger("sap.templating")

_SEPARATORS = frozenset("_- \t")


def _split_words(key: str) -> list[str]:
    """Split a key into words on separators and case/digit boundaries."""
    words: list[str] = []
    current: list[str] = []
    for i, ch in enumerate(key):
        if ch in _SEPARATORS:
            if current:
                words.append("".join(current))
                current = []
            continue
        if current:
            prev = current[-1]
            following = key[i + 1] if i + 1 < len(key) else ""
            if (
                (prev.islower() and ch.isupper())
                or (prev.isdigit() != ch.isdigit())
                # Acronym end: "URLValue" splits before "V".
                or (prev.isupper() and ch.isupper() and following.islower())
            ):
                words.append("".join(current))
                current = []
        current.append(ch)
    if current:
        words.append("".join(current))
    return words


def to_upper_snake(key: str) -> str:
    """Convert ``camelCase``/``PascalCase``/``kebab-case`` keys to ``UPPER_SNAKE``."""
    return "_".join(word.upper() for word in _split_words(key))


def env_var_name(key: str, env_prefix: str) -> str:
    return f"{env_prefix}{to_upper_snake(key)}"


def parse_config(json_text: str | bytes) -> dict[str, str]:
    """Parse a flat JSON object of string values.

    Raises:
        JsonError: On invalid JSON or any other shape.
    """
    try:
        value = json.loads(json_text)
    except (ValueError, UnicodeDecodeError) as exc:
        raise JsonError(str(exc)) from exc
    if not isinstance(value, dict):
        msg = f"expected a JSON object, got {type(value).__name__}"
        raise JsonError(msg)
    for key, item in value.items():
        if not isinstance(item, str):
            msg = f"expected a string value for key {key!r}, got {type(item).__name__}"
            raise JsonError(msg)
    return value


def dump_config(config: dict[str, str]) -> str:
    return json.dumps(config, ensure_ascii=False, separators=(",", ":"))


def substitute_from_env(
    config: dict[str, str],
    env_prefix: str,
    *,
    env: EnvLookup | None = None,
) -> dict[str, str]:
    """Return a copy of *config* with values replaced from the environment.

    The input is never modified, so a failure leaves nothing half-applied.

    Raises:
        EnvError: If a matching variable is set but not valid text.
    """
    env = env if env is not None else ProcessEnv()
    result = dict(config)
    for key in config:
        name = env_var_name(key, env_prefix)
        value = env.lookup(name)
        if value is None:
            continue
        logger.debug("Substituting %s from %s", key, name)
        result[key] = value
    return result


def templatify_from_env(
    json_text: str | bytes,
    env_prefix: str,
    *,
    env: EnvLookup | None = None,
) -> str:
    """Parse *json_text*, substitute values from the environment, and re-serialize.

    The key set is preserved exactly; only values change.
    """
    config = parse_config(json_text)
    return dump_config(substitute_from_env(config, env_prefix, env=env))
