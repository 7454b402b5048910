"""Pluggable pieces of the HTML templating engine.

Two structural protocols:

* ``ElementFilter.selects(tag, attrs, flags)`` decides which element is
  the template marker.  Called once per element, as it is created.
* ``ContentProcessor.process(text)`` turns the marker's text into its
  replacement.  Failures are raised; the engine wraps them in
  ``ContentProcessorError``.

Plain callables work as content processors too (see ``as_processor``).
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from sap.env import EnvLookup, ProcessEnv
from sap.templating.json_env import templatify_from_env

# Attribute list as produced by the HTML tokenizer: names lowercased,
# valueless attributes carry ``None``.
Attrs = list[tuple[str, str | None]]


@dataclass(frozen=True, slots=True)
class ElementFlags:
    """Creation flags passed along with each element."""

    self_closing: bool = False


@runtime_checkable
class ElementFilter(Protocol):
    def selects(self, tag: str, attrs: Attrs, flags: ElementFlags) -> bool: ...


@runtime_checkable
class ContentProcessor(Protocol):
    def process(self, text: str) -> str: ...


@dataclass(frozen=True, slots=True)
class ScriptTag:
    """Select ``<script>`` elements whose ``type`` attribute equals ``script_type``."""

    script_type: str = "application/spa-cfg"

    def selects(self, tag: str, attrs: Attrs, flags: ElementFlags) -> bool:  # noqa: ARG002
        return tag == "script" and any(
            name == "type" and value == self.script_type for name, value in attrs
        )


class IdentityProcessor:
    """Return the content unchanged."""

    __slots__ = ()

    def process(self, text: str) -> str:
        return text


class EnvSubstitutionProcessor:
    """Treat the content as a flat JSON config and substitute values from the environment."""

    __slots__ = ("env", "env_prefix")

    def __init__(self, env_prefix: str, env: EnvLookup | None = None) -> None:
        self.env_prefix = env_prefix
        self.env = env if env is not None else ProcessEnv()

    def process(self, text: str) -> str:
        return templatify_from_env(text, self.env_prefix, env=self.env)

    def __repr__(self) -> str:
        return f"EnvSubstitutionProcessor(env_prefix={self.env_prefix!r})"


class _CallableProcessor:
    __slots__ = ("func",)

    def __init__(self, func: Callable[[str], str]) -> None:
        self.func = func

    def process(self, text: str) -> str:
        return self.func(text)


def as_processor(processor: ContentProcessor | Callable[[str], str]) -> ContentProcessor:
    """Accept either a ``ContentProcessor`` or a plain ``str -> str`` callable."""
    if isinstance(processor, ContentProcessor):
        return processor
    if callable(processor):
        return _CallableProcessor(processor)
    msg = f"Expected a content processor or callable, got {type(processor).__name__}"
    raise TypeError(msg)
