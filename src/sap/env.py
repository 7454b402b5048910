"""Environment variable lookup.

The templating engines never read ``os.environ`` directly; they take an
``EnvLookup`` so tests can substitute a plain mapping without touching
the real process environment.
"""

import os
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from sap.errors import EnvError, NotUnicode


@runtime_checkable
class EnvLookup(Protocol):
    """Read-only access to environment variables.

    ``lookup`` returns ``None`` when the variable is unset and raises
    ``EnvError`` when it is set to something that is not valid text.
    """

    def lookup(self, name: str) -> str | None: ...


class ProcessEnv:
    """Environment lookup backed by the current process environment.

    On POSIX, ``os.environ`` decodes undecodable bytes with surrogate
    escapes; such values are reported as not unicode together with
    their original bytes.
    """

    __slots__ = ()

    def lookup(self, name: str) -> str | None:
        value = os.environ.get(name)
        if value is None:
            return None
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise EnvError(name, NotUnicode(os.fsencode(value))) from None
        return value

    def __repr__(self) -> str:
        return "ProcessEnv()"


class MappingEnv:
    """Environment lookup over an explicit mapping.

    Values may be ``str`` or raw ``bytes``; bytes are decoded as UTF-8.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str | bytes] | None = None) -> None:
        self._values = dict(values or {})

    def lookup(self, name: str) -> str | None:
        value = self._values.get(name)
        if value is None or isinstance(value, str):
            return value
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            raise EnvError(name, NotUnicode(value)) from None

    def __repr__(self) -> str:
        return f"MappingEnv({sorted(self._values)!r})"
