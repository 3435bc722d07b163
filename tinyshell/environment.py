"""The shell's environment: an ordered list of variables with export state."""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from tinyshell.textutil import split_fields

DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


class Visibility(enum.Enum):
    """How a variable is shown by ``env`` and ``export``."""

    UNSET = 0
    EXPORTED = 1
    HIDDEN = 2


@dataclass
class EnvVar:
    """One environment variable."""

    key: str
    value: str | None = None
    visibility: Visibility = Visibility.EXPORTED


def minimal_environment() -> list[str]:
    """Entries used when the shell starts with an empty environment."""
    entries = [f"PATH={DEFAULT_PATH}", "OLDPWD"]
    try:
        entries.append(f"PWD={os.getcwd()}")
    except OSError:
        pass
    entries.append("SHLVL=1")
    return entries


def parse_entry(text: str, from_minimal: bool) -> EnvVar:
    """Build a variable from ``KEY=VALUE`` or a bare ``KEY``.

    A ``PATH`` coming from the minimal startup environment is hidden from
    listings; a bare key is declared but has no value.
    """
    if "=" not in text:
        return EnvVar(text, None, Visibility.UNSET)
    fields = split_fields(text, "=")
    key = fields[0] if fields else ""
    value = text.split("=", 1)[1]
    if key == "PATH" and from_minimal:
        visibility = Visibility.HIDDEN
    else:
        visibility = Visibility.EXPORTED
    return EnvVar(key, value, visibility)


class Environment:
    """Ordered collection of environment variables."""

    def __init__(self, variables: Iterable[EnvVar] = ()) -> None:
        self._vars: list[EnvVar] = list(variables)

    @classmethod
    def from_envp(cls, envp: Iterable[str] | Mapping[str, str] | None) -> Environment:
        """Build from ``KEY=VALUE`` strings or a mapping; ``None`` uses the process environment."""
        if envp is None:
            envp = os.environ
        if isinstance(envp, Mapping):
            entries = [f"{key}={value}" for key, value in envp.items()]
        else:
            entries = list(envp)
        if not entries:
            return cls(parse_entry(entry, True) for entry in minimal_environment())
        return cls(parse_entry(entry, False) for entry in entries)

    def find(self, key: str) -> EnvVar | None:
        """Return the first variable named ``key``, or ``None``."""
        return next((var for var in self._vars if var.key == key), None)

    def get(self, key: str) -> str | None:
        """Return the value of ``key``, or ``None`` if absent or valueless."""
        var = self.find(key)
        return var.value if var is not None else None

    def set(self, key: str, value: str | None) -> bool:
        """Update an existing variable and mark it exported.

        Returns ``False`` when the key is absent or ``value`` is ``None``.
        """
        if value is None:
            return False
        var = self.find(key)
        if var is None:
            return False
        var.value = value
        var.visibility = Visibility.EXPORTED
        return True

    def add(self, var: EnvVar) -> None:
        """Append a variable at the end."""
        self._vars.append(var)

    def unset(self, key: str) -> bool:
        """Remove the first variable named ``key``; return whether one was removed."""
        for index, var in enumerate(self._vars):
            if var.key == key:
                del self._vars[index]
                return True
        return False

    def to_envp(self) -> list[str]:
        """Render every variable as ``KEY=VALUE`` (``KEY=`` when valueless)."""
        return [f"{var.key}={var.value or ''}" for var in self._vars]

    def __iter__(self) -> Iterator[EnvVar]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)