"""Locating executables for commands."""

from __future__ import annotations

import os

from tinyshell.environment import Environment
from tinyshell.textutil import split_fields


def find_executable(command: str | None, env: Environment) -> str | None:
    """Return the path to run for ``command``, or ``None`` if none is found.

    A command that is itself executable is returned as is. Commands starting
    with ``/`` or ``.`` are not looked up further; others are searched in the
    directories of ``PATH``.
    """
    if not command:
        return None
    if os.access(command, os.X_OK):
        return command
    if command.startswith(("/", ".")):
        return None
    path = env.get("PATH")
    if path is None:
        return None
    for directory in split_fields(path, ":"):
        candidate = f"{directory}/{command}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None