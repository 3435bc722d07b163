"""Commands the shell runs itself: cd, echo, env, exit, export, pwd and unset."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence

from tinyshell.environment import Environment, Visibility, parse_entry
from tinyshell.pathsearch import find_executable
from tinyshell.textutil import atoi

_LLONG_MIN = -(1 << 63)
_LLONG_MAX = (1 << 63) - 1


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell.

    ``status`` is the exit status, or ``None`` when the shell should exit
    with the status of the last command it ran.
    """

    def __init__(self, status: int | None) -> None:
        super().__init__(status)
        self.status = status


def _error(message: str) -> None:
    sys.stderr.write(message)
    sys.stderr.flush()


def _os_error(exc: OSError) -> None:
    _error(f"minishell: {exc.strerror or exc}\n")


def _chdir(target: str | None) -> bool:
    if target is None:
        return False
    try:
        os.chdir(target)
    except OSError:
        return False
    return True


def cd(args: Sequence[str], env: Environment) -> int:
    """Change directory and update ``PWD`` and ``OLDPWD``; return the status."""
    if len(args) > 2:
        _error("minishell: cd: too many arguments\n")
        return 1
    oldpwd = env.get("PWD")
    if oldpwd is None:
        try:
            oldpwd = os.getcwd()
        except OSError:
            oldpwd = None
    new_dir = args[1] if len(args) > 1 else None
    if new_dir is None or new_dir == "~":
        if not _chdir(env.get("HOME")):
            _error("minishell: cd: HOME not set\n")
            return 1
    elif new_dir == "-":
        previous = env.get("OLDPWD")
        if not _chdir(previous):
            _error("minishell: cd: OLDPWD not set\n")
            return 1
        print(previous, flush=True)
    else:
        try:
            os.chdir(new_dir)
        except OSError as exc:
            _os_error(exc)
            return 1
    try:
        pwd_now = os.getcwd()
    except OSError as exc:
        _os_error(exc)
        return 1
    env.set("OLDPWD", oldpwd)
    env.set("PWD", pwd_now)
    return 0


def is_n_flag(arg: str) -> bool:
    """Whether ``arg`` is an ``echo`` option made of ``-`` followed only by ``n``."""
    return arg.startswith("-") and all(char == "n" for char in arg[1:])


def echo(args: Sequence[str]) -> int:
    """Print the arguments separated by spaces; ``-n`` drops the newline."""
    words = list(args[1:])
    newline = True
    while words and is_n_flag(words[0]):
        newline = False
        words.pop(0)
    sys.stdout.write(" ".join(words) + ("\n" if newline else ""))
    sys.stdout.flush()
    return 0


def env_command(args: Sequence[str], env: Environment) -> int:
    """Print the exported variables as ``KEY=VALUE`` lines."""
    if len(env) == 0 or env.get("PATH") is None:
        _error("minishell: env: No such file or directory\n")
        return 127
    if find_executable("env", env) is None:
        _error("env: command not found\n")
        return 127
    if len(args) > 1:
        _error(f"env: {args[1]}: No such file or directory\n")
        return 127
    for var in env:
        if var.visibility is Visibility.EXPORTED:
            sys.stdout.write(f"{var.key}={var.value or ''}\n")
    sys.stdout.flush()
    return 0


def pwd(env: Environment) -> int:
    """Print the working directory, falling back on ``PWD``."""
    try:
        working_dir = os.getcwd()
    except OSError as exc:
        working_dir = env.get("PWD")
        if working_dir is None:
            _os_error(exc)
            return 1
    print(working_dir, flush=True)
    return 0


def is_valid_name(text: str) -> bool:
    """Whether the part of ``text`` before ``=`` is a valid variable name."""
    name = text.split("=", 1)[0]
    if not text or not (text[0].isascii() and (text[0].isalpha() or text[0] == "_")):
        return False
    return all(char.isascii() and (char.isalnum() or char == "_") for char in name[1:])


def _print_declarations(env: Environment) -> None:
    variables = iter(env)
    for var in variables:
        if var.visibility is Visibility.HIDDEN:
            var = next(variables, None)
            if var is None:
                break
        if var.visibility is Visibility.EXPORTED:
            sys.stdout.write(f'declare -x {var.key}="{var.value or ""}"\n')
        else:
            sys.stdout.write(f"declare -x {var.key}\n")
    sys.stdout.flush()


def export(args: Sequence[str], env: Environment) -> int:
    """Declare or assign variables; with no arguments, list them."""
    status = 0
    for arg in args[1:]:
        if not is_valid_name(arg):
            _error(f"minishell: export: '{arg}': not a valid identifier\n")
            status = 1
            continue
        # Exported entries have no startup environment, so PATH is hidden as there.
        new_var = parse_entry(arg, True)
        existing = env.find(new_var.key)
        if existing is None:
            env.add(new_var)
        elif existing.visibility is Visibility.EXPORTED and new_var.value is None:
            continue
        else:
            existing.value = new_var.value
            existing.visibility = new_var.visibility
    if len(args) <= 1:
        _print_declarations(env)
    return status


def unset(args: Sequence[str], env: Environment) -> int:
    """Remove each named variable."""
    for name in args[1:]:
        env.unset(name)
    return 0


def is_valid_exit_arg(arg: str) -> bool:
    """Whether ``arg`` is a signed integer that fits in 64 bits."""
    digits = arg[1:] if arg[:1] in ("-", "+") else arg
    if not digits or not all("0" <= char <= "9" for char in digits):
        return False
    return _LLONG_MIN <= int(arg) <= _LLONG_MAX


def _announce_exit(is_child: bool) -> None:
    if not is_child:
        _error("exit\n")


def exit_command(args: Sequence[str], env: Environment, is_child: bool) -> int:
    """Leave the shell by raising :class:`ShellExit`.

    Returns 1 without leaving when given too many arguments.
    """
    if len(args) == 1:
        _announce_exit(is_child)
        raise ShellExit(None)
    if not is_valid_exit_arg(args[1]):
        _announce_exit(is_child)
        _error(f"minishell: exit: {args[1]}: numeric argument required\n")
        raise ShellExit(2)
    if len(args) > 2:
        _announce_exit(is_child)
        _error("minishell: exit: too many arguments\n")
        return 1
    _announce_exit(is_child)
    raise ShellExit(atoi(args[1]) % 256)


_BUILTINS: dict[str, Callable[[Sequence[str], Environment, bool], int]] = {
    "cd": lambda argv, env, is_child: cd(argv, env),
    "pwd": lambda argv, env, is_child: pwd(env),
    "env": lambda argv, env, is_child: env_command(argv, env),
    "exit": exit_command,
    "unset": lambda argv, env, is_child: unset(argv, env),
    "export": lambda argv, env, is_child: export(argv, env),
    "echo": lambda argv, env, is_child: echo(argv),
}


def is_builtin(name: str | None) -> bool:
    """Whether ``name`` is a command the shell runs itself."""
    return name in _BUILTINS


def run_builtin(argv: Sequence[str], env: Environment, is_child: bool) -> int:
    """Run the builtin named by ``argv[0]`` and return its exit status."""
    if not argv or not is_builtin(argv[0]):
        raise ValueError(f"not a builtin: {argv[0] if argv else ''!r}")
    return _BUILTINS[argv[0]](argv, env, is_child)