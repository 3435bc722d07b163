"""Running parsed commands: single commands, pipelines and redirections."""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from tinyshell.builtins import ShellExit, is_builtin, run_builtin
from tinyshell.environment import Environment
from tinyshell.pathsearch import find_executable

_NOT_FOUND_STATUS = 127
_SIGINT_STATUS = 130
_SIGQUIT_STATUS = 131

Waiter = Callable[[], int]


@dataclass
class Command:
    """One command of a pipeline.

    ``in_file`` and ``out_file`` are open file descriptors for redirections,
    or ``None`` to use the pipeline (or the terminal). :func:`execute` closes
    them once the command has been started.
    """

    argv: list[str] = field(default_factory=list)
    in_file: int | None = None
    out_file: int | None = None

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("a command needs at least a name")


def exit_status_from(returncode: int) -> int:
    """Turn a process return code (negative when killed) into a shell status."""
    if returncode >= 0:
        return returncode
    signum = -returncode
    if signum == signal.SIGINT:
        return _SIGINT_STATUS
    if signum == signal.SIGQUIT:
        return _SIGQUIT_STATUS
    return 128 + signum


def _default_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)


@contextlib.contextmanager
def _ignoring_signals() -> Iterator[None]:
    """Ignore SIGINT and SIGQUIT in the shell while children run."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = {
        signum: signal.signal(signum, signal.SIG_IGN)
        for signum in (signal.SIGINT, signal.SIGQUIT)
    }
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _report_signal(signum: int) -> None:
    if signum == signal.SIGINT:
        sys.stdout.write("\n")
    elif signum == signal.SIGQUIT:
        sys.stdout.write("Quit \n")
    sys.stdout.flush()


def _not_found(name: str) -> Waiter:
    sys.stderr.write(f"{name}: command not found\n")
    sys.stderr.flush()
    return lambda: _NOT_FOUND_STATUS


def _env_dict(env: Environment) -> dict[str, str]:
    return dict(entry.split("=", 1) for entry in env.to_envp())


def _spawn_external(
    command: Command, env: Environment, stdin: int | None, stdout: int | None
) -> Waiter:
    name = command.argv[0]
    path = find_executable(name, env)
    if path is None:
        return _not_found(name)
    try:
        process = subprocess.Popen(
            command.argv,
            executable=path,
            stdin=stdin,
            stdout=stdout,
            env=_env_dict(env),
            preexec_fn=_default_signals,
        )
    except OSError:
        return _not_found(name)
    return process.wait


def _run_builtin_child(
    command: Command,
    env: Environment,
    stdin: int | None,
    stdout: int | None,
    inherited: Sequence[int],
) -> None:
    """Body of a forked child running a builtin; never returns."""
    status = 1
    try:
        _default_signals()
        if stdin is not None:
            os.dup2(stdin, 0)
        if stdout is not None:
            os.dup2(stdout, 1)
        for fd in inherited:
            with contextlib.suppress(OSError):
                os.close(fd)
        sys.stdout = open(1, "w", closefd=False)
        sys.stderr = open(2, "w", closefd=False)
        try:
            run_builtin(command.argv, env, True)
            status = 0
        except ShellExit as exc:
            status = exc.status if exc.status is not None else 0
        sys.stdout.flush()
        sys.stderr.flush()
    finally:
        os._exit(status)


def _spawn_builtin(
    command: Command,
    env: Environment,
    stdin: int | None,
    stdout: int | None,
    inherited: Sequence[int],
) -> Waiter:
    sys.stdout.flush()
    sys.stderr.flush()
    pid = os.fork()
    if pid == 0:
        _run_builtin_child(command, env, stdin, stdout, inherited)
    return lambda: os.waitstatus_to_exitcode(os.waitpid(pid, 0)[1])


def _wait_all(waiters: Sequence[Waiter]) -> int:
    status = 0
    with _ignoring_signals():
        for waiter in waiters:
            code = waiter()
            if code < 0:
                _report_signal(-code)
            status = exit_status_from(code)
    return status


def _run_single(command: Command, env: Environment) -> int:
    if is_builtin(command.argv[0]):
        if command.out_file is None:
            return run_builtin(command.argv, env, False)
        with open(command.out_file, "w", closefd=False) as stream:
            with contextlib.redirect_stdout(stream):
                return run_builtin(command.argv, env, False)
    waiter = _spawn_external(command, env, command.in_file, command.out_file)
    return _wait_all([waiter])


def _run_pipeline(commands: Sequence[Command], env: Environment) -> int:
    pipes = [os.pipe() for _ in commands[1:]]
    pipe_fds = [fd for pair in pipes for fd in pair]
    redirect_fds = [
        fd for cmd in commands for fd in (cmd.in_file, cmd.out_file) if fd is not None
    ]
    waiters: list[Waiter] = []
    try:
        last = len(commands) - 1
        for index, command in enumerate(commands):
            stdin = command.in_file
            if stdin is None and index > 0:
                stdin = pipes[index - 1][0]
            stdout = command.out_file
            if stdout is None and index < last:
                stdout = pipes[index][1]
            if is_builtin(command.argv[0]):
                waiters.append(
                    _spawn_builtin(command, env, stdin, stdout, pipe_fds + redirect_fds)
                )
            else:
                waiters.append(_spawn_external(command, env, stdin, stdout))
    finally:
        for fd in pipe_fds:
            with contextlib.suppress(OSError):
                os.close(fd)
    return _wait_all(waiters)


def _close_redirections(commands: Sequence[Command]) -> None:
    for command in commands:
        for fd in (command.in_file, command.out_file):
            if fd is not None:
                with contextlib.suppress(OSError):
                    os.close(fd)


def execute(commands: Sequence[Command], env: Environment) -> int:
    """Run a pipeline of commands and return the status of the last one.

    A lone builtin runs in the shell itself, so it can change ``env`` and
    may raise :class:`~tinyshell.builtins.ShellExit`. In a pipeline every
    command runs in its own process.
    """
    commands = list(commands)
    if not commands:
        return 0
    try:
        if len(commands) == 1:
            return _run_single(commands[0], env)
        return _run_pipeline(commands, env)
    finally:
        _close_redirections(commands)