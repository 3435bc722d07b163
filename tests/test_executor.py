import os
import signal

import pytest

from tinyshell.builtins import ShellExit
from tinyshell.environment import Environment
from tinyshell.executor import Command, execute, exit_status_from


@pytest.fixture
def env():
    return Environment.from_envp({"PATH": "/usr/bin:/bin", "FOO": "xyz"})


def _write_fd(path):
    return os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)


def test_exit_status_normal_codes_pass_through():
    assert exit_status_from(0) == 0
    assert exit_status_from(3) == 3


def test_exit_status_for_signals():
    assert exit_status_from(-signal.SIGINT) == 130
    assert exit_status_from(-signal.SIGQUIT) == 131


def test_command_requires_argv():
    with pytest.raises(ValueError):
        Command([])


def test_empty_pipeline_is_success(env):
    assert execute([], env) == 0


def test_single_external_with_output_redirect(env, tmp_path):
    target = tmp_path / "out.txt"
    status = execute([Command(["echo", "hello"], out_file=_write_fd(target))], env)
    assert status == 0
    assert target.read_text() == "hello\n"


def test_input_redirect(env, tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("abc\n")
    target = tmp_path / "out.txt"
    cmd = Command(
        ["cat"],
        in_file=os.open(source, os.O_RDONLY),
        out_file=_write_fd(target),
    )
    assert execute([cmd], env) == 0
    assert target.read_text() == source.read_text()


def test_pipeline_passes_data(env, tmp_path):
    target = tmp_path / "out.txt"
    status = execute(
        [
            Command(["echo", "hello"]),
            Command(["tr", "a-z", "A-Z"], out_file=_write_fd(target)),
        ],
        env,
    )
    assert status == 0
    assert target.read_text() == "HELLO\n"


def test_pipeline_status_is_last_command(env):
    assert execute([Command(["false"]), Command(["true"])], env) == 0
    assert execute([Command(["true"]), Command(["false"])], env) == 1


def test_single_false_status(env):
    assert execute([Command(["false"])], env) == 1


def test_command_not_found(env, capfd):
    status = execute([Command(["no-such-command-here"])], env)
    assert status == 127
    assert "no-such-command-here: command not found" in capfd.readouterr().err


def test_environment_is_passed_to_children(env, tmp_path):
    target = tmp_path / "out.txt"
    cmd = Command(["sh", "-c", "echo $FOO"], out_file=_write_fd(target))
    assert execute([cmd], env) == 0
    assert target.read_text() == "xyz\n"


def test_single_builtin_changes_environment(env):
    assert execute([Command(["export", "BAR=baz"])], env) == 0
    assert env.get("BAR") == "baz"


def test_builtin_in_pipeline_leaves_environment(env):
    execute([Command(["export", "BAR=baz"]), Command(["true"])], env)
    assert env.get("BAR") is None


def test_single_builtin_output_redirect(env, tmp_path):
    target = tmp_path / "out.txt"
    status = execute([Command(["echo", "hi", "there"], out_file=_write_fd(target))], env)
    assert status == 0
    assert target.read_text() == "hi there\n"


def test_builtin_in_pipeline_writes_to_pipe(env, tmp_path):
    target = tmp_path / "out.txt"
    status = execute(
        [Command(["echo", "hi"]), Command(["cat"], out_file=_write_fd(target))],
        env,
    )
    assert status == 0
    assert target.read_text() == "hi\n"


def test_single_exit_raises(env):
    with pytest.raises(ShellExit) as info:
        execute([Command(["exit", "3"])], env)
    assert info.value.status == 3


def test_exit_in_pipeline_sets_status(env):
    assert execute([Command(["true"]), Command(["exit", "3"])], env) == 3


def test_killed_by_sigint(env):
    status = execute([Command(["sh", "-c", "kill -INT $$"])], env)
    assert status == 130