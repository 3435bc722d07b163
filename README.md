# tinyshell

The execution side of a small POSIX-style shell, usable as a library.
It keeps the shell's own environment, runs the builtin commands, finds
programs on `PATH` and runs pipelines of commands.

## What is inside

- `tinyshell.environment`: `Environment` is an ordered collection of
  `EnvVar` entries (`key`, `value`, `visibility`). You build it with
  `Environment.from_envp`, which takes `KEY=VALUE` strings or a mapping.
  With `None` it uses the process environment. Each entry has a
  `Visibility`: `EXPORTED` (has a value and is listed by `env`), `UNSET`
  (declared with `export NAME`, no value) or `HIDDEN`.
  - When the environment given is empty, `minimal_environment()` supplies
    `PATH`, `OLDPWD`, `PWD` (if the working directory can be read) and
    `SHLVL=1`. The `PATH` supplied this way is hidden from listings.
  - `parse_entry` turns one `KEY=VALUE` or bare `KEY` string into an
    `EnvVar`.
  - The environment offers `get`, `find`, `set` (updates an existing key
    only), `add`, `unset`, iteration and `len`.
  - `to_envp()` renders every entry as `KEY=VALUE`, or `KEY=` when the
    entry has no value.
- `tinyshell.builtins`: `cd`, `echo`, `env_command`, `pwd`, `export`,
  `unset` and `exit_command`, reached through `run_builtin(argv, env,
  is_child)`. `is_builtin` tells whether a name is one of them. Each
  builtin writes to `sys.stdout` and `sys.stderr` and returns an exit
  status. `exit_command` raises `ShellExit`, whose `status` is the code to
  end with, or `None` for "the status of the last command". Helpers
  `is_valid_name`, `is_valid_exit_arg` and `is_n_flag` validate `export`
  names, `exit` arguments and `echo -n` options.
- `tinyshell.pathsearch`: `find_executable(command, env)` returns the
  command itself if it is executable. It returns `None` for names that
  start with `/` or `.` and are not executable. Otherwise it searches the
  directories in the environment's `PATH`.
- `tinyshell.executor`: `Command` describes one stage of a pipeline. It
  holds `argv`, plus optional `in_file` and `out_file`, which are
  already-open file descriptors. `execute(commands, env)` runs the list
  and returns the exit status of the last stage. It closes the
  redirection descriptors afterwards.
  - A lone builtin runs in the calling process, so it can change `env`
    and may raise `ShellExit`. Only its `out_file` is applied.
  - In a pipeline every stage runs in its own process, connected by pipes.
  - While children run, SIGINT and SIGQUIT are ignored in the caller.
  - `exit_status_from` maps a child's return code to a shell status,
    including death by signal: 130 for SIGINT, 131 for SIGQUIT,
    otherwise 128 plus the signal number.
- `tinyshell.textutil`: `atoi` parses numbers leniently, wrapping like a
  signed 32-bit integer. `split_fields` splits on a separator and drops
  empty fields.

## Example

```python
from tinyshell.builtins import run_builtin
from tinyshell.environment import Environment
from tinyshell.executor import Command, execute
from tinyshell.pathsearch import find_executable

env = Environment.from_envp(None)

run_builtin(["export", "GREETING=hello"], env, False)
print(env.get("GREETING"))          # hello

print(find_executable("ls", env))   # e.g. /bin/ls

status = execute([Command(["ls"]), Command(["wc", "-l"])], env)
```

Statuses follow the usual shell conventions:

| Status | Meaning |
|--------|---------|
| 0 | success |
| 1 | a failed builtin |
| 2 | a bad `exit` argument |
| 127 | a command that cannot be found |

## What it does not do

There is no prompt, line reader or command to start an interactive
session. Nothing here parses a command line: quoting, `$VAR` expansion,
here-documents and `<`, `>`, `>>` syntax are all left to the caller. The
caller builds `Command` objects itself and opens any redirection files
before calling `execute`. The package is POSIX-only, since pipelines use
`os.fork` and `os.pipe`.