"""Shell-mediated git command execution."""

from __future__ import annotations

import os
import shlex
import subprocess
import time
from pathlib import Path
from typing import Mapping, Sequence

from logging_config import get_logger
from metrics import record_git_command
from models import CommandResult, RepositoryHandle

from .exceptions import CommandSpawnError

logger = get_logger(__name__)

# Never block on a terminal credential prompt; keep diagnostics in English
# so authentication failures can be recognized.
BASE_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "LC_ALL": "C",
}


class CommandRunner:
    """Runs `cd <dir> && git <args>` through a POSIX shell.

    All argument quoting happens in `build_command`, so callers pass plain
    strings and paths with spaces or shell metacharacters need no special
    handling.
    """

    def __init__(self, shell: str = "/bin/sh", git_executable: str = "git"):
        self.shell = shell
        self.git_executable = git_executable

    def build_command(self, cwd: Path, args: Sequence[str]) -> str:
        """Build the shell command line for `args` run inside `cwd`."""
        parts = [shlex.quote(self.git_executable), *(shlex.quote(str(a)) for a in args)]
        return f"cd {shlex.quote(str(cwd))} && {' '.join(parts)}"

    def run(
        self,
        handle: RepositoryHandle | None,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Execute a git subcommand and capture its output.

        A non-zero exit is returned, never raised. CommandSpawnError is
        raised only when the shell itself cannot be started.
        """
        if cwd is None:
            if handle is None:
                raise ValueError("run() needs a repository handle or an explicit cwd")
            cwd = handle.work_tree

        command = self.build_command(cwd, args)
        proc_env = {**os.environ, **BASE_ENV, **(env or {})}

        start = time.time()
        try:
            proc = subprocess.run(
                [self.shell, "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                # file names are arbitrary bytes and git prints some unquoted
                encoding="utf-8",
                errors="replace",
                check=False,
                env=proc_env,
            )
        except OSError as e:
            result = CommandResult(args=tuple(args), returncode=-1, execution_failed=True)
            record_git_command(list(args), False, (time.time() - start) * 1000)
            raise CommandSpawnError(command, str(e), result) from e

        duration_ms = (time.time() - start) * 1000
        result = CommandResult(
            args=tuple(args),
            returncode=proc.returncode,
            stdout=proc.stdout.splitlines(),
            stderr=proc.stderr.splitlines(),
            output=proc.stdout,
        )
        record_git_command(list(args), result.ok, duration_ms)
        logger.debug(f"git {' '.join(args)} in {cwd} -> {proc.returncode} ({duration_ms:.1f}ms)")
        return result
