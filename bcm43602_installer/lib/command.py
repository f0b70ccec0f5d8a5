from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult) -> None:
        self.result = result
        super().__init__(
            f"Command failed ({result.returncode}): {_fmt_argv(result.argv)}\n{result.stderr}".rstrip()
        )


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr; both are logged at debug level.
    - A missing executable is reported like a failed command (returncode 127).
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(os.environ, **(env or {})),
        )
    except FileNotFoundError as e:
        result = CmdResult(argv=argv_list, returncode=127, stdout="", stderr=str(e))
    else:
        result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    if check and result.returncode != 0:
        raise CommandError(result)

    return result
