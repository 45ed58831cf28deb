"""Shell command execution with a bounded timeout."""

from __future__ import annotations

import subprocess
from typing import Sequence

from loguru import logger

from .config import DEFAULT_SHELL_TIMEOUT
from .errors import ShellError, ShellTimeoutError
from .models import ShellResult


class ShellRunner:
    """Runs one command at a time and captures its text output."""

    def __init__(self, timeout: float = DEFAULT_SHELL_TIMEOUT) -> None:
        self.timeout = timeout

    def run(self, args: Sequence[str], *, check: bool = True) -> ShellResult:
        """Run ``args`` without a shell.

        Raises ``ShellError`` when the executable cannot be started or, with
        ``check``, exits non-zero. Raises ``ShellTimeoutError`` once
        ``timeout`` seconds elapse.
        """

        command = tuple(str(arg) for arg in args)
        logger.debug("Running {}", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ShellTimeoutError(
                f"Command '{command[0]}' did not finish within {self.timeout:g}s",
                command=command,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
            ) from exc
        except OSError as exc:
            raise ShellError(f"Unable to run '{command[0]}': {exc}", command=command) from exc

        result = ShellResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_status=completed.returncode,
        )
        logger.debug("'{}' exited with status {}", command[0], result.exit_status)

        if check and result.exit_status != 0:
            message = result.stderr.strip() or result.stdout.strip() or "no output"
            raise ShellError(
                f"Command '{' '.join(command)}' failed with exit status {result.exit_status}: {message}",
                command=command,
                exit_status=result.exit_status,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value
