"""Error taxonomy for addin-dev."""

from __future__ import annotations


class AddinSetupError(RuntimeError):
    """Base class for failures that abort a setup run."""


class ConfigError(AddinSetupError):
    """Raised when a configuration file cannot be parsed or validated."""


class FilesystemError(AddinSetupError):
    """Raised when a directory, file or symlink cannot be created."""


class CertificateGenerationError(AddinSetupError):
    """Raised when certificate material cannot be generated."""


class ShellError(AddinSetupError):
    """Raised when a shell command exits non-zero or cannot be started."""

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] = (),
        exit_status: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}".strip()


class ShellTimeoutError(ShellError, TimeoutError):
    """Raised when a shell command does not finish within its timeout."""
