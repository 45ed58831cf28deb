"""Per-operating-system catalog sharing and CA trust registration."""

from __future__ import annotations

import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol, Sequence

from loguru import logger

from .errors import ShellError
from .models import RemediationStep, ShellResult

ALREADY_SHARED_MARKER = "The name has already been shared"
WINDOWS_KITS_ROOT = Path(r"C:\Program Files (x86)\Windows Kits")
CERTMGR_EXECUTABLE = "certmgr.exe"


class ShellExecutor(Protocol):
    def run(self, args: Sequence[str], *, check: bool = True) -> ShellResult: ...


class HostPlatform(ABC):
    """Capabilities the setup pipeline needs from the host operating system."""

    name: str = "unknown"

    @abstractmethod
    def ensure_shared(self, path: Path, share_name: str, shell: ShellExecutor) -> str | None:
        """Share ``path`` over the local network.

        Returns the network path of the share, or ``None`` when the platform
        has no native sharing mechanism.
        """

    @abstractmethod
    def register_trusted_ca(self, certificate: Path, shell: ShellExecutor) -> tuple[RemediationStep, ...]:
        """Register ``certificate`` as a trusted root.

        Never raises: returns no steps on success, or exactly one manual
        remediation block when automatic registration is not possible.
        """


class WindowsPlatform(HostPlatform):
    name = "windows"

    def __init__(self, kits_root: Path = WINDOWS_KITS_ROOT) -> None:
        self.kits_root = kits_root

    def ensure_shared(self, path: Path, share_name: str, shell: ShellExecutor) -> str | None:
        username = shell.run(["whoami"]).stdout.strip()
        hostname = shell.run(["hostname"]).stdout.strip()
        try:
            shell.run(["net", "share", f"{share_name}={path}", f"/grant:{username},FULL"])
        except ShellError as exc:
            if ALREADY_SHARED_MARKER not in exc.output:
                raise
            logger.info("Share '{}' already exists", share_name)
        return f"\\\\{hostname}\\{share_name}"

    def find_certmgr(self) -> Path | None:
        if not self.kits_root.is_dir():
            return None
        try:
            matches = sorted(self.kits_root.rglob(CERTMGR_EXECUTABLE))
        except OSError as exc:
            logger.warning("Unable to search '{}' for {}: {}", self.kits_root, CERTMGR_EXECUTABLE, exc)
            return None
        # prefer the 64-bit tool when several SDK versions are installed
        matches.sort(key=lambda candidate: "x64" not in candidate.parts)
        return matches[0] if matches else None

    def register_trusted_ca(self, certificate: Path, shell: ShellExecutor) -> tuple[RemediationStep, ...]:
        certmgr = self.find_certmgr()
        if certmgr is None:
            logger.info("{} not found under '{}'", CERTMGR_EXECUTABLE, self.kits_root)
            return (self.manual_steps(certificate),)
        try:
            shell.run([str(certmgr), "-add", "-c", str(certificate), "-s", "-r", "localMachine", "root"])
        except ShellError as exc:
            logger.warning("Automatic CA registration failed: {}", exc)
            return (self.manual_steps(certificate),)
        return ()

    @staticmethod
    def manual_steps(certificate: Path) -> RemediationStep:
        return RemediationStep(
            title=f"Trust the development CA '{certificate.name}' manually:",
            steps=(
                f"Open the folder '{certificate.parent}' in File Explorer.",
                f"Double-click '{certificate.name}' and choose 'Install Certificate...'.",
                "Select 'Local Machine' as the store location and click 'Next'.",
                "Choose 'Place all certificates in the following store', click 'Browse...' "
                "and select 'Trusted Root Certification Authorities'.",
                "Click 'Next', then 'Finish', and confirm the security warning.",
            ),
        )


class MacPlatform(HostPlatform):
    name = "macos"

    def __init__(self, keychain: Path | None = None) -> None:
        self.keychain = keychain or Path.home() / "Library" / "Keychains" / "login.keychain-db"

    def ensure_shared(self, path: Path, share_name: str, shell: ShellExecutor) -> str | None:
        logger.debug("Catalog sharing is not supported on macOS; skipping")
        return None

    def register_trusted_ca(self, certificate: Path, shell: ShellExecutor) -> tuple[RemediationStep, ...]:
        try:
            shell.run(
                ["security", "add-trusted-cert", "-r", "trustRoot", "-k", str(self.keychain), str(certificate)]
            )
        except ShellError as exc:
            logger.warning("Automatic CA registration failed: {}", exc)
            return (self.manual_steps(certificate),)
        return ()

    @staticmethod
    def manual_steps(certificate: Path) -> RemediationStep:
        return RemediationStep(
            title=f"Trust the development CA '{certificate.name}' manually:",
            steps=(
                f"Open the folder '{certificate.parent}' in Finder.",
                f"Double-click '{certificate.name}' to add it to the 'login' keychain in Keychain Access.",
                "Double-click the 'localhost-ca' entry and expand 'Trust'.",
                "Set 'When using this certificate' to 'Always Trust' and close the window to save.",
            ),
        )


class LinuxPlatform(HostPlatform):
    name = "linux"

    def ensure_shared(self, path: Path, share_name: str, shell: ShellExecutor) -> str | None:
        logger.debug("Catalog sharing is not supported on Linux; skipping")
        return None

    def register_trusted_ca(self, certificate: Path, shell: ShellExecutor) -> tuple[RemediationStep, ...]:
        if shutil.which("trust") is None:
            logger.info("'trust' tool not found on PATH")
            return (self.manual_steps(certificate),)
        try:
            shell.run(["trust", "anchor", "--store", str(certificate)])
        except ShellError as exc:
            logger.warning("Automatic CA registration failed: {}", exc)
            return (self.manual_steps(certificate),)
        return ()

    @staticmethod
    def manual_steps(certificate: Path) -> RemediationStep:
        return RemediationStep(
            title=f"Trust the development CA '{certificate.name}' manually:",
            steps=(
                f"Run: sudo cp '{certificate}' /usr/local/share/ca-certificates/addin-dev-ca.crt",
                "Run: sudo update-ca-certificates",
                "Restart any browser or Office client that was already running.",
            ),
        )


def detect_platform(platform: str | None = None) -> HostPlatform:
    """Return the ``HostPlatform`` variant for ``sys.platform``."""

    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsPlatform()
    if platform == "darwin":
        return MacPlatform()
    return LinuxPlatform()
