"""Add-in catalog folder management."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from .filesystem import ensure_directory, ensure_writable_directory
from .platforms import HostPlatform, ShellExecutor


class CatalogManager:
    """Keeps the catalog folder present and shared for Office to browse."""

    def __init__(self, path: Path, share_name: str, platform: HostPlatform, shell: ShellExecutor) -> None:
        self.path = path
        self.share_name = share_name
        self.platform = platform
        self.shell = shell

    def ensure_catalog_exists(self) -> Path:
        if ensure_directory(self.path):
            logger.info("Created catalog folder {}", self.path)
        ensure_writable_directory(self.path)
        return self.path

    def share_catalog(self) -> str | None:
        return self.platform.ensure_shared(self.path, self.share_name, self.shell)
