"""Filesystem helpers for addin-dev."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from loguru import logger

from .errors import FilesystemError


def ensure_directory(path: Path) -> bool:
    """Create ``path`` and its parents if absent.

    Returns ``True`` if the directory was created.
    """

    if path.is_dir():
        return False
    if path.exists() or path.is_symlink():
        raise FilesystemError(f"'{path}' exists but is not a directory")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Unable to create directory '{path}': {exc}") from exc
    logger.debug("Created directory {}", path)
    return True


def ensure_writable_directory(path: Path) -> None:
    """Raise ``FilesystemError`` unless the current user can write to ``path``."""

    if not os.access(path, os.W_OK | os.X_OK):
        raise FilesystemError(f"Insufficient permissions to write to '{path}'. Run with elevated privileges.")


def write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` verbatim, replacing any existing file."""

    try:
        with path.open("w", encoding="ascii", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise FilesystemError(f"Unable to write '{path}': {exc}") from exc
    logger.debug("Wrote {}", path)


def ensure_symlink(link: Path, target: Path) -> bool:
    """Ensure ``link`` is a symlink to the absolute ``target``.

    Replaces whatever occupies ``link``. Returns ``True`` if a change was made.
    """

    try:
        if link.exists() or link.is_symlink():
            if symlink_points_to(link, target):
                return False
            remove_path(link)

        link.parent.mkdir(parents=True, exist_ok=True)
        link.symlink_to(target)
    except OSError as exc:
        raise FilesystemError(f"Unable to link '{link}' to '{target}': {exc}") from exc
    logger.debug("Linked {} -> {}", link, target)
    return True


def symlink_points_to(link: Path, target: Path) -> bool:
    """Return ``True`` if ``link`` symlink resolves to ``target``."""

    if not link.is_symlink():
        return False
    current = Path(os.readlink(link))
    current_resolved = (link.parent / current).resolve(strict=False)
    target_resolved = target.resolve(strict=False)
    return current_resolved == target_resolved


def remove_path(path: Path) -> None:
    """Delete ``path`` whether it is a file, directory, or symlink."""

    if not path.exists() and not path.is_symlink():
        return
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    shutil.rmtree(path)
