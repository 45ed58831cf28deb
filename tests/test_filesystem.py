from __future__ import annotations

import os
from pathlib import Path

import pytest

from addindev.errors import FilesystemError
from addindev.filesystem import (
    ensure_directory,
    ensure_symlink,
    ensure_writable_directory,
    remove_path,
    symlink_points_to,
    write_text,
)


def test_ensure_directory_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "catalog"

    assert ensure_directory(target) is True
    assert ensure_directory(target) is False
    assert target.is_dir()


def test_ensure_directory_rejects_file(tmp_path: Path) -> None:
    target = tmp_path / "catalog"
    target.write_text("not a folder")

    with pytest.raises(FilesystemError, match="not a directory"):
        ensure_directory(target)


def test_ensure_directory_wraps_os_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(*_args, **_kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "mkdir", refuse)

    with pytest.raises(FilesystemError, match="Unable to create directory"):
        ensure_directory(tmp_path / "catalog")


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permission bits are not enforced")
def test_ensure_writable_directory_rejects_read_only(tmp_path: Path) -> None:
    target = tmp_path / "locked"
    target.mkdir()
    target.chmod(0o500)
    try:
        with pytest.raises(FilesystemError, match="Insufficient permissions"):
            ensure_writable_directory(target)
    finally:
        target.chmod(0o700)


def test_write_text_keeps_content_verbatim(tmp_path: Path) -> None:
    target = tmp_path / "ca.crt"
    content = "-----BEGIN CERTIFICATE-----\nabc\n-----END CERTIFICATE-----\n"

    write_text(target, content)

    assert target.read_bytes() == content.encode("ascii")


def test_ensure_symlink_creates_and_detects_unchanged(tmp_path: Path) -> None:
    target = tmp_path / "manifest.xml"
    target.write_text("<OfficeApp/>")
    link = tmp_path / "catalog" / "manifest.xml"

    assert ensure_symlink(link, target) is True
    assert symlink_points_to(link, target)
    assert os.readlink(link) == str(target)

    assert ensure_symlink(link, target) is False


def test_ensure_symlink_replaces_stale_link(tmp_path: Path) -> None:
    old_target = tmp_path / "old.xml"
    new_target = tmp_path / "new.xml"
    new_target.write_text("<OfficeApp/>")
    link = tmp_path / "manifest.xml"
    link.symlink_to(old_target)

    assert ensure_symlink(link, new_target) is True
    assert symlink_points_to(link, new_target)


def test_ensure_symlink_replaces_regular_file(tmp_path: Path) -> None:
    target = tmp_path / "manifest.xml"
    target.write_text("<OfficeApp/>")
    catalog = tmp_path / "catalog"
    catalog.mkdir()
    link = catalog / "manifest.xml"
    link.write_text("stale copy")

    ensure_symlink(link, target)
    assert link.is_symlink()


def test_ensure_symlink_wraps_os_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(*_args, **_kwargs):
        raise OSError("symlinks not permitted")

    monkeypatch.setattr(Path, "symlink_to", refuse)

    with pytest.raises(FilesystemError, match="Unable to link"):
        ensure_symlink(tmp_path / "link.xml", tmp_path / "manifest.xml")


def test_remove_path_directory(tmp_path: Path) -> None:
    directory = tmp_path / "dir"
    (directory / "child").mkdir(parents=True)
    (directory / "child" / "data").write_text("x")

    remove_path(directory)
    assert not directory.exists()


def test_remove_path_missing_noop(tmp_path: Path) -> None:
    remove_path(tmp_path / "missing")
