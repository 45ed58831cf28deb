from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    (directory / "manifest.xml").write_text("<OfficeApp/>\n")
    monkeypatch.chdir(directory)
    return directory


@pytest.fixture
def fast_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("addindev.certificates.SERVER_KEY_BITSIZE", 2048)
