from __future__ import annotations

from pathlib import Path

import pytest

from addindev.config import resolve_setup_config
from addindev.errors import ShellError
from addindev.pipeline import SetupPipeline
from addindev.platforms import LinuxPlatform, WindowsPlatform

from .fakes import windows_shell


def test_run_without_certificates_skips_certificate_stage(project: Path, fake_home: Path, tmp_path: Path) -> None:
    config = resolve_setup_config(None, cwd=project)
    shell = windows_shell()
    steps: list[tuple[int, int, str]] = []

    report = SetupPipeline(
        config,
        WindowsPlatform(kits_root=tmp_path / "kits"),
        shell,
        on_step=lambda index, total, title: steps.append((index, total, title)),
    ).run()

    assert report.stages == ["catalog", "manifests"]
    assert [step[:2] for step in steps] == [(1, 2), (2, 2)]
    assert report.notes == []
    assert not (project / "certificates").exists()
    assert (fake_home / ".addin-catalog" / "manifest.xml").is_symlink()
    assert "net" in shell.executables()
    assert "Catalog shared as \\\\DEVBOX\\addin-catalog" in report.details


def test_share_failure_aborts_before_linking(project: Path, fake_home: Path, tmp_path: Path) -> None:
    config = resolve_setup_config("certificates", cwd=project)
    shell = windows_shell(net=ShellError("net share failed", exit_status=2, stderr="Access is denied."))
    pipeline = SetupPipeline(config, WindowsPlatform(kits_root=tmp_path / "kits"), shell)

    with pytest.raises(ShellError):
        pipeline.run()

    assert not (fake_home / ".addin-catalog" / "manifest.xml").exists()
    assert not (project / "certificates").exists()


def test_certificate_stage_collects_remediation(
    project: Path, fake_home: Path, tmp_path: Path, fast_keys: None
) -> None:
    config = resolve_setup_config("certificates", cwd=project)

    report = SetupPipeline(config, WindowsPlatform(kits_root=tmp_path / "kits"), windows_shell()).run()

    assert report.stages == ["catalog", "manifests", "certificates"]
    assert len(report.notes) == 1
    assert (project / "certificates" / "ca.crt").is_file()


def test_missing_manifest_becomes_warning(project: Path, fake_home: Path) -> None:
    (project / "manifest.xml").unlink()
    config = resolve_setup_config(None, cwd=project)

    report = SetupPipeline(config, LinuxPlatform(), windows_shell()).run()

    assert report.stages == ["catalog", "manifests"]
    assert len(report.warnings) == 1
    assert "does not exist" in report.warnings[0]
