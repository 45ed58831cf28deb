from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from addindev.config import DEFAULT_CONFIG_FILENAME, load_file_settings, resolve_setup_config
from addindev.errors import ConfigError


def _write_config(directory: Path, body: str) -> Path:
    config_path = directory / DEFAULT_CONFIG_FILENAME
    config_path.write_text(dedent(body))
    return config_path


def test_defaults_skip_certificates(tmp_path: Path, fake_home: Path) -> None:
    config = resolve_setup_config(None, cwd=tmp_path)

    assert config.skip_certificates is True
    assert config.manifest_paths == (tmp_path.resolve() / "manifest.xml",)
    assert config.catalog_path == fake_home / ".addin-catalog"
    assert config.share_name == "addin-catalog"
    assert config.shell_timeout == 30.0


def test_certificates_flag_without_value_uses_default_folder(tmp_path: Path, fake_home: Path) -> None:
    config = resolve_setup_config("certificates", cwd=tmp_path)

    assert config.skip_certificates is False
    assert config.certificates_folder == (tmp_path / "certificates").resolve()


def test_certificates_flag_with_value_is_relative_to_cwd(tmp_path: Path, fake_home: Path) -> None:
    config = resolve_setup_config("custom-certs", cwd=tmp_path)

    assert config.certificates_folder == (tmp_path / "custom-certs").resolve()


def test_manifest_arguments_keep_order_and_drop_duplicates(tmp_path: Path, fake_home: Path) -> None:
    config = resolve_setup_config(None, ["b.xml", "a.xml", "b.xml"], cwd=tmp_path)

    assert config.manifest_paths == ((tmp_path / "b.xml").resolve(), (tmp_path / "a.xml").resolve())


def test_config_file_supplies_manifests_and_certificates(tmp_path: Path, fake_home: Path) -> None:
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    _write_config(
        config_dir,
        """
        [setup]
        manifests = ["word/manifest.xml", "excel/manifest.xml"]
        certificates = "certs"
        catalog = "~/catalog"
        shell_timeout = 5
        """,
    )

    config = resolve_setup_config(None, config_path=config_dir, cwd=tmp_path)

    assert config.manifest_paths == (
        (config_dir / "word/manifest.xml").resolve(),
        (config_dir / "excel/manifest.xml").resolve(),
    )
    assert config.skip_certificates is False
    assert config.certificates_folder == (config_dir / "certs").resolve()
    assert config.catalog_path == (fake_home / "catalog").resolve()
    assert config.shell_timeout == 5


def test_command_line_overrides_config_file(tmp_path: Path, fake_home: Path) -> None:
    _write_config(
        tmp_path,
        """
        [setup]
        manifests = ["from-config.xml"]
        certificates = "from-config"
        """,
    )

    config = resolve_setup_config("cli-certs", ["cli.xml"], cwd=tmp_path)

    assert config.manifest_paths == ((tmp_path / "cli.xml").resolve(),)
    assert config.certificates_folder == (tmp_path / "cli-certs").resolve()


def test_missing_default_config_file_is_not_an_error(tmp_path: Path) -> None:
    assert load_file_settings(cwd=tmp_path) is None


def test_explicit_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        load_file_settings(tmp_path / "nope.toml", cwd=tmp_path)


def test_unknown_setting_rejected(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [setup]
        manifest = "typo.xml"
        """,
    )

    with pytest.raises(ConfigError):
        load_file_settings(config_path, cwd=tmp_path)


def test_invalid_toml_rejected(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, "[setup\n")

    with pytest.raises(ConfigError, match="not valid TOML"):
        load_file_settings(config_path, cwd=tmp_path)
