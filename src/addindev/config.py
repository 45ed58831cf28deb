"""Setup configuration resolved from command-line flags and ``addin-dev.toml``."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

DEFAULT_CONFIG_FILENAME = "addin-dev.toml"
DEFAULT_CERTIFICATES_FOLDER = "certificates"
DEFAULT_MANIFEST_FILENAME = "manifest.xml"
DEFAULT_CATALOG_DIRNAME = ".addin-catalog"
DEFAULT_SHARE_NAME = "addin-catalog"
DEFAULT_SHELL_TIMEOUT = 30.0


def _expand_path(raw: str | os.PathLike[str] | Path, *, base_dir: Path) -> Path:
    """Return an absolute ``Path`` by expanding env vars and user segments."""

    text = str(raw)
    expanded = Path(os.path.expandvars(text)).expanduser()
    if expanded.is_absolute():
        return expanded.resolve(strict=False)
    return (base_dir / expanded).resolve(strict=False)


class FileSettings(BaseModel):
    """Values read from the ``[setup]`` table of the config file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    manifests: tuple[Path, ...] = ()
    certificates: Path | None = None
    catalog: Path | None = None
    share_name: str = DEFAULT_SHARE_NAME
    shell_timeout: float = Field(default=DEFAULT_SHELL_TIMEOUT, gt=0)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, base_dir: Path) -> "FileSettings":
        try:
            settings = cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid [setup] table: {exc}") from exc

        return settings.model_copy(
            update={
                "manifests": tuple(_expand_path(path, base_dir=base_dir) for path in settings.manifests),
                "certificates": (
                    _expand_path(settings.certificates, base_dir=base_dir)
                    if settings.certificates is not None
                    else None
                ),
                "catalog": _expand_path(settings.catalog, base_dir=base_dir) if settings.catalog is not None else None,
            }
        )


class SetupConfig(BaseModel):
    """Fully resolved configuration for one ``setup`` run."""

    model_config = ConfigDict(frozen=True)

    skip_certificates: bool
    certificates_folder: Path
    manifest_paths: tuple[Path, ...]
    catalog_path: Path
    share_name: str = DEFAULT_SHARE_NAME
    shell_timeout: float = DEFAULT_SHELL_TIMEOUT
    force_certificates: bool = False


def load_file_settings(path: Path | None = None, *, cwd: Path | None = None) -> FileSettings | None:
    """Load the ``[setup]`` table of a configuration file.

    Args:
        path: Optional path to the TOML file or its directory. When omitted,
            ``addin-dev.toml`` in ``cwd`` is used if present.
        cwd: Directory used to look up the default file.

    Returns ``None`` when no path was given and no default file exists.
    """

    config_path = _resolve_config_path(path, cwd=cwd or Path.cwd())
    if config_path is None:
        return None

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    logger.debug("Loaded configuration from {}", config_path)
    section = data.get("setup") or {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"Configuration file '{config_path}' must define [setup] as a table")
    return FileSettings.from_raw(section, base_dir=config_path.parent)


def resolve_setup_config(
    certificates: str | None,
    manifests: Sequence[Path | str] | None = None,
    *,
    config_path: Path | None = None,
    force: bool = False,
    cwd: Path | None = None,
    home: Path | None = None,
) -> SetupConfig:
    """Turn command-line flags into a ``SetupConfig``.

    ``certificates`` is ``None`` when ``--certificates`` was not passed, in
    which case certificate generation is skipped unless the config file
    names a folder.
    """

    cwd = cwd or Path.cwd()
    home = home or Path.home()
    file_settings = load_file_settings(config_path, cwd=cwd)

    if certificates is not None:
        skip_certificates = False
        certificates_folder = _expand_path(certificates or DEFAULT_CERTIFICATES_FOLDER, base_dir=cwd)
    elif file_settings is not None and file_settings.certificates is not None:
        skip_certificates = False
        certificates_folder = file_settings.certificates
    else:
        skip_certificates = True
        certificates_folder = _expand_path(DEFAULT_CERTIFICATES_FOLDER, base_dir=cwd)

    if manifests:
        manifest_paths = [_expand_path(path, base_dir=cwd) for path in manifests]
    elif file_settings is not None and file_settings.manifests:
        manifest_paths = list(file_settings.manifests)
    else:
        manifest_paths = [cwd.resolve(strict=False) / DEFAULT_MANIFEST_FILENAME]

    if file_settings is not None and file_settings.catalog is not None:
        catalog_path = file_settings.catalog
    else:
        catalog_path = home / DEFAULT_CATALOG_DIRNAME

    return SetupConfig(
        skip_certificates=skip_certificates,
        certificates_folder=certificates_folder,
        manifest_paths=tuple(_unique(manifest_paths)),
        catalog_path=catalog_path,
        share_name=file_settings.share_name if file_settings else DEFAULT_SHARE_NAME,
        shell_timeout=file_settings.shell_timeout if file_settings else DEFAULT_SHELL_TIMEOUT,
        force_certificates=force,
    )


def _unique(paths: Iterable[Path]) -> list[Path]:
    seen: set[Path] = set()
    ordered: list[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered


def _resolve_config_path(path: Path | None, *, cwd: Path) -> Path | None:
    if path is None:
        candidate = cwd / DEFAULT_CONFIG_FILENAME
        return candidate.resolve(strict=False) if candidate.is_file() else None

    path = Path(path)
    if not path.is_absolute():
        path = cwd / path
    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
