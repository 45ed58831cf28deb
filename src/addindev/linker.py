"""Symlinks manifests into the add-in catalog."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from loguru import logger

from .filesystem import ensure_symlink
from .models import LinkAction, LinkResult


class ManifestLinker:
    """Links manifests into ``catalog`` so they stay editable in place."""

    def __init__(self, catalog: Path) -> None:
        self.catalog = catalog

    def link(self, manifest_paths: Iterable[Path]) -> list[LinkResult]:
        results: list[LinkResult] = []
        claimed: dict[str, Path] = {}

        for manifest in manifest_paths:
            link = self.catalog / manifest.name

            if not manifest.is_file():
                logger.warning("Manifest '{}' does not exist", manifest)
                results.append(
                    LinkResult(
                        manifest=manifest,
                        link=link,
                        action=LinkAction.MISSING,
                        details=f"Manifest '{manifest}' does not exist; nothing was linked",
                    )
                )
                continue

            if manifest.name in claimed:
                results.append(
                    LinkResult(
                        manifest=manifest,
                        link=link,
                        action=LinkAction.DUPLICATE,
                        details=f"'{link.name}' is already linked to '{claimed[manifest.name]}'",
                    )
                )
                continue

            existed = link.exists() or link.is_symlink()
            changed = ensure_symlink(link, manifest.resolve(strict=False))
            claimed[manifest.name] = manifest

            if not changed:
                action = LinkAction.UNCHANGED
            elif existed:
                action = LinkAction.UPDATED
            else:
                action = LinkAction.LINKED
            results.append(LinkResult(manifest=manifest, link=link, action=action))

        return results
