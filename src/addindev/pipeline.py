"""Ordered, fail-fast orchestration of the setup stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from loguru import logger

from .catalog import CatalogManager
from .certificates import CertificateProvisioner
from .config import SetupConfig
from .linker import ManifestLinker
from .models import LinkAction, SetupReport, StageResult
from .platforms import HostPlatform, ShellExecutor

StepCallback = Callable[[int, int, str], None]


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    title: str
    action: Callable[[], StageResult]


class SetupPipeline:
    """Runs catalog, manifest and certificate stages in order.

    The first stage to raise aborts the run; nothing after it executes and
    no report is returned. Remediation notes are only available from a
    report of a completed run.
    """

    def __init__(
        self,
        config: SetupConfig,
        platform: HostPlatform,
        shell: ShellExecutor,
        *,
        on_step: StepCallback | None = None,
    ) -> None:
        self.config = config
        self.platform = platform
        self.shell = shell
        self.on_step = on_step
        self.catalog = CatalogManager(config.catalog_path, config.share_name, platform, shell)
        self.linker = ManifestLinker(config.catalog_path)

    def stages(self) -> list[Stage]:
        stages = [
            Stage("catalog", "Ensuring add-in catalog", self._catalog_stage),
            Stage("manifests", "Linking manifests into the catalog", self._manifest_stage),
        ]
        if not self.config.skip_certificates:
            stages.append(Stage("certificates", "Generating development certificates", self._certificate_stage))
        return stages

    def run(self) -> SetupReport:
        report = SetupReport()
        stages = self.stages()
        for index, stage in enumerate(stages, start=1):
            if self.on_step is not None:
                self.on_step(index, len(stages), stage.title)
            logger.debug("Starting stage '{}'", stage.name)
            report.record(stage.name, stage.action())
        return report

    def _catalog_stage(self) -> StageResult:
        path = self.catalog.ensure_catalog_exists()
        details = [f"Catalog folder: {path}"]
        network_path = self.catalog.share_catalog()
        if network_path:
            details.append(f"Catalog shared as {network_path}")
        return StageResult(details=tuple(details))

    def _manifest_stage(self) -> StageResult:
        results = self.linker.link(self.config.manifest_paths)
        warnings = tuple(
            result.details or result.manifest.as_posix()
            for result in results
            if result.action in (LinkAction.MISSING, LinkAction.DUPLICATE)
        )
        details = tuple(
            f"{result.link.name}: {result.action.value}"
            for result in results
            if result.action not in (LinkAction.MISSING, LinkAction.DUPLICATE)
        )
        return StageResult(warnings=warnings, details=details)

    def _certificate_stage(self) -> StageResult:
        provisioner = CertificateProvisioner(
            self.config.certificates_folder,
            self.platform,
            self.shell,
            force=self.config.force_certificates,
        )
        return provisioner.provision()
