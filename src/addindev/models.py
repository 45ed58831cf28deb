"""Shared models and enums for addin-dev."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ShellResult:
    """Captured output of a finished shell command."""

    stdout: str
    stderr: str
    exit_status: int


@dataclass(frozen=True, slots=True)
class RemediationStep:
    """A manual action the user must perform after the run."""

    title: str
    steps: tuple[str, ...] = ()

    def render(self) -> str:
        lines = [self.title]
        lines.extend(f"  {index}. {step}" for index, step in enumerate(self.steps, start=1))
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of a pipeline stage that completed without error."""

    notes: tuple[RemediationStep, ...] = ()
    warnings: tuple[str, ...] = ()
    details: tuple[str, ...] = ()


@dataclass(slots=True)
class SetupReport:
    """Aggregated results of a setup run, in stage order."""

    stages: list[str] = field(default_factory=list)
    notes: list[RemediationStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)

    def record(self, stage: str, result: StageResult) -> None:
        self.stages.append(stage)
        self.notes.extend(result.notes)
        self.warnings.extend(result.warnings)
        self.details.extend(result.details)


@dataclass(frozen=True, slots=True)
class CertificateBundle:
    """PEM-encoded CA and server certificate material."""

    ca_key: str
    ca_certificate: str
    server_key: str
    server_certificate: str
    server_csr: str


class LinkAction(str, Enum):
    """Outcome of linking a manifest into the catalog."""

    LINKED = "linked"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    MISSING = "missing"
    DUPLICATE = "duplicate"


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Result emitted for every configured manifest."""

    manifest: Path
    link: Path
    action: LinkAction
    details: str | None = None
