"""Core package for the addin-dev project."""

__version__ = "0.3.0"

from .certificates import CertificateOptions, CertificateProvisioner, GeneratedCertificate, create_bundle, generate
from .cli import app, run, run_setup
from .config import SetupConfig, resolve_setup_config
from .errors import (
    AddinSetupError,
    CertificateGenerationError,
    ConfigError,
    FilesystemError,
    ShellError,
    ShellTimeoutError,
)
from .models import CertificateBundle, LinkAction, LinkResult, RemediationStep, SetupReport, StageResult
from .pipeline import SetupPipeline
from .platforms import HostPlatform, LinuxPlatform, MacPlatform, WindowsPlatform, detect_platform
from .shell import ShellRunner

__all__ = [
    "__version__",
    "AddinSetupError",
    "CertificateBundle",
    "CertificateGenerationError",
    "CertificateOptions",
    "CertificateProvisioner",
    "ConfigError",
    "FilesystemError",
    "GeneratedCertificate",
    "HostPlatform",
    "LinkAction",
    "LinkResult",
    "LinuxPlatform",
    "MacPlatform",
    "RemediationStep",
    "SetupConfig",
    "SetupPipeline",
    "SetupReport",
    "ShellError",
    "ShellRunner",
    "ShellTimeoutError",
    "StageResult",
    "WindowsPlatform",
    "app",
    "create_bundle",
    "detect_platform",
    "generate",
    "resolve_setup_config",
    "run",
    "run_setup",
]
