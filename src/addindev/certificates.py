"""Development CA and server certificate generation."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from loguru import logger

from .errors import CertificateGenerationError
from .filesystem import ensure_directory, write_text
from .models import CertificateBundle, RemediationStep, StageResult
from .platforms import HostPlatform, ShellExecutor

CA_COMMON_NAME = "localhost-ca"
SERVER_COMMON_NAME = "localhost"
VALIDITY_DAYS = 365
SERVER_KEY_BITSIZE = 4096
MIN_KEY_BITSIZE = 2048

CA_KEY_FILENAME = "ca.key"
CA_CERT_FILENAME = "ca.crt"
SERVER_KEY_FILENAME = "server.key"
SERVER_CERT_FILENAME = "server.crt"
SERVER_CSR_FILENAME = "server.csr"
ARTIFACT_FILENAMES = (
    CA_KEY_FILENAME,
    CA_CERT_FILENAME,
    SERVER_KEY_FILENAME,
    SERVER_CERT_FILENAME,
    SERVER_CSR_FILENAME,
)


@dataclass(frozen=True, slots=True)
class CertificateOptions:
    """Parameters for a single ``generate`` call."""

    common_name: str
    days: int = VALIDITY_DAYS
    self_signed: bool = False
    service_key: str | None = None
    service_certificate: str | None = None
    key_bitsize: int = MIN_KEY_BITSIZE


@dataclass(frozen=True, slots=True)
class GeneratedCertificate:
    """PEM output of ``generate``."""

    service_key: str
    certificate: str
    csr: str | None = None


def generate(options: CertificateOptions) -> GeneratedCertificate:
    """Generate a key and certificate described by ``options``.

    Self-signed requests produce a CA certificate. Otherwise ``service_key``
    and ``service_certificate`` name the signing CA, and the result also
    carries the CSR the certificate was issued from.

    Raises:
        CertificateGenerationError: If the options are invalid or the signer
            material cannot be loaded.
    """

    if options.days <= 0:
        raise CertificateGenerationError(f"Certificate validity must be positive, got {options.days} days")
    if options.key_bitsize < MIN_KEY_BITSIZE:
        raise CertificateGenerationError(
            f"Key size must be at least {MIN_KEY_BITSIZE} bits, got {options.key_bitsize}"
        )
    if not options.common_name:
        raise CertificateGenerationError("A common name is required")

    key = rsa.generate_private_key(public_exponent=65537, key_size=options.key_bitsize)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, options.common_name)])

    if options.self_signed:
        certificate = _build_ca_certificate(subject, key, options.days)
        return GeneratedCertificate(service_key=_key_pem(key), certificate=_cert_pem(certificate))

    if options.service_key is None or options.service_certificate is None:
        raise CertificateGenerationError("Signed certificates need both service_key and service_certificate")
    signer_key, signer_cert = _load_signer(options.service_key, options.service_certificate)

    csr = (
        x509.CertificateSigningRequestBuilder()
        .subject_name(subject)
        .sign(key, hashes.SHA256())
    )
    certificate = _build_server_certificate(csr, signer_key, signer_cert, options.days)
    return GeneratedCertificate(
        service_key=_key_pem(key),
        certificate=_cert_pem(certificate),
        csr=csr.public_bytes(serialization.Encoding.PEM).decode("ascii"),
    )


def create_bundle() -> CertificateBundle:
    """Generate the development CA and a ``localhost`` server certificate signed by it."""

    ca = generate(CertificateOptions(common_name=CA_COMMON_NAME, days=VALIDITY_DAYS, self_signed=True))
    server = generate(
        CertificateOptions(
            common_name=SERVER_COMMON_NAME,
            days=VALIDITY_DAYS,
            service_key=ca.service_key,
            service_certificate=ca.certificate,
            key_bitsize=SERVER_KEY_BITSIZE,
        )
    )
    return CertificateBundle(
        ca_key=ca.service_key,
        ca_certificate=ca.certificate,
        server_key=server.service_key,
        server_certificate=server.certificate,
        server_csr=server.csr or "",
    )


class CertificateProvisioner:
    """Writes the certificate bundle to disk and asks the host to trust the CA."""

    def __init__(
        self,
        folder: Path,
        platform: HostPlatform,
        shell: ShellExecutor,
        *,
        force: bool = False,
    ) -> None:
        self.folder = folder
        self.platform = platform
        self.shell = shell
        self.force = force

    @property
    def ca_certificate_path(self) -> Path:
        return self.folder / CA_CERT_FILENAME

    def existing_artifacts(self) -> list[Path]:
        return [self.folder / name for name in ARTIFACT_FILENAMES if (self.folder / name).exists()]

    def provision(self) -> StageResult:
        ensure_directory(self.folder)
        details: list[str] = []

        existing = self.existing_artifacts()
        if existing and not self.force:
            missing = [name for name in ARTIFACT_FILENAMES if not (self.folder / name).is_file()]
            if missing:
                raise CertificateGenerationError(
                    f"'{self.folder}' holds an incomplete certificate set (missing {', '.join(missing)}); "
                    "re-run with --force to regenerate it"
                )
            logger.info("Keeping existing certificates in {}", self.folder)
            details.append(f"Existing certificates in '{self.folder}' were kept; use --force to regenerate them.")
        else:
            self.write_bundle(create_bundle())
            details.append(f"Certificates written to '{self.folder}'.")

        notes: tuple[RemediationStep, ...] = self.platform.register_trusted_ca(self.ca_certificate_path, self.shell)
        if not notes:
            details.append(f"Registered '{self.ca_certificate_path}' as a trusted root.")
        return StageResult(notes=notes, details=tuple(details))

    def write_bundle(self, bundle: CertificateBundle) -> None:
        write_text(self.folder / CA_KEY_FILENAME, bundle.ca_key)
        write_text(self.folder / CA_CERT_FILENAME, bundle.ca_certificate)
        write_text(self.folder / SERVER_KEY_FILENAME, bundle.server_key)
        write_text(self.folder / SERVER_CERT_FILENAME, bundle.server_certificate)
        write_text(self.folder / SERVER_CSR_FILENAME, bundle.server_csr)


def _build_ca_certificate(subject: x509.Name, key: rsa.RSAPrivateKey, days: int) -> x509.Certificate:
    not_before = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=0), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
    )
    return builder.sign(key, hashes.SHA256())


def _build_server_certificate(
    csr: x509.CertificateSigningRequest,
    signer_key: rsa.RSAPrivateKey,
    signer_cert: x509.Certificate,
    days: int,
) -> x509.Certificate:
    not_before = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(signer_cert.subject)
        .public_key(csr.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=days))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(
            x509.SubjectAlternativeName(
                [
                    x509.DNSName(SERVER_COMMON_NAME),
                    x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")),
                    x509.IPAddress(ipaddress.IPv6Address("::1")),
                ]
            ),
            critical=False,
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(signer_key.public_key()),
            critical=False,
        )
    )
    return builder.sign(signer_key, hashes.SHA256())


def _load_signer(key_pem: str, cert_pem: str) -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    try:
        key = serialization.load_pem_private_key(key_pem.encode("ascii"), password=None)
        cert = x509.load_pem_x509_certificate(cert_pem.encode("ascii"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise CertificateGenerationError(f"Unable to load signing CA: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CertificateGenerationError("Signing CA key must be an RSA key")
    return key, cert


def _key_pem(key: rsa.RSAPrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _cert_pem(certificate: x509.Certificate) -> str:
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")
