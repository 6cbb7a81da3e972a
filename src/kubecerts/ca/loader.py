"""CA certificate and key loading.

``load_certificate`` and ``load_key`` are pure: they parse bytes that a caller
has already read. ``open_ca`` reads both from disk and records the load.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace

from kubecerts.ca import pem
from kubecerts.errors import CALoadError, CertificateLoadError, FormatError, KeyLoadError
from kubecerts.metrics import kubecerts_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class CAKeyPair:
    """Holds the trusted CA certificate and its RSA private key."""

    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey
    source: str  # "file" or "memory"

    @property
    def certificate_pem(self) -> bytes:
        """Get CA certificate as PEM bytes."""
        return self.certificate.public_bytes(serialization.Encoding.PEM)


def load_certificate(data: bytes) -> x509.Certificate:
    """Parse a PEM encoded CA certificate.

    Raises:
        CertificateLoadError: With stage "format" if there is no PEM block, or
            stage "parse" if the block is not a DER certificate.
    """
    try:
        _, der = pem.decode(data)
    except FormatError as e:
        raise CertificateLoadError(f"invalid certificate format: {e}", stage="format") from e

    try:
        return x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise CertificateLoadError(f"failed to parse certificate: {e}", stage="parse") from e


def load_key(data: bytes) -> rsa.RSAPrivateKey:
    """Parse a PEM encoded, unencrypted RSA private key (PKCS#1 or PKCS#8).

    Raises:
        KeyLoadError: With stage "format" if there is no PEM block, or stage
            "parse" if the block is not a DER RSA private key.
    """
    try:
        _, der = pem.decode(data)
    except FormatError as e:
        raise KeyLoadError(f"invalid key format: {e}", stage="format") from e

    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"failed to parse key: {e}", stage="parse") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyLoadError(
            f"failed to parse key: expected RSA private key, got {type(key).__name__}",
            stage="parse",
        )
    return key


def load_ca(cert_data: bytes, key_data: bytes) -> CAKeyPair:
    """Build a CA key pair from in-memory PEM bytes."""
    certificate = load_certificate(cert_data)
    private_key = load_key(key_data)
    kubecerts_metrics.record_ca_loaded("memory", private_key.key_size)
    return CAKeyPair(certificate=certificate, private_key=private_key, source="memory")


def _read(path: Path, error_cls: type[CALoadError]) -> bytes:
    try:
        with path.open("rb") as f:
            return f.read()
    except OSError as e:
        raise error_cls(f"failed to read {path}: {e.strerror or e}", stage="read") from e


def open_ca(cert_path: str | Path, key_path: str | Path) -> CAKeyPair:
    """Read and parse the CA certificate and key files.

    Raises:
        CertificateLoadError: If the certificate cannot be read or parsed.
        KeyLoadError: If the key cannot be read or parsed.
    """
    cert_path = Path(cert_path)
    key_path = Path(key_path)

    with tracer.start_as_current_span("open_ca") as span:
        span.set_attribute("ca_cert_path", str(cert_path))
        span.set_attribute("ca_key_path", str(key_path))

        try:
            certificate = load_certificate(_read(cert_path, CertificateLoadError))
            private_key = load_key(_read(key_path, KeyLoadError))
        except CALoadError as e:
            kubecerts_metrics.record_failure("load")
            logger.info("ca_load_failed", extra={"stage": e.stage, "error": str(e)})
            raise

        span.set_attribute("ca_subject", certificate.subject.rfc4514_string())
        span.set_attribute("ca_key_size", private_key.key_size)

        logger.info(
            "ca_loaded",
            extra={
                "ca_subject": certificate.subject.rfc4514_string(),
                "ca_cert_expires": certificate.not_valid_after_utc.isoformat(),
                "ca_key_size": private_key.key_size,
            },
        )
        kubecerts_metrics.record_ca_loaded("file", private_key.key_size)

        return CAKeyPair(certificate=certificate, private_key=private_key, source="file")
