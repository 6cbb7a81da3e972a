"""X.509 client certificate issuance.

Generates a fresh RSA keypair and a leaf certificate signed by the CA, both
returned as PEM. Leaf certificates carry:
- Subject: O=<organization> for each organization, then CN=<common name>
- Validity: now() - 1h to the requested not_after
- Key Usage: Digital Signature
- Extended Key Usage: Server Authentication, Client Authentication
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kubecerts.ca import pem
from kubecerts.ca.loader import CAKeyPair
from kubecerts.errors import EncodingError, IssuanceError, KeyGenerationError, SigningError
from kubecerts.metrics import kubecerts_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MIN_KEY_SIZE = 2048
DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537

# Backdate not_before to tolerate clock skew between this host and the API server
CLOCK_SKEW = timedelta(hours=1)


class SerialStrategy(StrEnum):
    """How leaf serial numbers are chosen."""

    TIMESTAMP = "timestamp"  # seconds since epoch; collides within one second
    RANDOM = "random"


def split_organizations(value: str, delimiter: str = ",") -> list[str]:
    """Split a delimiter-joined organization string into a list."""
    return [org.strip() for org in value.split(delimiter) if org.strip()]


class IssuanceRequest(BaseModel):
    """Parameters for one certificate to be minted."""

    model_config = ConfigDict(frozen=True)

    common_name: str = Field(..., min_length=1)
    organizations: list[str] = Field(..., min_length=1)
    not_after: datetime
    key_size: int = Field(DEFAULT_KEY_SIZE, ge=MIN_KEY_SIZE)

    @field_validator("common_name")
    @classmethod
    def _common_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("common name must not be blank")
        return value

    @field_validator("organizations")
    @classmethod
    def _organizations_not_blank(cls, value: list[str]) -> list[str]:
        if any(not org.strip() for org in value):
            raise ValueError("organization names must not be blank")
        return value

    @field_validator("not_after")
    @classmethod
    def _not_after_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def for_validity(
        cls,
        common_name: str,
        organizations: list[str],
        validity_days: int,
        key_size: int = DEFAULT_KEY_SIZE,
        now: datetime | None = None,
    ) -> "IssuanceRequest":
        """Build a request that expires ``validity_days`` from now."""
        if validity_days <= 0:
            raise ValueError(f"validity must be a positive number of days, got {validity_days}")
        now = now or datetime.now(timezone.utc)
        try:
            not_after = now + timedelta(days=validity_days)
        except OverflowError as e:
            raise ValueError(f"validity of {validity_days} days is out of range") from e
        return cls(
            common_name=common_name,
            organizations=organizations,
            not_after=not_after,
            key_size=key_size,
        )


@dataclass(frozen=True)
class IssuedCredential:
    """Result of certificate issuance."""

    certificate_pem: bytes
    private_key_pem: bytes
    common_name: str
    serial_number: int
    not_before: datetime
    not_after: datetime

    @property
    def fingerprint(self) -> str:
        """Lowercase hexadecimal SHA-256 of the DER certificate."""
        _, der = pem.decode(self.certificate_pem)
        return hashlib.sha256(der).hexdigest()


def _serial_number(now: datetime, strategy: SerialStrategy) -> int:
    if strategy == SerialStrategy.RANDOM:
        return x509.random_serial_number()
    return int(now.timestamp())


def issue(
    request: IssuanceRequest,
    ca_certificate: x509.Certificate,
    ca_key: rsa.RSAPrivateKey,
    *,
    now: datetime | None = None,
    serial_strategy: SerialStrategy = SerialStrategy.TIMESTAMP,
) -> IssuedCredential:
    """Generate a keypair and a leaf certificate signed by the CA.

    Args:
        request: What to issue.
        ca_certificate: Issuing certificate; its subject becomes the issuer name.
        ca_key: Private key matching ``ca_certificate``.
        now: Issuance time, defaults to the current UTC time.
        serial_strategy: How the serial number is chosen.

    Returns:
        IssuedCredential holding the PEM certificate and PEM PKCS#1 private key.

    Raises:
        IssuanceError: If the validity window is empty.
        KeyGenerationError: If the keypair cannot be generated.
        SigningError: If the CA cannot sign the certificate.
        EncodingError: If either artifact cannot be serialized.
    """
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    not_before = now - CLOCK_SKEW
    # Certificates carry whole seconds only
    not_after = request.not_after.replace(microsecond=0)

    if not_after <= not_before:
        raise IssuanceError(
            f"not_after {not_after.isoformat()} must be later than not_before "
            f"{not_before.isoformat()}"
        )

    try:
        key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=request.key_size)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyGenerationError(f"failed to generate private key: {e}") from e

    serial_number = _serial_number(now, serial_strategy)

    # RDN order: every O, then CN
    subject = x509.Name(
        [x509.NameAttribute(NameOID.ORGANIZATION_NAME, org) for org in request.organizations]
        + [x509.NameAttribute(NameOID.COMMON_NAME, request.common_name)]
    )

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(ca_certificate.subject)
        .public_key(key.public_key())
        .serial_number(serial_number)
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(
            x509.BasicConstraints(ca=False, path_length=None),
            critical=True,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                key_encipherment=False,
                key_cert_sign=False,
                crl_sign=False,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage(
                [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]
            ),
            critical=False,
        )
    )

    try:
        certificate = builder.sign(ca_key, hashes.SHA256())
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"failed to sign certificate: {e}") from e

    try:
        cert_pem = pem.encode(
            pem.CERTIFICATE, certificate.public_bytes(serialization.Encoding.DER)
        )
    except (ValueError, TypeError) as e:
        raise EncodingError(f"failed to encode certificate: {e}") from e

    try:
        key_pem = pem.encode(
            pem.RSA_PRIVATE_KEY,
            key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            ),
        )
    except (ValueError, TypeError) as e:
        raise EncodingError(f"failed to encode private key: {e}") from e

    return IssuedCredential(
        certificate_pem=cert_pem,
        private_key_pem=key_pem,
        common_name=request.common_name,
        serial_number=serial_number,
        not_before=not_before,
        not_after=not_after,
    )


class CertificateIssuer:
    """Issues leaf certificates from a loaded CA key pair."""

    def __init__(
        self,
        ca_key_pair: CAKeyPair,
        serial_strategy: SerialStrategy = SerialStrategy.TIMESTAMP,
    ) -> None:
        self._ca = ca_key_pair
        self._serial_strategy = serial_strategy

    def issue(self, request: IssuanceRequest) -> IssuedCredential:
        """Issue a certificate for ``request``; see :func:`issue`."""
        with tracer.start_as_current_span("CertificateIssuer.issue") as span:
            span.set_attribute("common_name", request.common_name)
            span.set_attribute("organizations", request.organizations)
            span.set_attribute("key_size", request.key_size)

            start_time = time.time()

            try:
                credential = issue(
                    request,
                    self._ca.certificate,
                    self._ca.private_key,
                    serial_strategy=self._serial_strategy,
                )
            except IssuanceError as e:
                kubecerts_metrics.record_failure("issue")
                logger.info(
                    "certificate_issue_failed",
                    extra={"common_name": request.common_name, "error": str(e)},
                )
                raise

            span.set_attribute("serial", str(credential.serial_number))
            span.set_attribute("not_after", credential.not_after.isoformat())

            issue_time = time.time() - start_time
            kubecerts_metrics.record_certificate_issued(issue_time, request.key_size)

            logger.info(
                "certificate_issued",
                extra={
                    "common_name": request.common_name,
                    "serial": credential.serial_number,
                    "not_after": credential.not_after.isoformat(),
                    "duration_seconds": issue_time,
                },
            )

            return credential
