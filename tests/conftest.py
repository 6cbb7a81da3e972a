"""Shared fixtures: a throwaway self-signed CA."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from kubecerts.ca.loader import CAKeyPair


def make_ca(common_name: str = "testCA") -> tuple[x509.Certificate, rsa.RSAPrivateKey]:
    """Create a self-signed RSA CA certificate and key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(hours=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                key_encipherment=True,
                key_cert_sign=True,
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
        .sign(key, hashes.SHA256())
    )
    return certificate, key


@pytest.fixture(name="make_ca")
def make_ca_fixture():
    return make_ca


@pytest.fixture(scope="session")
def test_ca() -> tuple[x509.Certificate, rsa.RSAPrivateKey]:
    return make_ca()


@pytest.fixture
def ca_key_pair(test_ca) -> CAKeyPair:
    certificate, key = test_ca
    return CAKeyPair(certificate=certificate, private_key=key, source="memory")


@pytest.fixture
def ca_cert_pem(test_ca) -> bytes:
    return test_ca[0].public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def ca_key_pem(test_ca) -> bytes:
    """CA key as PKCS#1 ("RSA PRIVATE KEY"), the Minikube layout."""
    return test_ca[1].private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def ca_files(tmp_path, ca_cert_pem, ca_key_pem):
    """Write the CA to ca.crt / ca.key and return their paths."""
    cert_path = tmp_path / "ca.crt"
    key_path = tmp_path / "ca.key"
    cert_path.write_bytes(ca_cert_pem)
    key_path.write_bytes(ca_key_pem)
    return cert_path, key_path
