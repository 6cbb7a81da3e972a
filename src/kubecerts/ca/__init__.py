"""Certificate Authority module for kubecerts.

This module provides:
- PEM framing for DER certificates and keys
- CA certificate and key loading
- X.509 client certificate issuance and signing
"""

from kubecerts.ca.issuer import CertificateIssuer, IssuanceRequest, IssuedCredential
from kubecerts.ca.loader import CAKeyPair, load_certificate, load_key, open_ca

__all__ = [
    "CAKeyPair",
    "CertificateIssuer",
    "IssuanceRequest",
    "IssuedCredential",
    "load_certificate",
    "load_key",
    "open_ca",
]
