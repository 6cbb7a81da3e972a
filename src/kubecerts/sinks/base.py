"""Credential sink interface."""

from abc import ABC, abstractmethod

from kubecerts.ca.issuer import IssuedCredential


class CredentialSink(ABC):
    """Persists one issued credential.

    Subclasses must define:
    - NAME: short label used in logs and metrics
    - write(): store the certificate and key
    - describe(): human readable destination
    """

    NAME: str

    @abstractmethod
    def write(self, credential: IssuedCredential) -> None:
        """Persist ``credential``. Raises a SinkError subclass on failure."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Where the credential goes."""
        ...
