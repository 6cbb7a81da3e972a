"""Error taxonomy for certificate issuance and installation.

Every error names the stage that failed so callers can report it without
inspecting the chained cause.
"""


class KubeCertsError(Exception):
    """Base class for all kubecerts errors."""

    pass


class FormatError(KubeCertsError):
    """Raised when input bytes contain no valid PEM block."""

    pass


class CALoadError(KubeCertsError):
    """Raised when CA material cannot be loaded.

    ``stage`` is one of ``"read"`` (source unreadable), ``"format"`` (no PEM
    block) or ``"parse"`` (PEM payload is not the expected DER structure).
    """

    def __init__(self, message: str, stage: str):
        self.stage = stage
        super().__init__(message)


class CertificateLoadError(CALoadError):
    """Raised when the CA certificate cannot be loaded."""

    pass


class KeyLoadError(CALoadError):
    """Raised when the CA private key cannot be loaded."""

    pass


class IssuanceError(KubeCertsError):
    """Raised when a certificate cannot be issued."""

    pass


class KeyGenerationError(IssuanceError):
    """Raised when the leaf keypair cannot be generated."""

    pass


class SigningError(IssuanceError):
    """Raised when the CA fails to sign the leaf certificate."""

    pass


class EncodingError(IssuanceError):
    """Raised when an issued artifact cannot be PEM encoded."""

    pass


class SinkError(KubeCertsError):
    """Raised when an issued credential cannot be persisted."""

    pass


class CredentialWriteError(SinkError):
    """Raised when the certificate/key file pair cannot be written."""

    pass


class ConfigError(SinkError):
    """Raised when a kubeconfig document cannot be read, parsed or written."""

    pass
